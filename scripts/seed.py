# scripts/seed.py
"""
Seed a development database with an admin, an owner, a tenant and one
property with three units. Safe to run repeatedly: users are matched by
email and the property by title.

Usage:
    python scripts/seed.py
"""
import logging
import os
import sys
from decimal import Decimal

from passlib.context import CryptContext

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import get_settings
from database import Database
from models import Property, PropertyUnit, User, UserRole

logger = logging.getLogger("seed")

# Bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

DEFAULT_PASSWORD = "changeme123"

USERS = [
    {"email": "admin@example.com", "name": "Site Admin", "first_name": "Site", "last_name": "Admin", "role": UserRole.ADMIN},
    {"email": "owner@example.com", "name": "Olivia Owner", "first_name": "Olivia", "last_name": "Owner", "role": UserRole.OWNER},
    {"email": "tenant@example.com", "name": "Tom Tenant", "first_name": "Tom", "last_name": "Tenant", "role": UserRole.TENANT},
]

UNITS = [
    {"name": "101", "unit_type": "APARTMENT", "floor": 1, "bedrooms": 1, "bathrooms": 1, "rent_amount": Decimal("950.00")},
    {"name": "102", "unit_type": "APARTMENT", "floor": 1, "bedrooms": 2, "bathrooms": 1, "rent_amount": Decimal("1200.00")},
    {"name": "201", "unit_type": "APARTMENT", "floor": 2, "bedrooms": 3, "bathrooms": 2, "rent_amount": Decimal("1650.00")},
]


def get_or_create_user(db, data):
    user = db.query(User).filter(User.email == data["email"]).first()
    if user:
        return user, False
    user = User(password_hash=pwd_context.hash(DEFAULT_PASSWORD), **data)
    db.add(user)
    db.flush()
    return user, True


def seed(database: Database) -> None:
    with database.session() as db:
        users = {}
        for data in USERS:
            user, created = get_or_create_user(db, data)
            users[user.role] = user
            logger.info("%s user %s", "Created" if created else "Found", user.email)

        owner = users[UserRole.OWNER]
        title = "Maple Court"
        prop = db.query(Property).filter(Property.title == title, Property.owner_id == owner.id).first()
        if prop:
            logger.info("Property %s already exists", title)
            return

        prop = Property(
            owner_id=owner.id,
            title=title,
            address="12 Maple Street",
            city="Springfield",
            country="US",
            base_rent=Decimal("950.00"),
            units=[PropertyUnit(**unit) for unit in UNITS],
        )
        db.add(prop)
        logger.info("Created property %s with %d units", title, len(UNITS))


if __name__ == "__main__":
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    database = Database(settings.database_url, echo=settings.sql_echo)
    database.create_all()
    try:
        seed(database)
    finally:
        database.dispose()
