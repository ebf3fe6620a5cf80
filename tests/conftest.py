"""
Test fixtures for the property manager backend.

Each test gets a fresh in-memory SQLite database (StaticPool, so every
session shares one connection), seeded with two owners, two tenants and
an admin. The agreement generator and the Stripe client are replaced with
fakes; document uploads go to a temporary directory.
"""
import hashlib
import hmac
import os
import time
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from config import Settings
from database import Database
from main import create_app
from models import Property, PropertyUnit, UnitStatus, User, UserRole
from schemas.lease import MoveInRequest
from services.access import CurrentUser
from services.agreement_service import AgreementFile
from services.storage import DocumentStorage


JWT_SECRET = "test-secret"
WEBHOOK_SECRET = "whsec_test"


# ── Fakes ──────────────────────────────────────────────────────────────

class FakeAgreementGenerator:
    """Records generated agreements instead of rendering PDFs."""

    def __init__(self, fail=False):
        self.fail = fail
        self.generated = []
        self.removed = []
        self.discarded = []

    def generate(self, snapshot):
        if self.fail:
            raise RuntimeError("agreement renderer unavailable")
        name = f"rent-agreement-{snapshot['agreement_number']}-{len(self.generated)}.pdf"
        agreement = AgreementFile(
            file_path=os.path.join("/nonexistent", name),
            file_name=name,
            relative_path=f"/uploads/agreements/{name}",
        )
        self.generated.append((snapshot, agreement))
        return agreement

    def remove(self, agreement):
        self.removed.append(agreement)

    def discard(self, relative_path):
        self.discarded.append(relative_path)

    def resolve(self, relative_path):
        return os.path.join("/nonexistent", os.path.basename(relative_path))

    def render(self, snapshot):
        return b"%PDF-1.4 fake agreement " + snapshot["agreement_number"].encode()


class FakeStripeClient:
    def __init__(self):
        self.intents = []

    def create_payment_intent(self, amount, metadata):
        intent = {"id": f"pi_test_{len(self.intents) + 1}", "client_secret": "secret_123", "amount": amount}
        self.intents.append((amount, metadata))
        return intent


# ── Seed data ──────────────────────────────────────────────────────────

def _user(email, role, first_name, last_name):
    return User(
        email=email,
        password_hash="not-a-real-hash",
        name=f"{first_name} {last_name}",
        first_name=first_name,
        last_name=last_name,
        role=role,
    )


def _seed(database):
    with database.session() as db:
        admin = _user("admin@example.com", UserRole.ADMIN, "Ada", "Admin")
        owner = _user("owner@example.com", UserRole.OWNER, "Olivia", "Owner")
        other_owner = _user("other@example.com", UserRole.OWNER, "Oscar", "Other")
        tenant = _user("tenant@example.com", UserRole.TENANT, "Tom", "Tenant")
        tenant2 = _user("tenant2@example.com", UserRole.TENANT, "Tina", "Tenant")
        db.add_all([admin, owner, other_owner, tenant, tenant2])
        db.flush()

        prop = Property(owner_id=owner.id, title="Maple Court", address="12 Maple Street")
        unit_a = PropertyUnit(name="101", rent_amount=Decimal("1000.00"))
        unit_b = PropertyUnit(name="102", rent_amount=Decimal("1200.00"))
        unit_c = PropertyUnit(name="103", rent_amount=Decimal("900.00"), status=UnitStatus.MAINTENANCE)
        prop.units = [unit_a, unit_b, unit_c]

        other_prop = Property(owner_id=other_owner.id, title="Birch House", address="4 Birch Road")
        unit_d = PropertyUnit(name="A1", rent_amount=Decimal("800.00"))
        other_prop.units = [unit_d]

        db.add_all([prop, other_prop])
        db.flush()

        return SimpleNamespace(
            admin=admin.id,
            owner=owner.id,
            other_owner=other_owner.id,
            tenant=tenant.id,
            tenant2=tenant2.id,
            property=prop.id,
            other_property=other_prop.id,
            unit_a=unit_a.id,
            unit_b=unit_b.id,
            unit_c=unit_c.id,
            unit_d=unit_d.id,
        )


def move_in_request(tenant_id, **overrides):
    data = {
        "tenant_id": tenant_id,
        "lease_start_date": date(2025, 1, 1),
        "lease_end_date": date(2025, 12, 31),
        "monthly_rent": Decimal("1000.00"),
        "security_deposit": Decimal("2000.00"),
    }
    data.update(overrides)
    return MoveInRequest(**data)


def caller(user_id, role):
    return CurrentUser(id=user_id, role=role)


def auth_headers(user_id, role):
    token = jwt.encode({"id": user_id, "role": role.value}, JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


def stripe_signature(payload, secret=WEBHOOK_SECRET, timestamp=None):
    """Stripe-Signature header for a webhook body, as Stripe computes it."""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode() + payload
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return {"Stripe-Signature": f"t={timestamp},v1={digest}"}


# ── Fixtures ───────────────────────────────────────────────────────────

@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        jwt_secret=JWT_SECRET,
        stripe_webhook_secret=WEBHOOK_SECRET,
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def database(settings):
    database = Database(settings.database_url)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def seed(database):
    return _seed(database)


@pytest.fixture
def db(database):
    session = database.SessionLocal()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def generator():
    return FakeAgreementGenerator()


@pytest.fixture
def stripe_client():
    return FakeStripeClient()


@pytest.fixture
def app(settings, database, generator, stripe_client, tmp_path):
    return create_app(
        settings=settings,
        database=database,
        agreement_generator=generator,
        document_storage=DocumentStorage(local_dir=str(tmp_path / "documents")),
        stripe_client=stripe_client,
    )


@pytest.fixture
def client(app):
    return TestClient(app)
