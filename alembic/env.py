# alembic/env.py
"""
Alembic environment for the property manager backend.

The URL comes from config.build_database_url(), the same resolution the
application uses. alembic.ini puts the project root on sys.path.
"""
from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from alembic import context

from config import build_database_url
from models import Base

config = context.config

# Callers that already configured logging (the test suite) opt out
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

DATABASE_URL = config.attributes.get("database_url") or build_database_url()

engine = create_engine(DATABASE_URL, poolclass=pool.NullPool)

with engine.connect() as connection:
    context.configure(
        connection=connection,
        target_metadata=Base.metadata,
        compare_type=True,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()

engine.dispose()
