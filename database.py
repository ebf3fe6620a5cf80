# database.py
"""
SQLAlchemy database handle and session management.

This module provides:
- A Database handle built explicitly from a URL (no import-time engine)
- Session factory and context manager for jobs and scripts
- A FastAPI dependency yielding the request's session

Usage:
     database = Database(settings.database_url)

     # In FastAPI routes (the app stores the handle on app.state.database):
     @router.get("/items")
     def get_items(db: Session = Depends(get_session)):
          return db.query(Item).all()

     # Outside FastAPI:
     with database.session() as db:
          db.query(Item).all()
"""
import logging
from contextlib import contextmanager
from typing import Generator

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def _create_engine(url: str, echo: bool = False) -> Engine:
     if url.startswith("sqlite"):
          kwargs = {"connect_args": {"check_same_thread": False}}
          if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
               kwargs["poolclass"] = StaticPool
          engine = create_engine(url, echo=echo, **kwargs)

          # pysqlite issues its own BEGIN lazily, which breaks SAVEPOINT.
          # Let SQLAlchemy emit BEGIN itself.
          @event.listens_for(engine, "connect")
          def _do_connect(dbapi_connection, connection_record):
               dbapi_connection.isolation_level = None
               cursor = dbapi_connection.cursor()
               cursor.execute("PRAGMA foreign_keys=ON")
               cursor.close()

          @event.listens_for(engine, "begin")
          def _do_begin(conn):
               conn.exec_driver_sql("BEGIN")

          return engine

     return create_engine(
          url,
          pool_size=5,
          max_overflow=10,
          pool_timeout=30,
          pool_recycle=1800,  # Recycle connections after 30 minutes
          pool_pre_ping=True,
          echo=echo,
     )


class Database:
     """
     Owns one engine and its session factory.

     Construct once per process (or per test), pass it to whoever needs
     sessions, and call dispose() on shutdown.
     """

     def __init__(self, url: str, echo: bool = False):
          self.url = url
          self.engine = _create_engine(url, echo=echo)
          self.SessionLocal = sessionmaker(
               bind=self.engine,
               autocommit=False,
               autoflush=False,
               expire_on_commit=False,
          )

     @contextmanager
     def session(self) -> Generator[Session, None, None]:
          """
          Context manager for database sessions (for use outside FastAPI routes).

          Commits on success, rolls back and re-raises on error.
          """
          session = self.SessionLocal()
          try:
               yield session
               session.commit()
          except Exception:
               session.rollback()
               raise
          finally:
               session.close()

     def create_all(self) -> None:
          """
          Create all tables defined in the models if they don't exist.
          For production, use Alembic migrations instead.
          """
          from models import Base
          Base.metadata.create_all(bind=self.engine)

     def check_connection(self) -> bool:
          """
          Test database connectivity.

          Returns:
               bool: True if connection successful, False otherwise
          """
          try:
               with self.engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
               return True
          except Exception:
               logger.exception("Database connection failed")
               return False

     def dispose(self) -> None:
          self.engine.dispose()


def get_session(request: Request) -> Generator[Session, None, None]:
     """
     FastAPI dependency that provides a database session.

     Routes commit explicitly once their unit of work is complete; anything
     left uncommitted when the request fails is rolled back here.

     Yields:
          Session: SQLAlchemy database session
     """
     database: Database = request.app.state.database
     session = database.SessionLocal()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()
