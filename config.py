# config.py
"""
Application settings loaded from the environment.

Values come from process environment variables, with a local .env file
loaded first (python-dotenv). Use get_settings() to obtain the cached
Settings instance; tests construct Settings directly.
"""
import os
from functools import lru_cache
from typing import List, Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
     return os.getenv(name, default).lower() == "true"


def build_database_url() -> str:
     """
     Resolve the SQLAlchemy URL.

     DATABASE_URL wins; otherwise an Azure SQL / SQL Server URL is built from
     DB_SERVER, DB_PORT, DB_USER, DB_PASS and DB_NAME; otherwise a local
     SQLite file is used.
     """
     url = os.getenv("DATABASE_URL")
     if url:
          return url

     server = os.getenv("DB_SERVER")
     if server:
          safe_user = quote_plus(os.getenv("DB_USER") or "")
          safe_pass = quote_plus(os.getenv("DB_PASS") or "")
          port = os.getenv("DB_PORT", "1433")
          name = os.getenv("DB_NAME")
          return f"mssql+pymssql://{safe_user}:{safe_pass}@{server}:{port}/{name}"

     return "sqlite:///./property_manager.db"


class Settings(BaseModel):
     database_url: str = "sqlite:///./property_manager.db"
     sql_echo: bool = False
     log_level: str = "INFO"

     jwt_secret: str = "dev_secret"
     jwt_algorithm: str = "HS256"
     cors_origins: List[str] = []

     upload_dir: str = "uploads"
     max_document_bytes: int = 10 * 1024 * 1024

     azure_storage_account: Optional[str] = None
     azure_storage_key: Optional[str] = None
     azure_documents_container: str = "documents"

     stripe_secret_key: Optional[str] = None
     stripe_webhook_secret: Optional[str] = None
     currency: str = "usd"

     auto_invoices_enabled: bool = False
     auto_invoices_cron: str = "0 0 1 * *"

     @property
     def agreements_dir(self) -> str:
          return os.path.join(self.upload_dir, "agreements")

     @property
     def documents_dir(self) -> str:
          return os.path.join(self.upload_dir, "documents")

     @property
     def use_cloud_storage(self) -> bool:
          return bool(self.azure_storage_account and self.azure_storage_key)


def load_settings() -> Settings:
     """Build Settings from the current environment."""
     origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]
     return Settings(
          database_url=build_database_url(),
          sql_echo=_env_flag("SQL_ECHO"),
          log_level=os.getenv("LOG_LEVEL", "INFO"),
          jwt_secret=os.getenv("JWT_SECRET", "dev_secret"),
          cors_origins=origins,
          upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
          azure_storage_account=os.getenv("AZURE_STORAGE_ACCOUNT"),
          azure_storage_key=os.getenv("AZURE_STORAGE_KEY"),
          azure_documents_container=os.getenv("AZURE_DOCUMENTS_CONTAINER", "documents"),
          stripe_secret_key=os.getenv("STRIPE_SECRET_KEY"),
          stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET"),
          currency=os.getenv("PAYMENT_CURRENCY", "usd"),
          auto_invoices_enabled=_env_flag("AUTO_INVOICES_ENABLED"),
          auto_invoices_cron=os.getenv("AUTO_INVOICES_CRON", "0 0 1 * *"),
     )


@lru_cache()
def get_settings() -> Settings:
     return load_settings()
