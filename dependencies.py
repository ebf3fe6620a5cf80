# dependencies.py
"""
FastAPI dependencies shared by the routers: caller identity from the bearer
token, role guards, and the injected collaborators stored on app.state.
"""
from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from config import Settings
from models import UserRole
from services.access import CurrentUser
from services.agreement_service import AgreementGenerator
from services.storage import DocumentStorage
from services.stripe_client import StripeClient


def get_settings_from_app(request: Request) -> Settings:
     return request.app.state.settings


def verify_token(request: Request) -> CurrentUser:
     """Decode the bearer JWT ({id, role}) issued by the auth service."""
     auth = request.headers.get("Authorization") or request.cookies.get("token")
     if not auth:
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No token provided")
     token = auth[7:] if auth.startswith("Bearer ") else auth

     settings: Settings = request.app.state.settings
     try:
          payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
          return CurrentUser(id=int(payload["id"]), role=UserRole(str(payload["role"]).upper()))
     except (JWTError, KeyError, ValueError, TypeError):
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")


def require_roles(*roles: UserRole) -> Callable[..., CurrentUser]:
     """
     Build a dependency that only lets the given roles through.
     SUPER_ADMIN passes wherever ADMIN does.
     """
     allowed = set(roles)
     if UserRole.ADMIN in allowed:
          allowed.add(UserRole.SUPER_ADMIN)

     def _guard(user: CurrentUser = Depends(verify_token)) -> CurrentUser:
          if user.role not in allowed:
               raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
          return user

     return _guard


def get_agreement_generator(request: Request) -> AgreementGenerator:
     return request.app.state.agreement_generator


def get_document_storage(request: Request) -> DocumentStorage:
     return request.app.state.document_storage


def get_stripe_client(request: Request) -> StripeClient:
     return request.app.state.stripe_client
