# services/access.py
"""
Caller identity passed into the service layer.

Authentication happens at the HTTP edge; services only see who is calling
and with which role.
"""
from dataclasses import dataclass

from models import UserRole
from .exceptions import ForbiddenError


ADMIN_ROLES = (UserRole.ADMIN, UserRole.SUPER_ADMIN)
MANAGER_ROLES = ADMIN_ROLES + (UserRole.OWNER,)


@dataclass(frozen=True)
class CurrentUser:
     id: int
     role: UserRole

     @property
     def is_admin(self) -> bool:
          return self.role in ADMIN_ROLES

     @property
     def is_owner(self) -> bool:
          return self.role == UserRole.OWNER

     @property
     def is_tenant(self) -> bool:
          return self.role == UserRole.TENANT


def require_manager(caller: CurrentUser, message: str = "Only admins and owners can perform this action") -> None:
     """Raise ForbiddenError unless the caller is an admin or an owner."""
     if caller.role not in MANAGER_ROLES:
          raise ForbiddenError(message)


def require_owns(caller: CurrentUser, owner_id: int, message: str = "You can only manage your own properties") -> None:
     """Owners may only act on their own records; admins act on all."""
     if caller.is_owner and owner_id != caller.id:
          raise ForbiddenError(message)
