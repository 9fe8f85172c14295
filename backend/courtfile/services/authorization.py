"""
Shared role/ownership capability checks.

Every handler that guards a resource goes through `authorize`, which takes the
caller, the resource owner(s) and the role that may bypass ownership.
"""
from typing import Iterable, Optional, Union
from uuid import UUID

from courtfile.db.models import User, UserRole
from courtfile.utils.exceptions import UnauthorizedError

OwnerId = Union[UUID, str, None]


def is_admin(user: Optional[User]) -> bool:
    return user is not None and getattr(user.role, "value", user.role) == UserRole.admin.value


def is_owner(user: Optional[User], owner_id: OwnerId) -> bool:
    if user is None or owner_id is None:
        return False
    return str(user.id) == str(owner_id)


def can_access(
    user: Optional[User],
    owner_ids: Union[OwnerId, Iterable[OwnerId]] = None,
    role: Optional[UserRole] = UserRole.admin,
) -> bool:
    """
    True if the caller holds `role` or owns the resource.

    `owner_ids` may be a single id or several (e.g. case owner and uploader).
    Pass `owner_ids=None` for role-only checks.
    """
    if user is None:
        return False
    if role is not None and getattr(user.role, "value", user.role) == getattr(role, "value", role):
        return True
    if owner_ids is None or isinstance(owner_ids, (UUID, str)):
        owner_ids = [owner_ids]
    return any(is_owner(user, oid) for oid in owner_ids)


def authorize(
    user: Optional[User],
    owner_ids: Union[OwnerId, Iterable[OwnerId]] = None,
    role: Optional[UserRole] = UserRole.admin,
    detail: str = "You don't have permission to access this resource",
) -> None:
    """Raise UnauthorizedError (403) unless `can_access` holds."""
    if not can_access(user, owner_ids, role):
        raise UnauthorizedError(detail)
