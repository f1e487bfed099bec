"""
Role checks applied at the top of every mutating operation.
"""

from typing import Iterable
from office_inventory.buisness.core.errors import Unauthorized
from office_inventory.data.core.user_info.user import User

INVENTORY_ROLES = (User.ROLE_ADMIN, User.ROLE_ASSISTANT)
ADMIN_ROLES = (User.ROLE_ADMIN,)
ANY_ROLE = User.ROLES


def assert_active(actor: User) -> None:
    if actor is None or not actor.is_active:
        raise Unauthorized("Acting user is missing or deactivated")


def assert_role(actor: User, allowed_roles: Iterable[str]) -> None:
    """Raise Unauthorized unless ``actor`` is active and holds one of ``allowed_roles``."""
    assert_active(actor)
    if actor.role not in allowed_roles:
        raise Unauthorized(f"Role '{actor.role}' may not perform this action")


def assert_self_or_role(actor: User, user_id: int, allowed_roles: Iterable[str]) -> None:
    """Users may always act on their own records; others need one of ``allowed_roles``."""
    assert_active(actor)
    if actor.id == user_id:
        return
    if actor.role not in allowed_roles:
        raise Unauthorized(f"Role '{actor.role}' may not act for another user")
