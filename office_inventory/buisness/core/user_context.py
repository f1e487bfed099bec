"""
User Context (Core)
Provides a clean interface for managing the people who hold stock.

Handles:
- User creation with PIN, avatar initials and colour
- PIN changes and PIN checks for the login screen
- Removing a user, which first hands everything they hold back to storage
"""

from datetime import datetime
from typing import Optional, Union

from office_inventory import db
from office_inventory.buisness.core.audit_trail import AuditTrail
from office_inventory.buisness.core.authorization import ADMIN_ROLES, assert_role, assert_self_or_role
from office_inventory.buisness.core.errors import ValidationError
from office_inventory.buisness.core.lookups import fetch
from office_inventory.buisness.core.validation import required_text, valid_pin
from office_inventory.data.core.user_info.user import User
from office_inventory.logger import get_logger

logger = get_logger("office_inventory.buisness.core.user_context")

AVATAR_COLORS = [
    "#6240CC", "#ec4899", "#f59e0b", "#10b981", "#3b82f6",
    "#ef4444", "#8b5cf6", "#14b8a6", "#f97316", "#06b6d4",
]


def avatar_initials(name: str) -> str:
    """First letters of up to the first two words, upper-cased."""
    return ''.join(word[0] for word in name.split() if word)[:2].upper()


class UserContext:
    """
    Core context for user operations.

    Provides a clean interface for:
    - Creating users
    - Changing PINs
    - Removing users and reconciling what they held
    """

    def __init__(self, user: Union[User, int]):
        """
        Initialize UserContext with a User instance or ID.

        Args:
            user: User instance or user ID
        """
        if isinstance(user, User):
            self._user = user
        else:
            self._user = fetch(User, user)
        self._user_id = self._user.id

    @property
    def user(self) -> User:
        return self._user

    @property
    def user_id(self) -> int:
        return self._user_id

    @classmethod
    def create(
        cls,
        actor: Optional[User],
        *,
        name: str,
        pin: str,
        role: str = User.ROLE_STAFF,
    ) -> 'UserContext':
        """
        Create a user.

        Args:
            actor: Admin creating the user; None only while seeding the database
            name: Display name
            pin: Exactly four digits
            role: One of User.ROLES (default: staff)

        Raises:
            ValidationError: If the name is empty, the PIN malformed or the role unknown
        """
        from office_inventory.buisness.inventory.workflow_step import workflow_step

        if actor is not None:
            assert_role(actor, ADMIN_ROLES)
        name = required_text(name, 'name')
        pin = valid_pin(pin)
        role = role or User.ROLE_STAFF
        if role not in User.ROLES:
            raise ValidationError(f"Role must be one of {', '.join(User.ROLES)}")

        with workflow_step(actor, 'add_user') as step:
            user = User(
                name=name,
                role=role,
                avatar=avatar_initials(name),
                color=AVATAR_COLORS[User.query.count() % len(AVATAR_COLORS)],
                is_active=True,
            )
            user.set_pin(pin)
            db.session.add(user)
            db.session.flush()
            step.record(AuditTrail.USER_ADDED, f"{user.name} ({user.role})", 'user', user.id)

        logger.info(f"Created user: {user.name} (ID: {user.id})")
        return cls(user)

    def verify_pin(self, pin: str) -> bool:
        if not self._user.is_active or not isinstance(pin, str):
            return False
        return self._user.check_pin(pin)

    def change_pin(self, actor: User, new_pin: str) -> 'UserContext':
        """Admins may reset anyone's PIN; everyone may change their own."""
        from office_inventory.buisness.inventory.workflow_step import workflow_step

        assert_self_or_role(actor, self._user_id, ADMIN_ROLES)
        new_pin = valid_pin(new_pin)

        with workflow_step(actor, 'change_pin') as step:
            self._user.set_pin(new_pin)
            step.record(AuditTrail.PIN_CHANGED, f"PIN changed for {self._user.name}", 'user', self._user_id)

        return self

    def remove(self, actor: User) -> 'UserContext':
        """
        Deactivate a user after putting everything they hold back into storage.

        Bulk holdings return to available stock, assigned units come back,
        their pending requests are rejected and pending transfers to or from
        them are declined. Admin accounts cannot be removed.

        Raises:
            ValidationError: If the user is an admin or already removed
        """
        from office_inventory.buisness.inventory.holdings_ledger import HoldingsLedger
        from office_inventory.buisness.inventory.item_context import ItemContext
        from office_inventory.buisness.inventory.workflow_step import workflow_step
        from office_inventory.data.inventory.item_request import ItemRequest
        from office_inventory.data.inventory.transfer import Transfer
        from office_inventory.data.inventory.unit import Unit

        assert_role(actor, ADMIN_ROLES)
        if self._user.is_admin:
            raise ValidationError("Admin accounts cannot be removed")
        if not self._user.is_active:
            raise ValidationError(f"{self._user.name} was already removed")

        ledger = HoldingsLedger()
        now = datetime.utcnow()

        with workflow_step(actor, 'remove_user') as step:
            returned = []
            for holding in ledger.holdings_for_user(self._user_id):
                item = ItemContext(holding.item_id, lock=True).item
                quantity = holding.quantity
                ledger.debit_holding(holding, quantity, actor)
                item.available += quantity
                step.touch(item.id)
                returned.append(f"{quantity} {item.name}")

            for assignment in ledger.assignments_for_user(self._user_id):
                unit = fetch(Unit, assignment.unit_id, lock=True)
                ledger.close_assignment(assignment, Unit.STATUS_AVAILABLE, actor)
                step.touch(unit.item_id)
                returned.append(unit.code)

            for request in ItemRequest.query.filter_by(user_id=self._user_id, status=ItemRequest.STATUS_PENDING).all():
                request.status = ItemRequest.STATUS_REJECTED
                request.decided_by_id = actor.id
                request.decided_at = now

            pending_transfers = Transfer.query.filter(
                Transfer.status == Transfer.STATUS_PENDING,
                db.or_(Transfer.from_user_id == self._user_id, Transfer.to_user_id == self._user_id),
            ).all()
            for transfer in pending_transfers:
                transfer.status = Transfer.STATUS_DECLINED
                transfer.decided_by_id = actor.id
                transfer.decided_at = now

            self._user.is_active = False

            detail = self._user.name
            if returned:
                detail = f"{detail}; returned {', '.join(returned)}"
            step.record(AuditTrail.USER_REMOVED, detail, 'user', self._user_id)

        logger.info(f"Removed user: {self._user.name} (ID: {self._user_id})")
        return self

    def __repr__(self):
        return f'<UserContext {self._user.name}>'
