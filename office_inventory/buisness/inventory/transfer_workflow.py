"""
Transfer Workflow
pending -> accepted | declined

The sender's stock is checked when the transfer is proposed and again, under
lock, when the recipient accepts it. Nothing moves before acceptance.
"""

from datetime import datetime
from typing import Optional

from office_inventory import db
from office_inventory.buisness.core.audit_trail import AuditTrail
from office_inventory.buisness.core.authorization import INVENTORY_ROLES, assert_active, assert_self_or_role
from office_inventory.buisness.core.errors import (
    InsufficientHolding,
    NotFound,
    Unauthorized,
    ValidationError,
)
from office_inventory.buisness.core.lookups import fetch
from office_inventory.buisness.core.validation import optional_text, positive_quantity
from office_inventory.buisness.inventory.holdings_ledger import HoldingsLedger
from office_inventory.buisness.inventory.item_context import ItemContext
from office_inventory.buisness.inventory.status_validator import InventoryStatusValidator
from office_inventory.buisness.inventory.workflow_step import workflow_step
from office_inventory.data.core.user_info.user import User
from office_inventory.data.inventory.transfer import Transfer
from office_inventory.data.inventory.unit import Unit


class TransferWorkflow:

    def __init__(self, ledger: Optional[HoldingsLedger] = None):
        self.ledger = ledger or HoldingsLedger()

    def submit(
        self,
        actor: User,
        *,
        to_user_id: int,
        item_id: Optional[int] = None,
        unit_id: Optional[int] = None,
        quantity=1,
        note: Optional[str] = None,
    ) -> Transfer:
        """
        Propose handing stock the acting user holds to another user.

        Give ``item_id`` and ``quantity`` for bulk items, ``unit_id`` for a
        tracked unit (quantity is then always 1).

        Raises:
            InsufficientHolding: If the sender does not hold the stock
        """
        assert_active(actor)

        with workflow_step(actor, 'submit_transfer') as step:
            recipient = fetch(User, to_user_id)
            if not recipient.is_active:
                raise ValidationError(f"{recipient.name} is no longer active")
            if recipient.id == actor.id:
                raise ValidationError("Cannot transfer to yourself")

            if unit_id is not None:
                unit = fetch(Unit, unit_id)
                if item_id is not None and ItemContext(item_id).item_id != unit.item_id:
                    raise ValidationError(f"Unit {unit.code} does not belong to item {item_id}")
                assignment = self.ledger.active_assignment(unit.id)
                if assignment is None or assignment.user_id != actor.id:
                    raise InsufficientHolding(f"{actor.name} does not hold unit {unit.code}")
                item = unit.item
                quantity = 1
                what = f"{item.name} ({unit.code})"
            else:
                quantity = positive_quantity(quantity)
                ctx = ItemContext(item_id)
                item = ctx.item
                if ctx.is_serialized:
                    raise ValidationError(f"{item.name} is tracked by unit; choose the unit to transfer")
                held = self.ledger.held_quantity(actor.id, item.id)
                if held < quantity:
                    raise InsufficientHolding(f"{actor.name} holds {held} {item.unit} of {item.name}, cannot transfer {quantity}")
                unit = None
                what = f"{quantity} {item.name}"

            transfer = Transfer(
                from_user_id=actor.id,
                to_user_id=recipient.id,
                item_id=item.id,
                item_name=item.name,
                unit_id=unit.id if unit is not None else None,
                quantity=quantity,
                status=Transfer.STATUS_PENDING,
                note=optional_text(note),
                date=datetime.utcnow(),
                created_by_id=actor.id,
                updated_by_id=actor.id,
            )
            db.session.add(transfer)
            db.session.flush()

            step.record(
                AuditTrail.TRANSFER_SENT,
                f"{actor.name} -> {recipient.name}: {what}",
                'transfer',
                transfer.id,
            )

        return transfer

    def accept(self, actor: User, *, transfer_id: int) -> Transfer:
        """
        Accept a pending transfer; the recipient (or stock-room staff) only.

        Raises:
            InsufficientHolding: If the sender no longer holds the stock
        """
        with workflow_step(actor, 'accept_transfer') as step:
            transfer = fetch(Transfer, transfer_id, lock=True)
            assert_self_or_role(actor, transfer.to_user_id, INVENTORY_ROLES)
            InventoryStatusValidator.validate_transition("transfer", transfer.status, Transfer.STATUS_ACCEPTED)
            if not transfer.to_user.is_active:
                raise ValidationError(f"{transfer.to_user.name} is no longer active")
            if transfer.item_id is None:
                raise NotFound(f"{transfer.item_name} is no longer in the catalog")

            if transfer.unit_id is not None:
                unit = fetch(Unit, transfer.unit_id, lock=True)
                assignment = self.ledger.active_assignment(unit.id, lock=True)
                if assignment is None or assignment.user_id != transfer.from_user_id:
                    raise InsufficientHolding(f"{transfer.from_user.name} no longer holds unit {unit.code}")
                self.ledger.hand_over(assignment, transfer.to_user_id, actor)
                what = f"{transfer.item_name} ({unit.code})"
            else:
                item = ItemContext(transfer.item_id, lock=True).item
                self.ledger.debit(
                    user_id=transfer.from_user_id, item_id=item.id, quantity=transfer.quantity, actor=actor
                )
                self.ledger.credit(
                    user_id=transfer.to_user_id, item_id=item.id, quantity=transfer.quantity, actor=actor
                )
                what = f"{transfer.quantity} {item.name}"

            self._decide(transfer, actor, Transfer.STATUS_ACCEPTED)
            step.touch(transfer.item_id)
            step.record(
                AuditTrail.TRANSFER_ACCEPTED,
                f"{transfer.to_user.name} accepted {what} from {transfer.from_user.name}",
                'transfer',
                transfer.id,
            )

        return transfer

    def decline(self, actor: User, *, transfer_id: int) -> Transfer:
        """Decline a pending transfer. Either party or stock-room staff may decline."""
        assert_active(actor)

        with workflow_step(actor, 'decline_transfer') as step:
            transfer = fetch(Transfer, transfer_id, lock=True)
            if actor.id not in (transfer.to_user_id, transfer.from_user_id) and actor.role not in INVENTORY_ROLES:
                raise Unauthorized("Only the sender, the recipient or inventory staff may decline a transfer")
            InventoryStatusValidator.validate_transition("transfer", transfer.status, Transfer.STATUS_DECLINED)
            self._decide(transfer, actor, Transfer.STATUS_DECLINED)

            step.record(
                AuditTrail.TRANSFER_DECLINED,
                f"{actor.name} declined {transfer.quantity} {transfer.item_name} from {transfer.from_user.name}",
                'transfer',
                transfer.id,
            )

        return transfer

    @staticmethod
    def _decide(transfer: Transfer, actor: User, status: str) -> None:
        transfer.status = status
        transfer.decided_by_id = actor.id
        transfer.decided_at = datetime.utcnow()
        transfer.updated_by_id = actor.id
