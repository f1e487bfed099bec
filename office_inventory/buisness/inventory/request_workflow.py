"""
Request Workflow
pending -> approved | rejected

A request reserves nothing. Stock moves only on approval, after availability
is checked again against the locked item row.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from office_inventory import db
from office_inventory.buisness.core.audit_trail import AuditTrail
from office_inventory.buisness.core.authorization import ANY_ROLE, INVENTORY_ROLES, assert_role
from office_inventory.buisness.core.errors import (
    InsufficientStock,
    NotFound,
    UnitNotAvailable,
    ValidationError,
    WrongSelectionCount,
)
from office_inventory.buisness.core.lookups import fetch
from office_inventory.buisness.core.validation import optional_text, positive_quantity
from office_inventory.buisness.inventory.holdings_ledger import HoldingsLedger
from office_inventory.buisness.inventory.item_context import ItemContext
from office_inventory.buisness.inventory.status_validator import InventoryStatusValidator
from office_inventory.buisness.inventory.workflow_step import workflow_step
from office_inventory.data.core.user_info.user import User
from office_inventory.data.inventory.item_request import ItemRequest
from office_inventory.data.inventory.unit import Unit


class RequestWorkflow:

    def __init__(self, ledger: Optional[HoldingsLedger] = None):
        self.ledger = ledger or HoldingsLedger()

    def submit(self, actor: User, *, item_id: int, quantity, note: Optional[str] = None) -> ItemRequest:
        """
        Ask for ``quantity`` of an item for the acting user.

        Raises:
            InsufficientStock: If more is asked than is available right now
        """
        assert_role(actor, ANY_ROLE)
        quantity = positive_quantity(quantity)

        with workflow_step(actor, 'submit_request') as step:
            ctx = ItemContext(item_id)
            available = ctx.stock.available
            if quantity > available:
                raise InsufficientStock(
                    f"Only {available} {ctx.item.unit} of {ctx.item.name} available, {quantity} requested"
                )

            request = ItemRequest(
                user_id=actor.id,
                item_id=ctx.item_id,
                item_name=ctx.item.name,
                quantity=quantity,
                status=ItemRequest.STATUS_PENDING,
                note=optional_text(note),
                date=datetime.utcnow(),
                created_by_id=actor.id,
                updated_by_id=actor.id,
            )
            db.session.add(request)
            db.session.flush()

            step.record(
                AuditTrail.REQUEST,
                f"{actor.name} requested {quantity} {ctx.item.unit} of {ctx.item.name}",
                'item_request',
                request.id,
            )

        return request

    def approve(self, actor: User, *, request_id: int) -> ItemRequest:
        """
        Approve a bulk request: move stock from storage into the requester's holding.

        Raises:
            InsufficientStock: If availability dropped below the requested quantity
            ValidationError: If the item is serialized (use assign_units)
        """
        assert_role(actor, INVENTORY_ROLES)

        with workflow_step(actor, 'approve_request') as step:
            request = fetch(ItemRequest, request_id, lock=True)
            InventoryStatusValidator.validate_transition("item_request", request.status, ItemRequest.STATUS_APPROVED)
            ctx = self._item_for(request)
            if ctx.is_serialized:
                raise ValidationError(f"{ctx.item.name} is tracked by unit; choose units to assign")

            item = ctx.item
            if item.available < request.quantity:
                raise InsufficientStock(
                    f"Only {item.available} {item.unit} of {item.name} available, {request.quantity} requested"
                )

            item.available -= request.quantity
            item.updated_by_id = actor.id
            self.ledger.credit(user_id=request.user_id, item_id=item.id, quantity=request.quantity, actor=actor)
            self._decide(request, actor, ItemRequest.STATUS_APPROVED)

            step.touch(item.id)
            step.record(
                AuditTrail.APPROVED,
                f"Approved {request.quantity} {item.name} for {request.user.name}",
                'item_request',
                request.id,
            )

        return request

    def assign_units(self, actor: User, *, request_id: int, unit_ids: Iterable[int]) -> List[Unit]:
        """
        Approve a serialized request by handing over the chosen units.

        Raises:
            WrongSelectionCount: If the number of distinct units differs from the request
            UnitNotAvailable: If any chosen unit is not in storage or belongs to another item
        """
        assert_role(actor, INVENTORY_ROLES)
        selected = []
        for unit_id in unit_ids or []:
            try:
                unit_id = int(unit_id)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid unit id {unit_id!r}")
            if unit_id not in selected:
                selected.append(unit_id)

        with workflow_step(actor, 'assign_units') as step:
            request = fetch(ItemRequest, request_id, lock=True)
            InventoryStatusValidator.validate_transition("item_request", request.status, ItemRequest.STATUS_APPROVED)
            ctx = self._item_for(request)
            if not ctx.is_serialized:
                raise ValidationError(f"{ctx.item.name} is not tracked by unit; approve the quantity instead")
            if len(selected) != request.quantity:
                raise WrongSelectionCount(request.quantity, len(selected))

            units = (
                Unit.query
                .filter(Unit.id.in_(selected))
                .order_by(Unit.code)
                .with_for_update()
                .populate_existing()
                .all()
            )
            found = {u.id for u in units}
            unusable = [f"#{unit_id}" for unit_id in selected if unit_id not in found]
            unusable.extend(
                u.code for u in units
                if u.item_id != ctx.item_id
                or u.status != Unit.STATUS_AVAILABLE
                or self.ledger.active_assignment(u.id) is not None
            )
            if unusable:
                raise UnitNotAvailable(unusable)

            for unit in units:
                self.ledger.open_assignment(unit, request.user_id, actor)
            self._decide(request, actor, ItemRequest.STATUS_APPROVED)

            step.touch(ctx.item_id)
            step.record(
                AuditTrail.APPROVED,
                f"Approved {ctx.item.name} ({', '.join(u.code for u in units)}) for {request.user.name}",
                'item_request',
                request.id,
            )

        return units

    def reject(self, actor: User, *, request_id: int, reason: Optional[str] = None) -> ItemRequest:
        assert_role(actor, INVENTORY_ROLES)

        with workflow_step(actor, 'reject_request') as step:
            request = fetch(ItemRequest, request_id, lock=True)
            InventoryStatusValidator.validate_transition("item_request", request.status, ItemRequest.STATUS_REJECTED)
            self._decide(request, actor, ItemRequest.STATUS_REJECTED)

            detail = f"Rejected {request.user.name}'s request for {request.quantity} {request.item_name}"
            reason = optional_text(reason)
            if reason:
                detail = f"{detail}: {reason}"
            step.record(AuditTrail.REJECTED, detail, 'item_request', request.id)

        return request

    def _item_for(self, request: ItemRequest) -> ItemContext:
        if request.item_id is None:
            raise NotFound(f"{request.item_name} is no longer in the catalog")
        return ItemContext(request.item_id, lock=True)

    @staticmethod
    def _decide(request: ItemRequest, actor: User, status: str) -> None:
        request.status = status
        request.decided_by_id = actor.id
        request.decided_at = datetime.utcnow()
        request.updated_by_id = actor.id
