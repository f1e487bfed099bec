"""
Incident Workflow
open -> resolved

Reporting damage or loss takes the quantity out of the item's total, either
from the holder named on the report or from storage. Resolving it as repaired
or replaced puts it back into storage; a write-off leaves it gone.
"""

from datetime import datetime
from typing import Optional

from office_inventory import db
from office_inventory.buisness.core.audit_trail import AuditTrail
from office_inventory.buisness.core.authorization import INVENTORY_ROLES, assert_active, assert_role
from office_inventory.buisness.core.errors import (
    InsufficientHolding,
    InsufficientStock,
    Unauthorized,
    UnitNotAvailable,
    ValidationError,
)
from office_inventory.buisness.core.lookups import fetch
from office_inventory.buisness.core.validation import optional_id, optional_text, positive_quantity
from office_inventory.buisness.inventory.holdings_ledger import HoldingsLedger
from office_inventory.buisness.inventory.item_context import ItemContext
from office_inventory.buisness.inventory.status_validator import InventoryStatusValidator
from office_inventory.buisness.inventory.workflow_step import workflow_step
from office_inventory.data.core.user_info.user import User
from office_inventory.data.inventory.incident import Incident
from office_inventory.data.inventory.unit import Unit
from office_inventory.logger import get_logger

logger = get_logger("office_inventory.buisness.inventory.incident_workflow")

_AUDIT_ACTIONS = {
    Incident.TYPE_DAMAGED: AuditTrail.DAMAGED,
    Incident.TYPE_LOST: AuditTrail.LOST,
}


class IncidentWorkflow:

    def __init__(self, ledger: Optional[HoldingsLedger] = None):
        self.ledger = ledger or HoldingsLedger()

    def report(
        self,
        actor: User,
        *,
        item_id: int,
        type: str,
        quantity=1,
        held_by_user_id: Optional[int] = None,
        unit_id: Optional[int] = None,
        note: Optional[str] = None,
        reported_by: Optional[str] = None,
    ) -> Incident:
        """
        Report stock as damaged or lost.

        Args:
            item_id: Item the report is about
            type: 'damaged' or 'lost'
            quantity: Bulk quantity; tracked units are always reported one at a time
            held_by_user_id: Holder the stock is taken from; None, blank or 0 means storage.
                For tracked units the holder comes from the ledger.
            unit_id: The unit, required for tracked items
            reported_by: Free-text reporter name, defaults to the acting user

        Raises:
            InsufficientHolding: If the named holder holds less than ``quantity``
            InsufficientStock: If storage holds less than ``quantity``
        """
        assert_active(actor)
        if type not in Incident.TYPES:
            raise ValidationError(f"Incident type must be one of {', '.join(Incident.TYPES)}")
        held_by_user_id = optional_id(held_by_user_id, 'held_by_user_id')
        unit_id = optional_id(unit_id, 'unit_id')
        if held_by_user_id is not None and actor.role not in INVENTORY_ROLES and held_by_user_id != actor.id:
            raise Unauthorized("Staff may only report stock they hold themselves")

        with workflow_step(actor, 'report_incident') as step:
            ctx = ItemContext(item_id, lock=True)
            item = ctx.item

            if ctx.is_serialized:
                quantity, holder_id, unit = self._take_unit(actor, ctx, type, quantity, held_by_user_id, unit_id)
            else:
                if unit_id is not None:
                    raise ValidationError(f"{item.name} is not tracked by unit")
                quantity = positive_quantity(quantity)
                holder_id, unit = self._take_bulk(actor, ctx, quantity, held_by_user_id), None

            holder = db.session.get(User, holder_id) if holder_id is not None else None
            incident = Incident(
                item_id=item.id,
                item_name=item.name,
                unit_id=unit.id if unit is not None else None,
                quantity=quantity,
                type=type,
                reported_by=optional_text(reported_by, actor.name),
                reported_by_id=actor.id,
                held_by_user_id=holder_id,
                note=optional_text(note),
                status=Incident.STATUS_OPEN,
                date=datetime.utcnow(),
                created_by_id=actor.id,
                updated_by_id=actor.id,
            )
            db.session.add(incident)
            db.session.flush()

            what = f"{item.name} ({unit.code})" if unit is not None else f"{quantity} {item.unit} of {item.name}"
            detail = f"{what} reported {type}"
            if holder is not None:
                detail = f"{detail} (held by {holder.name})"
            step.touch(item.id)
            step.record(_AUDIT_ACTIONS[type], detail, 'incident', incident.id)

        return incident

    def _take_bulk(self, actor: User, ctx: ItemContext, quantity: int, held_by_user_id) -> Optional[int]:
        item = ctx.item
        if held_by_user_id is not None:
            holder = fetch(User, held_by_user_id)
            held = self.ledger.held_quantity(holder.id, item.id)
            if held < quantity:
                raise InsufficientHolding(f"{holder.name} holds {held} {item.unit} of {item.name}, not {quantity}")
            self.ledger.debit(user_id=holder.id, item_id=item.id, quantity=quantity, actor=actor)
            item.total -= quantity
            item.updated_by_id = actor.id
            return holder.id

        if item.available < quantity:
            raise InsufficientStock(f"Only {item.available} {item.unit} of {item.name} in storage, not {quantity}")
        item.available -= quantity
        item.total -= quantity
        item.updated_by_id = actor.id
        return None

    def _take_unit(self, actor: User, ctx: ItemContext, type: str, quantity, held_by_user_id, unit_id):
        item = ctx.item
        if unit_id is None:
            raise ValidationError(f"{item.name} is tracked by unit; choose the unit")
        if quantity not in (None, 1, '1'):
            raise ValidationError("Tracked units are reported one at a time")

        unit = fetch(Unit, unit_id, lock=True)
        if unit.item_id != item.id:
            raise ValidationError(f"Unit {unit.code} does not belong to {item.name}")
        if unit.status not in (Unit.STATUS_AVAILABLE, Unit.STATUS_ASSIGNED):
            raise UnitNotAvailable([unit.code])

        assignment = self.ledger.active_assignment(unit.id, lock=True)
        if assignment is not None:
            if held_by_user_id is not None and held_by_user_id != assignment.user_id:
                raise InsufficientHolding(f"Unit {unit.code} is not held by user {held_by_user_id}")
            holder_id = assignment.user_id
            self.ledger.close_assignment(assignment, type, actor)
        else:
            if held_by_user_id is not None:
                raise InsufficientHolding(f"Unit {unit.code} is in storage, not held by user {held_by_user_id}")
            holder_id = None
            unit.status = type
            unit.updated_by_id = actor.id

        return 1, holder_id, unit

    def resolve(self, actor: User, *, incident_id: int, resolution: str) -> Incident:
        """
        Close an open incident.

        'repaired' and 'replaced' return the quantity to storage (or the unit to
        available); 'written off' leaves it out for good (the unit is retired).
        """
        assert_role(actor, INVENTORY_ROLES)
        if resolution not in Incident.RESOLUTIONS:
            raise ValidationError(f"Resolution must be one of {', '.join(Incident.RESOLUTIONS)}")

        with workflow_step(actor, 'resolve_incident') as step:
            incident = fetch(Incident, incident_id, lock=True)
            InventoryStatusValidator.validate_transition("incident", incident.status, Incident.STATUS_RESOLVED)
            restores = resolution in Incident.RESTORING_RESOLUTIONS

            if incident.unit_id is not None:
                unit = fetch(Unit, incident.unit_id, lock=True)
                unit.status = Unit.STATUS_AVAILABLE if restores else Unit.STATUS_RETIRED
                unit.updated_by_id = actor.id
            elif restores and incident.item_id is not None:
                item = ItemContext(incident.item_id, lock=True).item
                item.total += incident.quantity
                item.available += incident.quantity
                item.updated_by_id = actor.id

            incident.status = Incident.STATUS_RESOLVED
            incident.resolution = resolution
            incident.resolved_date = datetime.utcnow()
            incident.updated_by_id = actor.id

            step.touch(incident.item_id)
            step.record(
                AuditTrail.INCIDENT_RESOLVED,
                f"{incident.item_name} ({incident.quantity}) {resolution}",
                'incident',
                incident.id,
            )

        logger.debug(f"Incident {incident.id} resolved as {resolution}")
        return incident
