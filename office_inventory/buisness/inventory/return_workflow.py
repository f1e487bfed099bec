"""
Return Workflow
Stock handed back to storage, either a bulk quantity or one tracked unit.
"""

from typing import Optional

from office_inventory.buisness.core.audit_trail import AuditTrail
from office_inventory.buisness.core.authorization import INVENTORY_ROLES, assert_role, assert_self_or_role
from office_inventory.buisness.core.errors import InsufficientHolding, InvalidTransition
from office_inventory.buisness.core.lookups import fetch
from office_inventory.buisness.core.validation import positive_quantity
from office_inventory.buisness.inventory.holdings_ledger import HoldingsLedger
from office_inventory.buisness.inventory.item_context import ItemContext
from office_inventory.buisness.inventory.workflow_step import workflow_step
from office_inventory.data.core.user_info.user import User
from office_inventory.data.inventory.holding import Holding
from office_inventory.data.inventory.unit import Unit
from office_inventory.data.inventory.unit_assignment import UnitAssignment


class ReturnWorkflow:

    def __init__(self, ledger: Optional[HoldingsLedger] = None):
        self.ledger = ledger or HoldingsLedger()

    def return_item(self, actor: User, *, holding_id: int, quantity) -> Optional[Holding]:
        """
        Return part or all of a bulk holding to storage.

        Returns the remaining holding, or None when everything was returned.

        Raises:
            InsufficientHolding: If more is returned than is held
        """
        quantity = positive_quantity(quantity)

        with workflow_step(actor, 'return_item') as step:
            holding = fetch(Holding, holding_id, lock=True)
            assert_self_or_role(actor, holding.user_id, INVENTORY_ROLES)
            if quantity > holding.quantity:
                raise InsufficientHolding(f"Holding has {holding.quantity}, cannot return {quantity}")

            item = ItemContext(holding.item_id, lock=True).item
            holder = holding.user
            remaining = self.ledger.debit_holding(holding, quantity, actor)
            item.available += quantity
            item.updated_by_id = actor.id

            step.touch(item.id)
            step.record(
                AuditTrail.RETURN,
                f"{holder.name} returned {quantity} {item.unit} of {item.name}",
                'item',
                item.id,
            )

        return remaining

    def return_unit(self, actor: User, *, assignment_id: int) -> UnitAssignment:
        """Record a tracked unit coming back to storage. Stock-room staff only."""
        assert_role(actor, INVENTORY_ROLES)

        with workflow_step(actor, 'return_unit') as step:
            assignment = fetch(UnitAssignment, assignment_id, lock=True)
            if not assignment.is_active:
                raise InvalidTransition(f"Unit {assignment.unit.code} was already returned")
            fetch(Unit, assignment.unit_id, lock=True)
            self.ledger.close_assignment(assignment, Unit.STATUS_AVAILABLE, actor)

            unit = assignment.unit
            step.touch(unit.item_id)
            step.record(
                AuditTrail.UNIT_RETURNED,
                f"{assignment.user.name} returned {unit.item.name} ({unit.code})",
                'unit',
                unit.id,
            )

        return assignment
