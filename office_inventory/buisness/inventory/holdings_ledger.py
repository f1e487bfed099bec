from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from office_inventory import db
from office_inventory.buisness.core.errors import InsufficientHolding
from office_inventory.buisness.inventory.status_validator import InventoryStatusValidator
from office_inventory.data.core.user_info.user import User
from office_inventory.data.inventory.holding import Holding
from office_inventory.data.inventory.unit import Unit
from office_inventory.data.inventory.unit_assignment import UnitAssignment


class HoldingsLedger:
    """
    Who holds what.

    Bulk stock lives in Holding rows keyed by (user, item); serialized stock in
    UnitAssignment rows. Every method only stages changes on the session; the
    calling workflow step owns the transaction.
    """

    # Bulk holdings

    def get_holding(self, user_id: int, item_id: int, lock: bool = False) -> Optional[Holding]:
        query = Holding.query.filter_by(user_id=user_id, item_id=item_id)
        if lock:
            query = query.with_for_update().populate_existing()
        return query.first()

    def held_quantity(self, user_id: int, item_id: int) -> int:
        holding = self.get_holding(user_id, item_id)
        return holding.quantity if holding else 0

    def credit(self, *, user_id: int, item_id: int, quantity: int, actor: Optional[User] = None) -> Holding:
        if quantity <= 0:
            raise ValueError("quantity must be > 0")

        holding = self.get_holding(user_id, item_id, lock=True)
        if holding is None:
            holding = Holding(
                user_id=user_id,
                item_id=item_id,
                quantity=quantity,
                assigned_at=datetime.utcnow(),
                created_by_id=actor.id if actor else None,
                updated_by_id=actor.id if actor else None,
            )
            db.session.add(holding)
        else:
            holding.quantity += quantity
            holding.assigned_at = datetime.utcnow()
            holding.updated_by_id = actor.id if actor else None
        return holding

    def debit(self, *, user_id: int, item_id: int, quantity: int, actor: Optional[User] = None) -> Optional[Holding]:
        """
        Take ``quantity`` away from a user's holding.

        Returns the remaining holding, or None once it reached zero and was deleted.

        Raises:
            InsufficientHolding: If the user holds less than ``quantity``
        """
        if quantity <= 0:
            raise ValueError("quantity must be > 0")

        holding = self.get_holding(user_id, item_id, lock=True)
        held = holding.quantity if holding else 0
        if held < quantity:
            raise InsufficientHolding(f"User {user_id} holds {held}, cannot give up {quantity}")

        return self._reduce(holding, quantity, actor)

    def debit_holding(self, holding: Holding, quantity: int, actor: Optional[User] = None) -> Optional[Holding]:
        if quantity <= 0:
            raise ValueError("quantity must be > 0")
        if holding.quantity < quantity:
            raise InsufficientHolding(f"Holding has {holding.quantity}, cannot give up {quantity}")
        return self._reduce(holding, quantity, actor)

    def _reduce(self, holding: Holding, quantity: int, actor: Optional[User]) -> Optional[Holding]:
        holding.quantity -= quantity
        if holding.quantity == 0:
            db.session.delete(holding)
            return None
        holding.updated_by_id = actor.id if actor else None
        return holding

    def holdings_for_user(self, user_id: int) -> List[Holding]:
        return Holding.query.filter_by(user_id=user_id).order_by(Holding.assigned_at.desc()).all()

    def holdings_for_item(self, item_id: int) -> List[Holding]:
        return Holding.query.filter_by(item_id=item_id).all()

    # Unit assignments

    def active_assignment(self, unit_id: int, lock: bool = False) -> Optional[UnitAssignment]:
        query = UnitAssignment.query.filter_by(unit_id=unit_id, status=UnitAssignment.STATUS_ACTIVE)
        if lock:
            query = query.with_for_update().populate_existing()
        return query.first()

    def assignments_for_user(self, user_id: int) -> List[UnitAssignment]:
        return (
            UnitAssignment.query
            .filter_by(user_id=user_id, status=UnitAssignment.STATUS_ACTIVE)
            .order_by(UnitAssignment.assigned_at.desc())
            .all()
        )

    def open_assignment(self, unit: Unit, user_id: int, actor: Optional[User] = None) -> UnitAssignment:
        assignment = UnitAssignment(
            unit_id=unit.id,
            user_id=user_id,
            status=UnitAssignment.STATUS_ACTIVE,
            assigned_at=datetime.utcnow(),
            created_by_id=actor.id if actor else None,
            updated_by_id=actor.id if actor else None,
        )
        db.session.add(assignment)
        unit.status = Unit.STATUS_ASSIGNED
        unit.updated_by_id = actor.id if actor else None
        return assignment

    def close_assignment(
        self,
        assignment: UnitAssignment,
        unit_status: str = Unit.STATUS_AVAILABLE,
        actor: Optional[User] = None,
    ) -> UnitAssignment:
        InventoryStatusValidator.validate_transition(
            "unit_assignment", assignment.status, UnitAssignment.STATUS_RETURNED
        )
        assignment.status = UnitAssignment.STATUS_RETURNED
        assignment.returned_at = datetime.utcnow()
        assignment.updated_by_id = actor.id if actor else None

        unit = assignment.unit
        unit.status = unit_status
        unit.updated_by_id = actor.id if actor else None
        return assignment

    def hand_over(self, assignment: UnitAssignment, to_user_id: int, actor: Optional[User] = None) -> UnitAssignment:
        """Move a unit from its current holder to ``to_user_id`` without ever having two active rows."""
        unit = assignment.unit
        self.close_assignment(assignment, Unit.STATUS_AVAILABLE, actor)
        # The close must reach the database before the new active row does
        db.session.flush()
        return self.open_assignment(unit, to_user_id, actor)
