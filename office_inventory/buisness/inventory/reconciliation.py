"""
Inventory Reconciliation
Checks that catalog counts, holdings and unit states agree with each other.

Used two ways:
- by every workflow step, on the items it touched, right before commit
- on demand, as a report over the whole catalog
"""

from typing import Dict, List, Optional

from sqlalchemy import func

from office_inventory import db
from office_inventory.data.inventory.holding import Holding
from office_inventory.data.inventory.incident import Incident
from office_inventory.data.inventory.item import Item
from office_inventory.data.inventory.unit import Unit
from office_inventory.data.inventory.unit_assignment import UnitAssignment


class InventoryReconciler:

    def check_item(self, item_id: int) -> List[str]:
        """Return a description of every broken invariant for one item (empty when consistent)."""
        item = db.session.get(Item, item_id)
        if item is None:
            return []

        label = f"Item {item.id} ({item.name})"
        violations = []

        if item.available < 0:
            violations.append(f"{label}: available {item.available} is negative")
        if item.available > item.total:
            violations.append(f"{label}: available {item.available} exceeds total {item.total}")

        holdings = Holding.query.filter_by(item_id=item.id).all()
        for holding in holdings:
            if holding.quantity <= 0:
                violations.append(f"{label}: holding {holding.id} has quantity {holding.quantity}")

        if item.is_serialized:
            violations.extend(self._check_serialized(item, label, holdings))
        else:
            violations.extend(self._check_bulk(item, label, holdings))

        return violations

    def _check_bulk(self, item: Item, label: str, holdings: List[Holding]) -> List[str]:
        violations = []
        held = sum(h.quantity for h in holdings)
        if item.total != item.available + held:
            violations.append(
                f"{label}: total {item.total} != available {item.available} + held {held}"
            )
        if Unit.query.filter_by(item_id=item.id).count():
            violations.append(f"{label}: bulk item has units")
        return violations

    def _check_serialized(self, item: Item, label: str, holdings: List[Holding]) -> List[str]:
        violations = []
        if item.total or item.available:
            violations.append(f"{label}: serialized item carries bulk counts {item.total}/{item.available}")
        if holdings:
            violations.append(f"{label}: serialized item has bulk holdings")

        for unit in Unit.query.filter_by(item_id=item.id).all():
            active_count = UnitAssignment.query.filter_by(
                unit_id=unit.id, status=UnitAssignment.STATUS_ACTIVE
            ).count()
            if active_count > 1:
                violations.append(f"{label}: unit {unit.code} has {active_count} active assignments")

            expected = self.expected_unit_status(unit, active_count)
            if unit.status != expected:
                violations.append(f"{label}: unit {unit.code} is '{unit.status}', ledger says '{expected}'")
        return violations

    def expected_unit_status(self, unit: Unit, active_count: Optional[int] = None) -> str:
        """Derive a unit's status from its assignments and incidents."""
        if active_count is None:
            active_count = UnitAssignment.query.filter_by(
                unit_id=unit.id, status=UnitAssignment.STATUS_ACTIVE
            ).count()
        if active_count:
            return Unit.STATUS_ASSIGNED

        latest = (
            Incident.query
            .filter_by(unit_id=unit.id)
            .order_by(Incident.date.desc(), Incident.id.desc())
            .first()
        )
        if latest is None:
            return Unit.STATUS_AVAILABLE
        if latest.is_open:
            return latest.type
        if latest.resolution == Incident.RESOLUTION_WRITTEN_OFF:
            return Unit.STATUS_RETIRED
        return Unit.STATUS_AVAILABLE

    def check_all(self) -> Dict[int, List[str]]:
        """Violations keyed by item id, only for items that have any."""
        report = {}
        for (item_id,) in db.session.query(Item.id).order_by(Item.id).all():
            violations = self.check_item(item_id)
            if violations:
                report[item_id] = violations
        return report

    def fleet_size(self, item_id: int) -> int:
        """Total including quantities currently out on open incidents."""
        item = db.session.get(Item, item_id)
        if item is None:
            return 0
        out_on_incidents = (
            db.session.query(func.coalesce(func.sum(Incident.quantity), 0))
            .filter(Incident.item_id == item_id, Incident.status == Incident.STATUS_OPEN)
            .scalar()
        )
        if item.is_serialized:
            units = Unit.query.filter(Unit.item_id == item_id, Unit.status != Unit.STATUS_RETIRED).count()
            return units
        return item.total + int(out_on_incidents)
