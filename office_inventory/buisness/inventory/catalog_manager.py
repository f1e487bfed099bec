from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from office_inventory import db
from office_inventory.buisness.core.audit_trail import AuditTrail
from office_inventory.buisness.core.authorization import INVENTORY_ROLES, assert_role
from office_inventory.buisness.core.errors import DuplicateUnitCode, ItemInUse, ValidationError
from office_inventory.buisness.core.validation import (
    non_negative_quantity,
    optional_text,
    positive_quantity,
    required_text,
)
from office_inventory.buisness.inventory.item_context import ItemContext
from office_inventory.buisness.inventory.workflow_step import workflow_step
from office_inventory.data.core.user_info.user import User
from office_inventory.data.inventory.holding import Holding
from office_inventory.data.inventory.incident import Incident
from office_inventory.data.inventory.item import Item
from office_inventory.data.inventory.item_request import ItemRequest
from office_inventory.data.inventory.transfer import Transfer
from office_inventory.data.inventory.unit import Unit
from office_inventory.data.inventory.unit_assignment import UnitAssignment

DEFAULT_CATEGORY = 'General'
DEFAULT_UNIT_LABEL = 'pcs'
DEFAULT_CODE_PAD = 3


def format_unit_code(prefix: str, index: int, pad: int = DEFAULT_CODE_PAD) -> str:
    return f"{prefix}-{index:0{pad}d}"


class CatalogManager:
    """
    Catalog operations: items and their units.

    Only admins and inventory assistants may change the catalog.
    """

    def add_item(
        self,
        actor: User,
        *,
        name: str,
        category: Optional[str] = None,
        total=0,
        unit: Optional[str] = None,
        tracked: bool = False,
        code_prefix: Optional[str] = None,
    ) -> Item:
        """
        Add an item to the catalog.

        Bulk items start fully available. Tracked items start empty; passing
        ``total`` together with ``code_prefix`` generates that many units at once.
        Without a prefix a tracked item's ``total`` is ignored.
        """
        assert_role(actor, INVENTORY_ROLES)
        name = required_text(name, 'name')
        total = non_negative_quantity(total, 'total')
        code_prefix = optional_text(code_prefix)
        if tracked and not code_prefix:
            total = 0

        with workflow_step(actor, 'add_item') as step:
            item = Item(
                name=name,
                category=optional_text(category, DEFAULT_CATEGORY),
                tracking=Item.TRACKING_SERIALIZED if tracked else Item.TRACKING_BULK,
                total=0 if tracked else total,
                available=0 if tracked else total,
                unit=optional_text(unit, DEFAULT_UNIT_LABEL),
                created_by_id=actor.id,
                updated_by_id=actor.id,
            )
            db.session.add(item)
            db.session.flush()

            if tracked and total:
                self._create_units(actor, item, code_prefix, total, 1, DEFAULT_CODE_PAD)

            step.touch(item.id)
            step.record(AuditTrail.ADDED_ITEM, f"{item.name} ({total} {item.unit})", 'item', item.id)

        return item

    def edit_item(
        self,
        actor: User,
        *,
        item_id: int,
        name: Optional[str] = None,
        category: Optional[str] = None,
        total=None,
        unit: Optional[str] = None,
    ) -> Item:
        """
        Update an item's descriptive fields and, for bulk items, its total.

        The checked-out quantity (total - available) is preserved, so changing
        the total only moves the available count. A total below what is checked
        out is refused.
        """
        assert_role(actor, INVENTORY_ROLES)
        if name is not None:
            name = required_text(name, 'name')
        if total is not None:
            total = non_negative_quantity(total, 'total')

        with workflow_step(actor, 'edit_item') as step:
            ctx = ItemContext(item_id, lock=True)
            item = ctx.item

            if name is not None:
                item.name = name
            if category is not None:
                item.category = optional_text(category, DEFAULT_CATEGORY)
            if unit is not None:
                item.unit = optional_text(unit, DEFAULT_UNIT_LABEL)

            # Serialized totals follow their units
            if total is not None and not ctx.is_serialized:
                checked_out = item.total - item.available
                if total < checked_out:
                    raise ValidationError(
                        f"Total cannot be less than the {checked_out} {item.unit} currently checked out"
                    )
                item.available = max(0, total - checked_out)
                item.total = total

            item.updated_by_id = actor.id
            step.touch(item.id)
            step.record(AuditTrail.EDITED_ITEM, f"Updated {item.name}", 'item', item.id)

        return item

    def references(self, item_id: int) -> List[str]:
        """Describe what still depends on an item; empty when it can be deleted safely."""
        unit_ids = [u.id for u in Unit.query.filter_by(item_id=item_id).all()]
        found = []

        holdings = Holding.query.filter_by(item_id=item_id).count()
        if holdings:
            found.append(f"{holdings} holding(s)")
        if unit_ids:
            active = UnitAssignment.query.filter(
                UnitAssignment.unit_id.in_(unit_ids),
                UnitAssignment.status == UnitAssignment.STATUS_ACTIVE,
            ).count()
            if active:
                found.append(f"{active} assigned unit(s)")
        incidents = Incident.query.filter_by(item_id=item_id, status=Incident.STATUS_OPEN).count()
        if incidents:
            found.append(f"{incidents} open incident(s)")
        requests = ItemRequest.query.filter_by(item_id=item_id, status=ItemRequest.STATUS_PENDING).count()
        if requests:
            found.append(f"{requests} pending request(s)")
        transfers = Transfer.query.filter_by(item_id=item_id, status=Transfer.STATUS_PENDING).count()
        if transfers:
            found.append(f"{transfers} pending transfer(s)")
        return found

    def delete_item(self, actor: User, *, item_id: int, force: bool = False) -> None:
        """
        Remove an item from the catalog.

        Refused while stock is out or workflows are open, unless ``force`` is
        set. Forcing rejects pending requests, declines pending transfers,
        drops holdings, takes units back and writes off open incidents before
        the item row goes. Historical records keep the item's name.

        Raises:
            ItemInUse: If anything still references the item and force is False
        """
        assert_role(actor, INVENTORY_ROLES)

        with workflow_step(actor, 'delete_item') as step:
            ctx = ItemContext(item_id, lock=True)
            item = ctx.item
            outstanding = self.references(item.id)
            if outstanding and not force:
                raise ItemInUse(f"{item.name} is still referenced by {', '.join(outstanding)}")

            now = datetime.utcnow()
            for request in ItemRequest.query.filter_by(item_id=item.id).all():
                if request.status == ItemRequest.STATUS_PENDING:
                    request.status = ItemRequest.STATUS_REJECTED
                    request.decided_by_id = actor.id
                    request.decided_at = now
                request.item_id = None
            for transfer in Transfer.query.filter_by(item_id=item.id).all():
                if transfer.status == Transfer.STATUS_PENDING:
                    transfer.status = Transfer.STATUS_DECLINED
                    transfer.decided_by_id = actor.id
                    transfer.decided_at = now
                transfer.item_id = None
                transfer.unit_id = None
            for incident in Incident.query.filter_by(item_id=item.id).all():
                if incident.is_open:
                    incident.status = Incident.STATUS_RESOLVED
                    incident.resolution = Incident.RESOLUTION_WRITTEN_OFF
                    incident.resolved_date = now
                incident.item_id = None
                incident.unit_id = None

            for holding in Holding.query.filter_by(item_id=item.id).all():
                db.session.delete(holding)
            for unit in ctx.units():
                for assignment in UnitAssignment.query.filter_by(unit_id=unit.id).all():
                    db.session.delete(assignment)
                db.session.delete(unit)

            db.session.flush()
            name = item.name
            db.session.delete(item)
            step.record(AuditTrail.DELETED_ITEM, f"Removed {name}", 'item', item_id)

    def generate_units(
        self,
        actor: User,
        *,
        item_id: int,
        code_prefix: str,
        count,
        start_index=None,
        pad=DEFAULT_CODE_PAD,
    ) -> List[Unit]:
        """
        Create ``count`` units coded ``{prefix}-{n}``, zero padded to ``pad`` digits.

        Numbering starts after the item's existing units unless ``start_index``
        is given. A bulk item with nothing out is switched to serialized
        tracking on its first units.

        Raises:
            DuplicateUnitCode: If any generated code already exists on any item
            ConcurrentUpdate: If another transaction inserts one of the codes first;
                the unique index catches it at commit and the caller may retry
        """
        assert_role(actor, INVENTORY_ROLES)
        code_prefix = required_text(code_prefix, 'code_prefix')
        count = positive_quantity(count, 'count')
        pad = positive_quantity(pad, 'pad')

        with workflow_step(actor, 'generate_units') as step:
            ctx = ItemContext(item_id, lock=True)
            item = ctx.item

            if not ctx.is_serialized:
                if self.references(item.id):
                    raise ValidationError(f"{item.name} has stock out or open workflows; cannot switch to unit tracking")
                item.tracking = Item.TRACKING_SERIALIZED
                item.total = 0
                item.available = 0

            if start_index is None:
                start_index = Unit.query.filter_by(item_id=item.id).count() + 1
            else:
                start_index = positive_quantity(start_index, 'start_index')

            units = self._create_units(actor, item, code_prefix, count, start_index, pad)

            step.touch(item.id)
            step.record(
                AuditTrail.UNITS_GENERATED,
                f"{len(units)} unit(s) {units[0].code}..{units[-1].code} for {item.name}",
                'item',
                item.id,
            )

        return units

    def _create_units(self, actor: User, item: Item, prefix: str, count: int, start: int, pad: int) -> List[Unit]:
        codes = [format_unit_code(prefix, n, pad) for n in range(start, start + count)]
        taken = [u.code for u in Unit.query.filter(Unit.code.in_(codes)).all()]
        if taken:
            raise DuplicateUnitCode(sorted(taken))

        units = []
        for code in codes:
            unit = Unit(
                item_id=item.id,
                code=code,
                status=Unit.STATUS_AVAILABLE,
                created_by_id=actor.id,
                updated_by_id=actor.id,
            )
            db.session.add(unit)
            units.append(unit)
        db.session.flush()
        return units
