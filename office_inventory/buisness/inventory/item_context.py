"""
Item Context
Provides a clean interface for reading an item's stock.
Handles the bulk vs serialized distinction in one place so workflows never
have to infer it.
"""

from dataclasses import dataclass
from typing import List, Tuple, Union
from office_inventory.buisness.core.lookups import fetch
from office_inventory.data.inventory.item import Item
from office_inventory.data.inventory.unit import Unit


@dataclass(frozen=True)
class BulkStock:
    total: int
    available: int
    unit: str

    @property
    def checked_out(self) -> int:
        return self.total - self.available


@dataclass(frozen=True)
class SerializedStock:
    unit_ids: Tuple[int, ...]
    available_unit_ids: Tuple[int, ...]
    total: int
    unit: str

    @property
    def available(self) -> int:
        return len(self.available_unit_ids)

    @property
    def checked_out(self) -> int:
        return self.total - self.available


# Units that still count towards an item's total
IN_SERVICE_STATUSES = (Unit.STATUS_AVAILABLE, Unit.STATUS_ASSIGNED)


class ItemContext:
    """
    Context for one catalog item.

    Provides:
    - The item row (optionally locked for update)
    - Its stock as a BulkStock or SerializedStock value
    - Its units
    """

    def __init__(self, item: Union[Item, int], lock: bool = False):
        """
        Initialize ItemContext with an Item instance or ID.

        Args:
            item: Item instance or item ID
            lock: Re-read the row FOR UPDATE
        """
        if isinstance(item, Item):
            self._item = fetch(Item, item.id, lock=True) if lock else item
        else:
            self._item = fetch(Item, item, lock=lock)
        self._item_id = self._item.id

    @property
    def item(self) -> Item:
        return self._item

    @property
    def item_id(self) -> int:
        return self._item_id

    @property
    def is_serialized(self) -> bool:
        return self._item.is_serialized

    def units(self) -> List[Unit]:
        return Unit.query.filter_by(item_id=self._item_id).order_by(Unit.code).all()

    def available_units(self) -> List[Unit]:
        return (
            Unit.query
            .filter_by(item_id=self._item_id, status=Unit.STATUS_AVAILABLE)
            .order_by(Unit.code)
            .all()
        )

    @property
    def stock(self) -> Union[BulkStock, SerializedStock]:
        """Current stock, resolved from the item's tracking tag."""
        if not self.is_serialized:
            return BulkStock(total=self._item.total, available=self._item.available, unit=self._item.unit)

        units = self.units()
        in_service = [u for u in units if u.status in IN_SERVICE_STATUSES]
        return SerializedStock(
            unit_ids=tuple(u.id for u in in_service),
            available_unit_ids=tuple(u.id for u in units if u.status == Unit.STATUS_AVAILABLE),
            total=len(in_service),
            unit=self._item.unit,
        )

    def __repr__(self):
        return f'<ItemContext {self._item.name} ({self._item.tracking})>'
