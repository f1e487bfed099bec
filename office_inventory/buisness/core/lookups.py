"""
Primary-key loaders that raise NotFound instead of returning None.
"""

from typing import Type, TypeVar
from office_inventory import db
from office_inventory.buisness.core.errors import NotFound

ModelT = TypeVar('ModelT')


def fetch(model: Type[ModelT], record_id, lock: bool = False) -> ModelT:
    """
    Load ``model`` by id.

    With ``lock=True`` the row is re-read with SELECT ... FOR UPDATE so the
    check-then-write that follows sees the committed state and holds the row
    until commit. SQLite ignores the lock clause; the version counter on
    ledger rows still catches conflicting writers there.
    """
    if record_id is None:
        raise NotFound(f"{model.__name__} id is required")
    try:
        record_id = int(record_id)
    except (TypeError, ValueError):
        raise NotFound(f"{model.__name__} {record_id!r} not found")

    if lock:
        record = db.session.get(model, record_id, with_for_update=True, populate_existing=True)
    else:
        record = db.session.get(model, record_id)
    if record is None:
        raise NotFound(f"{model.__name__} {record_id} not found")
    return record
