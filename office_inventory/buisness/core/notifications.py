"""
Change notifications

Subscribers (dashboards, live views) learn about committed changes through the
``inventory_changed`` blinker signal. Notifications are sent after commit and a
failing subscriber never affects the change that was already made.
"""

from dataclasses import dataclass
from typing import Iterable, Optional
from blinker import Namespace
from flask import current_app
from office_inventory.logger import get_logger

logger = get_logger("office_inventory.buisness.core.notifications")

_signals = Namespace()

inventory_changed = _signals.signal('inventory-changed')


@dataclass(frozen=True)
class ChangeNotice:
    action: str
    entity: str
    entity_id: Optional[int]
    actor_id: Optional[int]


def publish(changes: Iterable[ChangeNotice]) -> None:
    """Deliver each notice to every subscriber, logging subscriber failures."""
    app = current_app._get_current_object()
    for change in changes:
        for receiver in inventory_changed.receivers_for(app):
            try:
                receiver(app, change=change)
            except Exception:
                logger.exception(f"Change subscriber {receiver!r} failed for {change.action}")
