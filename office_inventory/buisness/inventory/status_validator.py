from __future__ import annotations

from office_inventory.buisness.core.errors import InvalidTransition


class InventoryStatusValidator:
    """
    Centralized status transition validator for workflow records.

    Requests, transfers and incidents each have one pending/open state and
    terminal states with no way out.
    """

    _NEXT = {
        ("item_request", "pending"): {"approved", "rejected"},
        ("item_request", "approved"): set(),
        ("item_request", "rejected"): set(),
        ("transfer", "pending"): {"accepted", "declined"},
        ("transfer", "accepted"): set(),
        ("transfer", "declined"): set(),
        ("incident", "open"): {"resolved"},
        ("incident", "resolved"): set(),
        ("unit_assignment", "active"): {"returned"},
        ("unit_assignment", "returned"): set(),
    }

    @classmethod
    def can_transition(cls, entity_type: str, current_status: str, new_status: str) -> bool:
        allowed = cls._NEXT.get((entity_type, current_status))
        if allowed is None:
            return False
        return new_status in allowed

    @classmethod
    def validate_transition(cls, entity_type: str, current_status: str, new_status: str) -> None:
        if not cls.can_transition(entity_type, current_status, new_status):
            label = entity_type.replace('_', ' ')
            raise InvalidTransition(f"Cannot move {label} from '{current_status}' to '{new_status}'")
