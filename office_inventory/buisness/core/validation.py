"""
Input checks shared by the workflows. All raise ValidationError.
"""

import re
from typing import Any, Optional
from office_inventory.buisness.core.errors import ValidationError

PIN_PATTERN = re.compile(r'^\d{4}$')


def _as_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(f"{field} must be a whole number")
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{field} must be a whole number")


def positive_quantity(value: Any, field: str = 'quantity') -> int:
    quantity = _as_int(value, field)
    if quantity < 1:
        raise ValidationError(f"{field} must be at least 1")
    return quantity


def non_negative_quantity(value: Any, field: str = 'total') -> int:
    quantity = _as_int(value, field)
    if quantity < 0:
        raise ValidationError(f"{field} cannot be negative")
    return quantity


def required_text(value: Optional[str], field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


def optional_text(value: Optional[str], default: Optional[str] = None) -> Optional[str]:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def valid_pin(pin: Any) -> str:
    if not isinstance(pin, str) or not PIN_PATTERN.match(pin):
        raise ValidationError("PIN must be exactly 4 digits")
    return pin


def optional_id(value: Any, field: str = 'id') -> Optional[int]:
    """Parse an optional record id; blank or 0 means none (e.g. "in storage")."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    record_id = _as_int(value, field)
    if record_id < 0:
        raise ValidationError(f"{field} must be a record id")
    return record_id or None
