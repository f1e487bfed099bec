"""
Domain exceptions for inventory business logic

These exceptions represent business rule violations. Every recoverable error is
raised before the current transaction commits, so a failed operation leaves the
catalog, the holdings ledger and the audit trail untouched.
"""


class InventoryDomainError(Exception):
    """Base exception for all inventory domain errors"""
    pass


class ValidationError(InventoryDomainError):
    """Raised when input is malformed or out of range"""
    pass


class InvalidTransition(ValidationError):
    """Raised when a request, transfer or incident is no longer in a state that allows the action"""
    pass


class ItemInUse(ValidationError):
    """Raised when deleting an item that stock, units or open workflows still reference"""
    pass


class InsufficientStock(InventoryDomainError):
    """Raised when more is asked of storage than is available"""
    pass


class InsufficientHolding(InventoryDomainError):
    """Raised when a user does not hold what they are giving up"""
    pass


class WrongSelectionCount(InventoryDomainError):
    """Raised when the number of chosen units differs from the requested quantity"""

    def __init__(self, expected, selected):
        self.expected = expected
        self.selected = selected
        super().__init__(f"Select exactly {expected} unit(s); {selected} selected")


class UnitNotAvailable(InventoryDomainError):
    """Raised when a chosen unit is not in storage"""

    def __init__(self, unit_codes):
        self.unit_codes = list(unit_codes)
        super().__init__(f"Unit(s) not available: {', '.join(self.unit_codes)}")


class DuplicateUnitCode(InventoryDomainError):
    """Raised when a generated unit code already exists"""

    def __init__(self, codes):
        self.codes = list(codes)
        super().__init__(f"Unit code(s) already exist: {', '.join(self.codes)}")


class Unauthorized(InventoryDomainError):
    """Raised when the acting user's role does not allow the action"""
    pass


class NotFound(InventoryDomainError):
    """Raised when a referenced record does not exist"""
    pass


class ConcurrentUpdate(InventoryDomainError):
    """Raised when another transaction changed the same rows first; the caller may retry"""
    pass


class LedgerConsistencyError(InventoryDomainError):
    """Raised when a change would break stock conservation. Internal fault, always rolled back."""
    pass
