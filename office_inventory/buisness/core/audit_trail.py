"""
Audit Trail
Append-only log of completed actions, shown newest first.
"""

from typing import List, Optional
from office_inventory import db
from office_inventory.data.core.audit_log_entry import AuditLogEntry
from office_inventory.data.core.user_info.user import User


class AuditTrail:
    """Writes and lists AuditLogEntry rows. Nothing in the workflows reads it back."""

    # Action tags
    REQUEST = 'Request'
    APPROVED = 'Approved'
    REJECTED = 'Rejected'
    TRANSFER_SENT = 'Transfer Sent'
    TRANSFER_ACCEPTED = 'Transfer Accepted'
    TRANSFER_DECLINED = 'Transfer Declined'
    RETURN = 'Return'
    UNIT_RETURNED = 'Unit Returned'
    ADDED_ITEM = 'Added Item'
    EDITED_ITEM = 'Edited Item'
    DELETED_ITEM = 'Deleted Item'
    UNITS_GENERATED = 'Units Generated'
    DAMAGED = 'Damaged'
    LOST = 'Lost'
    INCIDENT_RESOLVED = 'Incident Resolved'
    USER_ADDED = 'User Added'
    USER_REMOVED = 'User Removed'
    PIN_CHANGED = 'PIN Changed'

    @staticmethod
    def record(action: str, actor: Optional[User], detail: str) -> AuditLogEntry:
        """Add an entry to the current session; it commits with the change it describes."""
        entry = AuditLogEntry(
            action=action,
            actor=actor.name if actor is not None else 'System',
            actor_id=actor.id if actor is not None else None,
            detail=detail,
        )
        db.session.add(entry)
        return entry

    @staticmethod
    def recent(limit: int = 200) -> List[AuditLogEntry]:
        return (
            AuditLogEntry.query
            .order_by(AuditLogEntry.created_at.desc(), AuditLogEntry.id.desc())
            .limit(limit)
            .all()
        )
