from office_inventory import db
from datetime import datetime
from office_inventory.buisness.core.data_insertion_mixin import DataInsertionMixin


class AuditLogEntry(db.Model, DataInsertionMixin):
    """
    Append-only record of a completed inventory action.

    Rows are written inside the same transaction as the change they describe
    and are never updated or consulted by the workflows.
    """
    __tablename__ = 'audit_log_entries'

    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(50), nullable=False, index=True)
    actor = db.Column(db.String(120), nullable=False)
    actor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    detail = db.Column(db.Text, nullable=False, default='')
    date = db.Column(db.Date, nullable=False, default=lambda: datetime.utcnow().date())
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f'<AuditLogEntry {self.action} by {self.actor}>'
