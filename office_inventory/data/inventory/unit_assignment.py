from office_inventory import db
from datetime import datetime
from sqlalchemy import text
from office_inventory.data.core.user_created_base import UserCreatedBase


class UnitAssignment(UserCreatedBase):
    """A unit in a user's hands. At most one active row per unit, enforced by a partial unique index."""
    __tablename__ = 'unit_assignments'

    STATUS_ACTIVE = 'active'
    STATUS_RETURNED = 'returned'

    unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=STATUS_ACTIVE)
    assigned_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    returned_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.Index(
            'uix_unit_assignments_one_active',
            'unit_id',
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    unit = db.relationship('Unit', foreign_keys=[unit_id])
    user = db.relationship('User', foreign_keys=[user_id])

    @property
    def is_active(self):
        return self.status == self.STATUS_ACTIVE

    def __repr__(self):
        return f'<UnitAssignment unit={self.unit_id} user={self.user_id} {self.status}>'
