from office_inventory import db
from datetime import datetime
from office_inventory.data.core.user_created_base import UserCreatedBase


class Incident(UserCreatedBase):
    """
    A damage or loss report.

    While open, its quantity sits outside the item's ``total``; resolving it as
    repaired or replaced puts the quantity back into stock.
    """
    __tablename__ = 'incidents'

    TYPE_DAMAGED = 'damaged'
    TYPE_LOST = 'lost'
    TYPES = (TYPE_DAMAGED, TYPE_LOST)

    STATUS_OPEN = 'open'
    STATUS_RESOLVED = 'resolved'

    RESOLUTION_REPAIRED = 'repaired'
    RESOLUTION_REPLACED = 'replaced'
    RESOLUTION_WRITTEN_OFF = 'written off'
    RESOLUTIONS = (RESOLUTION_REPAIRED, RESOLUTION_REPLACED, RESOLUTION_WRITTEN_OFF)
    RESTORING_RESOLUTIONS = (RESOLUTION_REPAIRED, RESOLUTION_REPLACED)

    item_id = db.Column(db.Integer, db.ForeignKey('items.id', ondelete='SET NULL'), nullable=True, index=True)
    item_name = db.Column(db.String(200), nullable=False)
    unit_id = db.Column(db.Integer, db.ForeignKey('units.id', ondelete='SET NULL'), nullable=True, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(20), nullable=False)
    reported_by = db.Column(db.String(120), nullable=False)
    reported_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    held_by_user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    note = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=STATUS_OPEN, index=True)
    resolution = db.Column(db.String(20), nullable=True)
    date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    resolved_date = db.Column(db.DateTime, nullable=True)

    item = db.relationship('Item', foreign_keys=[item_id])
    unit = db.relationship('Unit', foreign_keys=[unit_id])
    held_by = db.relationship('User', foreign_keys=[held_by_user_id])

    @property
    def is_open(self):
        return self.status == self.STATUS_OPEN

    def __repr__(self):
        return f'<Incident {self.id} {self.type} {self.item_name} x{self.quantity} {self.status}>'
