from office_inventory import db
from datetime import datetime
from office_inventory.data.core.user_created_base import UserCreatedBase


class Transfer(UserCreatedBase):
    """A proposed peer-to-peer hand-off. ``unit_id`` is set for serialized items only."""
    __tablename__ = 'transfers'

    STATUS_PENDING = 'pending'
    STATUS_ACCEPTED = 'accepted'
    STATUS_DECLINED = 'declined'

    from_user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    to_user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey('items.id', ondelete='SET NULL'), nullable=True, index=True)
    item_name = db.Column(db.String(200), nullable=False)
    unit_id = db.Column(db.Integer, db.ForeignKey('units.id', ondelete='SET NULL'), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING, index=True)
    note = db.Column(db.Text, nullable=True)
    date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    decided_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    decided_at = db.Column(db.DateTime, nullable=True)

    from_user = db.relationship('User', foreign_keys=[from_user_id])
    to_user = db.relationship('User', foreign_keys=[to_user_id])
    item = db.relationship('Item', foreign_keys=[item_id])
    unit = db.relationship('Unit', foreign_keys=[unit_id])

    def __repr__(self):
        return f'<Transfer {self.id} {self.from_user_id}->{self.to_user_id} {self.status}>'
