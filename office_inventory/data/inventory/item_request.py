from office_inventory import db
from datetime import datetime
from office_inventory.data.core.user_created_base import UserCreatedBase


class ItemRequest(UserCreatedBase):
    """A user's ask for stock. Moves nothing until approved."""
    __tablename__ = 'item_requests'

    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey('items.id', ondelete='SET NULL'), nullable=True, index=True)
    item_name = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING, index=True)
    note = db.Column(db.Text, nullable=True)
    date = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    decided_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    decided_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship('User', foreign_keys=[user_id])
    item = db.relationship('Item', foreign_keys=[item_id])
    decided_by = db.relationship('User', foreign_keys=[decided_by_id])

    def __repr__(self):
        return f'<ItemRequest {self.id} {self.item_name} x{self.quantity} {self.status}>'
