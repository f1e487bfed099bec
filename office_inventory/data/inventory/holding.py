from office_inventory import db
from datetime import datetime
from office_inventory.data.core.user_created_base import UserCreatedBase


class Holding(UserCreatedBase):
    """Quantity of a bulk item currently held by one user. Never zero: emptied rows are deleted."""
    __tablename__ = 'holdings'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey('items.id'), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    assigned_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    version_id = db.Column(db.Integer, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('user_id', 'item_id', name='uq_holdings_user_item'),
        db.CheckConstraint('quantity > 0', name='ck_holdings_quantity_positive'),
    )
    __mapper_args__ = {'version_id_col': version_id}

    user = db.relationship('User', foreign_keys=[user_id])
    item = db.relationship('Item', foreign_keys=[item_id])

    def __repr__(self):
        return f'<Holding user={self.user_id} item={self.item_id} qty={self.quantity}>'
