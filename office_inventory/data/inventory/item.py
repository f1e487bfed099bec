from office_inventory import db
from office_inventory.data.core.user_created_base import UserCreatedBase


class Item(UserCreatedBase):
    """
    A catalog entry.

    ``tracking`` is the explicit stock variant. Bulk items keep their counts in
    ``total``/``available``; serialized items leave both at zero and derive
    their counts from the status of their units.
    """
    __tablename__ = 'items'

    TRACKING_BULK = 'bulk'
    TRACKING_SERIALIZED = 'serialized'

    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(100), nullable=False, default='General')
    tracking = db.Column(db.String(20), nullable=False, default=TRACKING_BULK)
    total = db.Column(db.Integer, nullable=False, default=0)
    available = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(30), nullable=False, default='pcs')
    version_id = db.Column(db.Integer, nullable=False)

    __table_args__ = (
        db.CheckConstraint('available >= 0', name='ck_items_available_non_negative'),
        db.CheckConstraint('available <= total', name='ck_items_available_within_total'),
    )
    __mapper_args__ = {'version_id_col': version_id}

    @property
    def is_serialized(self):
        return self.tracking == self.TRACKING_SERIALIZED

    def __repr__(self):
        return f'<Item {self.name} ({self.tracking})>'
