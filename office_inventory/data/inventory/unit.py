from office_inventory import db
from office_inventory.data.core.user_created_base import UserCreatedBase


class Unit(UserCreatedBase):
    """
    One physical, individually tracked piece of a serialized item.

    ``status`` is a cache of the ledger: it only changes in the same
    transaction as the assignment or incident row that explains it.
    """
    __tablename__ = 'units'

    STATUS_AVAILABLE = 'available'
    STATUS_ASSIGNED = 'assigned'
    STATUS_DAMAGED = 'damaged'
    STATUS_LOST = 'lost'
    STATUS_RETIRED = 'retired'
    STATUSES = (STATUS_AVAILABLE, STATUS_ASSIGNED, STATUS_DAMAGED, STATUS_LOST, STATUS_RETIRED)

    item_id = db.Column(db.Integer, db.ForeignKey('items.id'), nullable=False, index=True)
    code = db.Column(db.String(64), nullable=False, unique=True)
    status = db.Column(db.String(20), nullable=False, default=STATUS_AVAILABLE)
    version_id = db.Column(db.Integer, nullable=False)

    __mapper_args__ = {'version_id_col': version_id}

    item = db.relationship('Item', foreign_keys=[item_id])

    def __repr__(self):
        return f'<Unit {self.code} ({self.status})>'
