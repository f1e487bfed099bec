from office_inventory import db, login_manager
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from datetime import datetime
from office_inventory.buisness.core.data_insertion_mixin import DataInsertionMixin


class User(UserMixin, DataInsertionMixin, db.Model):
    __tablename__ = 'users'

    ROLE_ADMIN = 'admin'
    ROLE_ASSISTANT = 'inventory_assistant'
    ROLE_STAFF = 'staff'
    ROLES = (ROLE_ADMIN, ROLE_ASSISTANT, ROLE_STAFF)

    _private_columns = ('pin_hash',)

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(32), nullable=False, default=ROLE_STAFF)
    pin_hash = db.Column(db.String(255), nullable=False)
    avatar = db.Column(db.String(2), nullable=True)
    color = db.Column(db.String(7), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def set_pin(self, pin):
        self.pin_hash = generate_password_hash(pin)

    def check_pin(self, pin):
        return check_password_hash(self.pin_hash, pin)

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_inventory_staff(self):
        """Admins and inventory assistants run the stock room."""
        return self.role in (self.ROLE_ADMIN, self.ROLE_ASSISTANT)

    def __repr__(self):
        return f'<User {self.name} ({self.role})>'


@login_manager.user_loader
def load_user(user_id):
    user = db.session.get(User, int(user_id))
    if user is None or not user.is_active:
        return None
    return user
