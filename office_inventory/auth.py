from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from office_inventory import limiter, login_manager
from office_inventory.buisness.core.errors import NotFound
from office_inventory.buisness.core.user_context import UserContext
from office_inventory.logger import get_logger
from office_inventory.services.inventory.inventory_service import InventoryService
from office_inventory.utils.logging_sanitizer import sanitize_dict

logger = get_logger("office_inventory.auth")
auth = Blueprint('auth', __name__)


def _pin_login_limit():
    return current_app.config.get('PIN_LOGIN_RATE_LIMIT', '10 per minute')


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify(error='Unauthenticated', message='Select your name and enter your PIN'), 401


@auth.route('/users', methods=['GET'])
def selectable_users():
    """People shown on the PIN selection screen"""
    users = InventoryService.list_users()
    return jsonify([
        {'id': u['id'], 'name': u['name'], 'role': u['role'], 'avatar': u['avatar'], 'color': u['color']}
        for u in users
    ])


@auth.route('/pin-login', methods=['POST'])
@limiter.limit(_pin_login_limit)
def pin_login():
    payload = request.get_json(silent=True) or request.form.to_dict()
    logger.debug(f"PIN login attempt: {sanitize_dict(payload)}")

    user_id = payload.get('user_id')
    pin = payload.get('pin')
    if user_id is None or not pin:
        return jsonify(error='ValidationError', message='Select a user and enter the PIN'), 400

    try:
        ctx = UserContext(user_id)
    except NotFound:
        logger.warning(f"PIN login for unknown user id {user_id}")
        return jsonify(error='InvalidPin', message='Wrong PIN'), 401

    if not ctx.verify_pin(str(pin)):
        logger.warning(f"Failed PIN login for user {ctx.user_id}")
        return jsonify(error='InvalidPin', message='Wrong PIN'), 401

    login_user(ctx.user)
    logger.info(f"Successful PIN login for user: {ctx.user.name}")
    return jsonify(ctx.user.to_dict())


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    name = current_user.name
    logout_user()
    logger.info(f"User logged out: {name}")
    return jsonify(status='logged out')


@auth.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify(current_user.to_dict())
