"""
JSON API for the inventory engine.

Each mutating endpoint is a thin wrapper over one workflow operation, acting as
the logged-in user. Domain errors become 4xx responses.
"""

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from office_inventory.buisness.core.authorization import INVENTORY_ROLES, assert_role, assert_self_or_role
from office_inventory.buisness.core.errors import (
    ConcurrentUpdate,
    DuplicateUnitCode,
    InsufficientHolding,
    InsufficientStock,
    InventoryDomainError,
    LedgerConsistencyError,
    NotFound,
    Unauthorized,
    UnitNotAvailable,
    ValidationError,
    WrongSelectionCount,
)
from office_inventory.buisness.core.user_context import UserContext
from office_inventory.buisness.inventory.catalog_manager import CatalogManager
from office_inventory.buisness.inventory.incident_workflow import IncidentWorkflow
from office_inventory.buisness.inventory.reconciliation import InventoryReconciler
from office_inventory.buisness.inventory.request_workflow import RequestWorkflow
from office_inventory.buisness.inventory.return_workflow import ReturnWorkflow
from office_inventory.buisness.inventory.transfer_workflow import TransferWorkflow
from office_inventory.logger import get_logger
from office_inventory.services.inventory.inventory_service import InventoryService
from office_inventory.utils.logging_sanitizer import sanitize_dict

logger = get_logger("office_inventory.routes.api")

api = Blueprint('api', __name__)

ERROR_STATUS = [
    (NotFound, 404),
    (Unauthorized, 403),
    (ValidationError, 400),
    (WrongSelectionCount, 400),
    (InsufficientStock, 409),
    (InsufficientHolding, 409),
    (UnitNotAvailable, 409),
    (DuplicateUnitCode, 409),
    (ConcurrentUpdate, 409),
    (LedgerConsistencyError, 500),
]


def status_for(error):
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 400


@api.errorhandler(InventoryDomainError)
def handle_domain_error(error):
    status = status_for(error)
    body = {'error': type(error).__name__, 'message': str(error)}
    for attr in ('codes', 'unit_codes', 'expected', 'selected'):
        if hasattr(error, attr):
            body[attr] = getattr(error, attr)
    if status >= 500:
        logger.error(f"{request.method} {request.path} failed: {error}")
    return jsonify(body), status


def _payload():
    payload = request.get_json(silent=True) or {}
    logger.debug(f"{request.method} {request.path} payload: {sanitize_dict(payload)}")
    return payload


def _actor():
    return current_user._get_current_object()


def _flag(value):
    return str(value).lower() in ('1', 'true', 'yes', 'on')


# Catalog

@api.route('/items', methods=['GET'])
@login_required
def list_items():
    return jsonify(InventoryService.list_items(
        category=request.args.get('category') or None,
        search=request.args.get('search') or None,
    ))


@api.route('/items', methods=['POST'])
@login_required
def add_item():
    data = _payload()
    item = CatalogManager().add_item(
        _actor(),
        name=data.get('name'),
        category=data.get('category'),
        total=data.get('total', 0),
        unit=data.get('unit'),
        tracked=_flag(data.get('tracked', False)),
        code_prefix=data.get('code_prefix'),
    )
    return jsonify(InventoryService.item_summary(item)), 201


@api.route('/items/<int:item_id>', methods=['PATCH'])
@login_required
def edit_item(item_id):
    data = _payload()
    item = CatalogManager().edit_item(
        _actor(),
        item_id=item_id,
        name=data.get('name'),
        category=data.get('category'),
        total=data.get('total'),
        unit=data.get('unit'),
    )
    return jsonify(InventoryService.item_summary(item))


@api.route('/items/<int:item_id>', methods=['DELETE'])
@login_required
def delete_item(item_id):
    CatalogManager().delete_item(_actor(), item_id=item_id, force=_flag(request.args.get('force', False)))
    return '', 204


@api.route('/items/<int:item_id>/units', methods=['GET'])
@login_required
def list_units(item_id):
    return jsonify(InventoryService.list_units(item_id, status=request.args.get('status') or None))


@api.route('/items/<int:item_id>/units', methods=['POST'])
@login_required
def generate_units(item_id):
    data = _payload()
    units = CatalogManager().generate_units(
        _actor(),
        item_id=item_id,
        code_prefix=data.get('code_prefix'),
        count=data.get('count'),
        start_index=data.get('start_index'),
        pad=data.get('pad', 3),
    )
    return jsonify([u.to_dict(include_audit_fields=False) for u in units]), 201


@api.route('/items/<int:item_id>/holders', methods=['GET'])
@login_required
def item_holders(item_id):
    return jsonify(InventoryService.item_holders(item_id))


# Requests

@api.route('/requests', methods=['GET'])
@login_required
def list_requests():
    actor = _actor()
    user_id = request.args.get('user_id', type=int)
    if not actor.is_inventory_staff:
        user_id = actor.id
    return jsonify(InventoryService.list_requests(status=request.args.get('status') or None, user_id=user_id))


@api.route('/requests', methods=['POST'])
@login_required
def submit_request():
    data = _payload()
    item_request = RequestWorkflow().submit(
        _actor(), item_id=data.get('item_id'), quantity=data.get('quantity'), note=data.get('note')
    )
    return jsonify(item_request.to_dict()), 201


@api.route('/requests/<int:request_id>/approve', methods=['POST'])
@login_required
def approve_request(request_id):
    item_request = RequestWorkflow().approve(_actor(), request_id=request_id)
    return jsonify(item_request.to_dict())


@api.route('/requests/<int:request_id>/assign-units', methods=['POST'])
@login_required
def assign_units(request_id):
    data = _payload()
    units = RequestWorkflow().assign_units(_actor(), request_id=request_id, unit_ids=data.get('unit_ids') or [])
    return jsonify([u.to_dict(include_audit_fields=False) for u in units])


@api.route('/requests/<int:request_id>/reject', methods=['POST'])
@login_required
def reject_request(request_id):
    data = _payload()
    item_request = RequestWorkflow().reject(_actor(), request_id=request_id, reason=data.get('reason'))
    return jsonify(item_request.to_dict())


# Transfers

@api.route('/transfers', methods=['GET'])
@login_required
def list_transfers():
    actor = _actor()
    user_id = None if actor.is_inventory_staff else actor.id
    return jsonify(InventoryService.list_transfers(status=request.args.get('status') or None, user_id=user_id))


@api.route('/transfers', methods=['POST'])
@login_required
def submit_transfer():
    data = _payload()
    transfer = TransferWorkflow().submit(
        _actor(),
        to_user_id=data.get('to_user_id'),
        item_id=data.get('item_id'),
        unit_id=data.get('unit_id'),
        quantity=data.get('quantity', 1),
        note=data.get('note'),
    )
    return jsonify(transfer.to_dict()), 201


@api.route('/transfers/<int:transfer_id>/accept', methods=['POST'])
@login_required
def accept_transfer(transfer_id):
    return jsonify(TransferWorkflow().accept(_actor(), transfer_id=transfer_id).to_dict())


@api.route('/transfers/<int:transfer_id>/decline', methods=['POST'])
@login_required
def decline_transfer(transfer_id):
    return jsonify(TransferWorkflow().decline(_actor(), transfer_id=transfer_id).to_dict())


# Holdings and returns

@api.route('/holdings', methods=['GET'])
@login_required
def my_holdings():
    return jsonify(InventoryService.list_holdings(_actor().id))


@api.route('/users/<int:user_id>/holdings', methods=['GET'])
@login_required
def user_holdings(user_id):
    assert_self_or_role(_actor(), user_id, INVENTORY_ROLES)
    return jsonify(InventoryService.list_holdings(user_id))


@api.route('/holdings/<int:holding_id>/return', methods=['POST'])
@login_required
def return_item(holding_id):
    data = _payload()
    remaining = ReturnWorkflow().return_item(_actor(), holding_id=holding_id, quantity=data.get('quantity'))
    return jsonify({'remaining': remaining.quantity if remaining is not None else 0})


@api.route('/assignments/<int:assignment_id>/return', methods=['POST'])
@login_required
def return_unit(assignment_id):
    assignment = ReturnWorkflow().return_unit(_actor(), assignment_id=assignment_id)
    return jsonify(assignment.to_dict())


# Incidents

@api.route('/incidents', methods=['GET'])
@login_required
def list_incidents():
    return jsonify(InventoryService.list_incidents(status=request.args.get('status') or None))


@api.route('/incidents', methods=['POST'])
@login_required
def report_incident():
    data = _payload()
    incident = IncidentWorkflow().report(
        _actor(),
        item_id=data.get('item_id'),
        type=data.get('type'),
        quantity=data.get('quantity', 1),
        held_by_user_id=data.get('held_by_user_id'),
        unit_id=data.get('unit_id'),
        note=data.get('note'),
        reported_by=data.get('reported_by'),
    )
    return jsonify(incident.to_dict()), 201


@api.route('/incidents/<int:incident_id>/resolve', methods=['POST'])
@login_required
def resolve_incident(incident_id):
    data = _payload()
    incident = IncidentWorkflow().resolve(_actor(), incident_id=incident_id, resolution=data.get('resolution'))
    return jsonify(incident.to_dict())


# Users

@api.route('/users', methods=['GET'])
@login_required
def list_users():
    return jsonify(InventoryService.list_users(include_inactive=_flag(request.args.get('include_inactive', False))))


@api.route('/users/recipients', methods=['GET'])
@login_required
def transfer_recipients():
    return jsonify(InventoryService.transfer_recipients(_actor().id))


@api.route('/users', methods=['POST'])
@login_required
def add_user():
    data = _payload()
    ctx = UserContext.create(_actor(), name=data.get('name'), pin=data.get('pin'), role=data.get('role'))
    return jsonify(ctx.user.to_dict()), 201


@api.route('/users/<int:user_id>/pin', methods=['POST'])
@login_required
def change_pin(user_id):
    data = _payload()
    UserContext(user_id).change_pin(_actor(), data.get('new_pin'))
    return jsonify(status='PIN changed')


@api.route('/users/<int:user_id>', methods=['DELETE'])
@login_required
def remove_user(user_id):
    UserContext(user_id).remove(_actor())
    return '', 204


# Overview

@api.route('/dashboard', methods=['GET'])
@login_required
def dashboard():
    return jsonify(InventoryService.dashboard_stats(_actor()))


@api.route('/audit-log', methods=['GET'])
@login_required
def audit_log():
    limit = request.args.get('limit', current_app.config.get('AUDIT_LOG_LIMIT', 200), type=int)
    return jsonify(InventoryService.audit_log(limit))


@api.route('/reconciliation', methods=['GET'])
@login_required
def reconciliation():
    assert_role(_actor(), INVENTORY_ROLES)
    report = InventoryReconciler().check_all()
    return jsonify({'consistent': not report, 'violations': {str(k): v for k, v in report.items()}})
