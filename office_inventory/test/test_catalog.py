"""
Tests for catalog management: items and generated units
"""

import pytest

from office_inventory import db
from office_inventory.buisness.core.errors import (
    ConcurrentUpdate,
    DuplicateUnitCode,
    ItemInUse,
    NotFound,
    Unauthorized,
    ValidationError,
)
from office_inventory.buisness.inventory.catalog_manager import CatalogManager, format_unit_code
from office_inventory.buisness.inventory.holdings_ledger import HoldingsLedger
from office_inventory.buisness.inventory.incident_workflow import IncidentWorkflow
from office_inventory.buisness.inventory.item_context import ItemContext
from office_inventory.buisness.inventory.request_workflow import RequestWorkflow
from office_inventory.buisness.inventory.workflow_step import workflow_step
from office_inventory.data.core.audit_log_entry import AuditLogEntry
from office_inventory.data.inventory.holding import Holding
from office_inventory.data.inventory.item import Item
from office_inventory.data.inventory.item_request import ItemRequest
from office_inventory.data.inventory.unit import Unit


def test_format_unit_code():
    assert format_unit_code('LAP', 1) == 'LAP-001'
    assert format_unit_code('LAP', 42, pad=4) == 'LAP-0042'
    assert format_unit_code('KB', 1234) == 'KB-1234'


def test_add_bulk_item(users):
    item = CatalogManager().add_item(users.assistant, name='  Whiteboard Marker ', total=50, unit='boxes')

    assert item.name == 'Whiteboard Marker'
    assert item.category == 'General'
    assert item.tracking == Item.TRACKING_BULK
    assert item.total == 50
    assert item.available == 50
    assert item.unit == 'boxes'
    assert item.created_by_id == users.assistant.id


def test_add_tracked_item_with_units(users):
    item = CatalogManager().add_item(users.admin, name='Laptop', tracked=True, total=3, code_prefix='LAP')

    assert item.is_serialized
    assert item.total == 0 and item.available == 0, "Tracked counts live on the units"
    stock = ItemContext(item).stock
    assert stock.total == 3
    assert stock.available == 3
    assert [u.code for u in ItemContext(item).units()] == ['LAP-001', 'LAP-002', 'LAP-003']


def test_add_item_validation(users):
    manager = CatalogManager()
    with pytest.raises(ValidationError):
        manager.add_item(users.admin, name='   ', total=1)
    with pytest.raises(ValidationError):
        manager.add_item(users.admin, name='Desk', total=-1)
    assert Item.query.count() == 0


def test_tracked_item_without_prefix_starts_empty(users):
    item = CatalogManager().add_item(users.admin, name='Laptop', tracked=True, total=2)

    assert item.is_serialized
    assert item.total == 0
    assert ItemContext(item).stock.total == 0
    assert Unit.query.count() == 0


def test_staff_cannot_change_catalog(users):
    with pytest.raises(Unauthorized):
        CatalogManager().add_item(users.alice, name='Desk', total=1)


def test_edit_preserves_checked_out(users):
    manager = CatalogManager()
    item = manager.add_item(users.admin, name='Desk Lamp', total=10)
    workflow = RequestWorkflow()
    request = workflow.submit(users.alice, item_id=item.id, quantity=4)
    workflow.approve(users.admin, request_id=request.id)

    manager.edit_item(users.admin, item_id=item.id, total=15, category='Lighting')

    assert item.total == 15
    assert item.available == 11
    assert item.category == 'Lighting'

    manager.edit_item(users.admin, item_id=item.id, total=4)
    assert item.total == 4
    assert item.available == 0


def test_edit_below_checked_out(users):
    manager = CatalogManager()
    item = manager.add_item(users.admin, name='Desk Lamp', total=10)
    workflow = RequestWorkflow()
    request = workflow.submit(users.alice, item_id=item.id, quantity=4)
    workflow.approve(users.admin, request_id=request.id)

    with pytest.raises(ValidationError):
        manager.edit_item(users.admin, item_id=item.id, total=3)
    assert item.total == 10
    assert item.available == 6


def test_edit_missing_item(users):
    with pytest.raises(NotFound):
        CatalogManager().edit_item(users.admin, item_id=999, name='Ghost')


def test_delete_unused_item(users):
    manager = CatalogManager()
    item = manager.add_item(users.admin, name='Fax Machine', total=2)
    item_id = item.id

    manager.delete_item(users.admin, item_id=item_id)

    assert db.session.get(Item, item_id) is None
    assert AuditLogEntry.query.filter_by(action='Deleted Item').count() == 1


def test_delete_item_in_use_is_refused(users):
    manager = CatalogManager()
    item = manager.add_item(users.admin, name='Projector', total=3)
    workflow = RequestWorkflow()
    request = workflow.submit(users.alice, item_id=item.id, quantity=1)
    workflow.approve(users.admin, request_id=request.id)

    with pytest.raises(ItemInUse):
        manager.delete_item(users.admin, item_id=item.id)
    assert db.session.get(Item, item.id) is not None
    assert HoldingsLedger().held_quantity(users.alice.id, item.id) == 1


def test_force_delete_cascades(users):
    """Forcing a delete closes everything that pointed at the item and keeps history"""
    manager = CatalogManager()
    item = manager.add_item(users.admin, name='Projector', total=5)
    item_id = item.id
    workflow = RequestWorkflow()
    approved = workflow.submit(users.alice, item_id=item_id, quantity=2)
    workflow.approve(users.admin, request_id=approved.id)
    pending = workflow.submit(users.bob, item_id=item_id, quantity=1)
    incident = IncidentWorkflow().report(users.admin, item_id=item_id, type='damaged', quantity=1)

    manager.delete_item(users.admin, item_id=item_id, force=True)

    assert db.session.get(Item, item_id) is None
    assert Holding.query.count() == 0
    assert pending.status == ItemRequest.STATUS_REJECTED
    assert pending.item_id is None
    assert pending.item_name == 'Projector'
    assert approved.status == ItemRequest.STATUS_APPROVED
    assert incident.status == 'resolved'
    assert incident.resolution == 'written off'


def test_generate_units_continues_numbering(users):
    manager = CatalogManager()
    item = manager.add_item(users.admin, name='Keyboard', tracked=True, total=2, code_prefix='KB')

    units = manager.generate_units(users.admin, item_id=item.id, code_prefix='KB', count=2)

    assert [u.code for u in units] == ['KB-003', 'KB-004']
    assert ItemContext(item).stock.total == 4


def test_generate_units_duplicate_codes(users):
    manager = CatalogManager()
    item = manager.add_item(users.admin, name='Keyboard', tracked=True, total=3, code_prefix='KB')

    with pytest.raises(DuplicateUnitCode) as excinfo:
        manager.generate_units(users.admin, item_id=item.id, code_prefix='KB', count=3, start_index=2)

    assert excinfo.value.codes == ['KB-002', 'KB-003']
    assert Unit.query.count() == 3


def test_generate_units_converts_untouched_bulk_item(users):
    manager = CatalogManager()
    item = manager.add_item(users.admin, name='Phone', total=4)

    manager.generate_units(users.admin, item_id=item.id, code_prefix='PH', count=4, pad=2)

    assert item.is_serialized
    assert item.total == 0
    assert [u.code for u in ItemContext(item).units()] == ['PH-01', 'PH-02', 'PH-03', 'PH-04']


def test_generate_units_refuses_bulk_item_with_stock_out(users):
    manager = CatalogManager()
    item = manager.add_item(users.admin, name='Phone', total=4)
    workflow = RequestWorkflow()
    request = workflow.submit(users.alice, item_id=item.id, quantity=1)
    workflow.approve(users.admin, request_id=request.id)

    with pytest.raises(ValidationError):
        manager.generate_units(users.admin, item_id=item.id, code_prefix='PH', count=4)
    assert not item.is_serialized
    assert Unit.query.count() == 0


def test_unit_code_taken_at_commit_is_a_concurrent_update(users):
    """A code that slips past the duplicate check is caught by the unique index"""
    item = CatalogManager().add_item(users.admin, name='Keyboard', tracked=True, total=1, code_prefix='KB')

    with pytest.raises(ConcurrentUpdate):
        with workflow_step(users.admin, 'generate_units'):
            db.session.add(Unit(
                item_id=item.id,
                code='KB-001',
                status=Unit.STATUS_AVAILABLE,
                created_by_id=users.admin.id,
                updated_by_id=users.admin.id,
            ))

    assert [u.code for u in Unit.query.all()] == ['KB-001']
