"""
Tests for damage and loss reports and their resolution
"""

import pytest

from office_inventory.buisness.core.errors import (
    InsufficientHolding,
    InsufficientStock,
    InvalidTransition,
    Unauthorized,
    UnitNotAvailable,
    ValidationError,
)
from office_inventory.buisness.inventory.catalog_manager import CatalogManager
from office_inventory.buisness.inventory.holdings_ledger import HoldingsLedger
from office_inventory.buisness.inventory.incident_workflow import IncidentWorkflow
from office_inventory.buisness.inventory.item_context import ItemContext
from office_inventory.buisness.inventory.reconciliation import InventoryReconciler
from office_inventory.buisness.inventory.request_workflow import RequestWorkflow
from office_inventory.data.inventory.incident import Incident
from office_inventory.data.inventory.unit import Unit
from office_inventory.data.inventory.unit_assignment import UnitAssignment


@pytest.fixture
def monitors(users):
    """Ten monitors, six of them with Alice"""
    item = CatalogManager().add_item(users.admin, name='Monitor', total=10)
    workflow = RequestWorkflow()
    request = workflow.submit(users.alice, item_id=item.id, quantity=6)
    workflow.approve(users.admin, request_id=request.id)
    return item


@pytest.fixture
def laptops(users):
    return CatalogManager().add_item(users.admin, name='Laptop', tracked=True, total=3, code_prefix='LAP')


def test_damage_from_holder_then_repair(users, monitors):
    """Damaged stock comes out of the holder's hands and returns to storage once repaired"""
    ledger = HoldingsLedger()
    workflow = IncidentWorkflow()

    incident = workflow.report(
        users.assistant, item_id=monitors.id, type=Incident.TYPE_DAMAGED, quantity=2, held_by_user_id=users.alice.id
    )

    assert incident.status == Incident.STATUS_OPEN
    assert incident.held_by_user_id == users.alice.id
    assert incident.reported_by == users.assistant.name
    assert ledger.held_quantity(users.alice.id, monitors.id) == 4
    assert monitors.total == 8
    assert monitors.available == 4
    assert InventoryReconciler().fleet_size(monitors.id) == 10

    workflow.resolve(users.assistant, incident_id=incident.id, resolution=Incident.RESOLUTION_REPAIRED)

    assert incident.status == Incident.STATUS_RESOLVED
    assert incident.resolved_date is not None
    assert monitors.total == 10
    assert monitors.available == 6
    assert ledger.held_quantity(users.alice.id, monitors.id) == 4


def test_loss_from_storage_written_off(users, monitors):
    workflow = IncidentWorkflow()
    incident = workflow.report(users.admin, item_id=monitors.id, type=Incident.TYPE_LOST, quantity=3)

    assert incident.held_by_user_id is None
    assert monitors.total == 7
    assert monitors.available == 1

    workflow.resolve(users.admin, incident_id=incident.id, resolution=Incident.RESOLUTION_WRITTEN_OFF)

    assert monitors.total == 7
    assert monitors.available == 1
    assert InventoryReconciler().fleet_size(monitors.id) == 7


def test_report_more_than_held(users, monitors):
    with pytest.raises(InsufficientHolding):
        IncidentWorkflow().report(
            users.admin, item_id=monitors.id, type=Incident.TYPE_DAMAGED, quantity=7, held_by_user_id=users.alice.id
        )
    assert monitors.total == 10
    assert Incident.query.count() == 0


def test_report_more_than_in_storage(users, monitors):
    with pytest.raises(InsufficientStock):
        IncidentWorkflow().report(users.admin, item_id=monitors.id, type=Incident.TYPE_LOST, quantity=5)


def test_staff_report_only_their_own_stock(users, monitors):
    workflow = IncidentWorkflow()
    with pytest.raises(Unauthorized):
        workflow.report(users.bob, item_id=monitors.id, type=Incident.TYPE_LOST, held_by_user_id=users.alice.id)

    incident = workflow.report(
        users.alice, item_id=monitors.id, type=Incident.TYPE_LOST, quantity=1, held_by_user_id=users.alice.id
    )
    assert incident.reported_by_id == users.alice.id

    with pytest.raises(Unauthorized):
        workflow.resolve(users.alice, incident_id=incident.id, resolution=Incident.RESOLUTION_REPLACED)


def test_unknown_type_and_resolution(users, monitors):
    workflow = IncidentWorkflow()
    with pytest.raises(ValidationError):
        workflow.report(users.admin, item_id=monitors.id, type='stolen')

    incident = workflow.report(users.admin, item_id=monitors.id, type=Incident.TYPE_DAMAGED)
    with pytest.raises(ValidationError):
        workflow.resolve(users.admin, incident_id=incident.id, resolution='ignored')


def test_resolved_incident_is_terminal(users, monitors):
    workflow = IncidentWorkflow()
    incident = workflow.report(users.admin, item_id=monitors.id, type=Incident.TYPE_DAMAGED)
    workflow.resolve(users.admin, incident_id=incident.id, resolution=Incident.RESOLUTION_REPAIRED)

    with pytest.raises(InvalidTransition):
        workflow.resolve(users.admin, incident_id=incident.id, resolution=Incident.RESOLUTION_REPAIRED)
    assert monitors.total == 10, "A second resolution must not restore stock again"


def test_damaged_assigned_unit_then_repaired(users, laptops):
    units = ItemContext(laptops).units()
    requests = RequestWorkflow()
    request = requests.submit(users.alice, item_id=laptops.id, quantity=1)
    requests.assign_units(users.admin, request_id=request.id, unit_ids=[units[0].id])

    workflow = IncidentWorkflow()
    incident = workflow.report(users.alice, item_id=laptops.id, type=Incident.TYPE_DAMAGED, unit_id=units[0].id)

    assert incident.held_by_user_id == users.alice.id
    assert incident.quantity == 1
    assert units[0].status == Unit.STATUS_DAMAGED
    assert HoldingsLedger().active_assignment(units[0].id) is None
    assert UnitAssignment.query.filter_by(unit_id=units[0].id).one().status == UnitAssignment.STATUS_RETURNED
    assert ItemContext(laptops).stock.total == 2

    workflow.resolve(users.admin, incident_id=incident.id, resolution=Incident.RESOLUTION_REPAIRED)

    assert units[0].status == Unit.STATUS_AVAILABLE
    assert ItemContext(laptops).stock.total == 3
    assert ItemContext(laptops).stock.available == 3


def test_lost_unit_written_off_is_retired(users, laptops):
    unit = ItemContext(laptops).units()[1]
    workflow = IncidentWorkflow()
    incident = workflow.report(users.assistant, item_id=laptops.id, type=Incident.TYPE_LOST, unit_id=unit.id)
    assert unit.status == Unit.STATUS_LOST

    with pytest.raises(UnitNotAvailable):
        workflow.report(users.assistant, item_id=laptops.id, type=Incident.TYPE_DAMAGED, unit_id=unit.id)

    workflow.resolve(users.assistant, incident_id=incident.id, resolution=Incident.RESOLUTION_WRITTEN_OFF)

    assert unit.status == Unit.STATUS_RETIRED
    assert ItemContext(laptops).stock.total == 2
    assert InventoryReconciler().check_item(laptops.id) == []


def test_tracked_report_needs_one_unit(users, laptops):
    unit = ItemContext(laptops).units()[0]
    workflow = IncidentWorkflow()
    with pytest.raises(ValidationError):
        workflow.report(users.admin, item_id=laptops.id, type=Incident.TYPE_DAMAGED)
    with pytest.raises(ValidationError):
        workflow.report(users.admin, item_id=laptops.id, type=Incident.TYPE_DAMAGED, unit_id=unit.id, quantity=2)


def test_unit_holder_must_match(users, laptops):
    unit = ItemContext(laptops).units()[0]
    with pytest.raises(InsufficientHolding):
        IncidentWorkflow().report(
            users.admin, item_id=laptops.id, type=Incident.TYPE_LOST, unit_id=unit.id, held_by_user_id=users.bob.id
        )
    assert unit.status == Unit.STATUS_AVAILABLE


@pytest.mark.parametrize('holder', ['', 0, '0'])
def test_blank_or_zero_holder_means_storage(users, monitors, holder):
    """Form values for "in storage" take the stock from available"""
    incident = IncidentWorkflow().report(
        users.alice, item_id=monitors.id, type=Incident.TYPE_DAMAGED, quantity=1, held_by_user_id=holder
    )

    assert incident.held_by_user_id is None
    assert monitors.available == 3
    assert HoldingsLedger().held_quantity(users.alice.id, monitors.id) == 6


def test_malformed_holder_is_rejected(users, monitors):
    with pytest.raises(ValidationError):
        IncidentWorkflow().report(
            users.alice, item_id=monitors.id, type=Incident.TYPE_LOST, held_by_user_id='not-a-user'
        )
    assert Incident.query.count() == 0


def test_holder_given_as_text(users, monitors):
    incident = IncidentWorkflow().report(
        users.alice, item_id=monitors.id, type=Incident.TYPE_LOST, quantity='2', held_by_user_id=str(users.alice.id)
    )
    assert incident.held_by_user_id == users.alice.id
    assert HoldingsLedger().held_quantity(users.alice.id, monitors.id) == 4
