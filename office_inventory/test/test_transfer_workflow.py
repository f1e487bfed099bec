"""
Tests for transfers between users
"""

import pytest

from office_inventory.buisness.core.errors import (
    InsufficientHolding,
    InvalidTransition,
    Unauthorized,
    ValidationError,
)
from office_inventory.buisness.core.user_context import UserContext
from office_inventory.buisness.inventory.catalog_manager import CatalogManager
from office_inventory.buisness.inventory.holdings_ledger import HoldingsLedger
from office_inventory.buisness.inventory.item_context import ItemContext
from office_inventory.buisness.inventory.request_workflow import RequestWorkflow
from office_inventory.buisness.inventory.transfer_workflow import TransferWorkflow
from office_inventory.data.inventory.transfer import Transfer
from office_inventory.data.inventory.unit import Unit
from office_inventory.data.inventory.unit_assignment import UnitAssignment


def give(users, user, item, quantity):
    """Request and approve ``quantity`` of a bulk item for ``user``"""
    workflow = RequestWorkflow()
    request = workflow.submit(user, item_id=item.id, quantity=quantity)
    workflow.approve(users.admin, request_id=request.id)


@pytest.fixture
def staplers(users):
    item = CatalogManager().add_item(users.admin, name='Stapler', total=10)
    give(users, users.alice, item, 4)
    return item


@pytest.fixture
def laptop_unit(users):
    laptops = CatalogManager().add_item(users.admin, name='Laptop', tracked=True, total=2, code_prefix='LAP')
    unit = ItemContext(laptops).units()[0]
    workflow = RequestWorkflow()
    request = workflow.submit(users.alice, item_id=laptops.id, quantity=1)
    workflow.assign_units(users.admin, request_id=request.id, unit_ids=[unit.id])
    return unit


def test_decline_then_accept_unit(users, laptop_unit):
    """A declined transfer changes nothing; an accepted one moves the unit"""
    ledger = HoldingsLedger()
    workflow = TransferWorkflow()

    transfer = workflow.submit(users.alice, to_user_id=users.bob.id, unit_id=laptop_unit.id)
    assert transfer.status == Transfer.STATUS_PENDING
    assert transfer.quantity == 1

    workflow.decline(users.bob, transfer_id=transfer.id)
    assert transfer.status == Transfer.STATUS_DECLINED
    assert ledger.active_assignment(laptop_unit.id).user_id == users.alice.id
    assert laptop_unit.status == Unit.STATUS_ASSIGNED

    old_assignment = ledger.active_assignment(laptop_unit.id)
    transfer = workflow.submit(users.alice, to_user_id=users.bob.id, unit_id=laptop_unit.id)
    workflow.accept(users.bob, transfer_id=transfer.id)

    assert transfer.status == Transfer.STATUS_ACCEPTED
    assert old_assignment.status == UnitAssignment.STATUS_RETURNED
    assert old_assignment.returned_at is not None
    new_assignment = ledger.active_assignment(laptop_unit.id)
    assert new_assignment.user_id == users.bob.id
    assert laptop_unit.status == Unit.STATUS_ASSIGNED
    assert UnitAssignment.query.filter_by(unit_id=laptop_unit.id, status=UnitAssignment.STATUS_ACTIVE).count() == 1


def test_bulk_transfer(users, staplers):
    ledger = HoldingsLedger()
    workflow = TransferWorkflow()

    transfer = workflow.submit(users.alice, to_user_id=users.bob.id, item_id=staplers.id, quantity=3)
    assert ledger.held_quantity(users.alice.id, staplers.id) == 4, "Nothing moves before acceptance"

    workflow.accept(users.bob, transfer_id=transfer.id)

    assert ledger.held_quantity(users.alice.id, staplers.id) == 1
    assert ledger.held_quantity(users.bob.id, staplers.id) == 3
    assert staplers.available == 6
    assert staplers.total == 10


def test_transfer_whole_holding_removes_it(users, staplers):
    ledger = HoldingsLedger()
    workflow = TransferWorkflow()
    transfer = workflow.submit(users.alice, to_user_id=users.bob.id, item_id=staplers.id, quantity=4)
    workflow.accept(users.bob, transfer_id=transfer.id)

    assert ledger.get_holding(users.alice.id, staplers.id) is None
    assert ledger.held_quantity(users.bob.id, staplers.id) == 4


def test_transfer_more_than_held(users, staplers):
    with pytest.raises(InsufficientHolding):
        TransferWorkflow().submit(users.alice, to_user_id=users.bob.id, item_id=staplers.id, quantity=5)
    with pytest.raises(InsufficientHolding):
        TransferWorkflow().submit(users.bob, to_user_id=users.alice.id, item_id=staplers.id, quantity=1)
    assert Transfer.query.count() == 0


def test_accept_rechecks_sender_holding(users, staplers):
    """The sender gave the stock back after proposing the transfer"""
    from office_inventory.buisness.inventory.return_workflow import ReturnWorkflow

    workflow = TransferWorkflow()
    transfer = workflow.submit(users.alice, to_user_id=users.bob.id, item_id=staplers.id, quantity=3)
    holding = HoldingsLedger().get_holding(users.alice.id, staplers.id)
    ReturnWorkflow().return_item(users.alice, holding_id=holding.id, quantity=2)

    with pytest.raises(InsufficientHolding):
        workflow.accept(users.bob, transfer_id=transfer.id)
    assert transfer.status == Transfer.STATUS_PENDING
    assert HoldingsLedger().held_quantity(users.bob.id, staplers.id) == 0


def test_transfer_unit_not_held(users, laptop_unit):
    with pytest.raises(InsufficientHolding):
        TransferWorkflow().submit(users.bob, to_user_id=users.alice.id, unit_id=laptop_unit.id)


def test_cannot_transfer_to_self(users, staplers):
    with pytest.raises(ValidationError):
        TransferWorkflow().submit(users.alice, to_user_id=users.alice.id, item_id=staplers.id, quantity=1)


def test_cannot_transfer_to_removed_user(users, staplers):
    UserContext(users.bob).remove(users.admin)
    with pytest.raises(ValidationError):
        TransferWorkflow().submit(users.alice, to_user_id=users.bob.id, item_id=staplers.id, quantity=1)


def test_only_recipient_or_stock_room_accepts(users, staplers):
    workflow = TransferWorkflow()
    transfer = workflow.submit(users.alice, to_user_id=users.bob.id, item_id=staplers.id, quantity=1)

    with pytest.raises(Unauthorized):
        workflow.accept(users.alice, transfer_id=transfer.id)

    workflow.accept(users.assistant, transfer_id=transfer.id)
    assert HoldingsLedger().held_quantity(users.bob.id, staplers.id) == 1


def test_decided_transfer_is_terminal(users, staplers):
    workflow = TransferWorkflow()
    transfer = workflow.submit(users.alice, to_user_id=users.bob.id, item_id=staplers.id, quantity=1)
    workflow.decline(users.alice, transfer_id=transfer.id)

    with pytest.raises(InvalidTransition):
        workflow.accept(users.bob, transfer_id=transfer.id)
    with pytest.raises(InvalidTransition):
        workflow.decline(users.bob, transfer_id=transfer.id)


def test_outsider_cannot_decline(users, staplers):
    carol = UserContext.create(users.admin, name='Carol Diaz', pin='5555').user
    transfer = TransferWorkflow().submit(users.alice, to_user_id=users.bob.id, item_id=staplers.id, quantity=1)
    with pytest.raises(Unauthorized):
        TransferWorkflow().decline(carol, transfer_id=transfer.id)
