"""
Inventory Service
Read-only views of the catalog, the ledger and the workflows for routes and dashboards.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import func

from office_inventory import db
from office_inventory.buisness.core.audit_trail import AuditTrail
from office_inventory.buisness.inventory.holdings_ledger import HoldingsLedger
from office_inventory.buisness.inventory.item_context import ItemContext
from office_inventory.data.core.user_info.user import User
from office_inventory.data.inventory.holding import Holding
from office_inventory.data.inventory.incident import Incident
from office_inventory.data.inventory.item import Item
from office_inventory.data.inventory.item_request import ItemRequest
from office_inventory.data.inventory.transfer import Transfer
from office_inventory.data.inventory.unit import Unit
from office_inventory.data.inventory.unit_assignment import UnitAssignment

HEALTHY_THRESHOLD = 0.5
LOW_THRESHOLD = 0.2


def stock_health(available: int, total: int) -> str:
    """'healthy' above half available, 'low' above a fifth, otherwise 'critical'."""
    if total <= 0:
        return 'critical'
    ratio = available / total
    if ratio > HEALTHY_THRESHOLD:
        return 'healthy'
    if ratio > LOW_THRESHOLD:
        return 'low'
    return 'critical'


class InventoryService:
    """
    Service for inventory presentation data.

    Provides methods for:
    - Catalog listings with derived counts
    - Holdings per user
    - Requests, transfers and incidents by status
    - Dashboard totals and the audit trail
    """

    @staticmethod
    def item_summary(item: Item) -> Dict[str, Any]:
        stock = ItemContext(item).stock
        open_incidents = Incident.query.filter_by(item_id=item.id, status=Incident.STATUS_OPEN).count()
        data = item.to_dict(include_audit_fields=False)
        data.update({
            'total': stock.total,
            'available': stock.available,
            'checked_out': stock.checked_out,
            'open_incidents': open_incidents,
            'availability_pct': round(100 * stock.available / stock.total) if stock.total else 0,
            'stock_health': stock_health(stock.available, stock.total),
        })
        return data

    @staticmethod
    def list_items(category: Optional[str] = None, search: Optional[str] = None) -> List[Dict[str, Any]]:
        query = Item.query
        if category:
            query = query.filter_by(category=category)
        if search:
            query = query.filter(Item.name.ilike(f'%{search}%'))
        return [InventoryService.item_summary(item) for item in query.order_by(Item.name).all()]

    @staticmethod
    def item_holders(item_id: int) -> List[Dict[str, Any]]:
        """Everyone currently holding some of an item."""
        holders = []
        for holding in Holding.query.filter_by(item_id=item_id).all():
            holders.append({
                'holding_id': holding.id,
                'user_id': holding.user_id,
                'user_name': holding.user.name,
                'quantity': holding.quantity,
            })
        assignments = (
            UnitAssignment.query
            .join(Unit, Unit.id == UnitAssignment.unit_id)
            .filter(Unit.item_id == item_id, UnitAssignment.status == UnitAssignment.STATUS_ACTIVE)
            .all()
        )
        for assignment in assignments:
            holders.append({
                'assignment_id': assignment.id,
                'user_id': assignment.user_id,
                'user_name': assignment.user.name,
                'unit_code': assignment.unit.code,
                'quantity': 1,
            })
        return holders

    @staticmethod
    def list_units(item_id: int, status: Optional[str] = None) -> List[Dict[str, Any]]:
        ledger = HoldingsLedger()
        query = Unit.query.filter_by(item_id=item_id)
        if status:
            query = query.filter_by(status=status)
        units = []
        for unit in query.order_by(Unit.code).all():
            data = unit.to_dict(include_audit_fields=False)
            assignment = ledger.active_assignment(unit.id)
            data['assignment_id'] = assignment.id if assignment else None
            data['held_by'] = assignment.user.name if assignment else None
            units.append(data)
        return units

    @staticmethod
    def list_holdings(user_id: int) -> Dict[str, List[Dict[str, Any]]]:
        ledger = HoldingsLedger()
        bulk = []
        for holding in ledger.holdings_for_user(user_id):
            data = holding.to_dict(include_audit_fields=False)
            data['item_name'] = holding.item.name
            data['unit'] = holding.item.unit
            bulk.append(data)
        units = []
        for assignment in ledger.assignments_for_user(user_id):
            data = assignment.to_dict(include_audit_fields=False)
            data['unit_code'] = assignment.unit.code
            data['item_id'] = assignment.unit.item_id
            data['item_name'] = assignment.unit.item.name
            units.append(data)
        return {'holdings': bulk, 'units': units}

    @staticmethod
    def list_requests(status: Optional[str] = None, user_id: Optional[int] = None) -> List[Dict[str, Any]]:
        query = ItemRequest.query
        if status:
            query = query.filter_by(status=status)
        if user_id:
            query = query.filter_by(user_id=user_id)
        results = []
        for request in query.order_by(ItemRequest.date.desc(), ItemRequest.id.desc()).all():
            data = request.to_dict(include_audit_fields=False)
            data['user_name'] = request.user.name
            results.append(data)
        return results

    @staticmethod
    def list_transfers(status: Optional[str] = None, user_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Transfers, optionally limited to those a user sent or received."""
        query = Transfer.query
        if status:
            query = query.filter_by(status=status)
        if user_id:
            query = query.filter(db.or_(Transfer.from_user_id == user_id, Transfer.to_user_id == user_id))
        results = []
        for transfer in query.order_by(Transfer.date.desc(), Transfer.id.desc()).all():
            data = transfer.to_dict(include_audit_fields=False)
            data['from_user_name'] = transfer.from_user.name
            data['to_user_name'] = transfer.to_user.name
            data['unit_code'] = transfer.unit.code if transfer.unit is not None else None
            results.append(data)
        return results

    @staticmethod
    def list_incidents(status: Optional[str] = None) -> List[Dict[str, Any]]:
        query = Incident.query
        if status:
            query = query.filter_by(status=status)
        results = []
        for incident in query.order_by(Incident.date.desc(), Incident.id.desc()).all():
            data = incident.to_dict(include_audit_fields=False)
            data['held_by_name'] = incident.held_by.name if incident.held_by is not None else None
            data['unit_code'] = incident.unit.code if incident.unit is not None else None
            results.append(data)
        return results

    @staticmethod
    def list_users(include_inactive: bool = False) -> List[Dict[str, Any]]:
        query = User.query
        if not include_inactive:
            query = query.filter_by(is_active=True)
        return [user.to_dict() for user in query.order_by(User.name).all()]

    @staticmethod
    def transfer_recipients(user_id: int) -> List[Dict[str, Any]]:
        """Active non-admin users other than ``user_id``."""
        users = (
            User.query
            .filter(User.is_active.is_(True), User.id != user_id, User.role != User.ROLE_ADMIN)
            .order_by(User.name)
            .all()
        )
        return [{'id': u.id, 'name': u.name, 'avatar': u.avatar, 'color': u.color} for u in users]

    @staticmethod
    def dashboard_stats(user: Optional[User] = None) -> Dict[str, Any]:
        """
        Headline numbers for the dashboard.

        Pending transfers are counted for everyone when ``user`` is stock-room
        staff (or omitted), otherwise only those addressed to ``user``.
        """
        items = [InventoryService.item_summary(item) for item in Item.query.all()]

        def incident_total(incident_type):
            return int(
                db.session.query(func.coalesce(func.sum(Incident.quantity), 0))
                .filter(Incident.type == incident_type)
                .scalar()
            )

        transfers = Transfer.query.filter_by(status=Transfer.STATUS_PENDING)
        if user is not None and not user.is_inventory_staff:
            transfers = transfers.filter_by(to_user_id=user.id)

        return {
            'item_count': len(items),
            'total_stock': sum(i['total'] for i in items),
            'available_stock': sum(i['available'] for i in items),
            'checked_out': sum(i['checked_out'] for i in items),
            'pending_requests': ItemRequest.query.filter_by(status=ItemRequest.STATUS_PENDING).count(),
            'pending_transfers': transfers.count(),
            'open_incidents': Incident.query.filter_by(status=Incident.STATUS_OPEN).count(),
            'total_damaged': incident_total(Incident.TYPE_DAMAGED),
            'total_lost': incident_total(Incident.TYPE_LOST),
            'low_stock_items': [i['name'] for i in items if i['stock_health'] != 'healthy'],
        }

    @staticmethod
    def audit_log(limit: int = 200) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in AuditTrail.recent(limit)]
