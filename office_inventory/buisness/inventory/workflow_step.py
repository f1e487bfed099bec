"""
Workflow Step
One transaction per workflow action: validate, mutate, audit, verify, commit.
"""

from contextlib import contextmanager
from typing import List, Optional, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from office_inventory import db
from office_inventory.buisness.core.audit_trail import AuditTrail
from office_inventory.buisness.core.errors import (
    ConcurrentUpdate,
    InventoryDomainError,
    LedgerConsistencyError,
)
from office_inventory.buisness.core.notifications import ChangeNotice, publish
from office_inventory.buisness.inventory.reconciliation import InventoryReconciler
from office_inventory.data.core.user_info.user import User
from office_inventory.logger import get_logger

logger = get_logger("office_inventory.buisness.inventory.workflow_step")


class WorkflowStep:
    """Collects what a step touched so it can be verified, audited and announced."""

    def __init__(self, actor: Optional[User], operation: str):
        self.actor = actor
        self.operation = operation
        self.touched_item_ids: Set[int] = set()
        self.changes: List[ChangeNotice] = []

    def touch(self, item_id: Optional[int]) -> None:
        if item_id is not None:
            self.touched_item_ids.add(item_id)

    def record(self, action: str, detail: str, entity: str, entity_id: Optional[int] = None) -> None:
        AuditTrail.record(action, self.actor, detail)
        self.changes.append(ChangeNotice(
            action=action,
            entity=entity,
            entity_id=entity_id,
            actor_id=self.actor.id if self.actor is not None else None,
        ))

    def verify(self) -> None:
        reconciler = InventoryReconciler()
        violations = []
        for item_id in sorted(self.touched_item_ids):
            violations.extend(reconciler.check_item(item_id))
        if violations:
            raise LedgerConsistencyError("; ".join(violations))


@contextmanager
def workflow_step(actor: Optional[User], operation: str):
    """
    Run one workflow action as a single transaction.

    Commits when the block finishes and the touched items still reconcile;
    rolls back on any error. Change notices go out only after commit.

    Raises:
        ConcurrentUpdate: If another transaction changed the same rows first
        LedgerConsistencyError: If the change would break stock conservation
    """
    step = WorkflowStep(actor, operation)
    try:
        yield step
        db.session.flush()
        step.verify()
        db.session.commit()
    except StaleDataError as e:
        db.session.rollback()
        logger.warning(f"{operation} lost a concurrent update: {e}")
        raise ConcurrentUpdate(f"{operation}: the records changed while you were working; reload and retry") from e
    except IntegrityError as e:
        db.session.rollback()
        logger.warning(f"{operation} hit a constraint: {e.orig}")
        raise ConcurrentUpdate(f"{operation}: conflicting change detected; reload and retry") from e
    except LedgerConsistencyError as e:
        db.session.rollback()
        logger.error(f"{operation} rolled back, ledger would be inconsistent: {e}")
        raise
    except InventoryDomainError as e:
        db.session.rollback()
        logger.info(f"{operation} refused: {type(e).__name__}: {e}")
        raise
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error during {operation}: {e}")
        raise

    logger.info(f"{operation} committed by {actor.name if actor is not None else 'System'}")
    publish(step.changes)
