"""
Order State Machine - the only code path that changes Order.status

Each transition is validated against TRANSITIONS, applies its inventory
side effects, and appends a StatusHistory row in the caller's transaction.
Events for the transitions are queued and published by the caller after
commit.
"""
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from pharmaflow.exceptions import InvalidTransition, ConcurrentModification
from pharmaflow.models.order import Order, OrderStatus, OrderStatusHistory, TERMINAL_STATUSES
from pharmaflow.publishers.event_publisher import EventPublisher
from pharmaflow.services.inventory_ledger import InventoryLedger

logger = logging.getLogger(__name__)

S = OrderStatus

# (from status, trigger) -> to status
TRANSITIONS: Dict[Tuple[OrderStatus, str], OrderStatus] = {
    (S.DRAFT, "submit"): S.PENDING_INVENTORY,
    (S.PENDING_INVENTORY, "approve_inventory"): S.INVENTORY_APPROVED,
    (S.PENDING_INVENTORY, "reject_inventory"): S.INVENTORY_REJECTED,
    (S.INVENTORY_APPROVED, "forward_to_accounting"): S.PENDING_ACCOUNTING,
    (S.PENDING_ACCOUNTING, "approve_accounting"): S.APPROVED,
    (S.PENDING_ACCOUNTING, "reject_accounting"): S.REJECTED,
    (S.APPROVED, "dispatch"): S.IN_TRANSIT,
    (S.IN_TRANSIT, "deliver_complete"): S.DELIVERED,
    (S.IN_TRANSIT, "deliver_partial"): S.PARTIALLY_DELIVERED,
    (S.PARTIALLY_DELIVERED, "deliver_complete"): S.DELIVERED,
    (S.PARTIALLY_DELIVERED, "deliver_partial"): S.PARTIALLY_DELIVERED,
    (S.DELIVERED, "finalize"): S.COMPLETED,
    (S.DELIVERED, "accept_return"): S.RETURNED,
    (S.PARTIALLY_DELIVERED, "accept_return"): S.RETURNED,
    (S.COMPLETED, "accept_return"): S.RETURNED,
}

ALLOWED_TRANSITIONS: Dict[OrderStatus, set] = defaultdict(set)
for (_from, _trigger), _to in TRANSITIONS.items():
    ALLOWED_TRANSITIONS[_from].add(_to)


def replay(entries: Iterable[Tuple[Optional[str], str]]) -> OrderStatus:
    """
    Fold a status history log into the resulting status

    Args:
        entries: (from_status, to_status) pairs, oldest first. A leading
            creation entry (None -> draft) is accepted.

    Raises:
        InvalidTransition: If the log contains a step the table does not allow
    """
    current = S.DRAFT
    for index, (from_status, to_status) in enumerate(entries):
        target = S(to_status)
        if from_status is None:
            if index != 0 or target is not S.DRAFT:
                raise InvalidTransition(f"Unexpected creation entry at position {index}")
            continue
        if S(from_status) is not current:
            raise InvalidTransition(
                f"History entry {index} starts from {from_status}, expected {current.value}"
            )
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransition(f"History entry {index}: {current.value} -> {target.value} is not allowed")
        current = target
    return current


class OrderStateMachine:
    """Validates and applies status transitions for orders"""

    def __init__(self, db: Session, ledger: Optional[InventoryLedger] = None,
                 event_publisher: Optional[EventPublisher] = None):
        self.db = db
        self.ledger = ledger or InventoryLedger(db)
        self.event_publisher = event_publisher or EventPublisher()
        self._outbox: List[dict] = []

    def record_creation(self, order: Order, actor: str) -> OrderStatusHistory:
        """Append the initial (None -> draft) history entry"""
        entry = OrderStatusHistory(from_status=None, to_status=S.DRAFT.value, actor=actor)
        order.history.append(entry)
        return entry

    def can_fire(self, order: Order, trigger: str) -> bool:
        return (S(order.status), trigger) in TRANSITIONS

    def fire(
        self,
        order: Order,
        trigger: str,
        actor: str,
        note: Optional[str] = None,
        expected_version: Optional[int] = None
    ) -> OrderStatusHistory:
        """
        Apply a trigger to an order

        Raises:
            InvalidTransition: If the trigger is not allowed from the current status
            ConcurrentModification: If expected_version does not match
            InsufficientStock: If submission cannot reserve every item
        """
        self.check_version(order, expected_version)
        current = S(order.status)
        target = TRANSITIONS.get((current, trigger))
        if target is None:
            logger.info(f"Rejected trigger '{trigger}' for order {order.order_number} in status {current.value}")
            raise InvalidTransition(
                f"Cannot {trigger.replace('_', ' ')} order {order.order_number} in status {current.value}"
            )

        self._apply_side_effects(order, current, target)

        order.status = target.value
        # Always dirty the row so the version check runs even on self-loops
        order.updated_at = datetime.now(timezone.utc)
        entry = OrderStatusHistory(from_status=current.value, to_status=target.value, actor=actor, note=note)
        order.history.append(entry)

        logger.info(f"Order {order.order_number}: {current.value} -> {target.value} by {actor}")
        self._outbox.append({
            "order_id": order.id,
            "order_number": order.order_number,
            "old_status": current.value,
            "new_status": target.value,
            "actor": actor,
            "note": note,
            "terminal": target in TERMINAL_STATUSES,
        })
        return entry

    def touch(self, order: Order, expected_version: Optional[int] = None) -> None:
        """Bump the order version without a transition, serializing writers on this order"""
        self.check_version(order, expected_version)
        order.updated_at = datetime.now(timezone.utc)

    @staticmethod
    def check_version(order: Order, expected_version: Optional[int]) -> None:
        if expected_version is not None and expected_version != order.version:
            raise ConcurrentModification(
                f"Order {order.order_number} is at version {order.version}, expected {expected_version}"
            )

    def publish_pending(self) -> None:
        """Publish queued status events; call only after the transaction committed"""
        events, self._outbox = self._outbox, []
        for event_data in events:
            self.event_publisher.publish_order_status_changed(event_data)

    def discard_pending(self) -> None:
        self._outbox = []

    def _apply_side_effects(self, order: Order, current: OrderStatus, target: OrderStatus) -> None:
        if current is S.DRAFT and target is S.PENDING_INVENTORY:
            self.ledger.reserve_many(self._quantities(order, outstanding_only=False))
        elif target in (S.INVENTORY_REJECTED, S.REJECTED):
            self._release_outstanding(order)
        elif target is S.RETURNED and current is S.PARTIALLY_DELIVERED:
            # Undelivered remainder will never ship
            self._release_outstanding(order)

    def _release_outstanding(self, order: Order) -> None:
        quantities = self._quantities(order, outstanding_only=True)
        for product_id in sorted(quantities):
            self.ledger.release(product_id, quantities[product_id])

    @staticmethod
    def _quantities(order: Order, outstanding_only: bool) -> Dict[int, int]:
        """Quantity per product across the order's items"""
        totals: Dict[int, int] = defaultdict(int)
        for item in order.items:
            quantity = item.outstanding_quantity if outstanding_only else item.quantity
            if quantity > 0:
                totals[item.product_id] += quantity
        return dict(totals)
