"""
Return Processor - return requests, receipt, restocking and refunds

Return lifecycle:

    requested -> approved -> received -> processed
    requested -> rejected
"""
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional

from pharmaflow.config import settings
from pharmaflow.exceptions import NotFound, ValidationError, InvalidTransition, InvalidReturnRequest
from pharmaflow.models.order import Order, OrderStatus
from pharmaflow.models.returns import Return, ReturnItem, ReturnStatus, ItemCondition
from pharmaflow.repositories.return_repository import ReturnRepository
from pharmaflow.services.base import WorkflowService
from pharmaflow.services.order_service import generate_document_number

logger = logging.getLogger(__name__)

R = ReturnStatus

RETURN_TRANSITIONS = {
    R.REQUESTED: {R.APPROVED, R.REJECTED},
    R.APPROVED: {R.RECEIVED},
    R.RECEIVED: {R.PROCESSED},
}

RETURNABLE_ORDER_STATUSES = frozenset({
    OrderStatus.DELIVERED,
    OrderStatus.PARTIALLY_DELIVERED,
    OrderStatus.COMPLETED,
})

# Returns that still count against the returnable quantity of an item
ACTIVE_RETURN_STATUSES = (R.REQUESTED.value, R.APPROVED.value, R.RECEIVED.value, R.PROCESSED.value)


class ReturnProcessor(WorkflowService):
    """Validates returns, restocks good items and computes refunds"""

    def __init__(self, db, event_publisher=None):
        super().__init__(db, event_publisher)
        self.returns = ReturnRepository(db)

    def get_return(self, return_id: int) -> Return:
        return_ = self.returns.get_by_id(return_id)
        if return_ is None:
            raise NotFound(f"Return {return_id} not found")
        return return_

    def list_returns(self, skip: int = 0, limit: int = 100, order_id: Optional[int] = None,
                     status: Optional[str] = None) -> tuple:
        """Get returns with pagination and filters; returns (returns, total)"""
        return self.returns.get_all(skip, limit, order_id, status), self.returns.count(order_id, status)

    def request_return(self, order_id: int, items: List[dict], reason: Optional[str] = None) -> Return:
        """
        Open a return against a delivered order

        Args:
            items: [{"order_item_id": int, "quantity": int, "reason": str?}, ...]

        Raises:
            InvalidReturnRequest: If the order is not delivered/partially_delivered/completed,
                or a quantity exceeds what was delivered minus what is already being returned
            ValidationError: If items are empty, lack an order_item_id, or quantities not positive
        """
        if not items:
            raise ValidationError("Return must contain at least one item")
        requested: Dict[int, int] = defaultdict(int)
        for item in items:
            order_item_id = item.get("order_item_id")
            if not isinstance(order_item_id, int) or isinstance(order_item_id, bool):
                raise ValidationError(f"Return item needs an order_item_id, got {order_item_id!r}")
            quantity = item.get("quantity")
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
                raise ValidationError(f"Return quantity must be a positive integer, got {quantity!r}")
            requested[order_item_id] += quantity

        with self.transaction():
            order = self.get_order(order_id)
            status = OrderStatus(order.status)
            if status not in RETURNABLE_ORDER_STATUSES:
                raise InvalidReturnRequest(
                    f"Order {order.order_number} in status {status.value} is not eligible for return"
                )

            order_items = {item.id: item for item in order.items}
            already_returned = self.returns.returned_quantities(order.id, ACTIVE_RETURN_STATUSES)
            for order_item_id, quantity in requested.items():
                order_item = order_items.get(order_item_id)
                if order_item is None:
                    raise InvalidReturnRequest(
                        f"Item {order_item_id} does not belong to order {order.order_number}"
                    )
                returnable = order_item.delivered_quantity - already_returned.get(order_item_id, 0)
                if quantity > returnable:
                    logger.info(
                        f"Return refused on order {order.order_number} item {order_item_id}: "
                        f"requested {quantity}, returnable {returnable}"
                    )
                    raise InvalidReturnRequest(
                        f"Item {order_item_id}: requested {quantity}, only {returnable} returnable"
                    )

            return_ = Return(
                order_id=order.id,
                return_number=generate_document_number(settings.RETURN_NUMBER_PREFIX),
                reason=reason,
                status=R.REQUESTED.value,
            )
            for item in items:
                return_.items.append(ReturnItem(
                    order_item_id=item["order_item_id"],
                    product_id=order_items[item["order_item_id"]].product_id,
                    quantity=item["quantity"],
                    reason=item.get("reason"),
                ))
            self.returns.create(return_)
            # Serializes concurrent return requests on the same order
            self.state_machine.touch(order)

        logger.info(f"Return {return_.return_number} requested for order {order.order_number}")
        return return_

    def decide_return(self, return_id: int, approve: bool, actor: Optional[str] = None) -> Return:
        """Approve or reject a requested return"""
        with self.transaction():
            return_ = self.get_return(return_id)
            self._move(return_, R.APPROVED if approve else R.REJECTED, actor)
        return return_

    def receive_return(self, return_id: int, conditions: Dict[int, str], actor: Optional[str] = None) -> Return:
        """
        Record physical receipt and the condition of every returned item

        Args:
            conditions: {return_item_id: "good" | "damaged" | "expired"}

        Raises:
            ValidationError: If an item is unknown or missing a condition
            InvalidTransition: If the return is not approved
        """
        with self.transaction():
            return_ = self.get_return(return_id)
            self._check_move(return_, R.RECEIVED)
            items = {item.id: item for item in return_.items}
            unknown = set(conditions) - set(items)
            if unknown:
                raise ValidationError(f"Items {sorted(unknown)} do not belong to return {return_.return_number}")
            missing = set(items) - set(conditions)
            if missing:
                raise ValidationError(f"Condition missing for return items {sorted(missing)}")
            for item_id, condition in conditions.items():
                try:
                    items[item_id].condition = ItemCondition(condition).value
                except ValueError:
                    raise ValidationError(f"Unknown condition {condition!r} for return item {item_id}")
            self._move(return_, R.RECEIVED, actor)
        return return_

    def process_return(self, return_id: int, actor: Optional[str] = None) -> Return:
        """
        Restock good items, compute the refund and close the return

        refund_amount = sum(returned quantity x order item unit_price),
        regardless of condition. When processed returns cover every
        delivered unit of the order, the order moves to `returned`.
        """
        with self.transaction():
            return_ = self.get_return(return_id)
            self._check_move(return_, R.PROCESSED)

            refund = Decimal("0")
            for item in sorted(return_.items, key=lambda i: i.product_id):
                self.ledger.restock(item.product_id, item.quantity, item.condition)
                refund += Decimal(str(item.order_item.unit_price)) * item.quantity
            return_.refund_amount = refund
            self._move(return_, R.PROCESSED, actor)
            self.db.flush()

            order = self.get_order(return_.order_id)
            if self._closes_out(order):
                self.state_machine.fire(
                    order, "accept_return", actor or "system",
                    note=f"Return {return_.return_number} processed"
                )

        logger.info(f"Return {return_.return_number} processed: refund {return_.refund_amount}")
        self.event_publisher.publish_return_processed({
            "return_id": return_.id,
            "return_number": return_.return_number,
            "order_id": return_.order_id,
            "refund_amount": str(return_.refund_amount),
        })
        return return_

    def _closes_out(self, order: Order) -> bool:
        """True if processed returns now cover every delivered unit of the order"""
        if not self.state_machine.can_fire(order, "accept_return"):
            return False
        processed = self.returns.returned_quantities(order.id, [R.PROCESSED.value])
        delivered_any = False
        for item in order.items:
            if item.delivered_quantity == 0:
                continue
            delivered_any = True
            if processed.get(item.id, 0) < item.delivered_quantity:
                return False
        return delivered_any

    @staticmethod
    def _check_move(return_: Return, target: ReturnStatus) -> None:
        current = R(return_.status)
        if target not in RETURN_TRANSITIONS.get(current, set()):
            raise InvalidTransition(
                f"Return {return_.return_number} cannot move from {current.value} to {target.value}"
            )

    def _move(self, return_: Return, target: ReturnStatus, actor: Optional[str]) -> None:
        self._check_move(return_, target)
        logger.info(f"Return {return_.return_number}: {return_.status} -> {target.value}")
        return_.status = target.value
        if actor:
            return_.processed_by = actor
