"""
Delivery Tracker - schedules courier runs and records what was handed over
"""
import logging
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from pharmaflow.exceptions import NotFound, ValidationError, InvalidTransition, OverDelivery
from pharmaflow.models.delivery import Delivery
from pharmaflow.models.order import Order, OrderStatus
from pharmaflow.repositories.delivery_repository import DeliveryRepository
from pharmaflow.services.base import WorkflowService

logger = logging.getLogger(__name__)

SCHEDULABLE_STATUSES = frozenset({OrderStatus.APPROVED, OrderStatus.IN_TRANSIT})
RECORDABLE_STATUSES = frozenset({OrderStatus.IN_TRANSIT, OrderStatus.PARTIALLY_DELIVERED})


class DeliveryTracker(WorkflowService):
    """Delivery scheduling and progress recording"""

    def __init__(self, db, event_publisher=None):
        super().__init__(db, event_publisher)
        self.deliveries = DeliveryRepository(db)

    def get_delivery(self, delivery_id: int) -> Delivery:
        delivery = self.deliveries.get_by_id(delivery_id)
        if delivery is None:
            raise NotFound(f"Delivery {delivery_id} not found")
        return delivery

    def list_deliveries(self, order_id: int) -> List[Delivery]:
        self.get_order(order_id)
        return self.deliveries.get_by_order(order_id)

    def schedule_delivery(
        self,
        order_id: int,
        courier_id: str,
        scheduled_date: date,
        delivery_address: Optional[dict] = None,
        notes: Optional[str] = None,
        actor: str = "system"
    ) -> Delivery:
        """
        Schedule a courier run for an approved or in-transit order

        The first delivery dispatches the order (approved -> in_transit).
        The address defaults to the customer's address at scheduling time.

        Raises:
            InvalidTransition: If the order is not approved or in_transit
        """
        with self.transaction():
            order = self.get_order(order_id)
            status = OrderStatus(order.status)
            if status not in SCHEDULABLE_STATUSES:
                raise InvalidTransition(
                    f"Cannot schedule delivery for order {order.order_number} in status {status.value}"
                )

            if delivery_address is None and order.customer is not None:
                delivery_address = order.customer.address
            delivery = self.deliveries.create({
                'order_id': order.id,
                'courier_id': courier_id,
                'scheduled_date': scheduled_date,
                'delivery_address': delivery_address,
                'notes': notes,
            })

            if status is OrderStatus.APPROVED:
                self.state_machine.fire(order, "dispatch", actor, note=f"Delivery {delivery.id} scheduled")
            else:
                self.state_machine.touch(order)

        logger.info(f"Delivery {delivery.id} scheduled for order {order.order_number} on {scheduled_date}")
        return delivery

    def record_delivery(
        self,
        delivery_id: int,
        item_quantities: Dict[int, int],
        proof_of_delivery: Optional[str] = None,
        actor: str = "system"
    ) -> Order:
        """
        Record goods handed over on a delivery

        Args:
            delivery_id: Delivery ID
            item_quantities: {order_item_id: delivered quantity}

        A delivery may be recorded more than once: a short drop is completed
        by recording the remainder against the same delivery. Each call adds
        its own lines and moves delivered_date forward.

        Validation happens before anything is applied, so a rejected call
        changes nothing.

        Raises:
            OverDelivery: If a quantity exceeds the item's undelivered remainder
            InvalidTransition: If the order is not in transit or partially delivered
            ValidationError: If items are empty, unknown, or quantities not positive
        """
        if not item_quantities:
            raise ValidationError("Delivery must contain at least one item")
        for order_item_id, quantity in item_quantities.items():
            if quantity <= 0:
                raise ValidationError(f"Delivered quantity must be positive for item {order_item_id}")

        with self.transaction():
            delivery = self.get_delivery(delivery_id)
            order = self.get_order(delivery.order_id)
            status = OrderStatus(order.status)
            if status not in RECORDABLE_STATUSES:
                raise InvalidTransition(
                    f"Cannot record delivery for order {order.order_number} in status {status.value}"
                )

            items = {item.id: item for item in order.items}
            for order_item_id, quantity in item_quantities.items():
                item = items.get(order_item_id)
                if item is None:
                    raise ValidationError(f"Item {order_item_id} does not belong to order {order.order_number}")
                if quantity > item.outstanding_quantity:
                    logger.info(
                        f"Over-delivery refused on order {order.order_number} item {item.id}: "
                        f"{quantity} > outstanding {item.outstanding_quantity}"
                    )
                    raise OverDelivery(
                        f"Item {item.id} has {item.outstanding_quantity} outstanding, cannot deliver {quantity}"
                    )

            committed: Dict[int, int] = defaultdict(int)
            for order_item_id, quantity in item_quantities.items():
                item = items[order_item_id]
                item.delivered_quantity += quantity
                committed[item.product_id] += quantity
                self.deliveries.add_line(delivery, order_item_id, quantity)
            for product_id in sorted(committed):
                self.ledger.commit(product_id, committed[product_id])

            delivery.delivered_date = datetime.now(timezone.utc)
            if proof_of_delivery:
                delivery.proof_of_delivery = proof_of_delivery

            complete = all(item.outstanding_quantity == 0 for item in order.items)
            trigger = "deliver_complete" if complete else "deliver_partial"
            self.state_machine.fire(order, trigger, actor, note=f"Delivery {delivery.id} recorded")

        return order
