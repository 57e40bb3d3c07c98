"""
Shared wiring for order workflow services
"""
from contextlib import contextmanager
from typing import Optional

from sqlalchemy.orm import Session

from pharmaflow.database import unit_of_work
from pharmaflow.exceptions import NotFound
from pharmaflow.models.order import Order
from pharmaflow.publishers.event_publisher import EventPublisher
from pharmaflow.repositories.order_repository import OrderRepository
from pharmaflow.services.inventory_ledger import InventoryLedger
from pharmaflow.services.order_state_machine import OrderStateMachine


class WorkflowService:
    """Base for services that drive orders through the state machine"""

    def __init__(self, db: Session, event_publisher: Optional[EventPublisher] = None):
        self.db = db
        self.event_publisher = event_publisher or EventPublisher()
        self.ledger = InventoryLedger(db)
        self.state_machine = OrderStateMachine(db, self.ledger, self.event_publisher)
        self.orders = OrderRepository(db)

    @contextmanager
    def transaction(self):
        """
        One operation, one transaction

        Queued status events are published only once the commit succeeded.
        """
        try:
            with unit_of_work(self.db):
                yield
        except Exception:
            self.state_machine.discard_pending()
            raise
        self.state_machine.publish_pending()

    def get_order(self, order_id: int) -> Order:
        order = self.orders.get_by_id(order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found")
        return order
