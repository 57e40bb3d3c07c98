"""
Order Service - Business Logic Layer
"""
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from pharmaflow.config import settings
from pharmaflow.exceptions import NotFound, ValidationError
from pharmaflow.models.order import Order, OrderItem, OrderStatusHistory
from pharmaflow.repositories.customer_repository import CustomerRepository
from pharmaflow.repositories.product_repository import ProductRepository
from pharmaflow.services.base import WorkflowService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def generate_document_number(prefix: str) -> str:
    """e.g. ORD-2024-9F2C41AB"""
    year = datetime.now(timezone.utc).year
    return f"{prefix}-{year}-{uuid.uuid4().hex[:8].upper()}"


class OrderService(WorkflowService):
    """Order creation, submission, finalization and queries"""

    def __init__(self, db, event_publisher=None):
        super().__init__(db, event_publisher)
        self.customers = CustomerRepository(db)
        self.products = ProductRepository(db)

    def list_orders(
        self,
        skip: int = 0,
        limit: int = 100,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ) -> tuple:
        """Get orders with pagination and filters; returns (orders, total)"""
        orders = self.orders.get_all(skip, limit, status, customer_id, date_from, date_to)
        total = self.orders.count(status, customer_id, date_from, date_to)
        return orders, total

    def get_history(self, order_id: int) -> List[OrderStatusHistory]:
        self.get_order(order_id)
        return self.orders.get_history(order_id)

    def create_order(
        self,
        customer_id: int,
        items: List[dict],
        actor: str = "system",
        sales_rep_id: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Order:
        """
        Create a draft order

        Args:
            customer_id: Customer ID
            items: [{"product_id": int, "quantity": int}, ...]

        Raises:
            ValidationError: If items are empty or a quantity is not positive
            NotFound: If the customer or a product does not exist
        """
        if not items:
            raise ValidationError("Order must contain at least one item")
        for item in items:
            quantity = item.get("quantity")
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
                raise ValidationError(f"Item quantity must be a positive integer, got {quantity!r}")

        with self.transaction():
            if self.customers.get_by_id(customer_id) is None:
                raise NotFound(f"Customer {customer_id} not found")
            products = self.products.get_many([item["product_id"] for item in items])

            order = Order(
                order_number=generate_document_number(settings.ORDER_NUMBER_PREFIX),
                customer_id=customer_id,
                sales_rep_id=sales_rep_id,
                notes=notes,
            )
            for item in items:
                product = products.get(item["product_id"])
                if product is None:
                    raise NotFound(f"Product {item['product_id']} not found")
                order.items.append(OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=item["quantity"],
                    delivered_quantity=0,
                ))
            self._snapshot_prices(order, products)
            self.state_machine.record_creation(order, actor)
            self.orders.create(order)

        logger.info(f"Order {order.order_number} created for customer {customer_id}: total {order.total_amount}")
        return order

    def submit_order(self, order_id: int, actor: str = "system",
                     expected_version: Optional[int] = None) -> Order:
        """
        Submit a draft order for approval, reserving stock for every item

        Prices are re-read from the catalog at this point and frozen.

        Raises:
            InsufficientStock: If any item cannot be reserved (nothing is reserved)
            InvalidTransition: If the order is not a draft
        """
        with self.transaction():
            order = self.get_order(order_id)
            if self.state_machine.can_fire(order, "submit"):
                products = self.products.get_many([item.product_id for item in order.items])
                self._snapshot_prices(order, products)
            self.state_machine.fire(order, "submit", actor, expected_version=expected_version)
        return order

    def finalize_order(self, order_id: int, actor: str, note: Optional[str] = None,
                       expected_version: Optional[int] = None) -> Order:
        """Close a delivered order (delivered -> completed)"""
        with self.transaction():
            order = self.get_order(order_id)
            self.state_machine.fire(order, "finalize", actor, note, expected_version)
        return order

    @staticmethod
    def _snapshot_prices(order: Order, products: dict) -> None:
        total = Decimal("0")
        for item in order.items:
            unit_price = Decimal(str(products[item.product_id].price)).quantize(CENT)
            item.unit_price = unit_price
            item.total_price = (unit_price * item.quantity).quantize(CENT)
            total += item.total_price
        order.total_amount = total
