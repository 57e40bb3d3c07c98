"""
Models package
"""
from pharmaflow.models.customer import Customer
from pharmaflow.models.product import Product, Inventory
from pharmaflow.models.order import Order, OrderItem, OrderStatusHistory, OrderStatus, TERMINAL_STATUSES
from pharmaflow.models.delivery import Delivery, DeliveryLine
from pharmaflow.models.returns import Return, ReturnItem, ReturnStatus, ItemCondition

__all__ = [
    "Customer",
    "Product",
    "Inventory",
    "Order",
    "OrderItem",
    "OrderStatusHistory",
    "OrderStatus",
    "TERMINAL_STATUSES",
    "Delivery",
    "DeliveryLine",
    "Return",
    "ReturnItem",
    "ReturnStatus",
    "ItemCondition",
]
