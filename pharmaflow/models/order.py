"""
SQLAlchemy Order, OrderItem and OrderStatusHistory models
"""
import enum

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pharmaflow.database import Base


class OrderStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING_INVENTORY = "pending_inventory"
    INVENTORY_APPROVED = "inventory_approved"
    INVENTORY_REJECTED = "inventory_rejected"
    PENDING_ACCOUNTING = "pending_accounting"
    APPROVED = "approved"
    REJECTED = "rejected"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    PARTIALLY_DELIVERED = "partially_delivered"
    COMPLETED = "completed"
    RETURNED = "returned"


TERMINAL_STATUSES = frozenset({
    OrderStatus.INVENTORY_REJECTED,
    OrderStatus.REJECTED,
    OrderStatus.COMPLETED,
    OrderStatus.RETURNED,
})

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in OrderStatus)


class Order(Base):
    """
    Order database model

    The version column is SQLAlchemy's optimistic lock: every flush that
    updates the row checks and bumps it.
    """

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_number = Column(String(50), nullable=False, unique=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    sales_rep_id = Column(String(100), nullable=True)
    status = Column(String(50), nullable=False, default=OrderStatus.DRAFT.value, index=True)
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    customer = relationship("Customer")
    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id"
    )
    history = relationship(
        "OrderStatusHistory", back_populates="order", cascade="all, delete-orphan",
        order_by="OrderStatusHistory.id"
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name='check_order_status_valid'),
        CheckConstraint('total_amount >= 0', name='check_total_non_negative'),
    )

    def __repr__(self):
        return f"<Order(id={self.id}, number='{self.order_number}', status='{self.status}')>"


class OrderItem(Base):
    """Order line; unit_price is a snapshot, never read back from the product"""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    product_name = Column(String(255), nullable=False)  # Denormalized for history
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total_price = Column(Numeric(12, 2), nullable=False)
    delivered_quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_item_quantity_positive'),
        CheckConstraint('delivered_quantity >= 0', name='check_delivered_non_negative'),
        CheckConstraint('delivered_quantity <= quantity', name='check_delivered_within_quantity'),
    )

    @property
    def outstanding_quantity(self) -> int:
        return self.quantity - self.delivered_quantity

    def __repr__(self):
        return (
            f"<OrderItem(id={self.id}, product_id={self.product_id}, "
            f"quantity={self.quantity}, delivered={self.delivered_quantity})>"
        )


class OrderStatusHistory(Base):
    """Append-only audit row written by every status transition"""

    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    from_status = Column(String(50), nullable=True)  # None for the creation entry
    to_status = Column(String(50), nullable=False)
    actor = Column(String(100), nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="history")

    def __repr__(self):
        return f"<OrderStatusHistory(order_id={self.order_id}, {self.from_status} -> {self.to_status})>"
