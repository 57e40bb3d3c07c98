"""
SQLAlchemy Return and ReturnItem models
"""
import enum

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pharmaflow.database import Base


class ReturnStatus(str, enum.Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    RECEIVED = "received"
    PROCESSED = "processed"


class ItemCondition(str, enum.Enum):
    GOOD = "good"
    DAMAGED = "damaged"
    EXPIRED = "expired"


class Return(Base):
    """
    Return request against a delivered order

    Versioned like Order: a status change made from a stale copy fails the
    flush instead of restocking or refunding a second time.
    """

    __tablename__ = "returns"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    return_number = Column(String(50), nullable=False, unique=True, index=True)
    reason = Column(Text, nullable=True)
    status = Column(String(50), nullable=False, default=ReturnStatus.REQUESTED.value, index=True)
    refund_amount = Column(Numeric(12, 2), nullable=True)  # Set once processed
    processed_by = Column(String(100), nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    order = relationship("Order")
    items = relationship("ReturnItem", back_populates="return_", order_by="ReturnItem.id")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            "status IN ('requested', 'approved', 'rejected', 'received', 'processed')",
            name='check_return_status_valid'
        ),
    )

    def __repr__(self):
        return f"<Return(id={self.id}, number='{self.return_number}', status='{self.status}')>"


class ReturnItem(Base):
    """Returned quantity of one order item; condition is filled on receipt"""

    __tablename__ = "return_items"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    return_id = Column(Integer, ForeignKey("returns.id"), nullable=False, index=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)
    condition = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    return_ = relationship("Return", back_populates="items")
    order_item = relationship("OrderItem")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_return_quantity_positive'),
        CheckConstraint(
            "condition IS NULL OR condition IN ('good', 'damaged', 'expired')",
            name='check_return_condition_valid'
        ),
    )
