"""
SQLAlchemy Delivery and DeliveryLine models
"""
from sqlalchemy import Column, Integer, String, Date, DateTime, Text, JSON, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pharmaflow.database import Base


class Delivery(Base):
    """One courier run for an order; an order may have several"""

    __tablename__ = "deliveries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    courier_id = Column(String(100), nullable=False, index=True)
    scheduled_date = Column(Date, nullable=False)
    delivered_date = Column(DateTime(timezone=True), nullable=True)
    delivery_address = Column(JSON, nullable=True)  # Snapshot at scheduling time
    proof_of_delivery = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    order = relationship("Order")
    lines = relationship("DeliveryLine", back_populates="delivery", order_by="DeliveryLine.id")

    @property
    def is_recorded(self) -> bool:
        return self.delivered_date is not None

    def __repr__(self):
        return f"<Delivery(id={self.id}, order_id={self.order_id}, courier='{self.courier_id}')>"


class DeliveryLine(Base):
    """Quantity of one order item carried by a recorded delivery"""

    __tablename__ = "delivery_lines"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    delivery_id = Column(Integer, ForeignKey("deliveries.id"), nullable=False, index=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    delivery = relationship("Delivery", back_populates="lines")
    order_item = relationship("OrderItem")

    __table_args__ = (
        CheckConstraint('quantity > 0', name='check_delivery_line_quantity_positive'),
    )
