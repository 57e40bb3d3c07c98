"""
SQLAlchemy Product and Inventory models
"""
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Date, Text, Boolean,
    ForeignKey, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pharmaflow.database import Base


class Product(Base):
    """Product database model"""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    sku = Column(String(64), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    price = Column(Numeric(12, 2), nullable=False)
    requires_prescription = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    inventory = relationship("Inventory", back_populates="product", uselist=False)

    __table_args__ = (
        CheckConstraint('price >= 0', name='check_price_non_negative'),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, sku='{self.sku}', price={self.price})>"


class Inventory(Base):
    """
    Stock ledger row, one per product

    available = quantity - reserved_quantity. Mutated only through
    InventoryLedger so the constraints below are never the first line of
    defence.
    """

    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, unique=True, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    reserved_quantity = Column(Integer, nullable=False, default=0)
    batch_number = Column(String(100), nullable=True)
    # No expiry date means the product is non-perishable
    expiry_date = Column(Date, nullable=True)
    location = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    product = relationship("Product", back_populates="inventory")

    __table_args__ = (
        CheckConstraint('quantity >= 0', name='check_quantity_non_negative'),
        CheckConstraint('reserved_quantity >= 0', name='check_reserved_non_negative'),
        CheckConstraint('reserved_quantity <= quantity', name='check_reserved_within_quantity'),
    )

    @property
    def available(self) -> int:
        return self.quantity - self.reserved_quantity

    def __repr__(self):
        return (
            f"<Inventory(product_id={self.product_id}, quantity={self.quantity}, "
            f"reserved={self.reserved_quantity})>"
        )
