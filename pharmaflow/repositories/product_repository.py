"""
Product and Inventory Repositories - Data Access Layer
"""
from datetime import date
from typing import List, Optional
from sqlalchemy import update
from sqlalchemy.orm import Session

from pharmaflow.models.product import Product, Inventory


class ProductRepository:
    """Repository for Product CRUD operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self, skip: int = 0, limit: int = 100, category: Optional[str] = None) -> List[Product]:
        """Get all products with pagination"""
        query = self.db.query(Product)
        if category:
            query = query.filter(Product.category == category)
        return query.order_by(Product.id).offset(skip).limit(limit).all()

    def get_by_id(self, product_id: int) -> Optional[Product]:
        """Get product by ID"""
        return self.db.query(Product).filter(Product.id == product_id).first()

    def get_by_sku(self, sku: str) -> Optional[Product]:
        """Get product by SKU"""
        return self.db.query(Product).filter(Product.sku == sku).first()

    def get_many(self, product_ids: List[int]) -> dict:
        """Get products keyed by ID"""
        products = self.db.query(Product).filter(Product.id.in_(product_ids)).all()
        return {p.id: p for p in products}

    def create(self, product_data: dict) -> Product:
        """Stage a new product; the caller commits"""
        product = Product(**product_data)
        self.db.add(product)
        self.db.flush()
        return product

    def update(self, product: Product, update_data: dict) -> Product:
        """Apply provided fields to a product"""
        for field, value in update_data.items():
            setattr(product, field, value)
        self.db.flush()
        return product

    def count(self, category: Optional[str] = None) -> int:
        """Get total count of products"""
        query = self.db.query(Product)
        if category:
            query = query.filter(Product.category == category)
        return query.count()


class InventoryRepository:
    """Repository for Inventory rows"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_product_id(self, product_id: int) -> Optional[Inventory]:
        """Get the current inventory row, bypassing stale identity-map state"""
        return self.db.query(Inventory).populate_existing().filter(
            Inventory.product_id == product_id
        ).first()

    def get_all(
        self,
        low_stock_threshold: Optional[int] = None,
        expiring_before: Optional[date] = None,
        skip: int = 0,
        limit: int = 100
    ) -> List[Inventory]:
        """Get inventory rows, optionally only low-stock or soon-expiring ones"""
        query = self._filtered(low_stock_threshold, expiring_before)
        return query.order_by(Inventory.product_id).offset(skip).limit(limit).all()

    def count(self, low_stock_threshold: Optional[int] = None, expiring_before: Optional[date] = None) -> int:
        return self._filtered(low_stock_threshold, expiring_before).count()

    def _filtered(self, low_stock_threshold: Optional[int], expiring_before: Optional[date]):
        query = self.db.query(Inventory).populate_existing()
        if low_stock_threshold is not None:
            query = query.filter(
                Inventory.quantity - Inventory.reserved_quantity <= low_stock_threshold
            )
        if expiring_before is not None:
            # Rows without expiry are non-perishable and never match
            query = query.filter(
                Inventory.expiry_date.isnot(None),
                Inventory.expiry_date <= expiring_before
            )
        return query

    def create(self, inventory_data: dict) -> Inventory:
        """Stage a new inventory row; the caller commits"""
        inventory = Inventory(**inventory_data)
        self.db.add(inventory)
        self.db.flush()
        return inventory

    def conditional_update(self, product_id: int, values: dict, *conditions) -> int:
        """
        UPDATE inventory SET <values> WHERE product_id = :id AND <conditions>

        Single statement compare-and-swap; the database row lock serializes
        concurrent callers. Returns the number of rows updated (0 or 1).
        """
        stmt = (
            update(Inventory)
            .where(Inventory.product_id == product_id, *conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount
