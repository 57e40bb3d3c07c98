"""
Catalog Service - customers, products and inventory administration
"""
import logging
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from pharmaflow.config import settings
from pharmaflow.database import unit_of_work
from pharmaflow.exceptions import NotFound, ValidationError
from pharmaflow.models.customer import Customer
from pharmaflow.models.product import Product
from pharmaflow.repositories.customer_repository import CustomerRepository
from pharmaflow.repositories.product_repository import ProductRepository, InventoryRepository
from pharmaflow.services.inventory_ledger import InventoryLedger

logger = logging.getLogger(__name__)


class CatalogService:
    """Service layer for catalog data feeding the order workflow"""

    def __init__(self, db: Session):
        self.db = db
        self.customers = CustomerRepository(db)
        self.products = ProductRepository(db)
        self.inventory = InventoryRepository(db)
        self.ledger = InventoryLedger(db)

    # Customers

    def list_customers(self, skip: int = 0, limit: int = 100) -> tuple:
        return self.customers.get_all(skip, limit), self.customers.count()

    def get_customer(self, customer_id: int) -> Customer:
        customer = self.customers.get_by_id(customer_id)
        if customer is None:
            raise NotFound(f"Customer {customer_id} not found")
        return customer

    def create_customer(self, customer_data: dict) -> Customer:
        with unit_of_work(self.db):
            customer = self.customers.create(customer_data)
        logger.info(f"Customer {customer.id} created: {customer.name}")
        return customer

    # Products

    def list_products(self, skip: int = 0, limit: int = 100, category: Optional[str] = None) -> tuple:
        return self.products.get_all(skip, limit, category), self.products.count(category)

    def get_product(self, product_id: int) -> Product:
        product = self.products.get_by_id(product_id)
        if product is None:
            raise NotFound(f"Product {product_id} not found")
        return product

    def create_product(self, product_data: dict) -> Product:
        """
        Create a product and its inventory row

        Args:
            product_data: product fields plus optional quantity, batch_number,
                expiry_date and location for the initial stock

        Raises:
            ValidationError: If the SKU is already used
        """
        product_data = dict(product_data)
        stock = {
            'quantity': product_data.pop('quantity', 0) or 0,
            'reserved_quantity': 0,
            'batch_number': product_data.pop('batch_number', None),
            'expiry_date': product_data.pop('expiry_date', None),
            'location': product_data.pop('location', None),
        }
        with unit_of_work(self.db):
            if self.products.get_by_sku(product_data['sku']) is not None:
                raise ValidationError(f"SKU {product_data['sku']} already exists")
            product = self.products.create(product_data)
            self.inventory.create({'product_id': product.id, **stock})
        logger.info(f"Product {product.sku} created with {stock['quantity']} on hand")
        return product

    def update_product(self, product_id: int, update_data: dict) -> Product:
        """Update product fields; a new price affects only orders submitted later"""
        with unit_of_work(self.db):
            product = self.get_product(product_id)
            self.products.update(product, update_data)
        return product

    # Inventory

    def get_inventory(self, product_id: int) -> dict:
        self.get_product(product_id)
        return self.ledger.snapshot(product_id)

    def list_inventory(
        self,
        low_stock: bool = False,
        expiring_soon: bool = False,
        skip: int = 0,
        limit: int = 100
    ) -> tuple:
        """Inventory levels, optionally only low-stock and/or soon-expiring rows"""
        threshold = settings.LOW_STOCK_THRESHOLD if low_stock else None
        expiring_before = date.today() + timedelta(days=settings.EXPIRY_WARNING_DAYS) if expiring_soon else None
        rows = self.inventory.get_all(threshold, expiring_before, skip, limit)
        total = self.inventory.count(threshold, expiring_before)
        return [self.ledger.snapshot(row.product_id) for row in rows], total

    def update_inventory(self, product_id: int, update_data: dict) -> dict:
        """Manual stock count / metadata correction through the ledger"""
        with unit_of_work(self.db):
            self.get_product(product_id)
            self.ledger.adjust(product_id, **update_data)
        return self.ledger.snapshot(product_id)
