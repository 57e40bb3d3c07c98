"""
Inventory Ledger - reservation bookkeeping per product

Every mutation is one conditional UPDATE evaluated by the database, so the
check and the write happen under the same row lock:

    reserve   reserved += q  WHERE quantity - reserved >= q
    release   reserved -= q  WHERE reserved >= q
    commit    quantity -= q, reserved -= q  WHERE reserved >= q
    restock   quantity += q  (condition == good only)

The ledger never commits. It runs inside the caller's transaction so that a
failure later in the same operation rolls the ledger change back too.
"""
import logging
from datetime import date, timedelta
from typing import Dict, Optional

from sqlalchemy.orm import Session

from pharmaflow.config import settings
from pharmaflow.exceptions import (
    NotFound,
    ValidationError,
    InsufficientStock,
    InvalidRelease,
    InvalidCommit,
)
from pharmaflow.models.product import Inventory
from pharmaflow.models.returns import ItemCondition
from pharmaflow.repositories.product_repository import InventoryRepository

logger = logging.getLogger(__name__)


def stock_status(available: int) -> str:
    """Classify available stock for dashboards and filters"""
    if available <= 0:
        return "out_of_stock"
    if available <= settings.CRITICAL_STOCK_THRESHOLD:
        return "critical"
    if available <= settings.LOW_STOCK_THRESHOLD:
        return "low_stock"
    return "in_stock"


def is_expiring_soon(inventory: Inventory, today: Optional[date] = None) -> bool:
    """True if the batch expires within the warning window; never for non-perishables"""
    if inventory.expiry_date is None:
        return False
    today = today or date.today()
    return inventory.expiry_date <= today + timedelta(days=settings.EXPIRY_WARNING_DAYS)


class InventoryLedger:
    """Atomic reserve / release / commit / restock operations"""

    def __init__(self, db: Session):
        self.db = db
        self.repository = InventoryRepository(db)

    def get(self, product_id: int) -> Inventory:
        """Get the inventory row of a product"""
        inventory = self.repository.get_by_product_id(product_id)
        if inventory is None:
            raise NotFound(f"No inventory for product {product_id}")
        return inventory

    def snapshot(self, product_id: int) -> dict:
        """Current levels of a product: quantity, reserved, available"""
        inventory = self.get(product_id)
        return {
            "product_id": product_id,
            "quantity": inventory.quantity,
            "reserved": inventory.reserved_quantity,
            "available": inventory.available,
            "stock_status": stock_status(inventory.available),
            "batch_number": inventory.batch_number,
            "expiry_date": inventory.expiry_date,
            "location": inventory.location,
            "expiring_soon": is_expiring_soon(inventory),
        }

    def reserve(self, product_id: int, quantity: int) -> Inventory:
        """
        Hold stock for a submitted order

        Raises:
            InsufficientStock: If quantity exceeds available
            NotFound: If the product has no inventory row
        """
        self._check_quantity(quantity)
        updated = self.repository.conditional_update(
            product_id,
            {"reserved_quantity": Inventory.reserved_quantity + quantity},
            Inventory.quantity - Inventory.reserved_quantity >= quantity,
        )
        inventory = self.get(product_id)
        if not updated:
            logger.info(
                f"Reservation refused for product {product_id}: "
                f"requested {quantity}, available {inventory.available}"
            )
            raise InsufficientStock(product_id, quantity, inventory.available)
        logger.debug(f"Reserved {quantity} of product {product_id} (available now {inventory.available})")
        return inventory

    def reserve_many(self, quantities: Dict[int, int]) -> None:
        """
        Reserve several products in ascending product id order

        The fixed order keeps concurrent multi-item submissions from
        deadlocking on row locks. The first failure propagates; rolling back
        the surrounding transaction undoes the reservations already made.
        """
        for product_id in sorted(quantities):
            self.reserve(product_id, quantities[product_id])

    def release(self, product_id: int, quantity: int) -> Inventory:
        """
        Drop a reservation (order rejected)

        Raises:
            InvalidRelease: If quantity exceeds reserved (internal error)
        """
        self._check_quantity(quantity)
        updated = self.repository.conditional_update(
            product_id,
            {"reserved_quantity": Inventory.reserved_quantity - quantity},
            Inventory.reserved_quantity >= quantity,
        )
        inventory = self.get(product_id)
        if not updated:
            self._alert("release", product_id, quantity, inventory)
            raise InvalidRelease(
                f"Cannot release {quantity} of product {product_id}: "
                f"only {inventory.reserved_quantity} reserved"
            )
        return inventory

    def commit(self, product_id: int, quantity: int) -> Inventory:
        """
        Turn a reservation into a stock decrement (goods delivered)

        Raises:
            InvalidCommit: If quantity exceeds reserved (internal error)
        """
        self._check_quantity(quantity)
        updated = self.repository.conditional_update(
            product_id,
            {
                "quantity": Inventory.quantity - quantity,
                "reserved_quantity": Inventory.reserved_quantity - quantity,
            },
            Inventory.reserved_quantity >= quantity,
        )
        inventory = self.get(product_id)
        if not updated:
            self._alert("commit", product_id, quantity, inventory)
            raise InvalidCommit(
                f"Cannot commit {quantity} of product {product_id}: "
                f"only {inventory.reserved_quantity} reserved"
            )
        return inventory

    def restock(self, product_id: int, quantity: int, condition: str) -> Inventory:
        """
        Put returned goods back on hand

        Only goods in good condition are restocked and become available
        immediately. Damaged and expired goods are logged and written off.
        """
        self._check_quantity(quantity)
        condition = ItemCondition(condition)
        if condition is not ItemCondition.GOOD:
            logger.info(f"Not restocking {quantity} of product {product_id}: condition {condition.value}")
            return self.get(product_id)

        updated = self.repository.conditional_update(
            product_id,
            {"quantity": Inventory.quantity + quantity},
        )
        if not updated:
            raise NotFound(f"No inventory for product {product_id}")
        logger.info(f"Restocked {quantity} of product {product_id}")
        return self.get(product_id)

    def adjust(
        self,
        product_id: int,
        quantity: Optional[int] = None,
        batch_number: Optional[str] = None,
        expiry_date: Optional[date] = None,
        location: Optional[str] = None
    ) -> Inventory:
        """
        Manual stock count / metadata correction

        Raises:
            ValidationError: If the new quantity is below what is reserved
        """
        values = {}
        conditions = []
        if quantity is not None:
            if quantity < 0:
                raise ValidationError("Quantity must be non-negative")
            values["quantity"] = quantity
            conditions.append(Inventory.reserved_quantity <= quantity)
        if batch_number is not None:
            values["batch_number"] = batch_number
        if expiry_date is not None:
            values["expiry_date"] = expiry_date
        if location is not None:
            values["location"] = location
        if not values:
            return self.get(product_id)

        updated = self.repository.conditional_update(product_id, values, *conditions)
        inventory = self.get(product_id)
        if not updated:
            raise ValidationError(
                f"Quantity {quantity} is below reserved quantity "
                f"{inventory.reserved_quantity} for product {product_id}"
            )
        logger.info(f"Inventory adjusted for product {product_id}: {values}")
        return inventory

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if quantity <= 0:
            raise ValidationError(f"Quantity must be positive, got {quantity}")

    @staticmethod
    def _alert(operation: str, product_id: int, quantity: int, inventory: Inventory) -> None:
        logger.critical(
            f"Ledger invariant violation on {operation}: product_id={product_id} "
            f"quantity={quantity} on_hand={inventory.quantity} "
            f"reserved={inventory.reserved_quantity}"
        )
