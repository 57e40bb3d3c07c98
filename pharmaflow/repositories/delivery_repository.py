"""
Delivery Repository - Data Access Layer
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from pharmaflow.models.delivery import Delivery, DeliveryLine


class DeliveryRepository:
    """Repository for Delivery rows"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, delivery_id: int) -> Optional[Delivery]:
        """Get delivery by ID"""
        return self.db.query(Delivery).filter(Delivery.id == delivery_id).first()

    def get_by_order(self, order_id: int) -> List[Delivery]:
        """Get deliveries of an order in scheduling order"""
        return self.db.query(Delivery).filter(
            Delivery.order_id == order_id
        ).order_by(Delivery.id).all()

    def create(self, delivery_data: dict) -> Delivery:
        """Stage a new delivery; the caller commits"""
        delivery = Delivery(**delivery_data)
        self.db.add(delivery)
        self.db.flush()
        return delivery

    def add_line(self, delivery: Delivery, order_item_id: int, quantity: int) -> DeliveryLine:
        line = DeliveryLine(order_item_id=order_item_id, quantity=quantity)
        delivery.lines.append(line)
        return line
