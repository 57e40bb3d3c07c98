"""
Order Repository - Data Access Layer
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import desc

from pharmaflow.models.order import Order, OrderStatusHistory


class OrderRepository:
    """Repository for orders and their status history"""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ) -> List[Order]:
        """Get orders with pagination and optional filters"""
        query = self._filtered(status, customer_id, date_from, date_to)
        return query.options(selectinload(Order.items)).order_by(
            desc(Order.created_at), desc(Order.id)
        ).offset(skip).limit(limit).all()

    def count(
        self,
        status: Optional[str] = None,
        customer_id: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None
    ) -> int:
        """Get count of orders matching the filters"""
        return self._filtered(status, customer_id, date_from, date_to).count()

    def _filtered(self, status, customer_id, date_from, date_to):
        query = self.db.query(Order)
        if status:
            query = query.filter(Order.status == status)
        if customer_id:
            query = query.filter(Order.customer_id == customer_id)
        if date_from:
            query = query.filter(Order.created_at >= date_from)
        if date_to:
            query = query.filter(Order.created_at <= date_to)
        return query

    def get_by_id(self, order_id: int) -> Optional[Order]:
        """Get order by ID"""
        return self.db.query(Order).filter(Order.id == order_id).first()

    def create(self, order: Order) -> Order:
        """Stage a new order with its items; the caller commits"""
        self.db.add(order)
        self.db.flush()
        return order

    def get_history(self, order_id: int) -> List[OrderStatusHistory]:
        """Get status history of an order, oldest first"""
        return self.db.query(OrderStatusHistory).filter(
            OrderStatusHistory.order_id == order_id
        ).order_by(OrderStatusHistory.id).all()
