"""
Return Repository - Data Access Layer
"""
from typing import Dict, Iterable, List, Optional
from sqlalchemy import func, desc
from sqlalchemy.orm import Session

from pharmaflow.models.returns import Return, ReturnItem


class ReturnRepository:
    """Repository for Return and ReturnItem rows"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, return_id: int) -> Optional[Return]:
        """Get return by ID"""
        return self.db.query(Return).filter(Return.id == return_id).first()

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        order_id: Optional[int] = None,
        status: Optional[str] = None
    ) -> List[Return]:
        """Get returns with pagination and optional filters"""
        return self._filtered(order_id, status).order_by(
            desc(Return.created_at), desc(Return.id)
        ).offset(skip).limit(limit).all()

    def count(self, order_id: Optional[int] = None, status: Optional[str] = None) -> int:
        return self._filtered(order_id, status).count()

    def _filtered(self, order_id, status):
        query = self.db.query(Return)
        if order_id:
            query = query.filter(Return.order_id == order_id)
        if status:
            query = query.filter(Return.status == status)
        return query

    def create(self, return_: Return) -> Return:
        """Stage a new return with its items; the caller commits"""
        self.db.add(return_)
        self.db.flush()
        return return_

    def returned_quantities(self, order_id: int, statuses: Iterable[str]) -> Dict[int, int]:
        """
        Sum of returned quantity per order item over returns in the given statuses

        Returns:
            {order_item_id: quantity}
        """
        rows = self.db.query(
            ReturnItem.order_item_id, func.sum(ReturnItem.quantity)
        ).join(Return, ReturnItem.return_id == Return.id).filter(
            Return.order_id == order_id,
            Return.status.in_(list(statuses))
        ).group_by(ReturnItem.order_item_id).all()
        return {order_item_id: int(total) for order_item_id, total in rows}
