"""
Customer Repository - Data Access Layer
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from pharmaflow.models.customer import Customer


class CustomerRepository:
    """Repository for Customer CRUD operations"""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self, skip: int = 0, limit: int = 100) -> List[Customer]:
        """Get all customers with pagination"""
        return self.db.query(Customer).order_by(Customer.name).offset(skip).limit(limit).all()

    def get_by_id(self, customer_id: int) -> Optional[Customer]:
        """Get customer by ID"""
        return self.db.query(Customer).filter(Customer.id == customer_id).first()

    def create(self, customer_data: dict) -> Customer:
        """Stage a new customer; the caller commits"""
        customer = Customer(**customer_data)
        self.db.add(customer)
        self.db.flush()
        return customer

    def count(self) -> int:
        """Get total count of customers"""
        return self.db.query(Customer).count()
