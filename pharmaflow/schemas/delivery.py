"""
Pydantic schemas for deliveries
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import date, datetime

from pharmaflow.schemas.customer import Address


class DeliverySchedule(BaseModel):
    """Schema for scheduling a delivery"""
    courier_id: str = Field(..., min_length=1, max_length=100)
    scheduled_date: date
    delivery_address: Optional[Address] = Field(
        None, description="Defaults to the customer's address"
    )
    notes: Optional[str] = None
    actor: str = Field("system", min_length=1, max_length=100)


class DeliveredQuantity(BaseModel):
    """Quantity of one order item handed over"""
    order_item_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)


class DeliveryRecord(BaseModel):
    """Schema for recording a completed courier run"""
    items: list[DeliveredQuantity] = Field(..., min_length=1)
    proof_of_delivery: Optional[str] = Field(None, max_length=500)
    actor: str = Field("system", min_length=1, max_length=100)


class DeliveryLineResponse(BaseModel):
    order_item_id: int
    quantity: int

    model_config = ConfigDict(from_attributes=True)


class DeliveryResponse(BaseModel):
    """Schema for delivery response"""
    id: int
    order_id: int
    courier_id: str
    scheduled_date: date
    delivered_date: Optional[datetime]
    delivery_address: Optional[Address]
    proof_of_delivery: Optional[str]
    notes: Optional[str]
    lines: list[DeliveryLineResponse]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
