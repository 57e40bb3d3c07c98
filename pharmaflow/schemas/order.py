"""
Pydantic schemas for orders
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


class OrderItemCreate(BaseModel):
    """One requested line; the price is taken from the catalog"""
    product_id: int = Field(..., gt=0, description="Product ID")
    quantity: int = Field(..., gt=0, description="Quantity to order")


class OrderCreate(BaseModel):
    """Schema for creating a new draft order"""
    customer_id: int = Field(..., gt=0, description="Customer ID")
    items: list[OrderItemCreate] = Field(..., min_length=1, description="Order lines")
    sales_rep_id: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    actor: str = Field("system", min_length=1, max_length=100)


class OrderAction(BaseModel):
    """Schema for a status-changing action without a decision"""
    actor: str = Field(..., min_length=1, max_length=100, description="Who performs the action")
    note: Optional[str] = None
    expected_version: Optional[int] = Field(None, ge=1, description="Optimistic lock check")


class OrderDecision(OrderAction):
    """Schema for an approve/reject decision"""
    approve: bool


class OrderItemResponse(BaseModel):
    """Schema for order line response"""
    id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: float
    total_price: float
    delivered_quantity: int

    model_config = ConfigDict(from_attributes=True)


class StatusHistoryResponse(BaseModel):
    """Schema for status history entry"""
    id: int
    from_status: Optional[str]
    to_status: str
    actor: str
    note: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderResponse(BaseModel):
    """Schema for order response"""
    id: int
    order_number: str
    customer_id: int
    sales_rep_id: Optional[str]
    status: str
    total_amount: float
    notes: Optional[str]
    version: int
    items: list[OrderItemResponse]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderListResponse(BaseModel):
    """Schema for list of orders response"""
    orders: list[OrderResponse]
    total: int
