"""
Pydantic schemas for returns
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime

from pharmaflow.models.returns import ItemCondition


class ReturnItemCreate(BaseModel):
    order_item_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0)
    reason: Optional[str] = None


class ReturnCreate(BaseModel):
    """Schema for requesting a return"""
    order_id: int = Field(..., gt=0)
    items: list[ReturnItemCreate] = Field(..., min_length=1)
    reason: Optional[str] = None


class ReturnDecision(BaseModel):
    approve: bool
    actor: Optional[str] = Field(None, max_length=100)


class ReturnItemReceipt(BaseModel):
    """Condition of one returned item as found on receipt"""
    return_item_id: int = Field(..., gt=0)
    condition: ItemCondition


class ReturnReceive(BaseModel):
    """Schema for recording physical receipt of returned goods"""
    items: list[ReturnItemReceipt] = Field(..., min_length=1)
    actor: Optional[str] = Field(None, max_length=100)


class ReturnProcess(BaseModel):
    actor: Optional[str] = Field(None, max_length=100)


class ReturnItemResponse(BaseModel):
    id: int
    order_item_id: int
    product_id: int
    quantity: int
    reason: Optional[str]
    condition: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class ReturnResponse(BaseModel):
    """Schema for return response"""
    id: int
    order_id: int
    return_number: str
    reason: Optional[str]
    status: str
    refund_amount: Optional[float]
    processed_by: Optional[str]
    version: int
    items: list[ReturnItemResponse]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReturnListResponse(BaseModel):
    """Schema for list of returns response"""
    returns: list[ReturnResponse]
    total: int
