"""
Pydantic schemas for customers
"""
from pydantic import BaseModel, Field, EmailStr, ConfigDict
from typing import Optional
from datetime import datetime


class Address(BaseModel):
    """Postal address, also used as delivery address snapshot"""
    street: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., max_length=100)
    zip: str = Field(..., max_length=20)
    country: str = Field(..., min_length=1, max_length=100)


class CustomerCreate(BaseModel):
    """Schema for creating a customer"""
    name: str = Field(..., min_length=1, max_length=255, description="Customer name")
    email: Optional[EmailStr] = Field(None, description="Contact email address")
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[Address] = None
    credit_limit: Optional[float] = Field(None, ge=0)


class CustomerResponse(BaseModel):
    """Schema for customer response"""
    id: int
    name: str
    email: Optional[str]
    phone: Optional[str]
    address: Optional[Address]
    credit_limit: Optional[float]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CustomerListResponse(BaseModel):
    """Schema for list of customers response"""
    customers: list[CustomerResponse]
    total: int
