"""
Pydantic schemas for products and inventory
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import date, datetime


class ProductBase(BaseModel):
    """Base Product schema with common fields"""
    sku: str = Field(..., min_length=1, max_length=64, description="Stock keeping unit (unique)")
    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    category: Optional[str] = Field(None, max_length=100, description="Product category")
    price: float = Field(..., ge=0, description="Unit price")
    requires_prescription: bool = Field(False, description="Prescription-only medicine")


class ProductCreate(ProductBase):
    """Schema for creating a product together with its inventory row"""
    quantity: int = Field(0, ge=0, description="Initial quantity on hand")
    batch_number: Optional[str] = Field(None, max_length=100)
    expiry_date: Optional[date] = Field(None, description="Omit for non-perishable products")
    location: Optional[str] = Field(None, max_length=100)


class ProductUpdate(BaseModel):
    """Schema for updating a product (all fields optional, SKU is immutable)"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    price: Optional[float] = Field(None, ge=0)
    requires_prescription: Optional[bool] = None


class ProductResponse(ProductBase):
    """Schema for product response"""
    id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProductListResponse(BaseModel):
    """Schema for list of products response"""
    products: list[ProductResponse]
    total: int


class InventoryUpdate(BaseModel):
    """Schema for a manual stock count / metadata correction"""
    quantity: Optional[int] = Field(None, ge=0, description="New quantity on hand")
    batch_number: Optional[str] = Field(None, max_length=100)
    expiry_date: Optional[date] = None
    location: Optional[str] = Field(None, max_length=100)


class InventoryResponse(BaseModel):
    """Schema for inventory levels of one product"""
    product_id: int
    quantity: int
    reserved: int
    available: int
    stock_status: str
    batch_number: Optional[str] = None
    expiry_date: Optional[date] = None
    location: Optional[str] = None
    expiring_soon: bool = False


class InventoryListResponse(BaseModel):
    """Schema for list of inventory rows response"""
    inventory: list[InventoryResponse]
    total: int
