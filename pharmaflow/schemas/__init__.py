"""
Schemas package
"""
from pharmaflow.schemas.customer import Address, CustomerCreate, CustomerResponse, CustomerListResponse
from pharmaflow.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    InventoryUpdate,
    InventoryResponse,
    InventoryListResponse
)
from pharmaflow.schemas.order import (
    OrderItemCreate,
    OrderCreate,
    OrderAction,
    OrderDecision,
    OrderResponse,
    OrderListResponse,
    StatusHistoryResponse
)
from pharmaflow.schemas.delivery import DeliverySchedule, DeliveryRecord, DeliveryResponse
from pharmaflow.schemas.returns import (
    ReturnCreate,
    ReturnDecision,
    ReturnReceive,
    ReturnProcess,
    ReturnResponse,
    ReturnListResponse
)

__all__ = [
    "Address",
    "CustomerCreate",
    "CustomerResponse",
    "CustomerListResponse",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ProductListResponse",
    "InventoryUpdate",
    "InventoryResponse",
    "InventoryListResponse",
    "OrderItemCreate",
    "OrderCreate",
    "OrderAction",
    "OrderDecision",
    "OrderResponse",
    "OrderListResponse",
    "StatusHistoryResponse",
    "DeliverySchedule",
    "DeliveryRecord",
    "DeliveryResponse",
    "ReturnCreate",
    "ReturnDecision",
    "ReturnReceive",
    "ReturnProcess",
    "ReturnResponse",
    "ReturnListResponse",
]
