"""
Product, inventory and customer API endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, status, Query

from pharmaflow.api.deps import get_catalog_service, http_error
from pharmaflow.exceptions import OrderEngineError
from pharmaflow.services.catalog_service import CatalogService
from pharmaflow.schemas.customer import CustomerCreate, CustomerResponse, CustomerListResponse
from pharmaflow.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse,
    InventoryUpdate,
    InventoryResponse,
    InventoryListResponse
)

router = APIRouter(prefix="/products", tags=["products"])
inventory_router = APIRouter(prefix="/inventory", tags=["inventory"])
customers_router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=ProductListResponse, summary="Get all products")
def get_products(
    skip: int = Query(0, ge=0, description="Number of products to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of products to return"),
    category: Optional[str] = Query(None),
    service: CatalogService = Depends(get_catalog_service)
):
    products, total = service.list_products(skip, limit, category)
    return ProductListResponse(products=[ProductResponse.model_validate(p) for p in products], total=total)


@router.get("/{product_id}", response_model=ProductResponse, summary="Get product by ID")
def get_product(product_id: int, service: CatalogService = Depends(get_catalog_service)):
    try:
        return service.get_product(product_id)
    except OrderEngineError as e:
        raise http_error(e)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED, summary="Create product")
def create_product(product_data: ProductCreate, service: CatalogService = Depends(get_catalog_service)):
    """
    Create a product with its inventory row

    - **sku**: unique stock keeping unit
    - **quantity**: initial quantity on hand (default 0)
    - **expiry_date**: omit for non-perishable products
    """
    try:
        return service.create_product(product_data.model_dump())
    except OrderEngineError as e:
        raise http_error(e)


@router.patch("/{product_id}", response_model=ProductResponse, summary="Update product")
def update_product(product_id: int, product_data: ProductUpdate,
                   service: CatalogService = Depends(get_catalog_service)):
    """
    Update product fields. Only provided fields are changed.

    A price change does not affect items of already submitted orders.
    """
    try:
        return service.update_product(product_id, product_data.model_dump(exclude_unset=True))
    except OrderEngineError as e:
        raise http_error(e)


@inventory_router.get("", response_model=InventoryListResponse, summary="Get inventory levels")
def get_inventory_levels(
    low_stock: bool = Query(False, description="Only rows at or below the low-stock threshold"),
    expiring_soon: bool = Query(False, description="Only rows expiring within the warning window"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: CatalogService = Depends(get_catalog_service)
):
    rows, total = service.list_inventory(low_stock, expiring_soon, skip, limit)
    return InventoryListResponse(inventory=[InventoryResponse(**row) for row in rows], total=total)


@inventory_router.get("/{product_id}", response_model=InventoryResponse, summary="Get product inventory")
def get_inventory(product_id: int, service: CatalogService = Depends(get_catalog_service)):
    """Quantity on hand, reserved and available for one product"""
    try:
        return InventoryResponse(**service.get_inventory(product_id))
    except OrderEngineError as e:
        raise http_error(e)


@inventory_router.put("/{product_id}", response_model=InventoryResponse, summary="Update inventory")
def update_inventory(product_id: int, inventory_data: InventoryUpdate,
                     service: CatalogService = Depends(get_catalog_service)):
    """
    Correct stock count or batch metadata

    The new quantity may not be lower than the reserved quantity (422).
    """
    try:
        return InventoryResponse(
            **service.update_inventory(product_id, inventory_data.model_dump(exclude_unset=True))
        )
    except OrderEngineError as e:
        raise http_error(e)


@customers_router.get("", response_model=CustomerListResponse, summary="Get all customers")
def get_customers(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: CatalogService = Depends(get_catalog_service)
):
    customers, total = service.list_customers(skip, limit)
    return CustomerListResponse(customers=[CustomerResponse.model_validate(c) for c in customers], total=total)


@customers_router.get("/{customer_id}", response_model=CustomerResponse, summary="Get customer by ID")
def get_customer(customer_id: int, service: CatalogService = Depends(get_catalog_service)):
    try:
        return service.get_customer(customer_id)
    except OrderEngineError as e:
        raise http_error(e)


@customers_router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED,
                       summary="Create customer")
def create_customer(customer_data: CustomerCreate, service: CatalogService = Depends(get_catalog_service)):
    return service.create_customer(customer_data.model_dump())
