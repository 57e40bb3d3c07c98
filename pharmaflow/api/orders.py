"""
Order API endpoints
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status, Query

from pharmaflow.api.deps import (
    get_order_service,
    get_approval_gate,
    get_delivery_tracker,
    http_error
)
from pharmaflow.exceptions import OrderEngineError
from pharmaflow.services.approval_gate import ApprovalGate
from pharmaflow.services.delivery_tracker import DeliveryTracker
from pharmaflow.services.order_service import OrderService
from pharmaflow.schemas.order import (
    OrderCreate,
    OrderAction,
    OrderDecision,
    OrderResponse,
    OrderListResponse,
    StatusHistoryResponse
)
from pharmaflow.schemas.delivery import DeliverySchedule, DeliveryResponse

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=OrderListResponse, summary="Get all orders")
def get_orders(
    skip: int = Query(0, ge=0, description="Number of orders to skip"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum number of orders to return"),
    status_filter: Optional[str] = Query(None, alias="status", description="Order status"),
    customer_id: Optional[int] = Query(None, ge=1),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    service: OrderService = Depends(get_order_service)
):
    """
    Retrieve orders with pagination and filters

    - **skip**: Number of orders to skip (default: 0)
    - **limit**: Maximum number of orders to return (default: 100, max: 1000)
    - **status**, **customer_id**, **date_from**, **date_to**: optional filters
    """
    orders, total = service.list_orders(skip, limit, status_filter, customer_id, date_from, date_to)
    return OrderListResponse(orders=[OrderResponse.model_validate(o) for o in orders], total=total)


@router.get("/{order_id}", response_model=OrderResponse, summary="Get order by ID")
def get_order(order_id: int, service: OrderService = Depends(get_order_service)):
    """Retrieve a specific order with its items"""
    try:
        return service.get_order(order_id)
    except OrderEngineError as e:
        raise http_error(e)


@router.get("/{order_id}/history", response_model=List[StatusHistoryResponse], summary="Get status history")
def get_order_history(order_id: int, service: OrderService = Depends(get_order_service)):
    """Status transitions of an order, oldest first"""
    try:
        return service.get_history(order_id)
    except OrderEngineError as e:
        raise http_error(e)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED, summary="Create order")
def create_order(order_data: OrderCreate, service: OrderService = Depends(get_order_service)):
    """
    Create a new draft order

    Prices are taken from the catalog; no stock is reserved until submission.

    - **customer_id**: Customer ID (required)
    - **items**: list of product_id / quantity (required, non-empty)
    """
    try:
        return service.create_order(
            customer_id=order_data.customer_id,
            items=[item.model_dump() for item in order_data.items],
            actor=order_data.actor,
            sales_rep_id=order_data.sales_rep_id,
            notes=order_data.notes
        )
    except OrderEngineError as e:
        raise http_error(e)


@router.post("/{order_id}/submit", response_model=OrderResponse, summary="Submit order")
def submit_order(order_id: int, action: OrderAction, service: OrderService = Depends(get_order_service)):
    """
    Submit a draft order; reserves stock for every item or fails with 409
    """
    try:
        return service.submit_order(order_id, action.actor, action.expected_version)
    except OrderEngineError as e:
        raise http_error(e)


@router.post("/{order_id}/inventory-decision", response_model=OrderResponse, summary="Inventory decision")
def decide_inventory(order_id: int, decision: OrderDecision, gate: ApprovalGate = Depends(get_approval_gate)):
    """Approve or reject an order pending inventory approval"""
    try:
        return gate.decide_inventory(
            order_id, decision.approve, decision.actor, decision.note, decision.expected_version
        )
    except OrderEngineError as e:
        raise http_error(e)


@router.post("/{order_id}/forward", response_model=OrderResponse, summary="Forward to accounting")
def forward_to_accounting(order_id: int, action: OrderAction, gate: ApprovalGate = Depends(get_approval_gate)):
    """Forward an inventory-approved order to accounting"""
    try:
        return gate.forward_to_accounting(order_id, action.actor, action.note, action.expected_version)
    except OrderEngineError as e:
        raise http_error(e)


@router.post("/{order_id}/accounting-decision", response_model=OrderResponse, summary="Accounting decision")
def decide_accounting(order_id: int, decision: OrderDecision, gate: ApprovalGate = Depends(get_approval_gate)):
    """Approve or reject an order pending accounting approval"""
    try:
        return gate.decide_accounting(
            order_id, decision.approve, decision.actor, decision.note, decision.expected_version
        )
    except OrderEngineError as e:
        raise http_error(e)


@router.post("/{order_id}/finalize", response_model=OrderResponse, summary="Finalize order")
def finalize_order(order_id: int, action: OrderAction, service: OrderService = Depends(get_order_service)):
    """Close a delivered order"""
    try:
        return service.finalize_order(order_id, action.actor, action.note, action.expected_version)
    except OrderEngineError as e:
        raise http_error(e)


@router.post(
    "/{order_id}/deliveries",
    response_model=DeliveryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Schedule delivery"
)
def schedule_delivery(
    order_id: int,
    schedule: DeliverySchedule,
    tracker: DeliveryTracker = Depends(get_delivery_tracker)
):
    """
    Schedule a delivery for an approved or in-transit order

    The first delivery moves the order to in_transit.
    """
    try:
        return tracker.schedule_delivery(
            order_id,
            schedule.courier_id,
            schedule.scheduled_date,
            schedule.delivery_address.model_dump() if schedule.delivery_address else None,
            schedule.notes,
            schedule.actor
        )
    except OrderEngineError as e:
        raise http_error(e)


@router.get("/{order_id}/deliveries", response_model=List[DeliveryResponse], summary="Get order deliveries")
def get_order_deliveries(order_id: int, tracker: DeliveryTracker = Depends(get_delivery_tracker)):
    try:
        return tracker.list_deliveries(order_id)
    except OrderEngineError as e:
        raise http_error(e)
