"""
Delivery API endpoints
"""
from collections import defaultdict

from fastapi import APIRouter, Depends

from pharmaflow.api.deps import get_delivery_tracker, http_error
from pharmaflow.exceptions import OrderEngineError
from pharmaflow.services.delivery_tracker import DeliveryTracker
from pharmaflow.schemas.delivery import DeliveryRecord, DeliveryResponse
from pharmaflow.schemas.order import OrderResponse

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


@router.get("/{delivery_id}", response_model=DeliveryResponse, summary="Get delivery by ID")
def get_delivery(delivery_id: int, tracker: DeliveryTracker = Depends(get_delivery_tracker)):
    try:
        return tracker.get_delivery(delivery_id)
    except OrderEngineError as e:
        raise http_error(e)


@router.post("/{delivery_id}/record", response_model=OrderResponse, summary="Record delivery")
def record_delivery(
    delivery_id: int,
    record: DeliveryRecord,
    tracker: DeliveryTracker = Depends(get_delivery_tracker)
):
    """
    Record the quantities handed over on a delivery

    Returns the order, now delivered or partially_delivered. Delivering more
    than the outstanding quantity of an item fails with 409.
    """
    quantities = defaultdict(int)
    for item in record.items:
        quantities[item.order_item_id] += item.quantity
    try:
        return tracker.record_delivery(delivery_id, dict(quantities), record.proof_of_delivery, record.actor)
    except OrderEngineError as e:
        raise http_error(e)
