"""
Return API endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, status, Query

from pharmaflow.api.deps import get_return_processor, http_error
from pharmaflow.exceptions import OrderEngineError
from pharmaflow.services.return_processor import ReturnProcessor
from pharmaflow.schemas.returns import (
    ReturnCreate,
    ReturnDecision,
    ReturnReceive,
    ReturnProcess,
    ReturnResponse,
    ReturnListResponse
)

router = APIRouter(prefix="/returns", tags=["returns"])


@router.get("", response_model=ReturnListResponse, summary="Get all returns")
def get_returns(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    order_id: Optional[int] = Query(None, ge=1),
    status_filter: Optional[str] = Query(None, alias="status"),
    processor: ReturnProcessor = Depends(get_return_processor)
):
    returns, total = processor.list_returns(skip, limit, order_id, status_filter)
    return ReturnListResponse(returns=[ReturnResponse.model_validate(r) for r in returns], total=total)


@router.get("/{return_id}", response_model=ReturnResponse, summary="Get return by ID")
def get_return(return_id: int, processor: ReturnProcessor = Depends(get_return_processor)):
    try:
        return processor.get_return(return_id)
    except OrderEngineError as e:
        raise http_error(e)


@router.post("", response_model=ReturnResponse, status_code=status.HTTP_201_CREATED, summary="Request return")
def request_return(return_data: ReturnCreate, processor: ReturnProcessor = Depends(get_return_processor)):
    """
    Request a return for a delivered order

    Each quantity must not exceed what was delivered minus what is already
    being returned for that item (422 otherwise).
    """
    try:
        return processor.request_return(
            return_data.order_id,
            [item.model_dump() for item in return_data.items],
            return_data.reason
        )
    except OrderEngineError as e:
        raise http_error(e)


@router.post("/{return_id}/decision", response_model=ReturnResponse, summary="Approve or reject return")
def decide_return(return_id: int, decision: ReturnDecision,
                  processor: ReturnProcessor = Depends(get_return_processor)):
    try:
        return processor.decide_return(return_id, decision.approve, decision.actor)
    except OrderEngineError as e:
        raise http_error(e)


@router.post("/{return_id}/receive", response_model=ReturnResponse, summary="Receive returned goods")
def receive_return(return_id: int, receipt: ReturnReceive,
                   processor: ReturnProcessor = Depends(get_return_processor)):
    """Record receipt and the condition (good, damaged, expired) of every item"""
    conditions = {item.return_item_id: item.condition.value for item in receipt.items}
    try:
        return processor.receive_return(return_id, conditions, receipt.actor)
    except OrderEngineError as e:
        raise http_error(e)


@router.post("/{return_id}/process", response_model=ReturnResponse, summary="Process return")
def process_return(return_id: int, body: Optional[ReturnProcess] = None,
                   processor: ReturnProcessor = Depends(get_return_processor)):
    """Restock items in good condition and compute the refund"""
    try:
        return processor.process_return(return_id, body.actor if body else None)
    except OrderEngineError as e:
        raise http_error(e)
