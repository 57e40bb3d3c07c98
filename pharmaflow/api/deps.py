"""
Shared router dependencies and error translation
"""
from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from pharmaflow.database import get_db
from pharmaflow.exceptions import OrderEngineError
from pharmaflow.publishers.event_publisher import EventPublisher
from pharmaflow.services.approval_gate import ApprovalGate
from pharmaflow.services.catalog_service import CatalogService
from pharmaflow.services.delivery_tracker import DeliveryTracker
from pharmaflow.services.order_service import OrderService
from pharmaflow.services.return_processor import ReturnProcessor


def get_event_publisher() -> EventPublisher:
    """Dependency to get EventPublisher instance"""
    return EventPublisher()


def get_order_service(db: Session = Depends(get_db),
                      publisher: EventPublisher = Depends(get_event_publisher)) -> OrderService:
    """Dependency to get OrderService instance"""
    return OrderService(db, publisher)


def get_approval_gate(db: Session = Depends(get_db),
                      publisher: EventPublisher = Depends(get_event_publisher)) -> ApprovalGate:
    """Dependency to get ApprovalGate instance"""
    return ApprovalGate(db, publisher)


def get_delivery_tracker(db: Session = Depends(get_db),
                         publisher: EventPublisher = Depends(get_event_publisher)) -> DeliveryTracker:
    """Dependency to get DeliveryTracker instance"""
    return DeliveryTracker(db, publisher)


def get_return_processor(db: Session = Depends(get_db),
                         publisher: EventPublisher = Depends(get_event_publisher)) -> ReturnProcessor:
    """Dependency to get ReturnProcessor instance"""
    return ReturnProcessor(db, publisher)


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency to get CatalogService instance"""
    return CatalogService(db)


def http_error(exc: OrderEngineError) -> HTTPException:
    """Translate a domain exception into an HTTP error"""
    return HTTPException(status_code=exc.status_code, detail=str(exc))
