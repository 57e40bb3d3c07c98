"""
Services package
"""
from pharmaflow.services.inventory_ledger import InventoryLedger
from pharmaflow.services.order_state_machine import OrderStateMachine
from pharmaflow.services.order_service import OrderService
from pharmaflow.services.approval_gate import ApprovalGate
from pharmaflow.services.delivery_tracker import DeliveryTracker
from pharmaflow.services.return_processor import ReturnProcessor
from pharmaflow.services.catalog_service import CatalogService

__all__ = [
    "InventoryLedger",
    "OrderStateMachine",
    "OrderService",
    "ApprovalGate",
    "DeliveryTracker",
    "ReturnProcessor",
    "CatalogService",
]
