"""
Approval Gate - inventory approval, then accounting approval

An order reaches `approved` only through
pending_inventory -> inventory_approved -> pending_accounting -> approved.
Inventory rejection ends the pipeline without involving accounting. Role
checks on the actor belong to the caller.
"""
import logging
from typing import Optional

from pharmaflow.config import settings
from pharmaflow.models.order import Order
from pharmaflow.services.base import WorkflowService

logger = logging.getLogger(__name__)


class ApprovalGate(WorkflowService):
    """Sequences the two approval steps"""

    def __init__(self, db, event_publisher=None, auto_forward: Optional[bool] = None):
        super().__init__(db, event_publisher)
        self.auto_forward = settings.AUTO_FORWARD_TO_ACCOUNTING if auto_forward is None else auto_forward

    def decide_inventory(
        self,
        order_id: int,
        approve: bool,
        actor: str,
        note: Optional[str] = None,
        expected_version: Optional[int] = None
    ) -> Order:
        """
        Inventory team decision on a pending order

        Approval moves the order to inventory_approved and, with auto-forward
        on, straight on to pending_accounting in the same transaction.
        Rejection releases every reservation.

        Raises:
            InvalidTransition: If the order is not pending_inventory
        """
        with self.transaction():
            order = self.get_order(order_id)
            if approve:
                self.state_machine.fire(order, "approve_inventory", actor, note, expected_version)
                if self.auto_forward:
                    self.state_machine.fire(order, "forward_to_accounting", actor)
            else:
                self.state_machine.fire(order, "reject_inventory", actor, note, expected_version)
        return order

    def forward_to_accounting(
        self,
        order_id: int,
        actor: str,
        note: Optional[str] = None,
        expected_version: Optional[int] = None
    ) -> Order:
        """Hand an inventory-approved order to accounting"""
        with self.transaction():
            order = self.get_order(order_id)
            self.state_machine.fire(order, "forward_to_accounting", actor, note, expected_version)
        return order

    def decide_accounting(
        self,
        order_id: int,
        approve: bool,
        actor: str,
        note: Optional[str] = None,
        expected_version: Optional[int] = None
    ) -> Order:
        """
        Accounting decision on an order that passed inventory approval

        Raises:
            InvalidTransition: If the order is not pending_accounting
        """
        trigger = "approve_accounting" if approve else "reject_accounting"
        with self.transaction():
            order = self.get_order(order_id)
            self.state_machine.fire(order, trigger, actor, note, expected_version)
        return order
