"""Tests for the two-step approval pipeline."""

import pytest

from pharmaflow.exceptions import InvalidTransition, ConcurrentModification, NotFound
from pharmaflow.services.approval_gate import ApprovalGate


@pytest.fixture
def submitted_order(draft_order, order_service):
    return order_service.submit_order(draft_order.id, actor="sales-1")


class TestInventoryDecision:
    def test_rejection_releases_reservations(self, submitted_order, gate, ledger, amoxicillin, insulin):
        order = gate.decide_inventory(submitted_order.id, False, actor="inventory-1", note="Batch recalled")

        assert order.status == "inventory_rejected"
        assert ledger.get(amoxicillin.id).reserved_quantity == 0
        assert ledger.get(insulin.id).reserved_quantity == 0
        assert order.history[-1].note == "Batch recalled"

    def test_approval_forwards_to_accounting(self, submitted_order, gate, ledger, amoxicillin):
        order = gate.decide_inventory(submitted_order.id, True, actor="inventory-1")

        assert order.status == "pending_accounting"
        assert [h.to_status for h in order.history[-2:]] == ["inventory_approved", "pending_accounting"]
        # Still held for the order
        assert ledger.get(amoxicillin.id).reserved_quantity == 10

    def test_manual_forward(self, submitted_order, db_session, publisher):
        manual = ApprovalGate(db_session, publisher, auto_forward=False)
        order = manual.decide_inventory(submitted_order.id, True, actor="inventory-1")
        assert order.status == "inventory_approved"

        with pytest.raises(InvalidTransition):
            manual.decide_accounting(order.id, True, actor="accounting-1")

        order = manual.forward_to_accounting(order.id, actor="inventory-1")
        assert order.status == "pending_accounting"

    def test_decision_on_draft_is_invalid(self, draft_order, gate):
        with pytest.raises(InvalidTransition):
            gate.decide_inventory(draft_order.id, True, actor="inventory-1")
        assert gate.get_order(draft_order.id).status == "draft"

    def test_unknown_order(self, gate):
        with pytest.raises(NotFound):
            gate.decide_inventory(12345, True, actor="inventory-1")


class TestAccountingDecision:
    def test_approval(self, approved_order, ledger, insulin, publisher):
        assert approved_order.status == "approved"
        assert ledger.get(insulin.id).reserved_quantity == 5
        new_statuses = [e["data"]["new_status"] for e in publisher.of_type("OrderStatusChanged")]
        assert new_statuses == ["pending_inventory", "inventory_approved", "pending_accounting", "approved"]

    def test_rejection_releases_reservations(self, submitted_order, gate, ledger, amoxicillin, insulin, publisher):
        gate.decide_inventory(submitted_order.id, True, actor="inventory-1")
        order = gate.decide_accounting(submitted_order.id, False, actor="accounting-1", note="Credit hold")

        assert order.status == "rejected"
        assert ledger.get(amoxicillin.id).reserved_quantity == 0
        assert ledger.get(insulin.id).reserved_quantity == 0
        last = publisher.of_type("OrderStatusChanged")[-1]["data"]
        assert last["new_status"] == "rejected"
        assert last["terminal"] is True

    def test_accounting_before_inventory_is_invalid(self, submitted_order, gate):
        with pytest.raises(InvalidTransition):
            gate.decide_accounting(submitted_order.id, True, actor="accounting-1")
        assert gate.get_order(submitted_order.id).status == "pending_inventory"

    def test_decided_order_cannot_be_decided_again(self, approved_order, gate):
        with pytest.raises(InvalidTransition):
            gate.decide_accounting(approved_order.id, False, actor="accounting-1")

    def test_stale_version_is_refused(self, submitted_order, gate, ledger, amoxicillin):
        stale = submitted_order.version
        gate.decide_inventory(submitted_order.id, True, actor="inventory-1")

        with pytest.raises(ConcurrentModification):
            gate.decide_accounting(submitted_order.id, False, actor="accounting-1", expected_version=stale)
        assert gate.get_order(submitted_order.id).status == "pending_accounting"
        assert ledger.get(amoxicillin.id).reserved_quantity == 10
