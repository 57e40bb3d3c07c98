"""Tests for return requests, receipt, restocking and refunds."""

import pytest
from datetime import date
from decimal import Decimal

from pharmaflow.exceptions import InvalidReturnRequest, InvalidTransition, ValidationError


def deliver(tracker, order, quantities):
    delivery = tracker.schedule_delivery(order.id, "courier-7", date.today())
    return tracker.record_delivery(delivery.id, quantities)


@pytest.fixture
def delivered_order(approved_order, tracker):
    amx_item, ins_item = approved_order.items
    return deliver(tracker, approved_order, {amx_item.id: 10, ins_item.id: 5})


def run_return(returns, order, lines, conditions):
    """Request, approve, receive and process a return in one go"""
    return_ = returns.request_return(order.id, lines, reason="Customer return")
    returns.decide_return(return_.id, True, actor="returns-desk")
    by_order_item = {item.order_item_id: item.id for item in return_.items}
    returns.receive_return(
        return_.id, {by_order_item[oid]: condition for oid, condition in conditions.items()}
    )
    return returns.process_return(return_.id, actor="returns-desk")


class TestRequestReturn:
    def test_more_than_delivered_is_refused(self, delivered_order, returns):
        amx_item = delivered_order.items[0]
        with pytest.raises(InvalidReturnRequest):
            returns.request_return(delivered_order.id, [{"order_item_id": amx_item.id, "quantity": 11}])
        _, total = returns.list_returns(order_id=delivered_order.id)
        assert total == 0

    def test_undelivered_order_is_not_returnable(self, approved_order, returns):
        with pytest.raises(InvalidReturnRequest):
            returns.request_return(approved_order.id, [{"order_item_id": approved_order.items[0].id, "quantity": 1}])

    def test_open_returns_count_against_returnable(self, delivered_order, returns):
        amx_item = delivered_order.items[0]
        returns.request_return(delivered_order.id, [{"order_item_id": amx_item.id, "quantity": 6}])

        with pytest.raises(InvalidReturnRequest):
            returns.request_return(delivered_order.id, [{"order_item_id": amx_item.id, "quantity": 5}])
        second = returns.request_return(delivered_order.id, [{"order_item_id": amx_item.id, "quantity": 4}])
        assert second.status == "requested"
        assert second.return_number.startswith("RET-")

    def test_duplicate_lines_are_summed(self, delivered_order, returns):
        amx_item = delivered_order.items[0]
        with pytest.raises(InvalidReturnRequest):
            returns.request_return(delivered_order.id, [
                {"order_item_id": amx_item.id, "quantity": 6},
                {"order_item_id": amx_item.id, "quantity": 5},
            ])

    def test_rejected_return_frees_quantity(self, delivered_order, returns):
        amx_item = delivered_order.items[0]
        first = returns.request_return(delivered_order.id, [{"order_item_id": amx_item.id, "quantity": 10}])
        rejected = returns.decide_return(first.id, False, actor="returns-desk")
        assert rejected.status == "rejected"

        again = returns.request_return(delivered_order.id, [{"order_item_id": amx_item.id, "quantity": 10}])
        assert again.status == "requested"

    def test_item_of_other_order_is_refused(self, delivered_order, returns):
        with pytest.raises(InvalidReturnRequest):
            returns.request_return(delivered_order.id, [{"order_item_id": 9999, "quantity": 1}])

    def test_missing_order_item_id(self, delivered_order, returns):
        with pytest.raises(ValidationError):
            returns.request_return(delivered_order.id, [{"quantity": 1}])
        _, total = returns.list_returns(order_id=delivered_order.id)
        assert total == 0

    def test_non_positive_quantity(self, delivered_order, returns):
        with pytest.raises(ValidationError):
            returns.request_return(delivered_order.id, [{"order_item_id": delivered_order.items[0].id, "quantity": 0}])


class TestReturnLifecycle:
    def test_refund_and_restock_by_condition(self, delivered_order, returns, ledger, amoxicillin, insulin, publisher):
        amx_item, ins_item = delivered_order.items
        processed = run_return(
            returns, delivered_order,
            [{"order_item_id": amx_item.id, "quantity": 4}, {"order_item_id": ins_item.id, "quantity": 5}],
            {amx_item.id: "good", ins_item.id: "damaged"},
        )

        assert processed.status == "processed"
        assert processed.refund_amount == Decimal("551.95")
        assert processed.processed_by == "returns-desk"
        # Good units are back on hand, damaged ones written off
        assert ledger.get(amoxicillin.id).quantity == 94
        assert ledger.get(insulin.id).quantity == 15
        assert returns.get_order(delivered_order.id).status == "delivered"

        events = publisher.of_type("ReturnProcessed")
        assert len(events) == 1
        assert events[0]["data"]["refund_amount"] == "551.95"

    def test_full_return_closes_out_order(self, delivered_order, returns, ledger, amoxicillin):
        amx_item, ins_item = delivered_order.items
        run_return(
            returns, delivered_order,
            [{"order_item_id": amx_item.id, "quantity": 10}, {"order_item_id": ins_item.id, "quantity": 5}],
            {amx_item.id: "good", ins_item.id: "expired"},
        )

        order = returns.get_order(delivered_order.id)
        assert order.status == "returned"
        assert order.history[-1].to_status == "returned"
        assert ledger.get(amoxicillin.id).quantity == 100

    def test_return_after_partial_delivery_releases_remainder(
        self, approved_order, tracker, returns, ledger, amoxicillin, insulin
    ):
        amx_item = approved_order.items[0]
        deliver(tracker, approved_order, {amx_item.id: 4})

        run_return(returns, approved_order, [{"order_item_id": amx_item.id, "quantity": 4}], {amx_item.id: "good"})

        assert returns.get_order(approved_order.id).status == "returned"
        amx = ledger.get(amoxicillin.id)
        assert (amx.quantity, amx.reserved_quantity) == (100, 0)
        ins = ledger.get(insulin.id)
        assert (ins.quantity, ins.reserved_quantity) == (20, 0)

    def test_return_of_completed_order(self, delivered_order, order_service, returns):
        order_service.finalize_order(delivered_order.id, actor="ops")
        amx_item, ins_item = delivered_order.items
        run_return(
            returns, delivered_order,
            [{"order_item_id": amx_item.id, "quantity": 10}, {"order_item_id": ins_item.id, "quantity": 5}],
            {amx_item.id: "good", ins_item.id: "good"},
        )
        assert returns.get_order(delivered_order.id).status == "returned"

    def test_receipt_requires_every_condition(self, delivered_order, returns):
        amx_item, ins_item = delivered_order.items
        return_ = returns.request_return(delivered_order.id, [
            {"order_item_id": amx_item.id, "quantity": 1},
            {"order_item_id": ins_item.id, "quantity": 1},
        ])
        returns.decide_return(return_.id, True)

        with pytest.raises(ValidationError):
            returns.receive_return(return_.id, {return_.items[0].id: "good"})
        assert returns.get_return(return_.id).status == "approved"

    def test_unknown_condition(self, delivered_order, returns):
        return_ = returns.request_return(delivered_order.id, [
            {"order_item_id": delivered_order.items[0].id, "quantity": 1}
        ])
        returns.decide_return(return_.id, True)
        with pytest.raises(ValidationError):
            returns.receive_return(return_.id, {return_.items[0].id: "opened"})

    def test_steps_cannot_be_skipped(self, delivered_order, returns):
        return_ = returns.request_return(delivered_order.id, [
            {"order_item_id": delivered_order.items[0].id, "quantity": 1}
        ])
        with pytest.raises(InvalidTransition):
            returns.process_return(return_.id)
        with pytest.raises(InvalidTransition):
            returns.receive_return(return_.id, {return_.items[0].id: "good"})

        returns.decide_return(return_.id, False)
        with pytest.raises(InvalidTransition):
            returns.decide_return(return_.id, True)
