"""Tests for delivery scheduling and recording."""

import pytest
from datetime import date, timedelta

from pharmaflow.exceptions import InvalidTransition, OverDelivery, ValidationError

TOMORROW = date.today() + timedelta(days=1)


@pytest.fixture
def items(approved_order):
    """(amoxicillin item, insulin item) of the approved order"""
    return approved_order.items[0], approved_order.items[1]


class TestScheduleDelivery:
    def test_first_delivery_dispatches(self, approved_order, tracker, customer):
        delivery = tracker.schedule_delivery(approved_order.id, "courier-7", TOMORROW, actor="dispatch")

        order = tracker.get_order(approved_order.id)
        assert order.status == "in_transit"
        assert delivery.delivery_address == customer.address
        assert delivery.is_recorded is False

    def test_second_delivery_keeps_status(self, approved_order, tracker):
        tracker.schedule_delivery(approved_order.id, "courier-7", TOMORROW)
        second = tracker.schedule_delivery(
            approved_order.id, "courier-8", TOMORROW, delivery_address={"street": "Dock 4"}
        )

        assert tracker.get_order(approved_order.id).status == "in_transit"
        assert second.delivery_address == {"street": "Dock 4"}
        assert [d.courier_id for d in tracker.list_deliveries(approved_order.id)] == ["courier-7", "courier-8"]

    def test_unapproved_order_cannot_be_scheduled(self, draft_order, tracker):
        with pytest.raises(InvalidTransition):
            tracker.schedule_delivery(draft_order.id, "courier-7", TOMORROW)
        assert tracker.list_deliveries(draft_order.id) == []


class TestRecordDelivery:
    def test_partial_then_remainder_ends_delivered(self, approved_order, items, tracker, ledger, amoxicillin, insulin):
        amx_item, ins_item = items
        first = tracker.schedule_delivery(approved_order.id, "courier-7", TOMORROW)
        second = tracker.schedule_delivery(approved_order.id, "courier-7", TOMORROW)

        order = tracker.record_delivery(first.id, {amx_item.id: 4}, proof_of_delivery="sig-001")
        assert order.status == "partially_delivered"
        inventory = ledger.get(amoxicillin.id)
        assert (inventory.quantity, inventory.reserved_quantity) == (96, 6)

        order = tracker.record_delivery(second.id, {amx_item.id: 6, ins_item.id: 5})
        assert order.status == "delivered"
        assert all(item.outstanding_quantity == 0 for item in order.items)

        inventory = ledger.get(amoxicillin.id)
        assert (inventory.quantity, inventory.reserved_quantity) == (90, 0)
        inventory = ledger.get(insulin.id)
        assert (inventory.quantity, inventory.reserved_quantity) == (15, 0)

        statuses = [h.to_status for h in order.history[-3:]]
        assert statuses == ["in_transit", "partially_delivered", "delivered"]

    def test_single_complete_delivery(self, approved_order, items, tracker):
        amx_item, ins_item = items
        delivery = tracker.schedule_delivery(approved_order.id, "courier-7", TOMORROW)
        order = tracker.record_delivery(delivery.id, {amx_item.id: 10, ins_item.id: 5})

        assert order.status == "delivered"
        delivery = tracker.get_delivery(delivery.id)
        assert delivery.is_recorded is True
        assert sorted(line.quantity for line in delivery.lines) == [5, 10]

    def test_over_delivery_changes_nothing(self, approved_order, items, tracker, ledger, amoxicillin, insulin):
        amx_item, ins_item = items
        delivery = tracker.schedule_delivery(approved_order.id, "courier-7", TOMORROW)

        with pytest.raises(OverDelivery):
            tracker.record_delivery(delivery.id, {amx_item.id: 3, ins_item.id: 6})

        order = tracker.get_order(approved_order.id)
        assert order.status == "in_transit"
        assert [item.delivered_quantity for item in order.items] == [0, 0]
        assert ledger.get(amoxicillin.id).reserved_quantity == 10
        assert ledger.get(insulin.id).quantity == 20
        assert tracker.get_delivery(delivery.id).is_recorded is False

    def test_short_drop_completed_on_same_delivery(self, approved_order, items, tracker, ledger, insulin):
        amx_item, ins_item = items
        delivery = tracker.schedule_delivery(approved_order.id, "courier-7", TOMORROW)

        order = tracker.record_delivery(delivery.id, {amx_item.id: 10, ins_item.id: 3})
        assert order.status == "partially_delivered"
        assert ledger.get(insulin.id).reserved_quantity == 2
        with pytest.raises(InvalidTransition):
            tracker.schedule_delivery(approved_order.id, "courier-7", TOMORROW)

        order = tracker.record_delivery(delivery.id, {ins_item.id: 2}, proof_of_delivery="sig-002")
        assert order.status == "delivered"
        inventory = ledger.get(insulin.id)
        assert (inventory.quantity, inventory.reserved_quantity) == (15, 0)

        delivery = tracker.get_delivery(delivery.id)
        assert [line.quantity for line in delivery.lines] == [10, 3, 2]
        assert delivery.proof_of_delivery == "sig-002"

    def test_recording_again_cannot_exceed_remainder(self, approved_order, items, tracker):
        amx_item, _ = items
        delivery = tracker.schedule_delivery(approved_order.id, "courier-7", TOMORROW)
        tracker.record_delivery(delivery.id, {amx_item.id: 8})

        with pytest.raises(OverDelivery):
            tracker.record_delivery(delivery.id, {amx_item.id: 3})
        assert tracker.get_order(approved_order.id).items[0].delivered_quantity == 8

    def test_delivered_order_cannot_be_recorded(self, approved_order, items, tracker):
        amx_item, ins_item = items
        delivery = tracker.schedule_delivery(approved_order.id, "courier-7", TOMORROW)
        tracker.record_delivery(delivery.id, {amx_item.id: 10, ins_item.id: 5})

        with pytest.raises(InvalidTransition):
            tracker.record_delivery(delivery.id, {amx_item.id: 1})

    def test_foreign_item_rejected(self, approved_order, tracker):
        delivery = tracker.schedule_delivery(approved_order.id, "courier-7", TOMORROW)
        with pytest.raises(ValidationError):
            tracker.record_delivery(delivery.id, {9999: 1})

    @pytest.mark.parametrize("quantities", [{}, {1: 0}])
    def test_empty_or_zero_rejected(self, approved_order, tracker, quantities):
        delivery = tracker.schedule_delivery(approved_order.id, "courier-7", TOMORROW)
        with pytest.raises(ValidationError):
            tracker.record_delivery(delivery.id, quantities)

    def test_finalize_after_delivery(self, approved_order, items, tracker, order_service):
        amx_item, ins_item = items
        delivery = tracker.schedule_delivery(approved_order.id, "courier-7", TOMORROW)
        tracker.record_delivery(delivery.id, {amx_item.id: 10, ins_item.id: 5})

        order = order_service.finalize_order(approved_order.id, actor="ops")
        assert order.status == "completed"
