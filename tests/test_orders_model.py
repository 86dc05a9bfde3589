import pytest

from apps.orders.models import UNKNOWN_CATEGORY, UNKNOWN_HOSTEL, Order


@pytest.mark.django_db
def test_order_number_and_initial_status_change(make_order):
    order = make_order()
    assert order.order_number.startswith("ORD")
    assert list(order.status_changes.values_list("status", "source")) == [("placed", "initial")]


@pytest.mark.django_db
def test_set_status_records_history(make_order):
    order = make_order()
    order.set_status(Order.STATUS_OUT_FOR_DELIVERY, source="test")
    order.set_status(Order.STATUS_OUT_FOR_DELIVERY, source="test")  # no-op transition
    order.set_status(Order.STATUS_DELIVERED, source="test", note="left at gate")
    statuses = list(order.status_changes.values_list("status", flat=True))
    assert statuses == ["placed", "out_for_delivery", "delivered"]
    assert order.status_changes.get(status="delivered").note == "left at gate"


@pytest.mark.django_db
def test_hostel_state_tagging(psg, make_order):
    resolved = make_order(hostel=psg, hostel_name="psg hostel")
    typed = make_order(hostel_name="Test Hostel ABC")
    blank = make_order()

    assert resolved.hostel_state.resolved is True
    assert resolved.hostel_state.label == "PSG"
    assert resolved.hostel_state.hostel_id == psg.id
    assert typed.hostel_state.resolved is False
    assert typed.hostel_state.label == "Test Hostel ABC"
    assert blank.hostel_state.label == UNKNOWN_HOSTEL


@pytest.mark.django_db
def test_item_category_fallback(brownie, make_order):
    order = make_order(items=[(brownie, 1), ("Loose Cookie", 2)])
    cats = {i.product_name: i.category_name for i in order.items.all()}
    assert cats == {"Brownie": "Cakes", "Loose Cookie": UNKNOWN_CATEGORY}


@pytest.mark.django_db
def test_cancel_and_refund_rules(make_order):
    order = make_order(status=Order.STATUS_PLACED, payment_status="paid")
    assert order.can_be_cancelled()
    assert not order.can_be_refunded()
    order.set_status(Order.STATUS_CANCELLED)
    assert order.can_be_refunded()
    assert not order.can_be_cancelled()
