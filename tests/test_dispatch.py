import pickle

import pytest

from apps.notifications.models import Notification
from apps.orders import dispatch
from apps.orders.dispatch import DispatchError, dispatch_item, dispatch_orders, mark_item_delivered, order_stats
from apps.orders.models import UNKNOWN_CATEGORY, Order, OrderItem


@pytest.fixture
def three_psg_orders(psg, brownie, make_order):
    return [
        make_order(hostel=psg, items=[(brownie, 1)], age_minutes=30),
        make_order(hostel=psg, items=[(brownie, 2)], age_minutes=20),
        make_order(hostel=psg, items=[(brownie, 1)], age_minutes=10),
    ]


@pytest.mark.django_db
def test_dispatch_oldest_first_and_bounded(three_psg_orders):
    oldest, middle, newest = three_psg_orders
    res = dispatch_orders("PSG", "Cakes", "Brownie", 2)

    assert res.dispatched_count == 2
    assert res.order_ids == [str(oldest.id), str(middle.id)]
    assert set(Order.objects.filter(order_status=Order.STATUS_OUT_FOR_DELIVERY)) == {oldest, middle}
    newest.refresh_from_db()
    assert newest.order_status == Order.STATUS_PLACED

    statuses = list(oldest.status_changes.values_list("status", "source"))
    assert statuses == [("placed", "initial"), ("out_for_delivery", "dispatch")]
    assert OrderItem.objects.filter(dispatch_status=OrderItem.DISPATCH_DISPATCHED).count() == 2
    item = oldest.items.get()
    assert item.dispatch_status == OrderItem.DISPATCH_DISPATCHED
    assert item.dispatched_at is not None
    assert newest.items.get().dispatch_status == OrderItem.DISPATCH_PENDING
    assert res.as_dict()["message"] == "Orders dispatched successfully"


@pytest.mark.django_db
def test_dispatch_count_larger_than_available(three_psg_orders):
    res = dispatch_orders("PSG", "Cakes", "Brownie", 10)
    assert res.dispatched_count == 3
    with pytest.raises(DispatchError) as exc:
        dispatch_orders("PSG", "Cakes", "Brownie", 1)
    assert exc.value.status_code == 404


@pytest.mark.django_db
def test_dispatch_matches_typed_hostel_name_and_unknown_category(make_order):
    order = make_order(hostel_name="Lone Hostel", items=[("Loose Cookie", 1)])
    res = dispatch_orders("Lone Hostel", UNKNOWN_CATEGORY, "Loose Cookie", 1)
    assert res.order_ids == [str(order.id)]


@pytest.mark.django_db
def test_dispatch_404_messages(psg, brownie, make_order):
    make_order(hostel=psg, items=[(brownie, 1)])
    with pytest.raises(DispatchError) as exc:
        dispatch_orders("KPR", "Cakes", "Brownie", 1)
    assert exc.value.status_code == 404
    assert "placed" in exc.value.message

    with pytest.raises(DispatchError) as exc:
        dispatch_orders("PSG", "Drinks", "Brownie", 1)
    assert exc.value.status_code == 404
    assert exc.value.message == "No orders found matching the exact product and category criteria"


@pytest.mark.django_db
@pytest.mark.parametrize(
    "payload,message",
    [
        (("", "Cakes", "Brownie", 1), "All fields are required: hostel, category, productName, count"),
        (("PSG", "Cakes", "Brownie", None), "All fields are required: hostel, category, productName, count"),
        (("PSG", "Cakes", "Brownie", 0), "Count must be greater than 0"),
        (("PSG", "Cakes", "Brownie", -2), "Count must be greater than 0"),
        (("PSG", "Cakes", "Brownie", "two"), "Count must be a positive integer"),
        (("PSG", "Cakes", "Brownie", True), "Count must be a positive integer"),
        ((5, "Cakes", "Brownie", 1), "All fields are required: hostel, category, productName, count"),
        (("PSG", ["Cakes"], "Brownie", 1), "All fields are required: hostel, category, productName, count"),
    ],
)
def test_dispatch_validation(payload, message):
    with pytest.raises(DispatchError) as exc:
        dispatch_orders(*payload)
    assert exc.value.status_code == 400
    assert exc.value.message == message


@pytest.mark.django_db
def test_dispatch_enqueues_in_app_and_sms(psg, brownie, make_order):
    with_phone = make_order(hostel=psg, items=[(brownie, 1)], age_minutes=5)
    no_phone = make_order(hostel=psg, items=[(brownie, 1)], phone="")
    res = dispatch_orders("PSG", "Cakes", "Brownie", 2)
    assert res.notified == 2

    keys = set(Notification.objects.values_list("idempotency_key", flat=True))
    assert keys == {
        f"dispatch:{with_phone.id}:in_app",
        f"dispatch:{with_phone.id}:sms",
        f"dispatch:{no_phone.id}:in_app",
    }


@pytest.mark.django_db
def test_notification_failure_does_not_roll_back(three_psg_orders, monkeypatch):
    def broken(**kwargs):
        raise RuntimeError("queue down")

    monkeypatch.setattr(dispatch, "enqueue", broken)
    res = dispatch_orders("PSG", "Cakes", "Brownie", 3)
    assert res.dispatched_count == 3
    assert res.notified == 0
    assert Order.objects.filter(order_status=Order.STATUS_OUT_FOR_DELIVERY).count() == 3


@pytest.mark.django_db
def test_per_item_transitions_aggregate_order_status(psg, brownie, make_order):
    order = make_order(hostel=psg, items=[(brownie, 1), ("Tea", 1)])
    first, second = order.items.order_by("created_at", "pk")

    dispatch_item(order.id, first.id)
    order.refresh_from_db()
    assert order.order_status == Order.STATUS_PLACED

    dispatch_item(order.id, second.id)
    order.refresh_from_db()
    assert order.order_status == Order.STATUS_OUT_FOR_DELIVERY

    with pytest.raises(DispatchError):
        dispatch_item(order.id, second.id)

    mark_item_delivered(order.id, first.id)
    order.refresh_from_db()
    assert order.order_status == Order.STATUS_OUT_FOR_DELIVERY

    mark_item_delivered(order.id, second.id)
    order.refresh_from_db()
    assert order.order_status == Order.STATUS_DELIVERED
    assert order.actual_delivery_time is not None

    with pytest.raises(DispatchError) as exc:
        mark_item_delivered(order.id, second.id)
    assert exc.value.status_code == 400


@pytest.mark.django_db
def test_item_transition_errors(make_order):
    order = make_order(items=[("Tea", 1)])
    item = order.items.get()
    with pytest.raises(DispatchError) as exc:
        mark_item_delivered(order.id, item.id)
    assert exc.value.status_code == 400

    with pytest.raises(DispatchError) as exc:
        dispatch_item("not-a-uuid", item.id)
    assert exc.value.status_code == 404

    other = make_order(items=[("Coffee", 1)])
    with pytest.raises(DispatchError) as exc:
        dispatch_item(order.id, other.items.get().id)
    assert exc.value.status_code == 404

    order.set_status(Order.STATUS_CANCELLED)
    with pytest.raises(DispatchError) as exc:
        dispatch_item(order.id, item.id)
    assert exc.value.status_code == 400


@pytest.mark.django_db
def test_order_stats(make_order):
    make_order()
    make_order()
    make_order(status=Order.STATUS_DELIVERED)
    stats = order_stats()
    assert stats["total"] == 3
    assert stats["placed"] == 2
    assert stats["delivered"] == 1
    assert stats["cancelled"] == 0


@pytest.mark.django_db
def test_bulk_dispatched_item_cannot_be_dispatched_again(psg, brownie, make_order):
    order = make_order(hostel=psg, items=[(brownie, 1)])
    dispatch_orders("PSG", "Cakes", "Brownie", 1)
    with pytest.raises(DispatchError) as exc:
        dispatch_item(order.id, order.items.get().id)
    assert exc.value.message == "Item has already been dispatched"


@pytest.mark.django_db
def test_dispatch_conflict_when_orders_are_locked_elsewhere(three_psg_orders, monkeypatch):
    monkeypatch.setattr(dispatch, "_lock_placed", lambda order_ids, count: [])
    with pytest.raises(DispatchError) as exc:
        dispatch_orders("PSG", "Cakes", "Brownie", 2)
    assert exc.value.status_code == 409
    assert not Order.objects.filter(order_status=Order.STATUS_OUT_FOR_DELIVERY).exists()


@pytest.mark.django_db
def test_dispatch_update_is_guarded_on_placed(three_psg_orders, monkeypatch):
    oldest, middle, _ = three_psg_orders
    Order.objects.filter(pk=middle.pk).update(order_status=Order.STATUS_OUT_FOR_DELIVERY)
    # a stale lock result that still includes an order another dispatch already moved
    monkeypatch.setattr(dispatch, "_lock_placed", lambda order_ids, count: [oldest, middle])

    with pytest.raises(DispatchError) as exc:
        dispatch_orders("PSG", "Cakes", "Brownie", 2)
    assert exc.value.status_code == 409

    oldest.refresh_from_db()
    assert oldest.order_status == Order.STATUS_PLACED
    assert not oldest.status_changes.filter(source="dispatch").exists()
    assert oldest.items.get().dispatch_status == OrderItem.DISPATCH_PENDING

def test_dispatch_error_pickles_with_status():
    err = DispatchError("Count must be greater than 0", 400)
    assert err.args == ("Count must be greater than 0", 400)
    assert str(err) == "Count must be greater than 0"
    assert {err}

    copy = pickle.loads(pickle.dumps(err))
    assert (copy.message, copy.status_code) == (err.message, err.status_code)
