import pytest

from apps.locations.services import upsert_mapping
from apps.orders.grouping import grouped_pending_orders
from apps.orders.models import UNKNOWN_CATEGORY, UNKNOWN_HOSTEL, Order


def by_hostel(groups):
    return {g["hostel"]: g for g in groups}


@pytest.mark.django_db
def test_grouping_shape_and_counts(psg, brownie, make_order):
    o1 = make_order(hostel=psg, items=[(brownie, 2)], delivery_location="PSG main gate", age_minutes=30)
    o2 = make_order(hostel_name="PSG", items=[(brownie, 1), ("Loose Cookie", 1)], delivery_location="PSG back gate")
    o3 = make_order(items=[("Loose Cookie", 1)], delivery_location="")
    make_order(hostel=psg, items=[(brownie, 5)], status=Order.STATUS_DELIVERED)

    groups = by_hostel(grouped_pending_orders())
    assert set(groups) == {"PSG", UNKNOWN_HOSTEL}

    psg_group = groups["PSG"]
    assert psg_group["hostel_id"] == str(psg.id)
    assert psg_group["resolved"] is False
    assert psg_group["unresolved_orders"] == 1
    assert psg_group["delivery_locations"] == ["PSG main gate", "PSG back gate"]
    assert psg_group["delivery_location"] == "PSG main gate"
    assert psg_group["total_orders"] == 3

    cats = {c["category"]: c for c in psg_group["categories"]}
    assert set(cats) == {"Cakes", UNKNOWN_CATEGORY}
    (brownie_row,) = cats["Cakes"]["products"]
    assert brownie_row["product_name"] == "Brownie"
    assert brownie_row["product_image"] == brownie.image_url
    assert brownie_row["order_count"] == 2
    assert brownie_row["total_quantity"] == 3
    assert brownie_row["order_ids"] == [str(o1.id), str(o2.id)]

    unknown = groups[UNKNOWN_HOSTEL]
    assert unknown["delivery_locations"] == []
    assert unknown["categories"][0]["products"][0]["order_ids"] == [str(o3.id)]


@pytest.mark.django_db
def test_hostel_total_equals_sum_of_categories(psg, kpr, brownie, make_order):
    make_order(hostel=psg, items=[(brownie, 1), ("Tea", 3), ("Samosa", 2)])
    make_order(hostel=kpr, items=[("Tea", 1)])
    make_order(hostel_name="Lone Hostel", items=[(brownie, 1), (brownie, 1)])

    for group in grouped_pending_orders():
        assert group["total_orders"] == sum(c["total_orders"] for c in group["categories"])
        for category in group["categories"]:
            assert category["total_orders"] == sum(p["order_count"] for p in category["products"])


@pytest.mark.django_db
def test_mapping_supplies_canonical_delivery_location(psg, brownie, make_order):
    make_order(hostel=psg, items=[(brownie, 1)], delivery_location="psg, room 4")
    upsert_mapping("PSG Hostel, Peelamedu", psg)

    (group,) = grouped_pending_orders()
    assert group["resolved"] is True
    assert group["delivery_location"] == "PSG Hostel, Peelamedu"
    assert group["delivery_locations"] == ["psg, room 4"]
