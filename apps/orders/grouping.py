from __future__ import annotations

from typing import Any

from django.db.models import Prefetch

from apps.locations.models import DeliveryLocationMapping

from .models import Order, OrderItem


def _placed_orders():
    items = OrderItem.objects.select_related("product__category").order_by("created_at", "pk")
    return (
        Order.objects.filter(order_status=Order.STATUS_PLACED)
        .select_related("hostel")
        .prefetch_related(Prefetch("items", queryset=items))
        .order_by("created_at", "pk")
    )


def _mapping_lookups() -> tuple[dict, dict]:
    by_hostel: dict = {}
    by_name: dict[str, str] = {}
    mappings = DeliveryLocationMapping.objects.filter(is_active=True).order_by("created_at", "pk")
    for m in mappings:
        by_hostel.setdefault(m.hostel_id, m.delivery_location)
        by_name.setdefault(m.hostel_name.strip().lower(), m.delivery_location)
    return by_hostel, by_name


def grouped_pending_orders() -> list[dict[str, Any]]:
    """Placed orders bucketed hostel → category → product for bulk dispatch.

    Counts are per cart line, so a hostel's `total_orders` is the sum of its
    categories' `total_orders`. Every raw delivery string seen for a hostel is
    kept in `delivery_locations`; `delivery_location` is the mapped canonical
    string when one exists, else the first one seen.
    """
    hostels: dict[str, dict[str, Any]] = {}

    for order in _placed_orders():
        state = order.hostel_state
        group = hostels.get(state.label)
        if group is None:
            group = hostels[state.label] = {
                "hostel": state.label,
                "hostel_id": None,
                "resolved": True,
                "unresolved_orders": 0,
                "delivery_locations": [],
                "total_orders": 0,
                "categories": {},
            }
        if state.resolved:
            group["hostel_id"] = group["hostel_id"] or state.hostel_id
        else:
            group["resolved"] = False
            group["unresolved_orders"] += 1
        raw_location = (order.delivery_location or "").strip()
        if raw_location and raw_location not in group["delivery_locations"]:
            group["delivery_locations"].append(raw_location)

        for item in order.items.all():
            category_name = item.category_name
            category = group["categories"].setdefault(
                category_name, {"category": category_name, "total_orders": 0, "products": {}}
            )
            product = category["products"].get(item.product_name)
            if product is None:
                product = category["products"][item.product_name] = {
                    "product_name": item.product_name,
                    "product_id": str(item.product_id) if item.product_id else None,
                    "product_image": item.product.image_url if item.product_id else "",
                    "order_count": 0,
                    "total_quantity": 0,
                    "order_ids": [],
                }
            product["order_count"] += 1
            product["total_quantity"] += item.quantity
            order_id = str(order.id)
            if order_id not in product["order_ids"]:
                product["order_ids"].append(order_id)
            category["total_orders"] += 1
            group["total_orders"] += 1

    by_hostel, by_name = _mapping_lookups()
    result = []
    for group in hostels.values():
        mapped = by_hostel.get(group["hostel_id"]) if group["hostel_id"] else None
        mapped = mapped or by_name.get(group["hostel"].lower())
        locations = group["delivery_locations"]
        result.append(
            {
                "hostel": group["hostel"],
                "hostel_id": str(group["hostel_id"]) if group["hostel_id"] else None,
                "resolved": group["resolved"],
                "unresolved_orders": group["unresolved_orders"],
                "delivery_location": mapped or (locations[0] if locations else ""),
                "delivery_locations": locations,
                "total_orders": group["total_orders"],
                "categories": [
                    {
                        "category": c["category"],
                        "total_orders": c["total_orders"],
                        "products": list(c["products"].values()),
                    }
                    for c in group["categories"].values()
                ],
            }
        )
    return result
