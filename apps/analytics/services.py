"""Read-only aggregations behind the admin dashboard.

All money values are integer paise. Rates are percentages rounded to two
decimals and are 0 when there is nothing to divide by.
"""
from __future__ import annotations

from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from django.conf import settings
from django.db.models import Avg, CharField, Count, F, Q, Sum, Value
from django.db.models.functions import Coalesce, NullIf, TruncDay, TruncMonth, TruncWeek
from django.utils import timezone

from apps.common.http import ServiceError
from apps.locations.models import DeliveryLocationMapping
from apps.orders.models import UNKNOWN_CATEGORY, UNKNOWN_HOSTEL, Order, OrderItem

PERIODS = {"day": TruncDay, "week": TruncWeek, "month": TruncMonth}
DEFAULT_PERIOD = "week"
LOCATION_LIMIT = 20
CENT = Decimal("0.01")
PAID = Q(payment_status="paid")
PENDING_STATUSES = (
    Order.STATUS_PENDING,
    Order.STATUS_PLACED,
    Order.STATUS_CONFIRMED,
    Order.STATUS_PREPARING,
)


class AnalyticsParamError(ServiceError):
    pass


def parse_days(raw) -> int:
    if raw in (None, ""):
        return settings.ANALYTICS_DEFAULT_DAYS
    try:
        days = int(raw)
    except (TypeError, ValueError):
        raise AnalyticsParamError("days must be a positive integer", 400)
    if days <= 0:
        raise AnalyticsParamError("days must be a positive integer", 400)
    return days


def parse_limit(raw, default: int = 10) -> int:
    if raw in (None, ""):
        return default
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        raise AnalyticsParamError("limit must be a positive integer", 400)
    if limit <= 0:
        raise AnalyticsParamError("limit must be a positive integer", 400)
    return limit


def parse_period(raw) -> str:
    if raw in (None, ""):
        return DEFAULT_PERIOD
    return raw if raw in PERIODS else "day"


def _rate(part: int, whole: int) -> float:
    if not whole:
        return 0
    return float((Decimal(part * 100) / whole).quantize(CENT, rounding=ROUND_HALF_UP))


def _since(days: int):
    return timezone.now() - timedelta(days=days)


def _orders(days: int):
    return Order.objects.filter(created_at__gte=_since(days))


def _items(days: int):
    return OrderItem.objects.filter(order__created_at__gte=_since(days))


def _mapped_names() -> dict[str, str]:
    return dict(
        DeliveryLocationMapping.objects.filter(is_active=True).values_list("delivery_location", "hostel_name")
    )


def _fold_locations(days: int) -> list[dict[str, Any]]:
    """Per delivery string, then folded into hostel names through the mapping table."""
    names = _mapped_names()
    rows = (
        _orders(days)
        .order_by()
        .values("delivery_location")
        .annotate(
            order_count=Count("id"),
            total_revenue=Coalesce(Sum("amount_paise", filter=PAID), 0),
            amount_sum=Coalesce(Sum("amount_paise"), 0),
        )
    )
    groups: dict[str, dict[str, Any]] = {}
    for row in rows:
        raw = row["delivery_location"]
        name = names.get(raw.strip(), raw)
        group = groups.setdefault(
            name,
            {"hostel": name, "order_count": 0, "total_revenue": 0, "amount_sum": 0, "original_locations": []},
        )
        group["order_count"] += row["order_count"]
        group["total_revenue"] += row["total_revenue"]
        group["amount_sum"] += row["amount_sum"]
        group["original_locations"].append(raw)

    out = []
    for group in groups.values():
        amount_sum = group.pop("amount_sum")
        group["average_order_value"] = round(amount_sum / group["order_count"], 2) if group["order_count"] else 0
        out.append(group)
    out.sort(key=lambda g: (-g["order_count"], g["hostel"]))
    return out


def overview(days: int) -> dict[str, Any]:
    orders = _orders(days)
    revenue = orders.filter(PAID).aggregate(total=Coalesce(Sum("amount_paise"), 0), avg=Avg("amount_paise"))

    locations = _fold_locations(days)
    top_hostel = (
        {"hostel": locations[0]["hostel"], "order_count": locations[0]["order_count"]}
        if locations
        else {"hostel": "N/A", "order_count": 0}
    )

    product = (
        _items(days)
        .order_by()
        .values("product_name")
        .annotate(total_quantity=Sum("quantity"))
        .order_by("-total_quantity", "product_name")
        .first()
    )
    category = (
        _items(days)
        .filter(product__category__isnull=False)
        .order_by()
        .values("product__category__name")
        .annotate(order_count=Count("id"))
        .order_by("-order_count", "product__category__name")
        .first()
    )

    by_status = dict(orders.order_by().values_list("payment_status").annotate(count=Count("id")))
    attempts = sum(by_status.values())

    return {
        "total_orders": orders.count(),
        "total_revenue": revenue["total"],
        "average_order_value": round(revenue["avg"] or 0, 2),
        "top_hostel": top_hostel,
        "top_product": (
            {"product_name": product["product_name"], "total_quantity": product["total_quantity"]}
            if product
            else {"product_name": "N/A", "total_quantity": 0}
        ),
        "top_category": (
            {"category": category["product__category__name"], "order_count": category["order_count"]}
            if category
            else {"category": "N/A", "order_count": 0}
        ),
        "payment_success_rate": _rate(by_status.get("paid", 0), attempts),
        "period": days,
    }


def _bucket_label(bucket, period: str) -> str:
    if period == "week":
        year, week, _ = bucket.isocalendar()
        return f"{year}-W{week:02d}"
    if period == "month":
        return bucket.strftime("%Y-%m")
    return bucket.date().isoformat()


def orders_trend(days: int, period: str) -> list[dict[str, Any]]:
    trunc = PERIODS[period]
    rows = (
        _orders(days)
        .annotate(bucket=trunc("created_at"))
        .order_by()
        .values("bucket")
        .annotate(orders=Count("id"), revenue=Coalesce(Sum("amount_paise", filter=PAID), 0))
        .order_by("bucket")
    )
    return [
        {"date": _bucket_label(r["bucket"], period), "orders": r["orders"], "revenue": r["revenue"], "period": period}
        for r in rows
    ]


def orders_by_location(days: int) -> list[dict[str, Any]]:
    return _fold_locations(days)[:LOCATION_LIMIT]


def top_products(days: int, limit: int) -> list[dict[str, Any]]:
    rows = (
        _items(days)
        .order_by()
        .values("product_id", "product_name")
        .annotate(
            total_quantity=Sum("quantity"),
            total_revenue=Sum(F("quantity") * F("price_paise")),
            order_count=Count("id"),
            product_image=Coalesce("product__image_url", Value(""), output_field=CharField()),
        )
        .order_by("-total_quantity", "product_name")[:limit]
    )
    return [
        {
            "product_id": str(r["product_id"]) if r["product_id"] else None,
            "product_name": r["product_name"],
            "product_image": r["product_image"],
            "total_quantity": r["total_quantity"],
            "total_revenue": r["total_revenue"],
            "order_count": r["order_count"],
        }
        for r in rows
    ]


def category_performance(days: int) -> list[dict[str, Any]]:
    rows = (
        _items(days)
        .annotate(category=Coalesce("product__category__name", Value(UNKNOWN_CATEGORY)))
        .order_by()
        .values("category")
        .annotate(
            total_orders=Count("id"),
            total_quantity=Sum("quantity"),
            total_revenue=Sum(F("quantity") * F("price_paise")),
        )
        .order_by("-total_revenue", "category")
    )
    return list(rows)


def payment_methods(days: int) -> list[dict[str, Any]]:
    rows = (
        _orders(days)
        .order_by()
        .values("payment_method")
        .annotate(
            total_orders=Count("id"),
            total_revenue=Coalesce(Sum("amount_paise", filter=PAID), 0),
            successful_orders=Count("id", filter=PAID),
        )
        .order_by("-total_orders", "payment_method")
    )
    return [{**r, "success_rate": _rate(r["successful_orders"], r["total_orders"])} for r in rows]


def recent_orders(limit: int) -> list[dict[str, Any]]:
    orders = (
        Order.objects.select_related("user", "hostel")
        .prefetch_related("items")
        .order_by("-created_at", "-pk")[:limit]
    )
    return [
        {
            "id": str(o.id),
            "order_number": o.order_number,
            "user": (
                {"name": o.user.get_full_name() or o.user.get_username(), "email": o.user.email} if o.user else None
            ),
            "amount_paise": o.amount_paise,
            "payment_status": o.payment_status,
            "order_status": o.order_status,
            "delivery_location": o.delivery_location,
            "hostel": o.hostel_state.label,
            "item_count": len(o.items.all()),
            "created_at": o.created_at.isoformat(),
        }
        for o in orders
    ]


def hostel_performance(days: int) -> list[dict[str, Any]]:
    label = Coalesce(F("hostel__name"), NullIf(F("hostel_name"), Value("")), Value(UNKNOWN_HOSTEL))
    rows = (
        _orders(days)
        .annotate(label=label)
        .order_by()
        .values("label")
        .annotate(
            total_orders=Count("id"),
            resolved_orders=Count("hostel"),
            total_revenue=Coalesce(Sum("amount_paise"), 0),
            average_order_value=Avg("amount_paise"),
            completed_orders=Count("id", filter=Q(order_status=Order.STATUS_DELIVERED)),
            pending_orders=Count("id", filter=Q(order_status__in=PENDING_STATUSES)),
        )
        .order_by("-total_revenue", "label")[:LOCATION_LIMIT]
    )
    return [
        {
            "hostel": r["label"],
            "resolved": r["resolved_orders"] == r["total_orders"],
            "unresolved_orders": r["total_orders"] - r["resolved_orders"],
            "total_orders": r["total_orders"],
            "total_revenue": r["total_revenue"],
            "average_order_value": round(r["average_order_value"] or 0, 2),
            "completed_orders": r["completed_orders"],
            "pending_orders": r["pending_orders"],
            "completion_rate": _rate(r["completed_orders"], r["total_orders"]),
        }
        for r in rows
    ]
