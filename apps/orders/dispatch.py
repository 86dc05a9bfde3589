"""Bulk and per-item dispatch transitions for placed orders."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Prefetch, Q
from django.utils import timezone

from apps.common.http import ServiceError
from apps.notifications.api import enqueue

from .models import UNKNOWN_CATEGORY, UNKNOWN_HOSTEL, Order, OrderItem, OrderStatusChange

log = logging.getLogger(__name__)


class DispatchError(ServiceError):
    pass


@dataclass
class DispatchResult:
    hostel: str
    category: str
    product: str
    dispatched_count: int = 0
    order_ids: list[str] = field(default_factory=list)
    notified: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {"message": "Orders dispatched successfully", **asdict(self)}


def _hostel_q(hostel: str) -> Q:
    q = Q(order__hostel__name=hostel) | Q(order__hostel__isnull=True, order__hostel_name=hostel)
    if hostel == UNKNOWN_HOSTEL:
        q |= Q(order__hostel__isnull=True, order__hostel_name="")
    return q


def _category_q(category: str) -> Q:
    if category == UNKNOWN_CATEGORY:
        return Q(product__isnull=True) | Q(product__category__isnull=True)
    return Q(product__category__name=category)


def _parse_count(raw) -> int:
    if isinstance(raw, bool):
        raise DispatchError("Count must be a positive integer", 400)
    try:
        count = int(raw)
    except (TypeError, ValueError):
        raise DispatchError("Count must be a positive integer", 400)
    if count <= 0:
        raise DispatchError("Count must be greater than 0", 400)
    return count


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _lock_placed(order_ids, count: int) -> list[Order]:
    return list(
        Order.objects.select_for_update(skip_locked=True)
        .filter(pk__in=order_ids, order_status=Order.STATUS_PLACED)
        .order_by("created_at", "pk")[:count]
    )


def _unique(values: Iterable) -> list:
    seen = set()
    out = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


def dispatch_orders(hostel: str, category: str, product_name: str, count) -> DispatchResult:
    """Move up to `count` placed orders for (hostel, category, product) out for delivery.

    Selection is oldest first by `created_at` (then pk). Candidate rows are
    locked with SKIP LOCKED and the status update is guarded on `placed`, so
    two concurrent calls never hand out the same order.
    """
    hostel, category, product_name = _text(hostel), _text(category), _text(product_name)
    if not (hostel and category and product_name) or count in (None, ""):
        raise DispatchError("All fields are required: hostel, category, productName, count", 400)
    count = _parse_count(count)

    base = OrderItem.objects.filter(_hostel_q(hostel), order__order_status=Order.STATUS_PLACED, product_name=product_name)
    if not base.exists():
        raise DispatchError('No orders with "placed" status found for the specified criteria', 404)
    matching = base.filter(_category_q(category))
    candidate_ids = _unique(matching.order_by("order__created_at", "order_id").values_list("order_id", flat=True))
    if not candidate_ids:
        raise DispatchError("No orders found matching the exact product and category criteria", 404)

    now = timezone.now()
    with transaction.atomic():
        locked = _lock_placed(candidate_ids, count)
        if not locked:
            raise DispatchError("Matching orders are already being dispatched", 409)
        ids = [o.pk for o in locked]
        item_ids = list(
            matching.filter(order_id__in=ids, dispatch_status=OrderItem.DISPATCH_PENDING).values_list("pk", flat=True)
        )
        moved = Order.objects.filter(pk__in=ids, order_status=Order.STATUS_PLACED).update(
            order_status=Order.STATUS_OUT_FOR_DELIVERY, updated_at=now
        )
        if moved != len(ids):
            raise DispatchError("Matching orders are already being dispatched", 409)
        OrderStatusChange.objects.bulk_create(
            [
                OrderStatusChange(
                    order_id=pk,
                    status=Order.STATUS_OUT_FOR_DELIVERY,
                    source="dispatch",
                    note=f"{product_name} ({category})"[:200],
                )
                for pk in ids
            ]
        )
        OrderItem.objects.filter(pk__in=item_ids).update(
            dispatch_status=OrderItem.DISPATCH_DISPATCHED, dispatched_at=now, updated_at=now
        )

    log.info("Dispatched %s order(s) of %r/%r to %r", len(ids), product_name, category, hostel)
    result = DispatchResult(
        hostel=hostel,
        category=category,
        product=product_name,
        dispatched_count=len(ids),
        order_ids=[str(pk) for pk in ids],
    )
    for order in locked:
        order.order_status = Order.STATUS_OUT_FOR_DELIVERY
    result.notified = notify_out_for_delivery(locked)
    return result


def notify_out_for_delivery(orders: Iterable[Order]) -> int:
    """Best effort: a failed notification never undoes a dispatch."""
    notified = 0
    for order in orders:
        payload = {"order_number": order.order_number, "status": order.order_status}
        try:
            if order.user_id:
                enqueue(
                    type="in_app",
                    to=str(order.user_id),
                    template_code="order_out_for_delivery",
                    payload=payload,
                    idempotency_key=f"dispatch:{order.id}:in_app",
                    user_id=order.user_id,
                    order=order,
                )
            phone = (order.user_details or {}).get("phone")
            if phone:
                enqueue(
                    type="sms",
                    to=phone,
                    template_code="order_out_for_delivery",
                    payload=payload,
                    idempotency_key=f"dispatch:{order.id}:sms",
                    user_id=order.user_id,
                    order=order,
                )
            notified += 1
        except Exception:
            log.warning("Failed to notify dispatch for order %s", order.order_number, exc_info=True)
    return notified


def _aggregate_order_status(order: Order, *, source: str) -> None:
    statuses = set(order.items.values_list("dispatch_status", flat=True))
    if not statuses:
        return
    if statuses == {OrderItem.DISPATCH_DELIVERED}:
        if order.order_status != Order.STATUS_DELIVERED:
            order.actual_delivery_time = timezone.now()
            order.set_status(Order.STATUS_DELIVERED, source=source, extra_fields=["actual_delivery_time"])
    elif OrderItem.DISPATCH_PENDING not in statuses:
        if order.order_status != Order.STATUS_OUT_FOR_DELIVERY:
            order.set_status(Order.STATUS_OUT_FOR_DELIVERY, source=source)


def _locked_order_item(order_id, item_id) -> tuple[Order, OrderItem]:
    if not order_id or not item_id:
        raise DispatchError("orderId and itemId are required", 400)
    try:
        order = Order.objects.select_for_update().get(pk=order_id)
    except (Order.DoesNotExist, ValidationError, ValueError):
        raise DispatchError("Order not found", 404)
    try:
        item = order.items.get(pk=item_id)
    except (OrderItem.DoesNotExist, ValidationError, ValueError):
        raise DispatchError("Item not found in order", 404)
    if order.order_status in (Order.STATUS_CANCELLED, Order.STATUS_DELIVERED):
        raise DispatchError(f"Order is already {order.order_status}", 400)
    return order, item


def dispatch_item(order_id, item_id) -> Order:
    with transaction.atomic():
        order, item = _locked_order_item(order_id, item_id)
        if item.dispatch_status != OrderItem.DISPATCH_PENDING:
            raise DispatchError("Item has already been dispatched", 400)
        item.dispatch_status = OrderItem.DISPATCH_DISPATCHED
        item.dispatched_at = timezone.now()
        item.save(update_fields=["dispatch_status", "dispatched_at", "updated_at"])
        _aggregate_order_status(order, source="dispatch_item")
    return order


def mark_item_delivered(order_id, item_id) -> Order:
    with transaction.atomic():
        order, item = _locked_order_item(order_id, item_id)
        if item.dispatch_status != OrderItem.DISPATCH_DISPATCHED:
            raise DispatchError("Only dispatched items can be marked as delivered", 400)
        item.dispatch_status = OrderItem.DISPATCH_DELIVERED
        item.delivered_at = timezone.now()
        item.save(update_fields=["dispatch_status", "delivered_at", "updated_at"])
        _aggregate_order_status(order, source="deliver_item")
    return order


def order_stats() -> dict[str, int]:
    stats = {"total": 0, **{code: 0 for code, _ in Order.STATUS_CHOICES}}
    rows = Order.objects.order_by().values("order_status").annotate(count=Count("id"))
    for row in rows:
        stats[row["order_status"]] = row["count"]
        stats["total"] += row["count"]
    return stats


def individual_pending_orders():
    """Placed and out-for-delivery orders with their lines, oldest first."""
    items = OrderItem.objects.select_related("product__category").order_by("created_at", "pk")
    return (
        Order.objects.filter(order_status__in=[Order.STATUS_PLACED, Order.STATUS_OUT_FOR_DELIVERY])
        .select_related("hostel", "user")
        .prefetch_related(Prefetch("items", queryset=items))
        .order_by("created_at", "pk")
    )
