from __future__ import annotations

from typing import Any

from .models import Order, OrderItem


def _iso(value):
    return value.isoformat() if value else None


def serialize_item(item: OrderItem) -> dict[str, Any]:
    return {
        "id": str(item.id),
        "product_id": str(item.product_id) if item.product_id else None,
        "product_name": item.product_name,
        "category": item.category_name,
        "quantity": item.quantity,
        "price_paise": item.price_paise,
        "variant_index": item.variant_index,
        "dispatch_status": item.dispatch_status,
        "dispatched_at": _iso(item.dispatched_at),
        "delivered_at": _iso(item.delivered_at),
    }


def serialize_order(order: Order) -> dict[str, Any]:
    state = order.hostel_state
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "order_status": order.order_status,
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "amount_paise": order.amount_paise,
        "currency": order.currency,
        "user_details": order.user_details,
        "delivery_location": order.delivery_location,
        "hostel": state.label,
        "hostel_id": str(state.hostel_id) if state.hostel_id else None,
        "hostel_resolved": state.resolved,
        "items": [serialize_item(i) for i in order.items.all()],
        "created_at": _iso(order.created_at),
        "actual_delivery_time": _iso(order.actual_delivery_time),
    }
