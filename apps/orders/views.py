from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from apps.accounts.auth import admin_required
from apps.common.http import json_api, json_body
from apps.locations.reconcile import analyze_hostel_data, reconcile_order_hostels

from . import dispatch
from .grouping import grouped_pending_orders
from .serializers import serialize_order


@require_GET
@admin_required
@json_api("Failed to fetch grouped orders")
def orders_grouped(request):
    return JsonResponse({"results": grouped_pending_orders()})


@require_GET
@admin_required
@json_api("Failed to fetch orders")
def orders_individual(request):
    return JsonResponse({"results": [serialize_order(o) for o in dispatch.individual_pending_orders()]})


@require_GET
@admin_required
@json_api("Failed to fetch order statistics")
def orders_stats(request):
    return JsonResponse(dispatch.order_stats())


@require_POST
@admin_required
@json_api("Failed to dispatch orders")
def orders_dispatch(request):
    data = json_body(request)
    result = dispatch.dispatch_orders(
        data.get("hostel"),
        data.get("category"),
        data.get("productName") or data.get("product_name"),
        data.get("count"),
    )
    return JsonResponse(result.as_dict())


def _item_ids(data):
    return data.get("orderId") or data.get("order_id"), data.get("itemId") or data.get("item_id")


@require_POST
@admin_required
@json_api("Failed to dispatch item")
def item_dispatch(request):
    order = dispatch.dispatch_item(*_item_ids(json_body(request)))
    return JsonResponse({"message": "Item dispatched successfully", "order": serialize_order(order)})


@require_POST
@admin_required
@json_api("Failed to mark item as delivered")
def item_deliver(request):
    order = dispatch.mark_item_delivered(*_item_ids(json_body(request)))
    return JsonResponse({"message": "Item marked as delivered", "order": serialize_order(order)})


@require_POST
@admin_required
@json_api("Error during hostel ID migration")
def migrate_hostel_ids(request):
    result = reconcile_order_hostels()
    return JsonResponse(
        {"success": True, "message": "Hostel ID migration completed", "result": result.as_dict()}
    )


@require_GET
@admin_required
@json_api("Failed to analyze hostel data")
def analyze_hostel_data_view(request):
    return JsonResponse(analyze_hostel_data())
