from django.http import JsonResponse
from django.views.decorators.http import require_GET

from apps.accounts.auth import admin_required
from apps.common.http import json_api

from . import services


def _days(request) -> int:
    return services.parse_days(request.GET.get("days"))


@require_GET
@admin_required
@json_api("Failed to build analytics overview")
def overview(request):
    return JsonResponse({"data": services.overview(_days(request))})


@require_GET
@admin_required
@json_api("Failed to build orders trend")
def orders_trend(request):
    period = services.parse_period(request.GET.get("period"))
    return JsonResponse({"data": services.orders_trend(_days(request), period)})


@require_GET
@admin_required
@json_api("Failed to build orders by location")
def orders_by_location(request):
    return JsonResponse({"data": services.orders_by_location(_days(request))})


@require_GET
@admin_required
@json_api("Failed to build top products")
def top_products(request):
    limit = services.parse_limit(request.GET.get("limit"))
    return JsonResponse({"data": services.top_products(_days(request), limit)})


@require_GET
@admin_required
@json_api("Failed to build category performance")
def category_performance(request):
    return JsonResponse({"data": services.category_performance(_days(request))})


@require_GET
@admin_required
@json_api("Failed to build payment method analytics")
def payment_methods(request):
    return JsonResponse({"data": services.payment_methods(_days(request))})


@require_GET
@admin_required
@json_api("Failed to fetch recent orders")
def recent_orders(request):
    limit = services.parse_limit(request.GET.get("limit"))
    return JsonResponse({"data": services.recent_orders(limit)})


@require_GET
@admin_required
@json_api("Failed to build hostel performance")
def hostel_performance(request):
    return JsonResponse({"data": services.hostel_performance(_days(request))})
