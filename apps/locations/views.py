from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.accounts.auth import admin_required
from apps.common.http import ServiceError, json_api, json_body

from . import services
from .geo import check_delivery_availability, is_valid_coordinates
from .models import DeliveryLocationMapping, Hostel, Location


# --------- Public ---------

@require_GET
def locations_public(request):
    locations = Location.objects.filter(is_active=True).order_by("city", "area")
    return JsonResponse({"results": [services.serialize_location(loc) for loc in locations]})


@require_GET
@json_api("Failed to fetch hostels")
def hostels_by_location(request, location_id):
    hostels = (
        Hostel.objects.filter(location_id=location_id, is_active=True)
        .select_related("location")
        .order_by("name")
    )
    return JsonResponse({"results": [services.serialize_hostel(h) for h in hostels]})


@csrf_exempt
@require_POST
@json_api("Failed to check delivery availability")
def check_delivery(request):
    data = json_body(request)
    lat, lng = data.get("lat"), data.get("lng")
    if not is_valid_coordinates(lat, lng):
        raise ServiceError("Invalid coordinates", 400)
    locations = Location.objects.filter(is_active=True, use_geo_delivery=True)
    return JsonResponse(check_delivery_availability(lat, lng, locations))


# --------- Admin: locations ---------

@require_http_methods(["GET", "POST"])
@admin_required
@json_api("Failed to process location request")
def locations_admin(request):
    if request.method == "POST":
        location = services.create_location(json_body(request))
        return JsonResponse(services.serialize_location(location), status=201)
    locations = Location.objects.all().order_by("city", "area")
    return JsonResponse({"results": [services.serialize_location(loc) for loc in locations]})


@require_http_methods(["PUT"])
@admin_required
@json_api("Failed to update location")
def location_update(request, location_id):
    location = get_object_or_404(Location, pk=location_id)
    location = services.update_location(location, json_body(request))
    return JsonResponse(services.serialize_location(location))


@require_http_methods(["PATCH"])
@admin_required
@json_api("Failed to toggle location")
def location_toggle(request, location_id):
    location = services.toggle_location(get_object_or_404(Location, pk=location_id))
    return JsonResponse({"id": str(location.id), "is_active": location.is_active})


# --------- Admin: hostels ---------

@require_http_methods(["GET", "POST"])
@admin_required
@json_api("Failed to process hostel request")
def hostels_admin(request):
    if request.method == "POST":
        hostel = services.create_hostel(json_body(request))
        return JsonResponse(services.serialize_hostel(hostel), status=201)
    hostels = Hostel.objects.select_related("location").order_by("location__city", "name")
    return JsonResponse({"results": [services.serialize_hostel(h) for h in hostels]})


@require_GET
@admin_required
@json_api("Failed to fetch hostels")
def hostels_by_location_admin(request, location_id):
    hostels = Hostel.objects.filter(location_id=location_id).select_related("location").order_by("name")
    return JsonResponse({"results": [services.serialize_hostel(h) for h in hostels]})


@require_http_methods(["PUT", "DELETE"])
@admin_required
@json_api("Failed to process hostel request")
def hostel_detail(request, hostel_id):
    hostel = get_object_or_404(Hostel.objects.select_related("location"), pk=hostel_id)
    if request.method == "DELETE":
        services.delete_hostel(hostel)
        return JsonResponse({"message": "Hostel deleted successfully"})
    hostel = services.update_hostel(hostel, json_body(request))
    return JsonResponse(services.serialize_hostel(hostel))


@require_http_methods(["PATCH"])
@admin_required
@json_api("Failed to toggle hostel")
def hostel_toggle(request, hostel_id):
    hostel = services.toggle_hostel(get_object_or_404(Hostel, pk=hostel_id))
    return JsonResponse({"id": str(hostel.id), "is_active": hostel.is_active})


# --------- Admin: delivery-location mappings ---------

@require_http_methods(["GET", "POST"])
@admin_required
@json_api("Failed to process mapping request")
def mappings_admin(request):
    if request.method == "POST":
        mapping = services.create_mapping(json_body(request), created_by=request.user.get_username() or "admin")
        return JsonResponse(services.serialize_mapping(mapping), status=201)
    mappings = DeliveryLocationMapping.objects.order_by("delivery_location")
    return JsonResponse({"results": [services.serialize_mapping(m) for m in mappings]})


@require_http_methods(["DELETE"])
@admin_required
@json_api("Failed to delete mapping")
def mapping_delete(request, mapping_id):
    get_object_or_404(DeliveryLocationMapping, pk=mapping_id).delete()
    return JsonResponse({"message": "Mapping deleted successfully"})
