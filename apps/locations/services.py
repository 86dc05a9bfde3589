from __future__ import annotations

from typing import Any

from django.core.exceptions import ValidationError
from django.db import transaction

from apps.common.http import ServiceError

from .models import DeliveryLocationMapping, Hostel, Location


class RegistryError(ServiceError):
    pass


LOCATION_FIELDS = (
    "city",
    "area",
    "pincode",
    "delivery_charge_paise",
    "latitude",
    "longitude",
    "delivery_radius_km",
    "use_geo_delivery",
    "is_active",
)


def serialize_location(location: Location) -> dict[str, Any]:
    return {
        "id": str(location.id),
        "city": location.city,
        "area": location.area,
        "pincode": location.pincode,
        "full_address": location.full_address,
        "delivery_charge_paise": location.delivery_charge_paise,
        "coordinates": (
            {"lat": location.latitude, "lng": location.longitude} if location.has_coordinates else None
        ),
        "delivery_radius_km": location.delivery_radius_km,
        "use_geo_delivery": location.use_geo_delivery,
        "is_active": location.is_active,
    }


def serialize_hostel(hostel: Hostel) -> dict[str, Any]:
    return {
        "id": str(hostel.id),
        "name": hostel.name,
        "address": hostel.address,
        "is_active": hostel.is_active,
        "location": serialize_location(hostel.location),
    }


def serialize_mapping(mapping: DeliveryLocationMapping) -> dict[str, Any]:
    return {
        "id": str(mapping.id),
        "delivery_location": mapping.delivery_location,
        "hostel_id": str(mapping.hostel_id),
        "hostel_name": mapping.hostel_name,
        "mapping_type": mapping.mapping_type,
        "created_by": mapping.created_by,
        "is_active": mapping.is_active,
    }


def _full_clean(instance) -> None:
    try:
        instance.full_clean(validate_unique=False, validate_constraints=False)
    except ValidationError as e:
        raise RegistryError("; ".join(e.messages), 400)


def create_location(data: dict[str, Any]) -> Location:
    city = (data.get("city") or "").strip()
    area = (data.get("area") or "").strip()
    pincode = str(data.get("pincode") or "").strip()
    if not (city and area and pincode):
        raise RegistryError("Please provide city, area, and pincode", 400)
    location = Location(city=city, area=area, pincode=pincode)
    for field in LOCATION_FIELDS[3:]:
        if field in data:
            setattr(location, field, data[field])
    _full_clean(location)
    location.save()
    return location


def update_location(location: Location, data: dict[str, Any]) -> Location:
    for field in LOCATION_FIELDS:
        if field in data:
            setattr(location, field, data[field])
    _full_clean(location)
    location.save()
    return location


def toggle_location(location: Location) -> Location:
    location.is_active = not location.is_active
    location.save(update_fields=["is_active", "updated_at"])
    return location


def _ensure_unique_name(name: str, location: Location, exclude_pk=None) -> None:
    qs = Hostel.objects.filter(name__iexact=name.strip(), location=location)
    if exclude_pk:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise RegistryError("A hostel with this name already exists in this location", 400)


def _get_location(location_id) -> Location:
    try:
        return Location.objects.get(pk=location_id)
    except (Location.DoesNotExist, ValidationError, ValueError):
        raise RegistryError("Location not found", 404)


def create_hostel(data: dict[str, Any]) -> Hostel:
    name = (data.get("name") or "").strip()
    location_id = data.get("location_id")
    if not name or not location_id:
        raise RegistryError("Please provide hostel name and location", 400)
    location = _get_location(location_id)
    _ensure_unique_name(name, location)
    return Hostel.objects.create(name=name, location=location, address=data.get("address") or "")


def update_hostel(hostel: Hostel, data: dict[str, Any]) -> Hostel:
    name = (data.get("name") or hostel.name).strip()
    location = hostel.location
    if data.get("location_id") and str(data["location_id"]) != str(hostel.location_id):
        location = _get_location(data["location_id"])
    if name.lower() != hostel.name.lower() or location.pk != hostel.location_id:
        _ensure_unique_name(name, location, exclude_pk=hostel.pk)
    hostel.name = name
    hostel.location = location
    if "address" in data:
        hostel.address = data.get("address") or ""
    with transaction.atomic():
        hostel.save()
        # keep the denormalized copy in sync
        DeliveryLocationMapping.objects.filter(hostel=hostel).update(hostel_name=hostel.name)
    return hostel


def toggle_hostel(hostel: Hostel) -> Hostel:
    hostel.is_active = not hostel.is_active
    hostel.save(update_fields=["is_active", "updated_at"])
    return hostel


def delete_hostel(hostel: Hostel) -> None:
    if hostel.orders.exists():
        raise RegistryError("Hostel is referenced by orders; deactivate it instead", 409)
    hostel.delete()


def upsert_mapping(
    delivery_location: str,
    hostel: Hostel,
    *,
    mapping_type: str = DeliveryLocationMapping.TYPE_MANUAL,
    created_by: str = "system",
) -> tuple[DeliveryLocationMapping, bool]:
    mapping, created = DeliveryLocationMapping.objects.update_or_create(
        delivery_location=delivery_location.strip(),
        defaults={
            "hostel": hostel,
            "hostel_name": hostel.name,
            "mapping_type": mapping_type,
            "created_by": created_by,
            "is_active": True,
        },
    )
    return mapping, created


def create_mapping(data: dict[str, Any], *, created_by: str = "admin") -> DeliveryLocationMapping:
    delivery_location = (data.get("delivery_location") or "").strip()
    hostel_id = data.get("hostel_id")
    if not delivery_location or not hostel_id:
        raise RegistryError("Please provide delivery_location and hostel_id", 400)
    mapping_type = data.get("mapping_type") or DeliveryLocationMapping.TYPE_MANUAL
    if mapping_type not in dict(DeliveryLocationMapping.TYPE_CHOICES):
        raise RegistryError("invalid mapping_type", 400)
    try:
        hostel = Hostel.objects.get(pk=hostel_id)
    except (Hostel.DoesNotExist, ValidationError, ValueError):
        raise RegistryError("Hostel not found", 404)
    if DeliveryLocationMapping.objects.filter(delivery_location__iexact=delivery_location).exists():
        raise RegistryError("A mapping for this delivery location already exists", 400)
    mapping, _ = upsert_mapping(delivery_location, hostel, mapping_type=mapping_type, created_by=created_by)
    return mapping
