"""Haversine helpers for geo-fenced delivery zones."""
from __future__ import annotations

import math
from typing import Any, Final, Iterable

EARTH_RADIUS_KM: Final[float] = 6371.0


def is_valid_coordinates(lat: Any, lng: Any) -> bool:
    if isinstance(lat, bool) or isinstance(lng, bool):
        return False
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def estimated_delivery_time(distance_km: float) -> str:
    if distance_km <= 2:
        return "15-25 mins"
    if distance_km <= 5:
        return "25-40 mins"
    if distance_km <= 10:
        return "40-60 mins"
    return "60-90 mins"


def check_delivery_availability(lat: float, lng: float, locations: Iterable) -> dict[str, Any]:
    """Return the first active geo-enabled location whose radius covers the point.

    Locations are expected to expose `latitude`, `longitude`,
    `delivery_radius_km`, `use_geo_delivery` and `is_active`.
    """
    if not is_valid_coordinates(lat, lng):
        return {
            "available": False,
            "message": "Invalid coordinates",
            "matched_location": None,
            "distance_km": None,
        }

    closest = None
    closest_distance = math.inf
    for location in locations:
        if not (location.use_geo_delivery and location.is_active):
            continue
        if location.latitude is None or location.longitude is None:
            continue
        distance = haversine_km(lat, lng, location.latitude, location.longitude)
        if distance < closest_distance:
            closest, closest_distance = location, distance
        if distance <= location.delivery_radius_km:
            return {
                "available": True,
                "message": "Delivery available for your location",
                "matched_location": {
                    "id": str(location.id),
                    "area": location.area,
                    "city": location.city,
                    "pincode": location.pincode,
                    "delivery_charge_paise": location.delivery_charge_paise,
                    "delivery_radius_km": location.delivery_radius_km,
                },
                "distance_km": round(distance, 2),
                "estimated_time": estimated_delivery_time(distance),
            }

    return {
        "available": False,
        "message": "Delivery not available for your location",
        "matched_location": None,
        "distance_km": round(closest_distance, 2) if closest is not None else None,
        "closest_area": (
            {"area": closest.area, "city": closest.city, "radius_km": closest.delivery_radius_km}
            if closest is not None
            else None
        ),
    }
