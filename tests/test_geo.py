from types import SimpleNamespace

import pytest

from apps.locations.geo import (
    check_delivery_availability,
    estimated_delivery_time,
    haversine_km,
    is_valid_coordinates,
)


def loc(**kw):
    base = dict(
        id="loc-1",
        area="Peelamedu",
        city="Coimbatore",
        pincode="641004",
        delivery_charge_paise=4900,
        latitude=11.0247,
        longitude=77.0028,
        delivery_radius_km=5,
        use_geo_delivery=True,
        is_active=True,
    )
    base.update(kw)
    return SimpleNamespace(**base)


def test_haversine_known_distance():
    # Coimbatore → Tiruppur is roughly 45 km as the crow flies
    assert haversine_km(11.0168, 76.9558, 11.1085, 77.3411) == pytest.approx(43.5, abs=2)
    assert haversine_km(11.0, 77.0, 11.0, 77.0) == 0


@pytest.mark.parametrize(
    "lat,lng,ok",
    [
        (11.0, 77.0, True),
        (90, 180, True),
        (91, 0, False),
        (0, -181, False),
        ("11", 77, False),
        (True, 77, False),
        (float("nan"), 77, False),
        (None, None, False),
    ],
)
def test_is_valid_coordinates(lat, lng, ok):
    assert is_valid_coordinates(lat, lng) is ok


def test_estimated_delivery_time_buckets():
    assert estimated_delivery_time(1.5) == "15-25 mins"
    assert estimated_delivery_time(2) == "15-25 mins"
    assert estimated_delivery_time(4.9) == "25-40 mins"
    assert estimated_delivery_time(9) == "40-60 mins"
    assert estimated_delivery_time(25) == "60-90 mins"


def test_available_within_radius():
    res = check_delivery_availability(11.03, 77.0, [loc()])
    assert res["available"] is True
    assert res["matched_location"]["area"] == "Peelamedu"
    assert res["distance_km"] < 5
    assert res["estimated_time"] == "15-25 mins"


def test_unavailable_reports_closest():
    far = loc(id="loc-2", area="Far", latitude=12.0, longitude=78.0)
    res = check_delivery_availability(11.1085, 77.3411, [loc(), far])
    assert res["available"] is False
    assert res["closest_area"]["area"] == "Peelamedu"
    assert res["distance_km"] > 5


def test_disabled_or_coordinate_less_locations_are_skipped():
    res = check_delivery_availability(
        11.03, 77.0, [loc(use_geo_delivery=False), loc(latitude=None, longitude=None), loc(is_active=False)]
    )
    assert res["available"] is False
    assert res["closest_area"] is None


def test_invalid_coordinates():
    res = check_delivery_availability(200, 0, [loc()])
    assert res == {"available": False, "message": "Invalid coordinates", "matched_location": None, "distance_km": None}
