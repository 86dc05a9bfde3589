import json

import pytest

from apps.locations.models import DeliveryLocationMapping, Hostel, Location


def send(client, method, url, payload, headers):
    return getattr(client, method)(url, data=json.dumps(payload), content_type="application/json", **headers)


@pytest.mark.django_db
def test_public_locations_and_hostels(client, location, psg, kpr):
    Location.objects.create(city="Tiruppur", area="Avinashi", pincode="641654", is_active=False)
    Hostel.objects.create(name="Closed", location=location, is_active=False)

    resp = client.get("/api/locations")
    assert [loc["area"] for loc in resp.json()["results"]] == ["Peelamedu"]

    resp = client.get(f"/api/hostels/{location.id}")
    assert [h["name"] for h in resp.json()["results"]] == ["KPR", "PSG"]


@pytest.mark.django_db
def test_check_delivery(client, location):
    resp = send(client, "post", "/api/locations/check-delivery", {"lat": 11.03, "lng": 77.0}, {})
    assert resp.status_code == 200
    assert resp.json()["available"] is True

    resp = send(client, "post", "/api/locations/check-delivery", {"lat": "x", "lng": 77.0}, {})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid coordinates"


@pytest.mark.django_db
def test_location_admin_crud(client, auth_headers):
    resp = send(client, "post", "/api/admin/locations", {"city": "Coimbatore"}, auth_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Please provide city, area, and pincode"

    resp = send(
        client,
        "post",
        "/api/admin/locations",
        {"city": "Coimbatore", "area": "Saravanampatti", "pincode": "641035", "delivery_charge_paise": 3900},
        auth_headers,
    )
    assert resp.status_code == 201
    loc_id = resp.json()["id"]
    assert resp.json()["full_address"] == "Saravanampatti, Coimbatore - 641035"

    resp = send(client, "put", f"/api/admin/locations/{loc_id}", {"use_geo_delivery": True}, auth_headers)
    assert resp.status_code == 400

    resp = send(client, "patch", f"/api/admin/locations/{loc_id}/toggle", {}, auth_headers)
    assert resp.json()["is_active"] is False


@pytest.mark.django_db
def test_hostel_admin_rules(client, auth_headers, location, psg):
    resp = send(client, "post", "/api/admin/hostels", {"name": "psg", "location_id": str(location.id)}, auth_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "A hostel with this name already exists in this location"

    resp = send(
        client,
        "post",
        "/api/admin/hostels",
        {"name": "KPR", "location_id": "00000000-0000-0000-0000-000000000000"},
        auth_headers,
    )
    assert resp.status_code == 404

    resp = send(client, "post", "/api/admin/hostels", {"name": "  KPR ", "location_id": str(location.id)}, auth_headers)
    assert resp.status_code == 201
    assert resp.json()["name"] == "KPR"


@pytest.mark.django_db
def test_renaming_hostel_updates_mapping_copies(client, auth_headers, psg):
    DeliveryLocationMapping.objects.create(delivery_location="PSG gate", hostel=psg)
    resp = send(client, "put", f"/api/admin/hostels/{psg.id}", {"name": "PSG Tech"}, auth_headers)
    assert resp.status_code == 200
    assert DeliveryLocationMapping.objects.get().hostel_name == "PSG Tech"


@pytest.mark.django_db
def test_delete_hostel_in_use_is_refused(client, auth_headers, psg, make_order):
    make_order(hostel=psg)
    resp = client.delete(f"/api/admin/hostels/{psg.id}", **auth_headers)
    assert resp.status_code == 409
    assert Hostel.objects.filter(pk=psg.pk).exists()


@pytest.mark.django_db
def test_mapping_endpoints(client, auth_headers, psg):
    payload = {"delivery_location": " Ganapathipalayam ", "hostel_id": str(psg.id)}
    resp = send(client, "post", "/api/admin/delivery-mappings", payload, auth_headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["delivery_location"] == "Ganapathipalayam"
    assert body["hostel_name"] == "PSG"
    assert body["created_by"] == "ops"

    resp = send(client, "post", "/api/admin/delivery-mappings", {**payload, "delivery_location": "ganapathipalayam"}, auth_headers)
    assert resp.status_code == 400

    resp = send(
        client,
        "post",
        "/api/admin/delivery-mappings",
        {"delivery_location": "x", "hostel_id": "00000000-0000-0000-0000-000000000000"},
        auth_headers,
    )
    assert resp.status_code == 404

    resp = client.delete(f"/api/admin/delivery-mappings/{body['id']}", **auth_headers)
    assert resp.status_code == 200
    assert not DeliveryLocationMapping.objects.exists()
