import json

import pytest
from django.core.management import call_command
from django.test import Client

from apps.accounts.models import ApiToken, User, hash_token
from apps.orders.models import Order


@pytest.mark.django_db
def test_token_is_stored_hashed(staff):
    token, raw = ApiToken.issue(staff, name="cli")
    assert token.token_hash == hash_token(raw)
    assert raw not in token.token_hash
    assert ApiToken.authenticate(raw) == staff
    token.refresh_from_db()
    assert token.last_used_at is not None


@pytest.mark.django_db
def test_inactive_token_is_rejected(staff):
    token, raw = ApiToken.issue(staff)
    token.is_active = False
    token.save()
    assert ApiToken.authenticate(raw) is None


@pytest.mark.django_db
def test_admin_required_responses(client, user, auth_headers):
    url = "/api/admin/orders/stats"
    resp = client.get(url)
    assert resp.status_code == 401
    assert resp.json() == {"message": "Not authorized, no token"}

    assert client.get(url, HTTP_AUTHORIZATION="Bearer nope").status_code == 401

    _, raw = ApiToken.issue(user)
    resp = client.get(url, HTTP_AUTHORIZATION=f"Bearer {raw}")
    assert resp.status_code == 403
    assert resp.json() == {"message": "Not authorized as an admin"}

    assert client.get(url, **auth_headers).status_code == 200


@pytest.mark.django_db
def test_staff_session_counts_as_admin(client):
    User.objects.create_user(username="root", password="pw-123456", is_staff=True)
    client.login(username="root", password="pw-123456")
    assert client.get("/api/admin/orders/stats").status_code == 200


@pytest.mark.django_db
def test_email_is_lowercased(user):
    assert user.email == "asha@example.com"
    assert not user.is_admin


@pytest.mark.django_db
def test_issue_api_token_command(staff, capsys):
    call_command("issue_api_token", "ops", "--name", "laptop")
    out = capsys.readouterr().out
    assert "Token" in out
    assert ApiToken.objects.get(user=staff).name == "laptop"


@pytest.mark.django_db
def test_session_admin_post_requires_csrf_token(staff, psg, brownie, make_order):
    order = make_order(hostel=psg, items=[(brownie, 1)])
    payload = json.dumps({"hostel": "PSG", "category": "Cakes", "productName": "Brownie", "count": 1})
    client = Client(enforce_csrf_checks=True)
    client.force_login(staff)

    resp = client.post("/api/admin/dispatch", data=payload, content_type="text/plain")
    assert resp.status_code == 403
    order.refresh_from_db()
    assert order.order_status == Order.STATUS_PLACED

    secret = "a" * 32
    client.cookies["csrftoken"] = secret
    resp = client.post(
        "/api/admin/dispatch", data=payload, content_type="application/json", HTTP_X_CSRFTOKEN=secret
    )
    assert resp.status_code == 200
    order.refresh_from_db()
    assert order.order_status == Order.STATUS_OUT_FOR_DELIVERY


@pytest.mark.django_db
def test_bearer_token_post_skips_csrf(auth_headers, psg, brownie, make_order):
    make_order(hostel=psg, items=[(brownie, 1)])
    client = Client(enforce_csrf_checks=True)
    resp = client.post(
        "/api/admin/dispatch",
        data=json.dumps({"hostel": "PSG", "category": "Cakes", "productName": "Brownie", "count": 1}),
        content_type="application/json",
        **auth_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["dispatched_count"] == 1
