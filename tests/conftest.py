import datetime as dt

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.accounts.models import ApiToken, User
from apps.catalog.models import Category, Product
from apps.locations.models import Hostel, Location
from apps.orders.models import Order, OrderItem


@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(
        username="asha", email="Asha@Example.com", password="pw-123456", phone="+919876543210"
    )


@pytest.fixture
def staff(db):
    return get_user_model().objects.create_user(
        username="ops", email="ops@example.com", password="pw-123456", role=User.ROLE_ADMIN
    )


@pytest.fixture
def auth_headers(staff):
    _, raw = ApiToken.issue(staff, name="tests")
    return {"HTTP_AUTHORIZATION": f"Bearer {raw}"}


@pytest.fixture
def location(db):
    return Location.objects.create(
        city="Coimbatore",
        area="Peelamedu",
        pincode="641004",
        latitude=11.0247,
        longitude=77.0028,
        delivery_radius_km=5,
        use_geo_delivery=True,
    )


@pytest.fixture
def psg(location):
    return Hostel.objects.create(name="PSG", location=location, address="Peelamedu, Coimbatore")


@pytest.fixture
def kpr(location):
    return Hostel.objects.create(name="KPR", location=location, address="Avinashi")


@pytest.fixture
def cakes(db):
    return Category.objects.create(name="Cakes")


@pytest.fixture
def brownie(cakes):
    return Product.objects.create(name="Brownie", category=cakes, image_url="https://cdn.example.com/brownie.jpg")


@pytest.fixture
def make_order(user):
    """Order factory; `age_minutes` pushes created_at back so FIFO order is deterministic."""

    def _make_order(
        *,
        items=(),
        hostel=None,
        hostel_name="",
        delivery_location="Peelamedu, Coimbatore",
        status=Order.STATUS_PLACED,
        payment_status="paid",
        payment_method="razorpay",
        amount_paise=25000,
        phone="+919876543210",
        age_minutes=0,
        owner=user,
    ) -> Order:
        order = Order.objects.create(
            user=owner,
            payment_method=payment_method,
            payment_status=payment_status,
            amount_paise=amount_paise,
            order_status=status,
            user_details={"name": "Asha", "phone": phone} if phone else {"name": "Asha"},
            delivery_location=delivery_location,
            hostel_name=hostel_name,
            hostel=hostel,
        )
        for product, qty in items:
            OrderItem.objects.create(
                order=order,
                product=product if not isinstance(product, str) else None,
                product_name=product if isinstance(product, str) else product.name,
                quantity=qty,
                price_paise=12500,
            )
        if age_minutes:
            Order.objects.filter(pk=order.pk).update(created_at=timezone.now() - dt.timedelta(minutes=age_minutes))
            order.refresh_from_db()
        return order

    return _make_order
