import django.core.validators
import django.db.models.deletion
import uuid
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [
    ("pending", "Pending"),
    ("placed", "Placed"),
    ("confirmed", "Confirmed"),
    ("preparing", "Preparing"),
    ("ready", "Ready"),
    ("out_for_delivery", "Out for delivery"),
    ("delivered", "Delivered"),
    ("cancelled", "Cancelled"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("catalog", "0001_initial"),
        ("locations", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("order_number", models.CharField(max_length=32, unique=True)),
                (
                    "payment_method",
                    models.CharField(
                        choices=[("razorpay", "Razorpay"), ("cod", "Cash on delivery")], max_length=10
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("created", "Created"),
                            ("paid", "Paid"),
                            ("failed", "Failed"),
                            ("refunded", "Refunded"),
                        ],
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("razorpay_order_id", models.CharField(blank=True, max_length=64)),
                ("razorpay_payment_id", models.CharField(blank=True, max_length=64)),
                ("amount_paise", models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
                ("currency", models.CharField(default="INR", max_length=3)),
                ("order_status", models.CharField(choices=STATUS_CHOICES, default="placed", max_length=20)),
                ("user_details", models.JSONField(blank=True, default=dict)),
                ("order_summary", models.JSONField(blank=True, default=dict)),
                ("delivery_location", models.CharField(max_length=255)),
                ("hostel_name", models.CharField(blank=True, default="", max_length=160)),
                ("notes", models.TextField(blank=True)),
                ("estimated_delivery_time", models.DateTimeField(blank=True, null=True)),
                ("actual_delivery_time", models.DateTimeField(blank=True, null=True)),
                ("cancel_reason", models.CharField(blank=True, max_length=255)),
                (
                    "hostel",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="locations.hostel",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["order_status", "created_at"], name="orders_order_status_idx"),
                    models.Index(fields=["payment_status"], name="orders_order_payment_idx"),
                    models.Index(fields=["hostel_name"], name="orders_order_hostel_name_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("product_name", models.CharField(max_length=160)),
                (
                    "quantity",
                    models.PositiveIntegerField(
                        default=1, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("price_paise", models.IntegerField(validators=[django.core.validators.MinValueValidator(0)])),
                ("variant_index", models.PositiveIntegerField(default=0)),
                (
                    "dispatch_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("dispatched", "Dispatched"), ("delivered", "Delivered")],
                        default="pending",
                        max_length=12,
                    ),
                ),
                ("dispatched_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE, related_name="items", to="orders.order"
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to="catalog.product"
                    ),
                ),
            ],
            options={
                "indexes": [models.Index(fields=["product_name"], name="orders_item_product_name_idx")],
            },
        ),
        migrations.CreateModel(
            name="OrderStatusChange",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("status", models.CharField(choices=STATUS_CHOICES, max_length=20)),
                ("source", models.CharField(blank=True, max_length=32)),
                ("note", models.CharField(blank=True, max_length=200)),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_changes",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [models.Index(fields=["order", "created_at"], name="orders_status_change_idx")],
            },
        ),
    ]
