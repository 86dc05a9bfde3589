import random
import time
from dataclasses import dataclass

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from apps.common.models import BaseModel

UNKNOWN_HOSTEL = "Unknown Hostel"
UNKNOWN_CATEGORY = "Unknown Category"


@dataclass(frozen=True)
class HostelState:
    """Read model over the hostel FK / free-text pair.

    `resolved` orders point at a registered hostel and are labelled by its
    canonical name; `unresolved` ones only have what the customer typed.
    """

    resolved: bool
    label: str
    hostel_id: object = None


class Order(BaseModel):
    STATUS_PENDING = "pending"
    STATUS_PLACED = "placed"
    STATUS_CONFIRMED = "confirmed"
    STATUS_PREPARING = "preparing"
    STATUS_READY = "ready"
    STATUS_OUT_FOR_DELIVERY = "out_for_delivery"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELLED = "cancelled"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_PLACED, "Placed"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_PREPARING, "Preparing"),
        (STATUS_READY, "Ready"),
        (STATUS_OUT_FOR_DELIVERY, "Out for delivery"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
    ]
    PAYMENT_METHOD_CHOICES = [("razorpay", "Razorpay"), ("cod", "Cash on delivery")]
    PAYMENT_STATUS_CHOICES = [
        ("pending", "Pending"),
        ("created", "Created"),
        ("paid", "Paid"),
        ("failed", "Failed"),
        ("refunded", "Refunded"),
    ]

    order_number = models.CharField(max_length=32, unique=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="orders"
    )
    payment_method = models.CharField(max_length=10, choices=PAYMENT_METHOD_CHOICES)
    payment_status = models.CharField(max_length=10, choices=PAYMENT_STATUS_CHOICES, default="pending")
    razorpay_order_id = models.CharField(max_length=64, blank=True)
    razorpay_payment_id = models.CharField(max_length=64, blank=True)
    amount_paise = models.IntegerField(validators=[MinValueValidator(0)])
    currency = models.CharField(max_length=3, default="INR")
    order_status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PLACED)
    user_details = models.JSONField(default=dict, blank=True)
    order_summary = models.JSONField(default=dict, blank=True)
    delivery_location = models.CharField(max_length=255)
    hostel_name = models.CharField(max_length=160, blank=True, default="")
    # filled in later by reconciliation, never at checkout
    hostel = models.ForeignKey(
        "locations.Hostel", on_delete=models.PROTECT, null=True, blank=True, related_name="orders"
    )
    notes = models.TextField(blank=True)
    estimated_delivery_time = models.DateTimeField(blank=True, null=True)
    actual_delivery_time = models.DateTimeField(blank=True, null=True)
    cancel_reason = models.CharField(max_length=255, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["order_status", "created_at"], name="orders_order_status_idx"),
            models.Index(fields=["payment_status"], name="orders_order_payment_idx"),
            models.Index(fields=["hostel_name"], name="orders_order_hostel_name_idx"),
        ]

    def __str__(self) -> str:
        return self.order_number

    @staticmethod
    def generate_order_number() -> str:
        return f"ORD{int(time.time() * 1000)}{random.randint(0, 999):03d}"

    def save(self, *args, **kwargs):
        is_new = self._state.adding
        prev_status = None
        should_track_status = True
        source = getattr(self, "_status_change_source", None)
        note = getattr(self, "_status_change_note", "")
        if not is_new and self.pk:
            update_fields = kwargs.get("update_fields")
            should_track_status = update_fields is None or "order_status" in update_fields
            if should_track_status:
                prev_status = (
                    type(self)
                    .objects.filter(pk=self.pk)
                    .values_list("order_status", flat=True)
                    .first()
                )

        if not self.order_number:
            candidate = self.generate_order_number()
            while type(self).objects.filter(order_number=candidate).exists():
                candidate = self.generate_order_number()
            self.order_number = candidate
        self.hostel_name = (self.hostel_name or "").strip()
        super().save(*args, **kwargs)
        for attr in ("_status_change_source", "_status_change_note"):
            if hasattr(self, attr):
                delattr(self, attr)
        if is_new:
            OrderStatusChange.objects.create(
                order=self,
                status=self.order_status,
                source=source or "initial",
                note=note or "",
            )
        elif should_track_status and prev_status != self.order_status:
            OrderStatusChange.objects.create(
                order=self,
                status=self.order_status,
                source=source or "",
                note=note or "",
            )

    def set_status(self, status: str, *, source: str | None = None, note: str = "", extra_fields=()) -> None:
        self.order_status = status
        if source:
            self._status_change_source = source
        if note:
            self._status_change_note = note
        self.save(update_fields=["order_status", "updated_at", *extra_fields])

    @property
    def hostel_state(self) -> HostelState:
        if self.hostel_id is not None:
            return HostelState(resolved=True, label=self.hostel.name, hostel_id=self.hostel_id)
        return HostelState(resolved=False, label=self.hostel_name or UNKNOWN_HOSTEL)

    def can_be_cancelled(self) -> bool:
        return self.order_status in {self.STATUS_PLACED, self.STATUS_CONFIRMED, self.STATUS_PREPARING} and (
            self.payment_status != "refunded"
        )

    def can_be_refunded(self) -> bool:
        return self.payment_status == "paid" and self.order_status in {self.STATUS_CANCELLED, self.STATUS_DELIVERED}


class OrderItem(BaseModel):
    DISPATCH_PENDING = "pending"
    DISPATCH_DISPATCHED = "dispatched"
    DISPATCH_DELIVERED = "delivered"
    DISPATCH_CHOICES = [
        (DISPATCH_PENDING, "Pending"),
        (DISPATCH_DISPATCHED, "Dispatched"),
        (DISPATCH_DELIVERED, "Delivered"),
    ]

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey("catalog.Product", on_delete=models.SET_NULL, null=True, blank=True)
    product_name = models.CharField(max_length=160)
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    price_paise = models.IntegerField(validators=[MinValueValidator(0)])
    variant_index = models.PositiveIntegerField(default=0)
    dispatch_status = models.CharField(max_length=12, choices=DISPATCH_CHOICES, default=DISPATCH_PENDING)
    dispatched_at = models.DateTimeField(blank=True, null=True)
    delivered_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        indexes = [models.Index(fields=["product_name"], name="orders_item_product_name_idx")]

    @property
    def category_name(self) -> str:
        product = self.product
        if product is not None and product.category_id is not None:
            return product.category.name
        return UNKNOWN_CATEGORY


class OrderStatusChange(BaseModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="status_changes")
    status = models.CharField(max_length=20, choices=Order.STATUS_CHOICES)
    source = models.CharField(max_length=32, blank=True)
    note = models.CharField(max_length=200, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=["order", "created_at"], name="orders_status_change_idx"),
        ]
        ordering = ["created_at"]
