from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.common.models import BaseModel


class Notification(BaseModel):
    TYPE_IN_APP = "in_app"
    TYPE_SMS = "sms"
    TYPE_CHOICES = [(TYPE_IN_APP, "In-app"), (TYPE_SMS, "SMS")]
    STATUS_CHOICES = [
        ("queued", "Queued"),
        ("processing", "Processing"),
        ("sent", "Sent"),
        ("delivered", "Delivered"),
        ("failed", "Failed"),
        ("cancelled", "Cancelled"),
    ]
    PROVIDER_CHOICES = [("twilio", "Twilio"), ("in_app", "In-app"), ("dev", "Dev Mode")]

    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    to = models.CharField(max_length=200)
    template_code = models.CharField(max_length=80)
    payload_json = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="queued", db_index=True)
    provider = models.CharField(max_length=20, choices=PROVIDER_CHOICES, blank=True, null=True)
    provider_message_id = models.CharField(max_length=120, blank=True, null=True, db_index=True)
    error_code = models.CharField(max_length=50, blank=True, null=True)
    error_message = models.TextField(blank=True, null=True)
    attempts = models.PositiveIntegerField(default=0)
    idempotency_key = models.CharField(max_length=120, blank=True, null=True, unique=True)
    rendered_text = models.TextField(blank=True)
    sent_at = models.DateTimeField(blank=True, null=True)
    delivered_at = models.DateTimeField(blank=True, null=True)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="notifications"
    )
    order = models.ForeignKey(
        "orders.Order", on_delete=models.SET_NULL, null=True, blank=True, related_name="notifications"
    )

    class Meta:
        indexes = [
            models.Index(fields=["status", "created_at"], name="notifications_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.type}:{self.template_code} → {self.to}"


class NotificationAttempt(BaseModel):
    notification = models.ForeignKey(Notification, on_delete=models.CASCADE, related_name="attempts_log")
    started_at = models.DateTimeField(default=timezone.now)
    finished_at = models.DateTimeField(blank=True, null=True)
    result = models.CharField(max_length=20)  # ok | error
    provider_response_json = models.JSONField(default=dict, blank=True)
    error_message = models.TextField(blank=True, null=True)


class Template(BaseModel):
    """Admin-editable override for the built-in message bodies."""

    code = models.CharField(max_length=80)
    channel = models.CharField(max_length=10, choices=Notification.TYPE_CHOICES)
    body_txt = models.TextField(blank=True)

    class Meta:
        constraints = [models.UniqueConstraint(fields=["code", "channel"], name="uniq_template_code_channel")]

    def __str__(self) -> str:
        return f"{self.channel}:{self.code}"
