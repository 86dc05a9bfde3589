from django.urls import path

from . import views

app_name = "notifications"

urlpatterns = [
    path("webhooks/twilio/sms-status", views.twilio_sms_status, name="twilio_sms_status"),
]
