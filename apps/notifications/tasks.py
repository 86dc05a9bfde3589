import logging

import phonenumbers
import requests
from celery import shared_task
from django.conf import settings
from django.db import transaction
from django.template import Context
from django.template import Template as DjTemplate
from django.utils import timezone

from .models import Notification, NotificationAttempt, Template

log = logging.getLogger(__name__)


class TransientError(Exception):
    pass


DEFAULT_BODIES = {
    ("in_app", "order_out_for_delivery"): "Your order {{ order_number }} is out for delivery.",
    ("sms", "order_out_for_delivery"): "Order {{ order_number }} is out for delivery. It will reach you shortly.",
    ("in_app", "order_delivered"): "Your order {{ order_number }} has been delivered.",
    ("sms", "order_delivered"): "Order {{ order_number }} delivered. Enjoy!",
}


def normalize_phone_e164(val: str) -> str:
    try:
        pn = phonenumbers.parse(val, settings.DEFAULT_PHONE_REGION)
    except phonenumbers.NumberParseException as e:
        raise ValueError("invalid phone") from e
    if not phonenumbers.is_valid_number(pn):
        raise ValueError("invalid phone")
    return phonenumbers.format_number(pn, phonenumbers.PhoneNumberFormat.E164)


def render_template(code: str, channel: str, payload: dict) -> str:
    t = Template.objects.filter(code=code, channel=channel).first()
    source = (t.body_txt if t else "") or DEFAULT_BODIES.get((channel, code), "")
    return DjTemplate(source).render(Context(payload or {})).strip()


def _twilio_send_sms(to_e164: str, body: str) -> dict:
    sid = settings.TWILIO_ACCOUNT_SID
    tok = settings.TWILIO_AUTH_TOKEN
    from_num = settings.TWILIO_SMS_FROM
    if not (sid and tok and from_num):
        raise TransientError("Twilio not configured")
    url = f"https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"
    data = {"From": from_num, "To": to_e164, "Body": body[:1500]}
    try:
        resp = requests.post(url, data=data, auth=(sid, tok), timeout=20)
    except requests.RequestException as e:
        raise TransientError(f"Twilio unreachable: {e}") from e
    if resp.status_code >= 500:
        raise TransientError(f"Twilio 5xx: {resp.status_code}")
    if resp.status_code == 429:
        raise TransientError("Twilio rate limited")
    if resp.status_code >= 400:
        raise Exception(f"Twilio 4xx: {resp.text}")
    j = resp.json()
    return {"sid": j.get("sid"), "raw": j}


def _finish(n: Notification, attempt: NotificationAttempt, *, provider: str, message_id: str, text: str,
            response: dict, delivered: bool) -> None:
    now = timezone.now()
    n.provider = provider
    n.provider_message_id = message_id
    n.rendered_text = text
    n.status = "delivered" if delivered else "sent"
    n.sent_at = now
    if delivered:
        n.delivered_at = now
    n.save()
    attempt.result = "ok"
    attempt.provider_response_json = response
    attempt.finished_at = now
    attempt.save()


@shared_task(bind=True, max_retries=5, autoretry_for=(TransientError,), retry_backoff=True, retry_backoff_max=3600)
def send_notification(self, notification_id: str):
    dev_mode = settings.NOTIF_DEV_MODE

    with transaction.atomic():
        try:
            n = Notification.objects.select_for_update().get(id=notification_id)
        except Notification.DoesNotExist:
            log.warning("Notification %s not found", notification_id)
            return
        if n.status not in ("queued", "processing"):
            return
        n.status = "processing"
        n.attempts = (n.attempts or 0) + 1
        n.save(update_fields=["status", "attempts", "updated_at"])

    attempt = NotificationAttempt(notification=n, started_at=timezone.now())
    try:
        text = render_template(n.template_code, n.type, n.payload_json)
        if n.type == Notification.TYPE_IN_APP:
            # the stored row is what the client reads
            _finish(n, attempt, provider="in_app", message_id=str(n.id), text=text, response={}, delivered=True)
        elif n.type == Notification.TYPE_SMS:
            to_e164 = normalize_phone_e164(n.to)
            if dev_mode:
                log.info('DEV NOTIF [sms] to %s template=%s body="%s"', to_e164, n.template_code, text)
                _finish(n, attempt, provider="dev", message_id="DEV", text=text, response={"dev": True},
                        delivered=True)
                return
            resp = _twilio_send_sms(to_e164, text)
            _finish(n, attempt, provider="twilio", message_id=resp.get("sid") or "", text=text, response=resp,
                    delivered=False)
        else:
            raise Exception("invalid type")
    except TransientError as te:
        attempt.result = "error"
        attempt.error_message = str(te)
        attempt.finished_at = timezone.now()
        attempt.save()
        # escalate to Celery autoretry
        raise
    except Exception as e:
        log.warning("Notification %s failed permanently: %s", n.id, e)
        n.status = "failed"
        n.error_message = str(e)
        n.save(update_fields=["status", "error_message", "updated_at"])
        attempt.result = "error"
        attempt.error_message = str(e)
        attempt.finished_at = timezone.now()
        attempt.save()
