import base64
import hashlib
import hmac
import logging

from django.conf import settings
from django.http import HttpResponse, HttpResponseForbidden
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .models import Notification

log = logging.getLogger(__name__)


def _twilio_validate_signature(request) -> bool:
    token = settings.TWILIO_AUTH_TOKEN
    if not token:
        return False
    signature = request.headers.get("X-Twilio-Signature", "")
    url = request.build_absolute_uri()
    # url + sorted form params, HMAC-SHA1 with the auth token
    items = sorted((k, v) for k, v in request.POST.items())
    s = url + "".join(k + v for k, v in items)
    digest = hmac.new(token.encode(), s.encode(), hashlib.sha1).digest()
    expected = base64.b64encode(digest).decode()
    return hmac.compare_digest(signature, expected)


@csrf_exempt
@require_POST
def twilio_sms_status(request):
    if not _twilio_validate_signature(request) and not settings.DEBUG:
        return HttpResponseForbidden("invalid signature")
    sid = request.POST.get("MessageSid") or request.POST.get("SmsSid")
    status = (request.POST.get("MessageStatus") or "").lower()
    n = Notification.objects.filter(provider="twilio", provider_message_id=sid).first()
    if not n:
        return HttpResponse("ok")
    if status == "delivered":
        n.status = "delivered"
        n.delivered_at = timezone.now()
        n.save(update_fields=["status", "delivered_at", "updated_at"])
    elif status in ("failed", "undelivered"):
        n.status = "failed"
        n.error_code = request.POST.get("ErrorCode")
        n.error_message = request.POST.get("ErrorMessage") or ""
        n.save(update_fields=["status", "error_code", "error_message", "updated_at"])
        log.warning("SMS %s for notification %s failed: %s", sid, n.id, n.error_code)
    return HttpResponse("ok")
