from __future__ import annotations

from typing import Optional

from django.db import IntegrityError, transaction

from .models import Notification
from .tasks import send_notification


def enqueue(
    *,
    type: str,
    to: str,
    template_code: str,
    payload: dict,
    idempotency_key: Optional[str] = None,
    user_id=None,
    order=None,
) -> Notification:
    """Persist a queued notification and hand it to the worker after commit.

    A key that was already used returns the existing row without sending again.
    """
    if idempotency_key:
        existing = Notification.objects.filter(idempotency_key=idempotency_key).first()
        if existing:
            return existing

    n = Notification(
        type=type,
        to=to,
        template_code=template_code,
        payload_json=payload or {},
        status="queued",
        user_id=user_id,
        order=order,
    )
    if idempotency_key:
        n.idempotency_key = idempotency_key
    try:
        with transaction.atomic():
            n.save()
    except IntegrityError:
        # race on idempotency_key unique
        existing = Notification.objects.filter(idempotency_key=idempotency_key).first()
        if existing:
            return existing
        raise

    transaction.on_commit(lambda: send_notification.delay(str(n.id)))
    return n
