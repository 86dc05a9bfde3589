import logging

from celery import shared_task

from .reconcile import reconcile_order_hostels

log = logging.getLogger(__name__)


@shared_task
def reconcile_hostels():
    """Nightly backfill of order → hostel links."""
    log.info("Starting scheduled hostel reconciliation")
    return reconcile_order_hostels().as_dict()
