"""Backfill `Order.hostel` from the free-text fields typed at checkout."""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from django.db.models import Q

from apps.orders.models import Order

from . import matching
from .models import DeliveryLocationMapping, Hostel
from .services import upsert_mapping

log = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    total: int = 0
    migrated: int = 0
    not_found: int = 0
    errors: int = 0
    unresolved: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _active_hostels() -> list[Hostel]:
    return list(Hostel.objects.filter(is_active=True).order_by("created_at", "pk"))


def _active_mappings() -> list[DeliveryLocationMapping]:
    return list(
        DeliveryLocationMapping.objects.filter(is_active=True, hostel__is_active=True)
        .select_related("hostel")
        .order_by("created_at", "pk")
    )


def reconcile_order_hostels() -> ReconcileResult:
    """Link every unresolved order to a hostel when the matcher finds one.

    Orders that already carry a hostel are never selected, so running this
    twice is a no-op for the ones resolved the first time. A failure on one
    order is logged and the loop moves on.
    """
    hostels = _active_hostels()
    mappings = _active_mappings()
    result = ReconcileResult()

    pending = (
        Order.objects.filter(hostel__isnull=True)
        .only("id", "order_number", "hostel_name", "delivery_location")
        .order_by("created_at")
    )
    for order in pending.iterator():
        result.total += 1
        try:
            match = matching.match_hostel(order.hostel_name, order.delivery_location, hostels, mappings)
            if match is None:
                result.not_found += 1
                result.unresolved.append(order.order_number)
                log.info(
                    "No hostel found for order %s (hostel_name=%r, delivery_location=%r)",
                    order.order_number,
                    order.hostel_name,
                    order.delivery_location,
                )
                continue
            updated = Order.objects.filter(pk=order.pk, hostel__isnull=True).update(hostel=match.hostel)
            if updated:
                result.migrated += 1
                log.info("Order %s → %s (%s)", order.order_number, match.hostel.name, match.match_type)
        except Exception:
            result.errors += 1
            log.exception("Error reconciling hostel for order %s", order.order_number)

    log.info(
        "Hostel reconciliation finished: %s migrated, %s not found, %s errors of %s",
        result.migrated,
        result.not_found,
        result.errors,
        result.total,
    )
    return result


def analyze_hostel_data() -> dict[str, int]:
    has_name = ~Q(hostel_name="")
    has_hostel = Q(hostel__isnull=False)
    with_name = Order.objects.filter(has_name).count()
    with_both = Order.objects.filter(has_name & has_hostel).count()
    return {
        "total_orders": Order.objects.count(),
        "orders_with_hostel_name": with_name,
        "orders_with_hostel_id": Order.objects.filter(has_hostel).count(),
        "orders_with_both": with_both,
        "orders_needing_migration": with_name - with_both,
    }


def suggest_mappings(*, persist: bool = False, created_by: str = "analyze_script") -> dict[str, Any]:
    """Run the matcher over every distinct delivery location seen on orders.

    With `persist`, matches are written to the mapping table as exact or
    partial entries; manual entries already present are left alone.
    """
    hostels = _active_hostels()
    locations = (
        Order.objects.exclude(delivery_location="")
        .values_list("delivery_location", flat=True)
        .distinct()
        .order_by("delivery_location")
    )
    manual = set(
        DeliveryLocationMapping.objects.filter(mapping_type=DeliveryLocationMapping.TYPE_MANUAL).values_list(
            "delivery_location", flat=True
        )
    )

    matched: list[dict[str, str]] = []
    unmatched: list[str] = []
    for delivery_location in locations:
        # the delivery text doubles as the name probe, as typed addresses often are hostel names
        match = matching.match_hostel(delivery_location, delivery_location, hostels)
        if match is None:
            unmatched.append(delivery_location)
            continue
        matched.append(
            {
                "delivery_location": delivery_location,
                "hostel_id": str(match.hostel.id),
                "hostel_name": match.hostel.name,
                "match_type": match.match_type,
            }
        )
        if persist and delivery_location.strip() not in manual:
            mapping_type = (
                DeliveryLocationMapping.TYPE_EXACT if match.is_exact else DeliveryLocationMapping.TYPE_PARTIAL
            )
            upsert_mapping(delivery_location, match.hostel, mapping_type=mapping_type, created_by=created_by)

    return {"matched": matched, "unmatched": unmatched}
