"""Free-text delivery address → Hostel matching.

Orders only carry what the customer typed at checkout. This module decides
which registered hostel (if any) that text refers to, without touching the
database, so it can run over prefetched rows in a loop.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol, Sequence


class HostelLike(Protocol):
    name: str
    address: str


class MappingLike(Protocol):
    delivery_location: str
    hostel_name: str
    hostel: Any


EXACT_NAME = "exact_name"
EXACT_ADDRESS = "exact_address"
PARTIAL_NAME_IN_DELIVERY = "partial_name_in_delivery"
PARTIAL_ADDRESS_IN_DELIVERY = "partial_address_in_delivery"
PARTIAL_DELIVERY_IN_NAME = "partial_delivery_in_name"
PARTIAL_DELIVERY_IN_ADDRESS = "partial_delivery_in_address"
MAPPING = "mapping"

EXACT_TYPES = frozenset({EXACT_NAME, EXACT_ADDRESS})


@dataclass(frozen=True)
class HostelMatch:
    hostel: Any
    match_type: str

    @property
    def is_exact(self) -> bool:
        return self.match_type in EXACT_TYPES


def normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def _first(hostels: Sequence[HostelLike], predicate) -> Optional[HostelLike]:
    for hostel in hostels:
        name = normalize(hostel.name)
        address = normalize(getattr(hostel, "address", ""))
        if predicate(name, address):
            return hostel
    return None


def match_hostel(
    raw_name: Optional[str],
    raw_address: Optional[str],
    hostels: Iterable[HostelLike],
    mappings: Iterable[MappingLike] = (),
) -> Optional[HostelMatch]:
    """Return the best hostel for a free-text (hostel name, delivery address) pair.

    Rules are tried in order and the first hit wins:

    1. hostel name == raw name
    2. hostel address == raw address
    3. hostel name contained in raw address
    4. hostel address contained in raw address
    5. raw name contained in hostel name
    6. raw address contained in hostel address
    7. a mapping whose delivery_location or hostel_name equals the raw text

    Comparison is case-insensitive on trimmed strings. Empty strings never
    take part in a comparison, otherwise "" would be a substring of everything.
    """
    name = normalize(raw_name)
    address = normalize(raw_address)
    hostels = list(hostels)

    rules = (
        (EXACT_NAME, lambda n, a: bool(name) and n == name),
        (EXACT_ADDRESS, lambda n, a: bool(address) and a == address),
        (PARTIAL_NAME_IN_DELIVERY, lambda n, a: bool(address) and bool(n) and n in address),
        (PARTIAL_ADDRESS_IN_DELIVERY, lambda n, a: bool(address) and bool(a) and a in address),
        (PARTIAL_DELIVERY_IN_NAME, lambda n, a: bool(name) and name in n),
        (PARTIAL_DELIVERY_IN_ADDRESS, lambda n, a: bool(address) and bool(a) and address in a),
    )
    for match_type, predicate in rules:
        hostel = _first(hostels, predicate)
        if hostel is not None:
            return HostelMatch(hostel=hostel, match_type=match_type)

    for mapping in mappings:
        by_name = bool(name) and normalize(mapping.hostel_name) == name
        by_address = bool(address) and normalize(mapping.delivery_location) == address
        if by_name or by_address:
            if mapping.hostel is not None:
                return HostelMatch(hostel=mapping.hostel, match_type=MAPPING)
    return None
