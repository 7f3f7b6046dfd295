"""
Service catalog and order pricing.

Prices are copied into an order when it is created; an order's total is never
recomputed from the live catalog afterwards.
"""
import re
from typing import Mapping

from domain.constants import GARMENT_KINDS
from domain.errors import EmptyOrderError, InvalidCatalogEntryError, ValidationError

DEFAULT_SERVICES: list[dict] = [
    {
        "name": "Normal Wash",
        "description": "Regular washing and drying service for everyday clothes",
        "price_per_cloth": {"shirt": 20, "pant": 25, "dress": 30, "jacket": 50},
    },
    {
        "name": "Wash & Iron",
        "description": "Complete washing, drying, and ironing service",
        "price_per_cloth": {"shirt": 35, "pant": 40, "dress": 45, "jacket": 70},
    },
    {
        "name": "Dry Clean",
        "description": "Professional dry cleaning for delicate fabrics",
        "price_per_cloth": {"shirt": 60, "pant": 70, "dress": 80, "jacket": 120},
    },
    {
        "name": "Express Service",
        "description": "Quick 24-hour turnaround service",
        "price_per_cloth": {"shirt": 40, "pant": 50, "dress": 55, "jacket": 90},
    },
]


def service_id_for(name: str) -> str:
    """'Wash & Iron' -> 'wash_&_iron'"""
    return re.sub(r"\s+", "_", name.strip().lower())


def normalize_clothes(clothes: Mapping[str, int]) -> dict[str, int]:
    """
    Return a full garment snapshot (every kind present, missing kinds = 0).

    Raises:
        ValidationError: unknown garment kind or negative count
        EmptyOrderError: every count is zero
    """
    kinds = {k.value for k in GARMENT_KINDS}
    unknown = sorted(set(clothes) - kinds)
    if unknown:
        raise ValidationError(f"Unknown garment kind(s): {', '.join(unknown)}", field="clothes")

    snapshot: dict[str, int] = {}
    for kind in GARMENT_KINDS:
        qty = int(clothes.get(kind.value, 0) or 0)
        if qty < 0:
            raise ValidationError(f"Quantity for {kind.value} must be >= 0", field="clothes")
        snapshot[kind.value] = qty

    if not any(snapshot.values()):
        raise EmptyOrderError()
    return snapshot


def compute_total_cost(
    service_name: str,
    price_per_cloth: Mapping[str, int],
    clothes: Mapping[str, int],
    *,
    lenient: bool = False,
) -> int:
    """
    Sum quantity * unit price over the fixed garment set.

    A kind with a positive quantity and no price fails with
    InvalidCatalogEntryError, unless ``lenient`` is set (price counts as 0).
    """
    total = 0
    for kind in GARMENT_KINDS:
        qty = clothes.get(kind.value, 0)
        if not qty:
            continue
        price = price_per_cloth.get(kind.value)
        if price is None:
            if lenient:
                continue
            raise InvalidCatalogEntryError(service_name, kind.value)
        total += qty * int(price)
    return total
