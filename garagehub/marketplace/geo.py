"""Great-circle distance and delivery pricing."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from garagehub.config import settings

EARTH_RADIUS_KM = 6371.0

CENTS = Decimal("0.01")


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance between two coordinates in kilometres, rounded to 2 dp."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_KM * c, 2)


def distance_between(a, b) -> Optional[float]:
    """Distance between two located records (anything with latitude/longitude).

    Returns None when either side has no coordinates.
    """
    if None in (a.latitude, a.longitude, b.latitude, b.longitude):
        return None
    return haversine_km(
        float(a.latitude), float(a.longitude), float(b.latitude), float(b.longitude)
    )


def delivery_charge(item_count: int, distance_km: float) -> Decimal:
    """Runner delivery fee: a per-item base plus a per-kilometre rate.

    Args:
        item_count: Total quantity of units in the order
        distance_km: Supplier to workshop distance

    Returns:
        Fee in RM, rounded to cents
    """
    base = settings.delivery_rate_per_item * item_count
    by_distance = settings.delivery_rate_per_km * Decimal(str(distance_km))
    return (base + by_distance).quantize(CENTS, rounding=ROUND_HALF_UP)


def to_cents(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
