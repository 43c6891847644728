"""Tests for distance and delivery pricing."""
from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

from garagehub.marketplace.geo import delivery_charge, distance_between, haversine_km, to_cents


class TestHaversine:
    """Great-circle distance."""

    def test_same_point_is_zero(self):
        assert haversine_km(3.139, 101.6869, 3.139, 101.6869) == 0.0

    def test_kl_to_penang(self):
        """KLCC to George Town is roughly 290 km as the crow flies."""
        distance = haversine_km(3.1579, 101.7116, 5.4141, 100.3288)
        assert 270 < distance < 320

    def test_symmetric(self):
        there = haversine_km(3.0738, 101.5183, 3.1073, 101.6067)
        back = haversine_km(3.1073, 101.6067, 3.0738, 101.5183)
        assert there == back

    def test_rounded_to_two_places(self):
        distance = haversine_km(3.0738, 101.5183, 3.1073, 101.6067)
        assert round(distance, 2) == distance


class TestDistanceBetween:
    """Distance between located records."""

    def _located(self, lat, lng):
        record = MagicMock()
        record.latitude = lat
        record.longitude = lng
        return record

    def test_uses_record_coordinates(self):
        a = self._located(Decimal("3.0738"), Decimal("101.5183"))
        b = self._located(Decimal("3.1073"), Decimal("101.6067"))
        assert distance_between(a, b) == haversine_km(3.0738, 101.5183, 3.1073, 101.6067)

    def test_missing_coordinates_gives_none(self):
        a = self._located(None, Decimal("101.5183"))
        b = self._located(Decimal("3.1073"), Decimal("101.6067"))
        assert distance_between(a, b) is None


class TestDeliveryCharge:
    """Per-item base plus per-km rate."""

    def test_items_and_distance(self):
        # 2 items * RM 3.00 + 10 km * RM 0.80
        assert delivery_charge(2, 10.0) == Decimal("14.00")

    def test_zero_distance_charges_items_only(self):
        assert delivery_charge(3, 0.0) == Decimal("9.00")

    def test_rounds_half_up_to_cents(self):
        # 1 * 3.00 + 0.80 * 1.23 = 3.984
        assert delivery_charge(1, 1.23) == Decimal("3.98")
        # 1 * 3.00 + 0.80 * 1.25625 = 4.005
        assert delivery_charge(1, 1.25625) == Decimal("4.01")

    def test_to_cents(self):
        assert to_cents("10.005") == Decimal("10.01")
        assert to_cents(7) == Decimal("7.00")
