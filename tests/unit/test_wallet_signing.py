"""Tests for payment callback signatures and short product codes."""
from __future__ import annotations

import hashlib
import hmac

from garagehub.config import settings
from garagehub.marketplace.codes import format_short_code
from garagehub.wallet.ledger import sign_reference, verify_reference_signature


class TestPaymentSignature:
    """HMAC-SHA256 over the top-up reference."""

    def test_matches_hmac_sha256(self):
        expected = hmac.new(
            settings.payment_callback_secret.encode(), b"abc123", hashlib.sha256
        ).hexdigest()
        assert sign_reference("abc123") == expected

    def test_verify(self):
        assert verify_reference_signature("abc123", sign_reference("abc123"))

    def test_signature_for_other_reference_rejected(self):
        assert not verify_reference_signature("abc123", sign_reference("abc124"))

    def test_empty_signature_rejected(self):
        assert not verify_reference_signature("abc123", "")


class TestShortCodes:
    def test_zero_padded(self):
        assert format_short_code(1) == "#001"
        assert format_short_code(42) == "#042"

    def test_grows_past_999(self):
        assert format_short_code(1000) == "#1000"
