"""Tests for the address record model."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from sataddress.models.record import (
    DEFAULT_MAX_SENDABLE,
    DEFAULT_MIN_SENDABLE,
    KEYSEND_MIN_SENDABLE,
    AddressRecord,
    Counter,
    KeysendParams,
    LNbitsParams,
    LndParams,
    UsageStats,
    record_key,
)
from tests.helpers import make_record

# ---------------------------------------------------------------------------
# Backend variants
# ---------------------------------------------------------------------------


class TestBackendParams:
    def test_lnd_strips_trailing_slash(self) -> None:
        params = LndParams(host="https://node.example.net:8080/", macaroon="abcd")
        assert params.host == "https://node.example.net:8080"

    def test_host_must_be_url(self) -> None:
        with pytest.raises(ValidationError):
            LndParams(host="node.example.net", macaroon="abcd")
        with pytest.raises(ValidationError):
            LNbitsParams(host="ftp://lnbits.example.org", key="k")

    def test_empty_credentials_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LndParams(host="https://n.example.net", macaroon="")
        with pytest.raises(ValidationError):
            LNbitsParams(host="https://l.example.org", key="")
        with pytest.raises(ValidationError):
            KeysendParams(pub_key="")

    def test_keysend_provisioned(self) -> None:
        assert KeysendParams(pub_key="02ab").is_provisioned is False
        params = KeysendParams(pub_key="02ab", user_id="u", admin_key="a", wallet_id="w")
        assert params.is_provisioned is True

    def test_discriminated_by_kind(self) -> None:
        record = AddressRecord.model_validate(
            {
                "name": "bob",
                "domain": "example.com",
                "backend": {"kind": "lnbits", "host": "https://l.example.org", "key": "k"},
                "pin": "p",
            }
        )
        assert isinstance(record.backend, LNbitsParams)


# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------


class TestCounters:
    def test_inc_updates_timestamp(self) -> None:
        counter = Counter(num=0, last_update=datetime(2020, 1, 1, tzinfo=UTC))
        counter.inc()
        assert counter.num == 1
        assert counter.last_update.year > 2020

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Counter(num=-1)

    def test_total(self) -> None:
        stats = UsageStats()
        stats.invoices.inc()
        stats.calls.inc()
        stats.calls.inc()
        assert stats.total == 3


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------


class TestAddressRecord:
    def test_key(self) -> None:
        assert make_record().key == "alice@example.com"
        assert record_key("bob", "example.org") == "bob@example.org"

    def test_default_bounds(self) -> None:
        record = make_record()
        assert record.effective_min_sendable == DEFAULT_MIN_SENDABLE
        assert record.effective_max_sendable == DEFAULT_MAX_SENDABLE

    def test_explicit_bounds(self) -> None:
        record = make_record(min_sendable=5_000, max_sendable=10_000)
        assert record.effective_min_sendable == 5_000
        assert record.effective_max_sendable == 10_000

    def test_keysend_floor(self) -> None:
        record = make_record(backend=KeysendParams(pub_key="02ab"), min_sendable=1_000)
        assert record.effective_min_sendable == KEYSEND_MIN_SENDABLE

    def test_max_never_below_min(self) -> None:
        record = make_record(min_sendable=5_000, max_sendable=1_000)
        assert record.effective_max_sendable == 5_000

    def test_bytes_round_trip_preserves_stats(self) -> None:
        record = make_record()
        record.stats.calls.inc()
        restored = AddressRecord.from_bytes(record.to_bytes())
        assert restored == record
        assert restored.stats.calls.num == 1
