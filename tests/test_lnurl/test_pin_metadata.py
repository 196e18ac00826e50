"""Tests for the edit PIN, the metadata document and LNURL wire shapes."""

from __future__ import annotations

import base64
import hashlib
import json

from sataddress.lnurl.metadata import BANNER_PNG_BASE64, Metadata
from sataddress.lnurl.models import (
    PayRequestParams,
    PayRequestValues,
    SuccessAction,
    error_response,
)
from sataddress.lnurl.pin import check_pin, compute_pin

KNOWN_PIN = "a8fe9f81a343e918a2aa9a6ee251b2e672c90b8f9b98d253db202ab910dc3668"


class TestPin:
    def test_known_answer(self) -> None:
        assert compute_pin("user", "domain", "secret1") == KNOWN_PIN

    def test_deterministic(self) -> None:
        assert compute_pin("alice", "example.com", "s") == compute_pin("alice", "example.com", "s")

    def test_depends_on_every_input(self) -> None:
        base = compute_pin("alice", "example.com", "s")
        assert compute_pin("bob", "example.com", "s") != base
        assert compute_pin("alice", "example.org", "s") != base
        assert compute_pin("alice", "example.com", "t") != base

    def test_check_pin(self) -> None:
        assert check_pin(KNOWN_PIN, "user", "domain", "secret1") is True
        assert check_pin(KNOWN_PIN.upper(), "user", "domain", "secret1") is False
        assert check_pin("", "user", "domain", "secret1") is False


class TestMetadata:
    def test_entries_in_order(self) -> None:
        entries = Metadata(name="alice", domain="example.com").entries()
        assert entries[0] == ["text/identifier", "alice@example.com"]
        assert entries[1] == ["text/plain", "Satoshis for alice@example.com."]
        assert entries[2][0] == "image/png;base64"

    def test_banner_is_png(self) -> None:
        assert base64.b64decode(BANNER_PNG_BASE64).startswith(b"\x89PNG")

    def test_compact_json(self) -> None:
        text = Metadata(name="alice", domain="example.com").to_json()
        assert ", " not in text
        assert text.startswith('[["text/identifier","alice@example.com"],')
        assert json.loads(text)[1][1] == "Satoshis for alice@example.com."

    def test_non_ascii_kept(self) -> None:
        assert "zoë" in Metadata(name="zoë", domain="example.com").to_json()

    def test_hash_matches_string_form(self) -> None:
        metadata = Metadata(name="alice", domain="example.com")
        assert metadata.sha256() == hashlib.sha256(str(metadata).encode()).digest()


class TestWireModels:
    def test_pay_request(self) -> None:
        data = PayRequestParams(
            callback="https://example.com/.well-known/lnurlp/alice",
            min_sendable=1_000,
            max_sendable=2_000,
            metadata="[]",
            comment_allowed=128,
        ).to_dict()
        assert data == {
            "status": "OK",
            "callback": "https://example.com/.well-known/lnurlp/alice",
            "minSendable": 1_000,
            "maxSendable": 2_000,
            "metadata": "[]",
            "commentAllowed": 128,
            "tag": "payRequest",
        }

    def test_pay_values(self) -> None:
        data = PayRequestValues(pr="lnbc1").to_dict()
        assert data["status"] == "OK"
        assert data["pr"] == "lnbc1"
        assert data["successAction"] == {"tag": "message", "message": "Payment received!"}
        assert data["disposable"] is False
        assert data["routes"] == []

    def test_success_action_skips_unset(self) -> None:
        assert SuccessAction(url="https://x.example").to_dict() == {
            "tag": "message",
            "url": "https://x.example",
        }

    def test_error_response(self) -> None:
        assert error_response("nope") == {"status": "ERROR", "reason": "nope"}
