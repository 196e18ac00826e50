"""Address record — the single persisted entity.

One ``AddressRecord`` exists per registered ``name@domain``. It carries the
wallet backend configuration (a closed set of variants discriminated by
``kind``), the optional sendable bounds, the derived PIN, and usage counters.
Records are stored as compact JSON bytes.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

# Sendable bounds applied when a record does not set its own (millisatoshis)
DEFAULT_MIN_SENDABLE = 1_000
DEFAULT_MAX_SENDABLE = 1_000_000_000

# Below this amount keysend payments tend to fail on routing fees
KEYSEND_MIN_SENDABLE = 3_000


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _validate_host(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        msg = "host must be an absolute http(s) URL"
        raise ValueError(msg)
    return value.rstrip("/")


# ---------------------------------------------------------------------------
# Backend variants
# ---------------------------------------------------------------------------


class LndParams(BaseModel):
    """LND REST API reached directly (``/v1/invoices``)."""

    kind: Literal["lnd"] = "lnd"
    host: str
    macaroon: str = Field(min_length=1)

    @field_validator("host")
    @classmethod
    def _check_host(cls, value: str) -> str:
        return _validate_host(value)


class LNbitsParams(BaseModel):
    """Hosted LNbits wallet (``/api/v1/payments``)."""

    kind: Literal["lnbits"] = "lnbits"
    host: str
    key: str = Field(min_length=1)

    @field_validator("host")
    @classmethod
    def _check_host(cls, value: str) -> str:
        return _validate_host(value)


class KeysendParams(BaseModel):
    """Keysend relayed through a per-address wallet on the server's LNbits.

    ``user_id``, ``admin_key`` and ``wallet_id`` are filled in by provisioning;
    only ``pub_key`` comes from the registrant.
    """

    kind: Literal["keysend"] = "keysend"
    pub_key: str = Field(min_length=1)
    user_id: str | None = None
    admin_key: str | None = None
    wallet_id: str | None = None

    @property
    def is_provisioned(self) -> bool:
        return bool(self.user_id and self.admin_key and self.wallet_id)


BackendParams = Annotated[
    LndParams | LNbitsParams | KeysendParams,
    Field(discriminator="kind"),
]

BACKEND_KINDS: dict[str, type[BaseModel]] = {
    "lnd": LndParams,
    "lnbits": LNbitsParams,
    "keysend": KeysendParams,
}


# ---------------------------------------------------------------------------
# Usage counters
# ---------------------------------------------------------------------------


class Counter(BaseModel):
    """Monotonic counter paired with the time of its last increment."""

    num: int = Field(default=0, ge=0)
    last_update: datetime = Field(default_factory=_utcnow)

    def inc(self) -> None:
        self.num += 1
        self.last_update = _utcnow()


class UsageStats(BaseModel):
    """Per-address usage counters."""

    invoices: Counter = Field(default_factory=Counter)
    calls: Counter = Field(default_factory=Counter)
    edits: Counter = Field(default_factory=Counter)

    @property
    def total(self) -> int:
        return self.invoices.num + self.calls.num + self.edits.num


CounterName = Literal["invoices", "calls", "edits"]


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------


class AddressRecord(BaseModel):
    """A registered Lightning Address and its backend configuration."""

    name: str
    domain: str
    backend: BackendParams
    min_sendable: int | None = Field(default=None, ge=0)
    max_sendable: int | None = Field(default=None, ge=0)
    pin: str
    stats: UsageStats = Field(default_factory=UsageStats)

    @property
    def key(self) -> str:
        return record_key(self.name, self.domain)

    @property
    def effective_min_sendable(self) -> int:
        floor = KEYSEND_MIN_SENDABLE if isinstance(self.backend, KeysendParams) else 0
        value = self.min_sendable if self.min_sendable is not None else DEFAULT_MIN_SENDABLE
        return max(value, floor)

    @property
    def effective_max_sendable(self) -> int:
        value = self.max_sendable if self.max_sendable is not None else DEFAULT_MAX_SENDABLE
        return max(value, self.effective_min_sendable)

    def to_bytes(self) -> bytes:
        """Serialize the whole record as one opaque store value."""
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> AddressRecord:
        return cls.model_validate_json(raw)


def record_key(name: str, domain: str) -> str:
    """Store key for an address — ``name@domain``."""
    return f"{name}@{domain}"
