"""LNURL-pay wire structures (LUD-06 / LUD-09)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

TAG_PAY_REQUEST = "payRequest"
STATUS_OK = "OK"
STATUS_ERROR = "ERROR"


@dataclass(frozen=True, slots=True)
class SuccessAction:
    """Action shown by the payer wallet once the invoice is paid."""

    tag: str = "message"
    message: str | None = None
    description: str | None = None
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"tag": self.tag}
        for key in ("message", "description", "url"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True, slots=True)
class PayRequestParams:
    """First-phase response: how to pay this address."""

    callback: str
    min_sendable: int
    max_sendable: int
    metadata: str
    comment_allowed: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": STATUS_OK,
            "callback": self.callback,
            "minSendable": self.min_sendable,
            "maxSendable": self.max_sendable,
            "metadata": self.metadata,
            "commentAllowed": self.comment_allowed,
            "tag": TAG_PAY_REQUEST,
        }


@dataclass(frozen=True, slots=True)
class PayRequestValues:
    """Second-phase response: the invoice to pay."""

    pr: str
    success_action: SuccessAction = field(
        default_factory=lambda: SuccessAction(message="Payment received!")
    )
    disposable: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": STATUS_OK,
            "pr": self.pr,
            "successAction": self.success_action.to_dict(),
            "disposable": self.disposable,
            "routes": [],
        }


def error_response(reason: str) -> dict[str, Any]:
    """LNURL in-band error shape; wallets read it regardless of HTTP status."""
    return {"status": STATUS_ERROR, "reason": reason}
