"""LND REST backend (``POST /v1/invoices``)."""

from __future__ import annotations

import base64
import binascii
import string
from typing import TYPE_CHECKING, Any

from sataddress.backends.base import InvoiceBackend

if TYPE_CHECKING:
    from sataddress.lnurl.metadata import Metadata
    from sataddress.models.record import LndParams

_HEX_DIGITS = frozenset(string.hexdigits)


def macaroon_to_hex(macaroon: str) -> str:
    """Return the macaroon as hex, decoding it from base64 when needed.

    Macaroons are usually handed out base64-encoded while the REST gateway
    expects hex. A value that is already hex is passed through unchanged.
    """
    macaroon = macaroon.strip()
    if macaroon and len(macaroon) % 2 == 0 and set(macaroon) <= _HEX_DIGITS:
        return macaroon.lower()
    try:
        return base64.b64decode(macaroon, validate=True).hex()
    except (binascii.Error, ValueError):
        return macaroon


class LndBackend(InvoiceBackend):
    """Invoices issued directly by an LND node."""

    comment_allowed = 128
    credential_header = "Grpc-Metadata-macaroon"
    invoice_path = "/v1/invoices"

    def __init__(self, params: LndParams) -> None:
        self._params = params

    @property
    def host(self) -> str:
        return self._params.host

    def credential(self) -> str:
        return macaroon_to_hex(self._params.macaroon)

    def build_body(
        self, amount_msat: int, comment: str | None, metadata: Metadata
    ) -> dict[str, Any]:
        return {
            "value_msat": amount_msat,
            "memo": comment if comment else metadata.text,
            "description_hash": base64.b64encode(metadata.sha256()).decode("ascii"),
        }
