"""Keysend backend — invoices issued by the relay LNbits wallet of the address.

The relay forwards incoming payments to the registrant's node by keysend, so
the request shape is the LNbits one, sent with the provisioned admin key.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sataddress.backends.base import InvoiceBackend
from sataddress.backends.lnbits import lnbits_invoice_body
from sataddress.errors.definitions import ErrKeysendNotProvisioned
from sataddress.models.record import KEYSEND_MIN_SENDABLE

if TYPE_CHECKING:
    from sataddress.lnurl.metadata import Metadata
    from sataddress.models.record import KeysendParams


class KeysendBackend(InvoiceBackend):
    """Invoices issued on the relay for keysend forwarding."""

    comment_allowed = 0
    min_sendable_floor = KEYSEND_MIN_SENDABLE
    credential_header = "X-Api-Key"
    invoice_path = "/api/v1/payments"

    def __init__(self, params: KeysendParams, relay_url: str) -> None:
        self._params = params
        self._relay_url = relay_url.rstrip("/")

    @property
    def host(self) -> str:
        return self._relay_url

    def credential(self) -> str:
        if not self._params.admin_key:
            raise ErrKeysendNotProvisioned
        return self._params.admin_key

    def build_body(
        self, amount_msat: int, comment: str | None, metadata: Metadata
    ) -> dict[str, Any]:
        return lnbits_invoice_body(amount_msat, comment, metadata)
