"""LNbits backend (``POST /api/v1/payments``)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sataddress.backends.base import InvoiceBackend

if TYPE_CHECKING:
    from sataddress.lnurl.metadata import Metadata
    from sataddress.models.record import LNbitsParams


def lnbits_invoice_body(
    amount_msat: int, comment: str | None, metadata: Metadata
) -> dict[str, Any]:
    """Invoice body understood by the LNbits payments API.

    LNbits hashes ``unhashed_description`` into the invoice and then ignores
    ``memo``, so a payer comment does not show up on the receiving side. The
    description is still required for wallets to accept the invoice.
    """
    body: dict[str, Any] = {
        "amount": amount_msat // 1000,
        "out": False,
        "unhashed_description": metadata.to_json().encode("utf-8").hex(),
    }
    if comment:
        body["memo"] = comment
    return body


class LNbitsBackend(InvoiceBackend):
    """Invoices issued by an LNbits wallet."""

    comment_allowed = 0
    credential_header = "X-Api-Key"
    invoice_path = "/api/v1/payments"

    def __init__(self, params: LNbitsParams) -> None:
        self._params = params

    @property
    def host(self) -> str:
        return self._params.host

    def credential(self) -> str:
        return self._params.key

    def build_body(
        self, amount_msat: int, comment: str | None, metadata: Metadata
    ) -> dict[str, Any]:
        return lnbits_invoice_body(amount_msat, comment, metadata)
