"""LNURL-pay protocol handler.

Both phases of LNURL-pay hit the same URL and are told apart only by the
``amount`` query parameter; no session state is kept between them:

- phase 1 (no ``amount``): pay request parameters, ``calls`` counter bumped
- phase 2 (``amount``): invoice from the address's backend, ``invoices``
  counter bumped on success

Wallets parse the body regardless of HTTP status, so phase 2 failures are
answered with the LNURL error shape and HTTP 200. Only an unknown address
(404) and store failures (500) use an HTTP error status.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from sataddress.backends import backend_for
from sataddress.errors.address_errors import AddressError
from sataddress.errors.definitions import (
    ErrAmountOutOfRange,
    ErrCommentTooLong,
    ErrInvalidAmount,
    ErrKeysendNotProvisioned,
    ErrRecordNotFound,
    ErrStoreFailure,
)
from sataddress.lnurl.metadata import Metadata
from sataddress.lnurl.models import PayRequestParams, PayRequestValues, error_response
from sataddress.models.record import KeysendParams

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sataddress.gateway.invoice import InvoiceGateway
    from sataddress.keysend.relay import KeysendRelayClient
    from sataddress.metrics.collector import LnurlMetrics
    from sataddress.models.record import AddressRecord
    from sataddress.store.client import RecordStore

logger = logging.getLogger(__name__)

LNURLP_PATH = "/.well-known/lnurlp/"

_INTERNAL_ERROR = "Internal Server Error"


@dataclass(frozen=True, slots=True)
class LnurlReply:
    """HTTP status and JSON body of one LNURL-pay answer."""

    status_code: int
    body: dict[str, Any]


def callback_url(username: str, domain: str) -> str:
    """Callback advertised in the pay request (``https://domain/.well-known/lnurlp/name``)."""
    return f"https://{domain}{LNURLP_PATH}{quote(username, safe='')}"


def parse_amount(raw: str) -> int:
    """Parse the ``amount`` parameter as an unsigned integer (millisatoshis).

    Raises:
        AddressError: ``ErrInvalidAmount`` if *raw* is not a plain decimal.
    """
    if not raw.isascii() or not raw.isdigit():
        raise ErrInvalidAmount
    return int(raw)


class LnurlPayHandler:
    """Answers LNURL-pay requests for registered addresses.

    Args:
        store: Record store holding the addresses.
        gateway: Invoice gateway used for phase 2.
        relay: Keysend relay client (description updates for keysend).
        metrics: Optional metrics sink.
    """

    def __init__(
        self,
        store: RecordStore,
        gateway: InvoiceGateway,
        relay: KeysendRelayClient,
        *,
        metrics: LnurlMetrics | None = None,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._relay = relay
        self._metrics = metrics

    async def handle(self, username: str, domain: str, query: Mapping[str, str]) -> LnurlReply:
        """Answer one request for ``username@domain``.

        Args:
            username: Address name from the request path (already decoded).
            domain: Address domain (from the request host).
            query: Query parameters; ``amount`` selects phase 2.
        """
        try:
            record = await self._store.get(username, domain)
            if record is None:
                raise ErrRecordNotFound

            amount = query.get("amount")
            if amount is None:
                return await self._pay_request(record)
            return await self._invoice(record, amount, query.get("comment") or None)
        except AddressError as exc:
            if exc is ErrRecordNotFound:
                logger.info("Address not found: %s@%s", username, domain)
                return LnurlReply(404, error_response(ErrRecordNotFound.message))
            if exc is ErrStoreFailure:
                return LnurlReply(500, error_response(_INTERNAL_ERROR))
            logger.info("LNURL request for %s@%s failed: %s", username, domain, exc.message)
            if self._metrics is not None:
                self._metrics.invoice_failed(exc.code)
            return LnurlReply(200, error_response(exc.message))

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _pay_request(self, record: AddressRecord) -> LnurlReply:
        backend = backend_for(record.backend, relay_url=self._relay.url)
        params = PayRequestParams(
            callback=callback_url(record.name, record.domain),
            min_sendable=record.effective_min_sendable,
            max_sendable=record.effective_max_sendable,
            metadata=Metadata(name=record.name, domain=record.domain).to_json(),
            comment_allowed=backend.comment_allowed,
        )

        await self._store.increment(record.name, record.domain, "calls")
        if self._metrics is not None:
            self._metrics.info_call()
        return LnurlReply(200, params.to_dict())

    async def _invoice(
        self, record: AddressRecord, raw_amount: str, comment: str | None
    ) -> LnurlReply:
        amount = parse_amount(raw_amount)
        if not record.effective_min_sendable <= amount <= record.effective_max_sendable:
            raise ErrAmountOutOfRange

        backend = backend_for(record.backend, relay_url=self._relay.url)
        if comment is not None and 0 < backend.comment_allowed < len(comment):
            raise ErrCommentTooLong

        if isinstance(record.backend, KeysendParams) and comment is not None:
            if not record.backend.admin_key:
                raise ErrKeysendNotProvisioned
            await self._relay.update_entry(record.backend.admin_key, description=comment)

        kind = record.backend.kind
        if self._metrics is not None:
            with self._metrics.track_backend_call(kind):
                pr = await self._gateway.issue_invoice(record, amount, comment)
        else:
            pr = await self._gateway.issue_invoice(record, amount, comment)

        await self._store.increment(record.name, record.domain, "invoices")
        if self._metrics is not None:
            self._metrics.invoice_issued(kind)
        logger.info("Invoice issued for %s: %s msat", record.key, amount)
        return LnurlReply(200, PayRequestValues(pr=pr).to_dict())
