"""Invoice gateway — one invoice request against an address's backend.

Orchestrates the backend payload builder and the transport selector:

1. backend-specific amount floor (domain error, nothing is sent)
2. request construction
3. transport selection (direct or Tor)
4. a single call bounded by the configured timeout, never retried
5. response validation and ``payment_request`` extraction
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING

import httpx

from sataddress.backends import backend_for
from sataddress.errors.backend_errors import (
    BackendRejectedError,
    BackendUnreachableError,
    BadBackendResponseError,
    InvoiceTimeoutError,
)
from sataddress.lnurl.metadata import Metadata

if TYPE_CHECKING:
    from sataddress.models.record import AddressRecord
    from sataddress.transport.selector import TransportSelector

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 180.0


class InvoiceGateway:
    """Issues invoices through the wallet backend of an address record.

    Args:
        selector: Transport selector used to reach backends.
        relay_url: Base URL of the LNbits relay (keysend addresses).
        timeout: Overall bound for one backend call, in seconds.
    """

    def __init__(
        self,
        selector: TransportSelector,
        *,
        relay_url: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._selector = selector
        self._relay_url = relay_url
        self._timeout = timeout

    async def issue_invoice(
        self,
        record: AddressRecord,
        amount_msat: int,
        comment: str | None = None,
    ) -> str:
        """Request a new invoice for *amount_msat* from the record's backend.

        Each call may create a distinct invoice; nothing is retried.

        Args:
            record: The address whose backend issues the invoice.
            amount_msat: Invoice amount in millisatoshis.
            comment: Optional payer comment forwarded as memo.

        Returns:
            The BOLT11 payment request string.

        Raises:
            AddressError: Validation errors before anything is sent.
            GatewayError: Timeout, rejection, unusable response, or
                connection failure.
        """
        backend = backend_for(record.backend, relay_url=self._relay_url)
        backend.check_amount(amount_msat)

        metadata = Metadata(name=record.name, domain=record.domain)
        request = backend.build_request(amount_msat, comment, metadata)

        logger.debug(
            "Requesting invoice for %s: %s msat via %s",
            record.key,
            amount_msat,
            type(backend).__name__,
        )

        async with self._selector.open_secure_channel(backend.is_onion_host()) as channel:
            try:
                async with asyncio.timeout(self._timeout):
                    response = await channel.request(
                        request.method,
                        request.url,
                        headers=request.headers,
                        json=request.body,
                    )
            except (TimeoutError, httpx.TimeoutException) as exc:
                logger.warning("Invoice call for %s timed out", record.key)
                raise InvoiceTimeoutError(self._timeout) from exc
            except httpx.HTTPError as exc:
                logger.warning("Invoice call for %s failed: %s", record.key, exc)
                raise BackendUnreachableError(f"Backend connection failed: {exc}") from exc

        return self._payment_request(record, amount_msat, response)

    @staticmethod
    def _payment_request(record: AddressRecord, amount_msat: int, response: httpx.Response) -> str:
        data = response.text

        if response.status_code >= 300:
            raise BackendRejectedError(response.status_code, data)

        try:
            payload = json.loads(data)
        except json.JSONDecodeError as exc:
            logger.debug(
                "Unable to parse json response from backend: %s, data: %r", exc, data[:500]
            )
            raise BadBackendResponseError from exc

        pr = payload.get("payment_request") if isinstance(payload, dict) else None
        if not isinstance(pr, str) or not pr:
            raise BadBackendResponseError("Backend response has no payment_request")

        logger.debug("Invoice generated for %s, %s msat: %s", record.key, amount_msat, pr)
        return pr
