"""Wallet backends able to issue invoices for an address."""

from __future__ import annotations

from sataddress.backends.base import InvoiceBackend, InvoiceRequest, is_onion_host
from sataddress.backends.keysend import KeysendBackend
from sataddress.backends.lnbits import LNbitsBackend
from sataddress.backends.lnd import LndBackend
from sataddress.models.record import BackendParams, KeysendParams, LNbitsParams, LndParams

__all__ = [
    "InvoiceBackend",
    "InvoiceRequest",
    "KeysendBackend",
    "LNbitsBackend",
    "LndBackend",
    "backend_for",
    "is_onion_host",
]


def backend_for(params: BackendParams, *, relay_url: str) -> InvoiceBackend:
    """Return the backend strategy for a record's backend configuration.

    Args:
        params: The record's backend variant.
        relay_url: Base URL of the LNbits relay used by keysend addresses.
    """
    if isinstance(params, LndParams):
        return LndBackend(params)
    if isinstance(params, LNbitsParams):
        return LNbitsBackend(params)
    if isinstance(params, KeysendParams):
        return KeysendBackend(params, relay_url)
    msg = f"Unsupported backend: {type(params).__name__}"
    raise TypeError(msg)
