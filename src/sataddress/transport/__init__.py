"""HTTPS transports for wallet backend calls."""

from sataddress.transport.selector import (
    DirectTLSTransport,
    ProxiedTLSTransport,
    Transport,
    TransportPolicy,
    TransportSelector,
)

__all__ = [
    "DirectTLSTransport",
    "ProxiedTLSTransport",
    "Transport",
    "TransportPolicy",
    "TransportSelector",
]
