"""Deterministic PIN guarding edits of an existing address.

``PIN = hex(SHA256(secret || username || domain))``. The owner can always
re-derive it from the server, and anyone who knows the server secret can
compute it for any address; it is a convenience guard, not a real secret.
"""

from __future__ import annotations

from sataddress.utils.crypto import constant_time_equals, sha256


def compute_pin(username: str, domain: str, secret: str) -> str:
    """Compute the PIN required to modify ``username@domain``."""
    return sha256(f"{secret}{username}{domain}".encode()).hex()


def check_pin(candidate: str, username: str, domain: str, secret: str) -> bool:
    """Constant-time check of a caller-supplied PIN."""
    return constant_time_equals(candidate, compute_pin(username, domain, secret))
