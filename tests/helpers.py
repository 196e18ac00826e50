"""Constants and factories shared by the test modules."""

from __future__ import annotations

from sataddress.lnurl.pin import compute_pin
from sataddress.models.record import AddressRecord, LndParams

DOMAIN = "example.com"
PIN_SECRET = "secret1"
ADMIN_TOKEN = "admin-token"
LND_HOST = "https://node.example.net:8080"
RELAY_URL = "https://relay.example.org/"
BOLT11 = "lnbc420n1pjexampleinvoice"


def make_record(name: str = "alice", domain: str = DOMAIN, **overrides) -> AddressRecord:
    """Build an AddressRecord with an LND backend unless *backend* is given."""
    fields = {
        "name": name,
        "domain": domain,
        "backend": LndParams(host=LND_HOST, macaroon="0201036c6e64"),
        "pin": compute_pin(name, domain, PIN_SECRET),
    }
    fields.update(overrides)
    return AddressRecord(**fields)
