"""Address registration and editing (``POST /grab``)."""

from sataddress.registration.service import (
    PROBE_AMOUNT_MSAT,
    RegistrationRequest,
    RegistrationResult,
    RegistrationService,
)

__all__ = [
    "PROBE_AMOUNT_MSAT",
    "RegistrationRequest",
    "RegistrationResult",
    "RegistrationService",
]
