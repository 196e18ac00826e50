"""Predefined error instances shared across the server."""

from __future__ import annotations

from sataddress.errors.address_errors import AddressError

# -- Authentication --------------------------------------------------------

ErrUnauthorized = AddressError("unauthorized", status_code=401, code="unauthorized")

# -- Not Found -------------------------------------------------------------

ErrRecordNotFound = AddressError("Not Found", status_code=404, code="not-found")

# -- Validation ------------------------------------------------------------

ErrInvalidAmount = AddressError(
    "amount must be an unsigned integer in millisatoshis",
    status_code=400,
    code="invalid-amount",
)
ErrAmountBelowMinimum = AddressError(
    "amount is below the minimum this backend can receive",
    status_code=400,
    code="amount-below-minimum",
)
ErrAmountOutOfRange = AddressError(
    "amount is outside the sendable range", status_code=400, code="amount-out-of-range"
)
ErrCommentTooLong = AddressError(
    "comment is longer than allowed", status_code=400, code="comment-too-long"
)
ErrReservedName = AddressError(
    "trying to use a reserved username", status_code=400, code="reserved-name"
)
ErrPinRequired = AddressError(
    "PIN required to modify record (entry already exists)",
    status_code=400,
    code="pin-required",
)
ErrPinIncorrect = AddressError("provided PIN incorrect", status_code=400, code="pin-incorrect")
ErrKeysendNotProvisioned = AddressError(
    "keysend backend is not provisioned (missing admin key)",
    status_code=400,
    code="keysend-not-provisioned",
)

# -- Store -----------------------------------------------------------------

ErrStoreFailure = AddressError("record store failure", status_code=500, code="store-failure")

# -- Configuration ---------------------------------------------------------

ErrPinSecretMissing = AddressError(
    "registration is disabled (no PIN secret configured)",
    status_code=503,
    code="registration-disabled",
)
