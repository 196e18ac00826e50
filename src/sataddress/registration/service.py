"""Registration service — claim a new address or edit an existing one.

Flow, stopping at the first failure:

1. body validation (field errors reported per field)
2. reserved-name check
3. PIN check when the address already exists
4. keysend only: provision a relay wallet (new address) or point the
   existing scrub link at the new public key (edit)
5. a probe invoice through the new backend configuration, proving it works
6. the record is written, keeping the usage counters of an edited address
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from sataddress.errors.address_errors import AddressError, FieldValidationError
from sataddress.errors.backend_errors import RelayError
from sataddress.errors.definitions import (
    ErrPinIncorrect,
    ErrPinRequired,
    ErrPinSecretMissing,
    ErrReservedName,
)
from sataddress.lnurl.pin import check_pin, compute_pin
from sataddress.models.record import (
    KEYSEND_MIN_SENDABLE,
    AddressRecord,
    BackendParams,
    KeysendParams,
    UsageStats,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from sataddress.gateway.invoice import InvoiceGateway
    from sataddress.keysend.relay import KeysendRelayClient
    from sataddress.store.client import RecordStore

logger = logging.getLogger(__name__)

# Amount of the invoice requested to check a backend before saving it
PROBE_AMOUNT_MSAT = 42_000


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


class RegistrationRequest(BaseModel):
    """Body of ``POST /grab``.

    ``backend`` selects the variant and ``backend_data`` carries its fields.
    The set of accepted domains is passed as validation context
    (``context={"domains": [...]}``).
    """

    name: str = Field(min_length=1)
    domain: str
    backend: Literal["lnd", "lnbits", "keysend"]
    pin: str | None = None
    backend_data: BackendParams
    min_sendable: int | None = Field(default=None, ge=0)
    max_sendable: int | None = Field(default=None, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _tag_backend_data(cls, data: Any) -> Any:
        """Copy ``backend`` into ``backend_data`` as its variant tag."""
        if not isinstance(data, dict):
            return data
        backend = data.get("backend")
        backend_data = data.get("backend_data")
        if not isinstance(backend, str) or not isinstance(backend_data, dict):
            return data
        kind = backend.lower()
        given = backend_data.get("kind")
        if given is not None and str(given).lower() != kind:
            msg = "backend data not matching selection"
            raise ValueError(msg)
        return {**data, "backend": kind, "backend_data": {**backend_data, "kind": kind}}

    @field_validator("domain")
    @classmethod
    def _supported_domain(cls, value: str, info: ValidationInfo) -> str:
        value = value.lower()
        domains = (info.context or {}).get("domains")
        if domains is not None and value not in {domain.lower() for domain in domains}:
            msg = "domain not supported"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def _check_bounds(self) -> RegistrationRequest:
        if (
            self.min_sendable is not None
            and self.max_sendable is not None
            and self.min_sendable > self.max_sendable
        ):
            msg = "min_sendable must not exceed max_sendable"
            raise ValueError(msg)
        return self


def field_errors(exc: ValidationError) -> list[dict[str, Any]]:
    """Group pydantic errors as ``[{"field", "field_errors"}]``."""
    grouped: dict[str, list[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "body"
        grouped.setdefault(field, []).append(error["msg"])
    return [{"field": field, "field_errors": msgs} for field, msgs in grouped.items()]


@dataclass(frozen=True, slots=True)
class RegistrationResult:
    """Outcome of a successful registration."""

    record: AddressRecord
    created: bool

    @property
    def pin(self) -> str:
        return self.record.pin


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class RegistrationService:
    """Creates and edits address records.

    Args:
        store: Record store.
        gateway: Invoice gateway used for the probe invoice.
        relay: Keysend relay client.
        domains: Domains addresses may be registered under.
        reserved_names: Names nobody may claim.
        pin_secret: Server secret the edit PIN is derived from.
    """

    def __init__(
        self,
        store: RecordStore,
        gateway: InvoiceGateway,
        relay: KeysendRelayClient,
        *,
        domains: Collection[str],
        reserved_names: Collection[str],
        pin_secret: str,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._relay = relay
        self._domains = list(domains)
        self._reserved_names = set(reserved_names)
        self._pin_secret = pin_secret

    def parse(self, payload: Mapping[str, Any]) -> RegistrationRequest:
        """Validate a raw request body.

        Raises:
            FieldValidationError: With one entry per invalid field.
        """
        try:
            return RegistrationRequest.model_validate(
                dict(payload), context={"domains": self._domains}
            )
        except ValidationError as exc:
            raise FieldValidationError(field_errors(exc)) from exc

    async def register(self, payload: Mapping[str, Any]) -> RegistrationResult:
        """Run the whole registration flow for one request body.

        Returns:
            The stored record and whether it was newly created.

        Raises:
            AddressError: Field, reserved-name, PIN, relay or probe failures.
        """
        if not self._pin_secret:
            raise ErrPinSecretMissing

        request = self.parse(payload)
        logger.debug("Processing registration for %s@%s", request.name, request.domain)

        if request.name in self._reserved_names:
            raise ErrReservedName

        existing = await self._store.get(request.name, request.domain)
        pin = compute_pin(request.name, request.domain, self._pin_secret)
        if existing is not None:
            if request.pin is None:
                raise ErrPinRequired
            if not check_pin(request.pin, request.name, request.domain, self._pin_secret):
                raise ErrPinIncorrect

        backend = await self._prepare_backend(request, existing)

        min_sendable = request.min_sendable
        if isinstance(backend, KeysendParams):
            min_sendable = max(min_sendable or 0, KEYSEND_MIN_SENDABLE)

        record = AddressRecord(
            name=request.name,
            domain=request.domain,
            backend=backend,
            min_sendable=min_sendable,
            max_sendable=request.max_sendable,
            pin=pin,
            stats=UsageStats(),
        )

        await self._probe(record)

        # Counters are taken from the stored value at write time.
        record, existed = await self._store.replace_keeping_stats(record)
        logger.info("%s address %s", "Updated" if existed else "Added", record.key)
        return RegistrationResult(record=record, created=not existed)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _prepare_backend(
        self, request: RegistrationRequest, existing: AddressRecord | None
    ) -> BackendParams:
        """Return the backend to store, provisioning keysend relays as needed."""
        backend = request.backend_data
        if not isinstance(backend, KeysendParams):
            return backend

        previous = existing.backend if existing is not None else None
        if isinstance(previous, KeysendParams) and previous.is_provisioned:
            try:
                await self._relay.update_entry(previous.admin_key or "", pub_key=backend.pub_key)
            except RelayError as exc:
                raise RelayError(
                    f"Problem updating pubkey: {exc.message}", status_code=400
                ) from exc
            return previous.model_copy(update={"pub_key": backend.pub_key})

        try:
            wallet = await self._relay.provision_backend(
                request.name, request.domain, backend.pub_key
            )
        except RelayError as exc:
            raise RelayError(
                f"Problems with provision backend: {exc.message}", status_code=400
            ) from exc
        return KeysendParams(
            pub_key=backend.pub_key,
            user_id=wallet.user_id,
            admin_key=wallet.admin_key,
            wallet_id=wallet.wallet_id,
        )

    async def _probe(self, record: AddressRecord) -> None:
        memo = f"{record.key} PIN: {record.pin}"
        try:
            await self._gateway.issue_invoice(record, PROBE_AMOUNT_MSAT, memo)
        except AddressError as exc:
            logger.error("Problem with invoice generation for %s: %s", record.key, exc.message)
            raise AddressError(exc.message, status_code=400, code=exc.code) from exc
