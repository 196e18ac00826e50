"""Invoice backend capability interface.

Each wallet backend variant turns an amount, an optional comment and the
address metadata into one HTTP request against its invoice API, and answers
capability questions (comment length, amount floor, onion routing).
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sataddress.errors.definitions import ErrAmountBelowMinimum

if TYPE_CHECKING:
    from sataddress.lnurl.metadata import Metadata

ONION_SUFFIX = ".onion"


def is_onion_host(host: str) -> bool:
    """True when the host is only reachable over Tor."""
    return ONION_SUFFIX in host


@dataclass(frozen=True, slots=True)
class InvoiceRequest:
    """A backend-specific invoice request, ready to send."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] = field(default_factory=dict)


class InvoiceBackend(abc.ABC):
    """Capabilities shared by every wallet backend."""

    #: Longest payer comment advertised in the pay request
    comment_allowed: int = 0
    #: Smallest amount this backend can receive (millisatoshis)
    min_sendable_floor: int = 0
    #: Name of the header that carries the backend credential
    credential_header: str = ""
    #: Path of the invoice endpoint relative to the host
    invoice_path: str = ""

    @property
    @abc.abstractmethod
    def host(self) -> str:
        """Base URL of the backend API."""

    def is_onion_host(self) -> bool:
        return is_onion_host(self.host)

    def check_amount(self, amount_msat: int) -> None:
        """Reject amounts the backend cannot receive.

        Raises:
            AddressError: ``ErrAmountBelowMinimum`` below the backend floor.
        """
        if amount_msat < self.min_sendable_floor:
            raise ErrAmountBelowMinimum

    def build_request(
        self, amount_msat: int, comment: str | None, metadata: Metadata
    ) -> InvoiceRequest:
        """Build the invoice request for this backend."""
        return InvoiceRequest(
            method="POST",
            url=f"{self.host}{self.invoice_path}",
            headers={
                self.credential_header: self.credential(),
                "Content-Type": "application/json",
            },
            body=self.build_body(amount_msat, comment, metadata),
        )

    @abc.abstractmethod
    def credential(self) -> str:
        """Value of the credential header."""

    @abc.abstractmethod
    def build_body(
        self, amount_msat: int, comment: str | None, metadata: Metadata
    ) -> dict[str, Any]:
        """JSON body of the invoice request."""
