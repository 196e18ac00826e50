"""Errors raised while talking to wallet backends and the keysend relay."""

from __future__ import annotations

from sataddress.errors.address_errors import AddressError

# Maximum amount of a backend response body carried in an error message
_BODY_EXCERPT = 300


class GatewayError(AddressError):
    """Error from an invoice-issuing wallet backend."""

    def __init__(
        self, message: str, *, status_code: int = 502, code: str = "gateway-error"
    ) -> None:
        super().__init__(message, status_code=status_code, code=code)


class InvoiceTimeoutError(GatewayError):
    """The backend did not answer within the configured timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(
            f"Connection timeout error (no answer within {timeout:g}s)",
            status_code=504,
            code="invoice-timeout",
        )
        self.timeout = timeout


class BackendRejectedError(GatewayError):
    """The backend answered with a non-2xx status."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body[:_BODY_EXCERPT]
        super().__init__(
            f"Call to backend failed ({status}): {self.body}",
            code="backend-rejected",
        )


class BadBackendResponseError(GatewayError):
    """The backend answered 2xx but the body is not a usable invoice response."""

    def __init__(self, message: str = "Unable to parse json response from the LN Node") -> None:
        super().__init__(message, code="bad-backend-response")


class BackendUnreachableError(GatewayError):
    """Connection, TLS or proxy failure before a response was received."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="backend-unreachable")


class RelayError(AddressError):
    """Error from the LNbits relay used by keysend addresses."""

    def __init__(self, message: str, *, status_code: int = 502) -> None:
        super().__init__(message, status_code=status_code, code="relay-error")
