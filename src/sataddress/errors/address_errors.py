"""AddressError — base exception class for all sataddress errors."""

from __future__ import annotations

from typing import Any


class AddressError(Exception):
    """Base error for all Lightning Address operations.

    Attributes:
        message: Human-readable error description.
        status_code: Suggested HTTP status code.
        code: Machine-readable error code string.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 500,
        code: str = "address-error",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class FieldValidationError(AddressError):
    """Request body failed validation on one or more fields.

    Attributes:
        errors: ``[{"field": ..., "field_errors": [...]}, ...]``
    """

    def __init__(self, errors: list[dict[str, Any]]) -> None:
        super().__init__("field errors", status_code=400, code="field-errors")
        self.errors = errors
