"""Registration endpoint — claim or edit an address."""

from __future__ import annotations

import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from sataddress.api.dependencies import get_registration
from sataddress.errors.address_errors import AddressError, FieldValidationError
from sataddress.registration.service import RegistrationService  # noqa: TC001

logger = logging.getLogger(__name__)

router = APIRouter(tags=["registration"])


def _error(status_code: int, message: str, errors: list | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "errors": errors or []},
    )


@router.post("/grab")
async def grab(
    request: Request,
    service: Annotated[RegistrationService, Depends(get_registration)],
) -> JSONResponse:
    """Register a new address, or edit one with its PIN.

    Returns 201 ``{"message": "success", "pin": ..., "errors": []}``.
    """
    try:
        payload = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        return _error(400, f"invalid JSON body: {exc}")
    if not isinstance(payload, dict):
        return _error(400, "request body must be a JSON object")

    try:
        result = await service.register(payload)
    except FieldValidationError as exc:
        return _error(exc.status_code, exc.message, exc.errors)
    except AddressError as exc:
        return _error(exc.status_code, exc.message)

    return JSONResponse(
        status_code=201,
        content={"message": "success", "pin": result.pin, "errors": []},
    )
