"""FastAPI dependency injection helpers.

Provides ``Depends()``-compatible callables for the services built during
lifespan startup and for the admin token check.

Usage in a route::

    @router.post("/grab")
    async def grab(
        service: Annotated[RegistrationService, Depends(get_registration)],
    ) -> ...:
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, Request

from sataddress.config.settings import AppConfig  # noqa: TC001
from sataddress.errors.definitions import ErrUnauthorized
from sataddress.lnurl.handler import LnurlPayHandler  # noqa: TC001
from sataddress.registration.service import RegistrationService  # noqa: TC001
from sataddress.store.client import RecordStore  # noqa: TC001
from sataddress.utils.crypto import constant_time_equals

ADMIN_PIN_HEADER = "X-PIN"

# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def get_config(request: Request) -> AppConfig:
    return request.app.state.config


def _state(request: Request, name: str) -> object:
    value = getattr(request.app.state, name, None)
    if value is None:
        msg = f"Application not started: {name} missing from app.state"
        raise RuntimeError(msg)
    return value


def get_store(request: Request) -> RecordStore:
    """Retrieve the record store from ``app.state`` (set during lifespan)."""
    return _state(request, "store")  # type: ignore[return-value]


def get_lnurl_handler(request: Request) -> LnurlPayHandler:
    return _state(request, "lnurl_handler")  # type: ignore[return-value]


def get_registration(request: Request) -> RegistrationService:
    return _state(request, "registration")  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Request context
# ---------------------------------------------------------------------------


def request_domain(request: Request) -> str:
    """Domain the request was addressed to (``Host`` header, port removed)."""
    host = request.headers.get("host", "")
    if host.startswith("["):
        return host.split("]", 1)[0] + "]"
    return host.rsplit(":", 1)[0].lower() if ":" in host else host.lower()


def require_admin(
    config: Annotated[AppConfig, Depends(get_config)],
    x_pin: Annotated[str, Header(alias=ADMIN_PIN_HEADER)] = "",
) -> None:
    """Dependency that requires the admin token in the ``X-PIN`` header.

    Raises:
        AddressError: ``ErrUnauthorized`` if no token is configured or the
            header does not match.
    """
    if not config.admin_token or not constant_time_equals(x_pin, config.admin_token):
        raise ErrUnauthorized
