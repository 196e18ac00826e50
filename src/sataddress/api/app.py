"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest
from starlette.responses import Response

from sataddress import __version__
from sataddress.api.middleware.cors import setup_cors
from sataddress.api.routes import api_router
from sataddress.config.settings import AppConfig
from sataddress.errors.address_errors import AddressError
from sataddress.gateway.invoice import InvoiceGateway
from sataddress.keysend.relay import KeysendRelayClient
from sataddress.lnurl.handler import LnurlPayHandler
from sataddress.metrics.collector import LnurlMetrics
from sataddress.metrics.middleware import PrometheusMiddleware
from sataddress.registration.service import RegistrationService
from sataddress.store.client import RecordStore
from sataddress.transport.selector import TransportPolicy, TransportSelector

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    import httpx

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle hooks.

    Connects the record store and wires the invoice gateway, relay client,
    LNURL handler and registration service onto ``app.state``.
    """
    config: AppConfig = app.state.config
    store = RecordStore(config.store)

    selector = TransportSelector(
        TransportPolicy.from_config(config.invoice),
        base_transport=app.state.backend_transport,
    )
    gateway = InvoiceGateway(selector, relay_url=config.lnbits.url, timeout=config.invoice.timeout)
    relay = KeysendRelayClient(
        config.lnbits,
        transport=app.state.relay_transport,
        timeout=config.invoice.timeout,
    )

    try:
        await store.connect()
        app.state.store = store
        app.state.relay = relay
        app.state.lnurl_handler = LnurlPayHandler(
            store, gateway, relay, metrics=app.state.metrics
        )
        app.state.registration = RegistrationService(
            store,
            gateway,
            relay,
            domains=config.domains,
            reserved_names=config.reserved_names,
            pin_secret=config.pin_secret,
        )
        if not config.domains:
            logger.warning("No domains configured, every address lookup will fail")
        logger.info("sataddress started for domains: %s", ", ".join(config.domains))
        yield
    finally:
        await store.close()
        logger.info("sataddress shut down")


def create_app(
    *,
    config: AppConfig | None = None,
    backend_transport: httpx.AsyncBaseTransport | None = None,
    relay_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        config: Optional AppConfig. If *None*, a default config is created
            from environment variables.
        backend_transport: Optional httpx transport for wallet backend calls.
        relay_transport: Optional httpx transport for relay LNbits calls.
    """
    if config is None:
        config = AppConfig()

    app = FastAPI(
        title="sataddress",
        version=__version__,
        description="Lightning Address server for your domain",
        lifespan=_lifespan,
    )

    # Store config and injected transports on app.state for lifespan access
    app.state.config = config
    app.state.backend_transport = backend_transport
    app.state.relay_transport = relay_transport
    app.state.metrics = LnurlMetrics() if config.metrics.enabled else None

    # -- Middleware --
    setup_cors(app)

    # -- Error handler --
    @app.exception_handler(AddressError)
    async def _address_error_handler(request: Request, exc: AddressError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.code, "message": exc.message},
        )

    # -- Base routes --
    @app.get("/health", tags=["base"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    if app.state.metrics is not None:

        @app.get("/metrics", tags=["base"], include_in_schema=False)
        async def metrics_endpoint() -> Response:
            """Prometheus metrics endpoint."""
            return Response(
                content=generate_latest(app.state.metrics.registry),
                media_type="text/plain; version=0.0.4; charset=utf-8",
            )

        # -- Prometheus request metrics middleware --
        app.add_middleware(PrometheusMiddleware, registry=app.state.metrics.registry)

    app.include_router(api_router)

    return app
