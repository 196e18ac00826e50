"""Transport selection for outbound backend calls.

Backends behind a ``.onion`` host are only reachable through the local Tor
SOCKS proxy; every other host is contacted directly. The choice is made per
call because each address may use a different backend.

Certificate checking is an explicit policy: self-hosted nodes commonly use
self-signed certificates, and ``TransportPolicy.accept_invalid_certs`` turns
verification off for every backend when set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Self

import httpx

if TYPE_CHECKING:
    from types import TracebackType

    from sataddress.config.settings import InvoiceConfig

logger = logging.getLogger(__name__)

_USER_AGENT = "sataddress/0.1"


@dataclass(frozen=True, slots=True)
class TransportPolicy:
    """How backend connections are established.

    Attributes:
        accept_invalid_certs: Skip TLS certificate verification.
        tor_proxy_url: SOCKS proxy used for onion hosts.
        timeout: Per-operation HTTP timeout in seconds.
    """

    accept_invalid_certs: bool = True
    tor_proxy_url: str = "socks5://127.0.0.1:9050"
    timeout: float = 180.0

    @classmethod
    def from_config(cls, config: InvoiceConfig) -> TransportPolicy:
        return cls(
            accept_invalid_certs=config.accept_invalid_certs,
            tor_proxy_url=config.tor_proxy_url,
            timeout=config.timeout,
        )


class Transport:
    """An HTTPS channel to one backend, closed after use.

    Usage::

        async with selector.open_secure_channel(host_is_onion=False) as channel:
            response = await channel.request("POST", url, json=body)
    """

    proxied: bool = False

    def __init__(
        self,
        policy: TransportPolicy,
        *,
        base_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._policy = policy
        self._transport = base_transport or self._build_transport()
        self._client = httpx.AsyncClient(
            transport=self._transport,
            timeout=policy.timeout,
            headers={"User-Agent": _USER_AGENT},
        )

    def _build_transport(self) -> httpx.AsyncBaseTransport:
        return httpx.AsyncHTTPTransport(
            verify=not self._policy.accept_invalid_certs,
            proxy=self.proxy_url,
        )

    @property
    def proxy_url(self) -> str | None:
        """SOCKS proxy the connection goes through, or None when direct."""
        return None

    @property
    def policy(self) -> TransportPolicy:
        return self._policy

    @property
    def transport(self) -> httpx.AsyncBaseTransport:
        """The httpx transport requests are sent over."""
        return self._transport

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send one request and return the response with its body read."""
        return await self._client.request(method, url, headers=headers, json=json)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


class DirectTLSTransport(Transport):
    """Connects straight to the backend host."""


class ProxiedTLSTransport(Transport):
    """Tunnels through the SOCKS proxy before the TLS handshake."""

    proxied = True

    @property
    def proxy_url(self) -> str:
        return self._policy.tor_proxy_url


class TransportSelector:
    """Opens the right transport for a backend host.

    Args:
        policy: Connection policy shared by all transports.
        base_transport: Optional httpx transport used underneath both
            variants instead of real sockets (tests inject
            ``httpx.MockTransport`` here).
    """

    def __init__(
        self,
        policy: TransportPolicy,
        *,
        base_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._policy = policy
        self._base_transport = base_transport

    @property
    def policy(self) -> TransportPolicy:
        return self._policy

    def open_secure_channel(self, host_is_onion: bool) -> Transport:
        """Return a proxied transport for onion hosts, a direct one otherwise."""
        cls = ProxiedTLSTransport if host_is_onion else DirectTLSTransport
        logger.debug("Opening %s (onion=%s)", cls.__name__, host_is_onion)
        return cls(self._policy, base_transport=self._base_transport)
