"""Keysend relay client — LNbits user manager and scrub extension.

A keysend address gets its own LNbits user and wallet on the server's relay
instance. The wallet's *scrub* link forwards every incoming payment to the
registrant's node public key by keysend:

- provisioning creates the user, enables the ``scrub`` extension, and
  creates the scrub link bound to the public key
- edits update that link's public key or description in place
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from sataddress.errors.backend_errors import RelayError

if TYPE_CHECKING:
    from sataddress.config.settings import LNbitsConfig

logger = logging.getLogger(__name__)

WALLET_NAME = "scrub_wallet"
EXTENSION = "scrub"


@dataclass(frozen=True, slots=True)
class ScrubLink:
    """A scrub forwarding rule as returned by the LNbits API."""

    id: str
    description: str
    wallet: str
    payoraddress: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScrubLink:
        return cls(
            id=str(data["id"]),
            description=str(data.get("description", "")),
            wallet=str(data["wallet"]),
            payoraddress=str(data.get("payoraddress", "")),
        )


@dataclass(frozen=True, slots=True)
class ProvisionedWallet:
    """Credentials of a freshly provisioned relay wallet."""

    user_id: str
    admin_key: str
    wallet_id: str


class KeysendRelayClient:
    """Async client for the relay LNbits management API.

    Args:
        config: Relay LNbits configuration (url, super-user api key, admin id).
        transport: Optional httpx transport (tests inject ``MockTransport``).
        timeout: HTTP timeout in seconds.
    """

    def __init__(
        self,
        config: LNbitsConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 180.0,
    ) -> None:
        self._config = config
        self._transport = transport
        self._timeout = timeout

    @property
    def url(self) -> str:
        return self._config.url

    @property
    def timeout(self) -> float:
        return self._timeout

    # ------------------------------------------------------------------
    # Provisioning
    # ------------------------------------------------------------------

    async def provision_backend(
        self, username: str, domain: str, pub_key: str
    ) -> ProvisionedWallet:
        """Create the relay user, wallet and scrub link for a new address.

        Returns:
            The new wallet's credentials.

        Raises:
            RelayError: If any step fails.
        """
        async with self._client() as client:
            data = await self._send(
                client,
                "POST",
                "usermanager/api/v1/users",
                api_key=self._config.api_key,
                json={
                    "admin_id": self._config.admin_id,
                    "wallet_name": WALLET_NAME,
                    "user_name": f"{username}@{domain}",
                },
            )
            try:
                wallet = ProvisionedWallet(
                    user_id=str(data["id"]),
                    admin_key=str(data["wallets"][0]["adminkey"]),
                    wallet_id=str(data["wallets"][0]["id"]),
                )
            except (KeyError, IndexError, TypeError) as exc:
                raise RelayError("Relay returned an unexpected user payload") from exc

            logger.info(
                "Created relay user user_id:%s wallet:%s for %s@%s",
                wallet.user_id,
                wallet.wallet_id,
                username,
                domain,
            )

            await self._send(
                client,
                "POST",
                "usermanager/api/v1/extensions",
                api_key=self._config.api_key,
                params={"extension": EXTENSION, "userid": wallet.user_id, "active": "true"},
            )
            logger.info("Scrub enabled for wallet of user %s", wallet.user_id)

            await self._send(
                client,
                "POST",
                "scrub/api/v1/links",
                api_key=wallet.admin_key,
                json={
                    "wallet": wallet.wallet_id,
                    "description": f"Payment via {domain}",
                    "payoraddress": pub_key,
                },
            )
        return wallet

    # ------------------------------------------------------------------
    # Scrub link maintenance
    # ------------------------------------------------------------------

    async def update_entry(
        self,
        admin_key: str,
        *,
        pub_key: str | None = None,
        description: str | None = None,
    ) -> ScrubLink:
        """Change the public key and/or description of an address's scrub link.

        Fields left as None keep their current value.

        Returns:
            The link as sent to the relay.

        Raises:
            RelayError: If neither field is given, the wallet has no or
                several links, or the relay call fails.
        """
        if pub_key is None and description is None:
            raise RelayError("Please provide new pub_key or description", status_code=400)

        async with self._client() as client:
            links = await self.list_links(admin_key, client=client)
            if len(links) > 1:
                raise RelayError("Has multiple scrubs defined!")
            if not links:
                raise RelayError("No scrub defined for this wallet")

            current = links[0]
            updated = ScrubLink(
                id=current.id,
                description=description if description is not None else current.description,
                wallet=current.wallet,
                payoraddress=pub_key if pub_key is not None else current.payoraddress,
            )
            logger.debug("Updating scrub %s", updated)
            await self._send(
                client,
                "PUT",
                f"scrub/api/v1/links/{current.id}",
                api_key=admin_key,
                json={
                    "wallet": updated.wallet,
                    "description": updated.description,
                    "payoraddress": updated.payoraddress,
                },
            )
        return updated

    async def list_links(
        self, admin_key: str, *, client: httpx.AsyncClient | None = None
    ) -> list[ScrubLink]:
        """List the scrub links of the wallet owning *admin_key*."""
        if client is None:
            async with self._client() as own:
                return await self.list_links(admin_key, client=own)

        data = await self._send(client, "GET", "scrub/api/v1/links", api_key=admin_key)
        if not isinstance(data, list):
            raise RelayError("Relay returned an unexpected scrub list")
        try:
            return [ScrubLink.from_dict(item) for item in data]
        except (KeyError, TypeError) as exc:
            raise RelayError("Relay returned an unexpected scrub entry") from exc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._config.url,
            transport=self._transport,
            timeout=self._timeout,
            headers={"Content-Type": "application/json"},
        )

    @staticmethod
    async def _send(
        client: httpx.AsyncClient,
        method: str,
        path: str,
        *,
        api_key: str,
        json: Any = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = await client.request(
                method, path, headers={"X-Api-Key": api_key}, json=json, params=params
            )
        except httpx.HTTPError as exc:
            raise RelayError(f"Relay request {method} {path} failed: {exc}") from exc

        logger.info("Relay %s %s status: %s", method, path, response.status_code)
        if response.status_code >= 300:
            raise RelayError(
                f"Relay request {method} {path} failed ({response.status_code}): "
                f"{response.text[:300]}"
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise RelayError(f"Relay request {method} {path} returned invalid JSON") from exc
