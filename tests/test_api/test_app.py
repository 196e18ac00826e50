"""End-to-end tests for the HTTP API — backends mocked with httpx transports."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
from fastapi.testclient import TestClient

from sataddress.api.app import create_app
from sataddress.lnurl.pin import compute_pin
from tests.helpers import ADMIN_TOKEN, BOLT11, DOMAIN, LND_HOST, PIN_SECRET

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sataddress.config.settings import AppConfig

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _backend(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"payment_request": BOLT11})


@pytest.fixture
def client(app_config: AppConfig) -> Iterator[TestClient]:
    app = create_app(
        config=app_config,
        backend_transport=httpx.MockTransport(_backend),
        relay_transport=httpx.MockTransport(_backend),
    )
    with TestClient(app, base_url=f"https://{DOMAIN}", raise_server_exceptions=False) as c:
        yield c


def _register(client: TestClient, **overrides) -> httpx.Response:
    body = {
        "name": "alice",
        "domain": DOMAIN,
        "backend": "lnd",
        "backend_data": {"host": LND_HOST, "macaroon": "0201036c6e64"},
    }
    body.update(overrides)
    return client.post("/grab", json=body)


# ---------------------------------------------------------------------------
# Base routes
# ---------------------------------------------------------------------------


class TestBaseRoutes:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_index(self, client: TestClient) -> None:
        data = client.get("/").json()
        assert data["domains"] == [DOMAIN]
        assert data["site_name"] == "sataddress"

    def test_metrics(self, client: TestClient) -> None:
        client.get("/health")
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "text/plain" in resp.headers["content-type"]
        assert "http_request_total" in resp.text

    def test_relay_uses_configured_timeout(self, app_config: AppConfig) -> None:
        app_config.invoice.timeout = 42.0
        app = create_app(config=app_config)
        with TestClient(app):
            assert app.state.relay.timeout == 42.0

    def test_metrics_disabled(self, app_config: AppConfig) -> None:
        app_config.metrics.enabled = False
        with TestClient(create_app(config=app_config)) as c:
            assert c.get("/metrics").status_code == 404

    def test_cors_preflight(self, client: TestClient) -> None:
        resp = client.options(
            "/.well-known/lnurlp/alice",
            headers={"Origin": "https://wallet.example", "Access-Control-Request-Method": "GET"},
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class TestGrab:
    def test_register(self, client: TestClient) -> None:
        resp = _register(client)
        assert resp.status_code == 201
        assert resp.json() == {
            "message": "success",
            "pin": compute_pin("alice", DOMAIN, PIN_SECRET),
            "errors": [],
        }

    def test_field_errors(self, client: TestClient) -> None:
        resp = _register(client, domain="evil.com")
        assert resp.status_code == 400
        data = resp.json()
        assert data["message"] == "field errors"
        assert data["errors"][0]["field"] == "domain"

    def test_reserved(self, client: TestClient) -> None:
        resp = _register(client, name="root")
        assert resp.status_code == 400
        assert resp.json() == {"message": "trying to use a reserved username", "errors": []}

    def test_edit_requires_pin(self, client: TestClient) -> None:
        _register(client)
        resp = _register(client)
        assert resp.status_code == 400
        assert "PIN required" in resp.json()["message"]

    def test_invalid_json(self, client: TestClient) -> None:
        resp = client.post(
            "/grab", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert resp.status_code == 400
        assert resp.json()["errors"] == []


# ---------------------------------------------------------------------------
# LNURL-pay
# ---------------------------------------------------------------------------


class TestLnurlPay:
    def test_full_flow(self, client: TestClient) -> None:
        assert _register(client).status_code == 201

        info = client.get("/.well-known/lnurlp/alice").json()
        assert info["status"] == "OK"
        assert info["tag"] == "payRequest"
        assert info["callback"] == f"https://{DOMAIN}/.well-known/lnurlp/alice"

        invoice = client.get("/.well-known/lnurlp/alice", params={"amount": "100000"}).json()
        assert invoice["status"] == "OK"
        assert invoice["pr"] == BOLT11

    def test_unknown_address(self, client: TestClient) -> None:
        resp = client.get("/.well-known/lnurlp/nobody")
        assert resp.status_code == 404
        assert resp.json() == {"status": "ERROR", "reason": "Not Found"}

    def test_unconfigured_host(self, client: TestClient) -> None:
        _register(client)
        resp = client.get("/.well-known/lnurlp/alice", headers={"Host": "other.example"})
        assert resp.status_code == 404

    def test_host_port_ignored(self, client: TestClient) -> None:
        _register(client)
        resp = client.get("/.well-known/lnurlp/alice", headers={"Host": f"{DOMAIN}:443"})
        assert resp.json()["status"] == "OK"

    def test_mixed_case_domain_config(self, app_config: AppConfig) -> None:
        config = type(app_config)(**{**app_config.model_dump(), "domains": ["Example.COM"]})
        app = create_app(config=config, backend_transport=httpx.MockTransport(_backend))
        with TestClient(app, base_url=f"https://{DOMAIN}") as c:
            assert _register(c, domain="Example.COM").status_code == 201
            resp = c.get("/.well-known/lnurlp/alice", headers={"Host": "EXAMPLE.com"})
            assert resp.status_code == 200
            assert resp.json()["status"] == "OK"

    def test_invalid_amount_in_band(self, client: TestClient) -> None:
        _register(client)
        resp = client.get("/.well-known/lnurlp/alice", params={"amount": "lots"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "ERROR"


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class TestStats:
    def test_requires_token(self, client: TestClient) -> None:
        assert client.get("/api/v1/stats").status_code == 401
        resp = client.get("/api/v1/stats", headers={"X-PIN": "wrong"})
        assert resp.status_code == 401
        assert resp.json()["code"] == "unauthorized"

    def test_disabled_without_token(self, app_config: AppConfig) -> None:
        app_config.admin_token = ""
        with TestClient(create_app(config=app_config)) as c:
            assert c.get("/api/v1/stats", headers={"X-PIN": ""}).status_code == 401

    def test_stats(self, client: TestClient) -> None:
        _register(client)
        client.get("/.well-known/lnurlp/alice")
        client.get("/.well-known/lnurlp/alice", params={"amount": "100000"})

        resp = client.get("/api/v1/stats", headers={"X-PIN": ADMIN_TOKEN})
        assert resp.status_code == 200
        data = resp.json()
        assert data["summary"] == {"calls": 1, "edits": 0, "invoices": 1}
        assert data["data"][f"alice@{DOMAIN}"]["calls"]["num"] == 1
