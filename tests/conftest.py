"""Shared test fixtures for the sataddress test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from sataddress.config.settings import StoreEngine
from tests.helpers import ADMIN_TOKEN, DOMAIN, PIN_SECRET, RELAY_URL

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@pytest.fixture
def app_config():
    """Provide a test AppConfig with an in-memory store."""
    from sataddress.config.settings import AppConfig, LNbitsConfig, StoreConfig

    return AppConfig(
        debug=True,
        domains=[DOMAIN],
        pin_secret=PIN_SECRET,
        admin_token=ADMIN_TOKEN,
        store=StoreConfig(engine=StoreEngine.MEMORY),
        lnbits=LNbitsConfig(url=RELAY_URL, api_key="super-key", admin_id="admin-id"),
    )


@pytest.fixture
async def memory_store(app_config) -> AsyncIterator:
    """Provide a connected in-memory RecordStore."""
    from sataddress.store.client import RecordStore

    store = RecordStore(app_config.store)
    await store.connect()
    yield store
    await store.close()
