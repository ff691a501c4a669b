"""
Shared fixtures: order stores for both backends and an API client bound to
the FastAPI app with its collaborators swapped for in-process ones.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from storefront.core.config import get_settings
from storefront.database import build_engine, build_session_maker, init_db
from storefront.main import app, get_ads_settings_store
from storefront.schemas import AdsSettings
from storefront.services.orders import OrderLifecycle
from storefront.services.settings_store import ADS_SETTINGS_KEY, ConfigStore, MemorySettingsPort
from storefront.services.storage import MemoryOrderStorage, SqlOrderStorage, get_order_storage


@pytest.fixture(params=["memory", "sql"])
async def storage(request, tmp_path):
    """Every storage test runs against both backends."""
    if request.param == "memory":
        yield MemoryOrderStorage()
        return

    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    await init_db(engine)
    yield SqlOrderStorage(build_session_maker(engine))
    await engine.dispose()


@pytest.fixture
def lifecycle(storage):
    return OrderLifecycle(storage)


@pytest.fixture
def ads_store():
    return ConfigStore(MemorySettingsPort(), ADS_SETTINGS_KEY, AdsSettings, AdsSettings())


@pytest.fixture
def admin_headers():
    settings = get_settings()
    return {"X-Admin-Fragment": f"#{settings.admin_fragment_key}={settings.admin_token}"}


@pytest.fixture
async def client(storage, ads_store):
    app.dependency_overrides[get_order_storage] = lambda: storage
    app.dependency_overrides[get_ads_settings_store] = lambda: ads_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
