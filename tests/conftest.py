"""
Pytest configuration and shared fixtures.
"""
import pytest
from httpx import AsyncClient, ASGITransport

from perpdesk.api.main import app, get_cache, get_datasource, get_settings
from perpdesk.config import Settings
from perpdesk.core.entities.fees import FeeSettings
from perpdesk.infrastructure.cache.redis_service import RedisService
from perpdesk.infrastructure.gateways.local_mock import StaticAccountSource

TEST_USER = "0x31ca8395cf837de08b24da3f660e77761dfb974b"


class FakeRedis:
    """Dict-backed stand-in for a redis client (get/setex/delete/ping)."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def ping(self):
        return True

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    def delete(self, key):
        self.store.pop(key, None)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fees():
    return FeeSettings(taker_fee_percent=0.04, maker_fee_percent=0.012)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def datasource():
    return StaticAccountSource.demo()


@pytest.fixture
async def client(datasource, fake_redis):
    """Async HTTP client against the app, wired to in-memory data."""
    app.dependency_overrides[get_settings] = lambda: Settings(data_source="static")
    app.dependency_overrides[get_datasource] = lambda: datasource
    app.dependency_overrides[get_cache] = lambda: RedisService(client=fake_redis)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
