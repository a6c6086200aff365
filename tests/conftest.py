import json
import pytest
from fakeredis import FakeServer, aioredis
from httpx import AsyncClient, ASGITransport

from callsignal.database.call_store import CallStore, get_active_call_key, get_devices_key
from callsignal.dependencies.service_dependencies import get_call_store, get_notification_service
from callsignal.main import app
from callsignal.schemas.notification import MulticastResult, SendResult


class FakeNotificationService:
    """Records every batch instead of talking to FCM."""

    def __init__(self, failing_tokens=(), error: Exception = None):
        self.failing_tokens = set(failing_tokens)
        self.error = error
        self.batches = []

    async def send_multicast(self, tokens, data):
        if not tokens:
            return MulticastResult()
        if self.error is not None:
            raise self.error
        self.batches.append((list(tokens), dict(data)))
        return MulticastResult(responses=[
            SendResult(token=t, success=False, error="UNREGISTERED")
            if t in self.failing_tokens
            else SendResult(token=t, success=True, message_id=f"projects/test/messages/{t}")
            for t in tokens
        ])


@pytest.fixture
async def redis_client():
    client = aioredis.FakeRedis(server=FakeServer(), decode_responses=True)
    yield client
    await client.aclose()

@pytest.fixture
def call_store(redis_client):
    return CallStore(redis_client)

@pytest.fixture
def fake_notifications():
    return FakeNotificationService()

@pytest.fixture
def seed_call(redis_client):
    async def _seed(uid: str, call_id: str = "c1", status: str = "ringing", **extra):
        await redis_client.hset(
            get_active_call_key(uid),
            mapping={"callId": call_id, "status": status, **extra},
        )
    return _seed

@pytest.fixture
def seed_devices(redis_client):
    async def _seed(uid: str, devices: dict):
        await redis_client.hset(
            get_devices_key(uid),
            mapping={device_id: json.dumps(entry) for device_id, entry in devices.items()},
        )
    return _seed

@pytest.fixture
def override_services(call_store, fake_notifications):
    app.dependency_overrides[get_call_store] = lambda: call_store
    app.dependency_overrides[get_notification_service] = lambda: fake_notifications
    yield
    app.dependency_overrides.clear()

@pytest.fixture
async def async_test_client(override_services):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

@pytest.fixture
def make_notifications():
    return FakeNotificationService
