import asyncio
import json
import pytest
from redis.exceptions import WatchError

from callsignal.core.exceptions import InvalidInputException
from callsignal.database.call_store import CallStore, get_active_call_key, get_devices_key


class ConflictingPipeline:
    """Pipeline double whose EXEC loses the race a fixed number of times."""

    def __init__(self, conflicts: int):
        self.conflicts = conflicts
        self.executions = 0
        self.writes = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def watch(self, *keys):
        pass

    async def unwatch(self):
        pass

    async def hgetall(self, key):
        return {"callId": "c1", "status": "ringing"}

    def multi(self):
        pass

    def hset(self, key, mapping=None):
        self.writes.append((key, mapping))
        return self

    async def execute(self):
        self.executions += 1
        if self.executions <= self.conflicts:
            raise WatchError("Watched variable changed.")
        return [2]


class ConflictingRedis:
    def __init__(self, conflicts: int):
        self.pipe = ConflictingPipeline(conflicts)

    def pipeline(self, transaction=True):
        return self.pipe


@pytest.mark.asyncio
async def test_accept_ringing_call_commits(call_store, redis_client, seed_call):
    await seed_call("u1", call_id="c1", callerId="caller-9")

    result = await call_store.accept_ringing_call("u1", "c1", "d1")

    assert result.committed is True
    assert result.snapshot.status == "in_progress"
    assert result.snapshot.accepted_by_device_id == "d1"
    stored = await redis_client.hgetall(get_active_call_key("u1"))
    assert stored == {
        "callId": "c1",
        "status": "in_progress",
        "acceptedByDeviceId": "d1",
        "callerId": "caller-9",
    }

@pytest.mark.asyncio
async def test_accept_missing_record_aborts(call_store, redis_client):
    result = await call_store.accept_ringing_call("u1", "c1", "d1")

    assert result.committed is False
    assert result.snapshot is None
    assert await redis_client.exists(get_active_call_key("u1")) == 0

@pytest.mark.asyncio
async def test_accept_with_stale_call_id_aborts_without_writing(call_store, redis_client, seed_call):
    await seed_call("u1", call_id="c2")

    result = await call_store.accept_ringing_call("u1", "c1", "d1")

    assert result.committed is False
    assert await redis_client.hgetall(get_active_call_key("u1")) == {"callId": "c2", "status": "ringing"}

@pytest.mark.asyncio
async def test_accept_twice_never_overwrites(call_store, redis_client, seed_call):
    await seed_call("u1")

    first = await call_store.accept_ringing_call("u1", "c1", "d1")
    second = await call_store.accept_ringing_call("u1", "c1", "d2")

    assert first.committed is True
    assert second.committed is False
    assert second.snapshot.accepted_by_device_id == "d1"
    assert await redis_client.hget(get_active_call_key("u1"), "acceptedByDeviceId") == "d1"

@pytest.mark.asyncio
async def test_concurrent_accepts_commit_exactly_once(redis_client, seed_call):
    await seed_call("u1")
    devices = [f"d{i}" for i in range(5)]

    results = await asyncio.gather(*(
        CallStore(redis_client).accept_ringing_call("u1", "c1", device_id)
        for device_id in devices
    ))

    committed = [r for r in results if r.committed]
    assert len(committed) == 1
    winner = committed[0].snapshot.accepted_by_device_id
    assert await redis_client.hget(get_active_call_key("u1"), "acceptedByDeviceId") == winner

@pytest.mark.asyncio
async def test_accept_rejects_empty_identifiers(call_store):
    with pytest.raises(InvalidInputException):
        await call_store.accept_ringing_call("u1", "", "d1")
    with pytest.raises(InvalidInputException):
        await call_store.accept_ringing_call("u1", "c1", "")

@pytest.mark.asyncio
async def test_accept_retries_after_watch_conflict():
    client = ConflictingRedis(conflicts=2)
    store = CallStore(client, max_retries=5)

    result = await store.accept_ringing_call("u1", "c1", "d1")

    assert result.committed is True
    assert client.pipe.executions == 3

@pytest.mark.asyncio
async def test_accept_gives_up_after_max_retries():
    client = ConflictingRedis(conflicts=10)
    store = CallStore(client, max_retries=3)

    with pytest.raises(WatchError):
        await store.accept_ringing_call("u1", "c1", "d1")
    assert client.pipe.executions == 3

@pytest.mark.asyncio
async def test_get_devices_parses_entries(call_store, redis_client, seed_devices):
    await seed_devices("u1", {"d1": {"fcmToken": "t1", "platform": "android"}, "d2": {}})
    await redis_client.hset(get_devices_key("u1"), "d3", "not-json")

    devices = await call_store.get_devices("u1")

    assert devices["d1"].fcm_token == "t1"
    assert devices["d2"].fcm_token is None
    assert devices["d3"].fcm_token is None

@pytest.mark.asyncio
async def test_get_devices_keeps_entries_with_wrongly_typed_tokens(call_store, seed_devices):
    await seed_devices("u1", {
        "d1": {"fcmToken": "t1"},
        "d2": {"fcmToken": 12345},
        "d3": {"fcmToken": ["t3"]},
        "d4": {"fcmToken": {"value": "t4"}},
    })

    devices = await call_store.get_devices("u1")

    assert set(devices) == {"d1", "d2", "d3", "d4"}
    assert devices["d1"].fcm_token == "t1"
    assert all(devices[d].fcm_token is None for d in ("d2", "d3", "d4"))

@pytest.mark.asyncio
async def test_get_active_call_returns_none_when_absent(call_store):
    assert await call_store.get_active_call("nobody") is None
