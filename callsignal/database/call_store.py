# callsignal/database/call_store.py
import json
from typing import Dict, Optional

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import WatchError

from callsignal.core.config import settings
from callsignal.core.exceptions import InvalidInputException
from callsignal.core.log_config import logger
from callsignal.schemas.call import CallRecord, CallStatus, DeviceEntry, TransitionResult


def get_active_call_key(uid: str) -> str:
    """Returns the Redis key holding a user's active call record."""
    return f"calls/{uid}/activeCall"

def get_devices_key(uid: str) -> str:
    """Returns the Redis key holding a user's device directory."""
    return f"calls/{uid}/devices"


def _to_record(data: dict) -> Optional[CallRecord]:
    if not data or "callId" not in data or "status" not in data:
        return None
    return CallRecord.model_validate(data)


class CallStore:
    """
    Reads call records and device directories from Redis and performs the
    single conditional write this service is allowed to make: moving a call
    from ringing to in_progress.

    Records and directories are created by other services; nothing here
    creates or deletes them.
    """

    def __init__(self, redis_client: redis.Redis, max_retries: int = None):
        self.redis = redis_client
        self.max_retries = max_retries or settings.transition_max_retries

    async def get_active_call(self, uid: str) -> Optional[CallRecord]:
        data = await self.redis.hgetall(get_active_call_key(uid))
        return _to_record(data)

    async def get_devices(self, uid: str) -> Dict[str, DeviceEntry]:
        """
        Returns the user's device directory keyed by device id. Entries whose
        stored value is not a JSON object, or whose token is not a string,
        come back without a token.
        """
        raw = await self.redis.hgetall(get_devices_key(uid))
        devices = {}
        for device_id, value in raw.items():
            try:
                entry = json.loads(value)
            except (TypeError, ValueError):
                entry = None
            if not isinstance(entry, dict):
                logger.warning(f"Device {device_id} of user {uid} has an unreadable entry")
                entry = {}
            try:
                devices[device_id] = DeviceEntry.model_validate(entry)
            except ValidationError:
                logger.warning(f"Device {device_id} of user {uid} has a malformed fcmToken")
                devices[device_id] = DeviceEntry()
        return devices

    async def accept_ringing_call(
        self, uid: str, call_id: str, accepted_by_device_id: str
    ) -> TransitionResult:
        """
        Atomically moves the user's call from ringing to in_progress.

        Uses WATCH/MULTI/EXEC: if another client touches the record between
        the read and the write, EXEC fails and the whole cycle is retried.

        Args:
            uid: Owner of the call record
            call_id: Call the device is trying to accept
            accepted_by_device_id: Device attempting the acceptance

        Returns:
            TransitionResult. `committed` is False when the record is missing,
            belongs to another call, or is not ringing; no write happens then.

        Raises:
            InvalidInputException: If call_id or accepted_by_device_id is empty
            WatchError: If the record kept changing for max_retries attempts
        """
        if not call_id or not accepted_by_device_id:
            raise InvalidInputException(detail="callId and acceptedByDeviceId must not be empty")

        key = get_active_call_key(uid)
        async with self.redis.pipeline(transaction=True) as pipe:
            for attempt in range(1, self.max_retries + 1):
                try:
                    await pipe.watch(key)
                    current = await pipe.hgetall(key)
                    record = _to_record(current)

                    if record is None or record.call_id != call_id:
                        await pipe.unwatch()
                        logger.info(f"Transition aborted for callId {call_id}: record missing or ID mismatch.")
                        return TransitionResult(committed=False, snapshot=record)

                    if record.status != CallStatus.RINGING.value:
                        await pipe.unwatch()
                        logger.info(
                            f"Transition aborted for callId {call_id}: status is {record.status}, not 'ringing'."
                        )
                        return TransitionResult(committed=False, snapshot=record)

                    pipe.multi()
                    pipe.hset(key, mapping={
                        "status": CallStatus.IN_PROGRESS.value,
                        "acceptedByDeviceId": accepted_by_device_id,
                    })
                    await pipe.execute()

                    record.status = CallStatus.IN_PROGRESS.value
                    record.accepted_by_device_id = accepted_by_device_id
                    logger.info(f"Call {call_id} accepted by {accepted_by_device_id}.")
                    return TransitionResult(committed=True, snapshot=record)
                except WatchError:
                    logger.debug(f"Call record {key} changed during transition, retry {attempt}/{self.max_retries}")
                    if attempt == self.max_retries:
                        logger.error(f"Gave up accepting callId {call_id} after {attempt} attempts")
                        raise
                    continue
