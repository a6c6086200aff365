"""
Development helper: puts a user's call into the ringing state and registers
devices, the way the start-ringing and device-registration services would.

    python scripts/seed_ringing_call.py <uid> <call-id> <device-id>=<fcm-token> ...
"""
import asyncio
import json
import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
sys.path.append(str(project_root))

import redis.asyncio as redis

from callsignal.core.config import settings
from callsignal.database.call_store import get_active_call_key, get_devices_key

async def seed(uid: str, call_id: str, devices: dict):
    client = redis.from_url(settings.redis_url, decode_responses=True)
    try:
        await client.delete(get_active_call_key(uid))
        await client.hset(get_active_call_key(uid), mapping={"callId": call_id, "status": "ringing"})
        if devices:
            await client.hset(
                get_devices_key(uid),
                mapping={device_id: json.dumps({"fcmToken": token}) for device_id, token in devices.items()},
            )
        print(f"Call {call_id} ringing for {uid} on {len(devices)} device(s).")
    finally:
        await client.aclose()

if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(2)
    device_args = dict(arg.split("=", 1) for arg in sys.argv[3:])
    asyncio.run(seed(sys.argv[1], sys.argv[2], device_args))
