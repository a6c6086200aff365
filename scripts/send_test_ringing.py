import asyncio
import sys
from pathlib import Path
import logging

# Add the project root directory to the Python path
project_root = Path(__file__).resolve().parent.parent
sys.path.append(str(project_root))

from callsignal.core.exceptions import NotificationFailedException
from callsignal.services.notification_service import NotificationService

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

async def main(fcm_token: str):
    notification_service = NotificationService()
    notification_service.start()

    try:
        result = await notification_service.send_multicast(
            [fcm_token],
            {
                "type": "incoming_call",
                "callerId": "test-caller",
                "callId": "test-call",
                "channel": "test-channel",
                "token": "test-media-token",
            },
        )
        for response in result.responses:
            if response.success:
                logger.info(f"Ringing sent: {response.message_id}")
            else:
                logger.error(f"Ringing failed for {response.token[:15]}...: {response.error}")
    except NotificationFailedException as e:
        logger.error(f"Failed to send ringing notification: {e.details}")
    finally:
        await notification_service.close()

if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: python scripts/send_test_ringing.py <fcm-token>")
        sys.exit(2)
    asyncio.run(main(sys.argv[1]))
