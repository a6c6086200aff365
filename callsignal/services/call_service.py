from typing import Dict, List

from redis.exceptions import RedisError

from callsignal.core.exceptions import (
    CallAlreadyAcceptedException,
    CallNotActiveException,
    CallStoreException,
    NotificationFailedException,
)
from callsignal.core.log_config import logger
from callsignal.database.call_store import CallStore
from callsignal.schemas.call import (
    AcceptCallRequest,
    AcceptCallResponse,
    CallStatus,
    DeviceEntry,
)
from callsignal.schemas.notification import (
    RING_ENDED,
    RingingNotificationRequest,
    RingingNotificationResponse,
)
from .notification_service import NotificationService


def select_ring_ended_tokens(devices: Dict[str, DeviceEntry], accepted_by_device_id: str) -> List[str]:
    """
    Returns the push tokens of every device that should stop ringing: all
    devices except the one that accepted, skipping devices without a token.
    """
    return [
        entry.fcm_token
        for device_id, entry in devices.items()
        if device_id != accepted_by_device_id and entry.fcm_token
    ]


class CallService:
    def __init__(self, call_store: CallStore, notification_service: NotificationService):
        self.call_store = call_store
        self.notification_service = notification_service

    async def send_ringing_notification(self, request: RingingNotificationRequest) -> RingingNotificationResponse:
        """
        Sends the incoming-call notification to every listed device.

        Failures for individual tokens are reported in the response rather
        than raised.
        """
        try:
            result = await self.notification_service.send_multicast(
                request.fcm_tokens,
                {
                    "type": request.type,
                    "callerId": request.caller_id,
                    "callId": request.call_id,
                    "channel": request.channel,
                    "token": request.token,
                },
            )
        except NotificationFailedException as e:
            logger.error(f"Error sending ringing for call {request.call_id}: {e.details}")
            raise NotificationFailedException(
                detail="Failed to send ringing notifications", details=e.details
            ) from e

        logger.info(
            f"Ringing for call {request.call_id}: {result.success_count} sent, {result.failure_count} failed"
        )
        if result.failures:
            logger.warning(f"Failed to send ringing to some tokens: {result.failures}")

        return RingingNotificationResponse(
            success_count=result.success_count,
            failure_count=result.failure_count,
            details=result.responses,
        )

    async def accept_call(self, request: AcceptCallRequest) -> AcceptCallResponse:
        """
        Lets one device accept a ringing call and tells the others to stop ringing.

        Args:
            request: Accept request from the device that answered

        Returns:
            AcceptCallResponse echoing the media token and channel

        Raises:
            CallAlreadyAcceptedException: Another device accepted first
            CallNotActiveException: The call is gone, stale, or not ringing
            CallStoreException: The call record store failed before commit
        """
        try:
            result = await self.call_store.accept_ringing_call(
                request.current_uid, request.call_id, request.accepted_by_device_id
            )
            if not result.committed:
                # Best effort: the record may change again after this read.
                current = await self.call_store.get_active_call(request.current_uid)
        except RedisError as e:
            logger.error(f"Error during call acceptance process: {e}")
            raise CallStoreException(details=str(e)) from e

        if not result.committed:
            if current is not None and current.status == CallStatus.IN_PROGRESS.value:
                raise CallAlreadyAcceptedException()
            raise CallNotActiveException()

        await self._notify_ring_ended(request)

        return AcceptCallResponse(
            call_id=request.call_id,
            token=request.token,
            channel=request.channel,
            accepted_by_device_id=request.accepted_by_device_id,
        )

    async def _notify_ring_ended(self, request: AcceptCallRequest):
        """
        Tells every other device of the user to stop ringing. The accept has
        already committed, so failures here are logged and never raised.
        """
        try:
            devices = await self.call_store.get_devices(request.current_uid)
            tokens = select_ring_ended_tokens(devices, request.accepted_by_device_id)
            if not tokens:
                return

            result = await self.notification_service.send_multicast(
                tokens,
                {
                    "type": RING_ENDED,
                    "callId": request.call_id,
                    "acceptedByDeviceId": request.accepted_by_device_id,
                },
            )
        except NotificationFailedException as e:
            logger.error(f"Error sending ring_ended for call {request.call_id}: {e.details}")
            return
        except Exception:
            logger.exception(f"Could not notify other devices of user {request.current_uid} for call {request.call_id}")
            return

        logger.info(
            f"Sent ring_ended for call {request.call_id}: {result.success_count} sent, {result.failure_count} failed"
        )
        if result.failures:
            logger.warning(f"Failed to send ring_ended to some tokens: {result.failures}")
