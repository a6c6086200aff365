from fastapi import APIRouter, Depends

from callsignal.dependencies.service_dependencies import get_call_service
from callsignal.schemas.call import AcceptCallRequest, AcceptCallResponse
from callsignal.schemas.notification import RingingNotificationRequest, RingingNotificationResponse
from callsignal.services.call_service import CallService

router = APIRouter(tags=["calls"])

@router.post("/sendRingingNotification", response_model=RingingNotificationResponse)
async def send_ringing_notification(
    request: RingingNotificationRequest,
    call_service: CallService = Depends(get_call_service)
):
    """
    Ring every listed device of the callee.

    Args:
        request: Device tokens plus the call data forwarded to each device
        call_service: Call service instance

    Returns:
        RingingNotificationResponse with per-token delivery details
    """
    return await call_service.send_ringing_notification(request)

@router.post("/acceptCall", response_model=AcceptCallResponse)
async def accept_call(
    request: AcceptCallRequest,
    call_service: CallService = Depends(get_call_service)
):
    """
    Accept a ringing call from one device and stop the others from ringing.

    Args:
        request: Accept request from the answering device
        call_service: Call service instance

    Returns:
        AcceptCallResponse with the media token and channel to join
    """
    return await call_service.accept_call(request)
