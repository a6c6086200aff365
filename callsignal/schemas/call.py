from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

class CallStatus(str, Enum):
    RINGING = "ringing"
    IN_PROGRESS = "in_progress"

class CallRecord(BaseModel):
    """State of a user's active call, stored at calls/{uid}/activeCall."""
    call_id: str = Field(..., alias="callId")
    status: str
    accepted_by_device_id: Optional[str] = Field(default=None, alias="acceptedByDeviceId")

    class Config:
        populate_by_name = True

class DeviceEntry(BaseModel):
    """One registered device of a user, stored under calls/{uid}/devices."""
    fcm_token: Optional[str] = Field(default=None, alias="fcmToken")

    class Config:
        populate_by_name = True
        extra = "ignore"

class TransitionResult(BaseModel):
    committed: bool
    snapshot: Optional[CallRecord] = None

class AcceptCallRequest(BaseModel):
    call_id: str = Field(..., min_length=1, alias="callId")
    accepted_by_device_id: str = Field(..., min_length=1, alias="acceptedByDeviceId")
    current_uid: str = Field(..., min_length=1, alias="currentUid")
    token: str = Field(..., min_length=1, description="Media session token, echoed back to the caller")
    channel: str = Field(..., min_length=1, description="Media channel name, echoed back to the caller")

    class Config:
        populate_by_name = True

class AcceptCallResponse(BaseModel):
    message: str = "Call accepted successfully"
    call_id: str = Field(..., alias="callId")
    token: str
    channel: str
    accepted_by_device_id: str = Field(..., alias="acceptedByDeviceId")

    class Config:
        populate_by_name = True
