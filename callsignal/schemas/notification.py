from typing import List, Optional

from pydantic import BaseModel, Field

RING_ENDED = "ring_ended"

class SendResult(BaseModel):
    """Delivery outcome for a single device token."""
    token: str
    success: bool
    message_id: Optional[str] = Field(default=None, alias="messageId")
    error: Optional[str] = None

    class Config:
        populate_by_name = True

class MulticastResult(BaseModel):
    responses: List[SendResult] = []

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.responses if r.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.responses if not r.success)

    @property
    def failures(self) -> List[SendResult]:
        return [r for r in self.responses if not r.success]

class RingingNotificationRequest(BaseModel):
    fcm_tokens: List[str] = Field(..., min_length=1, alias="fcmTokens")
    caller_id: str = Field(..., min_length=1, alias="callerId")
    call_id: str = Field(..., min_length=1, alias="callId")
    type: str = Field(..., min_length=1)
    channel: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)

    class Config:
        populate_by_name = True

class RingingNotificationResponse(BaseModel):
    message: str = "Ringing notifications sent successfully"
    success_count: int = Field(..., alias="successCount")
    failure_count: int = Field(..., alias="failureCount")
    details: List[SendResult]

    class Config:
        populate_by_name = True
