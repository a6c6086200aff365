# callsignal/core/exceptions.py

from fastapi import HTTPException, status

# Base Exception
class BaseAPIException(HTTPException):
    """Base class for all custom API exceptions."""
    def __init__(self, status_code: int, detail: str, headers: dict = None, details: str = None):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.details = details


# Validation & Input Exceptions
class InvalidInputException(BaseAPIException):
    """Exception raised when input data is invalid."""
    def __init__(self, detail="Invalid input data"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


# Call State Exceptions
class CallConflictException(BaseAPIException):
    """Exception raised when a call could not move from ringing to in progress."""
    def __init__(self, detail="Call could not be accepted"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

class CallAlreadyAcceptedException(CallConflictException):
    """Exception raised when another device won the race to accept the call."""
    def __init__(self, detail="Call already accepted by another device."):
        super().__init__(detail=detail)

class CallNotActiveException(CallConflictException):
    """Exception raised when the call record is missing, stale, or no longer ringing."""
    def __init__(self, detail="Call no longer active or invalid call ID."):
        super().__init__(detail=detail)


# Dependency Exceptions
class CallStoreException(BaseAPIException):
    """Exception raised when the call record store fails."""
    def __init__(self, detail="Internal server error during call acceptance", details: str = None):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail, details=details)

class NotificationFailedException(BaseAPIException):
    """Exception raised when a notification batch could not be dispatched at all."""
    def __init__(self, detail="Notification could not be sent", details: str = None):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail, details=details)

class InternalServerErrorException(BaseAPIException):
    """Exception raised for internal server errors."""
    def __init__(self, detail="Internal server error", details: str = None):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail, details=details)
