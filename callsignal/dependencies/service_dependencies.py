from fastapi import Depends

from callsignal.globals import redis_manager, notification_service
from callsignal.database.call_store import CallStore
from callsignal.services.call_service import CallService
from callsignal.services.notification_service import NotificationService

def get_call_store() -> CallStore:
    """
    Dependency that provides a CallStore bound to the shared Redis client.
    """
    return CallStore(redis_manager.get_client())

def get_notification_service() -> NotificationService:
    """
    Dependency that provides the singleton NotificationService instance.
    """
    return notification_service

def get_call_service(
    call_store: CallStore = Depends(get_call_store),
    notification_service: NotificationService = Depends(get_notification_service)
) -> CallService:
    """
    Dependency that provides an instance of CallService with required dependencies.
    """
    return CallService(call_store=call_store, notification_service=notification_service)
