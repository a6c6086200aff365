from .core.config import settings
from .database.redis import RedisManager
from .services.notification_service import NotificationService

# Single, shared instances created once when the module is first imported.
# They are started and closed by the application lifespan.
redis_manager = RedisManager(settings.redis_url)
notification_service = NotificationService()
