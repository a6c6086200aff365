# callsignal/database/redis.py
import redis.asyncio as redis
from typing import Optional

from callsignal.core.config import settings
from callsignal.core.log_config import logger

class RedisManager:
    """Owns the process-wide Redis client that backs the call record store."""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self.redis: Optional[redis.Redis] = None

    async def connect(self):
        """Initialize Redis connection"""
        try:
            self.redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=settings.redis_socket_connect_timeout,
                socket_timeout=settings.redis_socket_timeout,
                socket_keepalive=True,
                health_check_interval=30,
            )
            # Test connection
            await self.redis.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.error(f"Failed to connect to Redis at {self.redis_url}: {e}")
            raise

    async def disconnect(self):
        """Close Redis connection"""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("Redis connection closed")

    def get_client(self) -> redis.Redis:
        if self.redis is None:
            raise RuntimeError("Redis connection has not been initialized")
        return self.redis
