"""
Factory for creating storage sink instances.
Simple, clean factory with singleton caching.
"""

from enum import Enum
from .strategies import SinkStrategy, RedisSortedSetSink, InMemorySink, LogSink
from tracker_app.config import settings


class SinkBackend(Enum):
    """Available sink backends"""
    REDIS = "redis"
    MEMORY = "memory"
    LOG = "log"


class SinkFactory:
    """
    Simple factory for creating storage sink instances.

    Gets configuration from settings (not passed as parameters).
    """

    _instance: SinkStrategy = None  # Single cached instance

    @classmethod
    def create(cls, backend: SinkBackend, logger=None) -> SinkStrategy:
        """
        Create or return cached sink instance.

        Args:
            backend: Type of sink backend (from enum)
            logger: Logger for the log sink

        Returns:
            Singleton sink instance
        """
        if cls._instance is not None:
            return cls._instance

        options = dict(
            granularities=settings.bucket_granularities,
            key_prefix=settings.sink_key_prefix,
            empty_route_label=settings.empty_route_label,
        )

        if backend == SinkBackend.REDIS:
            import redis.asyncio as aioredis

            redis_client = aioredis.from_url(
                settings.redis_url,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
            cls._instance = RedisSortedSetSink(redis_client, **options)

        elif backend == SinkBackend.MEMORY:
            cls._instance = InMemorySink(**options)

        elif backend == SinkBackend.LOG:
            cls._instance = LogSink(logger=logger, **options)

        else:
            raise ValueError(f"Unknown sink backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
