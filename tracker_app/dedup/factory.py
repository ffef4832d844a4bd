"""
Factory for creating dedup store instances.
Simple, clean factory with singleton caching.
"""

from enum import Enum
from .strategies import DedupStrategy, RedisHyperLogLogDedup, InMemoryDedup
from tracker_app.config import settings


class DedupBackend(Enum):
    """Available dedup backends"""
    REDIS = "redis"
    MEMORY = "memory"


class DedupFactory:
    """
    Simple factory for creating dedup store instances.

    Gets configuration from settings (not passed as parameters).
    """

    _instance: DedupStrategy = None  # Single cached instance

    @classmethod
    def create(cls, backend: DedupBackend) -> DedupStrategy:
        """
        Create or return cached dedup store instance.

        The Redis client connects lazily; reachability is reported by the
        pipeline's probe, and outages are handled by the UV counter's
        failure policy rather than by switching backends.

        Args:
            backend: Type of dedup backend (from enum)

        Returns:
            Singleton dedup store instance
        """
        # Return cached instance if exists
        if cls._instance is not None:
            return cls._instance

        if backend == DedupBackend.REDIS:
            import redis.asyncio as aioredis

            redis_client = aioredis.from_url(
                settings.redis_url,
                max_connections=settings.effective_pool_size,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
            cls._instance = RedisHyperLogLogDedup(redis_client)

        elif backend == DedupBackend.MEMORY:
            cls._instance = InMemoryDedup()

        else:
            raise ValueError(f"Unknown dedup backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
