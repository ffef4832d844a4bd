"""
Dedup store strategies using Strategy Pattern.
Allows switching between approximate-set backends (Redis HyperLogLog, In-Memory).
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, Set, Tuple
import time

from redis.exceptions import RedisError

from tracker_app.exceptions import DedupStoreError


class DedupStrategy(ABC):
    """
    Abstract base class for dedup stores.

    The UV counter only needs one question answered per event: was this
    member new to the set under this key? Membership expires ``ttl``
    seconds after the key was created.
    """

    @abstractmethod
    async def add_if_absent(self, key: str, member: str, ttl: int) -> bool:
        """
        Add ``member`` to the set at ``key``.

        Args:
            key: Set key (scoped per referrer)
            member: Visitor identity
            ttl: Lifetime of the key in seconds, applied on creation

        Returns:
            True if the member was newly added, False if already present

        Raises:
            DedupStoreError: if the store could not be queried
        """
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Liveness probe. Returns False instead of raising."""
        pass

    async def close(self) -> None:
        """Release connections (no-op by default)"""
        return None


class RedisHyperLogLogDedup(DedupStrategy):
    """
    Redis HyperLogLog implementation.

    PFADD answers "did the estimated cardinality change", which is the
    add-if-absent question with a small false-negative rate: a genuinely
    new visitor is occasionally reported as already seen. Memory per key
    stays around 12KB no matter how many visitors a referrer has.

    EXPIRE ... NX only sets the TTL when the key has none, so the window
    starts with the first visitor of each referrer (requires Redis 7).
    """

    def __init__(self, redis_client):
        """
        Initialize Redis dedup store.

        Args:
            redis_client: redis.asyncio.Redis instance backed by a connection pool
        """
        self.redis = redis_client

    async def add_if_absent(self, key: str, member: str, ttl: int) -> bool:
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.pfadd(key, member)
                pipe.expire(key, ttl, nx=True)
                added, _ = await pipe.execute()
        except RedisError as e:
            raise DedupStoreError(f"PFADD {key} failed: {e}") from e
        return added == 1

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await self.redis.aclose()


class InMemoryDedup(DedupStrategy):
    """
    Exact in-memory set store with per-key expiry.

    Pros:
    - No external service
    - Exact (no HyperLogLog error)
    - Deterministic in tests (clock is injectable)

    Cons:
    - Not shared between processes
    - Lost on restart
    - Memory grows with distinct visitors

    Used in development/testing environments.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            clock: Returns the current time in seconds
        """
        self._clock = clock
        self._sets: Dict[str, Tuple[float, Set[str]]] = {}

    def _purge(self, now: float) -> None:
        """Drop every expired key"""
        expired = [key for key, (expires_at, _) in self._sets.items() if expires_at <= now]
        for key in expired:
            del self._sets[key]

    async def add_if_absent(self, key: str, member: str, ttl: int) -> bool:
        now = self._clock()
        entry = self._sets.get(key)
        if entry is None or entry[0] <= now:
            # expired keys are swept whenever a key is created
            self._purge(now)
            entry = (now + ttl, set())
            self._sets[key] = entry

        members = entry[1]
        if member in members:
            return False
        members.add(member)
        return True

    async def ping(self) -> bool:
        return True

    def key_count(self) -> int:
        """Number of live keys"""
        self._purge(self._clock())
        return len(self._sets)
