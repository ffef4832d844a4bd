"""
Storage sink strategies using Strategy Pattern.

A sink turns counter directives into time-bucketed sorted-set scores:

    ZINCRBY {prefix}{counter_type}_{granularity}_{route} 1 {bucket}

so a dashboard reads one sorted set per route and granularity, with the
bucket start as member and the count as score.
"""

from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Tuple

import structlog
from redis.exceptions import RedisError

from tracker_app.exceptions import SinkError
from tracker_app.models.events import CounterDirective
from tracker_app.services.buckets import bucket_for


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SinkStrategy(ABC):
    """
    Abstract base class for storage sinks.

    A directive is handed to ``accept`` once per emission; sinks never
    deduplicate or retry.
    """

    def __init__(
        self,
        granularities: Iterable[str] = ("day", "hour", "minute"),
        key_prefix: str = "",
        empty_route_label: str = "none",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.granularities = list(granularities)
        self.key_prefix = key_prefix
        self.empty_route_label = empty_route_label
        self.clock = clock

    def increments_for(self, directive: CounterDirective) -> List[Tuple[str, str]]:
        """(sorted set key, bucket member) pairs one directive increments"""
        route = directive.payload.route or self.empty_route_label
        now = self.clock()
        return [
            (
                f"{self.key_prefix}{directive.counter_type.value}_{granularity}_{route}",
                bucket_for(directive.payload.timestamp, granularity, now=now),
            )
            for granularity in self.granularities
        ]

    @abstractmethod
    async def accept(self, directive: CounterDirective) -> bool:
        """
        Apply one directive.

        Returns:
            True once the increment is acknowledged

        Raises:
            SinkError: if the backend rejected the increment
        """
        pass

    async def close(self) -> None:
        return None


class RedisSortedSetSink(SinkStrategy):
    """Redis sorted sets, one ZINCRBY per configured granularity"""

    def __init__(self, redis_client, **kwargs):
        super().__init__(**kwargs)
        self.redis = redis_client

    async def accept(self, directive: CounterDirective) -> bool:
        try:
            async with self.redis.pipeline(transaction=False) as pipe:
                for key, bucket in self.increments_for(directive):
                    pipe.zincrby(key, directive.increment, bucket)
                await pipe.execute()
        except RedisError as e:
            raise SinkError(f"ZINCRBY failed for {directive.counter_type.value}: {e}") from e
        return True

    async def close(self) -> None:
        await self.redis.aclose()


class InMemorySink(SinkStrategy):
    """
    Keeps everything in process.

    ``directives`` holds every accepted directive in arrival order,
    ``counts`` totals per (counter type, route) and ``scores`` mirrors
    what the Redis sink would write.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.directives: List[CounterDirective] = []
        self.counts: Counter = Counter()
        self.scores: Counter = Counter()

    async def accept(self, directive: CounterDirective) -> bool:
        self.directives.append(directive)
        route = directive.payload.route or self.empty_route_label
        self.counts[(directive.counter_type.value, route)] += directive.increment
        for key, bucket in self.increments_for(directive):
            self.scores[(key, bucket)] += directive.increment
        return True

    def count(self, counter_type: str, route: str) -> int:
        return self.counts[(counter_type, route)]


class LogSink(SinkStrategy):
    """Writes each directive to the diagnostic log and stores nothing"""

    def __init__(self, logger=None, **kwargs):
        super().__init__(**kwargs)
        self.logger = (logger or structlog.get_logger()).bind(component="log_sink")

    async def accept(self, directive: CounterDirective) -> bool:
        counter_type, route, visitor_id, url, timestamp = directive.as_tuple()
        self.logger.info(
            "Counter directive",
            counter_type=counter_type,
            operation=directive.operation,
            route=route,
            visitor_id=visitor_id,
            url=url,
            timestamp=timestamp,
        )
        return True
