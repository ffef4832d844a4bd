"""
PV and UV counting stages.

PV counts arrivals. UV counts an arrival only when the dedup store says
its visitor identity is new for the referrer within the TTL window.
"""

import asyncio
from typing import Optional

import structlog

from tracker_app.dedup.strategies import DedupStrategy
from tracker_app.exceptions import DedupStoreError
from tracker_app.models.events import CounterDirective, CounterType, PipelineStats, VisitEvent
from tracker_app.pipeline.policies import DedupFailurePolicy
from tracker_app.pipeline.tailer import pause


class PVCounter:
    """Emits one pv directive for every event received"""

    def __init__(
        self,
        inbox: asyncio.Queue,
        outbox: asyncio.Queue,
        stats: Optional[PipelineStats] = None,
    ):
        self.inbox = inbox
        self.outbox = outbox
        self.stats = stats or PipelineStats()

    def handle(self, visit: VisitEvent) -> CounterDirective:
        self.stats.pv_emitted += 1
        return CounterDirective(counter_type=CounterType.PV, payload=visit.record)

    async def run(self) -> None:
        while True:
            visit = await self.inbox.get()
            try:
                await self.outbox.put(self.handle(visit))
            finally:
                self.inbox.task_done()


class UVCounter:
    """
    Emits a uv directive only for visitors new to the dedup store.

    One dedup request per event, awaited before the next event is taken.
    """

    def __init__(
        self,
        inbox: asyncio.Queue,
        outbox: asyncio.Queue,
        dedup: DedupStrategy,
        logger=None,
        key_prefix: str = "uv_hpll_",
        ttl: int = 86400,
        failure_policy: DedupFailurePolicy = DedupFailurePolicy.FAIL_CLOSED,
        stats: Optional[PipelineStats] = None,
    ):
        self.inbox = inbox
        self.outbox = outbox
        self.dedup = dedup
        self.key_prefix = key_prefix
        self.ttl = ttl
        self.failure_policy = failure_policy
        self.stats = stats or PipelineStats()
        self.logger = (logger or structlog.get_logger()).bind(component="uv_counter")

    def dedup_key(self, visit: VisitEvent) -> str:
        return self.key_prefix + visit.event.referrer

    async def handle(self, visit: VisitEvent) -> Optional[CounterDirective]:
        key = self.dedup_key(visit)
        try:
            is_new = await self.dedup.add_if_absent(key, visit.visitor_id, self.ttl)
        except DedupStoreError as e:
            self.stats.dedup_errors += 1
            self.logger.warning(
                "Dedup store call failed",
                key=key,
                error=str(e),
                policy=self.failure_policy.value,
            )
            if self.failure_policy == DedupFailurePolicy.FAIL_CLOSED:
                return None
            is_new = True

        if not is_new:
            self.stats.uv_duplicates += 1
            return None

        self.stats.uv_emitted += 1
        return CounterDirective(counter_type=CounterType.UV, payload=visit.record)

    async def run(self) -> None:
        while True:
            visit = await self.inbox.get()
            try:
                directive = await self.handle(visit)
                if directive is not None:
                    await self.outbox.put(directive)
            finally:
                self.inbox.task_done()


class DedupProbe:
    """Periodically pings the dedup store and logs reachability changes"""

    def __init__(
        self,
        dedup: DedupStrategy,
        logger=None,
        interval: float = 3.0,
        stats: Optional[PipelineStats] = None,
    ):
        self.dedup = dedup
        self.interval = interval
        self.stats = stats or PipelineStats()
        self.logger = (logger or structlog.get_logger()).bind(component="dedup_probe")

    async def check(self) -> bool:
        reachable = await self.dedup.ping()
        if reachable != self.stats.dedup_reachable:
            if reachable:
                self.logger.info("Dedup store reachable again")
            else:
                self.logger.warning("Dedup store unreachable")
        else:
            self.logger.debug("Pinged dedup store", reachable=reachable)
        self.stats.dedup_reachable = reachable
        return reachable

    async def run(self, stop: asyncio.Event) -> None:
        while not stop.is_set():
            await self.check()
            if await pause(stop, self.interval):
                break
