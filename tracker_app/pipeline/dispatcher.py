"""
Fan-out of raw lines to the parser worker pool.

Architecture:
- One bounded queue (capacity = worker count) between tailer and workers
- Each worker parses a line, derives visitor identity and route, and puts
  the same VisitEvent on the PV queue and on the UV queue
- A full queue suspends the producer; nothing is dropped for capacity
"""

import asyncio
from typing import Iterable, Optional

import structlog

from tracker_app.models.events import PipelineStats, VisitEvent
from tracker_app.pipeline.policies import EmptyRecordPolicy
from tracker_app.services.fingerprint import fingerprint
from tracker_app.services.parser import parse_line
from tracker_app.services.route_classifier import DEFAULT_SCHEMES, classify


class Dispatcher:
    """Bounded hand-off between the tailer and the parser workers"""

    def __init__(self, capacity: int):
        self.queue: "asyncio.Queue[str]" = asyncio.Queue(maxsize=capacity)

    async def dispatch(self, line: str) -> None:
        """Queue one line, waiting for a free slot if every worker is busy"""
        await self.queue.put(line)


class ParserWorker:
    """
    One member of the parser pool.

    Order is preserved within a worker; across workers it is not.
    """

    def __init__(
        self,
        worker_id: int,
        lines: asyncio.Queue,
        pv_queue: asyncio.Queue,
        uv_queue: asyncio.Queue,
        logger=None,
        schemes: Iterable[str] = DEFAULT_SCHEMES,
        empty_record_policy: EmptyRecordPolicy = EmptyRecordPolicy.FORWARD,
        stats: Optional[PipelineStats] = None,
    ):
        self.worker_id = worker_id
        self.lines = lines
        self.pv_queue = pv_queue
        self.uv_queue = uv_queue
        self.schemes = tuple(schemes)
        self.empty_record_policy = empty_record_policy
        self.stats = stats or PipelineStats()
        self.logger = (logger or structlog.get_logger()).bind(component="parser", worker=worker_id)

    def process(self, line: str) -> Optional[VisitEvent]:
        """
        Turn a raw line into a VisitEvent.

        Returns None only when the empty-record policy drops it.
        """
        event = parse_line(line)
        if event.is_empty:
            self.stats.parse_failures += 1
        else:
            self.stats.events_parsed += 1

        visitor_id = fingerprint(event.referrer, event.user_agent)
        record = classify(event.url, event.timestamp, visitor_id, self.schemes)

        if record.is_empty:
            if self.empty_record_policy == EmptyRecordPolicy.DROP:
                self.stats.filtered_records += 1
                return None
            self.stats.empty_records += 1

        return VisitEvent(event=event, visitor_id=visitor_id, record=record)

    async def run(self) -> None:
        while True:
            line = await self.lines.get()
            try:
                visit = self.process(line)
                if visit is not None:
                    await self.pv_queue.put(visit)
                    await self.uv_queue.put(visit)
            except Exception:
                self.logger.exception("Failed to process line", line=line[:200])
            finally:
                self.lines.task_done()
