import asyncio
from typing import Optional

import structlog

from tracker_app.exceptions import SinkError
from tracker_app.models.events import PipelineStats
from tracker_app.sink.strategies import SinkStrategy


class SinkWriter:
    """
    Hands counter directives to the storage sink, one at a time.

    A rejected directive is logged and counted, never retried.
    """

    def __init__(
        self,
        inbox: asyncio.Queue,
        sink: SinkStrategy,
        logger=None,
        stats: Optional[PipelineStats] = None,
    ):
        self.inbox = inbox
        self.sink = sink
        self.stats = stats or PipelineStats()
        self.logger = (logger or structlog.get_logger()).bind(component="sink_writer")

    async def run(self) -> None:
        while True:
            directive = await self.inbox.get()
            try:
                await self.sink.accept(directive)
                self.stats.directives_stored += 1
            except SinkError as e:
                self.stats.sink_errors += 1
                self.logger.warning(
                    "Sink rejected directive",
                    counter_type=directive.counter_type.value,
                    route=directive.payload.route,
                    error=str(e),
                )
            except Exception:
                self.stats.sink_errors += 1
                self.logger.exception(
                    "Failed to store directive",
                    counter_type=directive.counter_type.value,
                    route=directive.payload.route,
                )
            finally:
                self.inbox.task_done()
