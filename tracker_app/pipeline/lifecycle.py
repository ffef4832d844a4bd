"""
Pipeline lifecycle.

Wires the stages together and owns their tasks:

    LogTailer -> Dispatcher -> ParserWorker x W -> PVCounter -+
                                                -> UVCounter -+-> SinkWriter -> sink

Every queue holds at most ``worker_count`` items. ``stop()`` signals the
tailer, drains each queue in stage order, then cancels the consumers.
"""

import asyncio
from typing import List, Optional, Set

import structlog

from tracker_app.dedup.strategies import DedupStrategy
from tracker_app.models.events import PipelineStats
from tracker_app.pipeline.counters import DedupProbe, PVCounter, UVCounter
from tracker_app.pipeline.dispatcher import Dispatcher, ParserWorker
from tracker_app.pipeline.policies import DedupFailurePolicy, EmptyRecordPolicy
from tracker_app.pipeline.tailer import LogTailer
from tracker_app.pipeline.writer import SinkWriter
from tracker_app.sink.strategies import SinkStrategy


class Pipeline:
    """
    Explicit start/stop lifecycle for the ingestion pipeline.

    Usage:
        pipeline = Pipeline(settings, dedup, sink, logger)
        await pipeline.start()
        ...
        await pipeline.stop()
    """

    def __init__(
        self,
        settings,
        dedup: DedupStrategy,
        sink: SinkStrategy,
        logger=None,
    ):
        """
        Args:
            settings: Settings instance (see tracker_app.config)
            dedup: Dedup store used by the UV counter
            sink: Storage sink receiving counter directives
            logger: structlog logger shared by all stages
        """
        self.settings = settings
        self.dedup = dedup
        self.sink = sink
        self.logger = (logger or structlog.get_logger()).bind(component="pipeline")
        self._base_logger = logger or structlog.get_logger()
        self.stats = PipelineStats()

        self.stop_event: Optional[asyncio.Event] = None
        self._tailer_task: Optional[asyncio.Task] = None
        self._tasks: List[asyncio.Task] = []
        self._background: Set[asyncio.Task] = set()
        self._stopping = False
        self._stopped: Optional[asyncio.Event] = None
        self._failure: Optional[BaseException] = None

    @property
    def running(self) -> bool:
        return bool(self._tasks) and not self._stopping

    async def start(self) -> None:
        """Create queues and start every stage"""
        if self._tasks:
            return

        settings = self.settings
        workers = settings.worker_count
        log = self._base_logger

        self.stop_event = asyncio.Event()
        self._stopped = asyncio.Event()

        self.dispatcher = Dispatcher(capacity=workers)
        self.pv_queue: asyncio.Queue = asyncio.Queue(maxsize=workers)
        self.uv_queue: asyncio.Queue = asyncio.Queue(maxsize=workers)
        self.storage_queue: asyncio.Queue = asyncio.Queue(maxsize=workers)

        self.tailer = LogTailer(
            settings.log_file_path,
            logger=log,
            poll_interval=settings.tail_poll_interval,
            from_end=settings.tail_from_end,
            open_retries=settings.tail_open_retries,
            open_backoff=settings.tail_open_backoff,
            progress_every=1000 * workers,
            stats=self.stats,
        )
        self.workers = [
            ParserWorker(
                worker_id=i,
                lines=self.dispatcher.queue,
                pv_queue=self.pv_queue,
                uv_queue=self.uv_queue,
                logger=log,
                schemes=settings.recognized_schemes,
                empty_record_policy=EmptyRecordPolicy(settings.empty_record_policy),
                stats=self.stats,
            )
            for i in range(workers)
        ]
        self.pv_counter = PVCounter(self.pv_queue, self.storage_queue, stats=self.stats)
        self.uv_counter = UVCounter(
            self.uv_queue,
            self.storage_queue,
            self.dedup,
            logger=log,
            key_prefix=settings.dedup_key_prefix,
            ttl=settings.dedup_ttl,
            failure_policy=DedupFailurePolicy(settings.dedup_failure_policy),
            stats=self.stats,
        )
        self.writer = SinkWriter(self.storage_queue, self.sink, logger=log, stats=self.stats)
        self.probe = DedupProbe(
            self.dedup,
            logger=log,
            interval=settings.dedup_ping_interval,
            stats=self.stats,
        )

        self._tailer_task = asyncio.create_task(
            self.tailer.run(self.dispatcher.dispatch, self.stop_event), name="tailer"
        )
        self._tailer_task.add_done_callback(self._on_tailer_done)

        self._tasks = [
            asyncio.create_task(worker.run(), name=f"parser-{worker.worker_id}")
            for worker in self.workers
        ]
        self._tasks += [
            asyncio.create_task(self.pv_counter.run(), name="pv-counter"),
            asyncio.create_task(self.uv_counter.run(), name="uv-counter"),
            asyncio.create_task(self.writer.run(), name="sink-writer"),
            asyncio.create_task(self.probe.run(self.stop_event), name="dedup-probe"),
        ]

        self.logger.info(
            "Pipeline started",
            log_file=settings.log_file_path,
            workers=workers,
            empty_record_policy=settings.empty_record_policy,
            dedup_failure_policy=settings.dedup_failure_policy,
        )

    def _on_tailer_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._failure = exc
            self.logger.error("Tailer failed, stopping pipeline", error=str(exc))
            self.request_stop()

    def request_stop(self) -> None:
        """Schedule ``stop()`` from a callback or signal handler"""
        task = asyncio.get_running_loop().create_task(self.stop())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def stop(self) -> None:
        """
        Graceful shutdown.

        Lines already read are carried through to the sink, bounded by
        ``shutdown_timeout``; whatever is left after that is abandoned.
        """
        if not self._tasks:
            return
        if self._stopping:
            await self._stopped.wait()
            return
        self._stopping = True
        self.logger.info("Pipeline stopping")
        self.stop_event.set()

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.shutdown_timeout

        await asyncio.wait([self._tailer_task], timeout=self.settings.shutdown_timeout)
        if not self._tailer_task.done():
            self._tailer_task.cancel()

        for name, queue in (
            ("dispatch", self.dispatcher.queue),
            ("pv", self.pv_queue),
            ("uv", self.uv_queue),
            ("storage", self.storage_queue),
        ):
            try:
                await asyncio.wait_for(queue.join(), timeout=max(0.0, deadline - loop.time()))
            except asyncio.TimeoutError:
                self.logger.warning("Queue not drained before timeout", queue=name, pending=queue.qsize())
                break

        for task in self._tasks:
            task.cancel()
        await asyncio.gather(self._tailer_task, *self._tasks, return_exceptions=True)

        await self.dedup.close()
        await self.sink.close()

        self.logger.info("Pipeline stopped", **self.stats.model_dump())
        self._stopped.set()

    async def wait(self) -> None:
        """
        Block until the pipeline has stopped.

        Raises:
            TailerOpenError: if the pipeline stopped because the log file
                could not be opened
        """
        if self._stopped is None:
            raise RuntimeError("Pipeline was never started")
        await self._stopped.wait()
        if self._failure is not None:
            raise self._failure
