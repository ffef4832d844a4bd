"""
Continuous tail of the source access log.
"""

import asyncio
import os
from typing import Awaitable, Callable, Optional, TextIO

import structlog

from tracker_app.exceptions import TailerOpenError
from tracker_app.models.events import PipelineStats


async def pause(stop: asyncio.Event, seconds: float) -> bool:
    """Sleep up to ``seconds``; returns True if stop was requested meanwhile"""
    try:
        await asyncio.wait_for(stop.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return False
    return True


class LogTailer:
    """
    Reads the log file line by line, forever.

    End of file is not an end: the tailer waits ``poll_interval`` and
    reads again. A line is emitted only once its newline has been
    written, so a half-flushed line is never parsed.
    """

    def __init__(
        self,
        path: str,
        logger=None,
        poll_interval: float = 3.0,
        from_end: bool = False,
        open_retries: int = 5,
        open_backoff: float = 1.0,
        progress_every: int = 5000,
        stats: Optional[PipelineStats] = None,
    ):
        self.path = path
        self.poll_interval = poll_interval
        self.from_end = from_end
        self.open_retries = max(1, open_retries)
        self.open_backoff = open_backoff
        self.progress_every = progress_every
        self.stats = stats or PipelineStats()
        self.logger = (logger or structlog.get_logger()).bind(component="tailer", path=path)

    async def _open(self, stop: asyncio.Event) -> Optional[TextIO]:
        """
        Open the file, retrying with exponential backoff.

        Returns None if stop was requested while waiting.

        Raises:
            TailerOpenError: every attempt failed
        """
        delay = self.open_backoff
        for attempt in range(1, self.open_retries + 1):
            try:
                handle = open(self.path, "r", encoding="utf-8", errors="replace")
            except OSError as e:
                self.logger.error("Open log file failed", attempt=attempt, error=str(e))
                if attempt == self.open_retries:
                    break
                if await pause(stop, delay):
                    return None
                delay *= 2
                continue

            if self.from_end:
                handle.seek(0, os.SEEK_END)
            return handle

        raise TailerOpenError(self.path, self.open_retries)

    async def run(self, emit: Callable[[str], Awaitable[None]], stop: asyncio.Event) -> None:
        """
        Tail until ``stop`` is set.

        Args:
            emit: Awaited with every complete line (newline stripped)
            stop: Cancellation signal
        """
        self.logger.info("Tailer started", from_end=self.from_end)
        handle = await self._open(stop)
        if handle is None:
            return

        count = 0
        pending = ""
        try:
            while not stop.is_set():
                try:
                    chunk = await asyncio.to_thread(handle.readline)
                except OSError as e:
                    self.logger.warning("Read line failed", error=str(e), line=count)
                    await pause(stop, self.poll_interval)
                    continue

                if not chunk:
                    self.logger.debug("End of file, waiting", seconds=self.poll_interval)
                    await pause(stop, self.poll_interval)
                    continue

                if not chunk.endswith("\n"):
                    pending += chunk
                    continue

                line = (pending + chunk).rstrip("\r\n")
                pending = ""
                await emit(line)

                count += 1
                self.stats.lines_read += 1
                if count % self.progress_every == 0:
                    self.logger.info("Lines read", count=count)
        finally:
            handle.close()
            self.logger.info("Tailer stopped", lines=count)
