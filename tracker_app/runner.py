"""
Standalone pipeline runner (no HTTP surface).

Usage:
    python -m tracker_app.runner
    dig-tracker
"""

import asyncio
import signal
import sys

from tracker_app.config import settings
from tracker_app.dependencies import build_pipeline
from tracker_app.exceptions import TrackerError
from tracker_app.log_setup import diagnostic_logger


async def main() -> int:
    """
    Run the pipeline until SIGINT/SIGTERM.

    Returns:
        Process exit code
    """
    with diagnostic_logger(settings) as logger:
        logger.info(
            "Dig tracker starting",
            environment=settings.environment,
            log_file=settings.log_file_path,
            workers=settings.worker_count,
            dedup_backend=settings.dedup_backend,
            sink_backend=settings.sink_backend,
        )

        pipeline = build_pipeline(logger)

        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, pipeline.request_stop)

        await pipeline.start()
        try:
            await pipeline.wait()
        except TrackerError as e:
            logger.error("Fatal error", error=str(e))
            return 1
        return 0


def run():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
