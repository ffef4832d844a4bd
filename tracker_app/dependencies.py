"""
Dependency wiring for the pipeline and the status API.

This module provides singleton instances of the dedup store and sink
and builds the pipeline from them.

Pattern: Dependency Injection
- Loose coupling between components
- Easy to test (inject in-memory backends)
- Flexible (swap implementations via config)
"""

from fastapi import Request

from tracker_app.config import settings
from tracker_app.dedup.factory import DedupFactory, DedupBackend
from tracker_app.dedup.strategies import DedupStrategy
from tracker_app.pipeline.lifecycle import Pipeline
from tracker_app.sink.factory import SinkFactory, SinkBackend
from tracker_app.sink.strategies import SinkStrategy


def get_dedup() -> DedupStrategy:
    """
    Get dedup store instance (singleton).

    Returns:
        DedupStrategy instance based on settings
    """
    backend = DedupBackend(settings.dedup_backend)
    return DedupFactory.create(backend)


def get_sink(logger=None) -> SinkStrategy:
    """
    Get sink instance (singleton).

    Returns:
        SinkStrategy instance based on settings
    """
    backend = SinkBackend(settings.sink_backend)
    return SinkFactory.create(backend, logger=logger)


def build_pipeline(logger) -> Pipeline:
    """Pipeline wired to the configured backends"""
    return Pipeline(settings, dedup=get_dedup(), sink=get_sink(logger), logger=logger)


def get_pipeline(request: Request) -> Pipeline:
    """The pipeline started by the application lifespan"""
    return request.app.state.pipeline
