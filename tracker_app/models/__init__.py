"""
Data models for the tracking pipeline.

Everything here is an in-flight value; persistence belongs to the sink.
"""

from .events import (
    TrackingEvent,
    RouteRecord,
    VisitEvent,
    CounterType,
    CounterDirective,
    PipelineStats,
)

__all__ = [
    "TrackingEvent",
    "RouteRecord",
    "VisitEvent",
    "CounterType",
    "CounterDirective",
    "PipelineStats",
]
