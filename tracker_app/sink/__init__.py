"""
Storage sink module for counter directives.
Implements Strategy Pattern for pluggable counter storage.
"""

from .strategies import SinkStrategy, RedisSortedSetSink, InMemorySink, LogSink
from .factory import SinkFactory, SinkBackend

__all__ = [
    "SinkStrategy",
    "RedisSortedSetSink",
    "InMemorySink",
    "LogSink",
    "SinkFactory",
    "SinkBackend",
]
