"""
Concurrent ingestion-and-aggregation pipeline.
"""

from .policies import EmptyRecordPolicy, DedupFailurePolicy
from .tailer import LogTailer
from .dispatcher import Dispatcher, ParserWorker
from .counters import PVCounter, UVCounter, DedupProbe
from .writer import SinkWriter
from .lifecycle import Pipeline

__all__ = [
    "EmptyRecordPolicy",
    "DedupFailurePolicy",
    "LogTailer",
    "Dispatcher",
    "ParserWorker",
    "PVCounter",
    "UVCounter",
    "DedupProbe",
    "SinkWriter",
    "Pipeline",
]
