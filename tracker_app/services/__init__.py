"""
Pure per-line transformations: dig extraction, visitor identity,
route classification and time bucketing.
"""

from .parser import parse_line
from .fingerprint import fingerprint
from .route_classifier import classify, extract_route
from .buckets import bucket_for

__all__ = [
    "parse_line",
    "fingerprint",
    "classify",
    "extract_route",
    "bucket_for",
]
