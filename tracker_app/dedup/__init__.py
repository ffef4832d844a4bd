"""
Dedup store module for unique-visitor counting.
Implements Strategy Pattern for flexible approximate-set backends.
"""

from .strategies import DedupStrategy, RedisHyperLogLogDedup, InMemoryDedup
from .factory import DedupFactory, DedupBackend

__all__ = [
    "DedupStrategy",
    "RedisHyperLogLogDedup",
    "InMemoryDedup",
    "DedupFactory",
    "DedupBackend",
]
