"""
Exceptions raised by tracker components.

Backend strategies translate library errors (redis, OS) into these so
that pipeline stages can apply their own policy without importing
backend specifics.
"""


class TrackerError(Exception):
    """Base class for all tracker errors"""


class TailerOpenError(TrackerError):
    """The source log file could not be opened after all retries"""

    def __init__(self, path: str, attempts: int):
        self.path = path
        self.attempts = attempts
        super().__init__(f"Could not open {path} after {attempts} attempts")


class DedupStoreError(TrackerError):
    """A dedup store call failed (connectivity, timeout, protocol)"""


class SinkError(TrackerError):
    """The storage sink rejected a counter directive"""
