"""
Time bucketing for counter keys.

Buckets are identified by the unix timestamp (seconds, as a string) of
their start, in UTC.
"""

from datetime import datetime, timezone
from typing import Optional

GRANULARITIES = ("day", "hour", "minute", "second")


def parse_timestamp(value: str) -> Optional[datetime]:
    """
    Parse a pixel timestamp.

    Accepts ISO-8601 (``T`` or space separator, optional offset or ``Z``)
    and unix epochs in seconds or milliseconds. Naive values are UTC.
    """
    value = value.strip()
    if not value:
        return None

    if value.isdecimal():
        try:
            epoch = int(value)
            if epoch > 10**11:  # milliseconds
                epoch //= 1000
            return datetime.fromtimestamp(epoch, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None

    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        return None


def truncate(moment: datetime, granularity: str) -> datetime:
    if granularity == "day":
        return moment.replace(hour=0, minute=0, second=0, microsecond=0)
    if granularity == "hour":
        return moment.replace(minute=0, second=0, microsecond=0)
    if granularity == "minute":
        return moment.replace(second=0, microsecond=0)
    if granularity == "second":
        return moment.replace(microsecond=0)
    raise ValueError(f"Unknown granularity: {granularity}")


def bucket_for(timestamp: str, granularity: str, now: Optional[datetime] = None) -> str:
    """
    Bucket id for ``timestamp``.

    Unparseable timestamps fall back to ``now`` (arrival time).
    """
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unknown granularity: {granularity}")

    moment = parse_timestamp(timestamp)
    if moment is None:
        moment = now or datetime.now(timezone.utc)
    return str(int(truncate(moment, granularity).timestamp()))
