"""
Dig request extraction.

A tracked line looks like::

    1.2.3.4 - - [..] "GET /dig?url=...&time=...&refer=...&ua=... HTTP/1.1" 200 43

Everything between the ``dig?`` prefix and the first ``HTTP`` after it is
a URL-encoded query string carrying the pixel fields.
"""

import re
from typing import Optional
from urllib.parse import parse_qsl

from tracker_app.models.events import TrackingEvent

PREFIX = "dig?"
TERMINATOR = "HTTP"

# "%" not followed by two hex digits
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def extract_query(line: str) -> Optional[str]:
    """
    Return the raw query string of a dig request, or None if the line
    has no prefix or no terminator after it.
    """
    line = line.strip()
    start = line.find(PREFIX)
    if start == -1:
        return None
    start += len(PREFIX)

    end = line.find(TERMINATOR, start)
    if end == -1:
        return None
    return line[start:end].strip()


def parse_line(line: str) -> TrackingEvent:
    """
    Decode one raw log line into a TrackingEvent.

    Never raises: lines without markers or with an undecodable query
    produce an all-empty event.
    """
    query = extract_query(line)
    if query is None or _BAD_ESCAPE.search(query):
        return TrackingEvent()

    try:
        pairs = parse_qsl(query, keep_blank_values=True, errors="strict")
    except ValueError:
        # Includes UnicodeDecodeError for non UTF-8 escapes
        return TrackingEvent()

    values = {}
    for key, value in pairs:
        values.setdefault(key, value)

    return TrackingEvent(
        url=values.get("url", ""),
        timestamp=values.get("time", ""),
        referrer=values.get("refer", ""),
        user_agent=values.get("ua", ""),
    )
