"""
Route classification.

The route is the first path segment of the page URL:
``http://site.com/home/page`` counts under ``home``.
"""

import re
from typing import Iterable, Optional

from tracker_app.models.events import RouteRecord

DEFAULT_SCHEMES = ("http://", "https://")

_SEGMENT_END = re.compile(r"[/?#]")


def extract_route(url: str, schemes: Iterable[str] = DEFAULT_SCHEMES) -> Optional[str]:
    """
    Return the first path segment of ``url`` or None.

    None when the URL has no recognized scheme, no path separator after
    the host, or an empty first segment.
    """
    for scheme in schemes:
        if url.startswith(scheme):
            remainder = url[len(scheme):]
            break
    else:
        return None

    slash = remainder.find("/")
    if slash == -1:
        return None

    path = remainder[slash + 1:]
    match = _SEGMENT_END.search(path)
    route = path[:match.start()] if match else path
    return route or None


def classify(
    url: str,
    timestamp: str,
    visitor_id: str,
    schemes: Iterable[str] = DEFAULT_SCHEMES,
) -> RouteRecord:
    """Build the RouteRecord for an event, empty if the URL has no route"""
    route = extract_route(url, schemes)
    if route is None:
        return RouteRecord.empty()

    return RouteRecord(
        route=route,
        visitor_id=visitor_id,
        url=url,
        timestamp=timestamp,
    )
