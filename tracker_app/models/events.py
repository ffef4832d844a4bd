"""
Data models flowing through the ingestion pipeline.

Every model is frozen: an instance is created once per incoming line and
handed from stage to stage by value.
"""

from enum import Enum
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TrackingEvent(BaseModel):
    """
    Fields decoded from one dig request.

    All fields are empty when the line carried no well-formed dig marker.
    """

    url: str = Field("", description="Page URL that fired the pixel")
    timestamp: str = Field("", description="Client timestamp, as sent")
    referrer: str = Field("", description="Referrer reported by the pixel")
    user_agent: str = Field("", description="Client user agent")

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        return not (self.url or self.timestamp or self.referrer or self.user_agent)


class RouteRecord(BaseModel):
    """
    Counting key attached to every directive.

    Either fully populated or fully empty, never partial. ``timestamp``
    is the raw client value and may be blank on a populated record.
    """

    route: str = ""
    visitor_id: str = ""
    url: str = ""
    timestamp: str = ""

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _not_partial(self) -> "RouteRecord":
        if self.route:
            if not (self.visitor_id and self.url):
                raise ValueError("a routed record needs visitor_id and url")
        elif self.visitor_id or self.url or self.timestamp:
            raise ValueError("a record without a route must be fully empty")
        return self

    @classmethod
    def empty(cls) -> "RouteRecord":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.route


class VisitEvent(BaseModel):
    """What a parser worker fans out to both counters"""

    event: TrackingEvent
    visitor_id: str
    record: RouteRecord

    model_config = ConfigDict(frozen=True)


class CounterType(str, Enum):
    """Counters maintained per route and time bucket"""
    PV = "pv"
    UV = "uv"


class CounterDirective(BaseModel):
    """
    Increment instruction handed to the storage sink.

    ``counter_type`` is fixed by the stage that created the directive.
    """

    counter_type: CounterType
    operation: str = "ZINCRBY"
    increment: int = 1
    payload: RouteRecord

    model_config = ConfigDict(frozen=True)

    def as_tuple(self) -> Tuple[str, str, str, str, str]:
        """(counterType, route, visitorId, url, timestamp) as the sink protocol expects"""
        return (
            self.counter_type.value,
            self.payload.route,
            self.payload.visitor_id,
            self.payload.url,
            self.payload.timestamp,
        )


class PipelineStats(BaseModel):
    """Running totals reported by the status API"""

    lines_read: int = 0
    events_parsed: int = 0
    parse_failures: int = 0
    empty_records: int = 0
    filtered_records: int = 0
    pv_emitted: int = 0
    uv_emitted: int = 0
    uv_duplicates: int = 0
    dedup_errors: int = 0
    directives_stored: int = 0
    sink_errors: int = 0
    dedup_reachable: bool = True
