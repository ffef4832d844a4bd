from enum import Enum


class EmptyRecordPolicy(Enum):
    """What parser workers do with events that have no route"""
    FORWARD = "forward"  # count them under the empty-route label
    DROP = "drop"  # never reach the counters


class DedupFailurePolicy(Enum):
    """What the UV counter does when the dedup store cannot answer"""
    FAIL_CLOSED = "fail_closed"  # drop the event, UV may undercount
    FAIL_OPEN = "fail_open"  # count the event, UV may overcount
