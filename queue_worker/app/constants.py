"""Worker-level constants shared across modules."""
from __future__ import annotations

from enum import Enum


class EngineState(str, Enum):
    IDLE = "IDLE"
    POLLING = "POLLING"
    DISPATCHING = "DISPATCHING"
    HANDLING = "HANDLING"
    ACKING = "ACKING"
    LEAVING = "LEAVING"
    BACKING_OFF = "BACKING_OFF"
    SHUTTING_DOWN = "SHUTTING_DOWN"
    STOPPED = "STOPPED"


class MessageOutcome(str, Enum):
    DELETED = "DELETED"
    DELETE_FAILED = "DELETE_FAILED"
    DECLINED = "DECLINED"
    HANDLER_ERROR = "HANDLER_ERROR"
    MALFORMED = "MALFORMED"
    ABANDONED = "ABANDONED"


class QUEUE_ATTRIBUTE:
    VISIBLE = "ApproximateNumberOfMessages"
    NOT_VISIBLE = "ApproximateNumberOfMessagesNotVisible"
    DELAYED = "ApproximateNumberOfMessagesDelayed"

    ALL = (VISIBLE, NOT_VISIBLE, DELAYED)
