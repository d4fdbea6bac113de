"""Port: integrator-supplied processing logic for one message."""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from queue_worker.app.domain.models import QueueMessage


class HandlerFailure(Exception):
    """Raised by a handler to decline a message with a reason. The message stays queued."""


@runtime_checkable
class MessageHandler(Protocol):
    """Processes one parsed message.

    Return True to have the message deleted, False to leave it for
    redelivery. Delivery is at-least-once, so handlers must be idempotent.
    """

    def handle(self, message: QueueMessage, body: dict[str, Any]) -> bool: ...
