"""Queue client port: receive / delete / attribute query against the remote queue.

The engine depends on this port; infrastructure (boto3 SQS, in-memory)
implements it. Calls are synchronous and block; failures are raised as
TransportError and never swallowed by implementations.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from queue_worker.app.domain.models import QueueMessage


class TransportError(Exception):
    """Base for queue transport failures (network, auth, service)."""


class ReceiptHandleInvalidError(TransportError):
    """Raised when deleting with a receipt handle the queue no longer accepts."""


@runtime_checkable
class QueueClient(Protocol):
    def receive(
        self,
        *,
        max_messages: int,
        visibility_timeout: int,
        wait_seconds: int,
    ) -> list[QueueMessage]:
        """Block up to wait_seconds; an empty list means nothing arrived."""
        ...

    def delete(self, message: QueueMessage) -> None: ...

    def query_attributes(self) -> dict[str, int]:
        """Approximate visible / in-flight / delayed message counts."""
        ...

    def close(self) -> None:
        """Release resources. No-op allowed if nothing to close."""
        ...
