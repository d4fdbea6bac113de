"""In-memory queue client for local mode and tests.

Models the parts of SQS the consume loop relies on: receive hides messages
for the visibility timeout, a message not deleted in time becomes receivable
again with a new receipt handle, and delete needs the latest handle.
Receive never blocks.
"""
from __future__ import annotations

import itertools
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable

from queue_worker.app.constants import QUEUE_ATTRIBUTE
from queue_worker.app.domain.models import QueueMessage
from queue_worker.app.ports.queue_client import ReceiptHandleInvalidError


@dataclass
class _StoredMessage:
    message_id: str
    body: str
    visible_at: float
    receive_count: int = 0
    receipt_handle: str | None = None


class InMemoryQueueClient:
    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._messages: dict[str, _StoredMessage] = {}
        self._handles = itertools.count(1)
        self._lock = threading.Lock()

    def send(self, body: str, *, delay_seconds: float = 0.0) -> str:
        message_id = str(uuid.uuid4())
        with self._lock:
            self._messages[message_id] = _StoredMessage(
                message_id=message_id,
                body=body,
                visible_at=self._clock() + delay_seconds,
            )
        return message_id

    def receive(
        self,
        *,
        max_messages: int,
        visibility_timeout: int,
        wait_seconds: int,
    ) -> list[QueueMessage]:
        now = self._clock()
        batch: list[QueueMessage] = []
        with self._lock:
            for stored in self._messages.values():
                if len(batch) >= max_messages:
                    break
                if stored.visible_at > now:
                    continue
                stored.receive_count += 1
                stored.receipt_handle = f"{stored.message_id}#{next(self._handles)}"
                stored.visible_at = now + visibility_timeout
                batch.append(
                    QueueMessage(
                        message_id=stored.message_id,
                        receipt_handle=stored.receipt_handle,
                        body=stored.body,
                        attributes={"ApproximateReceiveCount": str(stored.receive_count)},
                    )
                )
        return batch

    def delete(self, message: QueueMessage) -> None:
        with self._lock:
            stored = self._messages.get(message.message_id)
            if stored is None or stored.receipt_handle != message.receipt_handle:
                raise ReceiptHandleInvalidError(
                    f"receipt handle for message {message.message_id!r} is no longer valid"
                )
            del self._messages[message.message_id]

    def query_attributes(self) -> dict[str, int]:
        now = self._clock()
        visible = not_visible = delayed = 0
        with self._lock:
            for stored in self._messages.values():
                if stored.visible_at <= now:
                    visible += 1
                elif stored.receive_count:
                    not_visible += 1
                else:
                    delayed += 1
        return {
            QUEUE_ATTRIBUTE.VISIBLE: visible,
            QUEUE_ATTRIBUTE.NOT_VISIBLE: not_visible,
            QUEUE_ATTRIBUTE.DELAYED: delayed,
        }

    def close(self) -> None:
        return
