from __future__ import annotations

import json
from typing import Any, Callable

import pytest
from loguru import logger

from queue_worker.app.domain.models import EngineConfig, QueueMessage
from queue_worker.app.ports.queue_client import ReceiptHandleInvalidError


class FakeQueueClient:
    """Implements QueueClient for tests.

    `batches` is consumed one item per receive call: a list of messages is
    returned, an exception instance is raised. Once exhausted, receive
    returns an empty batch.
    """

    def __init__(
        self,
        batches: list[Any] | None = None,
        *,
        delete_errors: dict[str, Exception] | None = None,
        attributes: dict[str, int] | Exception | None = None,
        on_receive: Callable[[int], None] | None = None,
    ) -> None:
        self.batches = list(batches or [])
        self.delete_errors = dict(delete_errors or {})
        self.attributes = attributes if attributes is not None else {}
        self.on_receive = on_receive
        self.receive_calls: list[dict[str, int]] = []
        self.delete_calls: list[str] = []
        self.deleted: list[str] = []
        self._deleted_handles: set[str] = set()
        self.closed = False

    def receive(self, *, max_messages: int, visibility_timeout: int, wait_seconds: int) -> list[QueueMessage]:
        self.receive_calls.append(
            {
                "max_messages": max_messages,
                "visibility_timeout": visibility_timeout,
                "wait_seconds": wait_seconds,
            }
        )
        item: Any = self.batches.pop(0) if self.batches else []
        if self.on_receive is not None:
            self.on_receive(len(self.receive_calls))
        if isinstance(item, Exception):
            raise item
        return list(item)

    def delete(self, message: QueueMessage) -> None:
        self.delete_calls.append(message.message_id)
        error = self.delete_errors.get(message.message_id)
        if error is not None:
            raise error
        if message.receipt_handle in self._deleted_handles:
            raise ReceiptHandleInvalidError(f"handle already deleted: {message.receipt_handle}")
        self._deleted_handles.add(message.receipt_handle)
        self.deleted.append(message.message_id)

    def query_attributes(self) -> dict[str, int]:
        if isinstance(self.attributes, Exception):
            raise self.attributes
        return dict(self.attributes)

    def close(self) -> None:
        self.closed = True


class RecordingHandler:
    """Implements MessageHandler; result per message id is a bool or an exception to raise."""

    def __init__(
        self,
        results: dict[str, Any] | None = None,
        *,
        default: Any = True,
        on_handle: Callable[[QueueMessage], None] | None = None,
    ) -> None:
        self.results = dict(results or {})
        self.default = default
        self.on_handle = on_handle
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @property
    def handled_ids(self) -> list[str]:
        return [message_id for message_id, _ in self.calls]

    def handle(self, message: QueueMessage, body: dict[str, Any]) -> bool:
        self.calls.append((message.message_id, body))
        if self.on_handle is not None:
            self.on_handle(message)
        result = self.results.get(message.message_id, self.default)
        if isinstance(result, Exception):
            raise result
        return result


def build_message(message_id: str, body: Any = None, *, receipt_handle: str | None = None, receive_count: int = 1) -> QueueMessage:
    if body is None:
        body = {"id": message_id}
    if not isinstance(body, str):
        body = json.dumps(body)
    return QueueMessage(
        message_id=message_id,
        receipt_handle=receipt_handle or f"rh-{message_id}",
        body=body,
        attributes={"ApproximateReceiveCount": str(receive_count)},
    )


@pytest.fixture()
def engine_config() -> EngineConfig:
    return EngineConfig(
        queue_url="https://sqs.us-east-1.amazonaws.com/123456789012/test-queue",
        max_messages=10,
        visibility_timeout=30,
        wait_seconds=20,
        idle_delay_seconds=1.0,
        error_delay_seconds=5.0,
        max_error_delay_seconds=60.0,
    )


@pytest.fixture()
def log_records():
    """Captured loguru records (dicts with 'level', 'message', 'extra', ...)."""
    records: list[dict[str, Any]] = []
    sink_id = logger.add(lambda msg: records.append(msg.record), level="DEBUG")
    yield records
    logger.remove(sink_id)


def events(records: list[dict[str, Any]], name: str) -> list[dict[str, Any]]:
    return [r for r in records if r["extra"].get("event") == name]


@pytest.fixture()
def find_events() -> Callable[[list[dict[str, Any]], str], list[dict[str, Any]]]:
    return events
