"""Consumption engine: long-poll, dispatch, delete on success, leave on failure.

Lifecycle:
  IDLE -> POLLING -> DISPATCHING -> (per message) HANDLING -> ACKING | LEAVING
  -> POLLING ... ; a loop-level error goes POLLING -> BACKING_OFF -> POLLING.
  Once shutdown is requested: no new receive, remaining messages of the
  in-flight batch are abandoned, then SHUTTING_DOWN -> STOPPED.

Retry is "leave in queue": a message that is not deleted becomes receivable
again after its visibility timeout. Delivery is therefore at-least-once and
handlers must be idempotent. A handler that runs past the visibility timeout
may see the same message delivered again.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable

from loguru import logger

from queue_worker.app.constants import EngineState, MessageOutcome
from queue_worker.app.core import SERVICE_NAME
from queue_worker.app.core.backoff import ErrorBackoff
from queue_worker.app.core.shutdown import ShutdownFlag
from queue_worker.app.domain.envelope import MalformedMessageError, parse_body
from queue_worker.app.domain.models import EngineConfig, QueueMessage
from queue_worker.app.ports.message_handler import HandlerFailure, MessageHandler
from queue_worker.app.ports.queue_client import (
    QueueClient,
    ReceiptHandleInvalidError,
    TransportError,
)


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


@dataclass
class BatchResult:
    """Per-outcome counts for one dispatched batch."""

    received: int
    outcomes: Counter = field(default_factory=Counter)

    @property
    def deleted(self) -> int:
        return self.outcomes[MessageOutcome.DELETED]

    @property
    def abandoned(self) -> int:
        return self.outcomes[MessageOutcome.ABANDONED]

    @property
    def retained(self) -> int:
        return self.received - self.deleted


class ConsumptionEngine:
    def __init__(
        self,
        queue_client: QueueClient,
        handler: MessageHandler,
        config: EngineConfig,
        *,
        shutdown: ShutdownFlag | None = None,
        sleep: Callable[[float], Any] | None = None,
    ) -> None:
        self._queue = queue_client
        self._handler = handler
        self._config = config
        self._shutdown = shutdown or ShutdownFlag()
        self._sleep = sleep or self._shutdown.wait
        self._backoff = ErrorBackoff(
            config.error_delay_seconds,
            config.max_error_delay_seconds,
            config.error_backoff_multiplier,
        )
        self._state = EngineState.IDLE

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def state(self) -> EngineState:
        return self._state

    def _set_state(self, state: EngineState) -> None:
        self._state = state

    def request_shutdown(self) -> None:
        if self._shutdown.request():
            _log("shutdown_requested", state=self._state.value)

    def is_shutdown_requested(self) -> bool:
        return self._shutdown.is_set()

    def _preview(self, body: str) -> str:
        limit = self._config.body_preview_length
        if limit and len(body) > limit:
            return body[:limit] + "..."
        return body

    def run(self) -> None:
        """Consume until shutdown is requested. Transport, parse and handler failures never end the loop."""
        cfg = self._config
        _log(
            "consumer_started",
            queue_url=cfg.queue_url,
            max_messages=cfg.max_messages,
            visibility_timeout=cfg.visibility_timeout,
            wait_seconds=cfg.wait_seconds,
            envelope=cfg.envelope.value,
        )
        while not self._shutdown.is_set():
            delay = self.poll_once()
            if delay > 0 and not self._shutdown.is_set():
                self._sleep(delay)

        self._set_state(EngineState.SHUTTING_DOWN)
        _log("consumer_shutting_down")
        self._set_state(EngineState.STOPPED)
        _log("consumer_stopped")

    def poll_once(self) -> float:
        """Run one poll iteration and return the delay to wait before the next one."""
        if self._shutdown.is_set():
            return 0.0

        self._set_state(EngineState.POLLING)
        try:
            messages = self._queue.receive(
                max_messages=self._config.max_messages,
                visibility_timeout=self._config.visibility_timeout,
                wait_seconds=self._config.wait_seconds,
            )
            self._backoff.reset()

            if not messages:
                logger.bind(service_name=SERVICE_NAME, event="no_messages").debug("")
                self._set_state(EngineState.IDLE)
                return self._config.idle_delay_seconds

            _log("batch_received", count=len(messages))
            self.process_batch(messages)
            self._set_state(EngineState.IDLE)
            return 0.0
        except TransportError as exc:
            delay = self._backoff.next_delay()
            self._set_state(EngineState.BACKING_OFF)
            logger.bind(
                service_name=SERVICE_NAME,
                event="receive_failed",
                delay=delay,
                consecutive_failures=self._backoff.failures,
            ).error("receive failed: {}", exc)
            return delay
        except Exception as exc:
            delay = self._backoff.next_delay()
            self._set_state(EngineState.BACKING_OFF)
            logger.bind(
                service_name=SERVICE_NAME,
                event="loop_error",
                delay=delay,
                consecutive_failures=self._backoff.failures,
            ).exception("error in message processing loop: {}", exc)
            return delay

    def process_batch(self, messages: list[QueueMessage]) -> BatchResult:
        self._set_state(EngineState.DISPATCHING)
        result = BatchResult(received=len(messages))
        for index, message in enumerate(messages):
            if self._shutdown.is_set():
                remaining = len(messages) - index
                result.outcomes[MessageOutcome.ABANDONED] += remaining
                _log(
                    "batch_abandoned",
                    remaining=remaining,
                    message_ids=[m.message_id for m in messages[index:]],
                )
                break
            result.outcomes[self.process_message(message)] += 1
            self._set_state(EngineState.DISPATCHING)

        _log(
            "batch_completed",
            received=result.received,
            deleted=result.deleted,
            retained=result.retained,
            outcomes={outcome.value: count for outcome, count in result.outcomes.items()},
        )
        return result

    def process_message(self, message: QueueMessage) -> MessageOutcome:
        self._set_state(EngineState.HANDLING)
        message_id = message.message_id
        _log("message_received", message_id=message_id, receive_count=message.receive_count)

        try:
            body = parse_body(message.body, self._config.envelope)
        except MalformedMessageError as exc:
            self._set_state(EngineState.LEAVING)
            logger.bind(
                service_name=SERVICE_NAME,
                event="message_malformed",
                message_id=message_id,
                body=self._preview(message.body),
            ).error("failed to parse message body, keeping message for inspection: {}", exc)
            return MessageOutcome.MALFORMED

        try:
            processed = self._handler.handle(message, body)
        except HandlerFailure as exc:
            self._set_state(EngineState.LEAVING)
            logger.bind(
                service_name=SERVICE_NAME,
                event="message_declined",
                message_id=message_id,
                receive_count=message.receive_count,
            ).warning("handler declined message, keeping it in queue: {}", exc)
            return MessageOutcome.DECLINED
        except Exception as exc:
            self._set_state(EngineState.LEAVING)
            logger.bind(
                service_name=SERVICE_NAME,
                event="message_handler_error",
                message_id=message_id,
                receive_count=message.receive_count,
                body=self._preview(message.body),
            ).exception("error processing message {}: {}", message_id, exc)
            return MessageOutcome.HANDLER_ERROR

        if not processed:
            self._set_state(EngineState.LEAVING)
            logger.bind(
                service_name=SERVICE_NAME,
                event="message_declined",
                message_id=message_id,
                receive_count=message.receive_count,
            ).warning("handler returned false, keeping message in queue")
            return MessageOutcome.DECLINED

        self._set_state(EngineState.ACKING)
        try:
            self._queue.delete(message)
        except ReceiptHandleInvalidError as exc:
            logger.bind(
                service_name=SERVICE_NAME,
                event="message_delete_failed",
                message_id=message_id,
            ).warning("message already gone from queue: {}", exc)
            return MessageOutcome.DELETE_FAILED
        except TransportError as exc:
            logger.bind(
                service_name=SERVICE_NAME,
                event="message_delete_failed",
                message_id=message_id,
            ).error("failed to delete message, it will be redelivered: {}", exc)
            return MessageOutcome.DELETE_FAILED

        _log("message_deleted", message_id=message_id)
        return MessageOutcome.DELETED

    def log_queue_attributes(self) -> dict[str, int] | None:
        """Best-effort snapshot of queue depth; None if the query fails."""
        try:
            attributes = self._queue.query_attributes()
        except TransportError as exc:
            logger.bind(
                service_name=SERVICE_NAME,
                event="queue_attributes_failed",
                queue_url=self._config.queue_url,
            ).warning("queue attribute query failed: {}", exc)
            return None
        _log("queue_attributes", queue_url=self._config.queue_url, **attributes)
        return attributes
