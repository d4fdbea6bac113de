"""Domain models."""
from __future__ import annotations

from dataclasses import dataclass, field

from queue_worker.app.domain.envelope import MessageEnvelope

# SQS per-call and per-queue limits.
MAX_BATCH_SIZE = 10
MAX_WAIT_SECONDS = 20
MAX_VISIBILITY_TIMEOUT = 43_200


class ConfigurationError(ValueError):
    """Raised before the loop starts when the worker cannot be configured."""


@dataclass(frozen=True)
class QueueMessage:
    """One received message. `receipt_handle` is what delete needs."""

    message_id: str
    receipt_handle: str
    body: str
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def receive_count(self) -> int:
        try:
            return int(self.attributes.get("ApproximateReceiveCount", 0))
        except (TypeError, ValueError):
            return 0


@dataclass(frozen=True)
class EngineConfig:
    """Immutable consume-loop parameters; validated on construction."""

    queue_url: str
    max_messages: int = MAX_BATCH_SIZE
    visibility_timeout: int = 30
    wait_seconds: int = MAX_WAIT_SECONDS
    idle_delay_seconds: float = 1.0
    error_delay_seconds: float = 5.0
    max_error_delay_seconds: float = 60.0
    error_backoff_multiplier: float = 1.0
    envelope: MessageEnvelope = MessageEnvelope.RAW
    body_preview_length: int = 200

    def __post_init__(self) -> None:
        if not isinstance(self.queue_url, str) or not self.queue_url.strip():
            raise ConfigurationError("Queue URL is required")
        if not 1 <= self.max_messages <= MAX_BATCH_SIZE:
            raise ConfigurationError(
                f"max_messages must be between 1 and {MAX_BATCH_SIZE}, got {self.max_messages}"
            )
        if not 0 <= self.wait_seconds <= MAX_WAIT_SECONDS:
            raise ConfigurationError(
                f"wait_seconds must be between 0 and {MAX_WAIT_SECONDS}, got {self.wait_seconds}"
            )
        if not 0 <= self.visibility_timeout <= MAX_VISIBILITY_TIMEOUT:
            raise ConfigurationError(
                "visibility_timeout must be between 0 and "
                f"{MAX_VISIBILITY_TIMEOUT}, got {self.visibility_timeout}"
            )
        if self.idle_delay_seconds < 0 or self.error_delay_seconds < 0:
            raise ConfigurationError("poll delays must not be negative")
        if self.error_backoff_multiplier < 1.0:
            raise ConfigurationError("error_backoff_multiplier must be >= 1.0")
        if self.body_preview_length < 0:
            raise ConfigurationError("body_preview_length must not be negative")
        try:
            object.__setattr__(self, "envelope", MessageEnvelope(self.envelope))
        except ValueError as exc:
            raise ConfigurationError(f"Unsupported message envelope: {self.envelope}") from exc
