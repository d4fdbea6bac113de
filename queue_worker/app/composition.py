"""Worker composition root: build and lifecycle-manage concrete dependencies.

Composition may: import concrete classes, call factories, store interface types,
manage high-level lifecycle.
"""
from __future__ import annotations

from typing import Any

from loguru import logger

from queue_worker.app.application.consumption_engine import ConsumptionEngine
from queue_worker.app.config.settings import Settings
from queue_worker.app.core import SERVICE_NAME
from queue_worker.app.core.shutdown import ShutdownFlag
from queue_worker.app.handlers.loader import load_handler
from queue_worker.app.infrastructure.messaging.factory import create_queue_client
from queue_worker.app.ports.message_handler import MessageHandler
from queue_worker.app.ports.queue_client import QueueClient


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class WorkerDependencies:
    """Holds wired worker dependencies and their lifecycle."""

    def __init__(
        self,
        *,
        settings: Settings,
        handler: MessageHandler | None = None,
        queue_client: QueueClient | None = None,
    ) -> None:
        self._settings = settings
        self._handler = handler
        self._queue_client = queue_client
        self._engine: ConsumptionEngine | None = None
        self.shutdown = ShutdownFlag()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def queue_client(self) -> QueueClient:
        if self._queue_client is None:
            raise RuntimeError("queue_client is not initialized")
        return self._queue_client

    @property
    def engine(self) -> ConsumptionEngine:
        if self._engine is None:
            raise RuntimeError("engine is not initialized")
        return self._engine

    def connect(self) -> None:
        """Validate config and build the engine. ConfigurationError propagates before anything connects."""
        config = self._settings.engine_config()
        handler = self._handler or load_handler(self._settings.handler)

        if self._queue_client is None:
            self._queue_client = create_queue_client(self._settings)

        self._engine = ConsumptionEngine(
            self._queue_client,
            handler,
            config,
            shutdown=self.shutdown,
        )
        _log(
            "worker_dependencies_ready",
            backend=self._settings.consumer_backend,
            handler=type(handler).__name__,
        )

    def close(self) -> None:
        if self._queue_client is not None:
            try:
                self._queue_client.close()
            except Exception as exc:
                logger.warning("queue client close failed: {}", exc)
            self._queue_client = None
        self._engine = None


def create_worker_dependencies(
    settings: Settings | None = None,
    *,
    handler: MessageHandler | None = None,
) -> WorkerDependencies:
    return WorkerDependencies(settings=settings or Settings(), handler=handler)
