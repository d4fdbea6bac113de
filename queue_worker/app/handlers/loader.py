"""Resolve the configured handler from a ``package.module:attribute`` path."""
from __future__ import annotations

import importlib
from typing import Any

from loguru import logger

from queue_worker.app.core import SERVICE_NAME
from queue_worker.app.domain.models import ConfigurationError, QueueMessage
from queue_worker.app.ports.message_handler import MessageHandler


class UnconfiguredHandler:
    """Fallback when no handler is configured: every message stays in the queue."""

    def handle(self, message: QueueMessage, body: dict[str, Any]) -> bool:
        logger.bind(
            service_name=SERVICE_NAME,
            event="handler_not_configured",
            message_id=message.message_id,
        ).warning("no message handler configured, set HANDLER to package.module:attribute")
        return False


def load_handler(path: str) -> MessageHandler:
    """Import and return the handler named by `path`.

    The attribute may be a handler instance, or a class / zero-argument
    factory that returns one.
    """
    path = (path or "").strip()
    if not path:
        return UnconfiguredHandler()

    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(f"Handler path must look like 'package.module:attribute', got {path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import handler module {module_name!r}: {exc}") from exc

    try:
        target = getattr(module, attr)
    except AttributeError as exc:
        raise ConfigurationError(f"Module {module_name!r} has no attribute {attr!r}") from exc

    handler = target
    if not callable(getattr(handler, "handle", None)) and callable(handler):
        handler = handler()
    elif isinstance(handler, type):
        handler = handler()

    if not callable(getattr(handler, "handle", None)):
        raise ConfigurationError(f"{path!r} does not provide a handle(message, body) method")
    return handler
