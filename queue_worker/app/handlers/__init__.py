"""Ready-made MessageHandler implementations and the handler loader."""
from __future__ import annotations

from queue_worker.app.handlers.event_router import EventRouter
from queue_worker.app.handlers.loader import UnconfiguredHandler, load_handler

__all__ = ["EventRouter", "UnconfiguredHandler", "load_handler"]
