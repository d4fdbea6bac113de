"""Handler that dispatches on an event-type field of the message body."""
from __future__ import annotations

from typing import Any, Callable

from loguru import logger

from queue_worker.app.core import SERVICE_NAME
from queue_worker.app.domain.models import QueueMessage

EventFunc = Callable[[QueueMessage, dict[str, Any]], bool]


class EventRouter:
    """MessageHandler routing each body to the function registered for its type.

    Usage:
        router = EventRouter()

        @router.route("user_sync")
        def sync_user(message, body):
            ...
            return True

    Unknown or missing event types are declined (left in the queue).
    """

    def __init__(self, *, type_field: str = "event_type") -> None:
        self._type_field = type_field
        self._routes: dict[str, EventFunc] = {}

    @property
    def event_types(self) -> list[str]:
        return sorted(self._routes)

    def register(self, event_type: str, func: EventFunc) -> None:
        if event_type in self._routes:
            raise ValueError(f"handler already registered for event type: {event_type}")
        self._routes[event_type] = func

    def route(self, event_type: str) -> Callable[[EventFunc], EventFunc]:
        def decorator(func: EventFunc) -> EventFunc:
            self.register(event_type, func)
            return func

        return decorator

    def handle(self, message: QueueMessage, body: dict[str, Any]) -> bool:
        event_type = body.get(self._type_field)
        func = self._routes.get(event_type) if isinstance(event_type, str) else None
        if func is None:
            logger.bind(
                service_name=SERVICE_NAME,
                event="unknown_event_type",
                message_id=message.message_id,
                event_type=event_type,
            ).warning("no handler registered for event type: {}", event_type)
            return False
        return bool(func(message, body))
