"""Queue client factory: selects implementation from config. Only place that imports concrete clients."""
from __future__ import annotations

from queue_worker.app.config.settings import Settings
from queue_worker.app.infrastructure.messaging.inmemory.in_memory_queue_client import InMemoryQueueClient
from queue_worker.app.infrastructure.messaging.sqs.sqs_queue_client import SqsQueueClient
from queue_worker.app.ports.queue_client import QueueClient


def create_queue_client(settings: Settings) -> QueueClient:
    backend = settings.consumer_backend.strip().lower()

    if backend == "sqs":
        return SqsQueueClient(
            settings.queue_url.strip(),
            region=settings.aws_region,
            endpoint_url=settings.aws_endpoint_url,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            aws_session_token=settings.aws_session_token,
        )

    if backend == "inmemory":
        return InMemoryQueueClient()

    raise ValueError(f"Unsupported consumer backend: {backend}")
