"""SQS queue client: boto3 implementation of the QueueClient port.

botocore ClientError / BotoCoreError are mapped to TransportError (chained),
and an expired or unknown receipt handle on delete to ReceiptHandleInvalidError.
"""
from __future__ import annotations

from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from queue_worker.app.constants import QUEUE_ATTRIBUTE
from queue_worker.app.domain.models import QueueMessage
from queue_worker.app.ports.queue_client import ReceiptHandleInvalidError, TransportError

RECEIPT_HANDLE_ERROR_CODES = frozenset(
    {"ReceiptHandleIsInvalid", "InvalidParameterValue", "MessageNotInflight"}
)


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class SqsQueueClient:
    """QueueClient implementation for one SQS queue."""

    def __init__(
        self,
        queue_url: str,
        *,
        region: str = "us-east-1",
        endpoint_url: str | None = None,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        aws_session_token: str | None = None,
        client: Any = None,
    ) -> None:
        self._queue_url = queue_url
        if client is not None:
            self._client = client
            return
        kwargs: dict[str, Any] = {"region_name": region}
        if endpoint_url:
            kwargs["endpoint_url"] = endpoint_url
        # Explicit keys win; otherwise boto3 resolves credentials from its default chain.
        if aws_access_key_id and aws_secret_access_key:
            kwargs["aws_access_key_id"] = aws_access_key_id
            kwargs["aws_secret_access_key"] = aws_secret_access_key
            if aws_session_token:
                kwargs["aws_session_token"] = aws_session_token
        self._client = boto3.client("sqs", **kwargs)

    @property
    def queue_url(self) -> str:
        return self._queue_url

    def receive(
        self,
        *,
        max_messages: int,
        visibility_timeout: int,
        wait_seconds: int,
    ) -> list[QueueMessage]:
        try:
            resp = self._client.receive_message(
                QueueUrl=self._queue_url,
                MaxNumberOfMessages=max_messages,
                VisibilityTimeout=visibility_timeout,
                WaitTimeSeconds=wait_seconds,
                AttributeNames=["All"],
            )
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(f"SQS receive failed for {self._queue_url!r}: {exc}") from exc

        return [
            QueueMessage(
                message_id=str(raw.get("MessageId", "")),
                receipt_handle=str(raw.get("ReceiptHandle", "")),
                body=raw.get("Body", ""),
                attributes=dict(raw.get("Attributes", {})),
            )
            for raw in resp.get("Messages", [])
        ]

    def delete(self, message: QueueMessage) -> None:
        try:
            self._client.delete_message(
                QueueUrl=self._queue_url,
                ReceiptHandle=message.receipt_handle,
            )
        except ClientError as exc:
            if _error_code(exc) in RECEIPT_HANDLE_ERROR_CODES:
                raise ReceiptHandleInvalidError(
                    f"receipt handle for message {message.message_id!r} is no longer valid: {exc}"
                ) from exc
            raise TransportError(
                f"SQS delete failed for message {message.message_id!r}: {exc}"
            ) from exc
        except BotoCoreError as exc:
            raise TransportError(
                f"SQS delete failed for message {message.message_id!r}: {exc}"
            ) from exc

    def query_attributes(self) -> dict[str, int]:
        try:
            resp = self._client.get_queue_attributes(
                QueueUrl=self._queue_url,
                AttributeNames=list(QUEUE_ATTRIBUTE.ALL),
            )
        except (ClientError, BotoCoreError) as exc:
            raise TransportError(
                f"SQS get_queue_attributes failed for {self._queue_url!r}: {exc}"
            ) from exc

        attributes = resp.get("Attributes", {})
        counts: dict[str, int] = {}
        for name in QUEUE_ATTRIBUTE.ALL:
            try:
                counts[name] = int(attributes.get(name, 0))
            except (TypeError, ValueError):
                counts[name] = 0
        return counts

    def close(self) -> None:
        close = getattr(self._client, "close", None)
        if callable(close):
            try:
                close()
            except Exception as exc:
                logger.warning("sqs client close failed: {}", exc)
