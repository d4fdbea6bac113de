"""Message envelope parsing.

A worker reads exactly one envelope shape:

- ``raw``: the queue body is the JSON object payload.
- ``sns``: the queue body is an SNS notification; its ``Message`` string field
  holds the JSON object payload.

Anything else is a malformed (poison) message and stays in the queue.
"""
from __future__ import annotations

import json
from enum import Enum
from typing import Any


class MessageEnvelope(str, Enum):
    RAW = "raw"
    SNS = "sns"


class MalformedMessageError(ValueError):
    """Raised when a body cannot be parsed into a JSON object payload."""


def _load_object(text: Any, what: str) -> dict[str, Any]:
    if not isinstance(text, (str, bytes, bytearray)):
        raise MalformedMessageError(f"{what} is not text")
    try:
        document = json.loads(text)
    except ValueError as exc:
        raise MalformedMessageError(f"{what} is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise MalformedMessageError(
            f"{what} must be a JSON object, got {type(document).__name__}"
        )
    return document


def parse_body(raw: str, envelope: MessageEnvelope = MessageEnvelope.RAW) -> dict[str, Any]:
    document = _load_object(raw, "message body")
    if envelope is MessageEnvelope.RAW:
        return document

    inner = document.get("Message")
    if inner is None:
        raise MalformedMessageError("SNS envelope has no 'Message' field")
    return _load_object(inner, "SNS 'Message' field")
