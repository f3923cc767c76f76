"""Transport and stored encodings of tracking messages.

Transport form is what gets POSTed to the tracking API: the message kind is
implied by the destination path (see :func:`message_path`) and never written
into the body.  Stored form is what goes into a queue: the same object with a
leading ``"type"`` discriminant, so a mixed collection of records can be
decoded without knowing where each one came from.

Structural (untagged) decoding tries the kinds in :data:`DECODE_ORDER`; the
first kind whose required keys are all present and which validates wins.  The
order runs from the most distinctive key set to the least:

    batch, alias, group, track, screen, page, identify

A named page has exactly the shape of a screen, so without its destination
path it decodes as a screen.  Receivers that know the path should pass it via
``kind`` / :func:`kind_for_path` instead of relying on the ordering.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, model_serializer, model_validator

from trackwire.errors import MessageDecodeError, MessageValidationError
from trackwire.models import (
    MESSAGE_TYPES,
    TYPE_KEY,
    Alias,
    Batch,
    Group,
    Identify,
    Message,
    MessageKind,
    Page,
    Screen,
    Track,
    WireModel,
    decode_tagged,
)
from trackwire.utils.logger import logger

__all__ = [
    "DECODE_ORDER",
    "PATHS",
    "StoredMessage",
    "decode_stored",
    "decode_transport",
    "encode_stored",
    "encode_transport",
    "kind_for_path",
    "message_path",
    "to_message",
    "validate_for_delivery",
]

PATHS: Dict[MessageKind, str] = {
    MessageKind.identify: "/v1/identify",
    MessageKind.track: "/v1/track",
    MessageKind.page: "/v1/page",
    MessageKind.screen: "/v1/screen",
    MessageKind.group: "/v1/group",
    MessageKind.alias: "/v1/alias",
    MessageKind.batch: "/v1/batch",
}

_KINDS_BY_PATH: Dict[str, MessageKind] = {path: kind for kind, path in PATHS.items()}

DECODE_ORDER: Tuple[Type[WireModel], ...] = (Batch, Alias, Group, Track, Screen, Page, Identify)

RawPayload = Union[bytes, str, Mapping[str, Any]]


# ---------------------------------------------------------------------------
# Stored form
# ---------------------------------------------------------------------------


class StoredMessage(BaseModel):
    """A message tagged with its kind, as kept in a queue."""

    model_config = ConfigDict(frozen=True)

    type: MessageKind
    message: Message

    @model_validator(mode="after")
    def _check_type(self):
        if self.message.kind is not self.type:
            raise ValueError(
                f"type {self.type.value!r} does not match a {self.message.kind.value} message"
            )
        return self

    @classmethod
    def of(cls, message: Message) -> "StoredMessage":
        return cls(type=message.kind, message=message)

    def to_message(self) -> Message:
        return self.message

    @model_serializer(mode="plain")
    def _serialize(self) -> Dict[str, Any]:
        return self.message.to_stored_wire()


def to_message(stored: StoredMessage) -> Message:
    """Relabel a stored record as the general message it wraps."""
    return stored.to_message()


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


def message_path(message: Union[Message, MessageKind, str]) -> str:
    """Return the destination path for a message (or a message kind)."""
    if isinstance(message, WireModel):
        return PATHS[message.kind]
    return PATHS[MessageKind(message)]


def kind_for_path(path: str) -> MessageKind:
    kind = _KINDS_BY_PATH.get(path.rstrip("/"))
    if kind is None:
        raise MessageDecodeError(f"no message kind is sent to {path!r}")
    return kind


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _dumps(data: Dict[str, Any]) -> bytes:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def encode_transport(message: Message) -> bytes:
    """Encode *message* as a request body for its destination path."""
    return _dumps(message.to_wire())


def encode_stored(message: Union[Message, StoredMessage]) -> bytes:
    """Encode *message* with its ``type`` discriminant for storage."""
    if isinstance(message, StoredMessage):
        message = message.message
    return _dumps(message.to_stored_wire())


def validate_for_delivery(message: Message) -> None:
    """Reject well-formed messages that make no sense to send."""
    if isinstance(message, Batch) and not message.batch:
        raise MessageValidationError("batch has no messages")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _load_object(raw: RawPayload, kind: Optional[str] = None) -> Dict[str, Any]:
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MessageDecodeError(f"invalid JSON: {exc}", kind=kind) from exc
    if not isinstance(data, dict):
        raise MessageDecodeError("message must be a JSON object", kind=kind)
    return data


def decode_stored(raw: RawPayload) -> StoredMessage:
    """Decode a stored record; the ``type`` discriminant picks the kind."""
    message = decode_tagged(_load_object(raw), MESSAGE_TYPES)
    return StoredMessage.of(message)


def _without_matching_type(data: Dict[str, Any], cls: Type[WireModel]) -> Dict[str, Any]:
    # A body may repeat its own kind as "type"; any other value is left to
    # the reserved-key check.
    if data.get(TYPE_KEY) == cls.kind.value:
        return {key: value for key, value in data.items() if key != TYPE_KEY}
    return data


def decode_transport(raw: RawPayload, kind: Union[MessageKind, str, None] = None) -> Message:
    """Decode a transport body.

    With *kind* (known from the destination path) the body is decoded as that
    kind only.  Without it the kinds are tried in :data:`DECODE_ORDER`.
    """
    if kind is not None:
        try:
            resolved = MessageKind(kind)
        except ValueError as exc:
            raise MessageDecodeError(f"unknown message type: {kind!r}", kind=str(kind)) from exc
        data = _load_object(raw, kind=resolved.value)
        cls = MESSAGE_TYPES[resolved]
        return cls.from_wire(_without_matching_type(data, cls))

    data = _load_object(raw)
    for cls in DECODE_ORDER:
        if not cls.required_wire_keys <= data.keys():
            continue
        try:
            return cls.from_wire(_without_matching_type(data, cls))
        except MessageDecodeError as exc:
            logger.debug(
                "codec.structural_attempt_failed",
                extra={"extra": {"kind": cls.kind.value, "error": str(exc)}},
            )
    raise MessageDecodeError("payload does not match any message kind")
