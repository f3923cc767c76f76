"""Messages accepted by the tracking API.

Every message kind is a frozen pydantic model with two representations:

* the Python fields (``user``, ``group_id``, ``extra``, …) used to build it;
* the wire object produced by :meth:`WireModel.to_wire`, where the identity is
  flattened to ``userId`` / ``anonymousId``, snake_case fields use the API's
  camelCase names and ``extra`` is merged into the top level.

``to_wire`` and ``from_wire`` are the only places the two meet.  Stored
records and batch items additionally carry a ``"type"`` discriminant, see
:meth:`WireModel.to_stored_wire` and :func:`decode_tagged`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, FrozenSet, List, Mapping, Optional, Tuple, Type, Union

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    JsonValue,
    model_serializer,
    model_validator,
)

from trackwire.errors import MessageDecodeError
from trackwire.models.kinds import MessageKind
from trackwire.models.user import ANONYMOUS_ID_KEY, USER_ID_KEY, User, user_from_wire
from trackwire.utils.utils import format_timestamp, sort_keys, utc_now

__all__ = [
    "Alias",
    "Batch",
    "BatchMessage",
    "BATCH_MESSAGE_TYPES",
    "Event",
    "Group",
    "Identify",
    "Message",
    "MESSAGE_TYPES",
    "Page",
    "Screen",
    "Track",
    "TYPE_KEY",
    "WireModel",
    "decode_tagged",
]

TYPE_KEY = "type"


class WireModel(BaseModel):
    """Fields and wire mapping shared by events and batches."""

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[MessageKind]
    # (python attribute, wire key) for kind-specific fields, in wire order
    wire_fields: ClassVar[Tuple[Tuple[str, str], ...]] = ()
    # wire keys a payload must carry to be decoded as this kind
    required_wire_keys: ClassVar[FrozenSet[str]] = frozenset()

    context: Optional[JsonValue] = None
    integrations: Optional[JsonValue] = None
    extra: Dict[str, JsonValue] = Field(default_factory=dict)

    @classmethod
    def reserved_keys(cls) -> FrozenSet[str]:
        """Wire keys an ``extra`` entry may not use."""
        keys = {TYPE_KEY, "context", "integrations"}
        keys.update(key for _, key in cls.wire_fields)
        return frozenset(keys)

    @model_validator(mode="before")
    @classmethod
    def _require_kind(cls, data: Any) -> Any:
        # Only concrete message kinds can be encoded
        if getattr(cls, "kind", None) is None:
            raise TypeError(f"{cls.__name__} is not a message kind and cannot be instantiated")
        return data

    @model_validator(mode="after")
    def _check_extra_keys(self):
        clashes = sorted(set(self.extra) & self.reserved_keys())
        if clashes:
            raise ValueError(f"extra keys collide with named fields: {', '.join(clashes)}")
        return self

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def _head_to_wire(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for attr, key in self.wire_fields:
            data[key] = sort_keys(getattr(self, attr))
        return data

    def to_wire(self) -> Dict[str, Any]:
        """Return the untagged wire object (transport form)."""
        data = self._head_to_wire()
        if self.context is not None:
            data["context"] = sort_keys(self.context)
        if self.integrations is not None:
            data["integrations"] = sort_keys(self.integrations)
        for key in sorted(self.extra):
            data[key] = sort_keys(self.extra[key])
        return data

    def to_stored_wire(self) -> Dict[str, Any]:
        """Return the wire object with the ``type`` discriminant first."""
        data: Dict[str, Any] = {TYPE_KEY: self.kind.value}
        data.update(self.to_wire())
        return data

    @model_serializer(mode="plain")
    def _serialize(self) -> Dict[str, Any]:
        return self.to_wire()

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    @classmethod
    def _fields_from_wire(cls, remaining: Dict[str, Any]) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for attr, key in cls.wire_fields:
            if key in remaining:
                fields[attr] = remaining.pop(key)
        return fields

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]):
        """Build a message from its untagged wire object.

        Known keys are split out, everything left over lands in ``extra``.
        Raises :class:`MessageDecodeError` when a required key is missing or
        the result fails validation.
        """
        missing = sorted(key for key in cls.required_wire_keys if key not in data)
        if missing:
            raise MessageDecodeError(
                f"{cls.kind.value} message is missing {', '.join(missing)}",
                kind=cls.kind.value,
            )

        remaining = dict(data)
        try:
            fields = cls._fields_from_wire(remaining)
            for name in ("context", "integrations"):
                if name in remaining:
                    fields[name] = remaining.pop(name)
            fields["extra"] = remaining
            return cls.model_validate(fields)
        except MessageDecodeError:
            raise
        except ValueError as exc:
            raise MessageDecodeError(
                f"invalid {cls.kind.value} message: {exc}", kind=cls.kind.value
            ) from exc


class Event(WireModel):
    """A single tracked message: identity, optional timestamp, kind fields."""

    user: User
    timestamp: Optional[AwareDatetime] = None

    @classmethod
    def reserved_keys(cls) -> FrozenSet[str]:
        return super().reserved_keys() | {USER_ID_KEY, ANONYMOUS_ID_KEY, "timestamp"}

    def _head_to_wire(self) -> Dict[str, Any]:
        data = self.user.to_wire()
        data.update(super()._head_to_wire())
        if self.timestamp is not None:
            data["timestamp"] = format_timestamp(self.timestamp)
        return data

    @classmethod
    def _fields_from_wire(cls, remaining: Dict[str, Any]) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        if remaining.get(USER_ID_KEY) is not None or remaining.get(ANONYMOUS_ID_KEY) is not None:
            fields["user"] = user_from_wire(remaining)
        remaining.pop(USER_ID_KEY, None)
        remaining.pop(ANONYMOUS_ID_KEY, None)
        if "timestamp" in remaining:
            fields["timestamp"] = remaining.pop("timestamp")
        fields.update(super()._fields_from_wire(remaining))
        return fields


class Identify(Event):
    """An identify event, assigning traits to a user."""

    kind: ClassVar[MessageKind] = MessageKind.identify
    wire_fields: ClassVar[Tuple[Tuple[str, str], ...]] = (("traits", "traits"),)
    required_wire_keys: ClassVar[FrozenSet[str]] = frozenset({"traits"})

    traits: JsonValue = Field(default_factory=dict)


class Track(Event):
    """A track event, recording an action the user performed."""

    kind: ClassVar[MessageKind] = MessageKind.track
    wire_fields: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("event", "event"),
        ("properties", "properties"),
    )
    required_wire_keys: ClassVar[FrozenSet[str]] = frozenset({"event", "properties"})

    event: str = Field(..., min_length=1)
    properties: JsonValue = Field(default_factory=dict)


class Page(Event):
    """A page event; an absent page name is sent as ``null``."""

    kind: ClassVar[MessageKind] = MessageKind.page
    wire_fields: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("name", "name"),
        ("properties", "properties"),
    )
    required_wire_keys: ClassVar[FrozenSet[str]] = frozenset({"properties"})

    name: Optional[str] = None
    properties: JsonValue = Field(default_factory=dict)


class Screen(Event):
    """A screen event, the mobile counterpart of a page."""

    kind: ClassVar[MessageKind] = MessageKind.screen
    wire_fields: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("name", "name"),
        ("properties", "properties"),
    )
    required_wire_keys: ClassVar[FrozenSet[str]] = frozenset({"name", "properties"})

    name: str = Field(..., min_length=1)
    properties: JsonValue = Field(default_factory=dict)


class Group(Event):
    """A group event, associating the user with a group (account, team, …)."""

    kind: ClassVar[MessageKind] = MessageKind.group
    wire_fields: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("group_id", "groupId"),
        ("traits", "traits"),
    )
    required_wire_keys: ClassVar[FrozenSet[str]] = frozenset({"groupId", "traits"})

    group_id: str = Field(..., min_length=1)
    traits: JsonValue = Field(default_factory=dict)


class Alias(Event):
    """An alias event, linking a previous identity to the current user."""

    kind: ClassVar[MessageKind] = MessageKind.alias
    wire_fields: ClassVar[Tuple[Tuple[str, str], ...]] = (("previous_id", "previousId"),)
    required_wire_keys: ClassVar[FrozenSet[str]] = frozenset({"previousId"})

    previous_id: str = Field(..., min_length=1)


BatchMessage = Union[Identify, Track, Page, Screen, Group, Alias]


class Batch(WireModel):
    """A batch of events sent in one request.

    Items are always written with their ``type`` discriminant, in transport
    form too; the batch itself has no identity and no timestamp.
    """

    kind: ClassVar[MessageKind] = MessageKind.batch
    required_wire_keys: ClassVar[FrozenSet[str]] = frozenset({"batch"})

    batch: List[BatchMessage] = Field(default_factory=list)

    @classmethod
    def reserved_keys(cls) -> FrozenSet[str]:
        return super().reserved_keys() | {"batch"}

    def _head_to_wire(self) -> Dict[str, Any]:
        return {"batch": [item.to_stored_wire() for item in self.batch]}

    @classmethod
    def _fields_from_wire(cls, remaining: Dict[str, Any]) -> Dict[str, Any]:
        items = remaining.pop("batch")
        if not isinstance(items, list):
            raise MessageDecodeError("batch must be a JSON array", kind=cls.kind.value)
        return {"batch": [decode_tagged(item, BATCH_MESSAGE_TYPES) for item in items]}

    def finalized(self, now: Optional[datetime] = None) -> "Batch":
        """Return a copy where every item without a timestamp gets *now*.

        *now* is read once, so all backfilled items share the same instant.
        Items that already carry a timestamp are left alone.
        """
        if now is None:
            now = utc_now()
        elif now.tzinfo is None:
            raise ValueError("batch finalization needs a timezone-aware datetime")
        else:
            # Rendered with a "Z" suffix, the size the batcher measured
            now = now.astimezone(timezone.utc)
        items = [
            item if item.timestamp is not None else item.model_copy(update={"timestamp": now})
            for item in self.batch
        ]
        return self.model_copy(update={"batch": items})


Message = Union[Identify, Track, Page, Screen, Group, Alias, Batch]

MESSAGE_TYPES: Dict[MessageKind, Type[WireModel]] = {
    cls.kind: cls for cls in (Identify, Track, Page, Screen, Group, Alias, Batch)
}

BATCH_MESSAGE_TYPES: Dict[MessageKind, Type[WireModel]] = {
    kind: cls for kind, cls in MESSAGE_TYPES.items() if kind is not MessageKind.batch
}


def decode_tagged(data: Any, types: Mapping[MessageKind, Type[WireModel]]):
    """Decode a ``{"type": <kind>, ...}`` object using the *types* table."""
    if not isinstance(data, Mapping):
        raise MessageDecodeError("tagged message must be a JSON object")
    kind = data.get(TYPE_KEY)
    if kind is None:
        raise MessageDecodeError(f"message has no {TYPE_KEY!r} discriminant")
    try:
        cls = types.get(MessageKind(kind))
    except ValueError:
        cls = None
    if cls is None:
        raise MessageDecodeError(f"unknown message type: {kind!r}", kind=str(kind))
    body = {key: value for key, value in data.items() if key != TYPE_KEY}
    return cls.from_wire(body)
