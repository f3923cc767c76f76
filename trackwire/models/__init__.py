from __future__ import annotations

"""Unified models namespace – identity, message kinds and the messages themselves.

Call-sites can simply::

    from trackwire.models import Track, UserId, MessageKind
"""

from trackwire.models.kinds import MessageKind
from trackwire.models.messages import (
    BATCH_MESSAGE_TYPES,
    MESSAGE_TYPES,
    TYPE_KEY,
    Alias,
    Batch,
    BatchMessage,
    Event,
    Group,
    Identify,
    Message,
    Page,
    Screen,
    Track,
    WireModel,
    decode_tagged,
)
from trackwire.models.user import (
    AnonymousId,
    User,
    UserAndAnonymousId,
    UserId,
    make_user,
    user_from_wire,
)

__all__ = [
    # Identity
    "AnonymousId",
    "User",
    "UserAndAnonymousId",
    "UserId",
    "make_user",
    "user_from_wire",
    # Messages
    "Alias",
    "Batch",
    "BatchMessage",
    "Event",
    "Group",
    "Identify",
    "Message",
    "MessageKind",
    "Page",
    "Screen",
    "Track",
    "WireModel",
    # Lookup tables / helpers
    "BATCH_MESSAGE_TYPES",
    "MESSAGE_TYPES",
    "TYPE_KEY",
    "decode_tagged",
]
