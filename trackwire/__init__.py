"""Top-level package for trackwire – tracking API message models and encodings."""

__all__ = [
    "__version__",
    # Models
    "Alias",
    "AnonymousId",
    "Batch",
    "BatchMessage",
    "Group",
    "Identify",
    "Message",
    "MessageKind",
    "Page",
    "Screen",
    "Track",
    "User",
    "UserAndAnonymousId",
    "UserId",
    "make_user",
    # Encodings
    "StoredMessage",
    "decode_stored",
    "decode_transport",
    "encode_stored",
    "encode_transport",
    "message_path",
    "to_message",
    "validate_for_delivery",
    # Errors
    "MessageDecodeError",
    "MessageTooLarge",
    "MessageValidationError",
    "TrackwireError",
]

__version__ = "0.1.0"

from trackwire.codec import (
    StoredMessage,
    decode_stored,
    decode_transport,
    encode_stored,
    encode_transport,
    message_path,
    to_message,
    validate_for_delivery,
)
from trackwire.errors import (
    MessageDecodeError,
    MessageTooLarge,
    MessageValidationError,
    TrackwireError,
)
from trackwire.models import (
    Alias,
    AnonymousId,
    Batch,
    BatchMessage,
    Group,
    Identify,
    Message,
    MessageKind,
    Page,
    Screen,
    Track,
    User,
    UserAndAnonymousId,
    UserId,
    make_user,
)
