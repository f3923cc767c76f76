"""Exceptions raised by the trackwire message layer.

Construction errors surface as pydantic ``ValidationError`` from the models
themselves; everything here covers decoding, delivery checks and batching.
"""

from __future__ import annotations

from typing import Optional


class TrackwireError(Exception):
    """Base class for trackwire errors."""
    pass


class MessageDecodeError(TrackwireError, ValueError):
    """Raised when encoded bytes cannot be turned back into a message.

    ``kind`` carries the discriminant (or destination kind) being decoded,
    ``None`` when it could not be determined.
    """

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.kind = kind


class MessageValidationError(TrackwireError, ValueError):
    """Raised when a well-formed message must not be delivered as-is."""
    pass


class MessageTooLarge(TrackwireError):
    """Raised when a single message exceeds the per-message size cap."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"message is {size} bytes, limit is {limit}")
        self.size = size
        self.limit = limit
