"""Accumulate events into a :class:`~trackwire.models.Batch` within size caps."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import JsonValue

from trackwire.codec import encode_stored
from trackwire.errors import MessageTooLarge
from trackwire.models import Batch, BatchMessage
from trackwire.settings import MAX_BATCH_BYTES, MAX_MESSAGE_BYTES
from trackwire.utils.logger import logger
from trackwire.utils.utils import utc_now

__all__ = ["Batcher"]


class Batcher:
    """Collects batch items until the encoded batch would grow too large.

    Usage::

        batcher = Batcher(context={"library": {"name": "trackwire"}})
        leftover = batcher.push(track)
        if leftover is not None:
            await client.send(batcher.into_batch())
            batcher = Batcher(...)
            batcher.push(leftover)

    Items are measured by their stored encoding (the shape they take inside
    the batch, timestamp included) plus one byte for the separating comma.
    """

    def __init__(
        self,
        context: Optional[JsonValue] = None,
        *,
        auto_timestamp: bool = True,
        max_message_bytes: int = MAX_MESSAGE_BYTES,
        max_batch_bytes: int = MAX_BATCH_BYTES,
    ):
        self.context = context
        self.auto_timestamp = auto_timestamp
        self.max_message_bytes = max_message_bytes
        self.max_batch_bytes = max_batch_bytes
        self._buf: List[BatchMessage] = []
        self._byte_count = 0

    @property
    def byte_count(self) -> int:
        return self._byte_count

    def is_empty(self) -> bool:
        return not self._buf

    def __len__(self) -> int:
        return len(self._buf)

    def push(self, message: BatchMessage) -> Optional[BatchMessage]:
        """Add *message* to the batch.

        Returns ``None`` when the message was added, or the message itself when
        the batch is full and should be flushed first.

        Raises:
            MessageTooLarge: the message alone exceeds the per-message cap.
            TypeError: *message* is not a batch item (e.g. a nested batch).
        """
        if isinstance(message, Batch):
            raise TypeError("batches cannot be nested")

        measured = message
        if self.auto_timestamp and message.timestamp is None:
            # Count the timestamp into_batch() will add, at its widest (UTC,
            # with microseconds)
            placeholder = utc_now().replace(microsecond=1)
            measured = message.model_copy(update={"timestamp": placeholder})
        size = len(encode_stored(measured))
        if size > self.max_message_bytes:
            logger.warning(
                "batcher.message_too_large",
                extra={"extra": {"size": size, "limit": self.max_message_bytes}},
            )
            raise MessageTooLarge(size, self.max_message_bytes)

        if self._byte_count + size + 1 > self.max_batch_bytes:
            logger.debug(
                "batcher.full",
                extra={"extra": {"items": len(self._buf), "bytes": self._byte_count}},
            )
            return message

        self._byte_count += size + 1
        self._buf.append(message)
        return None

    def into_batch(self, now: Optional[datetime] = None) -> Batch:
        """Build the batch; missing item timestamps are backfilled with *now*."""
        batch = Batch(batch=list(self._buf), context=self.context)
        if self.auto_timestamp:
            batch = batch.finalized(now)
        return batch
