"""HTTP delivery of encoded messages to the tracking API.

The client only encodes, POSTs and checks the status code.  There is no retry
or backoff: a failed request raises and the caller decides what to do with
the message (typically re-queue its stored encoding).
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
from pydantic import JsonValue

from trackwire.batcher import Batcher
from trackwire.codec import encode_transport, message_path, validate_for_delivery
from trackwire.models import Batch, BatchMessage, Message
from trackwire.settings import API_HOST, HTTP_TIMEOUT
from trackwire.utils.logger import logger

__all__ = ["AutoBatcher", "HttpClient"]


class HttpClient:
    """Sends single messages or batches to ``host + /v1/<kind>``.

    ``transport`` is handed to :class:`httpx.AsyncClient`, which lets tests (or
    a local collector) sit behind an ``httpx.ASGITransport``.
    """

    def __init__(
        self,
        host: str = API_HOST,
        *,
        timeout: float = HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.headers = dict(headers or {})

    async def send(self, message: Message) -> httpx.Response:
        validate_for_delivery(message)
        if isinstance(message, Batch):
            # Batch items never leave without a timestamp
            message = message.finalized()

        body = encode_transport(message)
        url = f"{self.host}{message_path(message)}"
        headers = {**self.headers, "Content-Type": "application/json"}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.post(url, content=body, headers=headers)

        logger.info(
            "client.sent",
            extra={
                "extra": {
                    "kind": message.kind.value,
                    "url": url,
                    "bytes": len(body),
                    "status_code": resp.status_code,
                }
            },
        )
        resp.raise_for_status()
        return resp


class AutoBatcher:
    """Batches pushed events and sends each batch as soon as it fills up.

    Call :meth:`flush` once done to send whatever is still pending.
    """

    def __init__(self, client: HttpClient, context: Optional[JsonValue] = None, **batcher_options: Any):
        self.client = client
        self.context = context
        self._batcher_options = batcher_options
        self.batcher = self._new_batcher()

    def _new_batcher(self) -> Batcher:
        return Batcher(self.context, **self._batcher_options)

    async def push(self, message: BatchMessage) -> None:
        leftover = self.batcher.push(message)
        if leftover is None:
            return
        await self.flush()
        if self.batcher.push(leftover) is not None:
            raise ValueError("max_batch_bytes leaves no room for a single message")

    async def flush(self) -> None:
        if self.batcher.is_empty():
            return
        batch = self.batcher.into_batch()
        self.batcher = self._new_batcher()
        await self.client.send(batch)
