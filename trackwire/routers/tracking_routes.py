"""Tracking API look-alike routes – accept transport bodies on /v1/<kind>."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException, Request, status

from trackwire.codec import StoredMessage, decode_transport
from trackwire.errors import MessageDecodeError
from trackwire.models import MessageKind
from trackwire.settings import MAX_BATCH_BYTES, MAX_MESSAGE_BYTES
from trackwire.utils.logger import logger

router = APIRouter(prefix="/v1", tags=["tracking"])


@router.post("/{kind}", status_code=status.HTTP_200_OK)
async def receive_message(
    kind: MessageKind,
    request: Request,
    payload: Dict[str, Any] = Body(...),
):
    # ---------------------------------------------------------------------
    # Payload size guard – same caps as the hosted API
    # ---------------------------------------------------------------------
    limit = MAX_BATCH_BYTES if kind is MessageKind.batch else MAX_MESSAGE_BYTES
    content_length = request.headers.get("content-length")
    if content_length:
        try:
            size = int(content_length)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid Content-Length header")
    else:
        # Chunked uploads carry no length; measure what was actually received
        size = len(await request.body())
    if size > limit:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="Payload too large")

    # The path decides the kind; the body is never asked which kind it is.
    try:
        message = decode_transport(payload, kind=kind)
    except MessageDecodeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    stored = StoredMessage.of(message)
    request.app.state.received.append(stored)

    logger.info(
        "collector.received",
        extra={
            "extra": {
                "kind": kind.value,
                "items": len(message.batch) if kind is MessageKind.batch else 1,
            }
        },
    )
    return {"success": True}
