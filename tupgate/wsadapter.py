"""Reading and writing WebSocket frames on a connection's receive buffer."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .wsframe import Opcode, apply_mask, build_frame, parse_frame_header

__all__ = [
    "PacketStatus",
    "ParseResult",
    "parse_websocket",
    "build_ws_frame",
]

_log = logging.getLogger(__name__)

# The frame length is reported as a signed 32-bit value; anything larger
# cannot be represented and is treated as a broken frame.
_MAX_REPORTED_LENGTH = 0x7FFFFFFF


class PacketStatus(Enum):
    """Outcome of trying to take one packet off a receive buffer."""

    LESS = "less"
    FULL = "full"
    ERR = "err"


@dataclass(frozen=True)
class ParseResult:
    """A parsed packet: its status, unmasked payload and bytes consumed."""

    status: PacketStatus
    payload: bytes = b""
    consumed: int = 0
    opcode: int | None = None


def parse_websocket(buffer: bytes) -> ParseResult:
    """Take the next data-carrying frame from ``buffer``.

    Empty frames in front of it are consumed along with it. When the buffer
    does not yet hold the whole frame the status is ``LESS`` and nothing is
    consumed.
    """
    data = bytes(buffer)
    header = parse_frame_header(data)
    if header is None:
        _log.debug("websocket frame incomplete, %d bytes buffered", len(data))
        return ParseResult(PacketStatus.LESS)

    if header.length > _MAX_REPORTED_LENGTH:
        _log.error("websocket frame length %d cannot be handled", header.length)
        return ParseResult(PacketStatus.ERR)

    end = header.offset + header.length
    if len(data) < end:
        _log.debug(
            "websocket frame incomplete, head:%d body:%d", header.offset, header.length
        )
        return ParseResult(PacketStatus.LESS)

    payload = data[header.offset:end]
    if header.masked:
        payload, _ = apply_mask(payload, header.mask)

    if header.opcode == Opcode.CLOSE:
        _log.debug("websocket close frame received")
    elif header.opcode == Opcode.PING:
        _log.debug("websocket ping frame received")

    _log.debug("websocket frame ok, head:%d body:%d", header.offset, header.length)
    return ParseResult(PacketStatus.FULL, payload, end, header.opcode)


def build_ws_frame(data: bytes) -> bytes:
    """Wrap ``data`` in a final, unmasked binary frame; empty data gives no frame."""
    data = bytes(data)
    if not data:
        return b""
    return build_frame(data, Opcode.BINARY, True, None)