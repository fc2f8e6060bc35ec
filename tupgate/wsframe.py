"""WebSocket frame header parsing, masking and frame building."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

__all__ = [
    "Opcode",
    "FrameHeader",
    "parse_frame_header",
    "apply_mask",
    "frame_size",
    "build_frame",
]

_OPCODE_MASK = 0x0F
_FIN_BIT = 0x80
_MASK_BIT = 0x80
_LENGTH_MASK = 0x7F
_LEN16_MARKER = 126
_LEN64_MARKER = 127
_MAX_SHORT_LEN = 125
_MAX_LEN16 = 0xFFFF
_MASK_SIZE = 4


class Opcode(IntEnum):
    """Frame opcodes."""

    CONTINUE = 0x0
    TEXT = 0x1
    BINARY = 0x2
    CLOSE = 0x8
    PING = 0x9
    PONG = 0xA

    @property
    def is_control(self) -> bool:
        return self >= 0x8


@dataclass(frozen=True)
class FrameHeader:
    """Decoded header of a frame whose body starts at ``offset``."""

    opcode: int
    fin: bool
    masked: bool
    mask: bytes
    length: int
    offset: int


def parse_frame_header(data: bytes) -> FrameHeader | None:
    """Parse the first non-empty frame header in ``data``.

    Frames with an empty body are skipped. Returns ``None`` when the buffer
    does not yet hold a complete header followed by at least one body byte;
    the returned offset counts from the start of ``data``.
    """
    data = bytes(data)
    end = len(data)
    if end < 2:
        return None

    pos = 0
    while pos < end:
        first = data[pos]
        opcode = first & _OPCODE_MASK
        fin = bool(first & _FIN_BIT)
        pos += 1
        if pos >= end:
            return None

        second = data[pos]
        pos += 1
        masked = bool(second & _MASK_BIT)
        length = second & _LENGTH_MASK

        if length >= _LEN16_MARKER:
            width = 8 if length == _LEN64_MARKER else 2
            if pos + width > end:
                return None
            length = int.from_bytes(data[pos:pos + width], "big")
            pos += width

        mask = b""
        if masked:
            if pos + _MASK_SIZE > end:
                return None
            mask = data[pos:pos + _MASK_SIZE]
            pos += _MASK_SIZE

        if length == 0:
            continue
        if pos >= end:
            return None
        return FrameHeader(
            opcode=opcode,
            fin=fin,
            masked=masked,
            mask=mask,
            length=length,
            offset=pos,
        )
    return None


def _check_mask(mask: bytes) -> bytes:
    mask = bytes(mask)
    if len(mask) != _MASK_SIZE:
        raise ValueError(f"mask must be {_MASK_SIZE} bytes, got {len(mask)}")
    return mask


def apply_mask(data: bytes, mask: bytes, offset: int = 0) -> tuple[bytes, int]:
    """XOR ``data`` with the 4-byte ``mask`` starting at ``offset``.

    Returns the transformed bytes and the mask offset to continue with.
    """
    mask = _check_mask(mask)
    out = bytes(b ^ mask[(i + offset) % _MASK_SIZE] for i, b in enumerate(data))
    return out, (len(out) + offset) % _MASK_SIZE


def frame_size(data_len: int, masked: bool = False) -> int:
    """Total size of a frame carrying ``data_len`` body bytes."""
    if data_len < 0:
        raise ValueError("data length cannot be negative")
    size = data_len + 2
    if data_len > _MAX_SHORT_LEN:
        size += 8 if data_len > _MAX_LEN16 else 2
    if masked:
        size += _MASK_SIZE
    return size


def build_frame(
    data: bytes,
    opcode: int = Opcode.BINARY,
    fin: bool = True,
    mask: bytes | None = None,
) -> bytes:
    """Build a complete frame; the body is masked when ``mask`` is given."""
    data = bytes(data)
    data_len = len(data)
    first = (opcode & _OPCODE_MASK) | (_FIN_BIT if fin else 0)
    second = _MASK_BIT if mask is not None else 0

    header = bytearray([first])
    if data_len <= _MAX_SHORT_LEN:
        header.append(second | data_len)
    elif data_len <= _MAX_LEN16:
        header.append(second | _LEN16_MARKER)
        header += data_len.to_bytes(2, "big")
    else:
        header.append(second | _LEN64_MARKER)
        header += data_len.to_bytes(8, "big")

    if mask is None:
        return bytes(header) + data

    mask = _check_mask(mask)
    body, _ = apply_mask(data, mask)
    return bytes(header) + mask + body