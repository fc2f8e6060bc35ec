"""WebSocket opening handshake helpers: SHA-1, lenient base64 and accept keys."""

from __future__ import annotations

import base64
import hashlib
import string

__all__ = [
    "HANDSHAKE_GUID",
    "HANDSHAKE_STATUS",
    "sha1_digest",
    "base64_encode",
    "base64_decode",
    "accept_key",
    "handshake_headers",
]

HANDSHAKE_GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"
HANDSHAKE_STATUS = 101

_BASE64_ALPHABET = frozenset(string.ascii_letters + string.digits + "+/")


def sha1_digest(data: bytes) -> bytes:
    """Return the 20-byte SHA-1 digest of ``data``."""
    return hashlib.sha1(bytes(data)).digest()


def base64_encode(data: bytes) -> str:
    """Encode bytes as padded standard base64 text."""
    return base64.b64encode(bytes(data)).decode("ascii")


def base64_decode(text: str) -> bytes:
    """Decode base64 leniently.

    Decoding stops at the first ``=`` or character outside the alphabet;
    a trailing lone character that cannot form a byte is ignored.
    """
    valid = []
    for ch in text:
        if ch == "=" or ch not in _BASE64_ALPHABET:
            break
        valid.append(ch)
    if len(valid) % 4 == 1:
        valid.pop()
    chunk = "".join(valid)
    chunk += "=" * (-len(chunk) % 4)
    return base64.b64decode(chunk)


def accept_key(client_key: str) -> str:
    """Compute the Sec-WebSocket-Accept value for a client key."""
    digest = sha1_digest((client_key + HANDSHAKE_GUID).encode("utf-8"))
    return base64_encode(digest)


def handshake_headers(client_key: str) -> dict[str, str]:
    """Headers of the 101 response that completes the handshake."""
    return {
        "Sec-WebSocket-Accept": accept_key(client_key),
        "Upgrade": "websocket",
        "Connection": "Upgrade",
    }