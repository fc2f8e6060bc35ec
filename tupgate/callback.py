"""Relaying backend responses to the waiting HTTP or WebSocket client."""

from __future__ import annotations

import gzip
import json
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Protocol

from .wsadapter import build_ws_frame

__all__ = [
    "CallbackParam",
    "ResponsePacket",
    "TupCallback",
    "PacketCodec",
    "Connection",
    "error_status",
    "encode_http_response",
]

_log = logging.getLogger(__name__)
_response_log = logging.getLogger(__name__ + ".response")
_exception_log = logging.getLogger(__name__ + ".exception")

_TIMEOUT_RET = -7
_LENGTH_PREFIX = 4
_DEFAULT_RSP_SIZE_LIMIT = 1024 * 1024

# Backend return codes with a dedicated HTTP status; everything else is 502.
_ERROR_STATUSES = {_TIMEOUT_RET: HTTPStatus.GATEWAY_TIMEOUT}


class Connection(Protocol):
    """The client connection a response is written to."""

    is_websocket: bool

    def send(self, data: bytes) -> None: ...

    def close(self) -> None: ...


class PacketCodec(Protocol):
    """Binary encoding of request and response packets."""

    def decode_request(self, data: bytes) -> Any: ...

    def encode_request(self, packet: Any) -> bytes: ...

    def encode_response(self, packet: "ResponsePacket") -> bytes: ...


@dataclass
class CallbackParam:
    """What the callback needs to know about the original client request."""

    time_ms: int = 0
    accept_zip: tuple[str, str] = ("", "")
    accept_ept: tuple[str, str] = ("", "")
    req_xua: str = ""
    req_guid: str = ""
    req_ip: str = ""
    ept_type: int = 0
    zip_type: int = 0
    servant_name: str = ""
    func_name: str = ""
    request_id: int = 0
    encrypt_key: str = ""
    req_buffer_size: int = 0
    http_keep_alive: bool = False
    is_restful: bool = False


@dataclass
class ResponsePacket:
    """A response from a backend servant."""

    request_id: int = 0
    ret: int = 0
    buffer: bytes = b""
    version: int = 1
    packet_type: int = 0
    message_type: int = 0
    status: dict[str, str] = field(default_factory=dict)
    result_desc: str = ""
    context: dict[str, str] = field(default_factory=dict)


def error_status(ret: int) -> HTTPStatus:
    """HTTP status sent to the client for a failed backend call."""
    status = _ERROR_STATUSES.get(ret, HTTPStatus.BAD_GATEWAY)
    _log.debug("backend ret %d answered with HTTP %d", ret, status)
    return status


def encode_http_response(
    status: int, reason: str, headers: Mapping[str, str], body: bytes
) -> bytes:
    """Encode an HTTP/1.1 response with a Content-Length for ``body``."""
    body = bytes(body)
    lines = [f"HTTP/1.1 {int(status)} {reason}"]
    lines.extend(f"{name}: {value}" for name, value in headers.items())
    if not any(name.lower() == "content-length" for name in headers):
        lines.append(f"Content-Length: {len(body)}")
    head = "\r\n".join(lines) + "\r\n\r\n"
    return head.encode("latin-1") + body


def _now_ms() -> int:
    return int(time.time() * 1000)


def _with_length_prefix(encoded: bytes) -> bytes:
    return (len(encoded) + _LENGTH_PREFIX).to_bytes(_LENGTH_PREFIX, "big") + encoded


class TupCallback:
    """Receives a backend response and answers the client that asked for it.

    ``kind`` is the request protocol: ``"tup"``, ``"json"`` or ``"tars"``.
    Binary packets are re-encoded with ``codec`` and encrypted responses use
    ``cipher(key, data)``; both may be set on the instance or a subclass.
    """

    codec: PacketCodec | None = None
    cipher: Callable[[str, bytes], bytes] | None = None
    rsp_size_limit: int = _DEFAULT_RSP_SIZE_LIMIT

    def __init__(self, kind: str, connection: Connection, param: CallbackParam, keep_alive: bool):
        self.kind = kind
        self.connection = connection
        self.param = param
        self.keep_alive = keep_alive
        self.new_request_id = 0
        self._rsp = b""

    @property
    def client_ip(self) -> str:
        return self.param.req_ip

    def set_new_request_id(self, request_id: int) -> None:
        """Remember the id under which the request was forwarded."""
        self.new_request_id = request_id

    def on_dispatch(self, response: ResponsePacket) -> int:
        """Handle a backend response; always returns 0."""
        if response.ret == 0:
            _log.debug(
                "kind:%s reqId:%d ret:%d", self.kind, self.new_request_id, response.ret
            )
            if self.kind == "tup":
                if response.buffer:
                    self._respond_tup(bytes(response.buffer))
            elif self.kind == "json":
                self._respond_json(response)
            elif self.kind == "tars":
                self._respond_tars(response)
        else:
            _log.error(
                "kind:%s reqId:%d ret:%d servant:%s func:%s",
                self.kind, self.new_request_id, response.ret,
                self.param.servant_name, self.param.func_name,
            )
            if self.kind in ("tup", "json", "tars"):
                self._respond_exception(response.ret, bytes(response.buffer))
        return 0

    def _require_codec(self) -> PacketCodec:
        if self.codec is None:
            raise RuntimeError("no packet codec configured")
        return self.codec

    def _check_size(self, length: int, what: str) -> None:
        if length > self.rsp_size_limit:
            _log.error(
                "packet is too big %s|%d|%s|%s|%s",
                what, length, self.param.servant_name,
                self.param.func_name, self.param.req_guid,
            )

    def _respond_tup(self, buffer: bytes) -> None:
        try:
            if len(buffer) <= _LENGTH_PREFIX:
                _log.error("buffer.size = %d", len(buffer))
                return
            codec = self._require_codec()
            request = codec.decode_request(buffer[_LENGTH_PREFIX:])
            request.request_id = self.param.request_id
            request.servant_name = self.param.servant_name
            request.func_name = self.param.func_name
            encoded = codec.encode_request(request)
            self._check_size(len(encoded), "tup")
            self._rsp = _with_length_prefix(encoded)
            self._handle_response()
        except Exception:
            _log.exception("tup response failed")

    def _respond_tars(self, response: ResponsePacket) -> None:
        try:
            if response.request_id != self.new_request_id:
                _log.error(
                    "%s::%s requestid:%d does not match origin request:%d",
                    self.param.servant_name, self.param.func_name,
                    response.request_id, self.new_request_id,
                )
                return
            response.request_id = self.param.request_id
            encoded = self._require_codec().encode_response(response)
            self._check_size(len(encoded), "tup")
            self._rsp = _with_length_prefix(encoded)
            self._handle_response()
        except Exception:
            _log.exception("tars response failed")

    def _respond_json(self, response: ResponsePacket) -> None:
        try:
            if response.request_id != self.new_request_id:
                _log.debug(
                    "request id %d does not match origin request %d",
                    response.request_id, self.new_request_id,
                )
                return
            data = bytes(response.buffer)
            if self.param.is_restful:
                self._rsp = data
            else:
                wrapped = {
                    "data": data.decode("utf-8", errors="replace"),
                    "reqid": self.param.request_id,
                }
                self._rsp = json.dumps(
                    wrapped, separators=(",", ":"), ensure_ascii=False
                ).encode("utf-8")
            self._handle_response()
        except Exception:
            _log.exception("json response failed")

    def _respond_exception(self, ret: int, buffer: bytes) -> None:
        try:
            elapsed = _now_ms() - self.param.time_ms
            p = self.param
            _log.error("ret:%d, buffer len:%d", ret, len(buffer))
            _exception_log.info(
                "%s|%s|%s|%s|%s|%d|%d|%d|%d",
                p.req_ip, p.servant_name, p.func_name, p.req_guid, p.req_xua,
                p.ept_type, p.zip_type, elapsed, ret,
            )
            status = error_status(ret)
            headers = {"Connection": "keep-alive" if p.http_keep_alive else "close"}
            self.connection.send(
                encode_http_response(status, HTTPStatus(status).phrase, headers, b"")
            )
            if not p.http_keep_alive:
                self.connection.close()
        except Exception:
            _log.exception("error response failed")

    def _handle_response(self) -> None:
        p = self.param
        if getattr(self.connection, "is_websocket", False):
            self.connection.send(build_ws_frame(self._rsp))
            _response_log.info(
                "%s|%s|%s|%s|%s|%d|%d|%d|%d",
                p.req_ip, p.req_guid, p.req_xua, p.servant_name, p.func_name,
                p.ept_type, p.zip_type, _now_ms() - p.time_ms, len(self._rsp),
            )
            self._check_size(len(self._rsp), "all")
            self._rsp = b""
            return

        gzip_ok = bool(p.accept_zip[0])
        encrypt = bool(p.accept_ept[0])
        original_len = len(self._rsp)
        headers = {"Connection": "keep-alive" if self.keep_alive else "close"}
        body = self._rsp

        if gzip_ok:
            compressed = gzip.compress(body)
            if len(compressed) < len(body):
                _log.debug("gzip: %d->%d", len(body), len(compressed))
                body = compressed
                headers[p.accept_zip[0]] = p.accept_zip[1]

        if encrypt:
            if self.cipher is None:
                raise RuntimeError("no cipher configured")
            encrypted = self.cipher(p.encrypt_key, body)
            _log.debug("encrypt: %d->%d", len(body), len(encrypted))
            body = encrypted
            headers[p.accept_ept[0]] = p.accept_ept[1]

        self.connection.send(encode_http_response(200, "OK", headers, body))
        if not p.http_keep_alive:
            self.connection.close()

        _response_log.info(
            "%s|%s|%s|%s|%s|%d|%d|%d|%d|%d|%d",
            p.req_ip, p.req_guid, p.req_xua, p.servant_name, p.func_name,
            p.ept_type, p.zip_type, int(encrypt), int(gzip_ok),
            _now_ms() - p.time_ms, len(body),
        )
        self._check_size(original_len, "all")
        self._rsp = b""