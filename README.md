# tupgate

Building blocks for an HTTP/WebSocket gateway that routes client calls to
backend services. The package has no dependencies outside the standard
library.

## Installation

```
pip install tupgate
```

To run the tests:

```
pip install "tupgate[test]"
pytest
```

## Modules

### `tupgate.wsframe`

This module handles low-level WebSocket frames.

- `Opcode` is an `IntEnum` of the frame opcodes: `CONTINUE`, `TEXT`, `BINARY`, `CLOSE`, `PING` and `PONG`. Its `is_control` property is true for the control opcodes.
- `parse_frame_header(data)` returns a `FrameHeader` with these fields:
  - `opcode`
  - `fin`
  - `masked`
  - `mask`
  - `length`
  - `offset`, the position where the body starts.

  Frames with an empty body are skipped. The function returns `None` until the buffer holds a complete header followed by at least one body byte.
- `apply_mask(data, mask, offset=0)` XORs `data` with a 4-byte mask. It returns the result together with the mask offset to continue from. A mask that is not 4 bytes long raises `ValueError`.
- `frame_size(data_len, masked=False)` gives the total size of a frame.
- `build_frame(data, opcode=Opcode.BINARY, fin=True, mask=None)` builds a complete frame. The body is masked when `mask` is given.

### `tupgate.handshake`

This module covers the server side of the opening handshake.

- `sha1_digest(data)` returns the SHA-1 digest.
- `base64_encode(data)` encodes to padded base64 text.
- `base64_decode(text)` decodes leniently. It stops at the first `=` or at the first character outside the base64 alphabet.
- `accept_key(client_key)` returns the `Sec-WebSocket-Accept` value.
- `handshake_headers(client_key)` returns the headers of the reply. The reply status is `HANDSHAKE_STATUS`, which is 101.

### `tupgate.wsadapter`

- `parse_websocket(buffer)` takes the next frame that carries data from a receive buffer. It returns a `ParseResult` with these fields:
  - `status`, a `PacketStatus`: `LESS`, `FULL` or `ERR`.
  - `payload`, already unmasked.
  - `consumed`, the number of buffer bytes used.
  - `opcode`.

  While the frame is incomplete the status is `LESS` and `consumed` is 0.
- `build_ws_frame(data)` wraps `data` in a final, unmasked binary frame. Empty data gives `b""`.

### `tupgate.proxymanager`

`ProxyManager(proxy_factory)` resolves a client's servant and function names to a backend proxy. The `proxy_factory` callable receives the real object name and returns a proxy. Proxies are cached per route.

`load_proxy(config)` reads a nested mapping. The `main` key holds these entries:

- `auto_proxy`
- `proxy`: names mapped to objects. Nested sections prefix their keys with `section.`. A key of the form `Servant:funcA|funcB` adds one route for each listed function.
- `env_httpheader`: entries of the form `HEADER:VALUE` mapped to an environment. When the request header has that value, the call is routed to `environment.servant`.

`load_proxy` returns `"load ok"`. It raises `ValueError` if a section is malformed.

`get_proxy(servant_name, func_name, headers=None)` looks up routes in this order:

1. The function-specific route.
2. The servant route.
3. When `auto_proxy` is on, the servant name itself, provided it has at least three dot-separated parts.

It returns `(proxy, HashInfo)`, or `None` when no route matches.

An object string may carry a hash setting as `obj|type[|header]`. `parse_hash_info(obj_info)` splits such a string into the object name and a `HashInfo`. A `HashInfo` has a `type`, which is a `HashType`, and an `http_head_key`. The `HashType` values are `ROBIN_ROUND`, `REQUEST_ID`, `HTTP_HEAD`, `CLIENT_IP` and `DEFAULT`.

### `tupgate.callback`

`TupCallback(kind, connection, param, keep_alive)` answers the client once the backend's `ResponsePacket` arrives.

- `kind` is `"tup"`, `"json"` or `"tars"`.
- `param` is a `CallbackParam` that describes the original request.
- Call `set_new_request_id(request_id)` with the id the request was forwarded under.
- `on_dispatch(response)` then sends one of these:
  - A length-prefixed binary packet.
  - JSON: either the raw body, or `{"data": ..., "reqid": ...}`.
  - An HTTP error reply.

If the connection is a WebSocket, the payload goes out as a binary frame. Otherwise it is sent as an HTTP response. That response is gzip-compressed or encrypted when the request accepted it.

Binary packets are encoded through a `PacketCodec`, set as the `codec` attribute. Encryption uses the `cipher(key, data)` attribute. Neither is provided by the package.

Two helpers are also available:

- `error_status(ret)` maps a failed backend return code to an HTTP status: `-7` gives 504 and anything else gives 502.
- `encode_http_response(status, reason, headers, body)` serialises an HTTP/1.1 response.

### `tupgate.auth_models` and `tupgate.login_models`

These modules hold the message dataclasses:

- `VerifyData`
- `PermissionVerifyReq`
- `PermissionVerifyRsp`
- `LoginReq`
- `LoginRsp`
- `UserLoginMsg`

Each one has `to_dict`, `to_json`, `from_dict` and `from_json`. Decoding a document that lacks a required field, or has a field of the wrong type, raises `ModelDecodeError`, which is a `ValueError`.

### `tupgate.flowcontrol`

`FlowControl` is an abstract servant. Subclasses implement these two methods:

- `get_gw_db(db_conf)`, which returns `(ret, db_conf)`.
- `report(flow, ip)`, which returns `ret`.

`dispatch(func_name, payload)` decodes a JSON request, calls the matching method and returns the reply as a dict. The reply holds `tars_ret`, plus `dbConf` for `getGWDB`. An unknown function raises `UnknownFunctionError`.

## Example

```python
from tupgate.handshake import accept_key
from tupgate.wsframe import Opcode, build_frame, parse_frame_header

print(accept_key("dGhlIHNhbXBsZSBub25jZQ=="))
# s3pPLMBiTxaQ9kYGzzhZRbK+xOo=

frame = build_frame(b"hello", Opcode.TEXT, True, None)
header = parse_frame_header(frame)
print(header.length)
# 5
```

## What the package does not do

- It runs no server and opens no sockets. It has no command-line program.
- It does not include the binary packet codec or the encryption cipher. `TupCallback` expects both to be supplied.
- The flow control, login and permission services exist here only as interfaces and message types. No client that calls them over the network is included.