import pytest

from tupgate.wsadapter import PacketStatus, build_ws_frame, parse_websocket
from tupgate.wsframe import Opcode, build_frame


MASK = b"\x01\x02\x03\x04"


def test_build_ws_frame_wire_bytes():
    assert build_ws_frame(b"hello") == b"\x82\x05hello"


def test_build_ws_frame_empty_gives_nothing():
    assert build_ws_frame(b"") == b""


def test_build_ws_frame_matches_binary_final_frame():
    payload = b"x" * 300
    assert build_ws_frame(payload) == build_frame(payload, Opcode.BINARY, True, None)


def test_round_trip_unmasked():
    payload = b"payload bytes"
    frame = build_ws_frame(payload)
    result = parse_websocket(frame)
    assert result.status is PacketStatus.FULL
    assert result.payload == payload
    assert result.consumed == len(frame)
    assert result.opcode == Opcode.BINARY


def test_masked_client_frame_is_unmasked():
    frame = build_frame(b"hi there", Opcode.TEXT, True, MASK)
    result = parse_websocket(frame)
    assert result.status is PacketStatus.FULL
    assert result.payload == b"hi there"
    assert result.opcode == Opcode.TEXT
    assert result.consumed == len(frame)


@pytest.mark.parametrize("size", [125, 126, 1000, 70000])
def test_round_trip_lengths(size):
    payload = bytes(i % 256 for i in range(size))
    frame = build_frame(payload, Opcode.BINARY, True, MASK)
    result = parse_websocket(frame)
    assert result.status is PacketStatus.FULL
    assert result.payload == payload
    assert result.consumed == len(frame)


@pytest.mark.parametrize("cut", [0, 1, 2, 5])
def test_truncated_frame_is_less(cut):
    frame = build_frame(b"abcdef", Opcode.TEXT, True, MASK)
    result = parse_websocket(frame[:cut])
    assert result.status is PacketStatus.LESS
    assert result.consumed == 0


def test_body_partially_received_is_less():
    frame = build_ws_frame(b"0123456789")
    result = parse_websocket(frame[:-1])
    assert result.status is PacketStatus.LESS
    assert result.payload == b""


def test_only_first_frame_consumed():
    first = build_ws_frame(b"one")
    second = build_ws_frame(b"two")
    result = parse_websocket(first + second)
    assert result.payload == b"one"
    assert result.consumed == len(first)
    rest = parse_websocket((first + second)[result.consumed:])
    assert rest.payload == b"two"


def test_empty_frame_before_data_is_consumed():
    empty = build_frame(b"", Opcode.PING, True, None)
    data = build_ws_frame(b"data")
    result = parse_websocket(empty + data)
    assert result.status is PacketStatus.FULL
    assert result.payload == b"data"
    assert result.consumed == len(empty) + len(data)


def test_close_frame_reports_opcode():
    frame = build_frame(b"\x03\xe8", Opcode.CLOSE, True, MASK)
    result = parse_websocket(frame)
    assert result.opcode == Opcode.CLOSE
    assert result.payload == b"\x03\xe8"


def test_oversized_length_is_error():
    header = bytes([0x82, 127]) + (1 << 40).to_bytes(8, "big") + b"x"
    result = parse_websocket(header)
    assert result.status is PacketStatus.ERR
    assert result.consumed == 0