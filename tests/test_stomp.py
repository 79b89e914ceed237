"""Tests for the STOMP frame codec."""

import pytest

from notif_sync.stomp import (
    Frame,
    FrameError,
    connect_frame,
    decode_frames,
    subscribe_frame,
)


def test_encode_subscribe():
    encoded = subscribe_frame("/topic/user/1", "sub-1").encode()
    assert encoded == "SUBSCRIBE\nid:sub-1\ndestination:/topic/user/1\nack:auto\n\n\x00"


def test_connect_frame_headers():
    frame = connect_frame("localhost")
    assert frame.command == "CONNECT"
    assert frame.headers["host"] == "localhost"
    assert "1.2" in frame.headers["accept-version"]


def test_decode_message_frame():
    raw = 'MESSAGE\ndestination:/topic/user/1\nsubscription:sub-1\n\n{"message": "hi"}\x00'
    [frame] = decode_frames(raw)
    assert frame.command == "MESSAGE"
    assert frame.headers == {"destination": "/topic/user/1", "subscription": "sub-1"}
    assert frame.body == '{"message": "hi"}'


def test_decode_skips_heartbeats_and_splits_batches():
    raw = "\n" + "CONNECTED\nversion:1.2\n\n\x00" + "\n" + "RECEIPT\nreceipt-id:7\n\n\x00"
    frames = decode_frames(raw.encode())
    assert [f.command for f in frames] == ["CONNECTED", "RECEIPT"]
    assert decode_frames("\n") == []


def test_header_escaping():
    frame = Frame("SEND", {"note": "a:b\nc"}, "")
    [decoded] = decode_frames(frame.encode())
    assert decoded.headers["note"] == "a:b\nc"


def test_repeated_header_keeps_first_value():
    [frame] = decode_frames("MESSAGE\nfoo:1\nfoo:2\n\n\x00")
    assert frame.headers["foo"] == "1"


def test_malformed_header_raises():
    with pytest.raises(FrameError):
        decode_frames("MESSAGE\nno-colon-here\n\nbody\x00")


def test_undecodable_bytes_raise_frame_error():
    with pytest.raises(FrameError, match="UTF-8"):
        decode_frames(b"\xff\xfe\x00")


def test_bytes_message_is_decoded():
    [frame] = decode_frames(b"CONNECTED\nversion:1.2\n\n\x00")
    assert frame.command == "CONNECTED"
    assert frame.headers == {"version": "1.2"}
