"""
Minimal STOMP 1.2 frame codec.

Frames are ``COMMAND\\nheader:value\\n...\\n\\nbody\\0``. A websocket message
may carry several frames or a bare end-of-line heartbeat.
"""

from __future__ import annotations

from dataclasses import dataclass, field

NULL = "\x00"

_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r", ":": "\\c"}
_UNESCAPES = {"\\\\": "\\", "\\n": "\n", "\\r": "\r", "\\c": ":"}


class FrameError(ValueError):
    """Raised for a frame that cannot be decoded."""


@dataclass
class Frame:
    command: str
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""

    def encode(self) -> str:
        lines = [self.command]
        lines.extend(f"{_escape(k)}:{_escape(v)}" for k, v in self.headers.items())
        return "\n".join(lines) + "\n\n" + self.body + NULL


def connect_frame(host: str, heartbeat: str = "0,0") -> Frame:
    return Frame("CONNECT", {"accept-version": "1.2,1.1,1.0", "host": host, "heart-beat": heartbeat})


def subscribe_frame(destination: str, sub_id: str) -> Frame:
    return Frame("SUBSCRIBE", {"id": sub_id, "destination": destination, "ack": "auto"})


def unsubscribe_frame(sub_id: str) -> Frame:
    return Frame("UNSUBSCRIBE", {"id": sub_id})


def disconnect_frame() -> Frame:
    return Frame("DISCONNECT")


def decode_frames(data: str | bytes) -> list[Frame]:
    """Decode every frame in a websocket message, skipping heartbeats."""
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FrameError(f"Frame is not valid UTF-8: {exc}") from exc

    frames = []
    for chunk in data.split(NULL):
        chunk = chunk.lstrip("\r\n")
        if not chunk:
            continue
        frames.append(_decode_one(chunk))
    return frames


def _decode_one(chunk: str) -> Frame:
    head, sep, body = chunk.partition("\n\n")
    if not sep:
        head, sep, body = chunk.partition("\r\n\r\n")
    lines = head.replace("\r\n", "\n").split("\n")
    command = lines[0].strip()
    if not command:
        raise FrameError(f"Frame without command: {chunk[:50]!r}")

    headers: dict[str, str] = {}
    for line in lines[1:]:
        if not line:
            continue
        key, colon, value = line.partition(":")
        if not colon:
            raise FrameError(f"Malformed header line: {line!r}")
        # First occurrence wins for repeated headers.
        headers.setdefault(_unescape(key), _unescape(value))

    return Frame(command, headers, body)


def _escape(value: str) -> str:
    return "".join(_ESCAPES.get(c, c) for c in value)


def _unescape(value: str) -> str:
    out = []
    i = 0
    while i < len(value):
        pair = value[i:i + 2]
        if pair in _UNESCAPES:
            out.append(_UNESCAPES[pair])
            i += 2
        else:
            out.append(value[i])
            i += 1
    return "".join(out)
