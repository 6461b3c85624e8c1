from __future__ import annotations

import struct
from typing import List

from .constants import (
    DEFAULT_ENCODING,
    HEADER_FORMAT,
    HEADER_SIZE,
    MAX_FRAME_SIZE,
    MIN_PACKET_SIZE,
    PACKET_TERMINATOR,
    SIZE_FIELD_LENGTH,
)
from .errors import MalformedPacket
from .messages import Packet


def encode(type: int, id: int, body: str, encoding: str = DEFAULT_ENCODING) -> bytes:
    """Encode one packet: size, id, type, body, then the two terminator bytes."""
    try:
        payload = body.encode(encoding)
    except UnicodeEncodeError as exc:
        raise MalformedPacket(f"Encode failed: {exc}") from exc
    size = MIN_PACKET_SIZE + len(payload)
    try:
        header = struct.pack(HEADER_FORMAT, size, id, type)
    except struct.error as exc:
        raise MalformedPacket(f"Encode failed: {exc}") from exc
    return header + payload + PACKET_TERMINATOR


def decode(data: bytes, encoding: str = DEFAULT_ENCODING) -> Packet:
    """
    Decode a single frame. The declared size is trusted, not checked, and is the
    packet's ``size``; the body ends at the first terminator byte and loses exactly
    one trailing newline.
    """
    if len(data) < HEADER_SIZE:
        raise MalformedPacket(f"Incomplete packet header ({len(data)} bytes)")
    size, packet_id, packet_type = struct.unpack_from(HEADER_FORMAT, data)
    raw_body = bytes(data[HEADER_SIZE:]).split(b"\x00", 1)[0]
    body = raw_body.decode(encoding, errors="replace")
    if body.endswith("\n"):
        body = body[:-1]
    return Packet.build(packet_type, packet_id, body, encoding, declared_size=size)


class FrameBuffer:
    """Reassembles frames split across reads and splits frames coalesced into one read."""

    def __init__(self, max_frame_size: int = MAX_FRAME_SIZE) -> None:
        self.max_frame_size = max_frame_size
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: bytes) -> List[bytes]:
        self._buffer.extend(chunk)
        frames: List[bytes] = []
        while len(self._buffer) >= SIZE_FIELD_LENGTH:
            (size,) = struct.unpack_from("<i", self._buffer)
            if size < MIN_PACKET_SIZE:
                self._buffer.clear()
                raise MalformedPacket(f"Declared packet size {size} is below the minimum")
            if size > self.max_frame_size:
                self._buffer.clear()
                raise MalformedPacket(f"Declared packet size {size} exceeds {self.max_frame_size} bytes")
            end = SIZE_FIELD_LENGTH + size
            if len(self._buffer) < end:
                break
            frames.append(bytes(self._buffer[:end]))
            del self._buffer[:end]
        return frames

    def clear(self) -> None:
        self._buffer.clear()


__all__ = ["encode", "decode", "FrameBuffer"]
