"""Protocol-wide constants for the Source RCON wire format."""

from __future__ import annotations

from enum import IntEnum


class PacketType(IntEnum):
    """Message kinds. EXECCOMMAND and AUTH_RESPONSE share a value; direction tells them apart."""

    RESPONSE_VALUE = 0
    EXECCOMMAND = 2
    AUTH_RESPONSE = 2
    AUTH = 3


SERVERDATA_AUTH = 3
SERVERDATA_AUTH_RESPONSE = 2
SERVERDATA_EXECCOMMAND = 2
SERVERDATA_RESPONSE_VALUE = 0

AUTH_FAILED_ID = -1
AUTH_REQUEST_ID = 1
MIN_REQUEST_ID = 1
MAX_REQUEST_ID = 255

HEADER_FORMAT = "<iii"
HEADER_SIZE = 12  # size + id + type
SIZE_FIELD_LENGTH = 4
PACKET_TERMINATOR = b"\x00\x00"
# id + type + the two terminators, i.e. the size of an empty packet
MIN_PACKET_SIZE = 4 + 4 + 2
# ceiling for a declared size; anything larger is a garbled header
MAX_FRAME_SIZE = 1024 * 1024

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 27015
DEFAULT_MAXIMUM_PACKET_SIZE = 4096
DEFAULT_ENCODING = "ascii"
DEFAULT_TIMEOUT_MS = 1000
DEFAULT_QUEUE_TIMEOUT_MS = 500
SUPPORTED_ENCODINGS = ("ascii", "utf8")

__all__ = [
    "PacketType",
    "SERVERDATA_AUTH",
    "SERVERDATA_AUTH_RESPONSE",
    "SERVERDATA_EXECCOMMAND",
    "SERVERDATA_RESPONSE_VALUE",
    "AUTH_FAILED_ID",
    "AUTH_REQUEST_ID",
    "MIN_REQUEST_ID",
    "MAX_REQUEST_ID",
    "HEADER_FORMAT",
    "HEADER_SIZE",
    "SIZE_FIELD_LENGTH",
    "PACKET_TERMINATOR",
    "MIN_PACKET_SIZE",
    "MAX_FRAME_SIZE",
    "INT32_MIN",
    "INT32_MAX",
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "DEFAULT_MAXIMUM_PACKET_SIZE",
    "DEFAULT_ENCODING",
    "DEFAULT_TIMEOUT_MS",
    "DEFAULT_QUEUE_TIMEOUT_MS",
    "SUPPORTED_ENCODINGS",
]
