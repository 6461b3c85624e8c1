"""
Source RCON protocol package: packet types, the packet model, the binary codec
and the error hierarchy shared by the transport, session and CLI.
"""

from .constants import (
    AUTH_FAILED_ID,
    AUTH_REQUEST_ID,
    DEFAULT_ENCODING,
    SERVERDATA_AUTH,
    SERVERDATA_AUTH_RESPONSE,
    SERVERDATA_EXECCOMMAND,
    SERVERDATA_RESPONSE_VALUE,
    PacketType,
)
from .errors import (
    AlreadyAuthenticated,
    AuthenticationFailed,
    DisconnectError,
    ErrorCode,
    MalformedPacket,
    NotAuthenticated,
    NotWritable,
    PacketTooLarge,
    RconError,
    RequestTimeout,
    SessionClosed,
    TransportError,
)
from .framing import FrameBuffer, decode, encode
from .messages import Packet

__all__ = [
    "AUTH_FAILED_ID",
    "AUTH_REQUEST_ID",
    "DEFAULT_ENCODING",
    "SERVERDATA_AUTH",
    "SERVERDATA_AUTH_RESPONSE",
    "SERVERDATA_EXECCOMMAND",
    "SERVERDATA_RESPONSE_VALUE",
    "PacketType",
    "ErrorCode",
    "RconError",
    "AlreadyAuthenticated",
    "AuthenticationFailed",
    "NotAuthenticated",
    "NotWritable",
    "PacketTooLarge",
    "MalformedPacket",
    "TransportError",
    "DisconnectError",
    "RequestTimeout",
    "SessionClosed",
    "encode",
    "decode",
    "FrameBuffer",
    "Packet",
]
