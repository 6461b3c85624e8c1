from __future__ import annotations

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Error kinds surfaced by the client."""

    ALREADY_AUTHENTICATED = 1001
    AUTHENTICATION_FAILED = 1002
    NOT_AUTHENTICATED = 1003
    NOT_WRITABLE = 1004
    PACKET_TOO_LARGE = 1005
    MALFORMED_PACKET = 1006
    TRANSPORT_ERROR = 2001
    DISCONNECT_ERROR = 2002
    REQUEST_TIMEOUT = 2003
    SESSION_CLOSED = 2004


class RconError(Exception):
    """Structured client exception carrying an error code + message."""

    default_code: ErrorCode = ErrorCode.TRANSPORT_ERROR
    default_message: str = ""

    def __init__(self, message: str = "", code: Optional[ErrorCode] = None) -> None:
        self.code = code if code is not None else self.default_code
        self.message = message or self.default_message
        super().__init__(f"{self.code.name} ({int(self.code)}): {self.message}")

    def to_payload(self) -> dict:
        """Map error into a dict suitable for logs or JSON output."""
        return {"error_code": int(self.code), "error_name": self.code.name, "error_message": self.message}


class AlreadyAuthenticated(RconError):
    default_code = ErrorCode.ALREADY_AUTHENTICATED
    default_message = "Already authenticated"


class AuthenticationFailed(RconError):
    default_code = ErrorCode.AUTHENTICATION_FAILED
    default_message = "Unable to authenticate"


class NotAuthenticated(RconError):
    default_code = ErrorCode.NOT_AUTHENTICATED
    default_message = "Not authenticated"


class NotWritable(RconError):
    default_code = ErrorCode.NOT_WRITABLE
    default_message = "Unable to write to socket"


class PacketTooLarge(RconError):
    default_code = ErrorCode.PACKET_TOO_LARGE
    default_message = "Packet too long"


class MalformedPacket(RconError):
    default_code = ErrorCode.MALFORMED_PACKET
    default_message = "Malformed packet"


class TransportError(RconError):
    """Raised for errors reported by the TCP transport."""

    default_code = ErrorCode.TRANSPORT_ERROR
    default_message = "Transport error"


class DisconnectError(RconError):
    """Transport reported an error instead of closing cleanly."""

    default_code = ErrorCode.DISCONNECT_ERROR
    default_message = "Transport errored during disconnect"


class RequestTimeout(RconError):
    default_code = ErrorCode.REQUEST_TIMEOUT
    default_message = "Request timed out"


class SessionClosed(RconError):
    default_code = ErrorCode.SESSION_CLOSED
    default_message = "Session is closed"


__all__ = [
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
]
