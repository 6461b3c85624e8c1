"""Asyncio client for the Source RCON protocol."""

from .core import RconSession, RconTransport, RequestSequencer, SessionState, TransportEvent
from .protocol import Packet, PacketType, RconError, decode, encode

__version__ = "0.1.0"

__all__ = [
    "RconSession",
    "RconTransport",
    "RequestSequencer",
    "SessionState",
    "TransportEvent",
    "Packet",
    "PacketType",
    "RconError",
    "decode",
    "encode",
]
