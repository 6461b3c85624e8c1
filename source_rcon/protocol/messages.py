from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field, field_validator

from .constants import DEFAULT_ENCODING, INT32_MAX, INT32_MIN, MIN_PACKET_SIZE, PacketType
from .errors import MalformedPacket


class Packet(BaseModel):
    """
    One RCON frame, immutable once built. ``size`` is the size field read from the wire
    for decoded packets and is derived from the body otherwise.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., description="Request correlation id, -1 means authentication failed")
    type: int = Field(..., description="Packet type, see PacketType")
    body: str = Field(default="", description="Text payload without terminators")
    encoding: str = Field(default=DEFAULT_ENCODING, exclude=True, description="Text codec applied to body")
    declared_size: Optional[int] = Field(default=None, exclude=True, description="Size field read from the wire")

    @field_validator("id", "type")
    @classmethod
    def _check_int32(cls, value: int) -> int:
        if not (INT32_MIN <= value <= INT32_MAX):
            raise ValueError("must fit in a signed 32-bit integer")
        return value

    @field_validator("body")
    @classmethod
    def _check_body(cls, value: str) -> str:
        if "\x00" in value:
            raise ValueError("body must not contain a null terminator")
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def size(self) -> int:
        if self.declared_size is not None:
            return self.declared_size
        return MIN_PACKET_SIZE + len(self.body.encode(self.encoding, errors="replace"))

    @property
    def packet_type(self) -> PacketType | int:
        try:
            return PacketType(self.type)
        except ValueError:
            return self.type

    @classmethod
    def build(
        cls,
        type: int,
        id: int,
        body: str = "",
        encoding: str = DEFAULT_ENCODING,
        declared_size: Optional[int] = None,
    ) -> "Packet":
        try:
            return cls(id=id, type=type, body=body, encoding=encoding, declared_size=declared_size)
        except ValidationError as exc:
            raise MalformedPacket(f"Invalid packet: {exc}") from exc


__all__ = ["Packet"]
