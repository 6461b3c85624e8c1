from __future__ import annotations

import random

from source_rcon.protocol.constants import MAX_REQUEST_ID, MIN_REQUEST_ID


def random_request_id() -> int:
    """Random request id in [1, 255] for command packets."""
    return random.randint(MIN_REQUEST_ID, MAX_REQUEST_ID)


def ms_to_seconds(milliseconds: float) -> float:
    return milliseconds / 1000.0


__all__ = ["random_request_id", "ms_to_seconds"]
