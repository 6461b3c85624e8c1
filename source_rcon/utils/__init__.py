from .common import ms_to_seconds, random_request_id

__all__ = ["random_request_id", "ms_to_seconds"]
