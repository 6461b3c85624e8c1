from .network import RconTransport, TransportEvent
from .sequencer import RequestSequencer
from .session import RconSession, SessionState

__all__ = ["RconTransport", "TransportEvent", "RequestSequencer", "RconSession", "SessionState"]
