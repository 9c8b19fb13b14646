"""Session logging for MEV LIVE."""
from .session_logger import SessionLogger
from .log_replay import load_envelopes, replay_session

__all__ = ["SessionLogger", "load_envelopes", "replay_session"]
