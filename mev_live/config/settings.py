"""Environment-driven settings for MEV LIVE."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .known_addresses import MEV_PROGRAM_ID
from .thresholds import LOG_DIR, RPC_MAX_CALLS_PER_SECOND, SNAPSHOT_DIR


@dataclass
class Settings:
    """Runtime settings resolved from the environment (.env supported)."""

    rpc_url: Optional[str] = None
    program_id: str = MEV_PROGRAM_ID
    max_calls_per_second: int = RPC_MAX_CALLS_PER_SECOND
    snapshot_dir: str = SNAPSHOT_DIR
    log_dir: str = LOG_DIR

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        load_dotenv(dotenv_path)
        try:
            rate = int(os.environ.get("RPC_MAX_CALLS_PER_SECOND", RPC_MAX_CALLS_PER_SECOND))
        except ValueError:
            rate = RPC_MAX_CALLS_PER_SECOND
        return cls(
            rpc_url=os.environ.get("RPC_URL") or None,
            program_id=os.environ.get("MEV_PROGRAM_ID") or MEV_PROGRAM_ID,
            max_calls_per_second=max(1, rate),
            snapshot_dir=os.environ.get("SNAPSHOT_DIR") or SNAPSHOT_DIR,
            log_dir=os.environ.get("LOG_DIR") or LOG_DIR,
        )
