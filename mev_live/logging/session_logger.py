"""JSONL session logger for MEV LIVE."""

import json
import time
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from ..config.thresholds import LOG_DIR, LOG_LEVEL_DEFAULT
from ..models.transactions import ClassifiedTransaction


class SessionLogger:
    """Writes session events to a JSONL file.

    In INTELLIGENCE_ONLY mode (default), only session start/end and cache
    stats events are logged. In FULL mode, every classified transaction is
    also logged.
    """

    def __init__(
        self,
        program_id: str,
        log_level: str = LOG_LEVEL_DEFAULT,
        output_dir: str = LOG_DIR,
    ) -> None:
        self.program_id = program_id
        self.log_level = log_level
        self._dir = Path(output_dir)
        self._dir.mkdir(parents=True, exist_ok=True)

        ts = int(time.time())
        filename = f"mev_live_session_{program_id}_{ts}.jsonl"
        self._filepath = self._dir / filename
        self._file: Optional[TextIO] = open(self._filepath, "a", encoding="utf-8")

    def _write_line(self, data: Dict[str, Any]) -> None:
        """Write a single JSON line to the log file."""
        if self._file and not self._file.closed:
            self._file.write(json.dumps(data, separators=(",", ":")) + "\n")
            self._file.flush()

    def log_session_start(self, config: Dict[str, Any]) -> None:
        """Log session start event (always logged regardless of level)."""
        self._write_line({
            "event_type": "SESSION_START",
            "timestamp": int(time.time()),
            "program_id": self.program_id,
            "config": config,
        })

    def log_classified(self, tx: ClassifiedTransaction, attributed_to: Optional[str] = None) -> None:
        """Log a classified transaction (only in FULL mode)."""
        if self.log_level != "FULL":
            return
        data = tx.to_dict()
        data["event_type"] = "CLASSIFIED_TX"
        data["timestamp"] = int(time.time())
        if attributed_to and attributed_to != tx.signer:
            data["attributed_to"] = attributed_to
        self._write_line(data)

    def log_cache_stats(self, stats: Dict[str, Any], processed: int) -> None:
        """Log a periodic lookup table cache snapshot."""
        self._write_line({
            "event_type": "CACHE_STATS",
            "timestamp": int(time.time()),
            "processed": processed,
            "cache": stats,
        })

    def log_session_end(self, reason: str, summary: Optional[Dict[str, Any]] = None) -> None:
        """Log session end event (always logged regardless of level)."""
        data: Dict[str, Any] = {
            "event_type": "SESSION_END",
            "timestamp": int(time.time()),
            "reason": reason,
        }
        if summary is not None:
            data["summary"] = summary
        self._write_line(data)
        self.close()

    def close(self) -> None:
        """Close the log file."""
        if self._file and not self._file.closed:
            self._file.close()

    @property
    def filepath(self) -> Path:
        """Return the path to the log file."""
        return self._filepath
