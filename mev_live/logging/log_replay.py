"""Session and envelope replay for MEV LIVE."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List

logger = logging.getLogger(__name__)


def _iter_lines(path: Path) -> Iterator[Dict[str, Any]]:
    with path.open(encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                item = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("Skipping malformed line %d in %s", lineno, path)
                continue
            if isinstance(item, dict):
                yield item


def _existing(filepath: str, kind: str) -> Path:
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"{kind} not found: {filepath}")
    return path


def replay_session(filepath: str) -> List[Dict[str, Any]]:
    """Read a JSONL session log and return parsed events.

    Args:
        filepath: Path to a .jsonl session log file.

    Returns:
        List of parsed event dicts from the session log.

    Raises:
        FileNotFoundError: If the log file does not exist.
    """
    return list(_iter_lines(_existing(filepath, "Session log")))


def load_envelopes(filepath: str) -> Iterator[Dict[str, Any]]:
    """Lazily yield raw transaction envelopes from a JSONL capture.

    Raises:
        FileNotFoundError: If the capture file does not exist (raised
            immediately, before iteration).
    """
    return _iter_lines(_existing(filepath, "Envelope capture"))
