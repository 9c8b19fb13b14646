"""Per-signer JSON snapshots for MEV LIVE.

One document per signer address under the snapshot directory, rewritten
atomically after every update, plus an on-demand combined report.
"""

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..config.thresholds import COMBINED_REPORT_NAME, SNAPSHOT_DIR
from ..models.signer_stats import SignerStats

logger = logging.getLogger(__name__)

SNAPSHOT_SUFFIX = ".json"


class PersistenceError(OSError):
    """A snapshot could not be written."""


class SnapshotStore:
    """Reads and writes signer snapshots in a directory."""

    def __init__(self, directory: str = SNAPSHOT_DIR) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.write_failures = 0

    def path_for(self, signer: str) -> Path:
        return self.directory / f"{signer}{SNAPSHOT_SUFFIX}"

    def load(self, signer: str) -> Optional[Dict[str, Any]]:
        """Persisted snapshot for a signer, or None if missing or unreadable."""
        path = self.path_for(signer)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read snapshot %s: %s", path, exc)
            return None
        return data if isinstance(data, dict) else None

    def _write_json(self, path: Path, data: Dict[str, Any]) -> None:
        try:
            fd, tmp = tempfile.mkstemp(dir=str(self.directory), prefix=".tmp-", suffix=SNAPSHOT_SUFFIX)
        except OSError as exc:
            raise PersistenceError(f"cannot create temp file for {path}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as exc:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise PersistenceError(f"write to {path} failed: {exc}") from exc

    def save(self, signer: str, stats: SignerStats) -> bool:
        """Write one signer snapshot. Failures are logged and counted, never raised."""
        try:
            self._write_json(self.path_for(signer), stats.to_dict())
        except PersistenceError as exc:
            self.write_failures += 1
            logger.warning("Snapshot for %s not saved: %s", signer, exc)
            return False
        return True

    def save_combined_report(
        self,
        stats_by_signer: Mapping[str, SignerStats],
        extra: Optional[Dict[str, Any]] = None,
    ) -> Path:
        """Write every in-memory signer record into one report document.

        Raises:
            PersistenceError: the report could not be written.
        """
        report: Dict[str, Any] = {
            "generatedAt": int(time.time()),
            "signerCount": len(stats_by_signer),
            "signers": {s: stats.to_dict() for s, stats in stats_by_signer.items()},
        }
        if extra:
            report.update(extra)
        path = self.directory / COMBINED_REPORT_NAME
        self._write_json(path, report)
        logger.info("Combined report written to %s (%d signers)", path, len(stats_by_signer))
        return path

    def list_signers(self) -> List[str]:
        return sorted(
            p.stem
            for p in self.directory.glob(f"*{SNAPSHOT_SUFFIX}")
            if p.name != COMBINED_REPORT_NAME and not p.name.startswith(".")
        )

    def reset(self, signer: Optional[str] = None) -> int:
        """Delete one signer's snapshot, or all snapshots and the report."""
        if signer is not None:
            targets = [self.path_for(signer)]
        else:
            targets = [self.path_for(s) for s in self.list_signers()]
            targets.append(self.directory / COMBINED_REPORT_NAME)
        removed = 0
        for path in targets:
            if path.exists():
                path.unlink()
                removed += 1
        logger.info("Removed %d snapshot files from %s", removed, self.directory)
        return removed
