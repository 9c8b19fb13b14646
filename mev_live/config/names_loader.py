"""Load address -> name tables from JSON."""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .known_addresses import KNOWN_PROGRAMS, KNOWN_TOKENS


def _str_map(data: object) -> Dict[str, str]:
    if not isinstance(data, dict):
        return {}
    return {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}


class KnownNames:
    """Human-readable names for programs, tokens and lookup tables."""

    def __init__(
        self,
        programs: Optional[Dict[str, str]] = None,
        tokens: Optional[Dict[str, str]] = None,
        lookup_tables: Optional[Dict[str, str]] = None,
    ) -> None:
        self.programs = {**KNOWN_PROGRAMS, **(programs or {})}
        self.tokens = {**KNOWN_TOKENS, **(tokens or {})}
        self.lookup_tables = dict(lookup_tables or {})

    def name_for(self, address: str) -> Optional[str]:
        """Return the known name for an address, or None."""
        return (
            self.programs.get(address)
            or self.tokens.get(address)
            or self.lookup_tables.get(address)
        )

    def display(self, address: Optional[str]) -> str:
        """Known name, else the first 8 chars of the address."""
        if not address:
            return "unresolved"
        return self.name_for(address) or f"{address[:8]}..."

    def is_known_program(self, address: str) -> bool:
        return address in self.programs

    def is_known_token(self, address: str) -> bool:
        return address in self.tokens


def load_known_names(filepath: str = "data/known-programs.json") -> KnownNames:
    """Load known names from a JSON file.

    Args:
        filepath: Path to JSON with optional "programs", "tokens" and
                  "lookupTables" objects mapping address -> name.

    Returns:
        KnownNames seeded with the built-in tables. The built-ins alone are
        returned if the file is missing or invalid.
    """
    try:
        data = json.loads(Path(filepath).read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return KnownNames()
    if not isinstance(data, dict):
        return KnownNames()
    return KnownNames(
        programs=_str_map(data.get("programs")),
        tokens=_str_map(data.get("tokens")),
        lookup_tables=_str_map(data.get("lookupTables")),
    )


def load_signer_filter(filepath: str) -> List[str]:
    """Load active signer addresses from a JSON list.

    Expected format: [{"address": "...", "name": "...", "active": true}, ...]
    Returns an empty list if the file is missing or invalid.
    """
    try:
        data = json.loads(Path(filepath).read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return []
    if not isinstance(data, list):
        return []
    return [
        entry["address"]
        for entry in data
        if isinstance(entry, dict) and entry.get("active") and isinstance(entry.get("address"), str)
    ]


def find_target_signer(signers: Iterable[Optional[str]], targets: Iterable[str]) -> Optional[str]:
    """Return the first address in the signer range that is a target signer."""
    wanted = set(targets)
    for signer in signers:
        if signer and signer in wanted:
            return signer
    return None
