"""Solana JSON-RPC client for MEV LIVE.

Only one call is needed: getAccountInfo on an address lookup table, whose
account data is a 56-byte metadata header followed by packed 32-byte
addresses.
"""

import base64
import binascii
import itertools
import logging
from typing import List, Optional

import base58
import requests

from ..config.thresholds import RPC_HTTP_TIMEOUT
from ..core.lookup_table_cache import ResolutionFailure

logger = logging.getLogger(__name__)

LOOKUP_TABLE_META_SIZE = 56
ADDRESS_SIZE = 32


def parse_lookup_table(data: bytes) -> List[str]:
    """Addresses stored in raw lookup table account data.

    Raises:
        ResolutionFailure: data shorter than the metadata header.
    """
    if len(data) < LOOKUP_TABLE_META_SIZE:
        raise ResolutionFailure(f"lookup table data too short ({len(data)} bytes)")
    body = data[LOOKUP_TABLE_META_SIZE:]
    usable = len(body) - len(body) % ADDRESS_SIZE
    return [
        base58.b58encode(body[i:i + ADDRESS_SIZE]).decode()
        for i in range(0, usable, ADDRESS_SIZE)
    ]


class SolanaRpcClient:
    """Minimal JSON-RPC client used as the lookup table fetch collaborator."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = RPC_HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not rpc_url:
            raise ValueError(
                "RPC_URL is required. "
                "Set it as an environment variable or in .env: RPC_URL='https://...'"
            )
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._session = session or requests.Session()
        self._ids = itertools.count(1)

    def _call(self, method: str, params: list) -> dict:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        # Transport errors propagate; the cache records them as failures
        resp = self._session.post(self.rpc_url, json=payload, timeout=self.timeout)
        resp.raise_for_status()
        try:
            body = resp.json()
        except ValueError as exc:
            raise ResolutionFailure(f"{method} returned invalid JSON") from exc

        if not isinstance(body, dict):
            raise ResolutionFailure(f"{method} returned {type(body).__name__}")
        if body.get("error"):
            raise ResolutionFailure(f"{method} error: {body['error']}")
        return body.get("result") or {}

    def fetch_table(self, table_address: str) -> Optional[List[str]]:
        """Addresses of a lookup table, or None when the account does not exist.

        Raises:
            ResolutionFailure: RPC error object or undecodable account data.
            requests.RequestException: transport failure.
        """
        result = self._call("getAccountInfo", [table_address, {"encoding": "base64"}])
        value = result.get("value")
        if value is None:
            return None

        data = value.get("data")
        if isinstance(data, list):
            data = data[0] if data else ""
        try:
            raw = base64.b64decode(data or "", validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ResolutionFailure(f"table {table_address} data is not base64") from exc

        addresses = parse_lookup_table(raw)
        logger.debug("Fetched lookup table %s (%d addresses)", table_address, len(addresses))
        return addresses

    def close(self) -> None:
        self._session.close()
