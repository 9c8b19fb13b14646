"""External collaborators for MEV LIVE: RPC table fetch and snapshot storage."""
from .rpc_client import SolanaRpcClient, parse_lookup_table
from .snapshot_store import PersistenceError, SnapshotStore

__all__ = ["SolanaRpcClient", "parse_lookup_table", "PersistenceError", "SnapshotStore"]
