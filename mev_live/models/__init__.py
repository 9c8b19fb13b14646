"""Data models for MEV LIVE."""
from .transactions import (
    AccountOrigin,
    BalanceDelta,
    ClassifiedTransaction,
    DecodedInstructionPayload,
    FeeCategory,
    LoadedAddresses,
    LookupTableEntry,
    MessageHeader,
    RawInstruction,
    ResolvedAccount,
    TableLookup,
    TransactionEnvelope,
    Venue,
)
from .signer_stats import AssetStats, AssetUsage, SignerStats, TipRange, TipStats, VenueUsage

__all__ = [
    "AccountOrigin",
    "BalanceDelta",
    "ClassifiedTransaction",
    "DecodedInstructionPayload",
    "FeeCategory",
    "LoadedAddresses",
    "LookupTableEntry",
    "MessageHeader",
    "RawInstruction",
    "ResolvedAccount",
    "TableLookup",
    "TransactionEnvelope",
    "Venue",
    "AssetStats",
    "AssetUsage",
    "SignerStats",
    "TipRange",
    "TipStats",
    "VenueUsage",
]
