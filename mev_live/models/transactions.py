"""Transaction data models for MEV LIVE."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class AccountOrigin(str, Enum):
    """Where an account in the resolved list came from."""

    STATIC = "static"
    LOADED_WRITABLE = "loadedWritable"
    LOADED_READONLY = "loadedReadonly"


class FeeCategory(str, Enum):
    """Tip shape of a transaction.

    TYPE_A: exactly one non-zero balance delta (single transfer, "spam").
    TYPE_B: positive delta to a known tip address ("jito").
    """

    UNDETERMINED = "undetermined"
    TYPE_A = "typeA"
    TYPE_B = "typeB"


@dataclass(frozen=True)
class ResolvedAccount:
    """One entry of a transaction's full account list.

    address is None for placeholders: accounts whose key could not be
    decoded or whose lookup table could not be resolved.
    """

    position: int
    address: Optional[str]
    is_signer: bool
    is_writable: bool
    origin: AccountOrigin

    @property
    def is_resolved(self) -> bool:
        return self.address is not None


@dataclass(frozen=True)
class TableLookup:
    """Lookup table reference declared by a v0 message."""

    table_address: str
    writable_indexes: Tuple[int, ...] = ()
    readonly_indexes: Tuple[int, ...] = ()


@dataclass(frozen=True)
class MessageHeader:
    num_required_signatures: int = 0
    num_readonly_signed_accounts: int = 0
    num_readonly_unsigned_accounts: int = 0


@dataclass(frozen=True)
class RawInstruction:
    program_id_index: int
    accounts: Tuple[int, ...]
    data: bytes


@dataclass
class LoadedAddresses:
    """Pre-resolved lookup table addresses carried by the envelope meta.

    Entries are None where the key could not be decoded.
    """

    writable: List[Optional[str]] = field(default_factory=list)
    readonly: List[Optional[str]] = field(default_factory=list)


@dataclass
class TransactionEnvelope:
    """Normalized upstream transaction, decoded at the system boundary."""

    signature: str
    slot: int
    header: MessageHeader
    account_keys: List[Optional[str]]
    instructions: List[RawInstruction]
    table_lookups: List[TableLookup] = field(default_factory=list)
    loaded_addresses: Optional[LoadedAddresses] = None
    error: Any = None
    fee: int = 0
    compute_units_consumed: int = 0
    pre_balances: List[int] = field(default_factory=list)
    post_balances: List[int] = field(default_factory=list)
    log_messages: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class LookupTableEntry:
    """Cached resolution of one lookup table.

    resolved_addresses is None for a cached negative result.
    """

    table_address: str
    resolved_addresses: Optional[Tuple[str, ...]]
    fetched_at: float

    @property
    def is_failure(self) -> bool:
        return self.resolved_addresses is None


@dataclass(frozen=True)
class DecodedInstructionPayload:
    """Fixed-layout arguments of the monitored instruction."""

    discriminator: int
    min_profit_lamports: int
    compute_unit_limit: int
    no_failure_flag: int
    additional_fee_basis_points: int
    use_flashloan: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "discriminator": self.discriminator,
            "minProfitLamports": self.min_profit_lamports,
            "computeUnitLimit": self.compute_unit_limit,
            "noFailureFlag": self.no_failure_flag,
            "additionalFeeBasisPoints": self.additional_fee_basis_points,
            "useFlashloan": self.use_flashloan,
        }


@dataclass(frozen=True)
class BalanceDelta:
    """Non-zero lamport balance change of one account."""

    position: int
    address: Optional[str]
    change: int


@dataclass(frozen=True)
class Venue:
    """Swap venue referenced by the monitored instruction."""

    name: str
    program_id: str
    pool_address: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.name}:{self.pool_address or '-'}"

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "programId": self.program_id, "poolAddress": self.pool_address}


@dataclass
class ClassifiedTransaction:
    """Economic fingerprint of one transaction."""

    signature: str
    slot: int
    signer: Optional[str]
    failed: bool = False
    fee_category: FeeCategory = FeeCategory.UNDETERMINED
    fee_amount_lamports: int = 0
    transfer_type: Optional[str] = None  # "direct" | "separate_account" (TYPE_B only)
    traded_asset: Optional[str] = None
    traded_asset_name: Optional[str] = None
    venues: List[Venue] = field(default_factory=list)
    payload: Optional[DecodedInstructionPayload] = None
    prologue_ok: Optional[bool] = None
    fee: int = 0
    compute_units_consumed: int = 0

    @property
    def profit_contribution(self) -> int:
        """Signed profit contribution: TYPE_B amounts count up, TYPE_A down."""
        if self.fee_category is FeeCategory.TYPE_B:
            return self.fee_amount_lamports
        if self.fee_category is FeeCategory.TYPE_A:
            return -self.fee_amount_lamports
        return 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signature": self.signature,
            "slot": self.slot,
            "signer": self.signer,
            "failed": self.failed,
            "feeCategory": self.fee_category.value,
            "feeAmountLamports": self.fee_amount_lamports,
            "transferType": self.transfer_type,
            "tradedAsset": self.traded_asset,
            "tradedAssetName": self.traded_asset_name,
            "venues": [v.to_dict() for v in self.venues],
            "payload": self.payload.to_dict() if self.payload else None,
            "prologueOk": self.prologue_ok,
            "fee": self.fee,
            "computeUnitsConsumed": self.compute_units_consumed,
        }
