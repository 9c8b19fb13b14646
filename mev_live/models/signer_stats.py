"""Running statistics models for MEV LIVE.

SignerStats is the per-signer record persisted after every update.
AssetStats is the cross-signer view derived from the per-signer asset
records; it can always be rebuilt by folding SignerStats.assets.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional

from ..config.thresholds import RECENT_TRANSACTIONS_CAP, TIP_SAMPLE_CAP
from .transactions import ClassifiedTransaction, FeeCategory, Venue

TIP_CATEGORIES = (FeeCategory.TYPE_A.value, FeeCategory.TYPE_B.value)


@dataclass
class TipRange:
    """Min/max/total/count of tip amounts (lamports)."""

    count: int = 0
    min: Optional[int] = None
    max: Optional[int] = None
    total: int = 0

    def add(self, amount: int) -> None:
        self.count += 1
        self.total += amount
        self.min = amount if self.min is None else min(self.min, amount)
        self.max = amount if self.max is None else max(self.max, amount)

    def merge(self, other: "TipRange") -> None:
        if other.count == 0:
            return
        self.count += other.count
        self.total += other.total
        self.min = other.min if self.min is None else min(self.min, other.min)
        self.max = other.max if self.max is None else max(self.max, other.max)

    @property
    def average(self) -> float:
        return self.total / self.count if self.count else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "min": self.min,
            "max": self.max,
            "total": self.total,
            "average": self.average,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TipRange":
        return cls(
            count=int(data.get("count", 0)),
            min=data.get("min"),
            max=data.get("max"),
            total=int(data.get("total", 0)),
        )


@dataclass
class TipStats(TipRange):
    """TipRange plus a capped ring of recent samples."""

    samples: Deque[int] = field(default_factory=lambda: deque(maxlen=TIP_SAMPLE_CAP))

    def add(self, amount: int) -> None:
        super().add(amount)
        self.samples.append(amount)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["samples"] = list(self.samples)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TipStats":
        stats = cls(
            count=int(data.get("count", 0)),
            min=data.get("min"),
            max=data.get("max"),
            total=int(data.get("total", 0)),
        )
        stats.samples.extend(int(s) for s in data.get("samples", []))
        return stats


@dataclass
class VenueUsage:
    """Usage count of one (venue, pool) pair."""

    name: str
    program_id: str
    pool_address: Optional[str] = None
    count: int = 0

    @classmethod
    def from_venue(cls, venue: Venue) -> "VenueUsage":
        return cls(name=venue.name, program_id=venue.program_id, pool_address=venue.pool_address)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "programId": self.program_id,
            "poolAddress": self.pool_address,
            "count": self.count,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VenueUsage":
        return cls(
            name=data.get("name", ""),
            program_id=data.get("programId", ""),
            pool_address=data.get("poolAddress"),
            count=int(data.get("count", 0)),
        )


def _bump_venue(table: Dict[str, VenueUsage], venue: Venue) -> None:
    usage = table.get(venue.key)
    if usage is None:
        usage = VenueUsage.from_venue(venue)
        table[venue.key] = usage
    usage.count += 1


def _venues_to_dict(table: Dict[str, VenueUsage]) -> Dict[str, Any]:
    return {key: usage.to_dict() for key, usage in table.items()}


def _venues_from_dict(data: Dict[str, Any]) -> Dict[str, VenueUsage]:
    return {key: VenueUsage.from_dict(v) for key, v in (data or {}).items()}


def _top_venues(table: Dict[str, VenueUsage], n: int) -> List[VenueUsage]:
    return sorted(table.values(), key=lambda v: (-v.count, v.name, v.pool_address or ""))[:n]


@dataclass
class AssetUsage:
    """One signer's activity on one traded asset."""

    address: str
    name: Optional[str] = None
    count: int = 0
    success: int = 0
    fail: int = 0
    profit: int = 0
    type_a: TipRange = field(default_factory=TipRange)
    type_b: TipRange = field(default_factory=TipRange)
    venues: Dict[str, VenueUsage] = field(default_factory=dict)

    def record(self, tx: ClassifiedTransaction) -> None:
        """Fold one classified transaction on this asset."""
        if tx.traded_asset_name and not self.name:
            self.name = tx.traded_asset_name
        self.count += 1
        if tx.failed:
            self.fail += 1
        else:
            self.success += 1
        self.profit += tx.profit_contribution
        if tx.fee_category is FeeCategory.TYPE_A:
            self.type_a.add(tx.fee_amount_lamports)
        elif tx.fee_category is FeeCategory.TYPE_B:
            self.type_b.add(tx.fee_amount_lamports)
        for venue in tx.venues:
            _bump_venue(self.venues, venue)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "count": self.count,
            "success": self.success,
            "fail": self.fail,
            "profit": self.profit,
            "typeA": self.type_a.to_dict(),
            "typeB": self.type_b.to_dict(),
            "venues": _venues_to_dict(self.venues),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssetUsage":
        return cls(
            address=data["address"],
            name=data.get("name"),
            count=int(data.get("count", 0)),
            success=int(data.get("success", 0)),
            fail=int(data.get("fail", 0)),
            profit=int(data.get("profit", 0)),
            type_a=TipRange.from_dict(data.get("typeA", {})),
            type_b=TipRange.from_dict(data.get("typeB", {})),
            venues=_venues_from_dict(data.get("venues", {})),
        )


@dataclass
class SignerStats:
    """Per-signer running statistics."""

    address: str
    total: int = 0
    success: int = 0
    fail: int = 0
    category_counts: Dict[str, int] = field(
        default_factory=lambda: {c.value: 0 for c in FeeCategory}
    )
    tips: Dict[str, TipStats] = field(
        default_factory=lambda: {c: TipStats() for c in TIP_CATEGORIES}
    )
    transfer_types: Dict[str, int] = field(default_factory=dict)
    assets: Dict[str, AssetUsage] = field(default_factory=dict)
    venues: Dict[str, VenueUsage] = field(default_factory=dict)
    recent: Deque[Dict[str, Any]] = field(
        default_factory=lambda: deque(maxlen=RECENT_TRANSACTIONS_CAP)
    )
    total_fees: int = 0
    total_compute_units: int = 0
    first_slot: Optional[int] = None
    last_slot: Optional[int] = None

    @property
    def success_rate(self) -> float:
        return self.success / self.total if self.total else 0.0

    def top_assets(self, n: int) -> List[AssetUsage]:
        return sorted(self.assets.values(), key=lambda a: (-a.count, a.address))[:n]

    def top_venues(self, n: int) -> List[VenueUsage]:
        return _top_venues(self.venues, n)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "transactions": {"total": self.total, "successful": self.success, "failed": self.fail},
            "categoryCounts": dict(self.category_counts),
            "tips": {c: t.to_dict() for c, t in self.tips.items()},
            "transferTypes": dict(self.transfer_types),
            "assets": {a: u.to_dict() for a, u in self.assets.items()},
            "venues": _venues_to_dict(self.venues),
            "recent": list(self.recent),
            "totalFees": self.total_fees,
            "totalComputeUnits": self.total_compute_units,
            "firstSlot": self.first_slot,
            "lastSlot": self.last_slot,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignerStats":
        txs = data.get("transactions", {})
        stats = cls(
            address=data["address"],
            total=int(txs.get("total", 0)),
            success=int(txs.get("successful", 0)),
            fail=int(txs.get("failed", 0)),
            transfer_types={k: int(v) for k, v in data.get("transferTypes", {}).items()},
            assets={a: AssetUsage.from_dict(u) for a, u in data.get("assets", {}).items()},
            venues=_venues_from_dict(data.get("venues", {})),
            total_fees=int(data.get("totalFees", 0)),
            total_compute_units=int(data.get("totalComputeUnits", 0)),
            first_slot=data.get("firstSlot"),
            last_slot=data.get("lastSlot"),
        )
        stats.category_counts.update(
            {k: int(v) for k, v in data.get("categoryCounts", {}).items()}
        )
        for category, tip_data in data.get("tips", {}).items():
            stats.tips[category] = TipStats.from_dict(tip_data)
        # Stored newest first; extend keeps that order under maxlen
        stats.recent.extend(data.get("recent", []))
        return stats


@dataclass
class AssetStats:
    """Cross-signer rollup for one traded asset."""

    address: str
    name: Optional[str] = None
    txn_count: int = 0
    success_count: int = 0
    fail_count: int = 0
    total_profit: int = 0
    type_a: TipRange = field(default_factory=TipRange)
    type_b: TipRange = field(default_factory=TipRange)
    venues: Dict[str, VenueUsage] = field(default_factory=dict)
    signers: Dict[str, int] = field(default_factory=dict)

    @property
    def fail_rate(self) -> float:
        return self.fail_count / self.txn_count if self.txn_count else 0.0

    def fold(self, signer: str, usage: AssetUsage) -> None:
        """Add one signer's asset record into this rollup."""
        if usage.name and not self.name:
            self.name = usage.name
        self.txn_count += usage.count
        self.success_count += usage.success
        self.fail_count += usage.fail
        self.total_profit += usage.profit
        self.type_a.merge(usage.type_a)
        self.type_b.merge(usage.type_b)
        for key, venue in usage.venues.items():
            mine = self.venues.get(key)
            if mine is None:
                mine = VenueUsage(venue.name, venue.program_id, venue.pool_address)
                self.venues[key] = mine
            mine.count += venue.count
        self.signers[signer] = self.signers.get(signer, 0) + usage.count

    def top_venues(self, n: int) -> List[VenueUsage]:
        return _top_venues(self.venues, n)

    def to_dict(self, top_n: int = 3) -> Dict[str, Any]:
        return {
            "address": self.address,
            "name": self.name,
            "txnCount": self.txn_count,
            "successCount": self.success_count,
            "failCount": self.fail_count,
            "totalProfit": self.total_profit,
            "typeA": self.type_a.to_dict(),
            "typeB": self.type_b.to_dict(),
            "topVenues": [v.to_dict() for v in self.top_venues(top_n)],
            "signerCount": len(self.signers),
        }
