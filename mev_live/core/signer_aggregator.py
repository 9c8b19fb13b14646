"""Per-signer streaming aggregation for MEV LIVE.

Owns every SignerStats record and a cross-signer AssetStats index kept in
step with them. Updates are applied one transaction at a time by a single
writer, in feed order. Records are loaded lazily from a snapshot on first
reference to a signer.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..config.thresholds import TOP_N_DEFAULT
from ..models.signer_stats import (
    TIP_CATEGORIES,
    AssetStats,
    AssetUsage,
    SignerStats,
    TipRange,
    VenueUsage,
)
from ..models.transactions import ClassifiedTransaction, FeeCategory

logger = logging.getLogger(__name__)

UNKNOWN_SIGNER = "unknown"

SnapshotLoader = Callable[[str], Optional[Dict[str, Any]]]


def recent_entry(tx: ClassifiedTransaction) -> Dict[str, Any]:
    """Compact display record for the recent-transactions ring."""
    return {
        "signature": tx.signature,
        "slot": tx.slot,
        "failed": tx.failed,
        "feeCategory": tx.fee_category.value,
        "feeAmountLamports": tx.fee_amount_lamports,
        "transferType": tx.transfer_type,
        "tradedAsset": tx.traded_asset,
        "venues": [v.to_dict() for v in tx.venues],
    }


class SignerAggregator:
    """Running statistics keyed by signer, with per-asset rollups.

    Args:
        loader: Returns a persisted snapshot dict for a signer, or None.
    """

    def __init__(self, loader: Optional[SnapshotLoader] = None) -> None:
        self._loader = loader
        self.signers: Dict[str, SignerStats] = {}
        self._assets: Dict[str, AssetStats] = {}

    def __contains__(self, signer: object) -> bool:
        return signer in self.signers

    def __len__(self) -> int:
        return len(self.signers)

    def get(self, signer: str) -> Optional[SignerStats]:
        return self.signers.get(signer)

    def get_or_create(self, signer: str) -> SignerStats:
        """Existing record, else the persisted snapshot, else a fresh record."""
        stats = self.signers.get(signer)
        if stats is not None:
            return stats

        stats = self._load(signer) or SignerStats(address=signer)
        self.signers[signer] = stats
        for usage in stats.assets.values():
            self._asset(usage.address).fold(signer, usage)
        logger.info("Tracking signer %s (%d prior transactions)", signer, stats.total)
        return stats

    def _load(self, signer: str) -> Optional[SignerStats]:
        if self._loader is None:
            return None
        data = self._loader(signer)
        if not data:
            return None
        try:
            return SignerStats.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring unreadable snapshot for %s: %s", signer, exc)
            return None

    def _asset(self, address: str) -> AssetStats:
        asset = self._assets.get(address)
        if asset is None:
            asset = AssetStats(address=address)
            self._assets[address] = asset
        return asset

    def update(self, signer: Optional[str], tx: ClassifiedTransaction) -> SignerStats:
        """Fold one classified transaction into the signer's record.

        Fields that are None are skipped. Returns the updated record for
        persistence and rendering.
        """
        signer = signer or tx.signer or UNKNOWN_SIGNER
        stats = self.get_or_create(signer)

        stats.total += 1
        if tx.failed:
            stats.fail += 1
        else:
            stats.success += 1

        category = tx.fee_category.value
        stats.category_counts[category] = stats.category_counts.get(category, 0) + 1
        if category in TIP_CATEGORIES:
            stats.tips[category].add(tx.fee_amount_lamports)
        if tx.transfer_type:
            stats.transfer_types[tx.transfer_type] = stats.transfer_types.get(tx.transfer_type, 0) + 1

        stats.total_fees += tx.fee
        stats.total_compute_units += tx.compute_units_consumed
        if stats.first_slot is None:
            stats.first_slot = tx.slot
        stats.last_slot = tx.slot

        for venue in tx.venues:
            usage = stats.venues.get(venue.key)
            if usage is None:
                usage = VenueUsage.from_venue(venue)
                stats.venues[venue.key] = usage
            usage.count += 1

        if tx.traded_asset:
            usage = stats.assets.get(tx.traded_asset)
            if usage is None:
                usage = AssetUsage(address=tx.traded_asset)
                stats.assets[tx.traded_asset] = usage
            usage.record(tx)

            delta = AssetUsage(address=tx.traded_asset)
            delta.record(tx)
            self._asset(tx.traded_asset).fold(signer, delta)

        stats.recent.appendleft(recent_entry(tx))
        return stats

    def asset_stats(self, asset: str) -> Optional[AssetStats]:
        return self._assets.get(asset)

    def assets(self) -> Dict[str, AssetStats]:
        return dict(self._assets)

    def rebuild_asset_index(self) -> Dict[str, AssetStats]:
        """Recompute the asset rollups from the signer records alone."""
        rebuilt: Dict[str, AssetStats] = {}
        for signer, stats in self.signers.items():
            for usage in stats.assets.values():
                asset = rebuilt.get(usage.address)
                if asset is None:
                    asset = AssetStats(address=usage.address)
                    rebuilt[usage.address] = asset
                asset.fold(signer, usage)
        return rebuilt

    def top_assets_by_profit(self, n: int = TOP_N_DEFAULT) -> List[AssetStats]:
        return sorted(
            self._assets.values(),
            key=lambda a: (-a.total_profit, -a.txn_count, a.address),
        )[:n]

    def top_venues_for_asset(self, asset: str, n: int = 3) -> List[VenueUsage]:
        stats = self._assets.get(asset)
        if stats is None:
            return []
        return stats.top_venues(n)

    def global_summary(self) -> Dict[str, Any]:
        """Cross-signer totals over the current in-memory state."""
        tips = {c: TipRange() for c in TIP_CATEGORIES}
        categories = {c.value: 0 for c in FeeCategory}
        total = success = fail = 0
        for stats in self.signers.values():
            total += stats.total
            success += stats.success
            fail += stats.fail
            for category, count in stats.category_counts.items():
                categories[category] = categories.get(category, 0) + count
            for category, tip in stats.tips.items():
                tips.setdefault(category, TipRange()).merge(tip)
        return {
            "signerCount": len(self.signers),
            "totalTransactions": total,
            "successful": success,
            "failed": fail,
            "successRate": round(success / total, 4) if total else 0.0,
            "categoryCounts": categories,
            "tips": {c: t.to_dict() for c, t in tips.items()},
            "assetCount": len(self._assets),
            "totalProfit": sum(a.total_profit for a in self._assets.values()),
        }
