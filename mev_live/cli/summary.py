"""Summary formatters for MEV LIVE.

Formats signer records and the cross-signer asset rollup into lists of
display-ready strings. Amounts are shown in SOL.
"""

from typing import List, Optional, Sequence

from ..config.names_loader import KnownNames
from ..config.thresholds import LAMPORTS_PER_SOL
from ..models.signer_stats import AssetStats, SignerStats, TipRange


def _short_addr(addr: Optional[str]) -> str:
    """Shorten a 44-char address for display (first4...last4)."""
    if not addr:
        return "unresolved"
    if len(addr) >= 44:
        return f"{addr[:4]}...{addr[-4:]}"
    return addr


def _sol(lamports: Optional[float]) -> str:
    if lamports is None:
        return "-"
    return f"{lamports / LAMPORTS_PER_SOL:.6f}"


def _tip_line(label: str, tips: TipRange) -> str:
    if tips.count == 0:
        return f"   {label}: none"
    return (
        f"   {label}: {tips.count} | min {_sol(tips.min)} | max {_sol(tips.max)}"
        f" | avg {_sol(tips.average)} | total {_sol(tips.total)} SOL"
    )


def render_signer_summary(
    stats: SignerStats,
    names: Optional[KnownNames] = None,
    top_n: int = 5,
) -> List[str]:
    """Render one signer's running summary.

    Args:
        stats: Signer record to render.
        names: Known-name table for assets and venues.
        top_n: Number of assets and venues listed.

    Returns:
        List of formatted display strings.
    """
    names = names or KnownNames()
    lines: List[str] = []
    lines.append(f" Signer {stats.address}")
    lines.append(
        f" Txns: {stats.total} | OK: {stats.success} | Fail: {stats.fail}"
        f" | Success: {stats.success_rate * 100:.1f}%"
    )
    counts = " | ".join(f"{k}: {v}" for k, v in sorted(stats.category_counts.items()))
    lines.append(f" Categories: {counts}")
    for category, tips in sorted(stats.tips.items()):
        lines.append(_tip_line(category, tips))
    if stats.transfer_types:
        transfers = " | ".join(f"{k}: {v}" for k, v in sorted(stats.transfer_types.items()))
        lines.append(f" Transfers: {transfers}")
    lines.append(
        f" Fees: {_sol(stats.total_fees)} SOL | CU: {stats.total_compute_units:,}"
    )

    assets = stats.top_assets(top_n)
    if assets:
        lines.append(" Top assets:")
        for usage in assets:
            label = usage.name or names.display(usage.address)
            lines.append(
                f"   {label:<16} {usage.count:>5} txns | fail {usage.fail:>4}"
                f" | profit {_sol(usage.profit)} SOL"
            )

    venues = stats.top_venues(top_n)
    if venues:
        lines.append(" Top venues:")
        for venue in venues:
            lines.append(f"   {venue.name:<20} {_short_addr(venue.pool_address):<12} {venue.count:>5}")
    return lines


def render_asset_table(
    assets: Sequence[AssetStats],
    names: Optional[KnownNames] = None,
    venues_per_asset: int = 3,
) -> List[str]:
    """Render the cross-signer top-assets-by-profit table.

    Returns:
        List of formatted display strings, header first.
    """
    names = names or KnownNames()
    lines: List[str] = []
    lines.append(
        f" {'#':>2}  {'Asset':<16} {'Txns':>6} {'Fail%':>6} {'Profit (SOL)':>14} {'Signers':>7}  Venues"
    )
    if not assets:
        lines.append("   (no traded assets yet)")
        return lines

    for rank, asset in enumerate(assets, start=1):
        label = asset.name or names.display(asset.address)
        venues = ", ".join(
            f"{v.name}({v.count})" for v in asset.top_venues(venues_per_asset)
        ) or "-"
        lines.append(
            f" {rank:>2}. {label:<16} {asset.txn_count:>6} {asset.fail_rate * 100:>5.1f}%"
            f" {_sol(asset.total_profit):>14} {len(asset.signers):>7}  {venues}"
        )
    return lines
