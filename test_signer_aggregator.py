"""Signer aggregation tests for MEV LIVE."""

import json

from mev_live.core.signer_aggregator import SignerAggregator
from mev_live.models.signer_stats import SignerStats
from mev_live.models.transactions import ClassifiedTransaction, FeeCategory, Venue

SIGNER_1 = "S1" + "1" * 42
SIGNER_2 = "S2" + "2" * 42
MINT_A = "MA" + "a" * 42
MINT_B = "MB" + "b" * 42
RAYDIUM = Venue("Raydium v4", "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8", "PoolR" + "r" * 39)
ORCA = Venue("Orca Whirlpool", "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc", "PoolO" + "o" * 39)


def tx(n, signer, category, amount, asset=None, failed=False, venues=(), transfer=None):
    return ClassifiedTransaction(
        signature=f"sig{n}",
        slot=100 + n,
        signer=signer,
        failed=failed,
        fee_category=category,
        fee_amount_lamports=amount,
        transfer_type=transfer,
        traded_asset=asset,
        venues=list(venues),
        fee=5000,
        compute_units_consumed=100_000,
    )


SEQUENCE = [
    tx(1, SIGNER_1, FeeCategory.TYPE_B, 20_000, MINT_A, venues=[RAYDIUM], transfer="direct"),
    tx(2, SIGNER_1, FeeCategory.TYPE_A, 5_000, MINT_A, failed=True, venues=[RAYDIUM, ORCA]),
    tx(3, SIGNER_2, FeeCategory.TYPE_B, 50_000, MINT_B, venues=[ORCA], transfer="separate_account"),
    tx(4, SIGNER_2, FeeCategory.TYPE_B, 10_000, MINT_A, venues=[RAYDIUM], transfer="direct"),
    tx(5, SIGNER_1, FeeCategory.UNDETERMINED, 0, None),
]


def run_sequence(loader=None):
    agg = SignerAggregator(loader=loader)
    for item in SEQUENCE:
        agg.update(item.signer, item)
    return agg


def test_update_counters():
    print("=== Update ===")
    agg = run_sequence()
    s1 = agg.get(SIGNER_1)
    assert s1.total == 3 and s1.success == 2 and s1.fail == 1
    assert s1.category_counts == {"undetermined": 1, "typeA": 1, "typeB": 1}
    assert s1.tips["typeB"].min == 20_000 and s1.tips["typeB"].max == 20_000
    assert s1.tips["typeA"].total == 5_000
    assert list(s1.tips["typeB"].samples) == [20_000]
    assert s1.transfer_types == {"direct": 1}
    assert set(s1.assets) == {MINT_A}
    assert s1.assets[MINT_A].count == 2
    assert s1.assets[MINT_A].profit == 15_000
    assert s1.venues[RAYDIUM.key].count == 2
    assert s1.venues[ORCA.key].count == 1
    assert s1.total_fees == 15_000
    assert s1.first_slot == 101 and s1.last_slot == 105
    # Newest first
    assert [r["signature"] for r in s1.recent] == ["sig5", "sig2", "sig1"]
    print("  counters, tips, assets, venues, recent: OK")


def test_null_asset_not_folded():
    agg = SignerAggregator()
    stats = agg.update(SIGNER_1, tx(1, SIGNER_1, FeeCategory.TYPE_A, 1, None))
    assert stats.assets == {}
    assert agg.assets() == {}


def test_unknown_signer():
    agg = SignerAggregator()
    stats = agg.update(None, tx(1, None, FeeCategory.UNDETERMINED, 0))
    assert stats.address == "unknown"


def test_recent_ring_cap():
    agg = SignerAggregator()
    for n in range(25):
        agg.update(SIGNER_1, tx(n, SIGNER_1, FeeCategory.TYPE_A, 1))
    stats = agg.get(SIGNER_1)
    assert len(stats.recent) == 10
    assert stats.recent[0]["signature"] == "sig24"
    assert stats.recent[-1]["signature"] == "sig15"
    print("  recent ring capped at 10: OK")


def test_replay_is_deterministic():
    print("=== Determinism ===")
    first = run_sequence()
    second = run_sequence()
    for signer in (SIGNER_1, SIGNER_2):
        assert first.get(signer).to_dict() == second.get(signer).to_dict()
    assert first.global_summary() == second.global_summary()
    print("  same input, same state: OK")


def test_asset_index_matches_rebuild():
    print("=== Asset index ===")
    agg = run_sequence()
    rebuilt = agg.rebuild_asset_index()
    assert set(rebuilt) == set(agg.assets()) == {MINT_A, MINT_B}
    for address, asset in agg.assets().items():
        assert asset.to_dict() == rebuilt[address].to_dict()
        assert asset.signers == rebuilt[address].signers

    mint_a = agg.asset_stats(MINT_A)
    assert mint_a.txn_count == 3
    assert mint_a.fail_count == 1
    assert mint_a.total_profit == 20_000 - 5_000 + 10_000
    assert mint_a.signers == {SIGNER_1: 2, SIGNER_2: 1}
    print("  incremental == rebuilt: OK")


def test_derived_views():
    agg = run_sequence()
    top = agg.top_assets_by_profit(2)
    assert [a.address for a in top] == [MINT_B, MINT_A]
    venues = agg.top_venues_for_asset(MINT_A, 1)
    assert venues[0].name == "Raydium v4" and venues[0].count == 3
    assert agg.top_venues_for_asset("missing") == []

    summary = agg.global_summary()
    assert summary["signerCount"] == 2
    assert summary["totalTransactions"] == 5
    assert summary["failed"] == 1
    assert summary["categoryCounts"]["typeB"] == 3
    assert summary["tips"]["typeB"]["max"] == 50_000
    assert summary["totalProfit"] == 75_000


def test_snapshot_roundtrip_and_lazy_load():
    print("=== Snapshot load ===")
    agg = run_sequence()
    saved = {s: json.loads(json.dumps(stats.to_dict())) for s, stats in agg.signers.items()}
    restored = SignerStats.from_dict(saved[SIGNER_1])
    assert restored.to_dict() == agg.get(SIGNER_1).to_dict()

    loads = []

    def loader(signer):
        loads.append(signer)
        return saved.get(signer)

    fresh = SignerAggregator(loader=loader)
    fresh.update(SIGNER_1, tx(9, SIGNER_1, FeeCategory.TYPE_B, 1_000, MINT_A, transfer="direct"))
    fresh.update(SIGNER_1, tx(10, SIGNER_1, FeeCategory.TYPE_B, 1_000, MINT_A, transfer="direct"))
    assert loads == [SIGNER_1]
    s1 = fresh.get(SIGNER_1)
    assert s1.total == 5
    assert s1.assets[MINT_A].count == 4
    assert fresh.asset_stats(MINT_A).txn_count == 4
    assert fresh.rebuild_asset_index()[MINT_A].to_dict() == fresh.asset_stats(MINT_A).to_dict()
    print("  snapshot resumed and index seeded: OK")


def test_unreadable_snapshot_starts_fresh():
    agg = SignerAggregator(loader=lambda signer: {"transactions": "bogus"})
    stats = agg.update(SIGNER_1, tx(1, SIGNER_1, FeeCategory.TYPE_A, 1))
    assert stats.total == 1


if __name__ == "__main__":
    test_update_counters()
    test_null_asset_not_folded()
    test_unknown_signer()
    test_recent_ring_cap()
    test_replay_is_deterministic()
    test_asset_index_matches_rebuild()
    test_derived_views()
    test_snapshot_roundtrip_and_lazy_load()
    test_unreadable_snapshot_starts_fresh()
    print("\nAll signer aggregator tests passed.")
