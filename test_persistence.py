"""Snapshot store, session log, RPC table parsing and config tests for MEV LIVE."""

import base64
import json
import shutil
import os
import tempfile
from pathlib import Path

import base58

from mev_live.config.names_loader import (
    find_target_signer,
    load_known_names,
    load_signer_filter,
)
from mev_live.config.settings import Settings
from mev_live.config.thresholds import COMBINED_REPORT_NAME, LOOKUP_TABLE_TTL_SECONDS
from mev_live.core.lookup_table_cache import ResolutionFailure
from mev_live.integrations.rpc_client import SolanaRpcClient, parse_lookup_table
from mev_live.integrations.snapshot_store import PersistenceError, SnapshotStore
from mev_live.logging.log_replay import load_envelopes, replay_session
from mev_live.logging.session_logger import SessionLogger
from mev_live.models.signer_stats import SignerStats
from mev_live.models.transactions import ClassifiedTransaction, FeeCategory

SIGNER = "S" * 44
PROGRAM = "P" * 44


def test_snapshot_store():
    print("=== Snapshot Store ===")
    with tempfile.TemporaryDirectory() as tmpdir:
        store = SnapshotStore(os.path.join(tmpdir, "signers"))
        assert store.load(SIGNER) is None

        stats = SignerStats(address=SIGNER, total=3, success=2, fail=1)
        assert store.save(SIGNER, stats) is True
        data = store.load(SIGNER)
        assert data["transactions"] == {"total": 3, "successful": 2, "failed": 1}
        assert SignerStats.from_dict(data).total == 3
        print("  save/load: OK")

        report = store.save_combined_report({SIGNER: stats})
        assert report.name == COMBINED_REPORT_NAME
        combined = json.loads(report.read_text(encoding="utf-8"))
        assert combined["signerCount"] == 1
        assert SIGNER in combined["signers"]
        assert "generatedAt" in combined
        assert store.list_signers() == [SIGNER]
        print("  combined report excluded from signer list: OK")

        # No temp files left behind
        assert not [p for p in Path(store.directory).iterdir() if p.name.startswith(".tmp-")]

        store.path_for(SIGNER).write_text("{not json", encoding="utf-8")
        assert store.load(SIGNER) is None
        print("  corrupt snapshot ignored: OK")

        assert store.reset() == 2
        assert store.list_signers() == []


def test_snapshot_write_failure_is_recovered():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = SnapshotStore(os.path.join(tmpdir, "signers"))
        os.makedirs(store.path_for(SIGNER))  # a directory where the file should go
        assert store.save(SIGNER, SignerStats(address=SIGNER)) is False
        assert store.write_failures == 1

        shutil.rmtree(store.directory)
        assert store.save(SIGNER, SignerStats(address=SIGNER)) is False
        assert store.write_failures == 2
        try:
            store.save_combined_report({})
            assert False, "Should have raised"
        except PersistenceError:
            pass
    print("  write failure logged, not raised: OK")


def test_session_logger_levels():
    print("=== Session Logger ===")
    tx = ClassifiedTransaction(
        signature="sig1", slot=7, signer=SIGNER,
        fee_category=FeeCategory.TYPE_B, fee_amount_lamports=1000,
    )
    with tempfile.TemporaryDirectory() as tmpdir:
        quiet = SessionLogger(PROGRAM, log_level="INTELLIGENCE_ONLY", output_dir=tmpdir)
        quiet.log_session_start({"mode": "test"})
        quiet.log_classified(tx)
        quiet.log_cache_stats({"cachedCount": 1}, processed=1)
        quiet.log_session_end("done")
        events = replay_session(str(quiet.filepath))
        assert [e["event_type"] for e in events] == ["SESSION_START", "CACHE_STATS", "SESSION_END"]

        full = SessionLogger(PROGRAM, log_level="FULL", output_dir=os.path.join(tmpdir, "full"))
        full.log_session_start({})
        full.log_classified(tx, attributed_to="T" * 44)
        full.log_session_end("done", {"processed": 1})
        events = replay_session(str(full.filepath))
        assert [e["event_type"] for e in events] == ["SESSION_START", "CLASSIFIED_TX", "SESSION_END"]
        assert events[1]["feeCategory"] == "typeB"
        assert events[1]["attributed_to"] == "T" * 44
        assert events[2]["summary"] == {"processed": 1}
        print("  INTELLIGENCE_ONLY vs FULL: OK")


def test_load_envelopes():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "capture.jsonl"
        path.write_text('{"slot": 1}\n\nnot json\n[1, 2]\n{"slot": 2}\n', encoding="utf-8")
        assert [e["slot"] for e in load_envelopes(str(path))] == [1, 2]
        try:
            load_envelopes(str(Path(tmpdir) / "missing.jsonl"))
            assert False, "Should have raised"
        except FileNotFoundError:
            pass


def test_parse_lookup_table():
    print("=== Lookup table layout ===")
    keys = [bytes([i]) * 32 for i in (1, 2, 3)]
    data = bytes(56) + b"".join(keys)
    assert parse_lookup_table(data) == [base58.b58encode(k).decode() for k in keys]
    assert parse_lookup_table(bytes(56)) == []
    try:
        parse_lookup_table(bytes(40))
        assert False, "Should have raised"
    except ResolutionFailure:
        print("  header-only and short data: OK")


class FakeResponse:
    def __init__(self, body):
        self._body = body

    def raise_for_status(self):
        pass

    def json(self):
        return self._body


class FakeSession:
    def __init__(self, body):
        self.body = body
        self.posted = []

    def post(self, url, json=None, timeout=None):
        self.posted.append(json)
        return FakeResponse(self.body)

    def close(self):
        pass


def test_rpc_fetch_table():
    key = bytes([9]) * 32
    raw = base64.b64encode(bytes(56) + key).decode()
    session = FakeSession({"jsonrpc": "2.0", "result": {"value": {"data": [raw, "base64"]}}})
    client = SolanaRpcClient("http://rpc.invalid", session=session)
    assert client.fetch_table("T" * 44) == [base58.b58encode(key).decode()]
    assert session.posted[0]["method"] == "getAccountInfo"
    assert session.posted[0]["params"][1] == {"encoding": "base64"}

    missing = SolanaRpcClient("http://rpc.invalid", session=FakeSession({"result": {"value": None}}))
    assert missing.fetch_table("T" * 44) is None

    failing = SolanaRpcClient(
        "http://rpc.invalid", session=FakeSession({"error": {"code": -32602, "message": "bad"}})
    )
    try:
        failing.fetch_table("T" * 44)
        assert False, "Should have raised"
    except ResolutionFailure:
        pass

    try:
        SolanaRpcClient("")
        assert False, "Should have raised"
    except ValueError:
        pass
    print("  getAccountInfo parsing: OK")


def test_names_and_signer_filter():
    print("=== Names / signer filter ===")
    names = load_known_names("/nonexistent/known.json")
    assert names.name_for("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA") == "Token Program"
    assert names.display(None) == "unresolved"
    assert names.display("Q" * 44) == "QQQQQQQQ..."

    with tempfile.TemporaryDirectory() as tmpdir:
        names_path = Path(tmpdir) / "known.json"
        names_path.write_text(json.dumps({"tokens": {"Q" * 44: "QTOKEN"}}), encoding="utf-8")
        assert load_known_names(str(names_path)).display("Q" * 44) == "QTOKEN"

        signers_path = Path(tmpdir) / "signers.json"
        signers_path.write_text(json.dumps([
            {"address": "A" * 44, "name": "a", "active": True},
            {"address": "B" * 44, "name": "b", "active": False},
        ]), encoding="utf-8")
        targets = load_signer_filter(str(signers_path))
        assert targets == ["A" * 44]
    assert load_signer_filter("/nonexistent.json") == []
    assert find_target_signer(["Z" * 44, None, "A" * 44], targets) == "A" * 44
    assert find_target_signer(["Z" * 44], targets) is None
    print("  OK")


def test_settings_from_env():
    keys = ("RPC_URL", "MEV_PROGRAM_ID", "RPC_MAX_CALLS_PER_SECOND", "SNAPSHOT_DIR", "LOG_DIR")
    saved = {k: os.environ.get(k) for k in keys}
    try:
        os.environ["RPC_URL"] = "http://rpc.invalid"
        os.environ["RPC_MAX_CALLS_PER_SECOND"] = "not-a-number"
        os.environ["SNAPSHOT_DIR"] = "snaps/"
        os.environ.pop("MEV_PROGRAM_ID", None)
        os.environ.pop("LOG_DIR", None)
        settings = Settings.from_env("/nonexistent/.env")
        assert settings.rpc_url == "http://rpc.invalid"
        assert settings.max_calls_per_second == 10
        assert settings.snapshot_dir == "snaps/"
        assert settings.log_dir == "logs/"
    finally:
        for k, v in saved.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v
    assert LOOKUP_TABLE_TTL_SECONDS == 300.0


if __name__ == "__main__":
    test_snapshot_store()
    test_snapshot_write_failure_is_recovered()
    test_session_logger_levels()
    test_load_envelopes()
    test_parse_lookup_table()
    test_rpc_fetch_table()
    test_names_and_signer_filter()
    test_settings_from_env()
    print("\nAll persistence tests passed.")
