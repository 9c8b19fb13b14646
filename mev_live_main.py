#!/usr/bin/env python3
"""MEV LIVE - Real-time monitor for an on-chain MEV arbitrage program.

Entry point for the live monitoring system. Envelopes are consumed as JSON
lines, either piped from an external subscription client on stdin or read
from a capture file.

Usage:
    stream-client | python mev_live_main.py            # Live, envelopes on stdin
    python mev_live_main.py --replay capture.jsonl     # Offline replay
    python mev_live_main.py --signers signers.json     # Track listed signers only

Environment (.env supported):
    RPC_URL                   Lookup table fetch endpoint (optional)
    MEV_PROGRAM_ID            Monitored program id override
    RPC_MAX_CALLS_PER_SECOND  Lookup table fetch rate cap
    SNAPSHOT_DIR, LOG_DIR     Output directories
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, Iterator, TextIO

from mev_live.config.names_loader import load_known_names, load_signer_filter
from mev_live.config.settings import Settings
from mev_live.config.thresholds import LOG_LEVEL_DEFAULT, STATS_REPORT_INTERVAL
from mev_live.core.instruction_classifier import InstructionClassifier
from mev_live.core.lookup_table_cache import LookupTableCache
from mev_live.core.rate_limiter import RateLimiter
from mev_live.integrations.rpc_client import SolanaRpcClient
from mev_live.integrations.snapshot_store import SnapshotStore
from mev_live.logging.log_replay import load_envelopes
from mev_live.logging.session_logger import SessionLogger
from mev_live.orchestration.live_processor import LiveProcessor

logger = logging.getLogger("mev_live")


def read_stream(stream: TextIO) -> Iterator[Dict[str, Any]]:
    """Yield envelopes from a JSON-lines stream, skipping malformed lines."""
    for line in stream:
        line = line.strip()
        if not line:
            continue
        try:
            item = json.loads(line)
        except json.JSONDecodeError:
            logger.debug("Skipping malformed input line")
            continue
        if isinstance(item, dict):
            yield item


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="MEV LIVE - MEV program transaction monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Environment: set RPC_URL to resolve address lookup tables.",
    )
    parser.add_argument(
        "--replay",
        type=str,
        default=None,
        help="JSONL file of captured envelopes to process instead of stdin",
    )
    parser.add_argument(
        "--signers",
        type=str,
        default=None,
        help="JSON list of signers to track ([{address, name, active}])",
    )
    parser.add_argument(
        "--known-names",
        type=str,
        default="data/known-programs.json",
        help="JSON file of extra program/token/lookup table names",
    )
    parser.add_argument(
        "--program-id",
        type=str,
        default=None,
        help="Monitored program id (overrides MEV_PROGRAM_ID)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=LOG_LEVEL_DEFAULT,
        choices=["FULL", "INTELLIGENCE_ONLY"],
        help=f"Session log level (default: {LOG_LEVEL_DEFAULT})",
    )
    parser.add_argument(
        "--verbosity",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--stats-interval",
        type=float,
        default=STATS_REPORT_INTERVAL,
        help=f"Seconds between cache/asset reports (default: {STATS_REPORT_INTERVAL})",
    )
    parser.add_argument(
        "--no-table-fetch",
        action="store_true",
        help="Do not fetch lookup tables; use only addresses carried by envelopes",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Delete existing signer snapshots before starting",
    )
    return parser.parse_args()


def main() -> None:
    """Main entry point."""
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.verbosity),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings = Settings.from_env()
    program_id = args.program_id or settings.program_id

    names = load_known_names(args.known_names)
    signer_filter = load_signer_filter(args.signers) if args.signers else []
    if args.signers:
        if not signer_filter:
            logger.error("No active signers in %s", args.signers)
            sys.exit(1)
        logger.info("Tracking %d signers from %s", len(signer_filter), args.signers)

    cache = None
    if not args.no_table_fetch:
        if settings.rpc_url:
            client = SolanaRpcClient(settings.rpc_url)
            cache = LookupTableCache(
                client.fetch_table,
                rate_limiter=RateLimiter(max_calls=settings.max_calls_per_second),
            )
            logger.info("Lookup table fetch enabled (%d calls/s)", settings.max_calls_per_second)
        else:
            logger.warning("RPC_URL not set; lookup tables will not be fetched")

    store = SnapshotStore(settings.snapshot_dir)
    if args.reset:
        store.reset()

    session_logger = SessionLogger(
        program_id=program_id,
        log_level=args.log_level,
        output_dir=settings.log_dir,
    )
    logger.info("Session log: %s", session_logger.filepath)

    processor = LiveProcessor(
        classifier=InstructionClassifier(program_id=program_id, names=names),
        session_logger=session_logger,
        cache=cache,
        store=store,
        signer_filter=signer_filter,
        names=names,
        stats_interval=args.stats_interval,
    )

    if args.replay:
        try:
            envelopes = load_envelopes(args.replay)
        except FileNotFoundError as exc:
            logger.error("%s", exc)
            sys.exit(1)
        logger.info("Replaying %s for %s", args.replay, program_id)
        processor.run(envelopes, mode="replay")
    else:
        logger.info("Reading envelopes from stdin for %s (Ctrl+C to exit)", program_id)
        processor.run(read_stream(sys.stdin), mode="live")


if __name__ == "__main__":
    main()
