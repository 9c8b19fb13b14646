"""Main event processing loop for MEV LIVE.

Each envelope is processed to completion before the next one starts:
1. Normalize the wire shape -> TransactionEnvelope
2. Resolve accounts (static keys + lookup tables)
3. Classify the monitored program's instruction
4. Fold into the signer's running statistics
5. Persist the signer snapshot
6. Log events to JSONL
7. Periodic summaries, cache stats and sweep
"""

import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..cli.summary import render_asset_table, render_signer_summary
from ..config.names_loader import KnownNames, find_target_signer
from ..config.thresholds import SIGNER_SUMMARY_EVERY, STATS_REPORT_INTERVAL, TOP_N_DEFAULT
from ..core.account_resolver import AccountResolver
from ..core.envelope import EnvelopeValidationError, normalize_envelope
from ..core.instruction_classifier import InstructionClassifier
from ..core.lookup_table_cache import LookupTableCache
from ..core.signer_aggregator import SignerAggregator
from ..integrations.snapshot_store import PersistenceError, SnapshotStore
from ..logging.session_logger import SessionLogger
from ..models.transactions import ClassifiedTransaction

logger = logging.getLogger(__name__)


class LiveProcessor:
    """Feeds envelopes through resolver, classifier and aggregator."""

    def __init__(
        self,
        classifier: InstructionClassifier,
        session_logger: SessionLogger,
        cache: Optional[LookupTableCache] = None,
        store: Optional[SnapshotStore] = None,
        signer_filter: Optional[Iterable[str]] = None,
        names: Optional[KnownNames] = None,
        stats_interval: float = STATS_REPORT_INTERVAL,
        summary_every: int = SIGNER_SUMMARY_EVERY,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.classifier = classifier
        self.session_logger = session_logger
        self.cache = cache
        self.store = store
        self.signer_filter = list(signer_filter or [])
        self.names = names or classifier.names
        self.stats_interval = stats_interval
        self.summary_every = summary_every
        self._clock = clock

        self.resolver = AccountResolver(cache)
        self.aggregator = SignerAggregator(loader=store.load if store else None)

        self.processed = 0
        self.skipped = 0
        self.filtered = 0
        self._last_report = clock()
        self._running = False

    def _session_config(self, mode: str) -> Dict[str, Any]:
        return {
            "program_id": self.classifier.program_id,
            "mode": mode,
            "table_fetch": self.cache is not None,
            "signer_filter": len(self.signer_filter),
            "snapshot_dir": str(self.store.directory) if self.store else None,
        }

    def run(self, envelopes: Iterable[Dict[str, Any]], mode: str = "live") -> None:
        """Process envelopes until the source is exhausted or interrupted."""
        self._running = True
        self.session_logger.log_session_start(self._session_config(mode))
        reason = "source_exhausted"
        try:
            for raw in envelopes:
                if not self._running:
                    reason = "stopped"
                    break
                try:
                    self.process_envelope(raw)
                except Exception:
                    self.skipped += 1
                    logger.exception("Envelope at slot %s dropped", raw.get("slot") if isinstance(raw, dict) else None)
                self.tick()
        except KeyboardInterrupt:
            reason = "user_shutdown"
        finally:
            self.shutdown(reason)

    def stop(self) -> None:
        self._running = False

    def process_envelope(self, raw: Dict[str, Any]) -> Optional[ClassifiedTransaction]:
        """Run one raw envelope through the whole pipeline.

        Returns the classified transaction, or None when the envelope had
        no message or was excluded by the signer filter.
        """
        try:
            envelope = normalize_envelope(raw)
        except EnvelopeValidationError as exc:
            self.skipped += 1
            logger.warning("Skipping envelope: %s", exc)
            return None

        accounts = self.resolver.resolve_envelope(envelope)
        classified = self.classifier.classify_envelope(envelope, accounts)

        signer = classified.signer
        if self.signer_filter:
            signer = find_target_signer(
                (a.address for a in accounts if a.is_signer), self.signer_filter
            )
            if signer is None:
                self.filtered += 1
                return classified

        stats = self.aggregator.update(signer, classified)
        self.processed += 1
        if self.store is not None:
            self.store.save(stats.address, stats)
        self.session_logger.log_classified(classified, attributed_to=stats.address)

        logger.debug(
            "%s %s %s %s",
            classified.signature,
            classified.fee_category.value,
            "FAIL" if classified.failed else "OK",
            self.names.display(classified.traded_asset),
        )
        if self.summary_every and stats.total % self.summary_every == 0:
            self._emit(render_signer_summary(stats, self.names))
        return classified

    def tick(self) -> None:
        """Sweep the cache and report stats once per stats interval."""
        if self.cache is not None:
            self.cache.maybe_sweep()
        now = self._clock()
        if now - self._last_report < self.stats_interval:
            return
        self._last_report = now
        self.report()

    def report(self) -> None:
        if self.cache is not None:
            stats = self.cache.stats()
            logger.info(
                "Lookup tables: %d cached, %d ok, %d failed, hit rate %.1f%%",
                stats.cached_count,
                stats.success_count,
                stats.failure_count,
                stats.hit_rate * 100,
            )
            self.session_logger.log_cache_stats(stats.to_dict(), self.processed)
        self._emit(self.asset_table())

    def asset_table(self, n: int = TOP_N_DEFAULT) -> List[str]:
        return render_asset_table(self.aggregator.top_assets_by_profit(n), self.names)

    def _emit(self, lines: List[str]) -> None:
        logger.info("\n%s", "\n".join(lines))

    def shutdown(self, reason: str = "user_shutdown") -> None:
        """Final report, combined snapshot, close logger and cache workers."""
        self._running = False
        summary = self.aggregator.global_summary()
        summary.update(processed=self.processed, skipped=self.skipped, filtered=self.filtered)
        self._emit(self.asset_table())
        if self.store is not None:
            try:
                self.store.save_combined_report(
                    self.aggregator.signers,
                    extra={"summary": summary},
                )
            except PersistenceError as exc:
                logger.warning("Combined report not written: %s", exc)
        if self.cache is not None:
            summary["cache"] = self.cache.stats().to_dict()
            self.cache.shutdown()
        self.session_logger.log_session_end(reason, summary)
