from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, ContextManager, List, Optional

from marketplace_notifier.config import AppConfig
from marketplace_notifier.filters import FilterEngine
from marketplace_notifier.models import ListingRecord, normalize_node
from marketplace_notifier.repositories import SeenStore

from .estimator import ResaleEstimator
from .notifier import NotificationGate
from .scraper import PageSource

logger = logging.getLogger(__name__)


@dataclass
class TermResult:
    term: str
    found: int = 0
    new: int = 0
    notified: bool = False
    error: Optional[str] = None


@dataclass
class RunSummary:
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None
    terms: List[TermResult] = field(default_factory=list)

    @property
    def new_items(self) -> int:
        return sum(t.new for t in self.terms)

    @property
    def failed_terms(self) -> List[str]:
        return [t.term for t in self.terms if t.error]


class NotifierPipeline:
    """Search every configured term, then notify about listings not seen before.

    Runs are serialized: a ``run()`` started while another is in progress
    blocks until the first one has saved its state.
    """

    def __init__(
        self,
        config: AppConfig,
        source_factory: Callable[[AppConfig], ContextManager[PageSource]],
        seen: SeenStore,
        estimator: ResaleEstimator,
        gate: NotificationGate,
    ) -> None:
        self.config = config
        self.source_factory = source_factory
        self.seen = seen
        self.filters = FilterEngine(config.filter_config())
        self.estimator = estimator
        self.gate = gate
        self._lock = threading.Lock()

    def run(self) -> RunSummary:
        with self._lock:
            summary = RunSummary()
            self.seen.load()
            try:
                with self.source_factory(self.config) as source:
                    for term in self.config.search_terms:
                        summary.terms.append(self._run_term(source, term))
            finally:
                self.seen.save()
                summary.finished_at = time.time()
            logger.info(
                "Run finished: %d terms, %d new listings, %d failed",
                len(summary.terms),
                summary.new_items,
                len(summary.failed_terms),
            )
            return summary

    def _run_term(self, source: PageSource, term: str) -> TermResult:
        result = TermResult(term=term)
        try:
            nodes = source.search(term) or []
            result.found = len(nodes)
            items = self.select_new(nodes)
            self.enrich(source, items)
            result.new = len(items)
            if items:
                self.gate.notify(term, items)
                result.notified = True
            else:
                logger.info('No new items found for "%s"', term)
        except Exception as e:
            logger.exception('Error processing term "%s"', term)
            result.error = str(e)
        return result

    def select_new(self, nodes: List[dict]) -> List[ListingRecord]:
        """Normalize raw nodes and keep unseen listings that pass the filters.

        Accepted ids are marked seen straight away, so a listing repeated in
        the same feed (or under a later term) is only reported once.
        """
        kept: List[ListingRecord] = []
        for node in nodes:
            item = normalize_node(node)
            if item is None:
                continue
            if self.seen.contains(item.id):
                continue
            res = self.filters.apply(item)
            if not res.included:
                logger.debug("Skipping %s (%s): %s", item.id, item.title, ", ".join(res.reasons))
                continue
            self.seen.add(item.id)
            kept.append(item)
        return kept

    def enrich(self, source: PageSource, items: List[ListingRecord]) -> None:
        if self.config.fetch_listing_details:
            for item in items:
                details = source.fetch_details(item.link)
                item.description = details.description
                item.image = details.image
                item.estimate = self.estimator.estimate(item.price, item.title, item.description)
        else:
            for item in items:
                item.estimate = self.estimator.estimate(item.price, item.title, "")
