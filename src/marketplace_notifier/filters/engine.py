from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from pydantic import BaseModel

from marketplace_notifier.models import ListingRecord


class FilterConfig(BaseModel):
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    include_free_items: bool = True
    # Keyword rules only gate free (zero-priced) listings
    include_keywords: List[str] = []
    exclude_keywords: List[str] = []


@dataclass
class FilterResult:
    included: bool
    reasons: List[str] = field(default_factory=list)


class FilterEngine:
    """Decide whether a new listing is worth a notification."""

    def __init__(self, config: FilterConfig) -> None:
        self.config = config

    def apply(self, listing: ListingRecord) -> FilterResult:
        price = listing.numeric_price
        title = listing.title.lower()

        if price == 0:
            for kw in self._norm(self.config.exclude_keywords):
                if kw in title:
                    return FilterResult(False, [f"exclude:{kw}"])
            includes = self._norm(self.config.include_keywords)
            if includes and not any(kw in title for kw in includes):
                return FilterResult(False, ["no_include_keywords_matched"])
            if not self.config.include_free_items:
                return FilterResult(False, ["free_items_disabled"])

        # Price band
        if self.config.min_price is not None and price < self.config.min_price:
            return FilterResult(False, ["price_below_min"])
        if self.config.max_price is not None and price > self.config.max_price:
            return FilterResult(False, ["price_above_max"])

        return FilterResult(True)

    @staticmethod
    def _norm(words: Iterable[str]) -> List[str]:
        return [w.strip().lower() for w in words if w and w.strip()]
