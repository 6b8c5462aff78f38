"""Average sold price per category from a tab-separated sales dataset.

The output feeds the resale estimator's fallback for free listings. The
dataset needs a header row with ``category_name`` and ``price`` columns
(the Mercari price-suggestion layout); other columns are ignored.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from typing import Dict, Iterable, TextIO


@dataclass
class CategoryStats:
    total: float = 0.0
    count: int = 0

    @property
    def average(self) -> float:
        return self.total / self.count if self.count else 0.0


def average_price_by_category(rows: Iterable[Dict[str, str]]) -> Dict[str, dict]:
    stats: Dict[str, CategoryStats] = {}
    for row in rows:
        category = row.get("category_name") or "Unknown"
        try:
            price = float(row.get("price") or "")
        except ValueError:
            continue
        s = stats.setdefault(category, CategoryStats())
        s.total += price
        s.count += 1
    return {cat: {"count": s.count, "avgPrice": s.average} for cat, s in stats.items()}


def read_tsv(f: TextIO) -> Iterable[Dict[str, str]]:
    return csv.DictReader(f, delimiter="\t", quoting=csv.QUOTE_NONE)
