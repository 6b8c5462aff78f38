from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from marketplace_notifier.models import parse_price

NOT_AVAILABLE = "n/a"
RESALE_RATIO = 0.5
CURRENCY = "$"

_SEPARATORS = re.compile(r"\s*/\s*|\s*>\s*")


def category_tokens(name: str) -> List[str]:
    """Split a category path like "Electronics/Cell Phones > Accessories"."""
    return [t.strip() for t in _SEPARATORS.split(name.lower()) if t.strip()]


def format_amount(value: float) -> str:
    return f"{CURRENCY}{value:.2f}"


@dataclass
class EstimatorConfig:
    enabled: bool = True
    ratio: float = RESALE_RATIO
    category_averages: Mapping[str, Optional[float]] = field(default_factory=dict)


class ResaleEstimator:
    """Rough resale value guess from the asking price or a category average."""

    def __init__(self, cfg: EstimatorConfig | None = None) -> None:
        self.cfg = cfg or EstimatorConfig()
        self._tokens: Dict[str, List[str]] = {
            name: category_tokens(name) for name in self.cfg.category_averages
        }

    def estimate(self, price_text: str, title: str, description: str = "") -> str:
        if not self.cfg.enabled:
            return ""
        price = parse_price(price_text)
        if price > 0:
            return format_amount(price * self.cfg.ratio)
        # Free or priceless: fall back to the first category named in the title
        category = self.match_category(title)
        if category is not None:
            avg = self.cfg.category_averages.get(category)
            if avg is not None and avg > 0:
                return format_amount(avg * self.cfg.ratio)
        return NOT_AVAILABLE

    def match_category(self, title: str) -> Optional[str]:
        lower = (title or "").lower()
        for name, tokens in self._tokens.items():
            if any(tok in lower for tok in tokens):
                return name
        return None
