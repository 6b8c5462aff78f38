"""Data models for scraped marketplace listings."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from pydantic import BaseModel, computed_field

LISTING_URL = "https://www.facebook.com/marketplace/item/{id}"

_NON_NUMERIC = re.compile(r"[^0-9.]")


def parse_price(text: Optional[str]) -> float:
    """Parse the numeric value out of a displayed price.

    Everything that is not a digit or a dot is dropped before parsing, so
    "$1,299.00" reads as 1299.0. "Free", "Unknown" and empty strings are 0.
    Text with several dots ("1.2.3") keeps the leading number, like a lenient
    float parser would.
    """
    clean = _NON_NUMERIC.sub("", text or "")
    if not clean:
        return 0.0
    m = re.match(r"\d*\.?\d*", clean)
    try:
        return float(m.group(0)) if m else 0.0
    except ValueError:
        return 0.0


class ListingRecord(BaseModel):
    """Represents a single listing surfaced by a marketplace search."""

    id: str
    title: str = "Untitled"
    price: str = "Unknown"
    description: str = ""
    image: str = ""
    estimate: str = ""

    @computed_field  # type: ignore[misc]
    @property
    def numeric_price(self) -> float:
        return parse_price(self.price)

    @computed_field  # type: ignore[misc]
    @property
    def link(self) -> str:
        return LISTING_URL.format(id=self.id)


def normalize_node(node: Any) -> Optional[ListingRecord]:
    """Build a ``ListingRecord`` from a raw search feed node.

    Returns ``None`` for nodes without a listing or without an id; those can't
    be deduplicated or linked to.
    """
    if not isinstance(node, Mapping):
        return None
    listing = node.get("listing")
    if not isinstance(listing, Mapping):
        return None
    raw_id = listing.get("id")
    if raw_id is None or str(raw_id) == "":
        return None
    title = listing.get("marketplace_listing_title") or "Untitled"
    price_info = listing.get("listing_price")
    price = None
    if isinstance(price_info, Mapping):
        price = price_info.get("formatted_amount")
    return ListingRecord(id=str(raw_id), title=str(title), price=str(price or "Unknown"))
