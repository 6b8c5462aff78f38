from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from marketplace_notifier.services.notifier import OutgoingMessage
from marketplace_notifier.services.scraper import ListingDetails


def node(listing_id: object, title: Optional[str] = "Item", price: Optional[str] = "$10") -> dict:
    listing: dict = {"id": listing_id}
    if title is not None:
        listing["marketplace_listing_title"] = title
    if price is not None:
        listing["listing_price"] = {"formatted_amount": price}
    return {"listing": listing}


class RecordingNotifier:
    def __init__(self, fail_for: tuple[str, ...] = ()) -> None:
        self.sent: List[OutgoingMessage] = []
        self.fail_for = fail_for

    def send(self, message: OutgoingMessage) -> None:
        if message.to in self.fail_for:
            raise ConnectionError("rejected")
        self.sent.append(message)


class FakeSource:
    """Page source returning canned feed nodes per term."""

    def __init__(
        self,
        results: Dict[str, Optional[List[dict]]],
        details: Optional[Dict[str, ListingDetails]] = None,
        errors: Optional[Dict[str, Exception]] = None,
    ) -> None:
        self.results = results
        self.details = details or {}
        self.errors = errors or {}
        self.searched: List[str] = []
        self.detail_calls: List[str] = []
        self.opened = 0
        self.closed = 0

    def __enter__(self) -> "FakeSource":
        self.opened += 1
        return self

    def __exit__(self, *exc: object) -> None:
        self.closed += 1

    def search(self, term: str) -> Optional[List[dict]]:
        self.searched.append(term)
        if term in self.errors:
            raise self.errors[term]
        return self.results.get(term)

    def fetch_details(self, link: str) -> ListingDetails:
        self.detail_calls.append(link)
        return self.details.get(link, ListingDetails())


class FixedClock:
    def __init__(self, hour: int) -> None:
        self.hour = hour

    def __call__(self) -> datetime:
        return datetime(2024, 5, 1, self.hour, 30, 0)
