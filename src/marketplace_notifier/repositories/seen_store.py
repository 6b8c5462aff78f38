"""JSON file holding the ids of listings already handled."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterable, Set

logger = logging.getLogger(__name__)

KEY = "pastItems"


class SeenStore:
    """Process-wide set of seen listing ids backed by a JSON file.

    Ids are shared across search terms. ``load`` and ``save`` never raise:
    a broken file degrades to an empty set and a failed write leaves the
    previous file in place.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._seen: Set[str] = set()
        # Insertion order is kept so the file stays stable between runs
        self._order: list[str] = []

    def load(self) -> Set[str]:
        self._seen = set()
        self._order = []
        try:
            if not self.path.exists():
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.write_text(json.dumps({KEY: []}), encoding="utf-8")
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            ids = data.get(KEY, [])
            if not isinstance(ids, list):
                raise ValueError(f"{KEY} is not a list")
            self.add_many(str(x) for x in ids if x is not None)
        except (OSError, ValueError) as e:
            logger.error("Failed to read seen items file %s: %s", self.path, e)
            self._seen = set()
            self._order = []
        return set(self._seen)

    def save(self) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps({KEY: self._order}), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            logger.error("Failed to write seen items file %s: %s", self.path, e)

    def contains(self, listing_id: str) -> bool:
        return listing_id in self._seen

    def add(self, listing_id: str) -> None:
        if listing_id and listing_id not in self._seen:
            self._seen.add(listing_id)
            self._order.append(listing_id)

    def add_many(self, ids: Iterable[str]) -> None:
        for listing_id in ids:
            self.add(listing_id)

    def __len__(self) -> int:
        return len(self._seen)
