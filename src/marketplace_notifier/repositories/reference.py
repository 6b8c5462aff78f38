from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


def _average(value: object) -> Optional[float]:
    # Accept both {"Cat": 12.5} and the averages tool's {"Cat": {"avgPrice": 12.5}}
    if isinstance(value, dict):
        value = value.get("avgPrice")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def load_category_averages(path: str | os.PathLike[str] | None) -> Dict[str, Optional[float]]:
    """Load the category -> average price mapping.

    Missing or unparseable files give an empty mapping. Key order is kept as
    it appears in the file; the estimator relies on it for first-match.
    Entries whose value isn't numeric map to ``None``.
    """
    if not path:
        return {}
    p = Path(path)
    if not p.exists():
        return {}
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Failed to load category averages %s: %s", p, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("Category averages %s is not a JSON object", p)
        return {}
    return {str(k): _average(v) for k, v in data.items()}
