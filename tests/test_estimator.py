from __future__ import annotations

import json
from pathlib import Path

from marketplace_notifier.repositories import load_category_averages
from marketplace_notifier.services.estimator import EstimatorConfig, ResaleEstimator, category_tokens


def test_half_of_asking_price() -> None:
    est = ResaleEstimator()
    assert est.estimate("$100", "x", "") == "$50.00"


def test_free_without_categories_is_not_available() -> None:
    est = ResaleEstimator()
    assert est.estimate("Free", "x", "") == "n/a"
    assert est.estimate("$0", "x", "") == "n/a"


def test_category_fallback_for_free_items() -> None:
    est = ResaleEstimator(EstimatorConfig(category_averages={"Electronics": 300}))
    assert est.estimate("Free", "Electronics Deal", "") == "$150.00"


def test_category_path_tokens_and_first_match() -> None:
    averages = {
        "Home/Kitchen > Appliances": 80.0,
        "Electronics/Cell Phones & Accessories": 120.0,
    }
    est = ResaleEstimator(EstimatorConfig(category_averages=averages))
    assert category_tokens("Home/Kitchen > Appliances") == ["home", "kitchen", "appliances"]
    # "kitchen" matches the first category before "cell phones" is tried
    assert est.estimate("Free", "Kitchen table and cell phones", "") == "$40.00"
    assert est.match_category("free cell phones & accessories lot") == "Electronics/Cell Phones & Accessories"


def test_non_positive_or_missing_average_is_not_available() -> None:
    est = ResaleEstimator(EstimatorConfig(category_averages={"Toys": 0, "Books": None}))
    assert est.estimate("Free", "toys", "") == "n/a"
    assert est.estimate("Free", "books", "") == "n/a"


def test_disabled_estimator_returns_empty() -> None:
    est = ResaleEstimator(EstimatorConfig(enabled=False))
    assert est.estimate("$100", "x", "") == ""


def test_load_category_averages_accepts_tool_output(tmp_path: Path) -> None:
    path = tmp_path / "categoryAvgPrice.json"
    path.write_text(
        json.dumps({"Electronics": {"count": 3, "avgPrice": 200.0}, "Toys": 12, "Bad": "x"}),
        encoding="utf-8",
    )
    averages = load_category_averages(path)
    assert list(averages) == ["Electronics", "Toys", "Bad"]
    assert averages == {"Electronics": 200.0, "Toys": 12.0, "Bad": None}
    est = ResaleEstimator(EstimatorConfig(category_averages=averages))
    assert est.estimate("Free", "electronics bundle", "") == "$100.00"


def test_load_category_averages_missing_or_broken(tmp_path: Path) -> None:
    assert load_category_averages(None) == {}
    assert load_category_averages(tmp_path / "nope.json") == {}
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    assert load_category_averages(broken) == {}
