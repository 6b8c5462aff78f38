from __future__ import annotations

import argparse
import json
from pathlib import Path

from marketplace_notifier.services.categories import average_price_by_category, read_tsv


def main() -> None:
    parser = argparse.ArgumentParser(description="Compute average sold price per category")
    parser.add_argument("file", type=Path, help="Path to a TSV dataset (e.g. train.tsv)")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("categoryAvgPrice.json"),
        help="Where to write the category averages JSON",
    )
    args = parser.parse_args()

    with args.file.open("r", encoding="utf-8", newline="") as f:
        result = average_price_by_category(read_tsv(f))
    args.output.write_text(json.dumps(result, indent=2), encoding="utf-8")
    print(f"Wrote averages for {len(result)} categories to {args.output}")


if __name__ == "__main__":
    main()
