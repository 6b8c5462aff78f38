from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from marketplace_notifier.config import load_config
from marketplace_notifier.exceptions import ConfigError
from marketplace_notifier.utils.log import configure_logging
from marketplace_notifier.workers.scheduler import build_pipeline, run_forever, run_safely

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Watch marketplace searches and email new listings")
    parser.add_argument("--config", type=Path, default=Path("config.yaml"), help="YAML or JSON config file")
    parser.add_argument("--once", action="store_true", help="Run a single pass instead of on a schedule")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, ...)")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.error("%s", e)
        return 2
    if not config.search_terms:
        logger.error("No search terms configured in %s", args.config)
        return 2

    if args.once:
        summary = run_safely(build_pipeline(config))
        return 0 if summary is not None else 1
    run_forever(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
