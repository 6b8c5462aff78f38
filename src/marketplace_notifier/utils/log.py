from __future__ import annotations

import logging

FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Third-party loggers that are chatty at INFO/DEBUG
QUIET_LOGGERS = ("selenium", "urllib3", "apscheduler.executors", "scrapy")


def configure_logging(level: int | str = logging.INFO) -> None:
    """Install one stream handler on the root logger.

    Calling it twice replaces the handler rather than duplicating output.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root = logging.getLogger()
    for h in list(root.handlers):
        if getattr(h, "_marketplace_notifier", False):
            root.removeHandler(h)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(FORMAT))
    handler._marketplace_notifier = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, level))
