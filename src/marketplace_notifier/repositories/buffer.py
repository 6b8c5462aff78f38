from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class NotificationBuffer:
    """Append-only text file for notifications held back outside active hours."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def append(self, text: str) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(text)
            return True
        except (OSError, ValueError) as e:
            logger.error("Failed to append to buffer file %s: %s", self.path, e)
            return False

    def drain(self) -> str:
        """Return the buffered text and truncate the file.

        A missing file reads as empty. A file that can't be read or decoded
        is logged and left untouched, and reads as empty.
        """
        if not self.path.exists():
            return ""
        try:
            with self.path.open("r+", encoding="utf-8") as f:
                content = f.read()
                f.seek(0)
                f.truncate()
            return content
        except (OSError, ValueError) as e:
            logger.error("Failed to drain buffer file %s: %s", self.path, e)
            return ""

    def read(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except (OSError, ValueError) as e:
            logger.error("Failed to read buffer file %s: %s", self.path, e)
            return ""
