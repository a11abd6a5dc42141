"""
Action log: a transcript of everything shown to and typed by the user.

Entries are stored exactly as given and written back-to-back, so each
entry carries its own trailing newline when it needs one.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class ActionLog:
    """Append-only list of transcript entries."""

    def __init__(self):
        self._entries: list[str] = []

    def log(self, entry: str) -> None:
        self._entries.append(entry)

    @property
    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def save(self, path: str) -> None:
        """
        Write every entry to ``path``, concatenated.

        Raises:
            OSError: If the file cannot be written
        """
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.writelines(self._entries)
        logger.debug("saved %d log entries to %s", len(self._entries), path)

    def __len__(self) -> int:
        return len(self._entries)
