"""Audit log accumulator for one reconciliation run.

A ``SyncLog`` collects timestamped lines in memory and forwards each one to
the diagnostic logger.  The reconciler appends it to the audit log file
exactly once per run, whether the run succeeded or failed.

Key design choices:

* **Explicit value** -- a fresh ``SyncLog`` is created per run and passed
  to every step, so nothing leaks between runs.
* **Append-only file** -- ``append_to()`` never truncates; earlier runs
  stay in the file.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

# Echoes every audit line to the diagnostic channel
AUDIT_LOGGER = "svn_mirror.sync"

logger = logging.getLogger(AUDIT_LOGGER)


def timestamp() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SyncLog:
    """Ordered, append-only list of ``[timestamp] message`` lines."""

    def __init__(self) -> None:
        self._lines: list[str] = []

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self):
        return iter(self._lines)

    @property
    def lines(self) -> list[str]:
        """A copy of the lines recorded so far."""
        return list(self._lines)

    def info(self, message: str) -> None:
        self._record(message, logging.INFO)

    def error(self, message: str) -> None:
        self._record(message, logging.ERROR)

    def _record(self, message: str, level: int) -> None:
        self._lines.append(f"[{timestamp()}] {message}")
        logger.log(level, message)

    def append_to(self, path: str | Path) -> None:
        """Append all lines to *path* (UTF-8), creating it if needed."""
        if not self._lines:
            return
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as fh:
            fh.write("\n".join(self._lines) + "\n")
