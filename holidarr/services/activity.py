"""Per-run activity log passed explicitly to the components that report progress."""

import logging
from datetime import datetime, timezone
from typing import List, Literal

from pydantic import BaseModel

logger = logging.getLogger(__name__)

ActivityKind = Literal["info", "success", "warning", "error"]

_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class ActivityEntry(BaseModel):
    """A single user-facing progress message."""

    timestamp: datetime
    kind: ActivityKind
    message: str


class ActivityLog:
    """Collects progress messages for one run and mirrors them to logging.

    Args:
        max_entries: Oldest entries are dropped past this size.
        log: Logger the entries are mirrored to.
    """

    def __init__(self, max_entries: int = 500, log: logging.Logger = logger):
        self.max_entries = max_entries
        self._log = log
        self._entries: List[ActivityEntry] = []

    def add(self, kind: ActivityKind, message: str) -> None:
        self._log.log(_LEVELS[kind], message)
        self._entries.append(
            ActivityEntry(
                timestamp=datetime.now(timezone.utc), kind=kind, message=message
            )
        )
        if len(self._entries) > self.max_entries:
            del self._entries[: len(self._entries) - self.max_entries]

    def info(self, message: str) -> None:
        self.add("info", message)

    def success(self, message: str) -> None:
        self.add("success", message)

    def warning(self, message: str) -> None:
        self.add("warning", message)

    def error(self, message: str) -> None:
        self.add("error", message)

    @property
    def entries(self) -> List[ActivityEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
