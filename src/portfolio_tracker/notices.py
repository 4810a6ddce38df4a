"""
notices.py – Transient user-facing notices
==========================================
Components post short messages here instead of talking to the UI directly.
The Streamlit front end drains the board on every rerun and shows each
notice as a toast; the console demo prints them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional


class NoticeLevel(str, Enum):
    ERROR   = "error"    # red
    WARNING = "warning"  # orange/amber
    INFO    = "info"     # blue
    SUCCESS = "success"  # green


NOTICE_ICON: dict[NoticeLevel, str] = {
    NoticeLevel.ERROR:   "🚫",
    NoticeLevel.WARNING: "⚠️",
    NoticeLevel.INFO:    "ℹ️",
    NoticeLevel.SUCCESS: "🎉",
}


@dataclass
class Notice:
    level:      NoticeLevel
    message:    str
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def icon(self) -> str:
        return NOTICE_ICON[self.level]


class NoticeBoard:
    """Collects notices until the UI drains them."""

    def __init__(self, listener: Optional[Callable[[Notice], None]] = None):
        self._pending: list[Notice] = []
        self._listener = listener

    def post(self, level: NoticeLevel, message: str) -> Notice:
        notice = Notice(level=level, message=message)
        self._pending.append(notice)
        if self._listener is not None:
            self._listener(notice)
        return notice

    def success(self, message: str) -> Notice:
        return self.post(NoticeLevel.SUCCESS, message)

    def info(self, message: str) -> Notice:
        return self.post(NoticeLevel.INFO, message)

    def warning(self, message: str) -> Notice:
        return self.post(NoticeLevel.WARNING, message)

    def error(self, message: str) -> Notice:
        return self.post(NoticeLevel.ERROR, message)

    @property
    def pending(self) -> list[Notice]:
        return list(self._pending)

    def drain(self) -> list[Notice]:
        """Return and clear every pending notice."""
        notices, self._pending = self._pending, []
        return notices
