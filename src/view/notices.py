"""User-visible error notices.

Toasts expire on their own after a fixed time (write failures); banners
stay until dismissed or the screen is left (read failures).
"""

import itertools
import logging
import time
from collections.abc import Callable
from typing import Literal

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

NoticeKind = Literal["toast", "banner"]


class Notice(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    message: str
    kind: NoticeKind
    expires_at: float | None = None


class NoticeBoard:
    """Holds the notices of one screen. ``clock`` returns seconds (monotonic)."""

    def __init__(
        self,
        toast_ttl_s: float = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._toast_ttl_s = toast_ttl_s
        self._clock = clock
        self._ids = itertools.count(1)
        self._notices: list[Notice] = []

    def toast(self, message: str) -> Notice:
        """Add a notice that disappears after the toast TTL."""
        return self._add(message, "toast", self._clock() + self._toast_ttl_s)

    def banner(self, message: str) -> Notice:
        """Add a notice that stays until dismissed."""
        return self._add(message, "banner", None)

    def active(self) -> list[Notice]:
        """Notices still showing, oldest first. Expired toasts are dropped."""
        now = self._clock()
        self._notices = [
            n for n in self._notices if n.expires_at is None or n.expires_at > now
        ]
        return list(self._notices)

    def dismiss(self, notice_id: int) -> None:
        self._notices = [n for n in self._notices if n.id != notice_id]

    def clear(self) -> None:
        self._notices = []

    def _add(self, message: str, kind: NoticeKind, expires_at: float | None) -> Notice:
        notice = Notice(id=next(self._ids), message=message, kind=kind, expires_at=expires_at)
        self._notices.append(notice)
        logger.debug("Notice (%s): %s", kind, message)
        return notice
