"""Single-slot, auto-expiring user notification."""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Literal

from pydantic import BaseModel

from portal.timewindows import local_now

logger = logging.getLogger("portal.toast")

Severity = Literal["success", "warning", "error"]


class Toast(BaseModel):
    message: str
    severity: Severity
    shown_at: datetime


class ToastChannel:
    """Holds at most one toast.

    A new toast replaces the previous one. A toast older than ``duration``
    reads as cleared; nothing has to fire for that to happen.
    """

    def __init__(self, duration: float = 3.0, clock: Callable[[], datetime] = local_now):
        self.duration = timedelta(seconds=duration)
        self._clock = clock
        self._toast: Toast | None = None

    def show(self, message: str, severity: Severity = "success") -> Toast:
        toast = Toast(message=message, severity=severity, shown_at=self._clock())
        self._toast = toast
        logger.debug("toast severity=%s message=%s", severity, message)
        return toast

    @property
    def current(self) -> Toast | None:
        toast = self._toast
        if toast is None:
            return None
        if self._clock() - toast.shown_at >= self.duration:
            self._toast = None
            return None
        return toast

    def clear(self) -> None:
        self._toast = None
