"""Transient status notifications (toasts) shared by the resource managers.

Each notification enters, becomes visible shortly after, and starts exiting
once its dwell time has passed or the user dismisses it. It is dropped from
the display list when the exit transition is over.
"""
from __future__ import annotations
import asyncio
import itertools
import logging
import os
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field
from dotenv import load_dotenv

load_dotenv()

DWELL_SECONDS = float(os.getenv("HOSPITAL_ADMIN_TOAST_DWELL", "5"))
ENTER_DELAY = 0.1
EXIT_DURATION = 0.3

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class NotificationState(str, Enum):
    ENTERING = "entering"
    VISIBLE = "visible"
    EXITING = "exiting"


class Notification(BaseModel):
    id: int
    message: str
    kind: NotificationKind = NotificationKind.SUCCESS
    state: NotificationState = NotificationState.ENTERING
    created_at: datetime = Field(default_factory=datetime.now)


class NotificationChannel:
    """Ordered display list of notifications, each with its own timers.

    Must be used from inside a running event loop; timers are scheduled with
    ``loop.call_later``.
    """

    def __init__(self, dwell: float | None = None, enter_delay: float = ENTER_DELAY,
                 exit_duration: float = EXIT_DURATION):
        self.dwell = DWELL_SECONDS if dwell is None else dwell
        self.enter_delay = enter_delay
        self.exit_duration = exit_duration
        self._items: list[Notification] = []
        self._timers: dict[int, list[asyncio.TimerHandle]] = {}
        self._ids = itertools.count(1)

    def notify(self, message: str, kind: NotificationKind | str = NotificationKind.SUCCESS) -> Notification:
        loop = asyncio.get_running_loop()
        note = Notification(id=next(self._ids), message=message, kind=NotificationKind(kind))
        self._items.append(note)
        self._timers[note.id] = [
            loop.call_later(self.enter_delay, self._show, note.id),
            loop.call_later(self.dwell, self._begin_exit, note.id),
        ]
        logger.debug("notification %d (%s): %s", note.id, note.kind.value, message)
        return note

    def dismiss(self, note_id: int) -> bool:
        """Start the exit transition now, regardless of remaining dwell time."""
        return self._begin_exit(note_id)

    def active(self) -> list[Notification]:
        return list(self._items)

    def get(self, note_id: int) -> Notification | None:
        return next((n for n in self._items if n.id == note_id), None)

    def close(self) -> None:
        for handles in self._timers.values():
            for handle in handles:
                handle.cancel()
        self._timers.clear()
        self._items.clear()

    def _show(self, note_id: int) -> None:
        note = self.get(note_id)
        if note is not None and note.state is NotificationState.ENTERING:
            note.state = NotificationState.VISIBLE

    def _begin_exit(self, note_id: int) -> bool:
        note = self.get(note_id)
        if note is None or note.state is NotificationState.EXITING:
            return False
        for handle in self._timers.pop(note_id, []):
            handle.cancel()
        note.state = NotificationState.EXITING
        loop = asyncio.get_running_loop()
        self._timers[note_id] = [loop.call_later(self.exit_duration, self._remove, note_id)]
        return True

    def _remove(self, note_id: int) -> None:
        self._timers.pop(note_id, None)
        self._items = [n for n in self._items if n.id != note_id]
