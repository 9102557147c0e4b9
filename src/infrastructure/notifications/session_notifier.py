"""Per-session notification queue feeding the SSE stream."""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from src.domain.entities.workflow_state import Severity

logger = logging.getLogger(__name__)

DEFAULT_MAX_PENDING = 50


@dataclass(frozen=True)
class Notification:
    message: str
    severity: Severity
    created_at: float = field(default_factory=time.time)


class SessionNotifier:
    """Implements NotifierPort with a bounded queue; the oldest entry is dropped when full."""

    def __init__(self, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        self._queue: asyncio.Queue[Notification | None] = asyncio.Queue(maxsize=max_pending)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def notify(self, message: str, severity: Severity) -> None:
        if self._closed:
            logger.debug("Notification after close dropped: %r", message)
            return
        self._put(Notification(message=message, severity=Severity(severity)))

    def drain(self) -> list[Notification]:
        """Pop every pending notification without waiting."""
        items: list[Notification] = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is not None:
                items.append(item)
        return items

    async def next(self, timeout: float | None = None) -> Notification | None:
        """Wait for the next notification; None on timeout or once closed."""
        if self._closed and self._queue.empty():
            return None
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    def close(self) -> None:
        """Wake any waiting stream so it can finish."""
        if self._closed:
            return
        self._closed = True
        self._put(None)

    def _put(self, item: Notification | None) -> None:
        if self._queue.full():
            dropped = self._queue.get_nowait()
            logger.warning("Notification queue full, dropping %r", dropped.message if dropped else None)
        self._queue.put_nowait(item)
