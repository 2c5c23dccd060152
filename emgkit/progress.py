"""Progress reporting with throttled fan-out to subscribers."""

from __future__ import annotations

import dataclasses
import logging
import math
import queue
import threading
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, List, Optional, Union

_log = logging.getLogger(__name__)

_SUBSCRIPTION_CAPACITY = 10
_DEFAULT_UPDATE_BUFFER = 0.1


@dataclass
class ProgressInfo:
    """A snapshot of the progress of a long-running calculation."""

    current_step: int = 0
    total_steps: int = 0
    percentage: float = 0.0
    status: str = ""
    channel_index: int = 0
    channel_name: str = ""
    elapsed_time: str = ""
    estimated_time: str = ""


ProgressCallback = Callable[[ProgressInfo], None]


def _format_duration(total: Union[float, timedelta]) -> str:
    """Render a duration rounded to whole seconds, e.g. ``1h2m3s``."""
    seconds = total.total_seconds() if isinstance(total, timedelta) else float(total)
    sign = "-" if seconds < 0 else ""
    whole = int(math.floor(abs(seconds) + 0.5))
    if whole == 0:
        return "0s"
    hours, rest = divmod(whole, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"


class _Subscription:
    """A bounded mailbox of progress updates for one subscriber."""

    def __init__(self, capacity: int = _SUBSCRIPTION_CAPACITY) -> None:
        self._queue: "queue.Queue[ProgressInfo]" = queue.Queue(capacity)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _offer(self, info: ProgressInfo) -> bool:
        if self._closed:
            return False
        try:
            self._queue.put_nowait(info)
        except queue.Full:
            return False
        return True

    def _close(self) -> None:
        self._closed = True

    def get(self, timeout: Optional[float] = None) -> ProgressInfo:
        """Return the next update; raises ``queue.Empty`` if none arrives."""
        if timeout is None:
            return self._queue.get_nowait()
        return self._queue.get(timeout=timeout)

    def drain(self) -> List[ProgressInfo]:
        """Remove and return every update waiting in the mailbox."""
        items: List[ProgressInfo] = []
        while True:
            try:
                items.append(self._queue.get_nowait())
            except queue.Empty:
                return items


class ProgressManager:
    """Keeps the latest progress and forwards updates to subscribers."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._current: Optional[ProgressInfo] = None
        self._subscribers: List[_Subscription] = []
        self._active = False
        self._last_update: Optional[float] = None
        self._update_buffer = _DEFAULT_UPDATE_BUFFER

    def set_update_buffer(self, seconds: float) -> None:
        """Set the minimum interval between forwarded updates."""
        with self._lock:
            self._update_buffer = float(seconds)

    def subscribe(self) -> _Subscription:
        """Register a new subscriber; it immediately gets the current progress."""
        with self._lock:
            subscription = _Subscription()
            self._subscribers.append(subscription)
            if self._current is not None:
                subscription._offer(dataclasses.replace(self._current))
            _log.debug("new progress subscriber (count=%d)", len(self._subscribers))
            return subscription

    def unsubscribe(self, subscription: _Subscription) -> None:
        """Close and remove a subscriber."""
        with self._lock:
            for index, candidate in enumerate(self._subscribers):
                if candidate is subscription:
                    candidate._close()
                    del self._subscribers[index]
                    break
            _log.debug("progress unsubscribe (count=%d)", len(self._subscribers))

    def update_progress(self, info: ProgressInfo) -> None:
        """Record an update and forward it, unless it arrives too soon."""
        with self._lock:
            now = time.monotonic()
            if (
                self._last_update is not None
                and self._last_update + self._update_buffer > now
                and info.percentage < 100
            ):
                return
            self._last_update = now
            self._current = info

            for index in range(len(self._subscribers) - 1, -1, -1):
                subscriber = self._subscribers[index]
                if not subscriber._offer(dataclasses.replace(info)):
                    subscriber._close()
                    del self._subscribers[index]
                    _log.warning(
                        "removed unresponsive progress subscriber (remaining=%d)",
                        len(self._subscribers),
                    )

            _log.debug(
                "progress %.1f%% %s (channel=%d, subscribers=%d)",
                info.percentage,
                info.status,
                info.channel_index,
                len(self._subscribers),
            )

    def current_progress(self) -> Optional[ProgressInfo]:
        """Return a copy of the latest progress, or None."""
        with self._lock:
            if self._current is None:
                return None
            return dataclasses.replace(self._current)

    def start(self) -> None:
        with self._lock:
            self._active = True
            _log.info("progress manager started")

    def stop(self) -> None:
        """Deactivate and close every subscriber."""
        with self._lock:
            self._active = False
            for subscriber in self._subscribers:
                subscriber._close()
            self._subscribers = []
            _log.info("progress manager stopped")

    def is_active(self) -> bool:
        with self._lock:
            return self._active

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def create_progress_callback(self) -> ProgressCallback:
        return self.update_progress

    def send_completion_notification(
        self, status: str, total_time: Union[float, timedelta]
    ) -> None:
        """Publish a 100% update carrying the total elapsed time."""
        self.update_progress(
            ProgressInfo(
                current_step=100,
                total_steps=100,
                percentage=100,
                status=status,
                channel_index=0,
                channel_name="",
                elapsed_time=_format_duration(total_time),
                estimated_time="完成",
            )
        )

    def send_error_notification(self, error_message: str) -> None:
        """Publish an error update, keeping the step figures of the last one."""
        with self._lock:
            current = self._current
        info = ProgressInfo(
            status="錯誤: " + error_message,
            channel_index=0,
            channel_name="",
            estimated_time="已停止",
        )
        if current is not None:
            info.current_step = current.current_step
            info.total_steps = current.total_steps
            info.percentage = current.percentage
            info.elapsed_time = current.elapsed_time
        self.update_progress(info)