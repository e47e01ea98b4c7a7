"""Transient, auto-expiring alerts."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol
from uuid import uuid4

from .models import Alert, AlertPayload
from .services import NotificationService
from .validators import ALERT_LEVELS, validate_enum

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MS = 5000


class Cancellable(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], Cancellable]


def timer_scheduler(delay_seconds: float, callback: Callable[[], None]) -> Cancellable:
    """Run ``callback`` once after ``delay_seconds`` on a daemon timer thread."""
    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    timer.start()
    return timer


class AlertRegistry:
    """In-memory alerts for the active session.

    Every alert shown is also recorded as an ``alert`` notification. Alerts
    remove themselves after their duration unless dismissed first.
    """

    def __init__(
        self,
        notifications: NotificationService,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self._notifications = notifications
        self._scheduler = scheduler or timer_scheduler
        self._alerts: List[Alert] = []
        self._timers: Dict[str, Cancellable] = {}
        # Expiry callbacks arrive on timer threads.
        self._lock = threading.Lock()

    def show(
        self,
        title: str,
        message: str,
        level: str = "info",
        duration_ms: int = DEFAULT_DURATION_MS,
    ) -> Alert:
        level = validate_enum(level, "level", ALERT_LEVELS)
        alert = Alert(
            id=f"alert_{uuid4().hex}",
            level=level,
            title=title,
            message=message,
            timestamp=datetime.now(timezone.utc),
            duration_ms=duration_ms,
        )
        self._notifications.add("alert", title, message, AlertPayload(level=level))
        with self._lock:
            self._alerts.append(alert)
        # Scheduled outside the lock: a scheduler may run the expiry inline.
        handle = self._scheduler(duration_ms / 1000, lambda: self._expire(alert.id))
        with self._lock:
            live = any(item.id == alert.id for item in self._alerts)
            if live:
                self._timers[alert.id] = handle
        if not live:
            handle.cancel()
        logger.debug("Showing %s alert %s: %s", level, alert.id, title)
        return alert

    def dismiss(self, alert_id: str) -> bool:
        with self._lock:
            timer = self._timers.pop(alert_id, None)
            removed = self._drop(alert_id)
        if timer is not None:
            timer.cancel()
        return removed

    def active(self) -> List[Alert]:
        with self._lock:
            return list(self._alerts)

    def close(self) -> None:
        """Cancel every pending expiry and forget all alerts."""
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
            self._alerts.clear()
        for timer in timers:
            timer.cancel()

    def _expire(self, alert_id: str) -> None:
        with self._lock:
            self._timers.pop(alert_id, None)
            self._drop(alert_id)

    def _drop(self, alert_id: str) -> bool:
        remaining = [alert for alert in self._alerts if alert.id != alert_id]
        removed = len(remaining) != len(self._alerts)
        self._alerts = remaining
        return removed

    def __len__(self) -> int:
        return len(self._alerts)
