import threading

import pytest

from smartspend.alerts import AlertRegistry, timer_scheduler
from smartspend.exceptions import ValidationError
from smartspend.models import AlertPayload
from smartspend.services import NotificationService


@pytest.fixture
def notifications(storage):
    return NotificationService(storage)


@pytest.fixture
def registry(notifications, scheduler):
    return AlertRegistry(notifications, scheduler)


def test_show_records_alert_and_notification(registry, scheduler, notifications):
    alert = registry.show("Saved", "Your budget was saved", "success")

    assert registry.active() == [alert]
    assert alert.duration_ms == 5000
    assert scheduler.handles[0].delay == 5.0

    (notification,) = notifications.list()
    assert notification.type == "alert"
    assert notification.title == "Saved"
    assert notification.data == AlertPayload("success")


def test_alert_expires_after_duration(registry, scheduler, notifications):
    registry.show("One", "first", duration_ms=1000)

    scheduler.fire_all()

    assert registry.active() == []
    # Expiry does not touch the durable notification history.
    assert len(notifications.list()) == 1


def test_dismiss_cancels_expiry(registry, scheduler):
    alert = registry.show("One", "first")
    other = registry.show("Two", "second")

    assert registry.dismiss(alert.id) is True
    assert scheduler.handles[0].cancelled is True
    assert registry.active() == [other]


def test_expiry_after_removal_is_silent(registry, scheduler):
    alert = registry.show("One", "first")
    callback = scheduler.handles[0].callback

    registry.dismiss(alert.id)
    callback()

    assert registry.dismiss(alert.id) is False
    assert registry.active() == []


def test_close_cancels_all_pending_timers(registry, scheduler):
    registry.show("One", "first")
    registry.show("Two", "second")

    registry.close()

    assert registry.active() == []
    assert all(handle.cancelled for handle in scheduler.handles)


def test_rejects_unknown_level(registry):
    with pytest.raises(ValidationError):
        registry.show("Bad", "level", "critical")
    assert registry.active() == []


def test_timer_scheduler_runs_callback_on_daemon_thread():
    fired = threading.Event()

    timer = timer_scheduler(0.01, fired.set)

    assert timer.daemon is True
    assert fired.wait(2.0)


def test_timer_scheduler_can_be_cancelled():
    fired = threading.Event()

    timer = timer_scheduler(5, fired.set)
    timer.cancel()
    timer.join(1.0)

    assert not fired.is_set()


def test_scheduler_that_expires_immediately_does_not_block(notifications):
    def inline_scheduler(delay, callback):
        callback()
        return threading.Timer(delay, lambda: None)

    registry = AlertRegistry(notifications, inline_scheduler)

    alert = registry.show("Quick", "gone at once", duration_ms=0)

    assert registry.active() == []
    assert registry.dismiss(alert.id) is False
    assert len(notifications.list()) == 1
