from __future__ import annotations

import threading
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, List

import pytest

from smartspend.models import Transaction
from smartspend.storage import JSONStorage
from smartspend.tracker import SmartSpend

TODAY = date(2026, 3, 15)


class _Handle:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.callback()


class ManualScheduler:
    """Collects expiry callbacks so tests decide when time passes."""

    def __init__(self) -> None:
        self.handles: List[_Handle] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> _Handle:
        handle = _Handle(delay, callback)
        self.handles.append(handle)
        return handle

    def fire_all(self) -> None:
        for handle in list(self.handles):
            handle.fire()


class ParkedSave:
    """Stand-in for ``JSONStorage.save`` that holds the first write of one resource.

    The writer blocks until ``release`` is set, so a test can start a second
    writer while the first is half-way through its commit.
    """

    def __init__(self, storage: JSONStorage, resource: str) -> None:
        self._save = storage.save
        self._resource = resource
        self._parked = False
        self.entered = threading.Event()
        self.release = threading.Event()

    def __call__(self, resource: str, payload) -> None:
        if resource == self._resource and not self._parked:
            self._parked = True
            self.entered.set()
            self.release.wait(5)
        self._save(resource, payload)


def make_txn(
    txn_id: str,
    kind: str,
    amount: str,
    category: str,
    on: date,
    notes: str = None,
    method: str = "cash",
) -> Transaction:
    return Transaction(
        id=txn_id,
        type=kind,
        amount=Decimal(amount),
        category=category,
        date=on,
        payment_method=method,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        notes=notes,
    )


@pytest.fixture
def storage(tmp_path) -> JSONStorage:
    return JSONStorage(tmp_path / "data", retry_delay=0)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def tracker(storage, scheduler) -> SmartSpend:
    app = SmartSpend(storage, seed_demo=False, scheduler=scheduler, today=lambda: TODAY)
    yield app
    app.close()


@pytest.fixture
def seeded_tracker(storage, scheduler) -> SmartSpend:
    app = SmartSpend(storage, seed_demo=True, scheduler=scheduler, today=lambda: TODAY)
    yield app
    app.close()
