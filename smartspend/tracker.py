"""Session-level facade wiring the SmartSpend stores together."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from . import aggregation
from .alerts import AlertRegistry, Scheduler
from .budgets import BudgetOverview, threshold_alert
from .config import AppConfig
from .models import (
    Alert,
    BudgetGoal,
    BudgetStatus,
    Notification,
    Transaction,
    TransactionPayload,
    UserProfile,
    category_label,
)
from .reports import render_data_export, render_transaction_history
from .sample_data import generate_sample_transactions
from .services import (
    BudgetService,
    LedgerService,
    NotificationService,
    ProfileService,
    SettingsService,
)
from .storage import JSONStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransactionOutcome:
    """Everything produced by recording one transaction."""

    transaction: Transaction
    notification: Notification
    budget_status: Optional[BudgetStatus] = None
    alert: Optional[Alert] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "transaction": self.transaction.to_dict(),
            "notification": self.notification.to_dict(),
            "budget_status": self.budget_status.to_dict() if self.budget_status else None,
            "alert": self.alert.to_dict() if self.alert else None,
        }


class SmartSpend:
    """Builds every store once over a shared storage and coordinates side effects.

    All mutations run under one re-entrant lock so that a single writer at a
    time touches the durable snapshots.
    """

    def __init__(
        self,
        storage: JSONStorage,
        *,
        seed_demo: bool = True,
        scheduler: Optional[Scheduler] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._storage = storage
        self._today = today
        self._lock = threading.RLock()
        self.settings = SettingsService(storage)
        self.ledger = LedgerService(
            storage,
            settings=self.settings,
            seed=self._sample_ledger if seed_demo else None,
        )
        self.budgets = BudgetService(storage)
        self.notifications = NotificationService(storage)
        self.profile = ProfileService(storage)
        self.alerts = AlertRegistry(self.notifications, scheduler)
        self._aggregates = aggregation.MonthlyAggregateCache(
            self.ledger.list, lambda: self.ledger.revision
        )

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs) -> "SmartSpend":
        storage = JSONStorage(config.data_dir, retries=config.save_retries)
        kwargs.setdefault("seed_demo", config.seed_demo)
        return cls(storage, **kwargs)

    # Transactions ---------------------------------------------------------
    def record_transaction(self, payload: Dict[str, object]) -> TransactionOutcome:
        """Add a transaction, log it as a notification, and check the category budget."""
        with self._lock:
            transaction = self.ledger.add(payload)
            self.settings.mark_data_present()
            notification = self._notify_transaction(transaction)
            status: Optional[BudgetStatus] = None
            alert: Optional[Alert] = None
            if transaction.is_expense:
                status, alert = self._check_budget(transaction.category)
            return TransactionOutcome(transaction, notification, status, alert)

    def update_transaction(self, transaction_id: str, changes: Dict[str, object]) -> Transaction:
        with self._lock:
            return self.ledger.update(transaction_id, changes)

    def delete_transaction(self, transaction_id: str) -> bool:
        with self._lock:
            return self.ledger.delete(transaction_id)

    # Budgets --------------------------------------------------------------
    def set_budget(self, category: object, limit: object) -> BudgetGoal:
        with self._lock:
            goal = self.budgets.set_goal(category, limit)
            self.alerts.show(
                "Budget Created",
                f"Budget for {category_label(goal.category)} set to "
                f"{self.settings.currency}{goal.limit:.2f}",
                "success",
            )
            return goal

    def remove_budget(self, category: object) -> bool:
        with self._lock:
            return self.budgets.remove_goal(category)

    def budget_statuses(self, year: Optional[int] = None, month: Optional[int] = None) -> List[BudgetStatus]:
        year, month = self._period(year, month)
        return self.budgets.statuses(self.ledger.list(), year, month)

    def budget_overview(self, year: Optional[int] = None, month: Optional[int] = None) -> BudgetOverview:
        year, month = self._period(year, month)
        return self.budgets.overview(self.ledger.list(), year, month)

    # Notifications --------------------------------------------------------
    def mark_notification_read(self, notification_id: str) -> None:
        with self._lock:
            self.notifications.mark_read(notification_id)

    def mark_all_notifications_read(self) -> None:
        with self._lock:
            self.notifications.mark_all_read()

    def delete_notification(self, notification_id: str) -> None:
        with self._lock:
            self.notifications.delete(notification_id)

    def clear_notifications(self) -> None:
        with self._lock:
            self.notifications.clear_all()

    # Profile & settings ---------------------------------------------------
    def update_profile(self, changes: Dict[str, object]) -> UserProfile:
        with self._lock:
            return self.profile.update(changes)

    def update_settings(self, *, currency: object = None, theme: object = None) -> Dict[str, object]:
        """Apply the given preferences; ``None`` leaves a preference as it is."""
        with self._lock:
            if currency is not None:
                self.settings.set_currency(currency)
            if theme is not None:
                self.settings.set_theme(theme)
            return self.settings.to_dict()

    # Analytics ------------------------------------------------------------
    def monthly_summary(
        self, year: Optional[int] = None, month: Optional[int] = None
    ) -> aggregation.MonthlySummary:
        year, month = self._period(year, month)
        with self._lock:
            return self._aggregates.summary(year, month)

    def category_breakdown(
        self, year: Optional[int] = None, month: Optional[int] = None
    ) -> List[aggregation.CategoryShare]:
        year, month = self._period(year, month)
        return aggregation.category_breakdown(self.ledger.list(), year, month)

    # Reports --------------------------------------------------------------
    def export_history(
        self,
        *,
        type: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "date-desc",
        exported_at: Optional[datetime] = None,
    ) -> str:
        records = self.ledger.query(type=type, search=search, sort=sort)
        return render_transaction_history(records, self.settings.currency, exported_at)

    def export_data(self, exported_at: Optional[datetime] = None) -> str:
        return render_data_export(self.ledger.list(), self.settings.currency, exported_at)

    # Lifecycle ------------------------------------------------------------
    def clear_all(self) -> None:
        """Delete every data record and stop demo data from coming back."""
        with self._lock:
            self.ledger.clear()
            self.budgets.clear()
            self.notifications.clear_all()
            self.profile.clear()
            self.settings.mark_cleared()
            self.alerts.close()
            self._aggregates.invalidate()
            logger.info("Cleared all SmartSpend data in %s", self._storage.base_path)

    def reload(self) -> None:
        """Re-read every store from disk, as a fresh session would."""
        with self._lock:
            self.settings.load()
            self.ledger.load()
            self.budgets.load()
            self.notifications.load()
            self.profile.load()
            self._aggregates.invalidate()

    def close(self) -> None:
        self.alerts.close()

    # Internal helpers -----------------------------------------------------
    def _sample_ledger(self) -> List[Transaction]:
        return generate_sample_transactions(self._today())

    def _period(self, year: Optional[int], month: Optional[int]):
        today = self._today()
        return (year or today.year, month or today.month)

    def _notify_transaction(self, transaction: Transaction) -> Notification:
        currency = self.settings.currency
        label = category_label(transaction.category)
        income = transaction.type == "income"
        message = f"{'Received' if income else 'Spent'} {currency}{transaction.amount:.2f} for {label}"
        if transaction.notes:
            message += f" - {transaction.notes}"
        return self.notifications.add(
            "transaction",
            "Income Added" if income else "Expense Added",
            message,
            TransactionPayload(
                transaction_type=transaction.type,
                amount=transaction.amount,
                category=transaction.category,
                category_label=label,
                currency=currency,
                notes=transaction.notes,
            ),
        )

    def _check_budget(self, category: str):
        today = self._today()
        status = self.budgets.status_for(category, self.ledger.list(), today.year, today.month)
        if status is None:
            return None, None
        spec = threshold_alert(status, category_label(category), self.settings.currency)
        if spec is None:
            return status, None
        alert = self.alerts.show(spec.title, spec.message, spec.level, spec.duration_ms)
        return status, alert
