import threading
from datetime import date
from decimal import Decimal

import pytest

from conftest import TODAY, ParkedSave
from smartspend.config import AppConfig
from smartspend.exceptions import ValidationError
from smartspend.models import AlertPayload, TransactionPayload
from smartspend.services import NotificationService, SettingsService
from smartspend.tracker import SmartSpend


def _expense(amount, category="food", on=TODAY, notes=None):
    return {
        "type": "expense",
        "amount": amount,
        "category": category,
        "date": on.isoformat(),
        "payment_method": "card",
        "notes": notes,
    }


def _alert_notifications(tracker):
    return [item for item in tracker.notifications.list() if item.type == "alert"]


def test_expense_crossing_warning_threshold_emits_one_alert(tracker):
    tracker.set_budget("food", "100")
    alerts_before = len(_alert_notifications(tracker))
    total_before = len(tracker.notifications.list())

    outcome = tracker.record_transaction(_expense("85"))

    assert outcome.budget_status.state == "warning"
    assert outcome.alert.level == "warning"
    assert len(_alert_notifications(tracker)) == alerts_before + 1
    assert len(tracker.notifications.list()) == total_before + 2
    newest_alert = _alert_notifications(tracker)[0]
    assert newest_alert.data == AlertPayload("warning")
    assert "85%" in newest_alert.message


def test_expense_below_threshold_raises_no_alert(tracker):
    tracker.set_budget("food", "100")
    alerts_before = len(_alert_notifications(tracker))

    outcome = tracker.record_transaction(_expense("74"))

    assert outcome.budget_status.state == "ok"
    assert outcome.alert is None
    assert len(_alert_notifications(tracker)) == alerts_before


def test_expense_over_limit_raises_error_alert(tracker):
    tracker.set_budget("food", "100")

    outcome = tracker.record_transaction(_expense("101"))

    assert outcome.budget_status.state == "exceeded"
    assert outcome.alert.level == "error"
    assert outcome.alert.duration_ms == 6000
    assert outcome.alert in tracker.alerts.active()


def test_repeated_additions_above_threshold_alert_every_time(tracker):
    tracker.set_budget("food", "100")
    tracker.record_transaction(_expense("80"))
    alerts_before = len(_alert_notifications(tracker))

    tracker.record_transaction(_expense("5"))
    tracker.record_transaction(_expense("5"))

    assert len(_alert_notifications(tracker)) == alerts_before + 2


def test_spend_outside_current_month_does_not_count(tracker):
    tracker.set_budget("food", "100")
    tracker.record_transaction(_expense("90", on=date(2026, 2, 10)))

    outcome = tracker.record_transaction(_expense("10"))

    assert outcome.budget_status.spent == Decimal("10.00")
    assert outcome.alert is None


def test_no_budget_or_income_skips_evaluation(tracker):
    expense = tracker.record_transaction(_expense("500", category="rent"))
    income = tracker.record_transaction(
        {"type": "income", "amount": "900", "category": "salary", "date": TODAY.isoformat()}
    )

    assert expense.budget_status is None and expense.alert is None
    assert income.budget_status is None and income.alert is None
    assert _alert_notifications(tracker) == []


def test_transaction_notification_describes_the_entry(tracker):
    tracker.settings.set_currency("€")

    outcome = tracker.record_transaction(_expense("12.5", notes="Lunch"))

    notification = outcome.notification
    assert notification.type == "transaction"
    assert notification.title == "Expense Added"
    assert notification.message == "Spent €12.50 for Food & Dining - Lunch"
    assert notification.data == TransactionPayload(
        transaction_type="expense",
        amount=Decimal("12.50"),
        category="food",
        category_label="Food & Dining",
        currency="€",
        notes="Lunch",
    )

    income = tracker.record_transaction(
        {"type": "income", "amount": "100", "category": "freelance", "date": TODAY.isoformat()}
    )
    assert income.notification.title == "Income Added"
    assert income.notification.message == "Received €100.00 for Freelance"


def test_invalid_transaction_changes_nothing(tracker):
    with pytest.raises(ValidationError):
        tracker.record_transaction(_expense("-3"))

    assert tracker.ledger.list() == []
    assert tracker.notifications.list() == []


def test_set_budget_shows_success_alert(tracker):
    tracker.set_budget("rent", "1200")

    (alert,) = tracker.alerts.active()
    assert alert.level == "success"
    assert alert.message == "Budget for Rent & Housing set to $1200.00"


def test_balance_equals_income_minus_expenses(seeded_tracker):
    summary = seeded_tracker.monthly_summary()

    assert summary.income == Decimal("5350")
    assert summary.expenses == Decimal("2080")
    assert summary.balance == summary.income - summary.expenses
    assert sum(summary.by_category.values()) == summary.expenses
    assert sum(summary.daily.values()) == summary.expenses


def test_summary_reflects_mutations(tracker):
    assert tracker.monthly_summary().expenses == Decimal("0")

    outcome = tracker.record_transaction(_expense("40"))
    assert tracker.monthly_summary().expenses == Decimal("40")

    tracker.delete_transaction(outcome.transaction.id)
    assert tracker.monthly_summary().expenses == Decimal("0")
    assert tracker.delete_transaction(outcome.transaction.id) is False


def test_update_transaction_is_reflected_in_budget_status(tracker):
    tracker.set_budget("food", "100")
    outcome = tracker.record_transaction(_expense("10"))

    tracker.update_transaction(outcome.transaction.id, {"amount": "90"})

    (status,) = tracker.budget_statuses()
    assert status.spent == Decimal("90.00")
    assert status.state == "warning"


def test_seeded_install_has_demo_ledger(seeded_tracker):
    assert len(seeded_tracker.ledger.list()) == 13
    assert all(txn.date.month == TODAY.month for txn in seeded_tracker.ledger.list())


def test_clear_all_removes_records_and_prevents_reseeding(seeded_tracker, storage, scheduler):
    seeded_tracker.set_budget("food", "100")
    seeded_tracker.profile.update({"name": "Asha"})
    seeded_tracker.settings.set_currency("₹")

    seeded_tracker.clear_all()

    for resource in ("transactions.json", "budgets.json", "notifications.json", "profile.json"):
        assert not storage.exists(resource)
    assert seeded_tracker.settings.data_cleared is True
    assert seeded_tracker.alerts.active() == []

    seeded_tracker.reload()
    assert seeded_tracker.ledger.list() == []

    fresh = SmartSpend(storage, seed_demo=True, scheduler=scheduler, today=lambda: TODAY)
    assert fresh.ledger.list() == []
    assert fresh.budgets.list() == []
    assert fresh.profile.get().name == "SmartSpend User"
    assert fresh.settings.currency == "₹"


def test_adding_after_clear_lifts_the_clear_marker(tracker):
    tracker.clear_all()

    tracker.record_transaction(_expense("5"))

    assert tracker.settings.data_cleared is False


def test_export_history_of_empty_ledger(tracker):
    report = tracker.export_history()

    assert report.startswith("TRANSACTION HISTORY\nExported: ")
    assert "No transactions to export." in report


def test_export_history_filters_and_sorts(tracker):
    tracker.record_transaction(_expense("5", notes="Coffee"))
    tracker.record_transaction(_expense("50", category="transport"))
    tracker.record_transaction(
        {"type": "income", "amount": "900", "category": "salary", "date": TODAY.isoformat()}
    )

    report = tracker.export_history(type="expense", sort="amount-desc")

    assert "1. Transport" in report
    assert "2. Food & Dining" in report
    assert "Salary" not in report


def test_from_config_uses_data_dir(tmp_path, scheduler):
    config = AppConfig(data_dir=tmp_path / "store", seed_demo=False)

    app = SmartSpend.from_config(config, scheduler=scheduler)
    app.record_transaction(_expense("5"))

    assert (tmp_path / "store" / "transactions.json").exists()


def _income(amount):
    return {"type": "income", "amount": amount, "category": "salary", "date": TODAY.isoformat()}


def _run_interleaved(storage, monkeypatch, resource, first_writer, second_writer):
    """Hold ``first_writer`` inside its save of ``resource`` while ``second_writer`` starts."""
    parked = ParkedSave(storage, resource)
    monkeypatch.setattr(storage, "save", parked)
    results = []
    first = threading.Thread(target=first_writer)
    second = threading.Thread(target=lambda: results.append(second_writer()))

    first.start()
    assert parked.entered.wait(5)
    second.start()
    second.join(0.2)
    waited = second.is_alive()
    parked.release.set()
    first.join(5)
    second.join(5)

    assert waited, "second writer ran while the first still held the store"
    return results[0]


def test_marking_read_does_not_drop_a_concurrent_transaction_notification(
    tracker, storage, monkeypatch
):
    earlier = tracker.record_transaction(_expense("5")).notification

    outcome = _run_interleaved(
        storage,
        monkeypatch,
        "notifications.json",
        lambda: tracker.mark_notification_read(earlier.id),
        lambda: tracker.record_transaction(_income("20")),
    )

    stored = {item.id: item for item in NotificationService(storage).list()}
    assert outcome.notification.id in stored
    assert stored[earlier.id].read is True
    assert tracker.notifications.list() == list(stored.values())


def test_settings_change_survives_a_concurrent_transaction(tracker, storage, monkeypatch):
    tracker.clear_all()

    _run_interleaved(
        storage,
        monkeypatch,
        "settings.json",
        lambda: tracker.update_settings(currency="₹"),
        lambda: tracker.record_transaction(_expense("5")),
    )

    stored = SettingsService(storage)
    assert stored.currency == "₹"
    assert stored.data_cleared is False


def test_update_settings_applies_only_given_values(tracker):
    tracker.settings.set_theme("dark")

    assert tracker.update_settings(currency="£") == {
        "currency": "£",
        "theme": "dark",
        "data_cleared": False,
    }


def test_profile_and_notification_mutations_go_through_the_facade(tracker):
    first = tracker.record_transaction(_expense("5")).notification
    tracker.record_transaction(_expense("6"))

    tracker.mark_notification_read(first.id)
    assert tracker.notifications.unread_count == 1
    tracker.mark_all_notifications_read()
    assert tracker.notifications.unread_count == 0
    tracker.delete_notification(first.id)
    assert len(tracker.notifications.list()) == 1
    tracker.clear_notifications()
    assert tracker.notifications.list() == []

    assert tracker.update_profile({"name": "Asha"}).name == "Asha"
