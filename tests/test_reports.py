from datetime import date, datetime, timezone

from conftest import make_txn
from smartspend.reports import render_data_export, render_transaction_history

EXPORTED_AT = datetime(2026, 3, 15, 9, 30, tzinfo=timezone.utc)


def test_empty_history_keeps_header():
    report = render_transaction_history([], "$", EXPORTED_AT)

    assert report.splitlines()[:3] == [
        "TRANSACTION HISTORY",
        "Exported: 2026-03-15T09:30:00Z",
        "=" * 47,
    ]
    assert report.rstrip().endswith("No transactions to export.")


def test_history_lists_each_transaction_block():
    records = [
        make_txn("1", "expense", "12.5", "food", date(2026, 3, 3), notes="Lunch", method="upi"),
        make_txn("2", "income", "4500", "salary", date(2026, 3, 1), method="bank"),
    ]

    report = render_transaction_history(records, "£", EXPORTED_AT)

    assert (
        "1. Food & Dining\n"
        "   Amount: £12.50\n"
        "   Type: expense\n"
        "   Date: 2026-03-03\n"
        "   Method: upi\n"
        "   Notes: Lunch\n"
    ) in report
    assert "2. Salary\n   Amount: £4500.00\n" in report
    assert report.count("Notes:") == 1


def test_data_export_summary_and_empty_body():
    report = render_data_export([], "$", EXPORTED_AT)

    assert report.startswith("SMARTSPEND DATA EXPORT\nExported: 2026-03-15T09:30:00Z\n")
    assert "Total Transactions: 0" in report
    assert "No transactions recorded." in report


def test_data_export_totals():
    records = [
        make_txn("1", "expense", "250", "investment", date(2026, 3, 15), notes="Stock purchase"),
        make_txn("2", "expense", "85", "food", date(2026, 3, 3)),
        make_txn("3", "income", "100", "investment", date(2026, 3, 4)),
    ]

    report = render_data_export(records, "$", EXPORTED_AT)

    assert "Total Expense: $335.00" in report
    assert "Total Investment: $350.00" in report
    assert "1. Stock purchase\n   Amount: $250\n" in report
    assert "2. Food & Dining" in report
