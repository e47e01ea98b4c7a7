"""Demo ledger used to populate a fresh installation."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from .models import Transaction

# (id, type, amount, category, day of month, notes, payment method)
_SAMPLE_ROWS = (
    ("1", "income", "4500", "salary", 1, "Monthly salary", "bank"),
    ("2", "income", "850", "freelance", 5, "Web design project", "bank"),
    ("3", "expense", "1200", "rent", 1, "Monthly rent", "bank"),
    ("4", "expense", "85", "food", 3, "Groceries", "card"),
    ("5", "expense", "45", "transport", 4, "Gas", "card"),
    ("6", "expense", "120", "shopping", 6, "New clothes", "card"),
    ("7", "expense", "15", "entertainment", 7, "Netflix subscription", "card"),
    ("8", "expense", "65", "food", 8, "Restaurant dinner", "card"),
    ("9", "expense", "180", "bills", 10, "Electric & internet", "bank"),
    ("10", "expense", "35", "health", 12, "Pharmacy", "cash"),
    ("11", "expense", "250", "investment", 15, "Stock purchase", "bank"),
    ("12", "expense", "55", "food", 18, "Groceries", "card"),
    ("13", "expense", "30", "transport", 20, "Uber rides", "upi"),
)


def generate_sample_transactions(today: Optional[date] = None) -> List[Transaction]:
    """Build the demo transactions for the month containing ``today``, newest first."""
    today = today or date.today()
    transactions = []
    for txn_id, kind, amount, category, day, notes, method in _SAMPLE_ROWS:
        when = date(today.year, today.month, day)
        transactions.append(
            Transaction(
                id=txn_id,
                type=kind,
                amount=Decimal(amount).quantize(Decimal("0.01")),
                category=category,
                date=when,
                payment_method=method,
                created_at=datetime(when.year, when.month, when.day, tzinfo=timezone.utc),
                notes=notes,
            )
        )
    return sorted(transactions, key=lambda txn: txn.created_at, reverse=True)
