"""Pure aggregation functions over a ledger snapshot.

Nothing here touches persistence: every function takes an explicit iterable of
:class:`~smartspend.models.Transaction` and recomputes from scratch. Months are
1-based (January is 1). Callers that need memoisation can wrap the engine in
:class:`MonthlyAggregateCache`.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .models import Transaction, category_label

ZERO = Decimal("0.00")


def transactions_in_month(
    transactions: Iterable[Transaction], year: int, month: int
) -> List[Transaction]:
    """Return the transactions whose ``date`` (not ``created_at``) falls in the month."""
    return [txn for txn in transactions if txn.date.year == year and txn.date.month == month]


def _scoped(
    transactions: Iterable[Transaction], year: Optional[int], month: Optional[int]
) -> Iterable[Transaction]:
    if year is not None and month is not None:
        return transactions_in_month(transactions, year, month)
    return transactions


def _sum_type(transactions: Iterable[Transaction], kind: str) -> Decimal:
    return sum((txn.amount for txn in transactions if txn.type == kind), start=ZERO)


def total_income(
    transactions: Iterable[Transaction], year: Optional[int] = None, month: Optional[int] = None
) -> Decimal:
    return _sum_type(_scoped(transactions, year, month), "income")


def total_expenses(
    transactions: Iterable[Transaction], year: Optional[int] = None, month: Optional[int] = None
) -> Decimal:
    return _sum_type(_scoped(transactions, year, month), "expense")


def balance(
    transactions: Iterable[Transaction], year: Optional[int] = None, month: Optional[int] = None
) -> Decimal:
    scoped = list(_scoped(transactions, year, month))
    return _sum_type(scoped, "income") - _sum_type(scoped, "expense")


def expenses_by_category(
    transactions: Iterable[Transaction], year: Optional[int] = None, month: Optional[int] = None
) -> Dict[str, Decimal]:
    by_category: Dict[str, Decimal] = {}
    for txn in _scoped(transactions, year, month):
        if txn.type != "expense":
            continue
        by_category[txn.category] = by_category.get(txn.category, ZERO) + txn.amount
    return by_category


def daily_spending(transactions: Iterable[Transaction], year: int, month: int) -> Dict[int, Decimal]:
    """Map day of month to the summed expense amount for that calendar day."""
    daily: Dict[int, Decimal] = {}
    for txn in transactions_in_month(transactions, year, month):
        if txn.type != "expense":
            continue
        daily[txn.date.day] = daily.get(txn.date.day, ZERO) + txn.amount
    return daily


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


@dataclass(frozen=True)
class CategoryShare:
    category: str
    amount: Decimal
    percentage: Decimal

    @property
    def label(self) -> str:
        return category_label(self.category)

    def to_dict(self) -> Dict[str, object]:
        return {
            "category": self.category,
            "label": self.label,
            "amount": f"{self.amount:.2f}",
            "percentage": f"{self.percentage:.1f}",
        }


def category_breakdown(
    transactions: Iterable[Transaction], year: Optional[int] = None, month: Optional[int] = None
) -> List[CategoryShare]:
    """Expense categories sorted by amount, each with its share of total expenses."""
    by_category = expenses_by_category(transactions, year, month)
    total = sum(by_category.values(), start=ZERO)
    shares = [
        CategoryShare(
            category=category,
            amount=amount,
            percentage=(amount / total * 100) if total > 0 else Decimal("0"),
        )
        for category, amount in by_category.items()
    ]
    return sorted(shares, key=lambda share: share.amount, reverse=True)


@dataclass(frozen=True)
class MonthlySummary:
    year: int
    month: int
    income: Decimal
    expenses: Decimal
    by_category: Dict[str, Decimal] = field(default_factory=dict)
    daily: Dict[int, Decimal] = field(default_factory=dict)

    @property
    def balance(self) -> Decimal:
        return self.income - self.expenses

    @property
    def savings(self) -> Decimal:
        return max(ZERO, self.balance)

    def to_dict(self) -> Dict[str, object]:
        return {
            "year": self.year,
            "month": self.month,
            "income": f"{self.income:.2f}",
            "expenses": f"{self.expenses:.2f}",
            "balance": f"{self.balance:.2f}",
            "savings": f"{self.savings:.2f}",
            "by_category": {key: f"{value:.2f}" for key, value in self.by_category.items()},
            "daily": {str(day): f"{value:.2f}" for day, value in sorted(self.daily.items())},
            "days_in_month": days_in_month(self.year, self.month),
        }


def summarize_month(transactions: Iterable[Transaction], year: int, month: int) -> MonthlySummary:
    scoped = transactions_in_month(transactions, year, month)
    return MonthlySummary(
        year=year,
        month=month,
        income=total_income(scoped),
        expenses=total_expenses(scoped),
        by_category=expenses_by_category(scoped),
        daily=daily_spending(scoped, year, month),
    )


class MonthlyAggregateCache:
    """Memoise :func:`summarize_month` per ``(year, month)``.

    ``snapshot`` returns the current ledger contents and ``revision`` a counter
    that changes on every ledger mutation; any change drops all cached months.
    """

    def __init__(
        self,
        snapshot: Callable[[], Iterable[Transaction]],
        revision: Callable[[], int],
    ) -> None:
        self._snapshot = snapshot
        self._revision = revision
        self._seen_revision: Optional[int] = None
        self._entries: Dict[Tuple[int, int], MonthlySummary] = {}

    def summary(self, year: int, month: int) -> MonthlySummary:
        current = self._revision()
        if current != self._seen_revision:
            self._entries.clear()
            self._seen_revision = current
        key = (year, month)
        if key not in self._entries:
            self._entries[key] = summarize_month(self._snapshot(), year, month)
        return self._entries[key]

    def invalidate(self) -> None:
        self._entries.clear()
        self._seen_revision = None

    def __len__(self) -> int:
        return len(self._entries)
