"""Plain-text export reports. These are one-way and cannot be re-imported."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

from .aggregation import ZERO
from .models import Transaction, category_label, isoformat_utc

RULE = "=" * 47
SUBRULE = "-" * 47


def _stamp(exported_at: Optional[datetime]) -> str:
    return isoformat_utc(exported_at or datetime.now(timezone.utc))


def render_transaction_history(
    transactions: Iterable[Transaction],
    currency: str,
    exported_at: Optional[datetime] = None,
) -> str:
    """Render the (already filtered and sorted) history as a numbered text list."""
    records = list(transactions)
    lines: List[str] = [
        "TRANSACTION HISTORY",
        f"Exported: {_stamp(exported_at)}",
        RULE,
        "",
    ]
    if not records:
        lines.append("No transactions to export.")
    for index, txn in enumerate(records, start=1):
        lines.append(f"{index}. {category_label(txn.category)}")
        lines.append(f"   Amount: {currency}{txn.amount:.2f}")
        lines.append(f"   Type: {txn.type}")
        lines.append(f"   Date: {txn.date.isoformat()}")
        lines.append(f"   Method: {txn.payment_method}")
        if txn.notes:
            lines.append(f"   Notes: {txn.notes}")
        lines.append("")
    return "\n".join(lines).rstrip("\n") + "\n"


def render_data_export(
    transactions: Iterable[Transaction],
    currency: str,
    exported_at: Optional[datetime] = None,
) -> str:
    """Full data export with a summary block ahead of the transaction list."""
    records = list(transactions)
    total_expense = sum((txn.amount for txn in records if txn.type == "expense"), start=ZERO)
    total_investment = sum(
        (txn.amount for txn in records if txn.category == "investment"), start=ZERO
    )
    lines: List[str] = [
        "SMARTSPEND DATA EXPORT",
        f"Exported: {_stamp(exported_at)}",
        RULE,
        "",
        "SUMMARY",
        SUBRULE,
        f"Total Transactions: {len(records)}",
        f"Total Expense: {currency}{total_expense:.2f}",
        f"Total Investment: {currency}{total_investment:.2f}",
        "",
        f"TRANSACTIONS ({len(records)} total)",
        SUBRULE,
    ]
    if not records:
        lines.append("No transactions recorded.")
    for index, txn in enumerate(records, start=1):
        lines.extend(
            [
                "",
                f"{index}. {txn.label}",
                f"   Amount: {currency}{_plain(txn.amount)}",
                f"   Category: {txn.category}",
                f"   Date: {txn.date.isoformat()}",
                f"   Type: {txn.type}",
            ]
        )
    return "\n".join(lines) + "\n"


def _plain(amount: Decimal) -> str:
    text = f"{amount:.2f}"
    return text.rstrip("0").rstrip(".") if "." in text else text
