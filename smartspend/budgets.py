"""Budget threshold evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .models import BudgetGoal, BudgetStatus

WARNING_RATIO = Decimal("0.75")
EXCEEDED_RATIO = Decimal("1")

STATE_OK = "ok"
STATE_WARNING = "warning"
STATE_EXCEEDED = "exceeded"

EXCEEDED_ALERT_DURATION_MS = 6000
WARNING_ALERT_DURATION_MS = 5000


@dataclass(frozen=True)
class AlertSpec:
    title: str
    message: str
    level: str
    duration_ms: int


def evaluate(spent: Decimal, limit: Decimal) -> str:
    ratio = Decimal(spent) / Decimal(limit)
    if ratio >= EXCEEDED_RATIO:
        return STATE_EXCEEDED
    if ratio >= WARNING_RATIO:
        return STATE_WARNING
    return STATE_OK


def build_status(goal: BudgetGoal, spent: Decimal) -> BudgetStatus:
    return BudgetStatus(
        category=goal.category,
        limit=goal.limit,
        spent=spent,
        state=evaluate(spent, goal.limit),
    )


def threshold_alert(status: BudgetStatus, label: str, currency: str) -> Optional[AlertSpec]:
    """Describe the alert to raise for ``status``, or ``None`` when spend is fine."""
    if status.state == STATE_OK:
        return None
    # Exactly at the limit is "exceeded" as a state but still worded as a warning.
    if status.spent > status.limit:
        return AlertSpec(
            title="Budget Exceeded",
            message=(
                f"You have exceeded your {label} budget! "
                f"Spent: {currency}{status.spent:.2f} / Limit: {currency}{status.limit:.2f}"
            ),
            level="error",
            duration_ms=EXCEEDED_ALERT_DURATION_MS,
        )
    return AlertSpec(
        title="Budget Warning",
        message=(
            f"You've used {status.percent_used:.0f}% of your {label} budget "
            f"({currency}{status.spent:.2f} / {currency}{status.limit:.2f})"
        ),
        level="warning",
        duration_ms=WARNING_ALERT_DURATION_MS,
    )


@dataclass(frozen=True)
class BudgetOverview:
    total_limit: Decimal
    total_spent: Decimal

    @property
    def percent_used(self) -> Decimal:
        if self.total_limit <= 0:
            return Decimal("0")
        return self.total_spent / self.total_limit * 100

    @property
    def remaining(self) -> Decimal:
        return max(Decimal("0.00"), self.total_limit - self.total_spent)

    def to_dict(self) -> dict:
        return {
            "total_limit": f"{self.total_limit:.2f}",
            "total_spent": f"{self.total_spent:.2f}",
            "percent_used": f"{self.percent_used:.0f}",
            "remaining": f"{self.remaining:.2f}",
        }
