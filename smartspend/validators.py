"""Validation helpers shared across SmartSpend services."""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional

from .exceptions import ValidationError

TRANSACTION_TYPES = {"income", "expense"}

EXPENSE_CATEGORIES = (
    "food",
    "transport",
    "rent",
    "shopping",
    "education",
    "entertainment",
    "health",
    "bills",
    "investment",
    "others",
)

INCOME_CATEGORIES = (
    "salary",
    "freelance",
    "investment",
    "others",
)

CATEGORIES_BY_TYPE = {
    "expense": EXPENSE_CATEGORIES,
    "income": INCOME_CATEGORIES,
}

PAYMENT_METHODS = {"cash", "upi", "card", "bank"}

NOTIFICATION_TYPES = {"transaction", "alert", "sms"}

ALERT_LEVELS = {"info", "warning", "error", "success"}

GENDERS = {"male", "female", "other", "prefer-not-to-say"}

CURRENCIES = ("₹", "$", "€", "£")

THEMES = {"light", "dark"}

DATA_URL_PATTERN = re.compile(r"^data:image/[a-z0-9.+-]+;base64,[A-Za-z0-9+/=\s]+$")


def _quantize_two_decimals(amount: Decimal) -> Decimal:
    """Round the amount to two decimal places using HALF_UP rounding."""
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_amount(raw: object, field: str) -> Decimal:
    """Convert raw input to a positive Decimal with exactly two fraction digits."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError(f"{field} is required")
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a numeric value")
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, TypeError) as exc:  # type: ignore[arg-type]
        raise ValidationError(f"{field} must be a numeric value") from exc

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a numeric value")
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero")

    return _quantize_two_decimals(amount)


def validate_required_str(value: object, field: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty")
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return trimmed


def validate_optional_str(value: object, field: str, max_length: int) -> Optional[str]:
    # Blank optional text is treated as absent, matching how forms submit it.
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return validate_required_str(value, field, max_length)


def validate_enum(value: object, field: str, allowed: Iterable[str]) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    canonical = value.strip().lower()
    if canonical not in allowed:
        raise ValidationError(f"{field} must be one of: {', '.join(sorted(allowed))}")
    return canonical


def validate_category(value: object, transaction_type: str) -> str:
    """Check that ``value`` is a category valid for the given transaction type."""
    allowed = CATEGORIES_BY_TYPE[transaction_type]
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("category is required")
    canonical = value.strip().lower()
    if canonical not in allowed:
        raise ValidationError(
            f"category '{canonical}' is not valid for {transaction_type} transactions"
        )
    return canonical


def validate_date(value: object, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)") from exc
    raise ValidationError(f"{field} must be a date or ISO date string")


def validate_limit(raw: object) -> Decimal:
    return parse_amount(raw, "limit")


def validate_age(value: object) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("age must be a whole number")
    try:
        age = int(str(value).strip())
    except ValueError as exc:
        raise ValidationError("age must be a whole number") from exc
    if age < 0 or age > 150:
        raise ValidationError("age must be between 0 and 150")
    return age


def validate_profile_picture(value: object) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str) or not DATA_URL_PATTERN.fullmatch(value.strip()):
        raise ValidationError("profile_picture must be a base64 encoded image data URL")
    return value.strip()


def validate_currency(value: object) -> str:
    if value not in CURRENCIES:
        raise ValidationError(f"currency must be one of: {' '.join(CURRENCIES)}")
    return value  # type: ignore[return-value]
