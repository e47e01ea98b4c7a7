"""Data models for the SmartSpend domain."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Union

__all__ = [
    "CATEGORY_LABELS",
    "PAYMENT_METHOD_LABELS",
    "DEFAULT_PROFILE_NAME",
    "Alert",
    "AlertPayload",
    "BudgetGoal",
    "BudgetStatus",
    "Notification",
    "NotificationPayload",
    "Transaction",
    "TransactionPayload",
    "UserProfile",
    "category_label",
    "isoformat_utc",
    "parse_datetime",
    "payload_from_dict",
]

CATEGORY_LABELS: Dict[str, str] = {
    "food": "Food & Dining",
    "transport": "Transport",
    "rent": "Rent & Housing",
    "shopping": "Shopping",
    "education": "Education",
    "entertainment": "Entertainment",
    "health": "Health",
    "bills": "Bills & Utilities",
    "investment": "Investment",
    "salary": "Salary",
    "freelance": "Freelance",
    "others": "Others",
}

PAYMENT_METHOD_LABELS: Dict[str, str] = {
    "cash": "Cash",
    "upi": "UPI",
    "card": "Card",
    "bank": "Bank Transfer",
}

DEFAULT_PROFILE_NAME = "SmartSpend User"


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO 8601 string with trailing Z for UTC-aware datetimes."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    iso = dt.isoformat(timespec="seconds")
    # datetime.isoformat renders +00:00 for UTC; replace with the shorter Z form.
    return iso.replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 datetime strings with optional trailing Z into UTC-aware datetime."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        # Treat naive datetimes as UTC to avoid accidental timezone drift.
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, category)


@dataclass(frozen=True)
class Transaction:
    id: str
    type: str
    amount: Decimal
    category: str
    date: date
    payment_method: str
    created_at: datetime
    notes: Optional[str] = None

    @property
    def is_expense(self) -> bool:
        return self.type == "expense"

    @property
    def label(self) -> str:
        """Human readable name: the notes when present, otherwise the category label."""
        return self.notes or category_label(self.category)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the transaction to JSON-friendly natives."""
        return {
            "id": self.id,
            "type": self.type,
            "amount": f"{self.amount:.2f}",
            "category": self.category,
            "date": self.date.isoformat(),
            "payment_method": self.payment_method,
            "created_at": isoformat_utc(self.created_at),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        """Hydrate a Transaction from JSON-native data."""
        return cls(
            id=data["id"],
            type=data["type"],
            amount=Decimal(str(data["amount"])),
            category=data["category"],
            date=date.fromisoformat(data["date"]),
            payment_method=data["payment_method"],
            created_at=parse_datetime(data["created_at"]),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class BudgetGoal:
    category: str
    limit: Decimal
    # Legacy field kept for file compatibility; live spend is derived from the ledger.
    spent: Decimal = Decimal("0.00")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "limit": f"{self.limit:.2f}",
            "spent": f"{self.spent:.2f}",
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BudgetGoal":
        return cls(
            category=data["category"],
            limit=Decimal(str(data["limit"])),
            spent=Decimal(str(data.get("spent", "0"))),
        )


@dataclass(frozen=True)
class BudgetStatus:
    """Live spend for one budget goal in a given month."""

    category: str
    limit: Decimal
    spent: Decimal
    state: str

    @property
    def ratio(self) -> Decimal:
        return self.spent / self.limit

    @property
    def percent_used(self) -> Decimal:
        return self.ratio * 100

    @property
    def remaining(self) -> Decimal:
        return max(Decimal("0.00"), self.limit - self.spent)

    @property
    def over_by(self) -> Decimal:
        return max(Decimal("0.00"), self.spent - self.limit)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "label": category_label(self.category),
            "limit": f"{self.limit:.2f}",
            "spent": f"{self.spent:.2f}",
            "state": self.state,
            "percent_used": f"{self.percent_used:.1f}",
            "remaining": f"{self.remaining:.2f}",
            "over_by": f"{self.over_by:.2f}",
        }


@dataclass(frozen=True)
class TransactionPayload:
    transaction_type: str
    amount: Decimal
    category: str
    category_label: str
    currency: str
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transaction_type": self.transaction_type,
            "amount": f"{self.amount:.2f}",
            "category": self.category,
            "category_label": self.category_label,
            "currency": self.currency,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransactionPayload":
        return cls(
            transaction_type=data["transaction_type"],
            amount=Decimal(str(data["amount"])),
            category=data["category"],
            category_label=data["category_label"],
            currency=data["currency"],
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class AlertPayload:
    level: str

    def to_dict(self) -> Dict[str, Any]:
        return {"level": self.level}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlertPayload":
        return cls(level=data["level"])


NotificationPayload = Union[TransactionPayload, AlertPayload]

# Notification type -> payload variant carried in ``Notification.data``.
PAYLOAD_TYPES = {
    "transaction": TransactionPayload,
    "alert": AlertPayload,
}


def payload_from_dict(kind: str, data: Optional[Dict[str, Any]]) -> Optional[NotificationPayload]:
    """Decode the ``data`` field of a stored notification using its type as the tag."""
    if data is None:
        return None
    payload_cls = PAYLOAD_TYPES.get(kind)
    if payload_cls is None:
        return None
    return payload_cls.from_dict(data)


@dataclass(frozen=True)
class Notification:
    id: str
    type: str
    title: str
    message: str
    timestamp: datetime
    read: bool = False
    data: Optional[NotificationPayload] = None

    def mark_read(self) -> "Notification":
        return replace(self, read=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "timestamp": isoformat_utc(self.timestamp),
            "read": self.read,
            "data": self.data.to_dict() if self.data is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Notification":
        return cls(
            id=data["id"],
            type=data["type"],
            title=data["title"],
            message=data["message"],
            timestamp=parse_datetime(data["timestamp"]),
            read=bool(data.get("read", False)),
            data=payload_from_dict(data["type"], data.get("data")),
        )


@dataclass(frozen=True)
class Alert:
    id: str
    level: str
    title: str
    message: str
    timestamp: datetime
    duration_ms: int = 5000

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "level": self.level,
            "title": self.title,
            "message": self.message,
            "timestamp": isoformat_utc(self.timestamp),
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True)
class UserProfile:
    name: str = DEFAULT_PROFILE_NAME
    age: Optional[int] = None
    gender: Optional[str] = None
    profile_picture: Optional[str] = None
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc).replace(microsecond=0)
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "age": self.age,
            "gender": self.gender,
            "profile_picture": self.profile_picture,
            "created_at": isoformat_utc(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            name=data.get("name") or DEFAULT_PROFILE_NAME,
            age=data.get("age"),
            gender=data.get("gender"),
            profile_picture=data.get("profile_picture"),
            created_at=parse_datetime(data["created_at"]),
        )
