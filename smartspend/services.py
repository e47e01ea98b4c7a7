"""Framework-agnostic stores backing the SmartSpend client.

Each service owns one durable record in :class:`JSONStorage`. Mutations
compute the new snapshot, write it, and only then swap it into memory, so a
failed write leaves the in-memory state untouched.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional
from uuid import uuid4

from . import aggregation
from .budgets import BudgetOverview, build_status
from .exceptions import ParseError, PersistenceError, RecordNotFoundError, ValidationError
from .models import (
    DEFAULT_PROFILE_NAME,
    PAYLOAD_TYPES,
    BudgetGoal,
    BudgetStatus,
    Notification,
    NotificationPayload,
    Transaction,
    UserProfile,
    category_label,
)
from .storage import JSONStorage
from .validators import (
    CURRENCIES,
    EXPENSE_CATEGORIES,
    GENDERS,
    NOTIFICATION_TYPES,
    PAYMENT_METHODS,
    THEMES,
    TRANSACTION_TYPES,
    parse_amount,
    validate_age,
    validate_category,
    validate_currency,
    validate_date,
    validate_enum,
    validate_limit,
    validate_optional_str,
    validate_profile_picture,
    validate_required_str,
)

logger = logging.getLogger(__name__)

SORT_ORDERS = ("date-desc", "date-asc", "amount-desc", "amount-asc")


class _SnapshotService:
    """Shared load/save plumbing for services backed by one JSON resource."""

    _label = "records"

    def __init__(self, storage: JSONStorage, resource: str) -> None:
        self._storage = storage
        self._resource = resource

    def _read(self, expected: type, decode: Callable[[Any], Any]) -> Optional[Any]:
        """Load and decode the resource; corrupt snapshots are reported and treated as absent."""
        try:
            raw = self._storage.load(self._resource, expected)
            return decode(raw) if raw is not None else None
        except ParseError as exc:
            logger.warning("Resetting %s after unreadable snapshot: %s", self._label, exc)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Resetting %s after malformed record: %s", self._label, exc)
        return None

    def _write(self, payload: Any) -> None:
        try:
            self._storage.save(self._resource, payload)
        except PersistenceError:
            raise
        except Exception as exc:  # pragma: no cover - defensive guard
            raise PersistenceError(f"Unexpected error while saving {self._label}") from exc

    def _remove(self) -> None:
        self._storage.delete(self._resource)


class SettingsService(_SnapshotService):
    """Scalar preferences: currency symbol, theme, and the explicit-clear marker."""

    _label = "settings"

    DEFAULTS: Dict[str, Any] = {
        "currency": "$",
        "theme": "light",
        "data_cleared": False,
    }

    def __init__(self, storage: JSONStorage, resource: str = "settings.json") -> None:
        super().__init__(storage, resource)
        self._values: Dict[str, Any] = dict(self.DEFAULTS)
        self.load()

    def load(self) -> None:
        stored = self._read(dict, dict) or {}
        values = dict(self.DEFAULTS)
        if stored.get("currency") in CURRENCIES:
            values["currency"] = stored["currency"]
        if stored.get("theme") in THEMES:
            values["theme"] = stored["theme"]
        values["data_cleared"] = stored.get("data_cleared") is True
        self._values = values

    @property
    def currency(self) -> str:
        return self._values["currency"]

    @property
    def theme(self) -> str:
        return self._values["theme"]

    @property
    def data_cleared(self) -> bool:
        return self._values["data_cleared"]

    def set_currency(self, currency: object) -> str:
        self._set("currency", validate_currency(currency))
        return self.currency

    def set_theme(self, theme: object) -> str:
        self._set("theme", validate_enum(theme, "theme", THEMES))
        return self.theme

    def mark_cleared(self) -> None:
        self._set("data_cleared", True)

    def mark_data_present(self) -> None:
        if self.data_cleared:
            self._set("data_cleared", False)

    def format_amount(self, amount: Decimal) -> str:
        """Render ``amount`` with the currency symbol, grouping, and at most two decimals."""
        quantized = Decimal(amount).quantize(Decimal("0.01"))
        text = f"{quantized:,.2f}"
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return f"{self.currency}{text}"

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def _set(self, key: str, value: Any) -> None:
        updated = {**self._values, key: value}
        self._write(updated)
        self._values = updated


class LedgerService(_SnapshotService):
    """Manages transaction records and mediates persistence."""

    _label = "transactions"

    def __init__(
        self,
        storage: JSONStorage,
        resource: str = "transactions.json",
        *,
        settings: Optional[SettingsService] = None,
        seed: Optional[Callable[[], List[Transaction]]] = None,
    ) -> None:
        super().__init__(storage, resource)
        self._settings = settings
        self._seed = seed
        self._transactions: List[Transaction] = []
        self._revision = 0
        self.load()  # Hydrate in-memory cache from persistence on construction.

    # Public API -----------------------------------------------------------
    def add(self, payload: Dict[str, object]) -> Transaction:
        data = self._validate_payload(payload)
        transaction = Transaction(**data)
        self._commit([transaction, *self._transactions])
        return transaction

    def update(self, transaction_id: str, changes: Dict[str, object]) -> Transaction:
        existing = self.get(transaction_id)
        # Merge existing serialised data with incoming changes to support partial updates.
        merged_payload = {**existing.to_dict(), **changes}
        data = self._validate_payload(merged_payload, current=existing)
        updated = Transaction(**data)
        self._commit([updated if txn.id == transaction_id else txn for txn in self._transactions])
        return updated

    def delete(self, transaction_id: str) -> bool:
        remaining = [txn for txn in self._transactions if txn.id != transaction_id]
        if len(remaining) == len(self._transactions):
            return False
        self._commit(remaining)
        return True

    def get(self, transaction_id: str) -> Transaction:
        """Return a transaction or raise if it does not exist."""
        for txn in self._transactions:
            if txn.id == transaction_id:
                return txn
        raise RecordNotFoundError(f"Transaction {transaction_id} not found")

    def list(self) -> List[Transaction]:
        return list(self._transactions)

    def by_month(self, year: int, month: int) -> List[Transaction]:
        return aggregation.transactions_in_month(self._transactions, year, month)

    def recent(self, limit: int = 5) -> List[Transaction]:
        return self._transactions[:limit]

    def query(
        self,
        *,
        type: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "date-desc",
    ) -> List[Transaction]:
        """Filter by type and free-text search, then order by date or amount."""
        records: Iterable[Transaction] = self._transactions
        if type is not None and type != "all":
            kind = validate_enum(type, "type", TRANSACTION_TYPES)
            records = [txn for txn in records if txn.type == kind]
        term = (search or "").strip().lower()
        if term:
            records = [
                txn
                for txn in records
                if term in category_label(txn.category).lower()
                or term in (txn.notes or "").lower()
            ]
        if sort not in SORT_ORDERS:
            raise ValidationError(f"sort must be one of: {', '.join(SORT_ORDERS)}")
        field, direction = sort.split("-")
        return sorted(
            records,
            key=(lambda txn: txn.date) if field == "date" else (lambda txn: txn.amount),
            reverse=direction == "desc",
        )

    def clear(self) -> None:
        self._remove()
        self._transactions = []
        self._revision += 1

    def load(self) -> None:
        """Load existing transactions, seeding the demo ledger on a fresh install."""
        records = self._read(list, lambda raw: [Transaction.from_dict(item) for item in raw]) or []
        if not records and self._should_seed():
            records = self._seed()
            logger.info("Seeding %d demo transactions", len(records))
            try:
                self._write([txn.to_dict() for txn in records])
            except PersistenceError as exc:
                logger.warning("Demo transactions kept in memory only: %s", exc)
        self._transactions = records
        self._revision += 1

    @property
    def revision(self) -> int:
        return self._revision

    def __len__(self) -> int:
        return len(self._transactions)

    # Internal helpers -----------------------------------------------------
    def _should_seed(self) -> bool:
        if self._seed is None:
            return False
        return not (self._settings is not None and self._settings.data_cleared)

    def _commit(self, records: List[Transaction]) -> None:
        # Persist the full snapshot first; memory only moves forward on success.
        self._write([txn.to_dict() for txn in records])
        self._transactions = records
        self._revision += 1

    def _validate_payload(
        self, payload: Dict[str, object], *, current: Optional[Transaction] = None
    ) -> Dict[str, object]:
        kind = validate_enum(payload.get("type"), "type", TRANSACTION_TYPES)
        return {
            "id": current.id if current else str(uuid4()),
            "type": kind,
            "amount": parse_amount(payload.get("amount"), "amount"),
            "category": validate_category(payload.get("category"), kind),
            "date": validate_date(payload.get("date", date.today()), "date"),
            "payment_method": validate_enum(
                payload.get("payment_method", "cash"), "payment_method", PAYMENT_METHODS
            ),
            "created_at": current.created_at if current else _now(),
            "notes": validate_optional_str(payload.get("notes"), "notes", 200),
        }


class BudgetService(_SnapshotService):
    """Per-category monthly spending limits."""

    _label = "budgets"

    def __init__(self, storage: JSONStorage, resource: str = "budgets.json") -> None:
        super().__init__(storage, resource)
        self._goals: List[BudgetGoal] = []
        self.load()

    def set_goal(self, category: object, limit: object) -> BudgetGoal:
        canonical = validate_enum(category, "category", EXPENSE_CATEGORIES)
        goal = BudgetGoal(category=canonical, limit=validate_limit(limit))
        if self.get(canonical) is not None:
            goals = [goal if item.category == canonical else item for item in self._goals]
        else:
            goals = [*self._goals, goal]
        self._commit(goals)
        return goal

    def remove_goal(self, category: object) -> bool:
        canonical = validate_enum(category, "category", EXPENSE_CATEGORIES)
        goals = [goal for goal in self._goals if goal.category != canonical]
        if len(goals) == len(self._goals):
            return False
        self._commit(goals)
        return True

    def get(self, category: str) -> Optional[BudgetGoal]:
        for goal in self._goals:
            if goal.category == category:
                return goal
        return None

    def list(self) -> List[BudgetGoal]:
        return list(self._goals)

    def status_for(
        self, category: str, transactions: Iterable[Transaction], year: int, month: int
    ) -> Optional[BudgetStatus]:
        goal = self.get(category)
        if goal is None:
            return None
        spent = aggregation.expenses_by_category(transactions, year, month).get(
            category, aggregation.ZERO
        )
        return build_status(goal, spent)

    def statuses(self, transactions: Iterable[Transaction], year: int, month: int) -> List[BudgetStatus]:
        by_category = aggregation.expenses_by_category(transactions, year, month)
        return [
            build_status(goal, by_category.get(goal.category, aggregation.ZERO))
            for goal in self._goals
        ]

    def overview(self, transactions: Iterable[Transaction], year: int, month: int) -> BudgetOverview:
        statuses = self.statuses(transactions, year, month)
        return BudgetOverview(
            total_limit=sum((status.limit for status in statuses), start=aggregation.ZERO),
            total_spent=sum((status.spent for status in statuses), start=aggregation.ZERO),
        )

    def clear(self) -> None:
        self._remove()
        self._goals = []

    def load(self) -> None:
        goals = self._read(list, lambda raw: [BudgetGoal.from_dict(item) for item in raw]) or []
        # Keep the first goal per category if an older file carries duplicates.
        unique: Dict[str, BudgetGoal] = {}
        for goal in goals:
            unique.setdefault(goal.category, goal)
        self._goals = list(unique.values())

    def _commit(self, goals: List[BudgetGoal]) -> None:
        self._write([goal.to_dict() for goal in goals])
        self._goals = goals


class NotificationService(_SnapshotService):
    """Append-only, newest-first history of past events."""

    _label = "notifications"

    def __init__(self, storage: JSONStorage, resource: str = "notifications.json") -> None:
        super().__init__(storage, resource)
        self._notifications: List[Notification] = []
        self.load()

    def add(
        self,
        type: str,
        title: str,
        message: str,
        data: Optional[NotificationPayload] = None,
        *,
        timestamp: Optional[datetime] = None,
    ) -> Notification:
        kind = validate_enum(type, "type", NOTIFICATION_TYPES)
        if data is not None:
            expected = PAYLOAD_TYPES.get(kind)
            if expected is None or not isinstance(data, expected):
                raise ValidationError(f"{kind} notifications cannot carry {type_name(data)} data")
        notification = Notification(
            id=f"notif_{uuid4().hex}",
            type=kind,
            title=validate_required_str(title, "title", 100),
            message=validate_required_str(message, "message", 500),
            timestamp=timestamp or _now(),
            read=False,
            data=data,
        )
        self._commit([notification, *self._notifications])
        return notification

    def mark_read(self, notification_id: str) -> None:
        if not any(item.id == notification_id and not item.read for item in self._notifications):
            return
        self._commit(
            [item.mark_read() if item.id == notification_id else item for item in self._notifications]
        )

    def mark_all_read(self) -> None:
        if self.unread_count == 0:
            return
        self._commit([item.mark_read() for item in self._notifications])

    def delete(self, notification_id: str) -> None:
        remaining = [item for item in self._notifications if item.id != notification_id]
        if len(remaining) != len(self._notifications):
            self._commit(remaining)

    def clear_all(self) -> None:
        self._remove()
        self._notifications = []

    def get(self, notification_id: str) -> Notification:
        for item in self._notifications:
            if item.id == notification_id:
                return item
        raise RecordNotFoundError(f"Notification {notification_id} not found")

    def list(self) -> List[Notification]:
        return list(self._notifications)

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self._notifications if not item.read)

    def load(self) -> None:
        self._notifications = (
            self._read(list, lambda raw: [Notification.from_dict(item) for item in raw]) or []
        )

    def _commit(self, notifications: List[Notification]) -> None:
        self._write([item.to_dict() for item in notifications])
        self._notifications = notifications


class ProfileService(_SnapshotService):
    """The single user profile of this installation."""

    _label = "profile"

    EDITABLE_FIELDS = ("name", "age", "gender", "profile_picture")

    def __init__(self, storage: JSONStorage, resource: str = "profile.json") -> None:
        super().__init__(storage, resource)
        self._profile = UserProfile()
        self.load()

    def get(self) -> UserProfile:
        return self._profile

    def update(self, changes: Dict[str, object]) -> UserProfile:
        unknown = set(changes) - set(self.EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
        current = self._profile
        name = changes.get("name", current.name)
        gender = changes.get("gender", current.gender)
        updated = UserProfile(
            name=validate_optional_str(name, "name", 60) or DEFAULT_PROFILE_NAME,
            age=validate_age(changes.get("age", current.age)),
            gender=validate_enum(gender, "gender", GENDERS) if gender else None,
            profile_picture=validate_profile_picture(
                changes.get("profile_picture", current.profile_picture)
            ),
            created_at=current.created_at,
        )
        self._write(updated.to_dict())
        self._profile = updated
        return updated

    def clear(self) -> None:
        self._remove()
        self._profile = UserProfile()

    def load(self) -> None:
        self._profile = self._read(dict, UserProfile.from_dict) or UserProfile()


def type_name(value: object) -> str:
    return type(value).__name__


def _now() -> datetime:
    # Stored timestamps carry second precision, so keep memory in step with disk.
    return datetime.now(timezone.utc).replace(microsecond=0)
