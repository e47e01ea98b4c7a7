"""Core business logic package for the SmartSpend finance tracker."""

from .alerts import AlertRegistry
from .config import AppConfig
from .exceptions import ParseError, PersistenceError, RecordNotFoundError, ValidationError
from .models import Alert, BudgetGoal, BudgetStatus, Notification, Transaction, UserProfile
from .services import (
    BudgetService,
    LedgerService,
    NotificationService,
    ProfileService,
    SettingsService,
)
from .storage import JSONStorage
from .tracker import SmartSpend, TransactionOutcome

__all__ = [
    "Alert",
    "AlertRegistry",
    "AppConfig",
    "BudgetGoal",
    "BudgetService",
    "BudgetStatus",
    "JSONStorage",
    "LedgerService",
    "Notification",
    "NotificationService",
    "ParseError",
    "PersistenceError",
    "ProfileService",
    "RecordNotFoundError",
    "SettingsService",
    "SmartSpend",
    "Transaction",
    "TransactionOutcome",
    "UserProfile",
    "ValidationError",
]
