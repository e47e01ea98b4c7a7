"""Console interface for SmartSpend."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional

from smartspend.config import AppConfig
from smartspend.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from smartspend.models import Notification, Transaction, category_label
from smartspend.services import SORT_ORDERS
from smartspend.tracker import SmartSpend
from smartspend.validators import CURRENCIES, GENDERS, PAYMENT_METHODS, THEMES


def _parse_date(value: str) -> str:
    try:
        date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid date '{value}'. Expected format YYYY-MM-DD."
        ) from exc
    return value


def _parse_amount(value: str) -> str:
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise argparse.ArgumentTypeError("Amount must be a numeric value") from exc
    if not amount.is_finite():
        raise argparse.ArgumentTypeError("Amount must be a finite number")
    if amount <= 0:
        raise argparse.ArgumentTypeError("Amount must be greater than zero")
    return value


def _parse_month(value: str) -> int:
    month = int(value)
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError("Month must be between 1 and 12")
    return month


def _format_transaction(txn: Transaction, tracker: SmartSpend) -> str:
    sign = "-" if txn.is_expense else "+"
    return (
        f"[{txn.id}] {txn.date.isoformat()} {sign}{tracker.settings.format_amount(txn.amount)}\n"
        f"  {txn.type.title()} | Category: {category_label(txn.category)} | "
        f"Payment: {txn.payment_method}\n"
        f"  Notes: {txn.notes or '-'}\n"
    )


def _format_notification(item: Notification) -> str:
    marker = " " if item.read else "*"
    return f"{marker} [{item.id}] {item.timestamp:%Y-%m-%d %H:%M} {item.title}: {item.message}"


def _print_alerts(tracker: SmartSpend) -> None:
    for alert in tracker.alerts.active():
        print(f"!! {alert.title}: {alert.message}")


def handle_transaction(args: argparse.Namespace, tracker: SmartSpend) -> None:
    if args.command == "add":
        payload = {
            "type": args.type,
            "amount": args.amount,
            "category": args.category,
            "date": args.date or date.today().isoformat(),
            "payment_method": args.payment_method,
            "notes": args.notes,
        }
        outcome = tracker.record_transaction(payload)
        print("Transaction added:\n" + _format_transaction(outcome.transaction, tracker))
        _print_alerts(tracker)
    elif args.command == "list":
        records = tracker.ledger.query(type=args.type, search=args.search, sort=args.sort)
        if not records:
            print("No transactions found.")
            return
        print(f"Found {len(records)} transactions:")
        for txn in records:
            print(_format_transaction(txn, tracker))
    elif args.command == "edit":
        changes = {
            "type": args.type,
            "amount": args.amount,
            "category": args.category,
            "date": args.date,
            "payment_method": args.payment_method,
            "notes": args.notes,
        }
        cleaned = {k: v for k, v in changes.items() if v is not None}
        txn = tracker.update_transaction(args.id, cleaned)
        print("Transaction updated:\n" + _format_transaction(txn, tracker))
    elif args.command == "delete":
        if tracker.delete_transaction(args.id):
            print(f"Transaction {args.id} deleted.")
        else:
            print(f"Transaction {args.id} not found; nothing deleted.")


def handle_summary(args: argparse.Namespace, tracker: SmartSpend) -> None:
    summary = tracker.monthly_summary(args.year, args.month)
    fmt = tracker.settings.format_amount
    print(f"Summary for {summary.year}-{summary.month:02d}")
    print(f"  Income:   {fmt(summary.income)}")
    print(f"  Expenses: {fmt(summary.expenses)}")
    print(f"  Balance:  {fmt(summary.balance)}")
    print(f"  Savings:  {fmt(summary.savings)}")
    shares = tracker.category_breakdown(args.year, args.month)
    if shares:
        print("Spending by category:")
        for share in shares:
            print(f"  {share.label:<20} {fmt(share.amount):>12} {share.percentage:5.1f}%")


def handle_budget(args: argparse.Namespace, tracker: SmartSpend) -> None:
    fmt = tracker.settings.format_amount
    if args.command == "set":
        goal = tracker.set_budget(args.category, args.limit)
        print(f"Budget for {category_label(goal.category)} set to {fmt(goal.limit)}")
    elif args.command == "remove":
        if tracker.remove_budget(args.category):
            print(f"Budget for {category_label(args.category.strip().lower())} removed.")
        else:
            print(f"No budget set for {args.category}.")
    elif args.command == "list":
        statuses = tracker.budget_statuses()
        if not statuses:
            print("No budgets set yet.")
            return
        for status in statuses:
            print(
                f"{category_label(status.category):<20} {fmt(status.spent)} of {fmt(status.limit)} "
                f"({status.percent_used:.0f}%, {status.state})"
            )
        overview = tracker.budget_overview()
        print(f"Total: {fmt(overview.total_spent)} of {fmt(overview.total_limit)}")


def handle_notifications(args: argparse.Namespace, tracker: SmartSpend) -> None:
    if args.command == "list":
        items = tracker.notifications.list()
        if not items:
            print("No notifications.")
            return
        print(f"{tracker.notifications.unread_count} unread")
        for item in items:
            print(_format_notification(item))
    elif args.command == "read":
        if args.id:
            tracker.mark_notification_read(args.id)
        else:
            tracker.mark_all_notifications_read()
        print("Notifications marked as read.")
    elif args.command == "clear":
        tracker.clear_notifications()
        print("Notifications cleared.")


def handle_export(args: argparse.Namespace, tracker: SmartSpend) -> None:
    if args.full:
        report = tracker.export_data()
    else:
        report = tracker.export_history(type=args.type, search=args.search, sort=args.sort)
    if args.output:
        args.output.write_text(report, encoding="utf-8")
        print(f"Export written to {args.output}")
    else:
        print(report, end="")


def handle_profile(args: argparse.Namespace, tracker: SmartSpend) -> None:
    if args.command == "set":
        changes: Dict[str, Any] = {
            "name": args.name,
            "age": args.age,
            "gender": args.gender,
        }
        tracker.update_profile({k: v for k, v in changes.items() if v is not None})
        print("Profile updated.")
    profile = tracker.profile.get()
    print(f"Name:   {profile.name}")
    print(f"Age:    {profile.age if profile.age is not None else '-'}")
    print(f"Gender: {profile.gender or '-'}")
    print(f"Since:  {profile.created_at:%Y-%m-%d}")


def handle_settings(args: argparse.Namespace, tracker: SmartSpend) -> None:
    if args.command == "currency":
        tracker.update_settings(currency=args.symbol)
    elif args.command == "theme":
        tracker.update_settings(theme=args.theme)
    print(f"Currency: {tracker.settings.currency}")
    print(f"Theme:    {tracker.settings.theme}")


def handle_reset(args: argparse.Namespace, tracker: SmartSpend) -> int:
    if not args.yes:
        print("Refusing to clear data without --yes.", file=sys.stderr)
        return 1
    tracker.clear_all()
    print("All transactions, budgets, notifications, and profile data have been deleted.")
    return 0


def _add_history_filters(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--type", choices=["income", "expense"])
    parser.add_argument("--search")
    parser.add_argument("--sort", choices=SORT_ORDERS, default="date-desc")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SmartSpend personal finance tracker")
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory to store JSON data (default: $SMARTSPEND_DATA_DIR or ./data)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="entity", required=True)

    txn_parser = subparsers.add_parser("txn", help="Manage transactions")
    txn_sub = txn_parser.add_subparsers(dest="command", required=True)

    txn_add = txn_sub.add_parser("add", help="Record a new transaction")
    txn_add.add_argument("type", choices=["income", "expense"])
    txn_add.add_argument("amount", type=_parse_amount)
    txn_add.add_argument("category")
    txn_add.add_argument("--date", type=_parse_date)
    txn_add.add_argument("--payment-method", choices=sorted(PAYMENT_METHODS), default="cash")
    txn_add.add_argument("--notes")

    txn_list = txn_sub.add_parser("list", help="List transactions")
    _add_history_filters(txn_list)

    txn_edit = txn_sub.add_parser("edit", help="Edit an existing transaction")
    txn_edit.add_argument("id")
    txn_edit.add_argument("--type", choices=["income", "expense"])
    txn_edit.add_argument("--amount", type=_parse_amount)
    txn_edit.add_argument("--category")
    txn_edit.add_argument("--date", type=_parse_date)
    txn_edit.add_argument("--payment-method", choices=sorted(PAYMENT_METHODS))
    txn_edit.add_argument("--notes")

    txn_delete = txn_sub.add_parser("delete", help="Delete a transaction")
    txn_delete.add_argument("id")

    summary_parser = subparsers.add_parser("summary", help="Monthly totals and category breakdown")
    summary_parser.add_argument("--year", type=int)
    summary_parser.add_argument("--month", type=_parse_month)

    budget_parser = subparsers.add_parser("budget", help="Manage category budgets")
    budget_sub = budget_parser.add_subparsers(dest="command", required=True)
    budget_set = budget_sub.add_parser("set", help="Set a monthly limit for a category")
    budget_set.add_argument("category")
    budget_set.add_argument("limit", type=_parse_amount)
    budget_remove = budget_sub.add_parser("remove", help="Remove a category budget")
    budget_remove.add_argument("category")
    budget_sub.add_parser("list", help="Show budgets with this month's spend")

    notif_parser = subparsers.add_parser("notifications", help="Notification history")
    notif_sub = notif_parser.add_subparsers(dest="command", required=True)
    notif_sub.add_parser("list", help="List notifications")
    notif_read = notif_sub.add_parser("read", help="Mark one or all notifications read")
    notif_read.add_argument("id", nargs="?")
    notif_sub.add_parser("clear", help="Delete all notifications")

    export_parser = subparsers.add_parser("export", help="Export transactions as text")
    _add_history_filters(export_parser)
    export_parser.add_argument("--full", action="store_true", help="Include the summary block")
    export_parser.add_argument("--output", "-o", type=Path)

    profile_parser = subparsers.add_parser("profile", help="Show or edit the user profile")
    profile_sub = profile_parser.add_subparsers(dest="command", required=True)
    profile_sub.add_parser("show", help="Show the profile")
    profile_set = profile_sub.add_parser("set", help="Edit profile fields")
    profile_set.add_argument("--name")
    profile_set.add_argument("--age", type=int)
    profile_set.add_argument("--gender", choices=sorted(GENDERS))

    settings_parser = subparsers.add_parser("settings", help="Currency and theme preferences")
    settings_sub = settings_parser.add_subparsers(dest="command", required=True)
    settings_sub.add_parser("show", help="Show preferences")
    settings_currency = settings_sub.add_parser("currency", help="Set the currency symbol")
    settings_currency.add_argument("symbol", choices=CURRENCIES)
    settings_theme = settings_sub.add_parser("theme", help="Set the theme")
    settings_theme.add_argument("theme", choices=sorted(THEMES))

    reset_parser = subparsers.add_parser("reset", help="Delete all data")
    reset_parser.add_argument("--yes", action="store_true", help="Confirm deletion")

    return parser


HANDLERS = {
    "txn": handle_transaction,
    "summary": handle_summary,
    "budget": handle_budget,
    "notifications": handle_notifications,
    "export": handle_export,
    "profile": handle_profile,
    "settings": handle_settings,
    "reset": handle_reset,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        tracker = SmartSpend.from_config(AppConfig.from_env(data_dir=args.data_dir))
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1

    try:
        status = HANDLERS[args.entity](args, tracker)
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 1
    finally:
        tracker.close()
    return status or 0


if __name__ == "__main__":
    raise SystemExit(main())
