"""Flask REST API exposing the SmartSpend services."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from smartspend.config import AppConfig
from smartspend.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from smartspend.tracker import SmartSpend


def create_app(
    data_dir: Optional[Path] = None,
    *,
    tracker: Optional[SmartSpend] = None,
    config: Optional[AppConfig] = None,
) -> Flask:
    app = Flask(__name__)
    config = config or AppConfig.from_env(data_dir=data_dir)

    if config.is_dev:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    elif config.allowed_origins:
        CORS(app, resources={r"/*": {"origins": list(config.allowed_origins)}}, supports_credentials=True)
    else:
        CORS(app)

    tracker = tracker or SmartSpend.from_config(config)
    app.extensions["smartspend"] = tracker

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc)}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error")

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Record not found")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, "Persistence error")

    def _json_body() -> Dict[str, Any]:
        if not request.is_json:
            raise ValidationError("Request content must be application/json")
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Malformed JSON body")
        return data

    def _period() -> Tuple[Optional[int], Optional[int]]:
        # Unparseable values come back as None and fall through to the current month.
        year = request.args.get("year", type=int)
        month = request.args.get("month", type=int)
        if month is not None and not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12")
        return year, month

    # Transactions ---------------------------------------------------------
    @app.get("/transactions")
    def list_transactions():
        year, month = _period()
        records = tracker.ledger.query(
            type=request.args.get("type") or None,
            search=request.args.get("search") or None,
            sort=request.args.get("sort") or "date-desc",
        )
        if year and month:
            records = [txn for txn in records if txn.date.year == year and txn.date.month == month]
        return _success({"items": [txn.to_dict() for txn in records]})

    @app.post("/transactions")
    def create_transaction():
        outcome = tracker.record_transaction(_json_body())
        return _success(outcome.to_dict(), 201)

    @app.get("/transactions/<transaction_id>")
    def get_transaction(transaction_id: str):
        return _success(tracker.ledger.get(transaction_id).to_dict())

    @app.put("/transactions/<transaction_id>")
    def update_transaction(transaction_id: str):
        transaction = tracker.update_transaction(transaction_id, _json_body())
        return _success(transaction.to_dict())

    @app.delete("/transactions/<transaction_id>")
    def delete_transaction(transaction_id: str):
        tracker.delete_transaction(transaction_id)
        return _success({}, 204)

    # Analytics ------------------------------------------------------------
    @app.get("/summary")
    def summary():
        year, month = _period()
        return _success(tracker.monthly_summary(year, month).to_dict())

    @app.get("/analytics/categories")
    def category_analytics():
        year, month = _period()
        shares = tracker.category_breakdown(year, month)
        return _success({"items": [share.to_dict() for share in shares]})

    # Budgets --------------------------------------------------------------
    @app.get("/budgets")
    def list_budgets():
        return _success({"items": [goal.to_dict() for goal in tracker.budgets.list()]})

    @app.put("/budgets/<category>")
    def set_budget(category: str):
        payload = _json_body()
        goal = tracker.set_budget(category, payload.get("limit"))
        return _success(goal.to_dict())

    @app.delete("/budgets/<category>")
    def remove_budget(category: str):
        tracker.remove_budget(category)
        return _success({}, 204)

    @app.get("/budgets/status")
    def budget_status():
        year, month = _period()
        return _success({
            "items": [status.to_dict() for status in tracker.budget_statuses(year, month)],
            "overview": tracker.budget_overview(year, month).to_dict(),
        })

    # Notifications & alerts -------------------------------------------------
    @app.get("/notifications")
    def list_notifications():
        return _success({
            "items": [item.to_dict() for item in tracker.notifications.list()],
            "unread_count": tracker.notifications.unread_count,
        })

    @app.post("/notifications/<notification_id>/read")
    def mark_notification_read(notification_id: str):
        tracker.mark_notification_read(notification_id)
        return _success({}, 204)

    @app.post("/notifications/read-all")
    def mark_all_notifications_read():
        tracker.mark_all_notifications_read()
        return _success({}, 204)

    @app.delete("/notifications/<notification_id>")
    def delete_notification(notification_id: str):
        tracker.delete_notification(notification_id)
        return _success({}, 204)

    @app.delete("/notifications")
    def clear_notifications():
        tracker.clear_notifications()
        return _success({}, 204)

    @app.get("/alerts")
    def list_alerts():
        return _success({"items": [alert.to_dict() for alert in tracker.alerts.active()]})

    @app.delete("/alerts/<alert_id>")
    def dismiss_alert(alert_id: str):
        if not tracker.alerts.dismiss(alert_id):
            raise RecordNotFoundError(f"Alert {alert_id} not found")
        return _success({}, 204)

    # Profile & settings -----------------------------------------------------
    @app.get("/profile")
    def get_profile():
        return _success(tracker.profile.get().to_dict())

    @app.put("/profile")
    def update_profile():
        return _success(tracker.update_profile(_json_body()).to_dict())

    @app.get("/settings")
    def get_settings():
        return _success(tracker.settings.to_dict())

    @app.put("/settings")
    def update_settings():
        payload = _json_body()
        settings = tracker.update_settings(
            currency=payload.get("currency"), theme=payload.get("theme")
        )
        return _success(settings)

    # Export & reset ---------------------------------------------------------
    @app.get("/export")
    def export():
        if request.args.get("format") == "full":
            body = tracker.export_data()
        else:
            body = tracker.export_history(
                type=request.args.get("type") or None,
                search=request.args.get("search") or None,
                sort=request.args.get("sort") or "date-desc",
            )
        return Response(body, mimetype="text/plain")

    @app.post("/reset")
    def reset():
        tracker.clear_all()
        return _success({}, 204)

    return app
