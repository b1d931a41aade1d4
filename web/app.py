"""Flask JSON API for vehicle maintenance reminders."""

import os
import sys
from datetime import datetime
from pathlib import Path

from flask import Flask, jsonify, request

# Add parent directory to path for package imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from reminders import (
    InvalidTransitionError,
    Principal,
    Reminder,
    ReminderEngine,
    ReminderKind,
    ReminderNotFoundError,
    UnauthenticatedError,
    VehicleProfile,
    YamlReminderStore,
    load_config,
    naive_local,
)
from reminders.store import reminder_to_dict

# Header set by the auth proxy in front of this app
USER_HEADER = "X-User-Id"


def current_principal():
    """Principal resolved upstream; None when the request is unauthenticated."""
    user_id = request.headers.get(USER_HEADER)
    return Principal(user_id) if user_id else None


def parse_date(value):
    """Parse an ISO date/datetime from a JSON body, or None."""
    if value in (None, ""):
        return None
    try:
        return naive_local(datetime.fromisoformat(value))
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date '{value}'")


def parse_int(value):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid number '{value}'")


def due_to_dict(due):
    """Serialize an evaluated reminder for list views."""
    d = reminder_to_dict(due.reminder)
    d["isDue"] = due.is_due
    d["priority"] = due.priority.label
    d["daysUntilDue"] = due.days_remaining
    d["kmUntilDue"] = due.km_remaining
    return d


def spec_to_dict(spec):
    return {
        "title": spec.title,
        "kind": spec.kind.value,
        "category": spec.category.value if spec.category else None,
        "dueDate": spec.due_date.isoformat() if spec.due_date else None,
        "dueOdoKm": spec.due_odometer_km,
        "priority": spec.priority.label if spec.priority else None,
        "source": spec.source,
    }


def create_app(engine=None):
    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod")

    if engine is None:
        config = load_config()
        engine = ReminderEngine(YamlReminderStore(config.store_dir), config=config)
    app.config["ENGINE"] = engine

    @app.errorhandler(UnauthenticatedError)
    def handle_unauthenticated(e):
        return jsonify(error=str(e)), 401

    @app.errorhandler(ReminderNotFoundError)
    def handle_not_found(e):
        return jsonify(error=str(e)), 404

    @app.errorhandler(InvalidTransitionError)
    def handle_invalid_transition(e):
        return jsonify(error=str(e)), 409

    @app.errorhandler(ValueError)
    def handle_bad_input(e):
        return jsonify(error=str(e)), 400

    @app.route("/cars/<car_id>/reminders", methods=["GET"])
    def list_reminders(car_id: str):
        """Evaluated reminders for a car, most urgent first."""
        odometer = parse_int(request.args.get("odometer"))
        include_closed = request.args.get("all", "").lower() == "true"
        results = engine.reminders_for_car(
            current_principal(), car_id, current_odometer_km=odometer, include_closed=include_closed
        )
        return jsonify(
            reminders=[due_to_dict(d) for d in results],
            overdue=sum(1 for d in results if d.is_overdue),
            thisWeek=sum(1 for d in results if d.is_this_week),
        )

    @app.route("/cars/<car_id>/reminders", methods=["POST"])
    def create_reminder(car_id: str):
        """Create a manual reminder."""
        body = request.get_json(silent=True) or {}
        title = body.get("title")
        if not title:
            raise ValueError("title is required")
        reminder = Reminder(
            car_id=car_id,
            kind=ReminderKind(body.get("kind", "time")),
            title=title,
            due_date=parse_date(body.get("dueDate")),
            due_odometer_km=parse_int(body.get("dueOdoKm")),
            notes=body.get("notes") or "",
        )
        engine.create_reminder(current_principal(), reminder)
        return jsonify(reminder_to_dict(reminder)), 201

    @app.route("/reminders/<reminder_id>", methods=["GET"])
    def get_reminder(reminder_id: str):
        reminder = engine.get_reminder(current_principal(), reminder_id)
        return jsonify(reminder_to_dict(reminder))

    @app.route("/reminders/<reminder_id>/done", methods=["POST"])
    def mark_done(reminder_id: str):
        reminder = engine.mark_done(current_principal(), reminder_id)
        return jsonify(reminder_to_dict(reminder))

    @app.route("/reminders/<reminder_id>/dismiss", methods=["POST"])
    def dismiss(reminder_id: str):
        reminder = engine.dismiss(current_principal(), reminder_id)
        return jsonify(reminder_to_dict(reminder))

    @app.route("/reminders/<reminder_id>/snooze", methods=["POST"])
    def snooze(reminder_id: str):
        body = request.get_json(silent=True) or {}
        reminder = engine.snooze(current_principal(), reminder_id, parse_int(body.get("days")))
        return jsonify(reminder_to_dict(reminder))

    @app.route("/cars/<car_id>/maintenance", methods=["POST"])
    def log_maintenance(car_id: str):
        """Handle a logged maintenance event: generate the follow-up reminder."""
        body = request.get_json(silent=True) or {}
        category = body.get("category")
        event_id = body.get("eventId")
        if not category or not event_id:
            raise ValueError("category and eventId are required")
        reminder = engine.generate_from_maintenance_event(
            current_principal(),
            car_id,
            category,
            parse_date(body.get("performedAt")) or datetime.now(),
            parse_int(body.get("odometer")),
            event_id,
        )
        if reminder is None:
            return jsonify(reminder=None)
        return jsonify(reminder=reminder_to_dict(reminder)), 201

    @app.route("/cars/<car_id>/maintenance/<event_id>/reminders", methods=["DELETE"])
    def unlog_maintenance(car_id: str, event_id: str):
        removed = engine.delete_reminders_for_maintenance_event(current_principal(), car_id, event_id)
        return jsonify(deleted=removed)

    @app.route("/cars/<car_id>/provision", methods=["POST"])
    def provision(car_id: str):
        """Create (or preview with dryRun) the starter reminder set for a car."""
        body = request.get_json(silent=True) or {}
        avg_km = body.get("averageKmPerMonth")
        vehicle = VehicleProfile(
            id=car_id,
            next_inspection_date=parse_date(body.get("nextInspectionDate")),
            average_km_per_month=float(avg_km) if avg_km is not None else None,
            current_odometer_km=parse_int(body.get("currentOdometerKm")),
        )
        if body.get("dryRun"):
            specs = engine.generate_initial_reminders(current_principal(), vehicle)
            return jsonify(reminders=[spec_to_dict(s) for s in specs])
        saved = engine.provision_vehicle(current_principal(), vehicle)
        return jsonify(reminders=[reminder_to_dict(r) for r in saved]), 201

    return app


if __name__ == "__main__":
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    create_app().run(debug=True, host="0.0.0.0", port=5001)
