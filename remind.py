#!/usr/bin/env python3
"""
CLI for vehicle maintenance reminders.

Commands:
  status      - Show a car's reminders with priority and remaining time/distance
  log         - Record a maintenance event and generate the next reminder
  unlog       - Delete the reminders generated from a maintenance event
  done        - Mark a reminder done
  snooze      - Snooze a reminder for N days
  dismiss     - Dismiss a reminder
  provision   - Create the starter reminder set for a vehicle
  categories  - List maintenance categories that generate reminders
"""

import argparse
import logging
import os
import sys
import uuid
from datetime import datetime
from tabulate import tabulate
from typing import List, Optional

from reminders import (
    Priority,
    Principal,
    ReminderDue,
    ReminderEngine,
    ReminderError,
    SuggestionSpec,
    VehicleProfile,
    YamlReminderStore,
    catalog,
    load_config,
    naive_local,
)

# =============================================================================
# Formatting helpers
# =============================================================================


def format_km(km: Optional[float]) -> str:
    """Format a distance in km for display."""
    return f"{km:,.0f}" if km is not None else "-"


def format_date(value: Optional[datetime]) -> str:
    """Format a due date for display."""
    return value.date().isoformat() if value is not None else "-"


def format_days(days: Optional[int]) -> str:
    """Format remaining days for display (e.g., '3mo 15d' or '-2mo 5d')."""
    if days is None:
        return "-"

    sign = "-" if days < 0 else ""
    days = abs(days)
    months = days // 30
    remaining_days = days % 30
    if months > 0:
        return f"{sign}{months}mo {remaining_days}d"
    return f"{sign}{days}d"


def format_priority(priority: Optional[Priority]) -> str:
    return priority.label.upper() if priority is not None else "-"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if not text:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def make_status_table(results: List[ReminderDue]) -> List[List[str]]:
    """Convert evaluated reminders to table rows."""
    rows = []
    for due in results:
        reminder = due.reminder
        rows.append(
            [
                reminder.id,
                reminder.title,
                reminder.status.value,
                format_priority(due.priority),
                format_date(reminder.due_date),
                format_km(reminder.due_odometer_km),
                format_days(due.days_remaining),
                format_km(due.km_remaining),
            ]
        )
    return rows


def make_suggestion_table(specs: List[SuggestionSpec]) -> List[List[str]]:
    """Convert provisioning suggestions to table rows."""
    return [
        [
            spec.title,
            spec.kind.value,
            format_date(spec.due_date),
            format_km(spec.due_odometer_km),
            format_priority(spec.priority),
        ]
        for spec in specs
    ]


def parse_datetime(value: str) -> datetime:
    """argparse type for YYYY-MM-DD or full ISO timestamps."""
    try:
        return naive_local(datetime.fromisoformat(value))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}' (expected YYYY-MM-DD)")


# =============================================================================
# Commands
# =============================================================================


def cmd_status(engine: ReminderEngine, principal: Principal, args) -> int:
    """Show a car's reminders, most urgent first."""
    results = engine.reminders_for_car(
        principal,
        args.car_id,
        current_odometer_km=args.odometer,
        now=args.now,
        include_closed=args.all,
    )

    print(f"Car: {args.car_id}")
    if args.odometer is not None:
        print(f"Current odometer: {args.odometer:,} km")
    print(f"Reminders: {len(results)}")
    print()

    if not results:
        print("No reminders found.")
        return 0

    due_now = [d for d in results if d.is_due]
    upcoming = [d for d in results if not d.is_due]

    headers = ["ID", "Title", "Status", "Priority", "Due (date)", "Due (km)", "Remaining (time)", "Remaining (km)"]

    if due_now:
        print("DUE:")
        print(tabulate(make_status_table(due_now), headers=headers, tablefmt="simple"))
        print()

    if upcoming:
        print("UPCOMING:")
        print(tabulate(make_status_table(upcoming), headers=headers, tablefmt="simple"))
        print()

    return 0


def cmd_log(engine: ReminderEngine, principal: Principal, args) -> int:
    """Record a maintenance event and generate its follow-up reminder."""
    performed_at = args.date or datetime.now()
    event_id = args.event_id or uuid.uuid4().hex

    print(f"Maintenance event for car {args.car_id}:")
    print(f"  Category: {args.category}")
    print(f"  Date:     {format_date(performed_at)}")
    if args.odometer is not None:
        print(f"  Odometer: {args.odometer:,} km")
    print(f"  Event:    {event_id}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    reminder = engine.generate_from_maintenance_event(
        principal, args.car_id, args.category, performed_at, args.odometer, event_id
    )
    if reminder is None:
        print("No reminder generated (category not in catalog).")
        return 0

    print(f"Created reminder {reminder.id}: {reminder.title}")
    if reminder.due_date is not None:
        print(f"  Due date: {format_date(reminder.due_date)}")
    if reminder.due_odometer_km is not None:
        print(f"  Due at:   {format_km(reminder.due_odometer_km)} km")
    return 0


def cmd_unlog(engine: ReminderEngine, principal: Principal, args) -> int:
    """Delete reminders generated from a maintenance event."""
    removed = engine.delete_reminders_for_maintenance_event(principal, args.car_id, args.event_id)
    print(f"Deleted {removed} reminder(s) for event {args.event_id}.")
    return 0


def cmd_done(engine: ReminderEngine, principal: Principal, args) -> int:
    reminder = engine.mark_done(principal, args.reminder_id)
    print(f"Marked done: {reminder.title}")
    return 0


def cmd_snooze(engine: ReminderEngine, principal: Principal, args) -> int:
    reminder = engine.snooze(principal, args.reminder_id, args.days)
    print(f"Snoozed until {format_date(reminder.due_date)}: {reminder.title}")
    return 0


def cmd_dismiss(engine: ReminderEngine, principal: Principal, args) -> int:
    reminder = engine.dismiss(principal, args.reminder_id)
    print(f"Dismissed: {reminder.title}")
    return 0


def cmd_provision(engine: ReminderEngine, principal: Principal, args) -> int:
    """Create the starter reminder set for a vehicle."""
    vehicle = VehicleProfile(
        id=args.car_id,
        next_inspection_date=args.inspection_date,
        average_km_per_month=args.avg_km,
        current_odometer_km=args.odometer,
    )
    specs = engine.generate_initial_reminders(principal, vehicle)

    headers = ["Title", "Kind", "Due (date)", "Due (km)", "Priority"]
    print(f"Starter reminders for car {args.car_id}:")
    print(tabulate(make_suggestion_table(specs), headers=headers, tablefmt="simple"))
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    saved = engine.provision_vehicle(principal, vehicle)
    print(f"Saved {len(saved)} reminder(s).")
    return 0


def cmd_categories(engine: ReminderEngine, principal: Principal, args) -> int:
    """List maintenance categories that generate reminders."""
    rows = []
    for rule in catalog():
        interval = []
        if rule.km_offset:
            interval.append(f"{rule.km_offset:,} km")
        if rule.months_offset:
            interval.append(f"{rule.months_offset} mo")
        rows.append(
            [
                rule.category.value,
                rule.title,
                rule.kind.value,
                " / ".join(interval) if interval else "-",
                ", ".join(rule.category.aliases),
            ]
        )

    headers = ["Category", "Title", "Kind", "Interval", "Aliases"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


COMMANDS = {
    "status": cmd_status,
    "log": cmd_log,
    "unlog": cmd_unlog,
    "done": cmd_done,
    "snooze": cmd_snooze,
    "dismiss": cmd_dismiss,
    "provision": cmd_provision,
    "categories": cmd_categories,
}


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Vehicle maintenance reminders",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --user alice status car1 --odometer 52000
  %(prog)s --user alice log car1 "oil change" --date 2024-01-10 --odometer 50000
  %(prog)s --user alice unlog car1 e1
  %(prog)s --user alice snooze 3f2a... --days 14
  %(prog)s --user alice provision car1 --inspection-date 2025-03-01 \\
      --avg-km 800 --odometer 42000
  %(prog)s categories
""",
    )
    parser.add_argument(
        "--user",
        default=os.environ.get("REMINDERS_USER"),
        help="User id owning the reminders (default: $REMINDERS_USER)",
    )
    parser.add_argument("--config", help="Path to engine config YAML")
    parser.add_argument("--store", help="Reminder store directory (overrides config)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    status_parser = subparsers.add_parser("status", help="Show reminders for a car")
    status_parser.add_argument("car_id")
    status_parser.add_argument("--odometer", type=int, help="Current odometer in km")
    status_parser.add_argument("--now", type=parse_datetime, help="Evaluate as of this date")
    status_parser.add_argument("--all", action="store_true", help="Include done/dismissed reminders")

    log_parser = subparsers.add_parser("log", help="Record a maintenance event")
    log_parser.add_argument("car_id")
    log_parser.add_argument("category", help="Maintenance performed (e.g., 'oil change')")
    log_parser.add_argument("--date", type=parse_datetime, help="Service date (default: today)")
    log_parser.add_argument("--odometer", type=int, help="Odometer at service in km")
    log_parser.add_argument("--event-id", help="Maintenance record id (default: random)")
    log_parser.add_argument("--dry-run", action="store_true", help="Show what would be logged without saving")

    unlog_parser = subparsers.add_parser("unlog", help="Delete reminders of a maintenance event")
    unlog_parser.add_argument("car_id")
    unlog_parser.add_argument("event_id")

    done_parser = subparsers.add_parser("done", help="Mark a reminder done")
    done_parser.add_argument("reminder_id")

    snooze_parser = subparsers.add_parser("snooze", help="Snooze a reminder")
    snooze_parser.add_argument("reminder_id")
    snooze_parser.add_argument("--days", type=int, help="Days to snooze (default from config)")

    dismiss_parser = subparsers.add_parser("dismiss", help="Dismiss a reminder")
    dismiss_parser.add_argument("reminder_id")

    provision_parser = subparsers.add_parser("provision", help="Create starter reminders for a car")
    provision_parser.add_argument("car_id")
    provision_parser.add_argument("--inspection-date", type=parse_datetime, help="Next inspection expiry")
    provision_parser.add_argument("--avg-km", type=float, help="Average km driven per month")
    provision_parser.add_argument("--odometer", type=int, help="Current odometer in km")
    provision_parser.add_argument("--dry-run", action="store_true", help="Show reminders without saving")

    subparsers.add_parser("categories", help="List maintenance categories")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        config = load_config(args.config)
    except ReminderError as e:
        print(f"Error: {e}")
        return 1
    store_dir = args.store or config.store_dir
    engine = ReminderEngine(YamlReminderStore(store_dir), config=config)

    principal = Principal(args.user) if args.user else None
    if principal is None and args.command != "categories":
        print("Error: --user (or REMINDERS_USER) is required")
        return 1

    try:
        return COMMANDS[args.command](engine, principal, args)
    except ReminderError as e:
        print(f"Error: {e}")
        return 1
    except ValueError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
