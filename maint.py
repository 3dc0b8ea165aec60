#!/usr/bin/env python3
"""
Unified CLI for vehicle maintenance tracking.

Commands:
  vehicles     - List registered vehicles
  add-vehicle  - Register a new vehicle
  predict      - Show when each service is next due
  history      - View service history
  log          - Add a new service record
  update-miles - Update current vehicle mileage
  rules        - List service types and their intervals
  remind       - Print reminders for every vehicle with services due soon
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional, Sequence

import yaml
from dateutil import tz

from maintenance import (
    DEFAULT_RULES,
    MaintenanceError,
    Prediction,
    Reminder,
    ServiceRecord,
    ServiceRule,
    Settings,
    Status,
    Vehicle,
    YamlStore,
    aggregate,
    get_rule,
    parse_timestamp,
    run_reminder_scan,
    vehicle_predictions,
)

# =============================================================================
# Formatting helpers
# =============================================================================


def format_miles(miles: Optional[float]) -> str:
    """Format mileage for display."""
    return f"{miles:,.0f}" if miles is not None else "-"


def format_cost(cost: Optional[float]) -> str:
    """Format cost for display."""
    return f"${cost:,.2f}" if cost is not None else "-"


def format_date(when: Optional[datetime]) -> str:
    """Format a timestamp as a date for display."""
    return when.date().isoformat() if when is not None else "-"


def format_days_until(days: int) -> str:
    """Format days until due (e.g., '3mo 15d' or '-2mo 5d')."""
    sign = "-" if days < 0 else ""
    days = abs(days)
    months = days // 30
    remaining_days = days % 30
    if months > 0:
        return f"{sign}{months}mo {remaining_days}d"
    return f"{sign}{days}d"


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def now_or(as_of: Optional[str]) -> datetime:
    """Evaluation time: --as-of if given, otherwise the current time."""
    if as_of:
        return parse_timestamp(as_of)
    return datetime.now(tz.UTC)


# =============================================================================
# Predict command
# =============================================================================


def make_prediction_table(predictions: List[Prediction]) -> List[List[str]]:
    """Convert predictions to table rows."""
    rows = []
    for pred in predictions:
        last_done = "-"
        if pred.last_service_date is not None:
            last_done = (
                f"{format_date(pred.last_service_date)} @ "
                f"{format_miles(pred.last_service_mileage)}"
            )

        rows.append(
            [
                pred.service_name,
                last_done,
                format_miles(pred.recommended_mileage),
                format_date(pred.next_service_date),
                format_days_until(pred.days_until),
            ]
        )
    return rows


def cmd_predict(args, store: YamlStore):
    """Show when each service is next due."""
    rules = store.rules
    now = now_or(args.as_of)

    if args.json:
        report = vehicle_predictions(store, args.owner, args.vehicle_id, now, rules)
        print(json.dumps(report, indent=2))
        return 0

    vehicle = store.get_vehicle(args.owner, args.vehicle_id)
    records = store.query_services(args.vehicle_id)
    predictions = aggregate(vehicle, records, now, rules)

    print(f"Vehicle: {vehicle.name}")
    print(f"Current mileage: {format_miles(vehicle.current_mileage)}")
    print(f"As of: {now.isoformat()}")
    print(f"Service records: {len(records)}")
    print()

    headers = ["Service", "Last Done", "Due (mi)", "Due (date)", "Remaining"]
    groups = [
        ("OVERDUE:", Status.OVERDUE),
        ("DUE SOON:", Status.DUE_SOON),
        ("OK:", Status.OK),
    ]
    for title, status in groups:
        group = [p for p in predictions if p.status == status]
        if group:
            print(title)
            print(
                tabulate(make_prediction_table(group), headers=headers, tablefmt="simple")
            )
            print()

    first = [p.service_name for p in predictions if p.is_first_service]
    if first:
        print(f"No history yet ({len(first)}): {', '.join(first)}")

    return 0


# =============================================================================
# History command
# =============================================================================


def make_history_table(
    records: List[ServiceRecord], rules: Sequence[ServiceRule] = DEFAULT_RULES
) -> List[List[str]]:
    """Convert service records to table rows."""
    rows = []
    for record in records:
        # Fall back to the raw type when the rule no longer exists
        rule = get_rule(record.service_type, rules)
        display_name = rule.display_name if rule else record.service_type

        rows.append(
            [
                format_date(record.service_date),
                format_miles(record.mileage),
                display_name,
                record.service_provider or "-",
                format_cost(record.cost),
                truncate(record.notes or record.description),
            ]
        )
    return rows


def sort_history(
    records: List[ServiceRecord], sort_by: str = "date", reverse: bool = True
) -> List[ServiceRecord]:
    """
    Sort service records by the given field.

    Args:
        sort_by: "date", "miles", or "type"
        reverse: If True, newest/highest first (default)
    """
    if sort_by == "date":
        return sorted(records, key=lambda r: r.service_date, reverse=reverse)
    elif sort_by == "miles":
        return sorted(records, key=lambda r: r.mileage or 0, reverse=reverse)
    elif sort_by == "type":
        return sorted(
            records, key=lambda r: (r.service_type, r.service_date), reverse=reverse
        )
    return records


def cmd_history(args, store: YamlStore):
    """View service history."""
    vehicle = store.get_vehicle(args.owner, args.vehicle_id)
    records = sort_history(
        store.query_services(args.vehicle_id), sort_by=args.sort, reverse=not args.asc
    )
    total = len(records)

    # Apply filters
    if args.type:
        records = [r for r in records if args.type.lower() in r.service_type.lower()]

    if args.since:
        since = parse_timestamp(args.since)
        records = [r for r in records if r.service_date >= since]

    total_cost = sum(r.cost for r in records if r.cost is not None)

    print(f"Vehicle: {vehicle.name}")
    print(f"Current mileage: {format_miles(vehicle.current_mileage)}")
    print(f"Total services: {total}")
    if args.type or args.since:
        print(f"Showing: {len(records)} (filtered)")
    if total_cost > 0:
        print(f"Total cost: ${total_cost:,.2f}")
    print()

    if not records:
        print("No service records found.")
        return 0

    headers = ["Date", "Mileage", "Service", "Provider", "Cost", "Notes"]
    print(
        tabulate(
            make_history_table(records, store.rules),
            headers=headers,
            tablefmt="simple",
        )
    )

    return 0


# =============================================================================
# Log command
# =============================================================================


def cmd_log(args, store: YamlStore):
    """Add a new service record."""
    vehicle = store.get_vehicle(args.owner, args.vehicle_id)
    rules = store.rules

    service_type = args.service_type.lower()
    rule = get_rule(service_type, rules)
    if rule is None:
        print(f"Error: Unknown service type '{args.service_type}'")
        print("\nAvailable service types:")
        for r in rules:
            print(f"  {r.service_type:<22} {r.display_name}")
        return 1

    service_date = parse_timestamp(args.date) if args.date else None
    mileage = args.mileage if args.mileage is not None else vehicle.current_mileage

    print(f"Adding service record to {vehicle.name}:")
    print(f"  Service: {rule.display_name}")
    print(f"  Date:    {format_date(service_date) if service_date else 'now'}")
    print(f"  Mileage: {format_miles(mileage)}")
    if args.by:
        print(f"  By:      {args.by}")
    if args.description:
        print(f"  Desc:    {args.description}")
    if args.notes:
        print(f"  Notes:   {args.notes}")
    if args.cost is not None:
        print(f"  Cost:    {format_cost(args.cost)}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    record = store.add_service(
        args.owner,
        args.vehicle_id,
        rule.service_type,
        service_date=service_date,
        mileage=mileage,
        description=args.description,
        cost=args.cost,
        service_provider=args.by,
        notes=args.notes,
    )
    print(f"Record saved ({record.service_id}).")

    # Keep the odometer from going backwards when logging a newer reading
    if mileage > vehicle.current_mileage:
        store.update_vehicle(args.owner, args.vehicle_id, current_mileage=mileage)
        print(f"Mileage updated to {format_miles(mileage)}.")

    return 0


# =============================================================================
# Update Miles command
# =============================================================================


def cmd_update_miles(args, store: YamlStore):
    """Update current vehicle mileage."""
    vehicle = store.get_vehicle(args.owner, args.vehicle_id)

    print(f"Vehicle: {vehicle.name}")
    print(f"Current mileage: {format_miles(vehicle.current_mileage)}")
    print(f"New mileage:     {format_miles(args.mileage)}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    store.update_vehicle(args.owner, args.vehicle_id, current_mileage=args.mileage)
    print("Mileage updated.")

    return 0


# =============================================================================
# Vehicle commands
# =============================================================================


def cmd_vehicles(args, store: YamlStore):
    """List registered vehicles."""
    vehicles = store.list_vehicles(args.owner)
    if not vehicles:
        print("No vehicles found.")
        return 0

    rows = [
        [v.vehicle_id, v.name, v.vin or "-", format_miles(v.current_mileage)]
        for v in vehicles
    ]
    headers = ["ID", "Vehicle", "VIN", "Mileage"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_add_vehicle(args, store: YamlStore):
    """Register a new vehicle."""
    vehicle = Vehicle(
        vehicle_id=args.vehicle_id,
        owner_id=args.owner,
        make=args.make,
        model=args.model,
        year=args.year,
        current_mileage=args.mileage,
        vin=args.vin,
        nickname=args.nickname,
    )
    store.create_vehicle(vehicle)
    print(f"Added {vehicle.name} as '{vehicle.vehicle_id}'.")
    return 0


# =============================================================================
# Rules command
# =============================================================================


def cmd_rules(args, store: YamlStore):
    """List service types and their intervals."""
    rules = store.rules
    rows = []
    for rule in rules:
        miles = f"{rule.mileage_interval:,.0f} mi" if not rule.is_time_only else "-"
        rows.append(
            [rule.service_type, rule.display_name, miles, f"{rule.time_interval_days} d"]
        )

    headers = ["Type", "Service", "Mileage", "Time"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Remind command
# =============================================================================


def print_reminder(reminder: Reminder) -> None:
    """Reminder channel that writes to stdout."""
    print(f"To: {reminder.owner_id}")
    print(f"Subject: {reminder.subject}")
    print()
    print(reminder.body)


def cmd_remind(args, store: YamlStore):
    """Print reminders for every vehicle with services due soon."""
    channel = None if args.dry_run else print_reminder
    summary = run_reminder_scan(store, now_or(args.as_of), channel, store.rules)
    print(
        f"Checked {summary['vehiclesProcessed']} vehicles, "
        f"{summary['remindersSent']} reminders sent."
    )
    return 0


# =============================================================================
# Main
# =============================================================================


COMMANDS = {
    "vehicles": cmd_vehicles,
    "add-vehicle": cmd_add_vehicle,
    "predict": cmd_predict,
    "history": cmd_history,
    "log": cmd_log,
    "update-miles": cmd_update_miles,
    "rules": cmd_rules,
    "remind": cmd_remind,
}


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Vehicle maintenance tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s add-vehicle civic --make Honda --model Civic --year 2018 --mileage 42000
  %(prog)s predict civic
  %(prog)s predict civic --json --as-of 2025-06-01
  %(prog)s history civic --type oil
  %(prog)s log civic oil_change --mileage 42500 --by "Quick Lube" --cost 49.99
  %(prog)s update-miles civic 43000
  %(prog)s remind
""",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=settings.data_dir,
        help="Directory of vehicle YAML files (env: MAINT_DATA_DIR)",
    )
    parser.add_argument(
        "--owner",
        type=str,
        default=settings.owner_id,
        help="Owner ID (env: MAINT_OWNER)",
    )
    parser.add_argument(
        "--rules",
        type=Path,
        default=settings.rules_file,
        help="YAML file with an alternate service rule table (env: MAINT_RULES_FILE)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log progress messages"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("vehicles", help="List registered vehicles")

    add_parser = subparsers.add_parser("add-vehicle", help="Register a new vehicle")
    add_parser.add_argument("vehicle_id", type=str, help="Vehicle ID (e.g., 'civic')")
    add_parser.add_argument("--make", type=str, help="Manufacturer")
    add_parser.add_argument("--model", type=str, help="Model")
    add_parser.add_argument("--year", type=int, help="Model year")
    add_parser.add_argument("--vin", type=str, help="Vehicle identification number")
    add_parser.add_argument("--nickname", type=str, help="Nickname")
    add_parser.add_argument(
        "--mileage", type=float, default=0, help="Current mileage (default: 0)"
    )

    predict_parser = subparsers.add_parser(
        "predict", help="Show when each service is next due"
    )
    predict_parser.add_argument("vehicle_id", type=str, help="Vehicle ID")
    predict_parser.add_argument(
        "--as-of",
        type=str,
        help="Evaluate as of this ISO date/time instead of now",
    )
    predict_parser.add_argument(
        "--json", action="store_true", help="Print the prediction report as JSON"
    )

    history_parser = subparsers.add_parser("history", help="View service history")
    history_parser.add_argument("vehicle_id", type=str, help="Vehicle ID")
    history_parser.add_argument(
        "--type",
        type=str,
        help="Filter to service types containing text (e.g., 'oil', 'brake')",
    )
    history_parser.add_argument(
        "--since",
        type=str,
        help="Show only records since date (YYYY-MM-DD)",
    )
    history_parser.add_argument(
        "--sort",
        choices=["date", "miles", "type"],
        default="date",
        help="Sort order (default: date)",
    )
    history_parser.add_argument(
        "--asc",
        action="store_true",
        help="Sort ascending instead of descending",
    )

    log_parser = subparsers.add_parser("log", help="Add a new service record")
    log_parser.add_argument("vehicle_id", type=str, help="Vehicle ID")
    log_parser.add_argument(
        "service_type", type=str, help="Service type (e.g., 'oil_change')"
    )
    log_parser.add_argument(
        "--date",
        type=str,
        help="Service date in ISO format (default: now)",
    )
    log_parser.add_argument(
        "--mileage",
        type=float,
        help="Mileage at time of service (default: current mileage)",
    )
    log_parser.add_argument(
        "--by", type=str, help="Service provider (e.g., 'self', 'Dealer')"
    )
    log_parser.add_argument("--description", type=str, help="What was done")
    log_parser.add_argument("--notes", type=str, help="Notes about the service")
    log_parser.add_argument("--cost", type=float, help="Cost of service")
    log_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be added without saving",
    )

    update_miles_parser = subparsers.add_parser(
        "update-miles", help="Update current vehicle mileage"
    )
    update_miles_parser.add_argument("vehicle_id", type=str, help="Vehicle ID")
    update_miles_parser.add_argument("mileage", type=float, help="Current mileage")
    update_miles_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be updated without saving",
    )

    subparsers.add_parser("rules", help="List service types and their intervals")

    remind_parser = subparsers.add_parser(
        "remind", help="Print reminders for vehicles with services due soon"
    )
    remind_parser.add_argument(
        "--as-of", type=str, help="Evaluate as of this ISO date/time instead of now"
    )
    remind_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Check vehicles without sending reminders",
    )

    return parser


def main(argv: Optional[List[str]] = None):
    settings = Settings.from_env()
    args = build_parser(settings).parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings.data_dir = args.data_dir
    settings.owner_id = args.owner
    settings.rules_file = args.rules

    try:
        store = YamlStore(settings.data_dir, settings.load_rules())
        return COMMANDS[args.command](args, store)
    except (MaintenanceError, ValueError, OSError, yaml.YAMLError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
