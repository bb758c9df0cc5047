#!/usr/bin/env python3
"""
Unified CLI for the jet ski fleet.

Commands:
  init        - Create a fleet file (optionally with demo data)
  fleet       - Show every vehicle with its status and current booking
  bookings    - List bookings
  available   - Show vehicles free for a time slot
  windows     - Show when vehicles of a brand are free together
  summary     - Dashboard counts
  book        - Add a booking
  block       - Schedule maintenance/refueling downtime
  complete    - Mark a downtime block as completed
  set-status  - Override a vehicle's status
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from dateutil.relativedelta import relativedelta
from tabulate import tabulate

from fleet import (
    AvailabilityWindow,
    Booking,
    BookingStatus,
    DowntimeType,
    FleetError,
    FleetService,
    Vehicle,
    VehicleStatus,
    current_booking,
    parse_timestamp,
    seed_fleet,
    yaml_store,
)
from fleet.loader import create_fleet_file
from fleet.service import utc_now

STATUS_LABELS = {
    VehicleStatus.AVAILABLE: "Available",
    VehicleStatus.IN_USE: "In use",
    VehicleStatus.REFUELING: "Refueling",
    VehicleStatus.MAINTENANCE: "Maintenance",
    VehicleStatus.BROKEN: "Broken",
}

BOOKING_LABELS = {
    BookingStatus.SCHEDULED: "Scheduled",
    BookingStatus.IN_PROGRESS: "In progress",
    BookingStatus.COMPLETED: "Completed",
    BookingStatus.CANCELLED: "Cancelled",
    BookingStatus.INTERRUPTED: "Interrupted",
}

# =============================================================================
# Formatting helpers
# =============================================================================


def format_clock(dt: datetime) -> str:
    """Format a time of day like '1:00 PM'."""
    hour = dt.strftime("%I").lstrip("0") or "12"
    return f"{hour}:{dt.strftime('%M %p')}"


def format_timestamp(dt: Optional[datetime]) -> str:
    """Format a timestamp for tables."""
    return dt.strftime("%Y-%m-%d %H:%M") if dt is not None else "-"


def format_time_range(start: datetime, end: datetime, as_of: datetime) -> str:
    """Format a range relative to as_of (e.g., 'Today, 1:00 PM - 2:30 PM')."""
    today = as_of.date()
    span = f"{format_clock(start)} - {format_clock(end)}"
    if start.date() == today:
        return f"Today, {span}"
    if start.date() == today + relativedelta(days=1):
        return f"Tomorrow, {span}"
    return f"{start.strftime('%b')} {start.day}, {start.year}, {span}"


def format_duration(start: datetime, end: datetime) -> str:
    """Format a duration (e.g., '30 minutes', '2 hours', '1.5 hours')."""
    hours = (end - start).total_seconds() / 3600
    if hours < 1:
        return f"{round(hours * 60)} minutes"
    if hours == 1:
        return "1 hour"
    if hours == int(hours):
        return f"{int(hours)} hours"
    return f"{hours:.1f} hours"


def format_status(status: VehicleStatus) -> str:
    return STATUS_LABELS[status]


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if not text:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def parse_time_arg(value: str) -> datetime:
    """argparse type for ISO timestamps."""
    try:
        return parse_timestamp(value)
    except FleetError as e:
        raise argparse.ArgumentTypeError(e.message)


# =============================================================================
# Table builders
# =============================================================================


def make_fleet_table(
    vehicles: List[Vehicle], bookings: List[Booking], as_of: datetime
) -> List[List[str]]:
    """Convert vehicles to table rows, with whoever is out on them now."""
    rows = []
    for vehicle in vehicles:
        running = current_booking(vehicle.id, bookings, as_of)
        rows.append(
            [
                str(vehicle.id),
                vehicle.name,
                vehicle.brand,
                format_status(vehicle.status),
                str(vehicle.hours_used),
                format_timestamp(vehicle.last_maintenance_date),
                f"{running.customer_name} until {format_clock(running.end_time)}"
                if running
                else "-",
            ]
        )
    return rows


def make_booking_table(
    bookings: List[Booking], vehicles: List[Vehicle], as_of: datetime
) -> List[List[str]]:
    """Convert bookings to table rows."""
    names = {v.id: v.name for v in vehicles}
    rows = []
    for booking in bookings:
        rows.append(
            [
                str(booking.id),
                booking.customer_name,
                names.get(booking.vehicle_id, f"#{booking.vehicle_id}"),
                format_time_range(booking.start_time, booking.end_time, as_of),
                format_duration(booking.start_time, booking.end_time),
                BOOKING_LABELS[booking.status],
                truncate(booking.notes),
            ]
        )
    return rows


def make_window_table(
    windows: List[AvailabilityWindow], as_of: datetime
) -> List[List[str]]:
    """Convert availability windows to table rows."""
    rows = []
    for window in windows:
        rows.append(
            [
                str(window.count),
                format_time_range(window.start, window.until, as_of),
                format_duration(window.start, window.until),
                ", ".join(v.name for v in window.vehicles),
            ]
        )
    return rows


# =============================================================================
# Commands
# =============================================================================


def cmd_init(args, as_of: datetime):
    """Create a fleet file."""
    if args.fleet_file.exists() and not args.force:
        print(f"Error: {args.fleet_file} already exists (use --force to overwrite)")
        return 1
    create_fleet_file(args.fleet_file)
    if args.seed:
        seed_fleet(yaml_store(args.fleet_file), as_of)
        print(f"Created {args.fleet_file} with demo fleet")
    else:
        print(f"Created {args.fleet_file}")
    return 0


def cmd_fleet(service: FleetService, args, as_of: datetime):
    """Show every vehicle."""
    vehicles = service.list_vehicles()
    if args.brand:
        key = args.brand.strip().casefold()
        vehicles = [v for v in vehicles if v.brand_key == key]

    counts = service.status_counts()
    print(f"Vehicles: {len(vehicles)}")
    print(
        "  ".join(f"{STATUS_LABELS[status]}: {count}" for status, count in counts.items())
    )
    print()

    if not vehicles:
        print("No vehicles found.")
        return 0

    headers = ["ID", "Name", "Brand", "Status", "Hours", "Last Maint.", "Current Booking"]
    rows = make_fleet_table(vehicles, service.list_bookings(), as_of)
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_bookings(service: FleetService, args, as_of: datetime):
    """List bookings."""
    if args.today:
        bookings = service.todays_bookings(as_of)
    else:
        bookings = service.list_bookings()
    if args.vehicle is not None:
        bookings = [b for b in bookings if b.vehicle_id == args.vehicle]
    if args.active:
        bookings = [b for b in bookings if b.is_active]
    bookings.sort(key=lambda b: b.start_time)

    if not bookings:
        print("No bookings found.")
        return 0

    headers = ["ID", "Customer", "Vehicle", "When", "Duration", "Status", "Notes"]
    rows = make_booking_table(bookings, service.list_vehicles(), as_of)
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_available(service: FleetService, args, as_of: datetime):
    """Show vehicles free for a time slot."""
    start = args.start or as_of
    end = args.end or start
    vehicles = service.available_vehicles(start, end)

    if end > start:
        print(f"Free {format_time_range(start, end, as_of)}: {len(vehicles)}")
    else:
        print(f"Free at {format_timestamp(start)}: {len(vehicles)}")
    print()
    if not vehicles:
        return 0
    rows = [[str(v.id), v.name, v.brand, str(v.hours_used)] for v in vehicles]
    print(tabulate(rows, headers=["ID", "Name", "Brand", "Hours"], tablefmt="simple"))
    return 0


def cmd_windows(service: FleetService, args, as_of: datetime):
    """Show when vehicles of a brand are free together."""
    brand = None if args.brand.lower() == "all" else args.brand
    until = as_of + relativedelta(days=args.days)
    windows = service.availability_windows(
        brand=brand, as_of=as_of, until=until, min_count=args.min_count
    )

    print(f"Brand: {args.brand}")
    print(f"From {format_timestamp(as_of)} to {format_timestamp(until)}")
    if args.min_count > 1:
        print(f"Filter: at least {args.min_count} vehicles")
    print()

    if not windows:
        print("No availability in this period.")
        return 0

    headers = ["Count", "When", "Duration", "Vehicles"]
    print(tabulate(make_window_table(windows, as_of), headers=headers, tablefmt="simple"))
    return 0


def cmd_summary(service: FleetService, args, as_of: datetime):
    """Dashboard counts."""
    summary = service.dashboard_summary(as_of)
    print(f"Total vehicles:      {summary.total_vehicles}")
    print(f"Available vehicles:  {summary.available_vehicles}")
    print(f"Today's bookings:    {summary.today_bookings}")
    print(f"Maintenance alerts:  {summary.maintenance_alerts}")
    print(f"Refueling needed:    {summary.refueling_needed}")
    return 0


def cmd_book(service: FleetService, args, as_of: datetime):
    """Add a booking."""
    vehicle = service.get_vehicle(args.vehicle_id)

    print(f"Adding booking to {args.fleet_file}:")
    print(f"  Vehicle:  {vehicle.name}")
    print(f"  Customer: {args.customer}")
    print(f"  When:     {format_time_range(args.start, args.end, as_of)}")
    if args.email:
        print(f"  Email:    {args.email}")
    if args.phone:
        print(f"  Phone:    {args.phone}")
    if args.notes:
        print(f"  Notes:    {args.notes}")
    print()

    if args.dry_run:
        free = service.available_vehicles(args.start, args.end)
        if any(v.id == vehicle.id for v in free):
            print("(dry run - vehicle is free, no changes made)")
        else:
            print("(dry run - vehicle is NOT free for this slot, no changes made)")
        return 0

    booking = service.create_booking(
        {
            "customer_name": args.customer,
            "customer_email": args.email,
            "customer_phone": args.phone,
            "vehicle_id": vehicle.id,
            "start_time": args.start,
            "end_time": args.end,
            "notes": args.notes,
        }
    )
    print(f"Booking {booking.id} saved.")
    return 0


def cmd_block(service: FleetService, args, as_of: datetime):
    """Schedule downtime."""
    vehicle = service.get_vehicle(args.vehicle_id)
    kind = DowntimeType(args.type)

    print(f"Adding {kind.value} to {args.fleet_file}:")
    print(f"  Vehicle: {vehicle.name}")
    print(f"  When:    {format_time_range(args.start, args.end, as_of)}")
    if args.notes:
        print(f"  Notes:   {args.notes}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    block = service.create_downtime(
        {
            "vehicle_id": vehicle.id,
            "type": kind,
            "start_time": args.start,
            "end_time": args.end,
            "notes": args.notes,
        },
        as_of=as_of,
    )
    updated = service.get_vehicle(vehicle.id)
    print(f"Downtime {block.id} saved.")
    if updated.status != vehicle.status:
        print(f"{vehicle.name} is now {format_status(updated.status)}.")
    return 0


def cmd_complete(service: FleetService, args, as_of: datetime):
    """Mark downtime completed."""
    block = service.complete_downtime(args.block_id)
    vehicle = service.get_vehicle(block.vehicle_id)
    print(f"Downtime {block.id} completed.")
    print(f"{vehicle.name} is {format_status(vehicle.status)}.")
    return 0


def cmd_set_status(service: FleetService, args, as_of: datetime):
    """Override a vehicle's status."""
    vehicle = service.update_vehicle(args.vehicle_id, {"status": VehicleStatus(args.status)})
    print(f"{vehicle.name} is now {format_status(vehicle.status)}.")
    return 0


COMMANDS = {
    "fleet": cmd_fleet,
    "bookings": cmd_bookings,
    "available": cmd_available,
    "windows": cmd_windows,
    "summary": cmd_summary,
    "book": cmd_book,
    "block": cmd_block,
    "complete": cmd_complete,
    "set-status": cmd_set_status,
}


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Jet ski fleet manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s fleet.yaml init --seed
  %(prog)s fleet.yaml fleet
  %(prog)s fleet.yaml bookings --today
  %(prog)s fleet.yaml windows --brand hardliner --min-count 2
  %(prog)s fleet.yaml available --start 2026-07-01T10:00 --end 2026-07-01T12:00
  %(prog)s fleet.yaml book 1 --customer "Jane Doe" \\
      --start 2026-07-01T10:00 --end 2026-07-01T12:00
  %(prog)s fleet.yaml block 3 --type refueling \\
      --start 2026-07-01T12:00 --end 2026-07-01T12:30
  %(prog)s fleet.yaml complete 2
""",
    )
    parser.add_argument("fleet_file", type=Path, help="Path to fleet YAML file")
    parser.add_argument(
        "--as-of",
        type=parse_time_arg,
        help="Treat this ISO timestamp as 'now' (default: current time)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create a fleet file")
    init_parser.add_argument("--seed", action="store_true", help="Add demo data")
    init_parser.add_argument("--force", action="store_true", help="Overwrite existing file")

    fleet_parser = subparsers.add_parser("fleet", help="Show every vehicle")
    fleet_parser.add_argument("--brand", type=str, help="Only this brand")

    bookings_parser = subparsers.add_parser("bookings", help="List bookings")
    bookings_parser.add_argument("--today", action="store_true", help="Only today's")
    bookings_parser.add_argument("--vehicle", type=int, help="Only this vehicle id")
    bookings_parser.add_argument(
        "--active", action="store_true", help="Hide cancelled and completed"
    )

    available_parser = subparsers.add_parser("available", help="Vehicles free for a slot")
    available_parser.add_argument("--start", type=parse_time_arg, help="Slot start")
    available_parser.add_argument("--end", type=parse_time_arg, help="Slot end")

    windows_parser = subparsers.add_parser(
        "windows", help="When vehicles of a brand are free together"
    )
    windows_parser.add_argument(
        "--brand", default="hardliner", help="Brand, or 'all' (default: hardliner)"
    )
    windows_parser.add_argument(
        "--min-count", type=int, default=1, help="Only windows with this many vehicles"
    )
    windows_parser.add_argument(
        "--days", type=int, default=7, help="How far ahead to look (default: 7)"
    )

    subparsers.add_parser("summary", help="Dashboard counts")

    book_parser = subparsers.add_parser("book", help="Add a booking")
    book_parser.add_argument("vehicle_id", type=int, help="Vehicle id")
    book_parser.add_argument("--customer", required=True, help="Customer name")
    book_parser.add_argument("--start", type=parse_time_arg, required=True)
    book_parser.add_argument("--end", type=parse_time_arg, required=True)
    book_parser.add_argument("--email", type=str, help="Customer email")
    book_parser.add_argument("--phone", type=str, help="Customer phone")
    book_parser.add_argument("--notes", type=str, help="Notes")
    book_parser.add_argument(
        "--dry-run", action="store_true", help="Check without saving"
    )

    block_parser = subparsers.add_parser("block", help="Schedule downtime")
    block_parser.add_argument("vehicle_id", type=int, help="Vehicle id")
    block_parser.add_argument(
        "--type", choices=[t.value for t in DowntimeType], default="maintenance"
    )
    block_parser.add_argument("--start", type=parse_time_arg, required=True)
    block_parser.add_argument("--end", type=parse_time_arg, required=True)
    block_parser.add_argument("--notes", type=str, help="Notes")
    block_parser.add_argument(
        "--dry-run", action="store_true", help="Show what would be added without saving"
    )

    complete_parser = subparsers.add_parser("complete", help="Complete downtime")
    complete_parser.add_argument("block_id", type=int, help="Downtime block id")

    status_parser = subparsers.add_parser("set-status", help="Override vehicle status")
    status_parser.add_argument("vehicle_id", type=int, help="Vehicle id")
    status_parser.add_argument("status", choices=[s.value for s in VehicleStatus])

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    as_of = args.as_of or utc_now()

    if args.command == "init":
        return cmd_init(args, as_of)

    # Validate fleet file exists
    if not args.fleet_file.exists():
        print(f"Error: File not found: {args.fleet_file}")
        return 1

    service = FleetService(yaml_store(args.fleet_file), clock=lambda: as_of)
    try:
        return COMMANDS[args.command](service, args, as_of)
    except FleetError as e:
        print(f"Error: {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
