#!/usr/bin/env python3
"""Validate fleet YAML files against the schema."""
import sys
from pathlib import Path

import yaml

from fleet.errors import FleetError
from fleet.loader import parse_timestamp
from fleet.schema import load_schema, schema_errors


def check_references(data: dict) -> list[str]:
    """Bookings and downtime must point at vehicles in the same file."""
    errors = []
    vehicle_ids = {v.get("id") for v in data.get("vehicles") or []}
    for section in ("bookings", "downtime"):
        for index, record in enumerate(data.get(section) or []):
            if record.get("vehicleId") not in vehicle_ids:
                errors.append(
                    f"{section}.{index}: unknown vehicleId {record.get('vehicleId')!r}"
                )
    return errors


def check_intervals(data: dict) -> list[str]:
    """Every reservation needs parseable timestamps with endTime after startTime."""
    errors = []
    for section in ("bookings", "downtime"):
        for index, record in enumerate(data.get(section) or []):
            try:
                start = parse_timestamp(record.get("startTime"))
                end = parse_timestamp(record.get("endTime"))
            except FleetError as e:
                errors.append(f"{section}.{index}: {e.message}")
                continue
            if end <= start:
                errors.append(f"{section}.{index}: endTime must be after startTime")
    return errors


def validate_fleet_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single fleet YAML file. Returns list of errors."""
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return [f"YAML parse error: {e}"]
    except OSError as e:
        return [f"Error: {e}"]

    errors = []
    for error in schema_errors(data, schema):
        errors.append(f"Schema validation error: {error['message']}")
        if error["field"]:
            errors.append(f"  at path: {error['field']}")
    if errors or not isinstance(data, dict):
        return errors

    errors.extend(check_references(data))
    errors.extend(check_intervals(data))
    return errors


def main(argv=None):
    """Validate the given fleet files, or every YAML file in data/."""
    argv = sys.argv[1:] if argv is None else argv
    schema = load_schema()

    if argv:
        yaml_files = [Path(p) for p in argv]
    else:
        data_dir = Path(__file__).parent / "data"
        if not data_dir.exists():
            print(f"Error: data directory not found: {data_dir}")
            return 1
        yaml_files = list(data_dir.glob("*.yaml")) + list(data_dir.glob("*.yml"))
        if not yaml_files:
            print(f"Warning: No YAML files found in {data_dir}")
            return 0

    all_valid = True
    for filepath in sorted(yaml_files):
        errors = validate_fleet_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
