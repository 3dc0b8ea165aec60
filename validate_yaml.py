#!/usr/bin/env python3
"""Check vehicle YAML files against the schema and the service rule table."""
import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml
from jsonschema import Draft7Validator

import maintenance
from maintenance import (
    DEFAULT_RULES,
    ServiceRule,
    Settings,
    parse_timestamp,
    rules_by_type,
)


def load_schema() -> dict:
    """Load the JSON schema shipped with the maintenance package."""
    schema_path = Path(maintenance.__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def schema_errors(data: Any, schema: dict) -> List[str]:
    """Every schema violation in a vehicle document, prefixed with its path."""
    errors = []
    found = Draft7Validator(schema).iter_errors(data)
    for error in sorted(found, key=lambda e: [str(p) for p in e.path]):
        where = ".".join(str(p) for p in error.path)
        errors.append(f"{where}: {error.message}" if where else error.message)
    return errors


def content_errors(
    data: Dict[str, Any], file_stem: str, rules: Sequence[ServiceRule]
) -> List[str]:
    """
    Checks the schema cannot express.

    - vehicleId must match the file name the store looks it up by
    - every serviceType must be in the rule table
    - every serviceDate must parse as an ISO-8601 timestamp
    - serviceIds must be unique within the file
    """
    errors = []
    vehicle_id = data["vehicle"]["vehicleId"]
    if vehicle_id != file_stem:
        errors.append(f"vehicleId '{vehicle_id}' does not match file name '{file_stem}'")

    known = rules_by_type(rules)
    seen = set()
    for index, service in enumerate(data.get("services") or []):
        where = f"services.{index}"
        if service["serviceType"] not in known:
            errors.append(f"{where}: unknown service type '{service['serviceType']}'")
        try:
            parse_timestamp(service["serviceDate"])
        except ValueError:
            errors.append(f"{where}: invalid serviceDate '{service['serviceDate']}'")
        service_id = str(service["serviceId"])
        if service_id in seen:
            errors.append(f"{where}: duplicate serviceId '{service_id}'")
        seen.add(service_id)
    return errors


def validate_vehicle_file(
    filepath: Path, schema: dict, rules: Sequence[ServiceRule] = DEFAULT_RULES
) -> List[str]:
    """Validate a single vehicle YAML file. Returns list of errors."""
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return [f"YAML parse error: {e}"]
    except OSError as e:
        return [f"Error: {e}"]

    errors = schema_errors(data, schema)
    if errors:
        return errors
    return content_errors(data, filepath.stem, rules)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validate vehicle YAML files")
    parser.add_argument(
        "data_dir",
        nargs="?",
        type=Path,
        default=settings.data_dir,
        help="Directory of vehicle YAML files (env: MAINT_DATA_DIR)",
    )
    parser.add_argument(
        "--rules",
        type=Path,
        default=settings.rules_file,
        help="YAML file with an alternate service rule table (env: MAINT_RULES_FILE)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Validate every vehicle file in the data directory."""
    settings = Settings.from_env()
    args = build_parser(settings).parse_args(argv)
    settings.rules_file = args.rules

    try:
        rules = settings.load_rules()
    except (ValueError, OSError, yaml.YAMLError) as e:
        print(f"Error: cannot load rules: {e}")
        return 1

    if not args.data_dir.is_dir():
        print(f"Error: vehicles directory not found: {args.data_dir}")
        return 1

    paths = sorted(args.data_dir.glob("*.yaml"))
    if not paths:
        print(f"Warning: No YAML files found in {args.data_dir}")
        return 0

    schema = load_schema()
    failed = 0
    for path in paths:
        errors = validate_vehicle_file(path, schema, rules)
        print(f"{'FAIL' if errors else 'OK'}: {path.name}")
        for error in errors:
            print(f"  {error}")
        failed += bool(errors)

    print(f"{len(paths) - failed} of {len(paths)} files valid")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
