#!/usr/bin/env python3
"""Validate reminder store YAML files against the schema."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError

from reminders import ReminderKind, load_config


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def validate_store_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single reminder store file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def find_untriggered(filepath: Path) -> list[str]:
    """Warnings for reminders whose kind lacks the due field it is evaluated on."""
    with open(filepath) as f:
        data = yaml.safe_load(f) or {}
    warnings = []
    for index, row in enumerate(data.get("reminders") or []):
        kind = ReminderKind(row["kind"])
        has_date = row.get("dueDate") is not None
        has_km = row.get("dueOdoKm") is not None
        if kind == ReminderKind.BOTH:
            missing = not (has_date or has_km)
        elif kind.uses_date:
            missing = not has_date
        else:
            missing = not has_km
        if missing:
            warnings.append(
                f"reminders.{index} ({row['id']}): {kind.value} reminder has no due trigger"
            )
    return warnings


def main(argv=None):
    """Validate all reminder store files in the configured store directory."""
    args = sys.argv[1:] if argv is None else argv
    schema = load_schema()
    store_dir = Path(args[0]) if args else load_config().store_dir

    if not store_dir.exists():
        print(f"Error: store directory not found: {store_dir}")
        return 1

    yaml_files = list(store_dir.glob("*.yaml")) + list(store_dir.glob("*.yml"))

    if not yaml_files:
        print(f"Warning: No YAML files found in {store_dir}")
        return 0

    all_valid = True
    for filepath in sorted(yaml_files):
        errors = validate_store_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")
            for warning in find_untriggered(filepath):
                print(f"  WARN: {warning}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
