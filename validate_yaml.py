#!/usr/bin/env python3
"""Validate records YAML files against the schema."""
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    schema_path = Path(__file__).parent / "schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def _stringify_dates(data):
    """Unquoted YAML dates load as date objects; the schema expects strings."""
    for row in (data or {}).get("records") or []:
        if isinstance(row, dict) and row.get("date") is not None and not isinstance(row["date"], str):
            row["date"] = str(row["date"])
    return data


def validate_records_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single records YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = _stringify_dates(yaml.safe_load(f))
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


def main(argv=None):
    """Validate the given files, or every YAML file in records/."""
    argv = sys.argv[1:] if argv is None else argv
    schema = load_schema()

    if argv:
        yaml_files = [Path(p) for p in argv]
    else:
        records_dir = Path(__file__).parent / "records"
        if not records_dir.exists():
            print(f"Error: records directory not found: {records_dir}")
            return 1
        yaml_files = [
            p
            for p in list(records_dir.glob("*.yaml")) + list(records_dir.glob("*.yml"))
            if not p.name.endswith(".audit.yaml")
        ]

    if not yaml_files:
        print("Warning: No YAML files found")
        return 0

    all_valid = True
    for filepath in sorted(yaml_files):
        errors = validate_records_file(filepath, schema)
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
