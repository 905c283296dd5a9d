"""
Schema Validation Utilities
===========================
JSON Schema loading and validation helpers.

Author: Gia Tenica*
*Gia Tenica is an anagram for Agentic AI. Gia is a fully autonomous AI researcher,
for more information see: https://giatenica.com
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from jsonschema import Draft202012Validator, FormatChecker
from jsonschema.exceptions import ValidationError


SCHEMAS_DIR = Path(__file__).resolve().parent.parent / "schemas"
SCRIPTS_KEY = "scripts"


@lru_cache(maxsize=8)
def _load_schema(schema_filename: str) -> Dict[str, Any]:
    """Load a schema JSON file from taskalias/schemas.

    Args:
        schema_filename: File name under taskalias/schemas (for example 'task_config.schema.json').

    Raises:
        FileNotFoundError: When schema file is missing.
        ValueError: When schema file is not valid JSON or not a JSON object.
    """
    schema_path = (SCHEMAS_DIR / schema_filename).resolve()
    if not schema_path.is_relative_to(SCHEMAS_DIR):
        raise ValueError(f"Schema path escapes schemas directory: {schema_filename}")
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_filename}")

    try:
        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Failed to load schema {schema_filename}: {e}")

    if not isinstance(schema, dict):
        raise ValueError(f"Schema {schema_filename} must be a JSON object")
    return schema


def config_location(*parts: Any) -> str:
    """Path of an entry inside a configuration file, e.g. ``scripts/schema/hub``."""
    return "/".join([SCRIPTS_KEY, *(str(p) for p in parts)])


def _first_error(payload: Any, schema_filename: str) -> Optional[ValidationError]:
    schema = _load_schema(schema_filename)
    validator = Draft202012Validator(schema, format_checker=FormatChecker())
    errors = sorted(validator.iter_errors(payload), key=lambda e: (len(e.path), list(map(str, e.path))))
    return errors[0] if errors else None


def _describe(error: ValidationError) -> str:
    path = "/".join(str(p) for p in error.path)
    prefix = f"Validation failed at '{path}': " if path else "Validation failed: "
    return prefix + error.message


def validate_against_schema(payload: Any, schema_filename: str) -> None:
    """Validate payload against a JSON Schema.

    Raises:
        ValueError: When payload fails validation.
    """
    error = _first_error(payload, schema_filename)
    if error is None:
        return

    raise ValueError(_describe(error))


def validate_task_config(payload: Any) -> None:
    """Validate a parsed configuration file against task_config.schema.json.

    Errors under ``scripts`` name the offending task so a typo in one
    entry of a large file is easy to find.
    """
    error = _first_error(payload, "task_config.schema.json")
    if error is None:
        return

    parts = list(error.path)
    if len(parts) >= 2 and parts[0] == SCRIPTS_KEY:
        raise ValueError(
            f"Validation failed at '{config_location(*parts[1:])}' (task '{parts[1]}'): {error.message}"
        )
    raise ValueError(_describe(error))


def validate_run_record(payload: Any) -> None:
    """Validate a run record against run_record.schema.json."""
    validate_against_schema(payload, "run_record.schema.json")
