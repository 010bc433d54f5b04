"""Packaged JSON Schemas for grid payloads and stream events."""

import json
from functools import lru_cache
from pathlib import Path

import jsonschema

SCHEMA_DIR = Path(__file__).parent / "data"


@lru_cache(maxsize=None)
def load_schema(name: str) -> dict:
    """Load data/<name>.json and return as dict."""
    with open(SCHEMA_DIR / f"{name}.json", encoding="utf-8") as f:
        return json.load(f)


def schema_violation(instance, schema: dict) -> str | None:
    """First validation error message for instance, or None if it conforms."""
    try:
        jsonschema.validate(instance, schema)
    except jsonschema.ValidationError as e:
        return e.message
    return None
