"""JSON schema validation for request payloads and fleet files."""

import copy
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml
from jsonschema import Draft7Validator

from .errors import ValidationFailed

SCHEMA_PATH = Path(__file__).parent / "schema.yaml"


@lru_cache(maxsize=1)
def _cached_schema() -> Dict[str, Any]:
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


def load_schema() -> dict:
    """Load the fleet JSON schema from schema.yaml."""
    return copy.deepcopy(_cached_schema())


def definition_schema(name: str, partial: bool = False) -> Dict[str, Any]:
    """
    Standalone schema for one record definition (vehicle, booking, downtime).

    partial drops `required` for PATCH payloads.
    """
    schema = load_schema()
    definitions = schema["definitions"]
    target = definitions[name]
    if partial:
        target.pop("required", None)
    return {"$ref": f"#/definitions/{name}", "definitions": definitions}


def schema_errors(instance: Any, schema: Dict[str, Any]) -> List[Dict[str, str]]:
    """Field-level error list, sorted by field path."""
    validator = Draft7Validator(schema)
    errors = []
    found = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    for error in found:
        field = ".".join(str(p) for p in error.path)
        errors.append({"field": field, "message": error.message})
    return errors


def validate_payload(name: str, payload: Any, partial: bool = False) -> None:
    """Raise ValidationFailed when payload does not match the definition."""
    if not isinstance(payload, dict):
        raise ValidationFailed(
            f"Invalid {name} data",
            [{"field": "", "message": "Request body must be a JSON object"}],
        )
    errors = schema_errors(payload, definition_schema(name, partial))
    if errors:
        raise ValidationFailed(f"Invalid {name} data", errors)
