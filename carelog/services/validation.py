"""JSON Schema validation shared by the care forms and assistant settings."""

from typing import Any

import jsonschema


def _location(error: jsonschema.ValidationError) -> str:
    return ".".join(str(part) for part in error.absolute_path)


def validate_against_schema(data: dict[str, Any], schema: dict[str, Any]) -> list[str]:
    """
    Validate a dict against a JSON schema.
    Returns a list of error messages (empty list = valid), each prefixed with
    the offending field when there is one.
    """
    validator = jsonschema.Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    messages = []
    for error in errors:
        where = _location(error)
        messages.append(f"{where}: {error.message}" if where else error.message)
    return messages
