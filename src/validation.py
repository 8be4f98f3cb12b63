"""
Declaration Validation - JSON Schema validation utilities.

Provides functions to check generated attribute schemas and to validate
decoded declarations against them.
"""

from typing import Any, Dict, Optional, Tuple

from jsonschema import Draft7Validator, SchemaError


def validate_json_schema(schema: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate that a schema is a valid Draft 7 JSON Schema.

    Args:
        schema: The schema to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        Draft7Validator.check_schema(schema)
        return True, None
    except SchemaError as e:
        return False, f"Invalid schema: {e.message}"


def validate_declaration_against_schema(
    declaration: Dict[str, Any], schema: Dict[str, Any]
) -> Tuple[bool, Optional[str]]:
    """
    Validate a declaration blob against a JSON Schema.

    Args:
        declaration: The raw attribute mapping to validate
        schema: The JSON Schema to validate against

    Returns:
        Tuple of (is_valid, error_message)
    """
    validator = Draft7Validator(schema)
    errors = list(validator.iter_errors(declaration))

    if not errors:
        return True, None

    # Collect all validation errors
    error_messages = []
    for error in errors:
        path = ".".join(str(p) for p in error.absolute_path) or "(root)"
        error_messages.append(f"{path}: {error.message}")

    return False, "; ".join(sorted(error_messages))
