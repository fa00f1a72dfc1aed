"""
Book payload validation.

Used on create, and on update after the partial payload has been merged
onto the stored document.
"""

from typing import Any, Mapping

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from library_api.errors import ValidationFailure
from library_api.models import BookFields

# Attribute name and wire alias both resolve to the wire alias.
FIELD_ALIASES = {}
for name in BookFields.model_fields:
    FIELD_ALIASES[name] = to_camel(name)
    FIELD_ALIASES[to_camel(name)] = to_camel(name)


def format_validation_errors(exc: ValidationError) -> str:
    """Render pydantic errors as a single readable message."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "body"
        problems.append(f"{location}: {error['msg']}")
    return "Book validation failed: " + ", ".join(problems)


def validate_book(payload: Any) -> BookFields:
    """
    Validate a complete book payload.

    Args:
        payload: Decoded JSON body (camelCase or snake_case keys)

    Returns:
        Normalised BookFields with trimmed text

    Raises:
        ValidationFailure: If a field is missing, empty or out of range
    """
    if not isinstance(payload, Mapping):
        raise ValidationFailure("Book validation failed: request body must be a JSON object")
    try:
        return BookFields.model_validate(dict(payload))
    except ValidationError as e:
        raise ValidationFailure(format_validation_errors(e)) from e


def merge_book(existing: Mapping[str, Any], changes: Any) -> BookFields:
    """
    Overlay a partial payload onto a stored document and validate the result.

    Unknown keys in ``changes`` are ignored.
    """
    if not isinstance(changes, Mapping):
        raise ValidationFailure("Book validation failed: request body must be a JSON object")

    merged = {
        alias: existing[alias]
        for alias in set(FIELD_ALIASES.values())
        if alias in existing
    }
    for key, value in changes.items():
        alias = FIELD_ALIASES.get(key)
        if alias:
            merged[alias] = value
    return validate_book(merged)
