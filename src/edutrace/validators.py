"""Input validation for data access entry points.

Every validator fails fast with an ``InputValidationError`` naming the
offending field. Nothing here touches the network.
"""

import re
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel, ValidationError

from edutrace.errors import InputValidationError

SLUG_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
SLUG_MAX_LENGTH = 100

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

ANSWER_KEY_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

SEARCH_MAX_LENGTH = 100
SEARCH_MIN_LENGTH = 2
_LIKE_METACHARACTERS = re.compile(r"([%_\\])")
_ANGLE_BRACKETS = re.compile(r"[<>]")

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_slug(value: Any, field: str = "slug") -> str:
    """Check a content slug and return it unchanged."""
    if not isinstance(value, str):
        raise InputValidationError(field, f"{field} must be a string")
    if not SLUG_PATTERN.match(value):
        raise InputValidationError(field, f"Invalid {field} format")
    if len(value) > SLUG_MAX_LENGTH:
        raise InputValidationError(field, f"{field} is too long")
    return value


def is_valid_uuid(value: Any) -> bool:
    return isinstance(value, str) and UUID_PATTERN.match(value) is not None


def validate_uuid(value: Any, field: str = "id") -> str:
    """Check an RFC-4122 identifier and return it as a string."""
    if isinstance(value, UUID):
        value = str(value)
    if not isinstance(value, str):
        raise InputValidationError(field, f"{field} must be a string")
    if not is_valid_uuid(value):
        raise InputValidationError(field, f"Invalid {field} format")
    return value


def validate_choice(value: Any, choices: Iterable[str], field: str) -> str:
    allowed = list(choices)
    if value not in allowed:
        raise InputValidationError(
            field, f"{field} must be one of: {', '.join(allowed)}"
        )
    return value


def sanitize_search_query(value: Any) -> Optional[str]:
    """Prepare free text for a pattern-match query.

    Returns ``None`` when too little is left after sanitizing, in which
    case the caller should answer with empty results.
    """
    if not isinstance(value, str):
        raise InputValidationError("query", "Search query must be a string")
    if len(value) > SEARCH_MAX_LENGTH:
        raise InputValidationError(
            "query", f"Search query is too long (max {SEARCH_MAX_LENGTH} characters)"
        )

    sanitized = _LIKE_METACHARACTERS.sub(r"\\\1", value)
    sanitized = _ANGLE_BRACKETS.sub("", sanitized).strip()

    if len(sanitized) < SEARCH_MIN_LENGTH:
        return None
    return sanitized


def _is_answer_value(value: Any) -> bool:
    if isinstance(value, (str, bool, int, float)):
        return True
    if isinstance(value, list):
        return all(
            isinstance(item, (str, int, float)) and not isinstance(item, bool)
            for item in value
        )
    return False


def sanitize_answers(answers: Mapping[Any, Any]) -> Dict[str, Any]:
    """Keep only well-formed answer entries.

    Keys must look like question identifiers; values must be a string,
    number, boolean or a list of strings/numbers. Anything else is dropped.
    """
    return {
        key: value
        for key, value in answers.items()
        if isinstance(key, str)
        and ANSWER_KEY_PATTERN.match(key)
        and _is_answer_value(value)
    }


def parse_request(model: Type[ModelT], data: Any) -> ModelT:
    """Validate a request body against an allow-list model."""
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    if not isinstance(data, Mapping):
        raise InputValidationError("body", "Request body must be an object")
    try:
        return model.model_validate(dict(data))
    except ValidationError as exc:
        raise input_error_from(exc.errors()) from exc


def input_error_from(errors: Sequence[Mapping[str, Any]]) -> InputValidationError:
    """Turn pydantic error details into an error naming the first bad field."""
    first = errors[0]
    loc = [str(part) for part in first["loc"]]
    # FastAPI prefixes the request part
    if loc and loc[0] in ("body", "query", "path", "header", "cookie"):
        loc = loc[1:]
    # Report the top-level field; union members add their own loc parts
    field = loc[0] if loc else "body"
    message = first["msg"]
    # Strip pydantic's "Value error, " prefix from custom validator messages
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return InputValidationError(field, f"{field}: {message}")
