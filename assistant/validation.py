"""assistant/validation.py

Input validation for the parser and the responder.

Only the query itself is mandatory: an unusable query raises
:class:`QueryValidationError`. Every other argument is coerced to a safe
default; malformed history entries are dropped.
"""

from __future__ import annotations

# Standard Library
import logging
import re
from collections.abc import Mapping
from typing import Any, Final

# Third-Party Libraries
from pydantic import ValidationError

# Local Modules
from assistant.models import ConversationMessage, ProjectContext

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH: Final[int] = 10_000
MAX_COLLABS_COUNT: Final[int] = 1000
MAX_STYLES_COUNT: Final[int] = 1000
MAX_CONVERSATION_HISTORY_LENGTH: Final[int] = 100

_CONTROL_CHARS: Final[re.Pattern[str]] = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_CAMEL_BOUNDARY: Final[re.Pattern[str]] = re.compile(r"(?<!^)(?=[A-Z])")


class QueryValidationError(ValueError):
    """Raised when a query cannot be parsed at all."""


def validate_and_sanitize_query(query: Any) -> str:
    """Validate and clean a raw user query.

    Args:
        query: The raw query as received from the caller.

    Returns:
        The trimmed query without surrounding quotes or control characters.

    Raises:
        QueryValidationError: If the query is missing, not a string, too
            long, or empty once cleaned.
    """
    if not query:
        raise QueryValidationError("Query is required")
    if not isinstance(query, str):
        raise QueryValidationError("Query must be a string")
    if len(query) > MAX_QUERY_LENGTH:
        raise QueryValidationError(f"Query too long (max {MAX_QUERY_LENGTH} characters)")

    cleaned = query.strip()
    for quote in ('"', "'"):
        cleaned = cleaned.removeprefix(quote).removesuffix(quote)
    cleaned = _CONTROL_CHARS.sub("", cleaned.strip())

    if not cleaned:
        raise QueryValidationError("Query cannot be empty")
    return cleaned


def _clean_names(values: Any, limit: int, label: str) -> list[str]:
    if not isinstance(values, (list, tuple)):
        if values is not None:
            logger.warning("%s must be a list, got %s; using an empty list", label, type(values).__name__)
        return []
    if len(values) > limit:
        logger.warning("Too many %s (%d), keeping the first %d", label, len(values), limit)
        values = values[:limit]
    return [v.strip() for v in values if isinstance(v, str) and v.strip()]


def validate_catalogue(available_collabs: Any, available_styles: Any) -> tuple[list[str], list[str]]:
    """Coerce the collaborator and style vocabularies to clean string lists."""
    return (
        _clean_names(available_collabs, MAX_COLLABS_COUNT, "collabs"),
        _clean_names(available_styles, MAX_STYLES_COUNT, "styles"),
    )


def validate_conversation_history(history: Any) -> list[ConversationMessage]:
    """Keep the well-formed entries of a caller-supplied history.

    Entries may be :class:`ConversationMessage` instances or mappings with
    ``role``, ``content`` and optional ``timestamp`` keys. Only the last
    ``MAX_CONVERSATION_HISTORY_LENGTH`` entries are considered.

    Args:
        history: The raw history, or ``None``.

    Returns:
        A new list of validated messages with trimmed content.
    """
    if history is None:
        return []
    if not isinstance(history, (list, tuple)):
        logger.warning("conversation_history must be a list; ignoring it")
        return []

    messages: list[ConversationMessage] = []
    for entry in list(history)[-MAX_CONVERSATION_HISTORY_LENGTH:]:
        if isinstance(entry, ConversationMessage):
            entry = entry.model_dump()
        if not isinstance(entry, Mapping):
            continue
        content = entry.get("content")
        if not isinstance(content, str) or len(content) > MAX_QUERY_LENGTH:
            continue
        try:
            messages.append(
                ConversationMessage(
                    role=entry.get("role"),
                    content=content.strip(),
                    timestamp=str(entry.get("timestamp") or ""),
                )
            )
        except ValidationError:
            continue
    return messages


def validate_last_filters(filters: Any) -> dict[str, Any]:
    """Keep the primitive values of the previous turn's filters.

    camelCase keys from the wire format are converted to snake_case.
    """
    if filters is None:
        return {}
    if not isinstance(filters, Mapping):
        logger.warning("last_filters must be a mapping; ignoring it")
        return {}

    validated: dict[str, Any] = {}
    for key, value in filters.items():
        if not isinstance(key, str):
            continue
        if value is None or isinstance(value, (str, int, float, bool)) or (
            isinstance(value, list) and all(isinstance(v, str) for v in value)
        ):
            validated[_CAMEL_BOUNDARY.sub("_", key).lower()] = value
    return validated


def validate_project_context(context: Any) -> ProjectContext:
    """Coerce caller-supplied catalogue counts to a :class:`ProjectContext`.

    Accepts an instance, a mapping with snake_case or camelCase keys, or
    ``None``. Anything invalid yields zero counts.
    """
    if isinstance(context, ProjectContext):
        return context
    try:
        return ProjectContext.model_validate(context or {})
    except ValidationError:
        logger.warning("Invalid project context %r; using empty counts", context)
        return ProjectContext()
