"""assistant/parser.py

Entry point of the query-understanding pipeline.

``parse_query`` turns one French or English utterance into filters, a query
type and, for modification commands, an update payload. It never raises:
invalid input and unexpected failures both come back as a result with
``understood=False`` and a clarification message.
"""

from __future__ import annotations

# Standard Library
import logging
import re
from typing import Any, Final

# Local Modules
from assistant.classifier import classify_query
from assistant.filters import detect_filters
from assistant.models import ConversationMessage, ParseQueryResult, QueryType
from assistant.updates import extract_update_data
from assistant.validation import (
    QueryValidationError,
    validate_and_sanitize_query,
    validate_catalogue,
    validate_conversation_history,
    validate_last_filters,
)
from assistant.vocabulary import UPDATE_COMMAND_PATTERN

logger = logging.getLogger(__name__)

STATUS_LOOKBACK_TURNS: Final[int] = 3
LONG_MESSAGE_THRESHOLD: Final[int] = 200

CLARIFICATIONS: Final[dict[str, str]] = {
    "en": "I didn't understand. Try: 'how many projects under 70%' or 'list my ghost prod'",
    "fr": "Je n'ai pas compris. Essaie: 'combien de projets sous les 70%' ou 'liste mes ghost prod'",
}
GENERIC_ERROR: Final[str] = "Une erreur est survenue lors du parsing de la requête"

_TARGET_STATUS: Final[re.Pattern[str]] = re.compile(
    r"(?:à|en|comme|to|as|into)\s+(?:en\s+cours|termin[ée]s?|annul[ée]s?|ghost\s*prod|archiv[ée]s?|"
    r"done|finished|completed|cancel(?:l?ed)?|archived|ongoing|in\s+progress)",
    re.IGNORECASE,
)
_HISTORY_STATUS_HINTS: Final[tuple[tuple[str, re.Pattern[str]], ...]] = (
    ("ANNULE", re.compile(r"annul[ée]s?|cancel")),
    ("TERMINE", re.compile(r"termin[ée]s?|fini|completed|finished")),
    ("EN_COURS", re.compile(r"en\s*cours|ongoing|actifs?|in\s+progress")),
    ("GHOST_PRODUCTION", re.compile(r"ghost\s*prod|ghostprod")),
    ("ARCHIVE", re.compile(r"archiv[ée]s?|archived")),
)
# Filter keys that scope which projects an update touches.
_UPDATE_SCOPE_KEYS: Final[tuple[str, ...]] = (
    "min_progress",
    "max_progress",
    "status",
    "has_deadline",
    "deadline_date",
    "no_progress",
    "collab",
    "style",
    "label",
    "label_final",
)


def infer_status_from_context(
    last_filters: dict[str, Any], history: list[ConversationMessage]
) -> str | None:
    """Recover the status a follow-up command implicitly refers to.

    The previous turn's filters win; otherwise the last
    ``STATUS_LOOKBACK_TURNS`` user messages are scanned, oldest first; the first hit wins.

    Args:
        last_filters: Validated filters of the previous turn.
        history: Validated conversation history.

    Returns:
        A status code, or ``None`` when nothing can be inferred.
    """
    status = last_filters.get("status")
    if isinstance(status, str) and status:
        return status

    user_turns = [m for m in history if m.role == "user"][-STATUS_LOOKBACK_TURNS:]
    for message in user_turns:
        content = message.content.lower()
        for code, pattern in _HISTORY_STATUS_HINTS:
            if pattern.search(content):
                return code
    return None


def _parse(
    query: Any,
    available_collabs: Any,
    available_styles: Any,
    conversation_history: Any,
    last_filters: Any,
) -> ParseQueryResult:
    query = validate_and_sanitize_query(query)
    collabs, styles = validate_catalogue(available_collabs, available_styles)
    history = validate_conversation_history(conversation_history)
    previous_filters = validate_last_filters(last_filters)
    lower_query = query.lower()

    detected = detect_filters(query, lower_query, collabs, styles)
    filters = detected.filters

    if (
        "status" not in filters
        and UPDATE_COMMAND_PATTERN.search(query)
        and _TARGET_STATUS.search(query)
    ):
        inferred = infer_status_from_context(previous_filters, history)
        if inferred:
            logger.info("Status filter inferred from context: %s", inferred)
            filters["status"] = inferred

    classification = classify_query(query, lower_query, filters)
    ignore_filters = (
        classification.is_conversational_question
        and len(query) > LONG_MESSAGE_THRESHOLD
        and not classification.has_project_mention
    )

    if classification.is_meta_question:
        return ParseQueryResult(
            filters={},
            type="search",
            understood=False,
            lang=classification.lang,
            clarification=CLARIFICATIONS[classification.lang],
        )

    is_question = (classification.is_list or classification.is_count) and not classification.is_update
    if not is_question:
        update_data = extract_update_data(query, lower_query, filters, styles)
        if update_data is not None:
            update_filters = {k: filters[k] for k in _UPDATE_SCOPE_KEYS if filters.get(k) is not None}
            return ParseQueryResult(
                filters=update_filters,
                type="update",
                understood=True,
                lang=classification.lang,
                update_data=update_data,
            )

    query_type: QueryType
    if classification.is_update:
        query_type = "update"
    elif classification.is_count:
        query_type = "count"
    elif classification.is_list:
        query_type = "list"
    else:
        query_type = "search"

    return ParseQueryResult(
        filters={} if ignore_filters else filters,
        type=query_type,
        understood=classification.understood,
        lang=classification.lang,
        clarification=None if classification.understood else CLARIFICATIONS[classification.lang],
        is_conversational=classification.is_conversational_question,
        fields_to_show=None if ignore_filters or not detected.fields_to_show else detected.fields_to_show,
    )


def parse_query(
    query: Any,
    available_collabs: Any,
    available_styles: Any,
    conversation_history: Any = None,
    last_filters: Any = None,
) -> ParseQueryResult:
    """Parse a user query into filters, a query type and update data.

    Args:
        query: The raw user message.
        available_collabs: Collaborator names in the user's catalogue.
        available_styles: Style names in the user's catalogue.
        conversation_history: Previous turns, oldest first. Used to infer the
            status a follow-up command refers to.
        last_filters: Filters of the previous turn, snake_case or camelCase.

    Returns:
        A :class:`ParseQueryResult`. Never raises.
    """
    try:
        return _parse(query, available_collabs, available_styles, conversation_history, last_filters)
    except QueryValidationError as exc:
        logger.warning("Rejected query: %s", exc)
        return ParseQueryResult(understood=False, clarification=str(exc))
    except Exception as exc:
        logger.error("Query parsing failed: %s", exc, exc_info=True)
        return ParseQueryResult(understood=False, clarification=str(exc) or GENERIC_ERROR)
