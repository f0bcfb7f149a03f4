"""assistant/notes.py

Extraction of "add a note to project X" commands, e.g.
"Session magnetize du jour, refait le break" or "note for magnetize: new drop".
"""

from __future__ import annotations

# Standard Library
import dataclasses
import logging
import re
from typing import Final

logger = logging.getLogger(__name__)

_NAME: Final[str] = r"([a-z0-9_]+(?:\s+[a-z0-9_]+){0,5})"

_CONVERSATIONAL_STARTERS: Final[tuple[re.Pattern[str], ...]] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"^et\s+(?:pour|avec|sans|sur|dans|sous|tu)",
        r"^pour\s+(?:les?|la|un|une|des?)\b",
        r"^finalement",
        r"^and\s+(?:for|with|you)\b",
    )
)
_EXPLICIT_NOTE: Final[re.Pattern[str]] = re.compile(
    r"session\s+\w+\s+du\s+jour|note\s+(?:pour|for)\s+\w+", re.IGNORECASE
)

# The last pattern is the permissive "name, content" form; it gets extra guards.
_NOTE_PATTERNS: Final[tuple[re.Pattern[str], ...]] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        rf"session\s+{_NAME}\s+du\s+jour[,\s]+(.+)",
        rf"ajoute\s+(?:une\s+)?note\s+pour\s+{_NAME}\s+(?:disant|qui\s+dit)\s+(?:que\s+)?(.+)",
        rf"add\s+(?:a\s+)?note\s+(?:to|for)\s+{_NAME}\s+(?:saying|that\s+says)\s+(?:that\s+)?(.+)",
        rf"note\s+(?:pour|for)\s+{_NAME}\s*[:,]\s*(.+)",
        rf"ajoute\s+(?:une\s+)?note\s+[àa]\s+{_NAME}\s*[:,]\s*(.+)",
        rf"ajoute\s+(?:une\s+)?note\s+pour\s+{_NAME}\s*[:,]\s*(.+)",
        rf"add\s+(?:a\s+)?note\s+(?:to|for)\s+{_NAME}\s*[:,]\s*(.+)",
        rf"^note\s+{_NAME}\s*[:,]\s*(.+)",
        rf"^{_NAME}\s*,\s+(.+)",
    )
)
_SESSION_OF_THE_DAY: Final[re.Pattern[str]] = re.compile(
    rf"^{_NAME}\s+du\s+jour[,\s]+(.+)", re.IGNORECASE
)

_COMMON_WORDS: Final[frozenset[str]] = frozenset(
    {
        "session", "note", "projet", "project", "le", "la", "les", "un", "une", "des",
        "de", "du", "au", "aux", "pour", "avec", "sans", "sous", "sur", "dans", "par",
        "jour", "aujourd", "hui", "demain", "hier", "et", "ou", "mais", "donc", "car",
        "pizza", "pizzas", "yes", "no", "ok", "okay", "well", "so", "and", "but",
        "salut", "bonjour", "hello", "hi", "hey", "merci", "thanks", "oui", "non",
        "bon", "bref", "alors", "bah", "ah", "oh",
    }
)
_CONNECTOR_START: Final[re.Pattern[str]] = re.compile(
    r"^(?:et|ou|mais|donc|car|puis|alors|ensuite|après|avant|pendant|depuis|jusqu|"
    r"vers|chez|sans|avec|pour|contre|selon|malgré|grâce|and|but|so|then|for|with)\s+",
    re.IGNORECASE,
)
_CONNECTOR_WORDS: Final[frozenset[str]] = frozenset(
    {"et", "ou", "mais", "donc", "car", "pour", "avec", "sans", "les", "des", "du", "de",
     "la", "le", "and", "or", "the", "for", "with"}
)
_ARTICLE_START: Final[re.Pattern[str]] = re.compile(
    r"^(?:les?|des?|du|de|un|une|the|a|an)\s+[a-z]+", re.IGNORECASE
)
_COMMON_PHRASES: Final[tuple[str, ...]] = (" du jour", "session", "note ", " pour ", "pizza")
_MAX_NAME_LENGTH: Final[int] = 50


@dataclasses.dataclass(frozen=True, slots=True)
class NoteCommand:
    """A note to append to one named project."""

    project_name: str
    content: str


def _looks_like_sentence(name: str) -> bool:
    lower_name = name.lower()
    words = lower_name.split()
    if lower_name in _COMMON_WORDS or _CONNECTOR_START.match(name):
        return True
    connectors = sum(1 for word in words if word in _CONNECTOR_WORDS)
    if len(words) > 2 and connectors / len(words) > 0.3:
        return True
    if any(phrase in lower_name for phrase in _COMMON_PHRASES) or lower_name.startswith("finalement"):
        return True
    if _ARTICLE_START.match(name) and len(words) <= 3:
        return True
    return len(name) > _MAX_NAME_LENGTH


def _clean_content(content: str) -> str:
    return re.sub(r"^[\"']+|[\"']+$", "", content.strip()).strip()


def extract_note(query: str) -> NoteCommand | None:
    """Extract a project note command from ``query``.

    Args:
        query: The user query with its original casing.

    Returns:
        A :class:`NoteCommand`, or ``None`` when the query is not a note.
    """
    if any(p.search(query) for p in _CONVERSATIONAL_STARTERS) and not _EXPLICIT_NOTE.search(query):
        logger.debug("Note extraction skipped for conversational phrase: %r", query[:60])
        return None

    last_index = len(_NOTE_PATTERNS) - 1
    for index, pattern in enumerate(_NOTE_PATTERNS):
        match = pattern.search(query)
        if not match:
            continue
        name = match.group(1).strip()
        content = _clean_content(match.group(2))
        if "qui dit" in name or "disant" in name:
            continue

        min_length = 2
        if index == last_index:
            if query.rstrip().endswith("?") or _looks_like_sentence(name):
                continue
            min_length = 3

        if len(name) >= min_length and content:
            logger.debug("Note detected for %r (pattern %d)", name, index)
            return NoteCommand(project_name=name, content=content)

    match = _SESSION_OF_THE_DAY.search(query)
    if match:
        name = match.group(1).strip()
        content = _clean_content(match.group(2))
        if name.lower() not in _COMMON_WORDS and len(name) >= 2 and content:
            return NoteCommand(project_name=name, content=content)
    return None
