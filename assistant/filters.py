"""assistant/filters.py

Filter detection for project queries.

Each detector below looks at the query on its own and returns an optional
:class:`FilterContribution`. ``detect_filters`` runs them in order and folds
the contributions with :func:`resolve_contributions`, where a fixed
precedence decides which detector wins when two of them set the same key.
"""

from __future__ import annotations

# Standard Library
import dataclasses
import logging
import re
from collections.abc import Callable
from typing import Any, Final

# Local Modules
from assistant.models import FilterResult
from assistant.styles import find_style_from_string
from assistant.vocabulary import (
    COMPILED_STATUS_PATTERNS,
    PROJECT_WORDS,
    SCOPE_WORDS,
    TARGET_PREFIX_PATTERN,
    UPDATE_COMMAND_PATTERN,
    UPDATE_VERBS,
    find_status_transition,
)

logger = logging.getLogger(__name__)

ALL_FIELDS: Final[tuple[str, ...]] = (
    "status",
    "progress",
    "collab",
    "release_date",
    "deadline",
    "style",
)


@dataclasses.dataclass(frozen=True, slots=True)
class QueryText:
    """The query and the catalogue vocabulary detectors resolve against."""

    query: str
    lower: str
    available_collabs: tuple[str, ...] = ()
    available_styles: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True, slots=True)
class FilterContribution:
    """Values proposed by a single detector, tagged with its name."""

    source: str
    values: dict[str, Any] = dataclasses.field(default_factory=dict)
    fields: tuple[str, ...] = ()


Detector = Callable[[QueryText], FilterContribution | None]

# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

_NO_PROGRESS: Final[re.Pattern[str]] = re.compile(
    r"sans\s*(?:avancement|progression)|pas\s*(?:de\s*)?(?:avancement|progression)|"
    r"non\s*renseign[ée]|no\s*(?:progress|percentage|percent)|not\s*set|null|vide"
)

_EXACT_PROGRESS: Final[tuple[re.Pattern[str], ...]] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"(?:projets?\s+|projects?\s+)?(?:à|a|en|at)\s+(\d+)\s*%\s*"
        r"(?:d['’]?avancement|de\s+progress(?:ion)?|progress)",
        r"(?:tous\s+les?\s+|all\s+(?:the\s+)?)?(?:projets?\s+|projects?\s+)?"
        r"(?:à|a|en|at)\s+(\d+)\s*%(?:\s*(?:et|and|,)|$)",
        r"(?:des?\s+)?(?:projets?\s+|projects?\s+)?(?:à|a|en|at)\s+(\d+)\s*%",
        r"(?:modifie[rz]?|change[rz]?|mets?|passe[rz]?|set|move)\s+(?:les?\s+|the\s+)?"
        r"(?:projets?\s+|projects?\s+)?(?:à|a|en|at)\s+(\d+)\s*%\s*(?:et|and|,)",
    )
)
_ENDS_WITH_AND: Final[re.Pattern[str]] = re.compile(r"(?:\bet|\band|,)\s*$", re.IGNORECASE)
_FOLLOWED_BY_AND: Final[re.Pattern[str]] = re.compile(r"^\s*(?:et|and)\b")
_FOLLOWED_BY_UPDATE_VERB: Final[re.Pattern[str]] = re.compile(
    r"^(?:mets?|passe[rz]?|change[rz]?|modifie[rz]?|set|mark|move|put|to\s+(?!\d))"
)
_FOLLOWED_BY_DATE: Final[re.Pattern[str]] = re.compile(
    r"\b(?:au|à\s+le|pour|pour\s+le|for|by)\s+(?:le\s+)?"
    r"(?:mois\s+prochain|semaine\s+pro(?:chaine)?|next\s+month|next\s+week|"
    r"demain|tomorrow|aujourd['’]hui|today)"
)

_MAX_PROGRESS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"(?:sous\s*(?:les?)?|moins\s*de|inf[ée]rieur[es]?\s*[àa]|<)\s*(\d+)\s*(?:%|pourcent)?"),
    re.compile(r"(?:under|below|less\s*than)\s*(\d+)\s*%?"),
    re.compile(r"(\d+)\s*(?:%|pourcent)\s*(?:max|maximum)"),
)
_MIN_PROGRESS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"(?:plus\s*de|sup[ée]rieur[es]?\s*[àa]|>|au\s*dessus\s*de)\s*(\d+)\s*(?:%|pourcent)?"),
    re.compile(r"(?:over|above|more\s*than|greater\s*than)\s*(\d+)\s*%?"),
    re.compile(r"(\d+)\s*(?:%|pourcent)\s*(?:min|minimum)"),
)
_PROGRESS_RANGE: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"entre\s*(\d+)\s*%?\s*(?:et|à)\s*(\d+)\s*%?"),
    re.compile(r"between\s*(\d+)\s*%?\s*and\s*(\d+)\s*%?"),
)


def _detect_no_progress(text: QueryText) -> FilterContribution | None:
    if _NO_PROGRESS.search(text.lower):
        return FilterContribution("no_progress", {"no_progress": True})
    return None


def _detect_exact_progress(text: QueryText) -> FilterContribution | None:
    for pattern in _EXACT_PROGRESS:
        match = pattern.search(text.query)
        if not match:
            continue
        value = int(match.group(1))
        if not 0 <= value <= 100:
            continue

        after = text.query[match.end():].lower().strip()
        is_filter = (
            bool(_ENDS_WITH_AND.search(match.group(0)))
            or bool(_FOLLOWED_BY_AND.search(after))
            or bool(_FOLLOWED_BY_DATE.search(after))
            or not _FOLLOWED_BY_UPDATE_VERB.search(after)
        )
        logger.debug("Exact progress %d%% (filter=%s, after=%r)", value, is_filter, after[:40])
        if is_filter:
            return FilterContribution(
                "exact_progress", {"min_progress": value, "max_progress": value}
            )
    return None


def _detect_max_progress(text: QueryText) -> FilterContribution | None:
    for pattern in _MAX_PROGRESS:
        match = pattern.search(text.lower)
        if match:
            return FilterContribution("max_progress", {"max_progress": int(match.group(1))})
    return None


def _detect_min_progress(text: QueryText) -> FilterContribution | None:
    for pattern in _MIN_PROGRESS:
        match = pattern.search(text.lower)
        if match:
            return FilterContribution("min_progress", {"min_progress": int(match.group(1))})
    return None


def _detect_progress_range(text: QueryText) -> FilterContribution | None:
    for pattern in _PROGRESS_RANGE:
        match = pattern.search(text.lower)
        if match:
            return FilterContribution(
                "progress_range",
                {"min_progress": int(match.group(1)), "max_progress": int(match.group(2))},
            )
    return None


# ---------------------------------------------------------------------------
# Display fields
# ---------------------------------------------------------------------------

_ALL_FIELDS_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"tou(?:tes?|s)|infos?|d[ée]tails?|all|everything|complet"
)
_FIELD_PATTERNS: Final[tuple[tuple[str, re.Pattern[str]], ...]] = (
    ("release_date", re.compile(r"date|sortie|release|quand|when")),
    ("deadline", re.compile(r"deadline|date\s*limite|due")),
    ("progress", re.compile(r"avancement|progress|%|pourcent|niveau")),
    ("status", re.compile(r"statut|status|[ée]tat|state")),
    ("collab", re.compile(r"collab|avec\s*qui|feat|partenaire")),
    ("style", re.compile(r"style|genre")),
)


def _detect_fields(text: QueryText) -> FilterContribution | None:
    if _ALL_FIELDS_PATTERN.search(text.lower):
        return FilterContribution("fields", fields=ALL_FIELDS)

    fields: list[str] = []
    for name, pattern in _FIELD_PATTERNS:
        if not pattern.search(text.lower):
            continue
        if name == "release_date" and "deadline" in text.lower:
            continue
        fields.append(name)
    return FilterContribution("fields", fields=tuple(fields)) if fields else None


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

_UPDATE_VERB: Final[re.Pattern[str]] = re.compile(rf"\b(?:{UPDATE_VERBS})\b")
# "mark them done": the status directly follows the verb and its object.
_VERB_OBJECT_BEFORE: Final[re.Pattern[str]] = re.compile(
    rf"\b(?:{UPDATE_VERBS})\s+(?:{SCOPE_WORDS})?(?:{PROJECT_WORDS})?$"
)
_ENDS_CLAUSE: Final[re.Pattern[str]] = re.compile(r"^\w*\s*(?:$|[,.;!?]|(?:et|and)\b)")


def _is_command_target(lower: str, match: re.Match[str]) -> bool:
    before = lower[: match.start()]
    if TARGET_PREFIX_PATTERN.search(before):
        return True
    return bool(_VERB_OBJECT_BEFORE.search(before) and _ENDS_CLAUSE.search(lower[match.end():]))


def _detect_status(text: QueryText) -> FilterContribution | None:
    if find_status_transition(text.lower):
        logger.debug("Status filter skipped: query holds a status transition")
        return None

    is_update_command = bool(
        UPDATE_COMMAND_PATTERN.search(text.lower) or _UPDATE_VERB.search(text.lower)
    )
    for status, pattern in COMPILED_STATUS_PATTERNS:
        match = pattern.search(text.lower)
        if not match:
            continue
        if is_update_command and _is_command_target(text.lower, match):
            logger.debug("Status %s skipped: target of an update command", status)
            continue
        return FilterContribution("status", {"status": status})
    return None


# ---------------------------------------------------------------------------
# Collaborator
# ---------------------------------------------------------------------------

_COLLAB_PATTERNS: Final[tuple[re.Pattern[str], ...]] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"collab(?:oration)?s?\s+(?:avec\s+|with\s+)?([A-Za-z0-9_]+)",
        r"(?:avec|feat\.?|ft\.?|with)\s+([A-Za-z0-9_]+)",
        r"([A-Za-z0-9_]+)\s+collab",
        r"(?:en\s+)?collaborateur\s+(?:avec\s+)?([A-Za-z0-9_]+)",
    )
)
_COLLAB_STOPWORDS: Final[frozenset[str]] = frozenset(
    {
        "projets", "projet", "les", "mes", "ma", "mon", "ton", "ta", "tes", "son",
        "sa", "ses", "notre", "nos", "votre", "vos", "leur", "leurs", "de", "en",
        "le", "la", "avec", "quelles", "quels", "ai", "j",
        "the", "my", "your", "his", "her", "our", "their", "a", "an", "me", "you",
        "them", "projects", "project", "which", "what", "with", "no",
        "deadline", "deadlines", "label", "style",
    }
)


def _detect_collab(text: QueryText) -> FilterContribution | None:
    for pattern in _COLLAB_PATTERNS:
        match = pattern.search(text.query)
        if not match:
            continue
        candidate = match.group(1)
        lower_candidate = candidate.lower()
        if lower_candidate in _COLLAB_STOPWORDS:
            continue

        for name in text.available_collabs:
            lower_name = name.lower()
            if lower_name in lower_candidate or lower_candidate in lower_name:
                return FilterContribution("collab", {"collab": name})

        if len(candidate) > 2:
            exact = next(
                (name for name in text.available_collabs if name.lower() == lower_candidate),
                candidate,
            )
            return FilterContribution("collab", {"collab": exact})
    return None


# ---------------------------------------------------------------------------
# Style
# ---------------------------------------------------------------------------

_COLLABORATOR_ROLE: Final[re.Pattern[str]] = re.compile(
    r"en\s+collaborateur|as\s+(?:a\s+)?collaborator"
)
_EXPLICIT_STYLE: Final[re.Pattern[str]] = re.compile(r"\bstyle\s+\w+")
_EN_COURS: Final[re.Pattern[str]] = dict(COMPILED_STATUS_PATTERNS)["EN_COURS"]
_AMBIGUOUS_STYLES: Final[frozenset[str]] = frozenset({"cours", "en", "course", "in"})


def _detect_style(text: QueryText) -> FilterContribution | None:
    explicit = bool(_EXPLICIT_STYLE.search(text.lower))
    role = bool(_COLLABORATOR_ROLE.search(text.lower))
    if (role or find_status_transition(text.lower)) and not explicit:
        return None

    match = find_style_from_string(text.query, list(text.available_styles))
    if match is None:
        return None
    if (
        match.style.lower() in _AMBIGUOUS_STYLES
        and not explicit
        and (role or _EN_COURS.search(text.lower))
    ):
        logger.debug("Style %r discarded: part of a status phrase", match.style)
        return None
    return FilterContribution("style", {"style": match.style})


# ---------------------------------------------------------------------------
# Labels and deadline presence
# ---------------------------------------------------------------------------

_LABEL_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(
        r"(?<!final\s)(?:label|label\s+cibl[ée])\s+(?:à|en|pour|est|de|to|for|is)?\s*([A-Za-z0-9_\s]+)",
        re.IGNORECASE,
    ),
    re.compile(r"(?:projets?\s+)?(?:avec\s+)?(?<!final\s)label\s+([A-Za-z0-9_\s]+)", re.IGNORECASE),
)
_LABEL_FINAL_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(
        r"(?:label\s+final|sign[ée]s?)\s+(?:à|en|chez|pour|est|de)?\s*([A-Za-z0-9_\s]+)",
        re.IGNORECASE,
    ),
    re.compile(r"(?:projets?\s+)?(?:avec\s+)?label\s+final\s+([A-Za-z0-9_\s]+)", re.IGNORECASE),
    re.compile(r"sign[ée]s?\s+chez\s+([A-Za-z0-9_\s]+)", re.IGNORECASE),
    re.compile(r"final\s+label\s+(?:is\s+|of\s+)?([A-Za-z0-9_\s]+)", re.IGNORECASE),
    re.compile(r"signed\s+(?:to|with|at)\s+([A-Za-z0-9_\s]+)", re.IGNORECASE),
)
_LABEL_STOPWORDS: Final[frozenset[str]] = frozenset(
    {"projets", "projet", "les", "mes", "de", "en", "le", "la", "des", "ciblé", "ciblée", "est"}
)
_LABEL_FINAL_STOPWORDS: Final[frozenset[str]] = _LABEL_STOPWORDS | {"final"}

_WITH_DEADLINE: Final[re.Pattern[str]] = re.compile(
    r"avec\s*deadline|deadline\s*pr[ée]vue|with\s+(?:a\s+)?deadline"
)
_WITHOUT_DEADLINE: Final[re.Pattern[str]] = re.compile(
    r"sans\s*deadline|pas\s*de\s*deadline|without\s+(?:a\s+)?deadline|no\s+deadline"
)


def _first_capture(
    query: str, patterns: tuple[re.Pattern[str], ...], stopwords: frozenset[str]
) -> str | None:
    for pattern in patterns:
        match = pattern.search(query)
        if not match:
            continue
        candidate = match.group(1).strip()
        if len(candidate) > 1 and candidate.lower() not in stopwords:
            return candidate
    return None


def _detect_label(text: QueryText) -> FilterContribution | None:
    label = _first_capture(text.query, _LABEL_PATTERNS, _LABEL_STOPWORDS)
    if label is None or label.lower().startswith("final"):
        return None
    return FilterContribution("label", {"label": label})


def _detect_label_final(text: QueryText) -> FilterContribution | None:
    label = _first_capture(text.query, _LABEL_FINAL_PATTERNS, _LABEL_FINAL_STOPWORDS)
    if label is None:
        return None
    return FilterContribution("label_final", {"label_final": label})


def _detect_deadline_presence(text: QueryText) -> FilterContribution | None:
    if _WITH_DEADLINE.search(text.lower):
        return FilterContribution("has_deadline", {"has_deadline": True})
    if _WITHOUT_DEADLINE.search(text.lower):
        return FilterContribution("has_deadline", {"has_deadline": False})
    return None


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

DETECTORS: Final[tuple[Detector, ...]] = (
    _detect_no_progress,
    _detect_fields,
    _detect_exact_progress,
    _detect_max_progress,
    _detect_min_progress,
    _detect_progress_range,
    _detect_status,
    _detect_collab,
    _detect_style,
    _detect_label,
    _detect_label_final,
    _detect_deadline_presence,
)

# Later entries override earlier ones on shared keys: an explicit range beats
# a lone bound, and a bound beats an exact "à X%" value.
PRECEDENCE: Final[tuple[str, ...]] = (
    "no_progress",
    "fields",
    "exact_progress",
    "max_progress",
    "min_progress",
    "progress_range",
    "status",
    "collab",
    "style",
    "label",
    "label_final",
    "has_deadline",
)


def resolve_contributions(contributions: list[FilterContribution]) -> FilterResult:
    """Fold detector contributions into a single :class:`FilterResult`.

    Args:
        contributions: Contributions in any order.

    Returns:
        The merged filters and display fields.
    """
    ranked = sorted(contributions, key=lambda c: PRECEDENCE.index(c.source))
    filters: dict[str, Any] = {}
    owners: dict[str, str] = {}
    fields: list[str] = []

    for contribution in ranked:
        for key, value in contribution.values.items():
            if key in filters and filters[key] != value:
                logger.debug(
                    "Filter %s=%r from %s overridden by %r from %s",
                    key,
                    filters[key],
                    owners[key],
                    value,
                    contribution.source,
                )
            filters[key] = value
            owners[key] = contribution.source
        for field in contribution.fields:
            if field not in fields:
                fields.append(field)

    return FilterResult(filters=filters, fields_to_show=fields)


def detect_filters(
    query: str,
    lower_query: str,
    available_collabs: list[str],
    available_styles: list[str],
) -> FilterResult:
    """Detect project filters and display fields in a user query.

    Args:
        query: The user query with its original casing.
        lower_query: The same query, lower-cased.
        available_collabs: Collaborator names in the user's catalogue.
        available_styles: Style names in the user's catalogue.

    Returns:
        A :class:`FilterResult`. Never raises for string input.
    """
    text = QueryText(
        query=query,
        lower=lower_query,
        available_collabs=tuple(available_collabs),
        available_styles=tuple(available_styles),
    )
    contributions = [c for c in (detector(text) for detector in DETECTORS) if c is not None]
    result = resolve_contributions(contributions)
    logger.debug("Detected filters %s, fields %s", result.filters, result.fields_to_show)
    return result
