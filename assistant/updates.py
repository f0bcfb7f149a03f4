"""assistant/updates.py

Extraction of modification commands: new progress, new status, deadline
changes, collaborator/style/label changes and project notes.

``extract_update_data`` receives the filters found by
:mod:`assistant.filters` and adjusts them in place when a phrase turns a
detected value into the scope of the command ("passe de 10% à 15" makes
10% the filter and 15 the new value).
"""

from __future__ import annotations

# Standard Library
import logging
import re
from typing import Any, Final

# Local Modules
from assistant.dates import parse_relative_date
from assistant.models import DeadlineShift, UpdateData
from assistant.notes import extract_note
from assistant.styles import find_style_from_string
from assistant.vocabulary import (
    PROJECT_WORDS,
    SCOPE_WORDS,
    STATUS_PATTERNS,
    UPDATE_VERBS,
    find_status_transition,
)

logger = logging.getLogger(__name__)

_DETERMINERS: Final[str] = (
    r"(?:les?|la|le|l'|leurs?|son|sa|ses|mes|mon|ma|nos|notre|vos|votre|"
    r"the|their|its|my|all|them)\s+"
)
_PROGRESS_VERBS: Final[str] = (
    r"mets?|passe[rz]?|change[rz]?|modifie[rz]?|pousse[rz]?|augmente[rz]?|diminue[rz]?|"
    r"set|move|put|bump|update"
)
_PROJECTS: Final[str] = r"(?:projets?\s+|projects?\s+)"
_ENGLISH_VERBS: Final[str] = r"mark|set|move|put|change|switch|turn|update"


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


def _strip_quotes(query: str) -> str:
    cleaned = re.sub(r'"([^"]+)"', r"\1", query)
    return re.sub(r"(?:(?<=\s)|^)'([^']+)'", r"\1", cleaned)


def _valid_percent(value: int) -> bool:
    return 0 <= value <= 100


def _used_as_filter(filters: dict[str, Any], value: int) -> bool:
    return filters.get("min_progress") == value or filters.get("max_progress") == value


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

_PROGRESS_TRANSITION: Final[tuple[re.Pattern[str], ...]] = _compile(
    r"(?:de|depuis)\s+(\d+)\s*%\s+à\s+(\d+)(?:\s*%|$)",
    r"from\s+(\d+)\s*%\s+to\s+(\d+)(?:\s*%|$)",
)
_EXPLICIT_NEW_PROGRESS: Final[tuple[re.Pattern[str], ...]] = _compile(
    r"(?:à|en|to)\s+(\d+)\s*%\s*$",
    rf"(?:{_PROGRESS_VERBS})\s+(?:{_DETERMINERS})?(?:avancement|progression|progress)\s+(?:à|en|to)\s+(\d+)\s*%?",
    rf"(?:{_PROGRESS_VERBS})\s+(?:{_DETERMINERS})?{_PROJECTS}?(?:à|en|to)\s+(\d+)\s*%?",
    rf"(?:{_PROGRESS_VERBS})\s+(?:{_DETERMINERS})?{_PROJECTS}?[^à]{{0,80}}\s+(?:à|en|to)\s+(\d+)\s*%?",
    rf"(?:{_DETERMINERS})?(?:avancement|progression|progress)\s+(?:à|en|to)\s+(\d+)\s*%?",
)
_NUMBER_WITHOUT_PERCENT: Final[tuple[re.Pattern[str], ...]] = _compile(
    rf"(?:{_PROGRESS_VERBS})\s+(?:les?\s+|the\s+|them\s+)?{_PROJECTS}?(?:à|en|to)\s+(\d+)(?:\s|$)",
    r"(?:à|en|to)\s+(\d+)\s*$",
    rf"(?:et|and)\s+(?:{_PROGRESS_VERBS})\s+(?:les?\s+|the\s+|them\s+)?{_PROJECTS}?(?:à|en|to)\s+(\d+)",
)
_PERCENT: Final[re.Pattern[str]] = re.compile(r"(\d+)\s*%")
_PROGRESS_KEYWORD_AFTER: Final[re.Pattern[str]] = re.compile(
    r"d['’]?avancement|de\s+progress|de\s+progression|progress"
)
_DATE_AFTER: Final[re.Pattern[str]] = re.compile(
    r"\b(?:au|à\s+le|pour|pour\s+le|for|by)\s+(?:le\s+)?"
    r"(?:mois\s+prochain|semaine\s+pro(?:chaine)?|next\s+month|next\s+week|"
    r"demain|tomorrow|aujourd['’]hui|today)"
)
_HAS_UPDATE_VERB: Final[re.Pattern[str]] = re.compile(
    r"(?:passe|mets?|change[rz]?|modifie[rz]?|set|move|update)\s+"
    r"(?:les?\s+|the\s+)?(?:projets?|projects?|deadlines?)",
    re.IGNORECASE,
)
_RESET_PROGRESS: Final[re.Pattern[str]] = re.compile(
    r"(?:passe|mets?|change[rz]?|modifie[rz]?|set|mark|move)\s+"
    r"(?:les?\s+|the\s+|them\s+)?(?:projets?\s+|projects?\s+)?(?:(?:to|as)\s+)?"
    r"(?:sans\s*avancement|sans\s*progression|pas\s*d['’]?avancement|no\s*progress|null)"
)


def _extract_progress_transition(
    query: str, filters: dict[str, Any], update: UpdateData
) -> None:
    for pattern in _PROGRESS_TRANSITION:
        match = pattern.search(query)
        if not match:
            continue
        old, new = int(match.group(1)), int(match.group(2))
        if _valid_percent(old) and _valid_percent(new):
            filters["min_progress"] = old
            filters["max_progress"] = old
            update.new_progress = new
            logger.debug("Progress transition %d%% -> %d%%", old, new)
            return


def _extract_new_progress(
    query: str, lower_query: str, filters: dict[str, Any], update: UpdateData
) -> None:
    if update.new_progress is not None:
        return

    from_number: int | None = None
    for pattern in _NUMBER_WITHOUT_PERCENT:
        match = pattern.search(query)
        if not match:
            continue
        value = int(match.group(1))
        if _valid_percent(value) and not _used_as_filter(filters, value):
            from_number = value
            break

    percents = list(_PERCENT.finditer(query))
    if percents and from_number is None:
        last = percents[-1]
        value = int(last.group(1))
        after = query[last.end():].lower()
        if not _PROGRESS_KEYWORD_AFTER.search(after) and (
            len(after.strip()) < 10 or _DATE_AFTER.search(after)
        ):
            if _valid_percent(value) and not _used_as_filter(filters, value):
                update.new_progress = value

    if from_number is not None:
        update.new_progress = from_number

    if update.new_progress is None:
        has_verb = bool(_HAS_UPDATE_VERB.search(query))
        for pattern in _EXPLICIT_NEW_PROGRESS:
            match = pattern.search(query)
            if not match:
                continue
            value = int(match.group(1))
            if _valid_percent(value) and (not _used_as_filter(filters, value) or has_verb):
                update.new_progress = value
                break

    if update.new_progress is None and _RESET_PROGRESS.search(lower_query):
        update.new_progress = 0


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


def _status_command_patterns(status: str, pattern: str) -> tuple[re.Pattern[str], ...]:
    code = status.lower().replace("_", r"[\s_]")
    return _compile(
        rf"\b(?:{UPDATE_VERBS})\s+(?:{SCOPE_WORDS})?(?:{PROJECT_WORDS})?(?:en|à|comme|as|to|into)\s+(?:{pattern})",
        rf"\b(?:set|update|change|mark)\s+(?:to|as)\s+(?:{pattern})",
        rf"\b(?:{UPDATE_VERBS})\s+(?:{SCOPE_WORDS})?(?:{PROJECT_WORDS})?(?:en|à)\s+{code}",
        rf"\b(?:{UPDATE_VERBS})\s+(?:{SCOPE_WORDS})?(?:{PROJECT_WORDS})?(?:en\s+\w+\s+)?en\s+(?:{pattern})(?:\s|$)",
        rf"\b(?:{_ENGLISH_VERBS})\s+(?:{SCOPE_WORDS})?(?:{PROJECT_WORDS})?(?:as\s+|to\s+|into\s+)?(?:{pattern})",
        rf"\b(?:{_ENGLISH_VERBS})\b[^.?!]{{0,80}}?\b(?:as|to|into)\s+(?:{pattern})",
    )


_STATUS_COMMANDS: Final[tuple[tuple[str, re.Pattern[str], tuple[re.Pattern[str], ...]], ...]] = tuple(
    (
        status,
        re.compile(rf"(?:en|à|comme|as|to)\s+(?:{pattern})", re.IGNORECASE),
        _status_command_patterns(status, pattern),
    )
    for status, pattern in STATUS_PATTERNS
)


def _extract_status(lower_query: str, filters: dict[str, Any], update: UpdateData) -> None:
    transition = find_status_transition(lower_query)
    if transition is not None:
        update.status = transition.source
        update.new_status = transition.target
        if filters.get("status") == transition.source:
            del filters["status"]
        logger.debug("Status transition %s -> %s", transition.source, transition.target)
        return

    if isinstance(filters.get("status"), str):
        update.status = filters["status"]

    for status, as_target, commands in _STATUS_COMMANDS:
        if filters.get("status") == status and update.status == status:
            if not as_target.search(lower_query):
                continue
        if any(command.search(lower_query) for command in commands):
            update.new_status = status
            return


# ---------------------------------------------------------------------------
# Deadlines
# ---------------------------------------------------------------------------

_DEADLINE_WORD: Final[str] = r"(?:deadlines?|dealines?|dead\s*lines?|dead-lines?|dates?\s*limites?)"
_REMOVE_VERBS: Final[str] = r"supprime[rz]?|retire[rz]?|enl[èe]ve[rz]?|remove|delete|clear"
_UNIT: Final[str] = r"(semaines?|weeks?|jours?|days?|mois|months?)"
_PUSH_VERBS: Final[str] = (
    r"pousse[rz]?|d[ée]place[rz]?|retarde[rz]?|d[ée]cal(?:e[rz]?)?|pr[ée]voi[rt]|avance[rz]?"
)

_REMOVE_DEADLINE: Final[tuple[re.Pattern[str], ...]] = _compile(
    rf"(?:{_REMOVE_VERBS})\s+(?:les?\s+|the\s+|all\s+)?{_DEADLINE_WORD}",
    rf"(?:{_REMOVE_VERBS})\s+(?:les?\s+)?(?:dead|deal|date)[\s-]?lines?",
)
_PUSH_DEADLINE: Final[tuple[re.Pattern[str], ...]] = _compile(
    rf"(?:{_PUSH_VERBS})\s+(?:toutes?\s+)?(?:les?\s+)?{_DEADLINE_WORD}\s+"
    rf"(?:d['’]?une?|de\s+une?|de\s+(\d+))\s+{_UNIT}",
    rf"(?:recule[rz]?)\s+(?:les?\s+)?{_DEADLINE_WORD}\s+(?:d['’]?une?|de\s+une?|de\s+(\d+))\s+{_UNIT}",
    rf"(?:enl[èe]ve[rz]?|retire[rz]?|recule[rz]?)\s+(?:une?\s+|(\d+)\s+)?{_UNIT}\s+"
    rf"(?:aux|à\s+les?|des?)\s*{_DEADLINE_WORD}?",
    rf"(?:push|delay|postpone|move|shift)\s+(?:all\s+)?(?:the\s+)?{_DEADLINE_WORD}\s+"
    rf"(?:back\s+)?by\s+(?:an?\s+|(\d+)\s*)?{_UNIT}",
    rf"(?:remove|subtract|take\s+off)\s+(?:an?\s+|(\d+)\s*)?{_UNIT}\s+(?:from|off)\s+"
    rf"(?:all\s+)?(?:the\s+)?{_DEADLINE_WORD}",
)
_NEGATIVE_SHIFT: Final[re.Pattern[str]] = re.compile(
    r"enl[èe]ve|retire|recul|remove|subtract|take\s+off", re.IGNORECASE
)

_DATE_EXPRESSION: Final[str] = (
    r"(semaine\s+pro(?:chaine)?|mois\s+prochain|next\s+week|next\s+month|"
    r"apr[èe]s[-\s]?demain|day\s+after\s+tomorrow|demain|tomorrow|aujourd['’]hui|today|"
    r"dans\s+\d+\s+(?:jours?|semaines?|mois)|in\s+\d+\s+(?:days?|weeks?|months?)|\d{4}-\d{2}-\d{2})"
)
_NEW_DEADLINE: Final[tuple[re.Pattern[str], ...]] = _compile(
    rf"(?:d[ée]place[rz]?|change[rz]?|modifie[rz]?|mets?|passe[rz]?|set|move)\s+(?:les?\s+|la\s+|the\s+)?"
    rf"{_DEADLINE_WORD}\s+(?:des?\s+)?{_PROJECTS}?(?:à|pour|pour\s+le|to|for)?\s*(?:la\s+|le\s+)?{_DATE_EXPRESSION}",
    rf"(?:met|mets?|d[ée]finis?|d[ée]finir|set|add)\s+(?:une\s+|a\s+)?deadline\s+(?:à|pour|pour\s+le|to|for)?\s*{_DATE_EXPRESSION}",
    rf"(?:deadline|date\s*limite)\s+(?:à|pour|pour\s+le|to|for)?\s*(?:la\s+|le\s+)?{_DATE_EXPRESSION}",
    r"\b(?:au|à\s+le)\s+(?:le\s+)?(mois\s+prochain|next\s+month)\b",
    r"\b(?:à|pour|pour\s+le)\s+(?:la\s+)?(semaine\s+pro(?:chaine)?|next\s+week)\b",
)


def _extract_deadline(
    query: str, lower_query: str, filters: dict[str, Any], update: UpdateData
) -> None:
    for pattern in _REMOVE_DEADLINE:
        if pattern.search(lower_query):
            update.remove_deadline = True
            update.has_deadline = True
            filters["has_deadline"] = True
            return

    for pattern in _PUSH_DEADLINE:
        match = pattern.search(query)
        if not match:
            continue
        amount = int(match.group(1)) if match.group(1) else 1
        if _NEGATIVE_SHIFT.search(match.group(0)):
            amount = -amount
        unit = match.group(2).lower()
        if unit.startswith(("semaine", "week")):
            shift = DeadlineShift(weeks=amount)
        elif unit.startswith(("jour", "day")):
            shift = DeadlineShift(days=amount)
        else:
            shift = DeadlineShift(months=amount)
        update.push_deadline_by = shift
        update.has_deadline = True
        filters["has_deadline"] = True
        logger.debug("Deadline shift detected: %s", shift)
        return

    for pattern in _NEW_DEADLINE:
        match = pattern.search(query)
        if not match:
            continue
        parsed = parse_relative_date(match.group(1))
        if parsed:
            update.new_deadline = parsed
            return


# ---------------------------------------------------------------------------
# Collaborator, style, labels
# ---------------------------------------------------------------------------

_NAME_LAZY: Final[str] = r"([A-Za-z0-9_\s]+?)(?:\s|$)"
_COLLAB_WORD: Final[str] = r"(?:collaborateurs?|collabs?|collaborators?)"
_COLLAB_TRANSITION: Final[tuple[re.Pattern[str], ...]] = _compile(
    rf"(?:en\s+)?(?:collab|collaborateur)\s+avec\s+([A-Za-z0-9_\s]{{1,60}}?)\s+à\s+{_NAME_LAZY}",
    rf"avec\s+(?:le\s+)?(?:collab|collaborateur)\s+([A-Za-z0-9_\s]{{1,60}}?)\s+à\s+{_NAME_LAZY}",
    rf"collab(?:oration)?s?\s+with\s+([A-Za-z0-9_\s]{{1,60}}?)\s+to\s+{_NAME_LAZY}",
)
_NEW_COLLAB: Final[tuple[re.Pattern[str], ...]] = _compile(
    rf"(?:{_PROGRESS_VERBS})\s+(?:{_DETERMINERS})?{_COLLAB_WORD}(?:\s+de\s+.{{1,60}}?)?\s+"
    rf"(?:à|a|par|pour|en|avec|to)\s+{_NAME_LAZY}",
    rf"(?:{_DETERMINERS})?{_COLLAB_WORD}\s+(?:à|a|par|pour|en|avec|to)\s+{_NAME_LAZY}",
    r"(?:en\s+)?mettant\s+(?:en\s+)?(?:collaborateur|collab)\s+([A-Za-z0-9_\s]+)",
    r"(?:en|avec)\s+(?:collaborateur|collab)\s+([A-Za-z0-9_\s]+)",
    rf"(?:{_PROGRESS_VERBS})\s+(?:{_DETERMINERS})?{_PROJECTS}?(?:en|à|avec|par|pour)\s+"
    rf"(?:collaborateur|collab)\s+(?:avec\s+)?{_NAME_LAZY}",
    r"\badd\s+([A-Za-z0-9_]+)\s+as\s+(?:a\s+)?collaborator",
)
_COLLAB_STOPWORDS: Final[frozenset[str]] = frozenset(
    {"projets", "projet", "les", "mes", "de", "en", "le", "la", "des", "avec", "the", "projects"}
)

_STYLE_TRANSITION: Final[tuple[re.Pattern[str], ...]] = _compile(
    r"(?:de|depuis)\s+style\s+([A-Za-z0-9_\s]{1,60}?)\s+à\s+([A-Za-z0-9_\s]+)",
    r"from\s+style\s+([A-Za-z0-9_\s]{1,60}?)\s+to\s+([A-Za-z0-9_\s]+)",
)
_NEW_STYLE: Final[tuple[re.Pattern[str], ...]] = _compile(
    r"(?:change[rz]?|modifie[rz]?|passe[rz]?|mets?|set)\s+(?:les?\s+|the\s+)?(?:projets?\s+)?(?:le\s+)?"
    r"style\s+(?:à|en|pour|par|to)\s+([A-Za-z0-9_\s]+)",
    r"(?:change[rz]?|modifie[rz]?|passe[rz]?|mets?)\s+(?:les?\s+)?(?:projets?\s+)?(?:le\s+)?"
    r"style\s+([A-Za-z0-9_\s]+?)(?:\s|$)",
    r"(?:en|à)\s+style\s+([A-Za-z0-9_\s]+)",
    r"style\s+(?:à|en|pour|par|to)\s+([A-Za-z0-9_\s]+)",
    r"(?:mets?|change[rz]?|modifie[rz]?|passe[rz]?)\s+(?:les?\s+)?(?:projets?\s+)?en\s+([A-Za-z0-9_\s]+?)(?:\s|$)",
)
_STYLE_STOPWORDS: Final[frozenset[str]] = frozenset(
    {"projets", "projet", "les", "mes", "de", "en", "le", "la", "des", "cours", "attente", "termine"}
)

_NEW_LABEL: Final[tuple[re.Pattern[str], ...]] = _compile(
    r"(?<!final\s)(?:label|label\s+cibl[ée])\s+(?:à|en|pour|to)\s+([A-Za-z0-9_\s]+)",
    r"(?:change[rz]?|modifie[rz]?|passe[rz]?|mets?|set)\s+(?:le\s+|the\s+)?label\s+(?:à|en|pour|to)\s+([A-Za-z0-9_\s]+)",
    r"(?:change[rz]?|modifie[rz]?|passe[rz]?|mets?)\s+(?:le\s+)?label\s+cibl[ée]\s+(?:à|en|pour)?\s*([A-Za-z0-9_\s]+)",
)
_LABEL_STOPWORDS: Final[frozenset[str]] = frozenset(
    {"projets", "projet", "les", "mes", "de", "en", "le", "la", "des", "ciblé", "ciblée"}
)
_NEW_LABEL_FINAL: Final[tuple[re.Pattern[str], ...]] = _compile(
    r"(?:label\s+final|sign[ée])\s+(?:à|en|chez|pour)\s+([A-Za-z0-9_\s]+)",
    r"(?:change[rz]?|modifie[rz]?|passe[rz]?|mets?)\s+(?:le\s+)?label\s+final\s+(?:à|en|pour)\s+([A-Za-z0-9_\s]+)",
    r"sign[ée]\s+chez\s+([A-Za-z0-9_\s]+)",
    r"(?:set|change|update)\s+(?:the\s+)?final\s+label\s+to\s+([A-Za-z0-9_\s]+)",
)
_LABEL_FINAL_STOPWORDS: Final[frozenset[str]] = _LABEL_STOPWORDS | {"final"}
_STATUS_START: Final[tuple[re.Pattern[str], ...]] = tuple(
    re.compile(pattern, re.IGNORECASE) for _, pattern in STATUS_PATTERNS
)


def _strip_avec(name: str) -> str:
    return name[5:].strip() if name.lower().startswith("avec ") else name


def _extract_collab(query: str, filters: dict[str, Any], update: UpdateData) -> None:
    for pattern in _COLLAB_TRANSITION:
        match = pattern.search(query)
        if not match:
            continue
        current = match.group(1).strip()
        new = _strip_avec(match.group(2).strip())
        if new and new.lower() not in _COLLAB_STOPWORDS:
            filters["collab"] = current
            update.collab = current
            update.new_collab = new
            return

    for pattern in _NEW_COLLAB:
        match = pattern.search(query)
        if not match:
            continue
        name = _strip_avec(match.group(1).strip())
        if name and name.lower() not in _COLLAB_STOPWORDS:
            update.new_collab = name
            return


def _extract_style(
    query: str, filters: dict[str, Any], update: UpdateData, available_styles: list[str]
) -> None:
    for pattern in _STYLE_TRANSITION:
        match = pattern.search(query)
        if not match:
            continue
        current = match.group(1).strip()
        new = match.group(2).strip()
        filters["style"] = current
        update.style = current
        resolved = find_style_from_string(new, available_styles)
        update.new_style = resolved.style if resolved else new
        return

    for pattern in _NEW_STYLE:
        match = pattern.search(query)
        if not match:
            continue
        name = match.group(1).strip()
        if not name or name.lower() in _STYLE_STOPWORDS or name.isdigit():
            continue
        if any(status.match(query, match.start(1)) for status in _STATUS_START):
            continue
        resolved = find_style_from_string(name, available_styles)
        update.new_style = resolved.style if resolved else name
        return


def _first_name(
    query: str, patterns: tuple[re.Pattern[str], ...], stopwords: frozenset[str]
) -> str | None:
    for pattern in patterns:
        match = pattern.search(query)
        if match:
            name = match.group(1).strip()
            if name and name.lower() not in stopwords:
                return name
    return None


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def extract_update_data(
    query: str,
    lower_query: str,
    filters: dict[str, Any],
    available_styles: list[str],
) -> UpdateData | None:
    """Extract a modification command from a user query.

    Args:
        query: The user query with its original casing.
        lower_query: The same query, lower-cased.
        filters: Filters detected for the query. Adjusted in place when the
            command reassigns a detected value (progress, status, collaborator
            or style transitions, deadline scoping).
        available_styles: Style names in the user's catalogue.

    Returns:
        The :class:`UpdateData`, or ``None`` when no mutation was found.
    """
    cleaned = _strip_quotes(query)
    cleaned_lower = cleaned.lower()
    update = UpdateData()

    _extract_progress_transition(cleaned, filters, update)

    for key in ("min_progress", "max_progress", "has_deadline", "collab", "style", "label", "label_final"):
        if filters.get(key) is not None:
            setattr(update, key, filters[key])
    if filters.get("no_progress"):
        update.no_progress = True

    _extract_new_progress(cleaned, lower_query, filters, update)
    _extract_status(cleaned_lower, filters, update)
    _extract_deadline(query, lower_query, filters, update)
    _extract_collab(query, filters, update)
    _extract_style(cleaned, filters, update, available_styles)
    update.new_label = _first_name(query, _NEW_LABEL, _LABEL_STOPWORDS)
    update.new_label_final = _first_name(query, _NEW_LABEL_FINAL, _LABEL_FINAL_STOPWORDS)

    note = extract_note(query)
    if note is not None:
        update.project_name = note.project_name
        update.new_note = note.content

    if not update.has_mutation():
        return None
    logger.debug("Update data extracted: %s", update.to_dict())
    return update
