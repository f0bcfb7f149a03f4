"""assistant/vocabulary.py

Shared French/English vocabulary for the query parser: project status
patterns, update verbs and status-transition phrases ("passe les projets
en cours en terminé", "change projects from in progress to done").
"""

from __future__ import annotations

# Standard Library
import dataclasses
import functools
import re
from typing import Final

# Ordered: the first status whose pattern matches wins.
STATUS_PATTERNS: Final[tuple[tuple[str, str], ...]] = (
    (
        "GHOST_PRODUCTION",
        r"ghost\s*prod(?:uction)?|ghostprod|gost\s*prod|ghosprod|gausprod|goastprod",
    ),
    ("TERMINE", r"termin[ée]s?|finis?|complet[ée]?s?|finished|completed|done|100\s*%"),
    ("ANNULE", r"annul[ée]s?|cancel(?:l?ed)?|abandonn[ée]s?|dropped"),
    (
        "EN_COURS",
        r"en\s*cours|en\s*courrs|encours|en_cours|ongoing|actifs?|"
        r"in[\s_]*(?:progress|the\s*works)|current|active|wip",
    ),
    ("EN_ATTENTE", r"en\s*attente|en_attente|pending|waiting|on\s*hold|pause"),
    ("ARCHIVE", r"archiv[ée]s?|archived"),
    ("A_REWORK", r"rework|[àa]\s*refaire|retravailler|needs?\s*work"),
)

COMPILED_STATUS_PATTERNS: Final[tuple[tuple[str, re.Pattern[str]], ...]] = tuple(
    (status, re.compile(pattern, re.IGNORECASE)) for status, pattern in STATUS_PATTERNS
)

UPDATE_VERBS: Final[str] = (
    r"marque[rsz]?|mets?|mettre|mettez|change[rsz]?|modifie[rsz]?|passe[rsz]?|"
    r"mark|set|move|switch|turn|update|put"
)
SCOPE_WORDS: Final[str] = (
    r"(?:(?:tous|toutes|all)\s+)?(?:les?|la|the|mes|my|ces|these|those|them)\s+"
)
PROJECT_WORDS: Final[str] = r"(?:projets?|projects?)\s+"

# "passe les projets à ...", "set them to ..."
UPDATE_COMMAND_PATTERN: Final[re.Pattern[str]] = re.compile(
    rf"\b(?:{UPDATE_VERBS})\s+{SCOPE_WORDS}(?:{PROJECT_WORDS})?(?:à|a|en|comme|to|as|into)\b",
    re.IGNORECASE,
)

# Text ending right before a status token that makes it the target of a command.
TARGET_PREFIX_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?:^|\s)(?:à|a|en|comme|as|to|into)\s*$", re.IGNORECASE
)

_TRANSITION_TEMPLATES: Final[tuple[str, ...]] = (
    # passe les projets en cours en terminé
    r"\b(?:{verbs})\s+(?:{scope})?(?:{projects})?(?P<src>{src})\s+en\s+(?P<dst>{dst})",
    # passe les projets de en cours à terminé
    r"\b(?:{verbs})\s+(?:{scope})?(?:{projects})?de\s+(?P<src>{src})\s+[àa]\s+(?P<dst>{dst})",
    # change projects from in progress to done
    r"\b(?:{verbs})\s+(?:{scope})?(?:{projects})?from\s+(?P<src>{src})\s+(?:to|into)\s+(?P<dst>{dst})",
    # mark the cancelled projects as done
    r"\b(?:{verbs})\s+(?:{scope})?(?P<src>{src})\s+(?:{projects})?(?:to|into|as)\s+(?P<dst>{dst})",
)


@dataclasses.dataclass(frozen=True, slots=True)
class StatusTransition:
    """A "from one status to another" phrase found in a query."""

    source: str
    target: str
    text: str


@functools.lru_cache(maxsize=1)
def _transition_patterns() -> tuple[tuple[str, str, re.Pattern[str]], ...]:
    compiled: list[tuple[str, str, re.Pattern[str]]] = []
    for template in _TRANSITION_TEMPLATES:
        for source, source_pattern in STATUS_PATTERNS:
            for target, target_pattern in STATUS_PATTERNS:
                if source == target:
                    continue
                pattern = template.format(
                    verbs=UPDATE_VERBS,
                    scope=SCOPE_WORDS,
                    projects=PROJECT_WORDS,
                    src=source_pattern,
                    dst=target_pattern,
                )
                compiled.append((source, target, re.compile(pattern, re.IGNORECASE)))
    return tuple(compiled)


def find_status_transition(lower_query: str) -> StatusTransition | None:
    """Find the longest status-transition phrase in a lower-cased query.

    Args:
        lower_query: The user query, lower-cased.

    Returns:
        The best :class:`StatusTransition`, or ``None`` when the query holds
        no transition between two distinct statuses.
    """
    best: StatusTransition | None = None
    for source, target, pattern in _transition_patterns():
        match = pattern.search(lower_query)
        if not match:
            continue
        if re.search(r"proje[ct]", match.group("src")):
            continue
        if best is None or len(match.group(0)) > len(best.text):
            best = StatusTransition(source=source, target=target, text=match.group(0))
    return best


def find_status(text: str) -> str | None:
    """Return the first status code whose pattern matches ``text``."""
    for status, pattern in COMPILED_STATUS_PATTERNS:
        if pattern.search(text):
            return status
    return None
