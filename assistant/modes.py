"""assistant/modes.py

Operational mode inference for incoming user messages.

The mode decides which rule block the prompt builder appends for the
language model. Inference is a pure, total function of the text: pattern
groups are tested in a fixed order (SUMMARY, FACT, COMMAND) and anything
unmatched is plain CHAT.
"""

from __future__ import annotations

# Standard Library
import logging
import re
from enum import StrEnum
from typing import Final

logger = logging.getLogger(__name__)


class Mode(StrEnum):
    """Response modes understood by the prompt builder."""

    CHAT = "CHAT"
    FACT = "FACT"
    SUMMARY = "SUMMARY"
    COMMAND = "COMMAND"


_SUMMARY_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"r[ée]sum[ée]r?|summar(?:y|ise|ize)|tl;?dr|recap|"
    r"plus\s+dense|more\s+dens(?:e|ely)|condens|synth[èe]se|synth[ée]tise"
)
_FACT_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"analy[sz]e|extrai[st]|extract|facts?\s+only|only\s+the\s+facts|"
    r"que\s+les\s+faits|faits\s+(?:seulement|uniquement)|liste\s+les\s+faits|"
    r"en\s+points|bullet\s*points?"
)
_COMMAND_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"ne\s+fais\s+rien|do\s+nothing|confirme|confirm|c['’]est\s+fait|"
    r"is\s+it\s+done|c['’]est\s+bon\s*\?|"
    r"\b(?:marque|mets?|passe|change|modifie|mark|set|update|move)\s+"
    r"(?:les?|la|the|them|all|tous|toutes|mes|my)\b"
)

_MODE_ORDER: Final[tuple[tuple[Mode, re.Pattern[str]], ...]] = (
    (Mode.SUMMARY, _SUMMARY_PATTERN),
    (Mode.FACT, _FACT_PATTERN),
    (Mode.COMMAND, _COMMAND_PATTERN),
)


def infer_mode(query: str) -> Mode:
    """Infer the operational mode of a user message.

    Args:
        query: Raw user text, any casing.

    Returns:
        The first :class:`Mode` whose pattern group matches, or
        ``Mode.CHAT`` when none does (including for empty input).
    """
    text = (query or "").lower().strip()
    if not text:
        return Mode.CHAT

    for mode, pattern in _MODE_ORDER:
        if pattern.search(text):
            logger.debug("Mode inference: %s (matched %r)", mode, pattern.pattern[:40])
            return mode
    return Mode.CHAT
