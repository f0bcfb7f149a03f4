"""assistant/styles.py

Music style lookup: maps free-text mentions ("dnb", "drum & bass") to the
style names the user actually has in the catalogue.
"""

from __future__ import annotations

# Standard Library
import dataclasses
import logging
from typing import Final

logger = logging.getLogger(__name__)

StyleAliases = tuple[tuple[str, tuple[str, ...]], ...]

# Iteration order is significant: specific genres come before the generic
# ones they contain ("Tech House" before "House", "Drum and Bass" before "Bass").
STYLE_ALIASES: Final[StyleAliases] = (
    ("Drum and Bass", ("drum and bass", "drum & bass", "drum n bass", "drum'n'bass", "drumnbass", "dnb", "d&b")),
    ("Dubstep", ("dubstep", "dub step", "brostep")),
    ("Tech House", ("tech house", "tech-house", "techhouse")),
    ("Deep House", ("deep house", "deep-house", "deephouse")),
    ("Progressive House", ("progressive house", "prog house")),
    ("Afro House", ("afro house", "afro-house", "afrohouse", "afro")),
    ("Bass House", ("bass house", "bass-house")),
    ("Future House", ("future house", "future-house")),
    ("House", ("house",)),
    ("Hard Techno", ("hard techno", "hardtechno")),
    ("Techno", ("techno", "tekno")),
    ("Psytrance", ("psytrance", "psy trance", "psy-trance")),
    ("Trance", ("trance",)),
    ("Hardstyle", ("hardstyle", "hard style")),
    ("Trap", ("trap",)),
    ("Hip-Hop", ("hip hop", "hip-hop", "hiphop")),
    ("Lo-Fi", ("lo-fi", "lofi", "lo fi")),
    ("Ambient", ("ambient",)),
    ("UK Garage", ("uk garage", "ukg", "garage")),
    ("Drill", ("drill",)),
    ("R&B", ("r&b", "rnb", "r'n'b")),
    ("Bass", ("bass music", "bass")),
    ("Pop", ("pop",)),
)


@dataclasses.dataclass(frozen=True, slots=True)
class StyleMatch:
    """A style resolved from free text."""

    style: str
    matched_text: str


def _resolve(canonical: str, variation: str, available_styles: list[str]) -> str:
    wanted = {canonical.lower(), variation.lower()}
    for style in available_styles:
        if style.lower() in wanted:
            return style

    lower_canonical = canonical.lower()
    for style in available_styles:
        lower_style = style.lower()
        if lower_style and (lower_style in lower_canonical or lower_canonical in lower_style):
            return style

    return canonical


def find_style_from_string(
    text: str,
    available_styles: list[str],
    aliases: StyleAliases = STYLE_ALIASES,
) -> StyleMatch | None:
    """Find the first style mentioned in ``text``.

    Canonical styles are visited in table order; within one canonical style
    the longest variation is tested first. A hit is resolved to the user's
    own spelling when one of ``available_styles`` matches exactly or by
    containment, otherwise the canonical name is returned. When no alias
    matches, the available styles themselves are searched verbatim.

    Args:
        text: Free text to search.
        available_styles: Style names present in the user's catalogue.
        aliases: Ordered ``(canonical, variations)`` lookup table.

    Returns:
        A :class:`StyleMatch`, or ``None`` when nothing matched.
    """
    lower_text = text.lower()

    for canonical, variations in aliases:
        for variation in sorted(variations, key=len, reverse=True):
            if variation in lower_text:
                style = _resolve(canonical, variation, available_styles)
                logger.debug("Style %r matched via %r -> %r", canonical, variation, style)
                return StyleMatch(style=style, matched_text=variation)

    for style in available_styles:
        if style and style.lower() in lower_text:
            logger.debug("Style %r matched verbatim", style)
            return StyleMatch(style=style, matched_text=style.lower())

    return None
