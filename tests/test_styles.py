"""tests/test_styles.py

Unit tests for style lookup (assistant/styles.py).
"""

from __future__ import annotations

# Third-Party Libraries
import pytest

# Local Modules
from assistant.styles import STYLE_ALIASES, StyleMatch, find_style_from_string


class TestFindStyleFromString:
    """Test suite for find_style_from_string."""

    def test_longest_alias_wins(self) -> None:
        """Test a specific genre is preferred over a generic one it contains."""
        match = find_style_from_string("I love drum and bass and bass music", ["Drum and Bass", "Bass"])
        assert match is not None
        assert match.style == "Drum and Bass"

    def test_returns_user_spelling_on_exact_match(self) -> None:
        """Test the catalogue's own casing is returned."""
        match = find_style_from_string("mes projets dnb", ["drum and bass"])
        assert match == StyleMatch(style="drum and bass", matched_text="dnb")

    def test_partial_containment(self, available_styles: list[str]) -> None:
        """Test a shorter catalogue entry contained in the canonical name is used."""
        match = find_style_from_string("les projets afro house", available_styles)
        assert match is not None
        assert match.style == "afro"

    def test_canonical_fallback_when_absent(self) -> None:
        """Test the canonical name is returned when the catalogue lacks it."""
        match = find_style_from_string("un track dubstep", [])
        assert match is not None
        assert match.style == "Dubstep"

    def test_specific_house_before_generic(self, available_styles: list[str]) -> None:
        """Test 'tech house' is not reported as plain 'House'."""
        match = find_style_from_string("liste mes projets tech house", available_styles)
        assert match is not None
        assert match.style == "tech house"

    def test_verbatim_catalogue_fallback(self) -> None:
        """Test catalogue entries unknown to the alias table still match."""
        match = find_style_from_string("projets en jersey club", ["Jersey Club"])
        assert match == StyleMatch(style="Jersey Club", matched_text="jersey club")

    @pytest.mark.parametrize("text", ["salut", "combien de projets", ""])
    def test_no_match(self, text: str, available_styles: list[str]) -> None:
        """Test text without any alias or catalogue style yields None."""
        assert find_style_from_string(text, available_styles) is None

    def test_injected_alias_table(self) -> None:
        """Test a caller-supplied alias table replaces the default one."""
        aliases = (("Baile Funk", ("baile", "funk carioca")),)
        match = find_style_from_string("du funk carioca", [], aliases=aliases)
        assert match == StyleMatch(style="Baile Funk", matched_text="funk carioca")

    def test_default_table_order(self) -> None:
        """Test compound genres precede the generic genres they contain."""
        names = [name for name, _ in STYLE_ALIASES]
        assert names.index("Drum and Bass") < names.index("Bass")
        assert names.index("Tech House") < names.index("House")
        assert names.index("Hard Techno") < names.index("Techno")
