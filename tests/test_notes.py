"""tests/test_notes.py

Unit tests for project note extraction (assistant/notes.py).
"""

from __future__ import annotations

# Third-Party Libraries
import pytest

# Local Modules
from assistant.notes import NoteCommand, extract_note


class TestExtractNote:
    """Test suite for extract_note."""

    @pytest.mark.parametrize(
        "query, expected",
        [
            (
                "Session magnetize du jour, refait le break",
                NoteCommand("magnetize", "refait le break"),
            ),
            ("note for Magnetize: new drop idea", NoteCommand("Magnetize", "new drop idea")),
            (
                "add a note to Sunrise saying that the vocals need work",
                NoteCommand("Sunrise", "the vocals need work"),
            ),
            (
                "ajoute une note pour Sunrise disant que le kick est trop fort",
                NoteCommand("Sunrise", "le kick est trop fort"),
            ),
            ("ajoute une note à Sunrise: kick trop fort", NoteCommand("Sunrise", "kick trop fort")),
            ("Sunrise, refaire le mix", NoteCommand("Sunrise", "refaire le mix")),
            ("Sunrise du jour, nouveau mix", NoteCommand("Sunrise", "nouveau mix")),
        ],
    )
    def test_note_forms(self, query: str, expected: NoteCommand) -> None:
        """Test every supported note phrasing."""
        assert extract_note(query) == expected

    def test_quotes_stripped_from_content(self) -> None:
        """Test surrounding quotes are removed from the note text."""
        note = extract_note('note pour Sunrise: "nouveau drop"')
        assert note == NoteCommand("Sunrise", "nouveau drop")

    @pytest.mark.parametrize(
        "query",
        [
            "salut, ça va ?",
            "bonjour, tu vas bien",
            "Sunrise, c'est fini ?",
            "et pour les projets terminés, combien",
            "les projets, combien",
            "combien de projets terminés",
        ],
    )
    def test_conversational_phrases_are_not_notes(self, query: str) -> None:
        """Test greetings, questions and chatter are never read as notes."""
        assert extract_note(query) is None
