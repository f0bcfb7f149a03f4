"""tests/test_modes.py

Unit tests for operational mode inference (assistant/modes.py).
"""

from __future__ import annotations

# Third-Party Libraries
import pytest

# Local Modules
from assistant.modes import Mode, infer_mode


class TestInferMode:
    """Test suite for infer_mode."""

    @pytest.mark.parametrize(
        "query, expected",
        [
            ("résume la conversation", Mode.SUMMARY),
            ("tl;dr please", Mode.SUMMARY),
            ("fais plus dense", Mode.SUMMARY),
            ("analyse ce texte", Mode.FACT),
            ("facts only", Mode.FACT),
            ("donne moi ça en bullet points", Mode.FACT),
            ("ne fais rien", Mode.COMMAND),
            ("c'est fait ?", Mode.COMMAND),
            ("mark the projects as done", Mode.COMMAND),
            ("salut ça va ?", Mode.CHAT),
            ("who are you?", Mode.CHAT),
        ],
    )
    def test_detects_mode(self, query: str, expected: Mode) -> None:
        """Test each trigger family maps to its mode."""
        assert infer_mode(query) is expected

    def test_summary_beats_command(self) -> None:
        """Test SUMMARY is checked before COMMAND when both match."""
        assert infer_mode("summarize more densely and do nothing else") is Mode.SUMMARY

    def test_fact_beats_command(self) -> None:
        """Test FACT is checked before COMMAND when both match."""
        assert infer_mode("extract the facts and confirm") is Mode.FACT

    @pytest.mark.parametrize("query", ["", "   ", "\n\t"])
    def test_empty_input_is_chat(self, query: str) -> None:
        """Test blank input defaults to CHAT."""
        assert infer_mode(query) is Mode.CHAT

    def test_case_and_whitespace_insensitive(self) -> None:
        """Test input is lower-cased and trimmed before matching."""
        assert infer_mode("   RÉSUMÉ   ") is Mode.SUMMARY

    @pytest.mark.parametrize("query", ["bonjour", "NE FAIS RIEN", "recap", "xyz 123"])
    def test_deterministic(self, query: str) -> None:
        """Test repeated calls return the same mode."""
        assert infer_mode(query) is infer_mode(query)
        assert infer_mode(query) in set(Mode)

    def test_mode_values_are_prompt_labels(self) -> None:
        """Test mode values render as the prompt's MODE labels."""
        assert [m.value for m in Mode] == ["CHAT", "FACT", "SUMMARY", "COMMAND"]
