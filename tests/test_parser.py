"""tests/test_parser.py

End-to-end tests for parse_query (assistant/parser.py).
"""

from __future__ import annotations

# Standard Library
import time
from unittest.mock import patch

# Third-Party Libraries
import pytest

# Local Modules
from assistant.models import ConversationMessage
from assistant.parser import CLARIFICATIONS, infer_status_from_context, parse_query


class TestSearchQueries:
    """Test suite for count, list and search requests."""

    def test_count_by_status(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test a French count request."""
        result = parse_query("combien de projets terminés", available_collabs, available_styles)
        assert result.type == "count"
        assert result.filters == {"status": "TERMINE"}
        assert result.understood is True
        assert result.lang == "fr"
        assert result.update_data is None
        assert result.clarification is None

    def test_english_count_serialization(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test the wire format of an English count request."""
        data = parse_query("how many projects under 40%", available_collabs, available_styles).to_dict()
        assert data["type"] == "count"
        assert data["filters"] == {"maxProgress": 40}
        assert data["lang"] == "en"
        assert data["understood"] is True
        assert "updateData" not in data

    def test_list_by_status(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test a list request with a status filter and no project word."""
        result = parse_query("liste mes ghost prod", available_collabs, available_styles)
        assert result.type == "list"
        assert result.filters == {"status": "GHOST_PRODUCTION"}
        assert result.understood is True

    def test_not_understood(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test chatter gets a clarification in the detected language."""
        result = parse_query("alors ça va ?", available_collabs, available_styles)
        assert result.understood is False
        assert result.is_conversational is True
        assert result.clarification == CLARIFICATIONS["fr"]

    def test_meta_question(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test questions about the assistant drop every filter."""
        result = parse_query("what can you do with finished projects?", available_collabs, available_styles)
        assert result.filters == {}
        assert result.type == "search"
        assert result.understood is False
        assert result.lang == "en"
        assert result.clarification == CLARIFICATIONS["en"]

    def test_long_chatter_ignores_filters(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test a long conversational message does not leak incidental filters."""
        query = (
            "alors hier soir je suis allé danser dans un club de techno avec des amis et la musique "
            "était vraiment incroyable du début à la fin de la nuit et on a dansé jusqu'au matin sans "
            "jamais nous arrêter une seule fois et je crois que je vais y retourner très vite"
        )
        assert len(query) > 200
        result = parse_query(query, available_collabs, available_styles)
        assert result.is_conversational is True
        assert result.filters == {}
        assert result.fields_to_show is None


class TestUpdateQueries:
    """Test suite for modification commands."""

    def test_filter_then_command(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test 'at X% and mark them done' scopes on X and sets the status."""
        result = parse_query("projects at 7% and mark them done", available_collabs, available_styles)
        assert result.type == "update"
        assert result.understood is True
        assert result.filters == {"min_progress": 7, "max_progress": 7}
        assert result.update_data is not None
        assert result.update_data.new_status == "TERMINE"

    def test_percent_followed_by_target(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test 'set the projects at X% to done'."""
        result = parse_query("set the projects at 7% to done", available_collabs, available_styles)
        assert result.type == "update"
        assert result.filters == {}
        assert result.update_data is not None
        assert result.update_data.new_status == "TERMINE"
        assert result.update_data.new_progress == 7

    def test_status_transition(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test 'from X to Y' scopes through the update data, not the filters."""
        result = parse_query("change projects from IN_PROGRESS to DONE", available_collabs, available_styles)
        assert result.type == "update"
        assert result.filters == {}
        assert result.update_data is not None
        assert result.update_data.status == "EN_COURS"
        assert result.update_data.new_status == "TERMINE"

    def test_same_status_filter_and_target(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test 'mark the finished projects as done'."""
        result = parse_query("mark the finished projects as done", available_collabs, available_styles)
        assert result.filters == {"status": "TERMINE"}
        assert result.update_data is not None
        assert result.update_data.new_status == "TERMINE"

    def test_progress_transition(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test 'passe de X% à Y'."""
        result = parse_query("passe de 10% à 15", available_collabs, available_styles)
        assert result.type == "update"
        assert result.filters == {"min_progress": 10, "max_progress": 10}
        assert result.update_data is not None
        assert result.update_data.new_progress == 15

    def test_remove_deadlines_serialization(
        self, available_collabs: list[str], available_styles: list[str]
    ) -> None:
        """Test removal is serialized as an explicit null deadline."""
        result = parse_query("supprime les deadlines des projets terminés", available_collabs, available_styles)
        assert result.type == "update"
        assert result.filters["status"] == "TERMINE"
        assert result.filters["has_deadline"] is True
        data = result.to_dict()
        assert data["filters"]["hasDeadline"] is True
        assert data["updateData"]["newDeadline"] is None


class TestContextInference:
    """Test suite for follow-up commands relying on the previous turn."""

    @pytest.mark.parametrize("last_filters", [{"status": "EN_COURS"}, {"status": "EN_COURS", "minProgress": None}])
    def test_status_from_last_filters(
        self, last_filters: dict[str, object], available_collabs: list[str], available_styles: list[str]
    ) -> None:
        """Test 'set them to done' reuses the previous status filter."""
        result = parse_query("set them to done", available_collabs, available_styles, last_filters=last_filters)
        assert result.type == "update"
        assert result.filters == {"status": "EN_COURS"}
        assert result.update_data is not None
        assert result.update_data.new_status == "TERMINE"

    def test_status_from_history(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test the status is recovered from a recent user turn."""
        history = [
            {"role": "user", "content": "liste mes projets en cours"},
            {"role": "assistant", "content": "Tu as 4 projets en cours."},
        ]
        result = parse_query("set them to done", available_collabs, available_styles, conversation_history=history)
        assert result.filters == {"status": "EN_COURS"}

    def test_last_filters_win_over_history(self) -> None:
        """Test the previous turn's filters take precedence."""
        history = [ConversationMessage(role="user", content="show my finished projects")]
        assert infer_status_from_context({"status": "ANNULE"}, history) == "ANNULE"

    def test_oldest_turn_in_window_first(self) -> None:
        """Test only the last three user turns are scanned, oldest first."""
        history = [
            ConversationMessage(role="user", content="projets annulés"),
            ConversationMessage(role="user", content="salut"),
            ConversationMessage(role="user", content="projets terminés"),
            ConversationMessage(role="user", content="merci"),
        ]
        assert infer_status_from_context({}, history) == "TERMINE"
        assert infer_status_from_context({}, history[:1] + [history[1]] * 3) is None

    def test_first_hit_wins(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test the earlier of two status mentions is used."""
        history = [
            ConversationMessage(role="user", content="liste projets annulés"),
            ConversationMessage(role="user", content="liste projets terminés"),
        ]
        assert infer_status_from_context({}, history) == "ANNULE"

        result = parse_query(
            "set them to done",
            available_collabs,
            available_styles,
            conversation_history=[
                {"role": "user", "content": "show my cancelled projects"},
                {"role": "user", "content": "show my finished projects"},
            ],
        )
        assert result.filters == {"status": "ANNULE"}


class TestFailures:
    """Test suite for invalid input and internal errors."""

    @pytest.mark.parametrize("query, message", [("", "Query is required"), (None, "Query is required")])
    def test_invalid_query(
        self, query: object, message: str, available_collabs: list[str], available_styles: list[str]
    ) -> None:
        """Test validation errors come back as clarifications."""
        result = parse_query(query, available_collabs, available_styles)
        assert result.understood is False
        assert result.clarification == message
        assert result.filters == {}

    def test_internal_error_never_raises(self, available_collabs: list[str], available_styles: list[str]) -> None:
        """Test an unexpected failure is reported, not raised."""
        with patch("assistant.parser.detect_filters", side_effect=RuntimeError("boom")):
            result = parse_query("liste mes projets", available_collabs, available_styles)
        assert result.understood is False
        assert result.clarification == "boom"


class TestLongInput:
    """Test suite for worst-case inputs near the length limit."""

    @pytest.mark.parametrize(
        "query",
        [
            ("set " * 2400)[:10000],
            ("projets " * 1300)[:10000],
            ("passe les projets de " * 500)[:10000],
        ],
    )
    def test_repeated_words_parse_quickly(self, query: str) -> None:
        """Test repeated verbs and nouns do not trigger slow regex backtracking."""
        started = time.perf_counter()
        result = parse_query(query, ["Bob"], ["Techno"])
        elapsed = time.perf_counter() - started

        assert elapsed < 2.0
        assert result.understood in (True, False)
