"""tests/test_validation.py

Unit tests for input validation (assistant/validation.py).
"""

from __future__ import annotations

# Third-Party Libraries
import pytest

# Local Modules
from assistant.models import ConversationMessage, ProjectContext
from assistant.validation import (
    MAX_CONVERSATION_HISTORY_LENGTH,
    MAX_STYLES_COUNT,
    QueryValidationError,
    validate_and_sanitize_query,
    validate_catalogue,
    validate_conversation_history,
    validate_last_filters,
    validate_project_context,
)


class TestValidateQuery:
    """Test suite for validate_and_sanitize_query."""

    @pytest.mark.parametrize(
        "query, message",
        [
            (None, "Query is required"),
            ("", "Query is required"),
            (42, "Query must be a string"),
            ("x" * 10_001, "Query too long (max 10000 characters)"),
            ("   ", "Query cannot be empty"),
            ('  ""  ', "Query cannot be empty"),
        ],
    )
    def test_rejected(self, query: object, message: str) -> None:
        """Test each rejection reason."""
        with pytest.raises(QueryValidationError) as exc_info:
            validate_and_sanitize_query(query)
        assert str(exc_info.value) == message

    @pytest.mark.parametrize(
        "query, expected",
        [
            ('"combien de projets"', "combien de projets"),
            ("  'liste mes projets'  ", "liste mes projets"),
            ("liste\x00 mes\x07 projets", "liste mes projets"),
            ("  show my projects\n", "show my projects"),
        ],
    )
    def test_cleaned(self, query: str, expected: str) -> None:
        """Test quotes, control characters and whitespace are removed."""
        assert validate_and_sanitize_query(query) == expected


class TestValidateCatalogue:
    """Test suite for validate_catalogue."""

    def test_coerces_values(self) -> None:
        """Test non-string and blank names are dropped and names trimmed."""
        collabs, styles = validate_catalogue(["hoho", " Daft Punk ", "", 3], "techno")
        assert collabs == ["hoho", "Daft Punk"]
        assert styles == []

    def test_caps_list_length(self) -> None:
        """Test oversized vocabularies are truncated."""
        _, styles = validate_catalogue([], [f"style{i}" for i in range(MAX_STYLES_COUNT + 5)])
        assert len(styles) == MAX_STYLES_COUNT

    def test_none_is_empty(self) -> None:
        """Test missing vocabularies become empty lists."""
        assert validate_catalogue(None, None) == ([], [])


class TestValidateHistory:
    """Test suite for validate_conversation_history."""

    def test_keeps_well_formed_entries(self) -> None:
        """Test malformed entries are skipped and content trimmed."""
        history = [
            {"role": "user", "content": "  salut  "},
            {"role": "system", "content": "ignored"},
            {"role": "assistant", "content": 12},
            {"role": "user", "content": ""},
            "not a message",
            ConversationMessage(role="assistant", content="Salut !"),
        ]
        messages = validate_conversation_history(history)
        assert [(m.role, m.content) for m in messages] == [("user", "salut"), ("assistant", "Salut !")]

    def test_keeps_most_recent_entries(self) -> None:
        """Test only the newest entries are considered."""
        history = [{"role": "user", "content": f"message {i}"} for i in range(150)]
        messages = validate_conversation_history(history)
        assert len(messages) == MAX_CONVERSATION_HISTORY_LENGTH
        assert messages[-1].content == "message 149"
        assert messages[0].content == "message 50"

    @pytest.mark.parametrize("history", [None, "hello", {"role": "user"}])
    def test_non_list_is_empty(self, history: object) -> None:
        """Test anything but a list yields no history."""
        assert validate_conversation_history(history) == []


class TestValidateLastFilters:
    """Test suite for validate_last_filters."""

    def test_camel_case_keys_converted(self) -> None:
        """Test wire-format keys become snake_case and nested values are dropped."""
        filters = validate_last_filters(
            {"minProgress": 10, "status": "EN_COURS", "hasDeadline": True, "nested": {"a": 1}, "tags": ["x"]}
        )
        assert filters == {"min_progress": 10, "status": "EN_COURS", "has_deadline": True, "tags": ["x"]}

    @pytest.mark.parametrize("filters", [None, "status", ["status"]])
    def test_non_mapping_is_empty(self, filters: object) -> None:
        """Test anything but a mapping yields no filters."""
        assert validate_last_filters(filters) == {}


class TestValidateProjectContext:
    """Test suite for validate_project_context."""

    def test_instance_returned_as_is(self) -> None:
        """Test an existing ProjectContext is passed through."""
        context = ProjectContext(project_count=3)
        assert validate_project_context(context) is context

    @pytest.mark.parametrize(
        "raw",
        [
            {"projectCount": 5, "collabCount": 2, "styleCount": 1},
            {"project_count": 5, "collab_count": 2, "style_count": 1},
        ],
    )
    def test_mapping_keys(self, raw: dict[str, int]) -> None:
        """Test camelCase and snake_case keys are both accepted."""
        assert validate_project_context(raw) == ProjectContext(project_count=5, collab_count=2, style_count=1)

    @pytest.mark.parametrize("raw", [None, {}, {"projectCount": -4}, {"projectCount": "many"}, [1, 2], "43"])
    def test_invalid_yields_zero_counts(self, raw: object) -> None:
        """Test missing or malformed counts fall back to zeros."""
        assert validate_project_context(raw) == ProjectContext()
