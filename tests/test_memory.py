"""tests/test_memory.py

Unit tests for conversation memory (assistant/memory.py).
Tests the rolling log, context preparation, condensation and prompt formatting.
"""

from __future__ import annotations

# Standard Library
from unittest.mock import MagicMock, patch

# Third-Party Libraries
import pytest
from pydantic import ValidationError

# Local Modules
from assistant.memory import (
    TOKEN_ENCODING,
    ConversationLog,
    PreparedContext,
    estimate_tokens,
    format_context_for_prompt,
    prepare_conversation_context,
    truncate_message,
)
from assistant.models import ConversationMessage


def _exchange(count: int) -> list[ConversationMessage]:
    return [
        ConversationMessage(role="user" if i % 2 == 0 else "assistant", content=f"Message {i}")
        for i in range(count)
    ]


class TestConversationLog:
    """Test suite for ConversationLog class."""

    def test_initialization_default(self) -> None:
        """Test ConversationLog initializes empty with the default window."""
        log = ConversationLog()
        assert log.max_messages == 20
        assert len(log) == 0
        assert log.snapshot() == []

    def test_add_message(self) -> None:
        """Test adding a timestamped message."""
        log = ConversationLog()
        message = log.add("user", "Salut !")

        assert len(log) == 1
        assert message.role == "user"
        assert message.content == "Salut !"
        assert message.timestamp

    def test_rolling_window_fifo_behavior(self) -> None:
        """Test that oldest messages are removed when max_messages is exceeded."""
        log = ConversationLog(max_messages=3)
        for i in range(5):
            log.add("user", f"Message {i + 1}")

        assert len(log) == 3
        assert [m.content for m in log.snapshot()] == ["Message 3", "Message 4", "Message 5"]

    def test_snapshot_is_a_copy(self) -> None:
        """Test mutating a snapshot does not touch the log."""
        log = ConversationLog()
        log.add("user", "Salut !")
        snapshot = log.snapshot()
        snapshot.clear()
        assert len(log) == 1

    def test_clear(self) -> None:
        """Test clearing the log."""
        log = ConversationLog()
        log.add("user", "Salut !")
        log.add("assistant", "Salut, ça roule ?")
        log.clear()
        assert len(log) == 0

    def test_invalid_role_rejected(self) -> None:
        """Test unknown roles fail validation."""
        with pytest.raises(ValidationError):
            ConversationLog().add("system", "You are helpful.")


class TestTokenHelpers:
    """Test suite for token estimation and truncation."""

    def test_estimate_uses_tiktoken_encoding(self) -> None:
        """Test the token count comes from the cl100k_base encoding."""
        encoding = MagicMock()
        encoding.encode.return_value = [9906, 11, 1917, 0]
        with patch("assistant.memory.tiktoken.get_encoding", return_value=encoding) as get_encoding:
            assert estimate_tokens("Hello, world!") == 4
        get_encoding.assert_called_once_with(TOKEN_ENCODING)
        encoding.encode.assert_called_once_with("Hello, world!")
        assert TOKEN_ENCODING == "cl100k_base"

    def test_estimate_falls_back_to_characters(self) -> None:
        """Test four characters per token when the encoding cannot be loaded."""
        assert estimate_tokens("abcde") == 1
        assert estimate_tokens("x" * 400) == 100
        assert estimate_tokens("") == 0

    def test_estimate_falls_back_on_encode_error(self) -> None:
        """Test an encoding failure also degrades to the character estimate."""
        encoding = MagicMock()
        encoding.encode.side_effect = ValueError("disallowed special token")
        with patch("assistant.memory.tiktoken.get_encoding", return_value=encoding):
            assert estimate_tokens("<|endoftext|> salut") == 4

    def test_truncate_adds_ellipsis(self) -> None:
        """Test long messages are cut to the character budget."""
        truncated = truncate_message("x" * 1000, 150)
        assert len(truncated) == 600
        assert truncated.endswith("...")

    def test_short_message_untouched(self) -> None:
        """Test messages within budget are returned as is."""
        assert truncate_message("salut", 10) == "salut"


class TestPrepareConversationContext:
    """Test suite for prepare_conversation_context."""

    def test_empty_history(self) -> None:
        """Test an empty history yields an empty context."""
        assert prepare_conversation_context([]) == PreparedContext()

    def test_short_history_kept_verbatim(self, sample_history: list[ConversationMessage]) -> None:
        """Test a short history is kept whole without condensation."""
        context = prepare_conversation_context(sample_history)
        assert [m.content for m in context.recent_messages] == [m.content for m in sample_history]
        assert context.summary is None
        assert context.factual_memory is None
        assert context.total_tokens > 0

    def test_window_of_eight(self) -> None:
        """Test up to twelve turns keep the last eight verbatim."""
        context = prepare_conversation_context(_exchange(10))
        assert len(context.recent_messages) == 8
        assert context.recent_messages[0].content == "Message 2"

    def test_window_of_five_when_condensing(self) -> None:
        """Test longer histories keep only the last five verbatim."""
        context = prepare_conversation_context(_exchange(14))
        assert len(context.recent_messages) == 5
        assert context.recent_messages[-1].content == "Message 13"

    def test_factual_memory_from_numbers(self) -> None:
        """Test answers with numbers become factual memory."""
        history = [
            ConversationMessage(role="user", content="Quel est mon budget ?"),
            ConversationMessage(role="assistant", content="Ton budget est de 500 euros."),
            *_exchange(8),
        ]
        context = prepare_conversation_context(history)
        assert context.factual_memory == "Quel est mon budget ? → Ton budget est de 500 euros"
        assert context.interpretative_notes is None

    def test_interpretative_notes_from_preferences(self) -> None:
        """Test stated preferences become interpretative notes without trailing clauses."""
        history = [
            ConversationMessage(role="user", content="Tu préfères quoi ?"),
            ConversationMessage(role="assistant", content="Je préfère la house parce que ça groove"),
            *_exchange(8),
        ]
        context = prepare_conversation_context(history)
        assert context.interpretative_notes == "Tu préfères quoi ? → la house"

    def test_fallback_summary(self) -> None:
        """Test a topical summary is used when nothing can be condensed."""
        history = [
            ConversationMessage(role="user", content="salut"),
            ConversationMessage(role="assistant", content="Ok."),
            *_exchange(8),
        ]
        context = prepare_conversation_context(history)
        assert context.summary is not None
        assert context.summary.startswith("L'utilisateur a mentionné : salut")

    def test_total_budget_drops_oldest_recent_messages(self) -> None:
        """Test recent turns are dropped oldest first to fit the budget."""
        history = [ConversationMessage(role="user", content=str(i) * 400) for i in range(4)]
        context = prepare_conversation_context(history, max_total_tokens=250)
        assert [m.content[0] for m in context.recent_messages] == ["2", "3"]
        assert context.total_tokens == 200


class TestFormatContextForPrompt:
    """Test suite for format_context_for_prompt."""

    def test_recent_exchange_and_question(self, sample_history: list[ConversationMessage]) -> None:
        """Test turns are labeled and the question comes last."""
        block = format_context_for_prompt(prepare_conversation_context(sample_history), "qui suis-je ?")
        lines = block.splitlines()
        assert lines[0] == "RECENT EXCHANGE:"
        assert lines[1] == "User: Salut, je m'appelle Larry"
        assert "Assistant: Cool !" in lines
        assert lines[-1] == 'QUESTION: "qui suis-je ?"'

    def test_question_only(self) -> None:
        """Test an empty context renders just the question."""
        assert format_context_for_prompt(PreparedContext(), "salut") == 'QUESTION: "salut"'

    def test_summary_rendered_as_factual_memory(self) -> None:
        """Test a fallback summary appears under the factual memory label."""
        block = format_context_for_prompt(PreparedContext(summary="On a parlé de techno."), "et alors ?")
        assert block.startswith("FACTUAL MEMORY:\nOn a parlé de techno.\n")
