"""assistant/memory.py

Conversation memory for the conversational responder.

``ConversationLog`` is the caller-side rolling window of turns (the
console keeps one per session). ``prepare_conversation_context`` turns a
history into the bounded memory block sent to the language model: the most
recent turns verbatim, older turns condensed into factual memory and
interpretative notes.
"""

from __future__ import annotations

# Standard Library
import dataclasses
import datetime
import re
from typing import Final

# Third-Party Libraries
import tiktoken

# Local Modules
from assistant.models import ConversationMessage

TOKEN_ENCODING: Final[str] = "cl100k_base"

_NUMBER: Final[re.Pattern[str]] = re.compile(r"\d+")
_CONSTRAINT: Final[re.Pattern[str]] = re.compile(
    r"contrainte|constraint|limite|limit|budget|salaire|€|\$|ans|années|years", re.IGNORECASE
)
_PREFERENCES: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(
        r"(?:je\s+pr[ée]f[èe]re|j['’]?aime|mon\s+choix|je\s+dirais|je\s+choisirais)\s+([^.!?]+)",
        re.IGNORECASE,
    ),
    re.compile(r"([^.!?]+)\s+(?:est\s+mon\s+pr[ée]f[èe]r[ée]|est\s+ma\s+pr[ée]f[èe]r[ée]e)", re.IGNORECASE),
    re.compile(r"(?:pr[ée]f[èe]re|choisirais)\s+(?:l['’]?|le\s+|la\s+)?([^.!?]+)", re.IGNORECASE),
)
_TRAILING_CLAUSE: Final[re.Pattern[str]] = re.compile(
    r"\s+(?:car|parce\s+que|mais|donc|alors|ensuite|après|avant).*$", re.IGNORECASE
)
_SENTENCE_SPLIT: Final[re.Pattern[str]] = re.compile(r"[.!?]")


class ConversationLog:
    """Rolling window of conversation turns owned by the caller.

    Oldest turns roll off first once ``max_messages`` is reached.
    """

    def __init__(self, max_messages: int = 20) -> None:
        """Initialize an empty log.

        Args:
            max_messages: Maximum number of turns retained (default 20,
                about ten user/assistant exchanges).
        """
        self.max_messages = max_messages
        self._messages: list[ConversationMessage] = []

    def add(self, role: str, content: str) -> ConversationMessage:
        """Append a turn, timestamped now, and enforce the window size.

        Args:
            role: ``"user"`` or ``"assistant"``.
            content: Non-empty message text.

        Returns:
            The stored message.
        """
        message = ConversationMessage(
            role=role,
            content=content,
            timestamp=datetime.datetime.now(datetime.timezone.utc).isoformat(),
        )
        self._messages.append(message)
        if len(self._messages) > self.max_messages:
            self._messages.pop(0)
        return message

    def snapshot(self) -> list[ConversationMessage]:
        """Return a copy of the retained turns, oldest first."""
        return list(self._messages)

    def clear(self) -> None:
        """Forget every retained turn."""
        self._messages.clear()

    def __len__(self) -> int:
        """Return the number of retained turns."""
        return len(self._messages)


@dataclasses.dataclass(slots=True)
class PreparedContext:
    """Bounded memory block derived from a conversation history."""

    recent_messages: list[ConversationMessage] = dataclasses.field(default_factory=list)
    total_tokens: int = 0
    summary: str | None = None
    factual_memory: str | None = None
    interpretative_notes: str | None = None


def estimate_tokens(text: str) -> int:
    """Count the tokens of ``text`` with tiktoken.

    Falls back to one token per four characters when the encoding cannot be
    loaded.
    """
    try:
        encoding = tiktoken.get_encoding(TOKEN_ENCODING)
        return len(encoding.encode(text))
    except Exception:
        return len(text) // 4


def truncate_message(message: str, max_tokens: int) -> str:
    """Cut ``message`` to roughly ``max_tokens`` tokens, marking the cut with ``...``."""
    max_chars = int(max_tokens * 4)
    if len(message) <= max_chars:
        return message
    return message[: max_chars - 3] + "..."


def _join_items(items: list[str], max_tokens: float) -> str:
    joined = " | ".join(items[:5])
    if len(items) > 5:
        joined += "..."
    if estimate_tokens(joined) > max_tokens:
        joined = truncate_message(joined, int(max_tokens))
    return joined


def _condense_pairs(old: list[ConversationMessage]) -> tuple[list[str], list[str]]:
    factual: list[str] = []
    interpretative: list[str] = []

    for index in range(0, len(old) - 1, 2):
        asked, answered = old[index], old[index + 1]
        if asked.role != "user" or answered.role != "assistant":
            continue
        question = truncate_message(asked.content, 40)
        answer = truncate_message(answered.content, 60)

        has_numbers = bool(_NUMBER.search(answer))
        has_constraints = bool(_CONSTRAINT.search(answer))
        if has_numbers or has_constraints:
            sentences = [
                s for s in _SENTENCE_SPLIT.split(answer) if _NUMBER.search(s) or _CONSTRAINT.search(s)
            ]
            fact = ". ".join(sentences[:2])
            if 10 < len(fact) < 100:
                factual.append(f"{question} → {fact}")

        preference_found = False
        for pattern in _PREFERENCES:
            match = pattern.search(answer)
            if not match:
                continue
            preference = _TRAILING_CLAUSE.sub("", match.group(1).strip()).strip()
            if 2 < len(preference) < 50:
                interpretative.append(f"{question} → {preference}")
                preference_found = True
                break

        if not preference_found and not has_numbers and not has_constraints:
            first_sentence = _SENTENCE_SPLIT.split(answer)[0].strip()
            if 10 < len(first_sentence) < 80:
                interpretative.append(f"{question} → {first_sentence}")

    return factual, interpretative


def _fallback_summary(old: list[ConversationMessage], max_tokens: int) -> str:
    user_topics = [truncate_message(m.content, 50) for m in old if m.role == "user"]
    assistant_topics = [truncate_message(m.content, 50) for m in old if m.role == "assistant"]

    parts: list[str] = []
    if user_topics:
        more = "..." if len(user_topics) > 3 else ""
        parts.append(f"L'utilisateur a mentionné : {', '.join(user_topics[:3])}{more}")
    if assistant_topics:
        more = "..." if len(assistant_topics) > 2 else ""
        parts.append(f"L'assistant a répondu sur : {', '.join(assistant_topics[:2])}{more}")

    summary = ". ".join(parts)
    if estimate_tokens(summary) > max_tokens:
        summary = truncate_message(summary, max_tokens)
    return summary


def prepare_conversation_context(
    messages: list[ConversationMessage],
    max_recent: int = 12,
    max_summary_tokens: int = 200,
    max_message_tokens: int = 150,
    max_total_tokens: int = 2000,
) -> PreparedContext:
    """Build the bounded memory block for a conversation.

    Keeps the last eight turns verbatim (five when older turns exist and
    get condensed), each truncated to ``max_message_tokens``. Older
    user/assistant pairs become factual memory (numbers, constraints) or
    interpretative notes (stated preferences, first sentence); when neither
    yields anything a short topical summary is used instead.

    Args:
        messages: Validated history, oldest first.
        max_recent: History length above which older turns are condensed.
        max_summary_tokens: Budget shared by factual memory and notes.
        max_message_tokens: Per-message budget for recent turns.
        max_total_tokens: Overall budget; recent turns are dropped oldest
            first to respect it.

    Returns:
        A :class:`PreparedContext`.
    """
    if not messages:
        return PreparedContext()

    will_summarize = len(messages) > max_recent
    window = 5 if will_summarize else min(max_recent, 8)
    recent = messages[-window:]
    old = messages[:-window]

    truncated = [
        m.model_copy(update={"content": truncate_message(m.content, max_message_tokens)}) for m in recent
    ]
    total = sum(estimate_tokens(m.content) for m in truncated)

    context = PreparedContext(recent_messages=truncated)
    if old:
        factual, interpretative = _condense_pairs(old)
        if factual:
            context.factual_memory = _join_items(factual, max_summary_tokens / 2)
            total += estimate_tokens(context.factual_memory)
        if interpretative:
            context.interpretative_notes = _join_items(interpretative, max_summary_tokens / 2)
            total += estimate_tokens(context.interpretative_notes)
        if not factual and not interpretative:
            context.summary = _fallback_summary(old, max_summary_tokens)
            total += estimate_tokens(context.summary)

    if total > max_total_tokens:
        summary_tokens = estimate_tokens(context.summary) if context.summary else 0
        budget = max_total_tokens - summary_tokens
        kept: list[ConversationMessage] = []
        used = 0
        for message in reversed(truncated):
            cost = estimate_tokens(message.content)
            if used + cost > budget:
                break
            kept.insert(0, message)
            used += cost
        context.recent_messages = kept
        total = used + summary_tokens
        for extra in (context.factual_memory, context.interpretative_notes):
            if extra:
                total += estimate_tokens(extra)

    context.total_tokens = total
    return context


def format_context_for_prompt(context: PreparedContext, query: str) -> str:
    """Render a prepared context and the current question for the prompt.

    Args:
        context: Output of :func:`prepare_conversation_context`.
        query: The current user question.

    Returns:
        Labeled ``FACTUAL MEMORY`` / ``INTERPRETATIVE NOTES`` /
        ``RECENT EXCHANGE`` blocks followed by the ``QUESTION`` line.
    """
    parts: list[str] = []

    if context.factual_memory:
        parts += ["FACTUAL MEMORY:", context.factual_memory, ""]
    if context.interpretative_notes:
        parts += ["INTERPRETATIVE NOTES:", context.interpretative_notes, ""]
    if context.summary and not context.factual_memory and not context.interpretative_notes:
        parts += ["FACTUAL MEMORY:", context.summary, ""]

    if context.recent_messages:
        parts.append("RECENT EXCHANGE:")
        for message in context.recent_messages:
            label = "User" if message.role == "user" else "Assistant"
            parts.append(f"{label}: {message.content}")
        parts.append("")

    parts.append(f'QUESTION: "{query}"')
    return "\n".join(parts)
