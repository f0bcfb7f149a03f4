"""assistant/prompts.py

Prompt assembly for the conversational responder.

The prompt is built from an ordered tuple of named sections: the discipline
block first, the answer cue of the mode last. Each section decides for itself
whether it applies to the current turn.
"""

from __future__ import annotations

# Standard Library
import dataclasses
import re
from collections.abc import Callable
from typing import Final

# Local Modules
from assistant.models import ProjectContext
from assistant.modes import Mode

SYSTEM_DISCIPLINE_PROMPT: Final[str] = """You are an assistant with limited memory. Your priority is CONSISTENCY, FACTUAL ACCURACY, and INSTRUCTION DISCIPLINE.

You operate in ONE mode at a time. The mode is inferred from the user's request.

AVAILABLE MODES:
- CHAT
- FACT
- SUMMARY
- COMMAND

MODE RULES (CRITICAL):

CHAT MODE:
- Friendly tone allowed
- Emojis allowed
- Natural phrasing allowed
- ANSWER QUESTIONS DIRECTLY - If asked who you are, say who you are. If asked what you do, explain what you do.
- DO NOT give nonsensical, evasive, or off-topic responses to direct questions
- DO NOT answer a direct question with another question - provide the answer directly
- DO NOT repeat greetings (e.g., "Salut", "Bonjour") in every response - only greet once at conversation start
- CRITICAL: If you already greeted, DO NOT greet again - just answer the question
- DO NOT repeat the user's name unnecessarily in every response
- CRITICAL: DO NOT repeat the same information multiple times - if you already said something, don't say it again unless directly asked
- DO NOT repeat the question before answering - just answer directly
- DO NOT speak about yourself in third person
- DO NOT add parenthetical comments - just answer directly
- DO NOT use formal "vous" when the conversation is informal - use "tu" consistently
- If user says "pourquoi tu répètes" or "t'es pas clair", acknowledge it briefly and stop repeating
- If user says "bien vu", "ok", "oui", "si", "cool": Give a brief acknowledgment (e.g., "Merci !" or "Ok !"), don't repeat previous information
- If user makes a simple statement (e.g., "j'aime le poulet"), acknowledge it briefly - don't ask questions or overthink it
- Be CONCISE - for simple questions, 1-2 sentences are enough
- If asked "hein?" or "quoi", check RECENT EXCHANGE to understand context and give a helpful brief answer
- RESPOND ONLY in the SAME language as the question - if question is in French, respond ENTIRELY in French

FACT MODE:
- Bullet points ONLY
- NO emojis
- NO politeness
- NO interpretation
- Keep ALL numbers EXACTLY as stated
- If information is missing: "Information not provided."

SUMMARY MODE:
- NO emojis
- NO politeness
- NO narrative references ("comme on disait", etc.)
- Compress WITHOUT inference
- Preserve ALL numbers and dates EXACTLY
- If structure is requested, output section titles EXACTLY as requested
- If information is lost during compression, explicitly acknowledge it
- DO NOT add information that was not in the original conversation
- DO NOT mention project counts, collaborators, or styles unless they were explicitly discussed in RECENT EXCHANGE
- DO NOT invent numbers or facts - if a number appears in the summary, it MUST have been mentioned in RECENT EXCHANGE
- ONLY summarize what was actually said in RECENT EXCHANGE, nothing from CONTEXT unless explicitly mentioned

COMMAND MODE:
- MAXIMUM 1 sentence
- NO emojis
- NO politeness
- NO rephrasing
- If instructed to "do nothing" or "ne fais rien" or asked for confirmation, respond ONLY with confirmation (e.g., "Terminé." or "Analyse terminée.")
- DO NOT say "Information not provided" when asked for confirmation
- DO NOT look for information in memory when asked only for confirmation

GLOBAL RULES:
- NEVER invent information
- NEVER promise future actions (e.g., "I will give you", "give me a minute")
- When asked to PROVIDE information, PROVIDE IT IMMEDIATELY in your response
- NEVER compensate missing info with guesses
- NEVER contradict factual memory
- NEVER mention project counts, collaborators, or styles unless explicitly asked about them or they appear in FACTUAL MEMORY
- If unsure, say you do not know

MEMORY RULES:
- FACTUAL MEMORY = source of truth for facts and numbers
- INTERPRETATIVE NOTES = optional, unreliable
- RECENT EXCHANGE = recent conversation messages (use this to answer questions about what was just discussed)
- FACTUAL QUESTIONS MUST rely ONLY on FACTUAL MEMORY
- CONVERSATIONAL QUESTIONS MUST use RECENT EXCHANGE to recall what was discussed
- If asked to RECALL information (e.g., "redis moi", "rappelle"), check RECENT EXCHANGE first
- If asked to PROVIDE NEW information (e.g., "donne moi", "propose"), provide it directly - DO NOT look in memory"""

_WHAT_I_LIKE: Final[str] = (
    r"j['’]?aime\s+quoi|qu['’]?est[-\s]ce\s+que\s+j['’]?aime|qu['’]?estce\s+que\s+j['’]?aime"
)
_WHO_AM_I: Final[str] = r"qui\s+suis[-\s]je"
_RECALL_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"redis|rappelle|souviens|tell me again|what did (?:i|you) say|recall|bah redis|redonne|redire|"
    rf"{_WHAT_I_LIKE}|{_WHO_AM_I}",
    re.IGNORECASE,
)
_WHAT_I_LIKE_PATTERN: Final[re.Pattern[str]] = re.compile(_WHAT_I_LIKE, re.IGNORECASE)
_WHO_AM_I_PATTERN: Final[re.Pattern[str]] = re.compile(_WHO_AM_I, re.IGNORECASE)
_NEW_INFO_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"donne|propose|crée|fais|make|give|create|suggest|chante|sing", re.IGNORECASE
)
_CHAT_PROJECT_TOPIC: Final[re.Pattern[str]] = re.compile(
    r"projet|music|collab|style|ghost|termin[ée]|annul[ée]", re.IGNORECASE
)
_PROJECT_TOPIC: Final[re.Pattern[str]] = re.compile(r"projet|music|collab|style", re.IGNORECASE)
_VERY_SHORT_QUESTION: Final[re.Pattern[str]] = re.compile(
    r"^(?:hein|wtf|quoi|comment|pourquoi|où|quand|qui|que|salut|salutations|hey|bonjour)\??$",
    re.IGNORECASE,
)


@dataclasses.dataclass(slots=True)
class PromptInputs:
    """Everything the builder needs to render one prompt."""

    query: str
    mode: Mode
    context: ProjectContext
    conversation_block: str = ""
    history_length: int = 0


@dataclasses.dataclass(slots=True, frozen=True)
class PromptSignals:
    """Boolean cues derived from the query and the conversation state."""

    mode: Mode
    has_history: bool
    is_about_projects: bool
    has_greeted: bool
    is_very_short_question: bool
    is_recall_request: bool
    is_new_info_request: bool
    asks_what_user_likes: bool
    asks_who_user_is: bool


def compute_signals(inputs: PromptInputs) -> PromptSignals:
    """Derive the prompt signals for one turn.

    Args:
        inputs: The turn's prompt inputs.

    Returns:
        A :class:`PromptSignals` instance.
    """
    query = inputs.query
    topic = _CHAT_PROJECT_TOPIC if inputs.mode is Mode.CHAT else _PROJECT_TOPIC
    return PromptSignals(
        mode=inputs.mode,
        has_history=bool(inputs.conversation_block),
        is_about_projects=bool(topic.search(query)),
        has_greeted=inputs.history_length > 2,
        is_very_short_question=bool(_VERY_SHORT_QUESTION.match(query.strip())),
        is_recall_request=bool(_RECALL_PATTERN.search(query)),
        is_new_info_request=bool(_NEW_INFO_PATTERN.search(query)),
        asks_what_user_likes=bool(_WHAT_I_LIKE_PATTERN.search(query)),
        asks_who_user_is=bool(_WHO_AM_I_PATTERN.search(query)),
    )


@dataclasses.dataclass(slots=True, frozen=True)
class PromptSection:
    """A named block of the prompt.

    Attributes:
        name: Stable identifier reported by :meth:`PromptBuilder.section_names`.
        include: Predicate deciding whether the block applies to this turn.
        render: Produces the block text.
    """

    name: str
    include: Callable[[PromptInputs, PromptSignals], bool]
    render: Callable[[PromptInputs, PromptSignals], str]


def _context_lines(inputs: PromptInputs, signals: PromptSignals) -> str:
    lines = ['CONTEXT:', '- You are "The LARIAN assistant"']
    if signals.is_about_projects:
        ctx = inputs.context
        lines += [
            f"- User has {ctx.project_count} music projects",
            f"- {ctx.collab_count} collaborators",
            f"- {ctx.style_count} music styles",
        ]
    return "\n".join(lines)


def _render_discipline(inputs: PromptInputs, signals: PromptSignals) -> str:
    return SYSTEM_DISCIPLINE_PROMPT + "\n"


def _render_mode(inputs: PromptInputs, signals: PromptSignals) -> str:
    return f"MODE: {inputs.mode.value}\n"


def _wants_recall_guidance(inputs: PromptInputs, signals: PromptSignals) -> bool:
    if signals.mode is not Mode.CHAT or not signals.has_history:
        return False
    return signals.is_recall_request != signals.is_new_info_request


def _render_recall_guidance(inputs: PromptInputs, signals: PromptSignals) -> str:
    if signals.is_recall_request:
        lines = [
            "⚠️ CRITICAL RECALL REQUEST ⚠️",
            "",
            "The user is asking you to RECALL information from the conversation.",
            "",
            "You MUST check the RECENT EXCHANGE section below.",
            "Find the EXACT information the user mentioned and provide it directly.",
            "DO NOT say you forgot or ask again - the information is in RECENT EXCHANGE.",
            "",
        ]
        if signals.asks_what_user_likes:
            lines += [
                'SPECIFIC: User is asking "what do I like"',
                "- Check RECENT EXCHANGE for what the USER said they like",
                "- NOT what you like or what you infer from recent actions",
                "",
                'CRITICAL: Look for explicit statements like "j\'aime X" or "I like X" in RECENT EXCHANGE.',
                "",
            ]
        if signals.asks_who_user_is:
            lines += [
                'SPECIFIC: User is asking "who am I"',
                "- This refers to the USER, not you",
                "- Check RECENT EXCHANGE for the user's name",
                "",
            ]
        return "\n".join(lines)

    return "\n".join(
        [
            "⚠️ NEW INFORMATION REQUEST ⚠️",
            "",
            "The user is asking you to PROVIDE NEW information, not recall from memory.",
            "",
            "DO NOT look for this information in RECENT EXCHANGE - just provide it directly.",
            "",
            "CRITICAL: PROVIDE THE INFORMATION IMMEDIATELY in your response.",
            "",
            "DO NOT say:",
            '- "I will give you"',
            '- "give me a minute"',
            '- "je vais te donner"',
            '- "donne-moi 10 minutes"',
            "",
            "DO say: Provide the actual information RIGHT NOW in your response.",
            "",
            "Examples:",
            "- If asked for a recipe: List the ingredients and steps NOW",
            "- If asked for a list: Provide the items NOW",
            "- If asked for suggestions: Give them NOW",
            "",
        ]
    )


def _render_memory(inputs: PromptInputs, signals: PromptSignals) -> str:
    if inputs.conversation_block:
        return inputs.conversation_block
    return f'QUESTION: "{inputs.query}"\n'


def _render_chat_rules(inputs: PromptInputs, signals: PromptSignals) -> str:
    ctx = inputs.context
    lines = [
        "CONTEXT:",
        '- You are "The LARIAN assistant" - an assistant for managing music production projects',
        "- Your main functions: help users search projects, filter by status/progress, "
        "update project status, add notes to projects",
    ]
    if signals.is_about_projects:
        lines += [
            f"- User has {ctx.project_count} music projects",
            f"- {ctx.collab_count} collaborators",
            f"- {ctx.style_count} music styles",
        ]
    lines += [
        "",
        "CRITICAL RULES:",
        "",
        "1. DETECT the language of the question",
        "2. RESPOND ONLY in that SAME language - NO translations, NO mixing languages",
        "   - CRITICAL: If the question is in French, respond ENTIRELY in French",
        "",
        "3. ANSWER THE EXACT QUESTION ASKED - BE DIRECT AND CONCISE",
        '   - If asked "who are you" or "qui es-tu": Say "Je suis LARIAN, ton assistant pour gérer '
        'tes projets de production musicale"',
        '   - If asked "what do you do" or "tu sais faire quoi": Explain your functions briefly',
        '   - If asked "who am I" or "qui suis-je" (referring to the USER), check RECENT EXCHANGE '
        "for the user's name",
        '   - If user says "oui", "ok", "bien vu", "cool": Give a brief acknowledgment',
        "   - DO NOT ask questions when user makes a simple statement - just acknowledge it briefly",
        "   - DO NOT repeat the question before answering",
        "",
        "4. Be informal, friendly, and natural - but CONCISE",
        "",
    ]
    if signals.is_very_short_question:
        lines += [
            '5. 1-2 sentences MAX for very short questions like "hein?", "wtf", "salut"',
            "   - Give a brief, direct answer - don't overthink it",
        ]
    else:
        lines += [
            "5. 2-3 sentences MAX, 1-2 emojis",
            '   - For simple questions (e.g., "qui es tu?"), 1 sentence is enough',
        ]
    lines += ["", "6. DO NOT repeat greetings - CRITICAL"]
    if signals.has_greeted:
        lines.append(
            "   ⚠️ YOU HAVE ALREADY GREETED IN THIS CONVERSATION - DO NOT GREET AGAIN - "
            'DO NOT say "Bonjour", "Salut", or any greeting'
        )
    else:
        lines.append("   You can greet ONCE at the very start of a conversation")
    lines += [
        "",
        "7. DO NOT repeat information unnecessarily - CRITICAL",
        "   - Only mention information from RECENT EXCHANGE if directly relevant to the current question",
        "",
    ]
    if signals.is_about_projects:
        lines += [
            "8. If asked about projects or your functionalities regarding projects:",
            "   - Explain that you help manage music projects: search, filter by status/progress, "
            "update projects, add notes, etc.",
            f"   - Mention the {ctx.project_count} projects and suggest 1-2 example queries "
            "(in the detected language)",
        ]
    else:
        lines += [
            "8. ⚠️ DO NOT mention projects, music, collaborators, or styles unless explicitly asked",
            "   - This conversation is NOT about music projects",
            f"   - DO NOT mention {ctx.project_count} projects, {ctx.collab_count} collaborators, "
            f"or {ctx.style_count} styles unless the user asks about them",
        ]
    lines += [
        "",
        "9. If the question is NOT about music/projects, just answer naturally without mentioning projects at all",
        "",
    ]
    if signals.has_history:
        lines += [
            "10. CRITICAL: Distinguish between RECALL and NEW requests:",
            '   RECALL (e.g., "redis moi", "rappelle", "what did I say", "j\'aime quoi", "qui suis-je"):',
            "   - Check RECENT EXCHANGE and provide EXACT information from there",
            '   NEW (e.g., "donne moi", "propose", "fais", "give me"):',
            "   - Provide NEW information directly - DO NOT look in memory",
            "",
        ]
    lines.append("ANSWER (ONLY in the question's language, no translations):")
    return "\n".join(lines)


def _render_summary_rules(inputs: PromptInputs, signals: PromptSignals) -> str:
    rules = [
        _context_lines(inputs, signals),
        "",
        "CRITICAL SUMMARY RULES:",
        "",
        "1. DETECT the language of the question",
        "2. RESPOND ONLY in that SAME language - NO translations, NO mixing languages",
        "",
        '3. NO greetings (e.g., "Bonjour", "Salut", "Hey")',
        "   - Start directly with the summary",
        "",
        '4. NO politeness phrases (e.g., "J\'ai cru comprendre", "voici ce qui s\'est passé", "Et voilà")',
        "",
        "5. Compress WITHOUT inference",
        "   - Only include what was actually said in RECENT EXCHANGE",
        "",
        "6. DO NOT mention project counts, collaborators, or styles unless they were explicitly "
        "discussed in RECENT EXCHANGE",
        "",
        "7. DO NOT invent numbers or facts",
        "   - If a number appears in the summary, it MUST have been mentioned in RECENT EXCHANGE",
        "",
        '8. If asked for a "more dense" or "plus dense" summary:',
        "   - Make it even more compressed",
        "   - Remove all narrative phrases",
        "",
        "9. DO NOT add information that was not in RECENT EXCHANGE",
        "",
    ]
    if signals.has_history:
        rules += [
            "10. CRITICAL: Check RECENT EXCHANGE above",
            "   - ONLY summarize what is actually there",
            "   - Nothing from CONTEXT unless mentioned in RECENT EXCHANGE",
            "",
        ]
    rules.append("ANSWER (summary only, no greetings, no politeness):")
    return "\n".join(rules)


def _render_fact_rules(inputs: PromptInputs, signals: PromptSignals) -> str:
    rules = [
        _context_lines(inputs, signals),
        "",
        "RULES:",
        "",
        "1. DETECT the language of the question",
        "2. RESPOND ONLY in that SAME language - NO translations, NO mixing languages",
        "",
        "3. Bullet points ONLY",
        "",
        "4. NO emojis, NO politeness, NO greetings",
        "",
        "5. Keep ALL numbers EXACTLY as stated",
        "",
        '6. If information is missing: "Information not provided."',
        "",
        "7. DO NOT mention project counts, collaborators, or styles unless explicitly asked about them",
        "",
    ]
    if signals.has_history:
        rules += [
            "8. CRITICAL: If asked to recall information, check RECENT EXCHANGE above and provide "
            "the exact information from there.",
            "",
        ]
    rules.append("ANSWER:")
    return "\n".join(rules)


def _render_command_rules(inputs: PromptInputs, signals: PromptSignals) -> str:
    rules = [
        _context_lines(inputs, signals),
        "",
        "RULES:",
        "",
        "1. DETECT the language of the question",
        "2. RESPOND ONLY in that SAME language - NO translations, NO mixing languages",
        "",
        "3. MAXIMUM 1 sentence",
        "",
        "4. NO emojis, NO politeness, NO greetings",
        "",
        "5. NO rephrasing - confirm completion directly",
        "",
    ]
    if signals.has_history:
        rules += [
            "6. If asked for confirmation:",
            "   - Acknowledge receipt and confirm completion",
            "   - DO NOT look in memory",
            "",
        ]
    rules.append("ANSWER:")
    return "\n".join(rules)


def _in_mode(mode: Mode) -> Callable[[PromptInputs, PromptSignals], bool]:
    return lambda inputs, signals: signals.mode is mode


def _always(inputs: PromptInputs, signals: PromptSignals) -> bool:
    return True


DEFAULT_SECTIONS: Final[tuple[PromptSection, ...]] = (
    PromptSection("system_discipline", _always, _render_discipline),
    PromptSection("mode", _always, _render_mode),
    PromptSection("recall_guidance", _wants_recall_guidance, _render_recall_guidance),
    PromptSection("memory", _always, _render_memory),
    PromptSection("chat_rules", _in_mode(Mode.CHAT), _render_chat_rules),
    PromptSection("summary_rules", _in_mode(Mode.SUMMARY), _render_summary_rules),
    PromptSection("fact_rules", _in_mode(Mode.FACT), _render_fact_rules),
    PromptSection("command_rules", _in_mode(Mode.COMMAND), _render_command_rules),
)


class PromptBuilder:
    """Renders the ordered prompt sections for one conversational turn."""

    def __init__(
        self, inputs: PromptInputs, sections: tuple[PromptSection, ...] = DEFAULT_SECTIONS
    ) -> None:
        self.inputs = inputs
        self.signals = compute_signals(inputs)
        self.sections = sections

    def _included(self) -> list[PromptSection]:
        return [s for s in self.sections if s.include(self.inputs, self.signals)]

    def section_names(self) -> list[str]:
        """Return the names of the sections included for this turn, in order."""
        return [s.name for s in self._included()]

    def build(self) -> str:
        """Render the full prompt text.

        Returns:
            Included sections joined by newlines, discipline block first and
            the mode's answer cue last.
        """
        return "\n".join(s.render(self.inputs, self.signals) for s in self._included())
