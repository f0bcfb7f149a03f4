"""assistant/responder.py

Conversational answers for messages the parser did not turn into a project
query.

The responder assembles the prompt (discipline block, mode, memory, mode
rules) and awaits exactly one text-generation call. Two backends are
available: a local Ollama daemon and any OpenAI-compatible chat completion
endpoint (Groq by default). Every failure degrades to a fixed French
greeting.
"""

from __future__ import annotations

# Standard Library
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Final

# Third-Party Libraries
import httpx
import ollama

# Local Modules
from assistant.config import AssistantSettings, cfg
from assistant.memory import format_context_for_prompt, prepare_conversation_context
from assistant.models import ProjectContext
from assistant.modes import infer_mode
from assistant.prompts import PromptBuilder, PromptInputs
from assistant.validation import validate_conversation_history, validate_project_context

logger = logging.getLogger(__name__)

TextGenerator = Callable[[str], Awaitable[str]]

FALLBACK_TEMPLATE: Final[str] = (
    "Salut ! 🎵 Je suis l'assistant LARIAN, là pour t'aider avec tes {project_count} projets. "
    'Demande-moi "combien de ghost prod j\'ai" ou "liste mes projets terminés".'
)


def fallback_response(context: ProjectContext) -> str:
    """Return the canned answer used when generation fails."""
    return FALLBACK_TEMPLATE.format(project_count=context.project_count)


class OllamaGenerator:
    """Single-prompt completion against a local Ollama daemon."""

    def __init__(self, host: str, model: str, temperature: float = 0.4) -> None:
        """Initialize the generator.

        Args:
            host: Ollama API endpoint.
            model: Ollama model tag.
            temperature: Sampling temperature.
        """
        self.model = model
        self.temperature = temperature
        self.client = ollama.AsyncClient(host=host)

    async def __call__(self, prompt: str) -> str:
        """Generate a completion for ``prompt`` and return its text."""
        response = await self.client.generate(
            model=self.model,
            prompt=prompt,
            options={"temperature": self.temperature},
        )
        return response["response"]


class OpenAICompatibleGenerator:
    """Single-message chat completion against an OpenAI-compatible API."""

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: str = "",
        temperature: float = 0.4,
        timeout: float = 60.0,
    ) -> None:
        """Initialize the generator.

        Args:
            base_url: API root, without ``/chat/completions``.
            model: Model name sent in the request body.
            api_key: Bearer token; omitted from the headers when empty.
            temperature: Sampling temperature.
            timeout: Request timeout in seconds.
        """
        self.completions_url = base_url.rstrip("/") + "/chat/completions"
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.timeout = timeout

    async def __call__(self, prompt: str) -> str:
        """Send ``prompt`` as a single user message and return the reply text.

        Raises:
            httpx.HTTPStatusError: If the endpoint returns a non-2xx status.
        """
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.completions_url, json=payload, headers=headers)
        response.raise_for_status()
        return response.json().get("choices", [{}])[0].get("message", {}).get("content", "")


def build_text_generator(settings: AssistantSettings | None = None) -> TextGenerator:
    """Select the text-generation backend named in the settings.

    Args:
        settings: Settings to read; defaults to the module-level ``cfg``.

    Returns:
        An awaitable ``prompt -> text`` callable.
    """
    settings = settings or cfg
    if settings.llm_backend == "openai":
        return OpenAICompatibleGenerator(
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            api_key=settings.openai_api_key,
            temperature=settings.llm_temperature,
            timeout=settings.llm_timeout,
        )
    return OllamaGenerator(
        host=settings.ollama_host,
        model=settings.ollama_model,
        temperature=settings.llm_temperature,
    )


async def get_conversational_response(
    query: str,
    context: ProjectContext | Mapping[str, Any] | None,
    conversation_history: Any = None,
    *,
    generate: TextGenerator | None = None,
    settings: AssistantSettings | None = None,
) -> str:
    """Answer a conversational message with the language model.

    Args:
        query: The user's message.
        context: Catalogue counts, mentioned only when the message is about
            projects. A mapping with snake_case or camelCase keys is accepted;
            invalid counts fall back to zero.
        conversation_history: Previous turns, oldest first. Invalid entries
            are dropped.
        generate: Optional text generator; built from ``settings`` when
            omitted.
        settings: Settings used to build the default generator.

    Returns:
        The trimmed model output, or the fallback greeting on any failure.
    """
    context = validate_project_context(context)
    try:
        history = validate_conversation_history(conversation_history)
        conversation_block = ""
        if history:
            prepared = prepare_conversation_context(history)
            conversation_block = format_context_for_prompt(prepared, query)
            logger.debug(
                "Conversation context: %d recent messages, ~%d tokens",
                len(prepared.recent_messages),
                prepared.total_tokens,
            )

        mode = infer_mode(query)
        builder = PromptBuilder(
            PromptInputs(
                query=query,
                mode=mode,
                context=context,
                conversation_block=conversation_block,
                history_length=len(history),
            )
        )
        prompt = builder.build()
        logger.info("Generating %s answer (sections: %s)", mode, ", ".join(builder.section_names()))

        generator = generate or build_text_generator(settings)
        text = await generator(prompt)
        return text.strip()
    except Exception as exc:
        logger.error("Conversational response failed: %s", exc, exc_info=True)
        return fallback_response(context)
