"""assistant/config.py

Runtime configuration for the LARIAN assistant core.
Values are read from environment variables and an optional ``.env`` file.
"""

from __future__ import annotations

# Standard Library
from typing import Literal

# Third-Party Libraries
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AssistantSettings(BaseSettings):
    """Runtime configuration loaded from environment variables / .env file.

    Attributes:
        llm_backend: Which text-generation backend the responder uses.
        ollama_host: Base URL of a local Ollama daemon.
        ollama_model: Ollama model tag used for conversational answers.
        openai_base_url: Base URL of an OpenAI-compatible API (Groq by default).
        openai_api_key: Bearer token for the OpenAI-compatible API.
        openai_model: Model name sent to the OpenAI-compatible API.
        llm_temperature: Sampling temperature for both backends.
        llm_timeout: Request timeout in seconds.
        assistant_debug_patterns: Emit DEBUG traces for every pattern decision.
        log_level: Root log level used by the console entry point.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    llm_backend: Literal["ollama", "openai"] = Field(
        "ollama",
        description="Text-generation backend: 'ollama' or 'openai' (any compatible API).",
    )
    ollama_host: str = Field(
        "http://localhost:11434",
        description="Ollama API endpoint.",
    )
    ollama_model: str = Field(
        "llama3.1:8b-instruct-q4_K_M",
        description="Ollama model tag.",
    )
    openai_base_url: str = Field(
        "https://api.groq.com/openai/v1",
        description="OpenAI-compatible base URL (without /chat/completions).",
    )
    openai_api_key: str = Field(
        "",
        description="API key for the OpenAI-compatible endpoint.",
    )
    openai_model: str = Field(
        "llama-3.1-8b-instant",
        description="Model name for the OpenAI-compatible endpoint.",
    )
    llm_temperature: float = Field(0.4, ge=0.0, le=2.0)
    llm_timeout: float = Field(60.0, gt=0)
    assistant_debug_patterns: bool = Field(
        False,
        description="Log every regex decision of the parser at DEBUG level.",
    )
    log_level: str = Field("INFO")


cfg: AssistantSettings = AssistantSettings()
