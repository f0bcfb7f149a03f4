"""tests/conftest.py

Pytest configuration and shared fixtures for the LARIAN assistant test suite.
"""

from __future__ import annotations

# Standard Library
from collections.abc import Iterator
from unittest.mock import AsyncMock, patch

# Third-Party Libraries
import pytest

# Local Modules
from assistant.models import ConversationMessage, ProjectContext


@pytest.fixture
def available_collabs() -> list[str]:
    """Collaborator names of a sample catalogue.

    Returns:
        List of collaborator names.
    """
    return ["hoho", "Daft Punk", "Nina", "Skrillex"]


@pytest.fixture
def available_styles() -> list[str]:
    """Style names of a sample catalogue, spelled the way users type them.

    Returns:
        List of style names.
    """
    return ["afro", "tech house", "Techno", "House", "Drum and Bass"]


@pytest.fixture
def project_context() -> ProjectContext:
    """Catalogue counts passed to the responder.

    Returns:
        A ProjectContext with distinctive counts.
    """
    return ProjectContext(project_count=43, collab_count=9, style_count=17)


@pytest.fixture
def sample_history() -> list[ConversationMessage]:
    """A short French exchange, oldest first.

    Returns:
        List of conversation messages.
    """
    return [
        ConversationMessage(role="user", content="Salut, je m'appelle Larry"),
        ConversationMessage(role="assistant", content="Salut Larry ! Comment je peux t'aider ?"),
        ConversationMessage(role="user", content="j'aime le poulet"),
        ConversationMessage(role="assistant", content="Cool !"),
    ]


@pytest.fixture
def mock_generate() -> AsyncMock:
    """Create a mock text generator.

    Returns:
        AsyncMock returning a padded canned answer.
    """
    return AsyncMock(return_value="  Je suis LARIAN, ton assistant.  \n")


@pytest.fixture
def failing_generate() -> AsyncMock:
    """Create a text generator that always fails.

    Returns:
        AsyncMock raising ConnectionError.
    """
    return AsyncMock(side_effect=ConnectionError("model unreachable"))


@pytest.fixture(autouse=True)
def offline_tokenizer() -> Iterator[None]:
    """Keep token counting offline by forcing the character estimate.

    Yields:
        None while tiktoken's encoding loader is patched to fail.
    """
    with patch("assistant.memory.tiktoken.get_encoding", side_effect=OSError("no network")):
        yield
