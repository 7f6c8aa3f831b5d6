"""
Shared pytest fixtures for the llm-translate test suite.

Fixtures provided here are available to every test module:
- In-memory and JSON-file settings persistence
- A Configuration Store with no debounce delay
- An in-memory chat history with one character and one user message
- A Translation Client pointed at a respx-mocked endpoint
- A recording notifier and a static credential lookup

Nothing here touches the network; HTTP is mocked with respx per test.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from llm_translate.host.chat import ChatHistory
from llm_translate.messages import ChatMessage
from llm_translate.settings.models import Provider
from llm_translate.settings.persistence import (
    InMemorySettingsPersistence,
    JsonFileSettingsPersistence,
)
from llm_translate.settings.store import ConfigurationStore
from llm_translate.translation.client import TranslationClient
from llm_translate.translation.credentials import StaticCredentialLookup

ENDPOINT = "http://test-translate:8000/api/llm/translate"

# ============================================================================
# NOTIFIER
# ============================================================================


class RecordingNotifier:
    """Notifier that remembers every (title, message) pair it was shown."""

    def __init__(self) -> None:
        self.errors: list[tuple[str, str]] = []

    def error(self, message: str, title: str) -> None:
        self.errors.append((title, message))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


# ============================================================================
# SETTINGS FIXTURES
# ============================================================================


@pytest.fixture
def memory_persistence() -> InMemorySettingsPersistence:
    return InMemorySettingsPersistence()


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    """Path of a settings file that does not exist yet."""
    return tmp_path / "settings.json"


@pytest.fixture
def file_persistence(settings_file: Path) -> JsonFileSettingsPersistence:
    return JsonFileSettingsPersistence(settings_file)


@pytest.fixture
def store(memory_persistence: InMemorySettingsPersistence) -> ConfigurationStore:
    """Store that writes synchronously to memory on every change."""
    return ConfigurationStore.from_persistence(memory_persistence, debounce_seconds=0)


# ============================================================================
# HOST FIXTURES
# ============================================================================


@pytest.fixture
def chat() -> ChatHistory:
    """Chat with a character message (id 0) and a user message (id 1)."""
    return ChatHistory(
        [
            ChatMessage(text="Bonjour {{user}}, je suis {{char}}", name="Amélie"),
            ChatMessage(text="Hello there", name="Sam", is_user=True),
        ],
        user_name="Sam",
    )


# ============================================================================
# TRANSLATION CLIENT FIXTURES
# ============================================================================


@pytest.fixture
def credentials() -> StaticCredentialLookup:
    """A key for every provider except Google."""
    return StaticCredentialLookup(
        {
            Provider.OPENAI: "sk-test",
            Provider.CLAUDE: "sk-ant-test",
            Provider.COHERE: "co-test",
        }
    )


@pytest.fixture
def endpoint() -> str:
    return ENDPOINT


@pytest.fixture
async def client(notifier: RecordingNotifier) -> AsyncGenerator[TranslationClient, None]:
    async with TranslationClient(ENDPOINT, timeout_seconds=5.0, notifier=notifier) as client:
        yield client
