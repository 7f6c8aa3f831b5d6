"""Settings types: providers, submodels, auto mode and the settings snapshot.

``TranslationSettings`` is a frozen dataclass that mirrors the
``llm_translate`` block inside the host's extension settings.  The
Configuration Store owns the *current* value; every translation dispatch
takes an immutable snapshot of it so that a settings change arriving while a
remote call is in flight cannot alter that call halfway through.

Persisted key names
-------------------
The persisted block uses snake_case keys (``provider``, ``submodel``,
``auto_mode``, ``translation_prompt``, ``target_language``).  They are kept
stable because the host writes them to its own settings file and older
installations already have them on disk.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum


class Provider(str, Enum):
    """LLM vendor that formats and serves the translation request."""

    OPENAI = "openai"
    CLAUDE = "claude"
    COHERE = "cohere"
    GOOGLE = "google"

    @classmethod
    def parse(cls, value: object) -> Provider | None:
        """Return the matching member for a member or its string value, else ``None``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (TypeError, ValueError):
            return None


class AutoMode(str, Enum):
    """Which message directions are translated automatically."""

    NONE = "none"
    RESPONSES = "responses"
    INPUTS = "inputs"
    BOTH = "both"

    @classmethod
    def parse(cls, value: object) -> AutoMode | None:
        """Return the matching member for a member or its string value, else ``None``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (TypeError, ValueError):
            return None

    @property
    def translates_incoming(self) -> bool:
        """True when character (incoming) messages are auto-translated."""
        return self in (AutoMode.RESPONSES, AutoMode.BOTH)

    @property
    def translates_outgoing(self) -> bool:
        """True when user (outgoing) messages are auto-translated."""
        return self in (AutoMode.INPUTS, AutoMode.BOTH)


@dataclass(frozen=True)
class Submodel:
    """A model variant offered by a provider.

    Attributes:
        display_name: Label shown in the submodel selector.
        id:           Model identifier sent to the endpoint as ``model``.
    """

    display_name: str
    id: str


# Ordered: the first entry of each list is the provider's default submodel.
SUBMODELS: dict[Provider, tuple[Submodel, ...]] = {
    Provider.OPENAI: (
        Submodel("GPT-4 Turbo", "gpt-4-turbo-preview"),
        Submodel("GPT-4", "gpt-4"),
        Submodel("GPT-3.5 Turbo", "gpt-3.5-turbo-0125"),
    ),
    Provider.CLAUDE: (
        Submodel("Claude 3 Opus", "claude-3-opus-20240229"),
        Submodel("Claude 3 Sonnet", "claude-3-sonnet-20240229"),
        Submodel("Claude 2.1", "claude-2.1"),
    ),
    Provider.COHERE: (
        Submodel("Command", "command"),
        Submodel("Command Light", "command-light"),
        Submodel("Command Nightly", "command-nightly"),
    ),
    Provider.GOOGLE: (
        Submodel("Gemini Pro", "gemini-pro"),
        Submodel("Gemini Pro Vision", "gemini-pro-vision"),
    ),
}

DEFAULT_TRANSLATION_PROMPT = (
    "You are a highly skilled translator. Translate the following text to "
    "{target_language}. Maintain the original meaning, tone, and context. "
    "Only respond with the translation, no explanations.\n\n"
    "Text to translate:\n{text}"
)

DEFAULT_TARGET_LANGUAGE = "English"


def submodel_ids(provider: Provider) -> list[str]:
    """Ordered submodel ids for ``provider`` (empty for an unknown provider)."""
    return [model.id for model in SUBMODELS.get(provider, ())]


@dataclass(frozen=True)
class TranslationSettings:
    """Immutable snapshot of the adapter's user-facing settings.

    Attributes:
        provider:           Selected LLM vendor.
        submodel:           Model id; always one of ``SUBMODELS[provider]``.
        auto_mode:          Which directions are translated automatically.
        translation_prompt: Template with ``{target_language}`` and ``{text}``
                            placeholders.
        target_language:    Language name or code the text is translated into.
    """

    provider: Provider
    submodel: str
    auto_mode: AutoMode
    translation_prompt: str
    target_language: str

    def to_dict(self) -> dict[str, str]:
        """Serialise using the persisted key names and plain string values."""
        data = asdict(self)
        data["provider"] = self.provider.value
        data["auto_mode"] = self.auto_mode.value
        return data

    @classmethod
    def defaults(cls) -> TranslationSettings:
        """Settings used on first run, before anything has been persisted."""
        return cls(
            provider=Provider.OPENAI,
            submodel=SUBMODELS[Provider.OPENAI][0].id,
            auto_mode=AutoMode.NONE,
            translation_prompt=DEFAULT_TRANSLATION_PROMPT,
            target_language=DEFAULT_TARGET_LANGUAGE,
        )


DEFAULT_SETTINGS = TranslationSettings.defaults()
