"""Configuration Store.

``ConfigurationStore`` holds the adapter's user-facing settings for the
lifetime of the application session.  It replaces a process-wide mutable
settings dict with an explicit object that is handed to the Interception
Controller, with persistence injected rather than reached for globally.

Load / merge semantics
----------------------
``load(persisted)`` merges the persisted block with the defaults
*additively*: keys present in ``persisted`` win, absent keys take their
default, and nothing already present is overwritten.  Running the merge on
its own output changes nothing, so calling ``load`` repeatedly is safe.

Values that cannot satisfy the store's invariants (an unknown provider, a
submodel that the provider does not offer, an unknown auto mode) are
repaired to defaults with a WARNING rather than raising: a stale settings
file must never stop the host from starting.  The *setters*, on the other
hand, raise on bad input because those calls come from code.

Invariants
----------
- ``provider`` is always a ``Provider`` with a non-empty submodel list.
- ``submodel`` always belongs to ``SUBMODELS[provider]``.
- Changing the provider resets the submodel to that provider's first entry.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from llm_translate.errors import (
    ConfigurationError,
    InvalidAutoMode,
    InvalidProvider,
    InvalidSubmodel,
)
from llm_translate.settings.models import (
    DEFAULT_SETTINGS,
    SUBMODELS,
    AutoMode,
    Provider,
    Submodel,
    TranslationSettings,
    submodel_ids,
)
from llm_translate.settings.persistence import DebouncedSaver, SettingsPersistence

logger = logging.getLogger(__name__)


def submodels_for(provider: object) -> list[Submodel]:
    """Ordered submodels offered by ``provider``.

    Unknown providers (including arbitrary strings) return an empty list
    instead of raising, because the settings UI calls this while the
    provider selector may still hold a stale value.
    """
    parsed = Provider.parse(provider)
    if parsed is None:
        return []
    return list(SUBMODELS.get(parsed, ()))


def merge_with_defaults(persisted: Mapping[str, Any] | None) -> dict[str, Any]:
    """Fill keys missing from ``persisted`` with their defaults.

    Keys already present are left untouched, including keys the adapter does
    not know about (another version may have written them).
    """
    merged: dict[str, Any] = dict(persisted) if isinstance(persisted, Mapping) else {}
    for key, value in DEFAULT_SETTINGS.to_dict().items():
        merged.setdefault(key, value)
    return merged


def settings_from_mapping(data: Mapping[str, Any]) -> TranslationSettings:
    """Build a valid ``TranslationSettings`` from a merged mapping.

    Invalid values are replaced by defaults (logged at WARNING) so that the
    store invariants hold no matter what was on disk.
    """
    provider = Provider.parse(data.get("provider"))
    if provider is None:
        logger.warning(
            "Persisted provider %r is not recognised; using %r.",
            data.get("provider"),
            DEFAULT_SETTINGS.provider.value,
        )
        provider = DEFAULT_SETTINGS.provider

    submodel = data.get("submodel")
    if submodel not in submodel_ids(provider):
        first = SUBMODELS[provider][0].id
        logger.warning(
            "Persisted submodel %r is not offered by %r; using %r.",
            submodel,
            provider.value,
            first,
        )
        submodel = first

    auto_mode = AutoMode.parse(data.get("auto_mode"))
    if auto_mode is None:
        logger.warning(
            "Persisted auto_mode %r is not recognised; using %r.",
            data.get("auto_mode"),
            DEFAULT_SETTINGS.auto_mode.value,
        )
        auto_mode = DEFAULT_SETTINGS.auto_mode

    prompt = data.get("translation_prompt")
    if not isinstance(prompt, str):
        prompt = DEFAULT_SETTINGS.translation_prompt

    target_language = data.get("target_language")
    if not isinstance(target_language, str) or not target_language.strip():
        target_language = DEFAULT_SETTINGS.target_language

    return TranslationSettings(
        provider=provider,
        submodel=submodel,
        auto_mode=auto_mode,
        translation_prompt=prompt,
        target_language=target_language,
    )


class ConfigurationStore:
    """Session-scoped holder of the adapter settings.

    Reads are synchronous and always return the latest committed value.
    Every setter commits in memory first and then schedules a debounced
    write through the injected persistence, if any.

    Attributes:
        _settings:  Current committed settings.
        _raw:       Merged mapping as last loaded/committed; keeps keys the
                    adapter does not understand so they survive a write.
        _saver:     Debounced writer, or ``None`` for an unpersisted store.
    """

    def __init__(
        self,
        persistence: SettingsPersistence | None = None,
        *,
        debounce_seconds: float = 1.0,
    ) -> None:
        self._persistence = persistence
        self._settings: TranslationSettings = DEFAULT_SETTINGS
        self._raw: dict[str, Any] = DEFAULT_SETTINGS.to_dict()
        self._saver: DebouncedSaver | None = None
        if persistence is not None:
            self._saver = DebouncedSaver(persistence, self.to_dict, debounce_seconds)

    @classmethod
    def from_persistence(
        cls,
        persistence: SettingsPersistence,
        *,
        debounce_seconds: float = 1.0,
    ) -> ConfigurationStore:
        """Create a store and load whatever ``persistence`` currently holds."""
        store = cls(persistence, debounce_seconds=debounce_seconds)
        store.load(persistence.read())
        return store

    # ── Load ──────────────────────────────────────────────────────────────────

    def load(self, persisted: Mapping[str, Any] | None = None) -> TranslationSettings:
        """Merge ``persisted`` with defaults and make the result current.

        Never raises on empty, missing or malformed input.

        Returns:
            The effective settings after the merge.
        """
        if persisted is not None and not isinstance(persisted, Mapping):
            logger.warning("Ignoring persisted settings of type %s.", type(persisted).__name__)
            persisted = None

        merged = merge_with_defaults(persisted)
        self._settings = settings_from_mapping(merged)
        # Repaired values replace whatever was on disk.
        merged.update(self._settings.to_dict())
        self._raw = merged
        return self._settings

    # ── Reads ─────────────────────────────────────────────────────────────────

    def snapshot(self) -> TranslationSettings:
        """Immutable copy of the current settings, taken at dispatch time."""
        return self._settings

    @property
    def provider(self) -> Provider:
        return self._settings.provider

    @property
    def submodel(self) -> str:
        return self._settings.submodel

    @property
    def auto_mode(self) -> AutoMode:
        return self._settings.auto_mode

    @property
    def translation_prompt(self) -> str:
        return self._settings.translation_prompt

    @property
    def target_language(self) -> str:
        return self._settings.target_language

    def submodels_for(self, provider: object) -> list[Submodel]:
        """See :func:`submodels_for`."""
        return submodels_for(provider)

    def to_dict(self) -> dict[str, Any]:
        """The persisted block: known settings plus any unknown keys loaded earlier."""
        return dict(self._raw)

    # ── Setters ───────────────────────────────────────────────────────────────

    def set_provider(self, provider: object) -> TranslationSettings:
        """Select a provider and reset the submodel to its first entry.

        Raises:
            InvalidProvider: ``provider`` is not a ``Provider`` or its value.
        """
        parsed = Provider.parse(provider)
        if parsed is None or not SUBMODELS.get(parsed):
            raise InvalidProvider(provider)
        return self._commit(provider=parsed, submodel=SUBMODELS[parsed][0].id)

    def set_submodel(self, submodel: str) -> TranslationSettings:
        """Select a submodel of the current provider.

        Raises:
            InvalidSubmodel: ``submodel`` is not offered by the current provider.
        """
        if submodel not in submodel_ids(self._settings.provider):
            raise InvalidSubmodel(submodel, self._settings.provider.value)
        return self._commit(submodel=submodel)

    def set_auto_mode(self, mode: object) -> TranslationSettings:
        """Select which directions are translated automatically.

        Raises:
            InvalidAutoMode: ``mode`` is not an ``AutoMode`` or its value.
        """
        parsed = AutoMode.parse(mode)
        if parsed is None:
            raise InvalidAutoMode(mode)
        return self._commit(auto_mode=parsed)

    def set_translation_prompt(self, prompt: str) -> TranslationSettings:
        """Replace the prompt template.

        Templates without the ``{target_language}`` / ``{text}`` placeholders
        are accepted; substitution simply has nothing to replace.
        """
        if not isinstance(prompt, str):
            raise ConfigurationError("translation_prompt must be a string")
        return self._commit(translation_prompt=prompt)

    def set_target_language(self, language: str) -> TranslationSettings:
        """Set the output language name or code."""
        if not isinstance(language, str) or not language.strip():
            raise ConfigurationError("target_language must be a non-empty string")
        return self._commit(target_language=language.strip())

    # ── Persistence ───────────────────────────────────────────────────────────

    def flush(self) -> None:
        """Write any pending debounced change immediately."""
        if self._saver is not None:
            self._saver.flush()

    def _commit(self, **changes: Any) -> TranslationSettings:
        self._settings = replace(self._settings, **changes)
        self._raw.update(self._settings.to_dict())
        logger.debug("Settings updated: %s", ", ".join(sorted(changes)))
        if self._saver is not None:
            self._saver.schedule()
        return self._settings
