"""Configuration Store and the settings types it manages."""

from llm_translate.settings.models import (
    DEFAULT_SETTINGS,
    SUBMODELS,
    AutoMode,
    Provider,
    Submodel,
    TranslationSettings,
)
from llm_translate.settings.persistence import (
    DebouncedSaver,
    InMemorySettingsPersistence,
    JsonFileSettingsPersistence,
    SettingsPersistence,
)
from llm_translate.settings.store import ConfigurationStore, submodels_for

__all__ = [
    "DEFAULT_SETTINGS",
    "SUBMODELS",
    "AutoMode",
    "ConfigurationStore",
    "DebouncedSaver",
    "InMemorySettingsPersistence",
    "JsonFileSettingsPersistence",
    "Provider",
    "SettingsPersistence",
    "Submodel",
    "TranslationSettings",
    "submodels_for",
]
