"""
Adapter runtime configuration.

This module loads the settings that are *not* user-facing translation
choices: where the translation endpoint lives, how long to wait for it,
where the host's settings file is, and how to log.  Sources, in priority
order:

    1. Environment variables (highest priority) - for containerised hosts
    2. Config file (config/llm_translate.ini, or $LLM_TRANSLATE_CONFIG)
    3. Built-in defaults (lowest priority)

Configuration is loaded once at module import time and cached.  The
user-facing choices (provider, submodel, prompt, target language, auto mode)
live in the Configuration Store instead, see ``llm_translate.settings``.

Usage:
    from llm_translate.config import config

    print(config.service.endpoint)
    print(config.settings.absolute_path)

Environment Variable Mapping:
    LLM_TRANSLATE_CONFIG         -> alternate INI file path
    LLM_TRANSLATE_ENDPOINT       -> service.endpoint
    LLM_TRANSLATE_TIMEOUT        -> service.timeout_seconds
    LLM_TRANSLATE_SETTINGS_PATH  -> settings.path
    LLM_TRANSLATE_LOG_LEVEL      -> logging.level
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "llm_translate.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "llm_translate.example.ini"


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServiceSettings:
    """Remote translation endpoint."""

    endpoint: str = "http://localhost:8000/api/llm/translate"
    timeout_seconds: float = 30.0
    headers: dict[str, str] = field(default_factory=dict)


@dataclass
class SettingsFileSettings:
    """Where the host persists extension settings."""

    path: str = "data/settings.json"
    extension_name: str = "llm_translate"
    debounce_seconds: float = 1.0

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to the settings file."""
        p = Path(self.path)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed"] = "simple"


@dataclass
class AdapterConfig:
    """
    Complete adapter configuration.

    Access via the module-level `config` singleton.
    """

    service: ServiceSettings = field(default_factory=ServiceSettings)
    settings: SettingsFileSettings = field(default_factory=SettingsFileSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_headers(value: str) -> dict[str, str]:
    """Parse ``Name=value, Other=value`` into a dict, skipping malformed items."""
    headers: dict[str, str] = {}
    for item in value.split(","):
        name, sep, header_value = item.partition("=")
        if sep and name.strip():
            headers[name.strip()] = header_value.strip()
    return headers


def _load_from_ini(parser: configparser.ConfigParser, cfg: AdapterConfig) -> None:
    """Load configuration from a parsed INI file into AdapterConfig."""
    if parser.has_section("service"):
        if parser.has_option("service", "endpoint"):
            cfg.service.endpoint = parser.get("service", "endpoint")
        if parser.has_option("service", "timeout_seconds"):
            cfg.service.timeout_seconds = parser.getfloat("service", "timeout_seconds")
        if parser.has_option("service", "headers"):
            cfg.service.headers = _parse_headers(parser.get("service", "headers"))

    if parser.has_section("settings"):
        if parser.has_option("settings", "path"):
            cfg.settings.path = parser.get("settings", "path")
        if parser.has_option("settings", "extension_name"):
            cfg.settings.extension_name = parser.get("settings", "extension_name")
        if parser.has_option("settings", "debounce_seconds"):
            cfg.settings.debounce_seconds = parser.getfloat("settings", "debounce_seconds")

    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: AdapterConfig) -> None:
    """Apply environment variable overrides to configuration."""
    if env_endpoint := os.getenv("LLM_TRANSLATE_ENDPOINT"):
        cfg.service.endpoint = env_endpoint
    if env_timeout := os.getenv("LLM_TRANSLATE_TIMEOUT"):
        cfg.service.timeout_seconds = float(env_timeout)
    if env_settings := os.getenv("LLM_TRANSLATE_SETTINGS_PATH"):
        cfg.settings.path = env_settings
    if env_log := os.getenv("LLM_TRANSLATE_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()


def _config_file() -> Path | None:
    """The INI file to read, if any: $LLM_TRANSLATE_CONFIG, then the config dir."""
    if env_path := os.getenv("LLM_TRANSLATE_CONFIG"):
        return Path(env_path)
    if CONFIG_FILE.exists():
        return CONFIG_FILE
    if CONFIG_EXAMPLE.exists():
        return CONFIG_EXAMPLE
    return None


def load_config() -> AdapterConfig:
    """
    Load configuration from all sources with proper priority.

    Priority (highest wins):
        1. Environment variables
        2. $LLM_TRANSLATE_CONFIG or config/llm_translate.ini
        3. config/llm_translate.example.ini (fallback for development)
        4. Built-in defaults

    Returns:
        AdapterConfig: Fully populated configuration object.
    """
    cfg = AdapterConfig()

    config_file = _config_file()
    if config_file is not None:
        parser = configparser.ConfigParser()
        parser.read(config_file)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)
    return cfg


def reload_config() -> AdapterConfig:
    """
    Reload configuration from disk and environment.

    Updates the module-level `config` singleton.  Objects already built from
    the old configuration (clients, stores) are not updated.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

config = load_config()
