"""Typed exceptions for the translation adapter.

Two families live here and they are handled very differently:

``ConfigurationError`` and its subclasses signal programmer or settings-UI
misuse (an unknown provider, a submodel that does not belong to the current
provider).  They are raised immediately to the caller of the Configuration
Store and are never swallowed.

``TranslationError`` and its subclasses describe why a single translation
attempt fell back to the original text.  They are *not* raised past the
Translation Client: they travel inside a ``TranslationResult`` so that the
Interception Controller can apply the fallback and the host's event dispatch
is never interrupted.
"""

from __future__ import annotations


class LLMTranslateError(Exception):
    """Base exception for every error defined by the adapter."""


# ── Configuration path ────────────────────────────────────────────────────────


class ConfigurationError(LLMTranslateError, ValueError):
    """Invalid configuration value supplied to the Configuration Store."""


class InvalidProvider(ConfigurationError):
    """The provider is not one of the recognised ``Provider`` values."""

    def __init__(self, provider: object) -> None:
        super().__init__(f"Unknown translation provider: {provider!r}")
        self.provider = provider


class InvalidSubmodel(ConfigurationError):
    """The submodel does not belong to the current provider's submodel list."""

    def __init__(self, submodel: object, provider: str) -> None:
        super().__init__(f"Submodel {submodel!r} is not offered by provider {provider!r}")
        self.submodel = submodel
        self.provider = provider


class InvalidAutoMode(ConfigurationError):
    """The auto mode is not one of the recognised ``AutoMode`` values."""

    def __init__(self, mode: object) -> None:
        super().__init__(f"Unknown auto-translate mode: {mode!r}")
        self.mode = mode


# ── Translation path ──────────────────────────────────────────────────────────


class TranslationError(LLMTranslateError):
    """Base class for reasons a translation attempt fell back to the original."""


class MissingCredential(TranslationError):
    """No API key is configured for the selected provider.

    The remote endpoint is never contacted when this is raised.
    """

    def __init__(self, provider: str) -> None:
        super().__init__(f"No API key found for {provider}")
        self.provider = provider


class TransportFailure(TranslationError):
    """The remote call failed: network error or non-2xx status.

    Attributes:
        status_code: HTTP status of the response, or ``None`` when the
                     request never produced one (timeout, refused, ...).
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(TransportFailure):
    """The endpoint answered 2xx but the body lacked a usable ``translation``."""
