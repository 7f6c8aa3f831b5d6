"""Translation Client: one async HTTP call per message.

``TranslationClient`` is the only place in the adapter that makes a network
call.  It builds the request from a settings snapshot, posts it to the
translation endpoint, and turns every possible outcome into a
``TranslationResult``.

Caller contract
---------------
``translate()`` never raises for translation-path problems.  It returns
either:

- ``TranslationResult(ok=True, text=<translation>)`` on success, or
- ``TranslationResult(ok=False, text=<original text>, error=...)`` on
  any failure, after the notifier has shown the error to the user.

The caller applies ``result.text`` either way; the original text is the
fallback translation, so a failure never loses message content.

Wire format
-----------
Request (``POST <endpoint>``, JSON)::

    {"provider": "openai", "model": "gpt-4", "prompt": "...",
     "text": "...", "target_language": "French"}

Response (2xx, JSON)::

    {"translation": "..."}

The provider API key is *not* sent: the endpoint holds the secrets.  The
credential lookup only proves a key is configured, so that a request which
is bound to fail is never made.

Sync vs async
-------------
The client uses ``httpx.AsyncClient``.  Each host message event becomes one
coroutine; several translations can be in flight at once and none of them
share mutable state beyond the read-only settings snapshot.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from llm_translate.errors import (
    MalformedResponse,
    MissingCredential,
    TranslationError,
    TransportFailure,
)
from llm_translate.settings.models import Provider, TranslationSettings
from llm_translate.translation.prompt import build_prompt

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Translation Failed"

# A credential lookup may be sync or async; it returns the secret or None.
CredentialLookup = Callable[[Provider], "str | None | Awaitable[str | None]"]


class Notifier(Protocol):
    """User-visible notification surface (a toast in a browser host)."""

    def error(self, message: str, title: str) -> None:
        """Show an error notice."""


class LoggingNotifier:
    """Notifier used when the host does not provide one: writes to the log."""

    def error(self, message: str, title: str) -> None:
        logger.warning("%s: %s", title, message)


@dataclass(frozen=True)
class TranslationRequest:
    """One translation call, fully resolved from the settings snapshot."""

    provider: Provider
    model: str
    prompt: str
    text: str
    target_language: str

    def to_payload(self) -> dict[str, str]:
        """JSON body sent to the translation endpoint."""
        return {
            "provider": self.provider.value,
            "model": self.model,
            "prompt": self.prompt,
            "text": self.text,
            "target_language": self.target_language,
        }


@dataclass(frozen=True)
class TranslationResult:
    """Outcome of ``TranslationClient.translate``.

    Attributes:
        text:  The translation on success, the original text on failure.
        ok:    ``True`` only when the endpoint returned a usable translation.
        error: Why the call fell back, ``None`` on success.
    """

    text: str
    ok: bool
    error: TranslationError | None = None

    @classmethod
    def success(cls, text: str) -> TranslationResult:
        return cls(text=text, ok=True)

    @classmethod
    def failure(cls, original: str, error: TranslationError) -> TranslationResult:
        return cls(text=original, ok=False, error=error)


def build_request(
    text: str, target_language: str, settings: TranslationSettings
) -> TranslationRequest:
    """Resolve the request for ``text`` from a settings snapshot."""
    return TranslationRequest(
        provider=settings.provider,
        model=settings.submodel,
        prompt=build_prompt(settings.translation_prompt, target_language, text),
        text=text,
        target_language=target_language,
    )


class TranslationClient:
    """Async client for the remote translation endpoint.

    Use it as an async context manager, or call ``aclose()`` when done.  An
    ``httpx.AsyncClient`` may be injected (the caller then owns its
    lifetime); otherwise one is created on first use.

    Attributes:
        endpoint:  Full URL of the translation endpoint.
        notifier:  Receives a user-visible error for every failed call.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout_seconds: float = 30.0,
        headers: Mapping[str, str] | None = None,
        notifier: Notifier | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.notifier: Notifier = notifier or LoggingNotifier()
        self._timeout = timeout_seconds
        self._headers = dict(headers or {})
        self._http_client = http_client
        self._owns_client = http_client is None

    # ── Context manager protocol ──────────────────────────────────────────────

    async def __aenter__(self) -> TranslationClient:
        _ = self.http_client
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this object created it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """The underlying ``httpx.AsyncClient``, created lazily."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._http_client

    # ── Primary method ────────────────────────────────────────────────────────

    async def translate(
        self,
        text: str,
        target_language: str,
        settings: TranslationSettings,
        credential_lookup: CredentialLookup,
    ) -> TranslationResult:
        """Translate ``text`` into ``target_language``.

        Args:
            text:              Text to translate (already parameter-resolved
                               by the caller where applicable).
            target_language:   Output language name or code.
            settings:          Snapshot taken at dispatch time.  It is never
                               re-read after the remote call returns.
            credential_lookup: Returns the API key for a provider, or
                               ``None``.  May be sync or async.

        Returns:
            A ``TranslationResult``; see the module docstring.
        """
        try:
            await self._require_credential(settings.provider, credential_lookup)
            request = build_request(text, target_language, settings)
            translation = await self._post(request)
        except TranslationError as exc:
            return self._fail(text, exc)

        logger.debug(
            "Translated %d chars via %s/%s",
            len(text),
            settings.provider.value,
            settings.submodel,
        )
        return TranslationResult.success(translation)

    # ── Internal helpers ──────────────────────────────────────────────────────

    async def _require_credential(self, provider: Provider, lookup: CredentialLookup) -> None:
        try:
            secret = lookup(provider)
            if inspect.isawaitable(secret):
                secret = await secret
        except Exception as exc:
            logger.error("Credential lookup for %s failed: %s", provider.value, exc)
            secret = None
        if not secret:
            raise MissingCredential(provider.value)

    async def _post(self, request: TranslationRequest) -> str:
        try:
            response = await self.http_client.post(
                self.endpoint,
                json=request.to_payload(),
                headers=self._headers,
            )
        except httpx.TimeoutException as exc:
            raise TransportFailure(
                f"Translation request timed out after {self._timeout:.1f}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportFailure(f"Cannot reach translation endpoint: {exc}") from exc

        if not response.is_success:
            reason = response.reason_phrase or str(response.status_code)
            raise TransportFailure(
                f"Translation failed: {reason}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponse(
                "Translation endpoint returned invalid JSON",
                status_code=response.status_code,
            ) from exc

        translation = data.get("translation") if isinstance(data, dict) else None
        if not isinstance(translation, str):
            raise MalformedResponse(
                "Translation endpoint response has no 'translation' field",
                status_code=response.status_code,
            )
        return translation

    def _fail(self, original: str, error: TranslationError) -> TranslationResult:
        logger.error("Translation error: %s", error)
        try:
            self.notifier.error(str(error), NOTIFICATION_TITLE)
        except Exception:
            logger.warning("Notifier raised while reporting a translation error.", exc_info=True)
        return TranslationResult.failure(original, error)
