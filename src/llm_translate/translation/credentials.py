"""Credential lookups keyed by provider.

The translation endpoint holds the real secrets; the adapter only needs to
know whether a key is configured for the selected provider.  Hosts with a
secret store pass their own lookup; ``EnvCredentialLookup`` covers the
common case of keys exported as environment variables.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from llm_translate.settings.models import Provider

# Environment variable holding each provider's API key.
PROVIDER_ENV_VARS: dict[Provider, str] = {
    Provider.OPENAI: "OPENAI_API_KEY",
    Provider.CLAUDE: "ANTHROPIC_API_KEY",
    Provider.COHERE: "COHERE_API_KEY",
    Provider.GOOGLE: "GOOGLE_API_KEY",
}


class EnvCredentialLookup:
    """Look provider keys up in the environment.

    Args:
        env_vars: Override of ``PROVIDER_ENV_VARS``.
        environ:  Mapping to read from; defaults to ``os.environ`` at call time.
    """

    def __init__(
        self,
        env_vars: Mapping[Provider, str] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._env_vars = dict(env_vars or PROVIDER_ENV_VARS)
        self._environ = environ

    def __call__(self, provider: Provider) -> str | None:
        name = self._env_vars.get(provider)
        if name is None:
            return None
        environ = self._environ if self._environ is not None else os.environ
        return environ.get(name) or None


class StaticCredentialLookup:
    """Fixed provider → key mapping, for embedding hosts and tests."""

    def __init__(self, secrets: Mapping[Provider | str, str]) -> None:
        self._secrets = {Provider(key): value for key, value in secrets.items()}

    def __call__(self, provider: Provider) -> str | None:
        return self._secrets.get(provider) or None
