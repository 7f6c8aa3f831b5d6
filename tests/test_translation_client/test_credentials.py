"""Unit tests for credential lookups."""

import pytest

from llm_translate.settings.models import Provider
from llm_translate.translation.credentials import (
    PROVIDER_ENV_VARS,
    EnvCredentialLookup,
    StaticCredentialLookup,
)


class TestEnvCredentialLookup:
    @pytest.mark.unit
    def test_reads_provider_variable(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
        assert EnvCredentialLookup()(Provider.CLAUDE) == "sk-ant"

    @pytest.mark.unit
    def test_unset_or_empty_is_none(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        monkeypatch.setenv("COHERE_API_KEY", "")
        lookup = EnvCredentialLookup()
        assert lookup(Provider.GOOGLE) is None
        assert lookup(Provider.COHERE) is None

    @pytest.mark.unit
    def test_explicit_environ_and_names(self):
        lookup = EnvCredentialLookup(
            env_vars={Provider.OPENAI: "MY_OPENAI"},
            environ={"MY_OPENAI": "sk-mine", "OPENAI_API_KEY": "sk-other"},
        )
        assert lookup(Provider.OPENAI) == "sk-mine"
        assert lookup(Provider.CLAUDE) is None

    @pytest.mark.unit
    def test_every_provider_has_a_variable(self):
        assert set(PROVIDER_ENV_VARS) == set(Provider)


class TestStaticCredentialLookup:
    @pytest.mark.unit
    def test_accepts_string_keys(self):
        lookup = StaticCredentialLookup({"openai": "sk-1", Provider.GOOGLE: "g-1"})
        assert lookup(Provider.OPENAI) == "sk-1"
        assert lookup(Provider.GOOGLE) == "g-1"
        assert lookup(Provider.COHERE) is None

    @pytest.mark.unit
    def test_unknown_provider_name_raises(self):
        with pytest.raises(ValueError):
            StaticCredentialLookup({"mistral": "x"})
