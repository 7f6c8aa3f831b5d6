"""Translation Client, prompt substitution and Message Mutator.

client.py       TranslationClient: async POST to the translation endpoint;
                failures come back as a TranslationResult carrying the
                original text.
credentials.py  Provider-keyed credential lookups.
prompt.py       build_prompt: first-occurrence placeholder substitution.
mutator.py      apply_incoming / apply_outgoing: write results onto a
                ChatMessage.
"""

from llm_translate.translation.client import (
    LoggingNotifier,
    Notifier,
    TranslationClient,
    TranslationRequest,
    TranslationResult,
)
from llm_translate.translation.credentials import EnvCredentialLookup, StaticCredentialLookup
from llm_translate.translation.mutator import apply_incoming, apply_outgoing
from llm_translate.translation.prompt import build_prompt

__all__ = [
    "EnvCredentialLookup",
    "LoggingNotifier",
    "Notifier",
    "StaticCredentialLookup",
    "TranslationClient",
    "TranslationRequest",
    "TranslationResult",
    "apply_incoming",
    "apply_outgoing",
    "build_prompt",
]
