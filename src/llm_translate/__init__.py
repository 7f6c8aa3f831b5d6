"""llm_translate: LLM-backed message translation for chat hosts.

This package intercepts chat messages as the host renders them, sends their
text to a remote translation endpoint backed by a large language model, and
writes the translated text back onto the host-owned message record.

Architecture
------------
The adapter is intentionally *non-authoritative* about message lifecycle:
it never creates or deletes messages, it only mutates the two fields it owns
(``text`` for outgoing messages and ``extra.display_text`` for both
directions).  Any translation failure degrades to the original text.

Package structure
-----------------
settings/       Configuration Store: provider, submodel, prompt template,
                target language and auto mode, with debounced persistence.
translation/    Translation Client (async HTTP call to the translation
                endpoint), prompt substitution, and the Message Mutator.
host/           Host-facing pieces: event-type constants, a reference event
                bus, an in-memory chat history, and the Interception
                Controller that ties everything together.
messages.py     Chat message record (``ChatMessage``, ``MessageExtra``).
config.py       Adapter runtime configuration (INI file + environment).
cli.py          ``llm-translate`` command line.

Typical call flow
-----------------
1. host emits ``character_message_rendered`` with ``{"message_id": n}``
2. ``InterceptionController.handle_incoming(n)`` snapshots the settings
3. ``TranslationClient.translate`` posts the prompt to the endpoint
4. ``apply_incoming`` sets ``extra.display_text`` on the message
5. host re-renders the message block

Version Management
------------------
``__version__`` is read from the installed package metadata; the single
source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version("llm-translate")
except PackageNotFoundError:
    __version__ = "0.1.0"
