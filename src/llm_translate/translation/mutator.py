"""Message Mutator: write a translation back onto a message record.

The two directions are asymmetric:

Incoming (character) messages
    Translated for *display only*.  ``extra.display_text`` receives the
    translation and ``text`` keeps the original language, so downstream
    logic (prompt context, memory, search) still sees what the character
    actually said.

Outgoing (user) messages
    Translated for *transmission*.  ``text`` becomes the translation, so
    downstream logic sees the target language, and the user's original
    wording is kept in ``extra.display_text``.

Both operations are total: they succeed when ``extra`` is missing or holds
something other than a ``MessageExtra``, and they touch no other field.
"""

from __future__ import annotations

from collections.abc import Mapping

from llm_translate.messages import ChatMessage, MessageExtra


def ensure_extra(message: ChatMessage) -> MessageExtra:
    """Return ``message.extra``, replacing a missing or unstructured one first.

    A plain mapping left by the host is converted so its keys survive.
    """
    extra = message.extra
    if isinstance(extra, MessageExtra):
        return extra
    message.extra = MessageExtra.from_dict(extra) if isinstance(extra, Mapping) else MessageExtra()
    return message.extra


def apply_incoming(message: ChatMessage, translated_text: str) -> ChatMessage:
    """Show ``translated_text`` for an incoming message; ``text`` is untouched."""
    ensure_extra(message).display_text = translated_text
    return message


def apply_outgoing(message: ChatMessage, translated_text: str) -> ChatMessage:
    """Send ``translated_text`` for an outgoing message, keeping the original on display."""
    extra = ensure_extra(message)
    extra.display_text = message.text
    message.text = translated_text
    return message
