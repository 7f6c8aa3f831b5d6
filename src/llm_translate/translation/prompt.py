"""Prompt template substitution.

Templates carry two placeholders, ``{target_language}`` and ``{text}``.
Substitution is plain string replacement rather than ``str.format``: user
text routinely contains braces (code, emoticons, other templates) and must
never be interpreted.  Each placeholder is replaced at its first occurrence
only; a template that lacks a placeholder is not an error.

``{target_language}`` is substituted before ``{text}`` so that a literal
``{target_language}`` typed by the user inside the message is left alone.
"""

from __future__ import annotations

TARGET_LANGUAGE_PLACEHOLDER = "{target_language}"
TEXT_PLACEHOLDER = "{text}"


def build_prompt(template: str, target_language: str, text: str) -> str:
    """Render ``template`` for one message.

    Example::

        build_prompt("Translate to {target_language}: {text}", "French", "Hi")
        # → "Translate to French: Hi"
    """
    rendered = template.replace(TARGET_LANGUAGE_PLACEHOLDER, target_language, 1)
    return rendered.replace(TEXT_PLACEHOLDER, text, 1)
