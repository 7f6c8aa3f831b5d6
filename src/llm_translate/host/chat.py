"""Host-side chat collaborators.

``ChatHost`` is everything the Interception Controller needs from the chat
application: resolve a message id to the live record, expand the host's
``{{macro}}`` parameters, and redraw a message block.  A real host wraps its
own chat store; ``ChatHistory`` is the in-memory implementation used by the
CLI, embedding hosts and tests.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import Protocol

from llm_translate.messages import ChatMessage

logger = logging.getLogger(__name__)

RenderCallback = Callable[[int, ChatMessage], None]


class ChatHost(Protocol):
    """The chat application, as seen by the controller."""

    def get_message(self, message_id: int) -> ChatMessage | None:
        """Live record for ``message_id``, or ``None`` if it no longer exists."""

    def substitute_params(self, text: str, message: ChatMessage) -> str:
        """Expand host parameters (speaker names, ...) in ``text``."""

    def update_message_block(self, message_id: int, message: ChatMessage) -> None:
        """Redraw the message.  Safe to call any number of times."""


class ChatHistory:
    """Ordered, host-owned sequence of chat messages.

    Message ids are list indices, matching the hosts this adapter targets.
    Parameter substitution understands ``{{user}}`` (the user's persona
    name) and ``{{char}}`` (the speaking character's name), case-insensitive.

    Attributes:
        user_name:  Replacement for ``{{user}}``.
        on_render:  Called by ``update_message_block``; defaults to a
                    DEBUG log line.
    """

    def __init__(
        self,
        messages: Iterable[ChatMessage] = (),
        *,
        user_name: str = "User",
        on_render: RenderCallback | None = None,
    ) -> None:
        self._messages: list[ChatMessage] = list(messages)
        self.user_name = user_name
        self.on_render = on_render
        self.render_count = 0

    # ── Sequence access ───────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self._messages)

    def append(self, message: ChatMessage) -> int:
        """Add ``message`` and return its id."""
        self._messages.append(message)
        return len(self._messages) - 1

    def delete(self, message_id: int) -> None:
        del self._messages[message_id]

    def truncate(self, length: int = 0) -> None:
        """Drop every message from ``length`` on (``0`` clears the chat)."""
        del self._messages[length:]

    # ── ChatHost ──────────────────────────────────────────────────────────────

    def get_message(self, message_id: int) -> ChatMessage | None:
        if 0 <= message_id < len(self._messages):
            return self._messages[message_id]
        return None

    def substitute_params(self, text: str, message: ChatMessage) -> str:
        replacements = {"{{user}}": self.user_name, "{{char}}": message.name}
        for token, value in replacements.items():
            text = _replace_case_insensitive(text, token, value)
        return text

    def update_message_block(self, message_id: int, message: ChatMessage) -> None:
        self.render_count += 1
        if self.on_render is not None:
            self.on_render(message_id, message)
        else:
            logger.debug("Re-rendered message %d", message_id)

    # ── Serialisation ─────────────────────────────────────────────────────────

    @classmethod
    def load(cls, path: Path | str, *, user_name: str = "User") -> ChatHistory:
        """Read a chat saved as JSON lines, one message object per line."""
        messages = []
        for line in Path(path).read_text(encoding="utf-8").splitlines():
            if line.strip():
                messages.append(ChatMessage.from_dict(json.loads(line)))
        return cls(messages, user_name=user_name)

    def save(self, path: Path | str) -> None:
        lines = [json.dumps(message.to_dict(), ensure_ascii=False) for message in self._messages]
        Path(path).write_text("\n".join(lines) + "\n", encoding="utf-8")


def _replace_case_insensitive(text: str, token: str, value: str) -> str:
    return re.sub(re.escape(token), lambda _match: value, text, flags=re.IGNORECASE)
