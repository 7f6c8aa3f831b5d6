"""Chat message record.

Messages belong to the host's chat history; the adapter only mutates them.
Two fields matter here:

``text``
    The authoritative content used by the rest of the host (prompt context
    building, search, export).  Serialised under the host's ``mes`` key.

``extra.display_text``
    Optional override shown to the user instead of ``text``.  ``None``
    means "show ``text``".

Any other keys the host keeps in ``extra`` are carried in
``MessageExtra.other`` and written back untouched.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass
class MessageExtra:
    """Structured ``extra`` block of a message.

    Attributes:
        display_text: Text shown to the user, or ``None`` to show ``text``.
        other:        Host-owned extra keys, preserved verbatim.
    """

    display_text: str | None = None
    other: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> MessageExtra:
        if not isinstance(data, Mapping):
            return cls()
        other = {key: value for key, value in data.items() if key != "display_text"}
        display_text = data.get("display_text")
        return cls(
            display_text=display_text if isinstance(display_text, str) else None,
            other=other,
        )

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.other)
        if self.display_text is not None:
            data["display_text"] = self.display_text
        return data


@dataclass
class ChatMessage:
    """One entry of the host's chat history.

    Attributes:
        text:    Authoritative message content.
        name:    Speaker name (character or user persona).
        is_user: ``True`` for messages typed by the user (outgoing).
        extra:   Structured extra block; may be ``None`` on records built
                 by hosts that never set one.
    """

    text: str
    name: str = ""
    is_user: bool = False
    extra: MessageExtra | None = field(default_factory=MessageExtra)

    @property
    def displayed_text(self) -> str:
        """What the user sees: ``extra.display_text`` when set, else ``text``."""
        if isinstance(self.extra, MessageExtra) and self.extra.display_text is not None:
            return self.extra.display_text
        return self.text

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChatMessage:
        """Build a record from the host's serialised form (``mes``/``extra``)."""
        extra = data.get("extra")
        return cls(
            text=str(data.get("mes", "")),
            name=str(data.get("name", "")),
            is_user=bool(data.get("is_user", False)),
            extra=MessageExtra.from_dict(extra) if isinstance(extra, Mapping) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "is_user": self.is_user, "mes": self.text}
        if isinstance(self.extra, MessageExtra):
            data["extra"] = self.extra.to_dict()
        return data
