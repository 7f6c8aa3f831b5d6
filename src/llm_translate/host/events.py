"""
Host event-type constants.

The host announces message lifecycle facts on its event bus.  The adapter
listens to exactly two of them: a message has been *rendered* (it is in the
chat history and visible), either from a character or from the user.

Every event carries the same detail shape::

    {"message_id": int}  # index into the host's chat history

Usage:

    from llm_translate.host.events import HostEvents

    bus.on(HostEvents.CHARACTER_MESSAGE_RENDERED, handler)
"""


class HostEvents:
    """Event types the adapter subscribes to."""

    CHARACTER_MESSAGE_RENDERED = "character_message_rendered"
    """
    An incoming (character) message has been added to the history and drawn.

    Detail: {"message_id": int}
    """

    USER_MESSAGE_RENDERED = "user_message_rendered"
    """
    An outgoing (user) message has been added to the history and drawn.

    Detail: {"message_id": int}
    """


def get_all_event_types() -> list[str]:
    """Return every event type string defined on ``HostEvents``."""
    return [
        value
        for name, value in vars(HostEvents).items()
        if name.isupper() and isinstance(value, str)
    ]
