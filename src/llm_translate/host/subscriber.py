"""Narrow subscriber interface between the controller and the host's events.

The Interception Controller only ever needs two subscriptions: "an incoming
message was rendered" and "an outgoing message was rendered", each handing
over a message id.  ``MessageSubscriber`` is that interface; the controller
never sees the concrete event system behind it.

``BusMessageSubscriber`` adapts an ``EventBus`` (or any object with the same
``on(event_type, handler)`` method) by unwrapping ``detail["message_id"]``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from typing import Any, Protocol

from llm_translate.host.bus import HostEvent, Unsubscribe
from llm_translate.host.events import HostEvents

logger = logging.getLogger(__name__)

MessageHandler = Callable[[int], Coroutine[Any, Any, Any]]


class MessageSubscriber(Protocol):
    """Where the controller registers its two message handlers."""

    def on_incoming_message(self, handler: MessageHandler) -> Unsubscribe:
        """Call ``handler(message_id)`` for every rendered character message."""

    def on_outgoing_message(self, handler: MessageHandler) -> Unsubscribe:
        """Call ``handler(message_id)`` for every rendered user message."""


class _EventSource(Protocol):
    def on(self, event_type: str, handler: Callable[..., Any]) -> Unsubscribe: ...


class BusMessageSubscriber:
    """``MessageSubscriber`` backed by an event bus.

    Events whose detail has no integer ``message_id`` are logged and ignored.
    """

    def __init__(
        self,
        bus: _EventSource,
        *,
        incoming_event: str = HostEvents.CHARACTER_MESSAGE_RENDERED,
        outgoing_event: str = HostEvents.USER_MESSAGE_RENDERED,
    ) -> None:
        self._bus = bus
        self._incoming_event = incoming_event
        self._outgoing_event = outgoing_event

    def on_incoming_message(self, handler: MessageHandler) -> Unsubscribe:
        return self._bus.on(self._incoming_event, _unwrap(handler))

    def on_outgoing_message(self, handler: MessageHandler) -> Unsubscribe:
        return self._bus.on(self._outgoing_event, _unwrap(handler))


def _unwrap(handler: MessageHandler) -> Callable[[HostEvent], Coroutine[Any, Any, None]]:
    async def on_event(event: HostEvent) -> None:
        message_id = event.detail.get("message_id")
        if isinstance(message_id, bool) or not isinstance(message_id, int):
            logger.warning(
                "Ignoring %s without an integer message_id: %r", event.type, event.detail
            )
            return
        await handler(message_id)

    return on_event
