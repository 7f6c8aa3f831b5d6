"""Host integration: events, chat history and the Interception Controller.

events.py       HostEvents: the two rendered-message event types.
bus.py          EventBus: reference in-process event bus.
chat.py         ChatHost protocol and the in-memory ChatHistory.
subscriber.py   MessageSubscriber: the narrow interface the controller
                depends on, and its EventBus adapter.
controller.py   InterceptionController: eligibility and orchestration.
"""

from llm_translate.host.bus import EventBus, HostEvent
from llm_translate.host.chat import ChatHistory, ChatHost
from llm_translate.host.controller import (
    InterceptionController,
    MessageDirection,
    TranslationOutcome,
)
from llm_translate.host.events import HostEvents
from llm_translate.host.subscriber import BusMessageSubscriber, MessageSubscriber

__all__ = [
    "BusMessageSubscriber",
    "ChatHistory",
    "ChatHost",
    "EventBus",
    "HostEvent",
    "HostEvents",
    "InterceptionController",
    "MessageDirection",
    "MessageSubscriber",
    "TranslationOutcome",
]
