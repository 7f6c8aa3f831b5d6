"""
Host Event Bus

A small, in-process event bus with the same dispatch semantics as the chat
hosts this adapter plugs into.  Hosts that already have an event system wrap
it in a ``MessageSubscriber`` instead; this bus is the reference
implementation used by the CLI, by embedding hosts, and by the tests.

=============================================================================
PRINCIPLES
=============================================================================

1. EVENTS ARE FACTS
   - "user_message_rendered" means the message is already in the history
   - Handlers react; they cannot veto or reorder anything

2. EMIT IS SYNCHRONOUS
   - The event is appended to the log and sync handlers run before emit()
     returns
   - Sequence numbers give a total order

3. ASYNC IS AN EXECUTION DETAIL
   - Async handlers are scheduled as tasks after the event is committed
   - Each task runs independently; nothing is queued behind another task

4. HANDLER FAILURES ARE ISOLATED
   - An exception in one handler is logged and the next handler still runs

Unlike a process-wide singleton, a bus is an explicit object: the host
creates one and hands it to whoever needs it.

=============================================================================
USAGE
=============================================================================

    from llm_translate.host.bus import EventBus
    from llm_translate.host.events import HostEvents

    bus = EventBus()

    async def on_rendered(event):
        await translate(event.detail["message_id"])

    unsubscribe = bus.on(HostEvents.CHARACTER_MESSAGE_RENDERED, on_rendered)
    bus.emit(HostEvents.CHARACTER_MESSAGE_RENDERED, {"message_id": 3})

    await bus.drain()   # wait for scheduled async handlers
    unsubscribe()

=============================================================================
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# TYPE ALIASES
# =============================================================================

SyncHandler = Callable[["HostEvent"], None]
AsyncHandler = Callable[["HostEvent"], Coroutine[Any, Any, None]]
EventHandler = SyncHandler | AsyncHandler
Unsubscribe = Callable[[], None]


# =============================================================================
# EVENT
# =============================================================================


@dataclass(frozen=True)
class EventMetadata:
    """
    Metadata attached to every event.

    Attributes:
        timestamp: Unix epoch milliseconds (UTC).  For display only.
        source: Component that emitted the event.
        sequence: Monotonically increasing integer; the only reliable order.
    """

    timestamp: int
    source: str
    sequence: int

    @staticmethod
    def create(source: str, sequence: int) -> EventMetadata:
        now_ms = int(datetime.now(UTC).timestamp() * 1000)
        return EventMetadata(timestamp=now_ms, source=source, sequence=sequence)


@dataclass(frozen=True)
class HostEvent:
    """
    A single committed event.

    Attributes:
        type: Event type string (see ``HostEvents``).
        detail: Event payload.  Treat as read-only.
        meta: Timestamp, source and sequence number.
    """

    type: str
    detail: dict = field(default_factory=dict)
    meta: EventMetadata | None = None

    def __str__(self) -> str:
        if self.meta:
            return (
                f"HostEvent(type='{self.type}', source='{self.meta.source}', "
                f"seq={self.meta.sequence})"
            )
        return f"HostEvent(type='{self.type}')"


# =============================================================================
# EVENT BUS
# =============================================================================


class EventBus:
    """
    In-process event bus.

    Key methods:
    - emit(): commit an event and notify handlers (synchronous)
    - on(): subscribe, returns an unsubscribe function
    - once(): subscribe for a single event
    - drain(): await every async handler task scheduled so far
    - get_event_log(): bounded event history

    Thread safety: none.  The host is single-threaded with asyncio.
    """

    def __init__(self, *, log_size: int = 1000) -> None:
        # event_type -> handlers, in registration order
        self._handlers: dict[str, list[EventHandler]] = {}
        self._event_log: deque[HostEvent] = deque(maxlen=log_size)
        self._sequence: int = 0
        # Async handler tasks that have not finished yet
        self._tasks: set[asyncio.Task[None]] = set()

    # =========================================================================
    # EMIT
    # =========================================================================

    def emit(
        self, event_type: str, detail: dict[str, Any] | None = None, source: str = "host"
    ) -> HostEvent:
        """
        Commit an event and notify its handlers.

        When this returns, the event is in the log, every sync handler has
        run, and every async handler has been scheduled (or, with no running
        loop, run to completion).

        Args:
            event_type: The type of event (see ``HostEvents``).
            detail: The payload; defaults to an empty dict.
            source: Emitting component, for debugging.

        Returns:
            The committed ``HostEvent``.
        """
        self._sequence += 1
        event = HostEvent(
            type=event_type,
            detail=detail if detail is not None else {},
            meta=EventMetadata.create(source, self._sequence),
        )
        self._event_log.append(event)
        logger.debug("EMIT [%d]: %s from %s", self._sequence, event_type, source)
        self._notify_handlers(event)
        return event

    def _notify_handlers(self, event: HostEvent) -> None:
        # Copy: a once() handler unsubscribes itself while we iterate.
        for handler in list(self._handlers.get(event.type, ())):
            try:
                if inspect.iscoroutinefunction(handler):
                    self._schedule_async_handler(handler, event)
                else:
                    handler(event)
            except Exception as e:
                logger.error(f"Handler error for '{event.type}': {e}", exc_info=True)

    def _schedule_async_handler(self, handler: AsyncHandler, event: HostEvent) -> None:
        """
        Run an async handler.

        With a running loop the handler becomes a background task; without
        one (scripts, sync tests) it runs to completion via ``asyncio.run``.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(handler(event))
            return

        task = loop.create_task(handler(event))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Async handler failed: %s", exc, exc_info=exc)

    async def drain(self) -> None:
        """Wait until every async handler scheduled so far has finished."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    # =========================================================================
    # SUBSCRIBE
    # =========================================================================

    def on(self, event_type: str, handler: EventHandler) -> Unsubscribe:
        """
        Subscribe ``handler`` (sync or async) to ``event_type``.

        Returns:
            A function that removes the subscription.  Calling it twice is
            harmless.
        """
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug(
            "SUBSCRIBE: '%s' (total handlers: %d)", event_type, len(self._handlers[event_type])
        )

        def unsubscribe() -> None:
            handlers = self._handlers.get(event_type)
            if handlers is not None and handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def once(self, event_type: str, handler: EventHandler) -> Unsubscribe:
        """Subscribe for the next ``event_type`` event only."""
        unsub: Unsubscribe | None = None

        def one_time_wrapper(event: HostEvent) -> None:
            try:
                if inspect.iscoroutinefunction(handler):
                    self._schedule_async_handler(handler, event)
                else:
                    handler(event)
            finally:
                if unsub is not None:
                    unsub()

        unsub = self.on(event_type, one_time_wrapper)
        return unsub

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def get_event_log(self, limit: int | None = None) -> list[HostEvent]:
        """Events in commit order, optionally only the last ``limit``."""
        events = list(self._event_log)
        return events[-limit:] if limit is not None else events

    def get_sequence(self) -> int:
        return self._sequence

    def get_handler_count(self, event_type: str) -> int:
        return len(self._handlers.get(event_type, ()))
