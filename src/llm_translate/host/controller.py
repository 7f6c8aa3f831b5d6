"""Interception Controller.

``InterceptionController`` is the single public entry-point the host wires
up.  It reacts to rendered-message events, decides whether a message is
eligible, and runs Configuration Store → Translation Client → Message
Mutator for it.

Per-message state machine
-------------------------
::

    Received → Ineligible                         → SKIPPED
    Received → Eligible → Translating → Applied   → APPLIED
    Received → Eligible → TranslationFailed       → APPLIED_FALLBACK
    Received → Eligible → Translating → (record gone / replaced / edited) → STALE
    Received → (same id already translating)       → SKIPPED

Eligibility is the auto mode of the settings snapshot
(``AutoMode.translates_incoming`` / ``translates_outgoing``) plus the
message still existing.  An ineligible message is not touched at all: no
parameter substitution, no mutation, no re-render.

Caller contract
---------------
Handlers never raise.  The host's event dispatch also runs unrelated
handlers, so every failure on the translation path is turned into the
fallback "use the original text" and logged.

Snapshot and staleness
----------------------
Settings are snapshotted once when the event is received; a settings
change while the remote call is in flight affects the *next* message only.
No field of the message is written before the remote call returns.  After
it returns the message id is resolved again: if the record is gone, or the
id now points to a different record, or its text was edited meanwhile, the
result is dropped silently.

Only one dispatch per message id runs at a time.  A second event for an id
that is still being translated (the host re-emitting the rendered event, a
manual translation racing an automatic one) is skipped without touching the
message, so an outgoing message's original wording is never overwritten by
its own translation.
"""

from __future__ import annotations

import logging
from enum import Enum

from llm_translate.errors import TranslationError
from llm_translate.host.bus import Unsubscribe
from llm_translate.host.chat import ChatHost
from llm_translate.host.subscriber import MessageSubscriber
from llm_translate.messages import ChatMessage
from llm_translate.settings.models import AutoMode
from llm_translate.settings.store import ConfigurationStore
from llm_translate.translation.client import (
    CredentialLookup,
    TranslationClient,
    TranslationResult,
)
from llm_translate.translation.mutator import apply_incoming, apply_outgoing

logger = logging.getLogger(__name__)


class MessageDirection(str, Enum):
    """Which way a message travels relative to the user."""

    INCOMING = "incoming"
    OUTGOING = "outgoing"


class TranslationOutcome(str, Enum):
    """Terminal state of one message event."""

    APPLIED = "applied"
    APPLIED_FALLBACK = "applied_fallback"
    SKIPPED = "skipped"
    STALE = "stale"


def is_auto_eligible(auto_mode: AutoMode, direction: MessageDirection) -> bool:
    """Whether ``auto_mode`` translates messages travelling in ``direction``."""
    if direction is MessageDirection.INCOMING:
        return auto_mode.translates_incoming
    return auto_mode.translates_outgoing


class InterceptionController:
    """Orchestrates translation of rendered chat messages.

    Attributes:
        _host:              Chat application collaborators.
        _store:             Configuration Store; only ``snapshot()`` is used.
        _client:            Translation Client.
        _credential_lookup: Provider → API key lookup passed to the client.
        _unsubscribers:     Handles returned by the subscriber in ``attach``.
        _in_flight:         Message ids with a dispatch currently running.
    """

    def __init__(
        self,
        *,
        host: ChatHost,
        store: ConfigurationStore,
        client: TranslationClient,
        credential_lookup: CredentialLookup,
    ) -> None:
        self._host = host
        self._store = store
        self._client = client
        self._credential_lookup = credential_lookup
        self._unsubscribers: list[Unsubscribe] = []
        self._in_flight: set[int] = set()

    # ── Subscription ──────────────────────────────────────────────────────────

    def attach(self, subscriber: MessageSubscriber) -> None:
        """Register both message handlers with ``subscriber``."""
        self._unsubscribers.append(subscriber.on_incoming_message(self.handle_incoming))
        self._unsubscribers.append(subscriber.on_outgoing_message(self.handle_outgoing))
        logger.info("Translation controller attached")

    def detach(self) -> None:
        """Remove every handler registered by ``attach``."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    # ── Event handlers ────────────────────────────────────────────────────────

    async def handle_incoming(self, message_id: int) -> TranslationOutcome:
        """Auto-translate a rendered character message for display."""
        return await self._dispatch(message_id, MessageDirection.INCOMING, check_auto_mode=True)

    async def handle_outgoing(self, message_id: int) -> TranslationOutcome:
        """Auto-translate a rendered user message for transmission."""
        return await self._dispatch(message_id, MessageDirection.OUTGOING, check_auto_mode=True)

    async def translate_message(
        self, message_id: int, direction: MessageDirection | str
    ) -> TranslationOutcome:
        """Translate one message on request, regardless of the auto mode."""
        return await self._dispatch(
            message_id, MessageDirection(direction), check_auto_mode=False
        )

    # ── Pipeline ──────────────────────────────────────────────────────────────

    async def _dispatch(
        self,
        message_id: int,
        direction: MessageDirection,
        *,
        check_auto_mode: bool,
    ) -> TranslationOutcome:
        try:
            if message_id in self._in_flight:
                logger.debug("Message %s is already being translated; skipping", message_id)
                return TranslationOutcome.SKIPPED
            self._in_flight.add(message_id)
            try:
                return await self._run(message_id, direction, check_auto_mode=check_auto_mode)
            finally:
                self._in_flight.discard(message_id)
        except Exception:
            # Nothing may propagate into host dispatch.
            logger.exception(
                "Unexpected error translating %s message %s", direction.value, message_id
            )
            return TranslationOutcome.SKIPPED

    async def _run(
        self,
        message_id: int,
        direction: MessageDirection,
        *,
        check_auto_mode: bool,
    ) -> TranslationOutcome:
        message = self._host.get_message(message_id)
        if message is None:
            logger.debug("Message %s not found; nothing to translate", message_id)
            return TranslationOutcome.SKIPPED

        settings = self._store.snapshot()
        if check_auto_mode and not is_auto_eligible(settings.auto_mode, direction):
            return TranslationOutcome.SKIPPED

        if direction is MessageDirection.INCOMING:
            # Resolve {{user}}/{{char}} before translating, not after.
            source_text = self._host.substitute_params(message.text, message)
        else:
            source_text = message.text
        original_text = message.text

        try:
            result = await self._client.translate(
                source_text,
                settings.target_language,
                settings,
                self._credential_lookup,
            )
        except Exception as exc:
            logger.error(
                "Translation client raised for message %s: %s", message_id, exc, exc_info=True
            )
            result = TranslationResult.failure(source_text, TranslationError(str(exc)))

        if self._host.get_message(message_id) is not message or message.text != original_text:
            logger.debug("Message %s changed while translating; dropping result", message_id)
            return TranslationOutcome.STALE

        self._apply(message, direction, result.text)
        self._rerender(message_id, message)

        if result.ok:
            return TranslationOutcome.APPLIED
        return TranslationOutcome.APPLIED_FALLBACK

    @staticmethod
    def _apply(message: ChatMessage, direction: MessageDirection, text: str) -> None:
        if direction is MessageDirection.INCOMING:
            apply_incoming(message, text)
        else:
            apply_outgoing(message, text)

    def _rerender(self, message_id: int, message: ChatMessage) -> None:
        try:
            self._host.update_message_block(message_id, message)
        except Exception:
            logger.warning("Host failed to re-render message %s", message_id, exc_info=True)
