"""
Tests for the Interception Controller.

Most tests drive the controller with a mocked Translation Client so that
timing (settings changes and chat edits during the remote call) can be
controlled exactly.  The end-to-end tests at the bottom use the real client
against a respx-mocked endpoint and a real event bus.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import respx
from httpx import Response

from llm_translate.errors import TransportFailure
from llm_translate.host.bus import EventBus
from llm_translate.host.controller import (
    InterceptionController,
    MessageDirection,
    TranslationOutcome,
    is_auto_eligible,
)
from llm_translate.host.events import HostEvents
from llm_translate.host.subscriber import BusMessageSubscriber
from llm_translate.messages import ChatMessage
from llm_translate.settings.models import AutoMode, Provider
from llm_translate.translation.client import TranslationClient, TranslationResult

# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def fake_client() -> MagicMock:
    """Client whose translate() upper-cases the text."""
    client = MagicMock(spec=TranslationClient)
    client.translate = AsyncMock(
        side_effect=lambda text, target, settings, lookup: TranslationResult.success(text.upper())
    )
    return client


@pytest.fixture
def controller(chat, store, fake_client, credentials) -> InterceptionController:
    return InterceptionController(
        host=chat,
        store=store,
        client=fake_client,
        credential_lookup=credentials,
    )


# ============================================================================
# ELIGIBILITY
# ============================================================================


class TestEligibility:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "mode, direction, expected",
        [
            (AutoMode.NONE, MessageDirection.INCOMING, False),
            (AutoMode.NONE, MessageDirection.OUTGOING, False),
            (AutoMode.RESPONSES, MessageDirection.INCOMING, True),
            (AutoMode.RESPONSES, MessageDirection.OUTGOING, False),
            (AutoMode.INPUTS, MessageDirection.INCOMING, False),
            (AutoMode.INPUTS, MessageDirection.OUTGOING, True),
            (AutoMode.BOTH, MessageDirection.INCOMING, True),
            (AutoMode.BOTH, MessageDirection.OUTGOING, True),
        ],
    )
    def test_is_auto_eligible(self, mode, direction, expected):
        assert is_auto_eligible(mode, direction) is expected

    @pytest.mark.asyncio
    async def test_auto_mode_none_leaves_message_untouched(self, controller, chat, fake_client):
        message = chat.get_message(0)

        outcome = await controller.handle_incoming(0)

        assert outcome is TranslationOutcome.SKIPPED
        assert message.text == "Bonjour {{user}}, je suis {{char}}"
        assert message.extra.display_text is None
        assert chat.render_count == 0
        fake_client.translate.assert_not_called()

    @pytest.mark.asyncio
    async def test_responses_mode_skips_outgoing(self, controller, store, chat, fake_client):
        store.set_auto_mode("responses")

        assert await controller.handle_outgoing(1) is TranslationOutcome.SKIPPED
        assert chat.get_message(1).text == "Hello there"
        fake_client.translate.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_message_is_skipped(self, controller, store, fake_client):
        store.set_auto_mode("both")
        assert await controller.handle_incoming(42) is TranslationOutcome.SKIPPED
        fake_client.translate.assert_not_called()


# ============================================================================
# TRANSLATION PATH
# ============================================================================


class TestIncoming:
    @pytest.mark.asyncio
    async def test_parameters_substituted_before_translation(
        self, controller, store, chat, fake_client
    ):
        store.set_auto_mode("responses")

        outcome = await controller.handle_incoming(0)

        assert outcome is TranslationOutcome.APPLIED
        sent_text = fake_client.translate.await_args.args[0]
        assert sent_text == "Bonjour Sam, je suis Amélie"
        message = chat.get_message(0)
        assert message.text == "Bonjour {{user}}, je suis {{char}}"
        assert message.extra.display_text == "BONJOUR SAM, JE SUIS AMÉLIE"
        assert chat.render_count == 1

    @pytest.mark.asyncio
    async def test_uses_snapshot_target_language_and_credentials(
        self, controller, store, fake_client, credentials
    ):
        store.set_auto_mode("both")
        store.set_target_language("German")

        await controller.handle_incoming(0)

        _, target, settings, lookup = fake_client.translate.await_args.args
        assert target == "German"
        assert settings == store.snapshot()
        assert lookup is credentials


class TestOutgoing:
    @pytest.mark.asyncio
    async def test_text_replaced_and_original_displayed(self, controller, store, chat, fake_client):
        store.set_auto_mode("inputs")

        outcome = await controller.handle_outgoing(1)

        assert outcome is TranslationOutcome.APPLIED
        assert fake_client.translate.await_args.args[0] == "Hello there"
        message = chat.get_message(1)
        assert message.text == "HELLO THERE"
        assert message.extra.display_text == "Hello there"

    @pytest.mark.asyncio
    async def test_outgoing_text_is_not_parameter_substituted(
        self, controller, store, chat, fake_client
    ):
        store.set_auto_mode("inputs")
        chat.append(ChatMessage(text="I am {{user}}", name="Sam", is_user=True))

        await controller.handle_outgoing(2)

        assert fake_client.translate.await_args.args[0] == "I am {{user}}"


class TestManualTranslation:
    @pytest.mark.asyncio
    async def test_translate_message_ignores_auto_mode(self, controller, chat):
        outcome = await controller.translate_message(0, "incoming")
        assert outcome is TranslationOutcome.APPLIED
        assert chat.get_message(0).extra.display_text == "BONJOUR SAM, JE SUIS AMÉLIE"


# ============================================================================
# FAILURE AND CONCURRENCY
# ============================================================================


class TestFallback:
    @pytest.mark.asyncio
    async def test_failed_translation_applies_original(self, controller, store, chat, fake_client):
        store.set_auto_mode("both")
        fake_client.translate.side_effect = lambda text, *args: TranslationResult.failure(
            text, TransportFailure("Translation failed: Bad Gateway", status_code=502)
        )

        outcome = await controller.handle_outgoing(1)

        assert outcome is TranslationOutcome.APPLIED_FALLBACK
        message = chat.get_message(1)
        assert message.text == "Hello there"
        assert message.extra.display_text == "Hello there"

    @pytest.mark.asyncio
    async def test_client_exception_does_not_escape(self, controller, store, chat, fake_client):
        store.set_auto_mode("both")
        fake_client.translate.side_effect = RuntimeError("unexpected")

        outcome = await controller.handle_incoming(0)

        assert outcome is TranslationOutcome.APPLIED_FALLBACK
        assert chat.get_message(0).extra.display_text == "Bonjour Sam, je suis Amélie"

    @pytest.mark.asyncio
    async def test_host_failure_does_not_escape(self, store, fake_client, credentials, caplog):
        store.set_auto_mode("both")
        host = MagicMock()
        host.get_message.side_effect = KeyError("chat unloaded")
        controller = InterceptionController(
            host=host, store=store, client=fake_client, credential_lookup=credentials
        )

        outcome = await controller.handle_incoming(0)

        assert outcome is TranslationOutcome.SKIPPED
        assert "Unexpected error translating incoming message 0" in caplog.text

    @pytest.mark.asyncio
    async def test_rerender_failure_keeps_mutation(self, controller, store, chat):
        store.set_auto_mode("both")

        def broken_render(message_id, message):
            raise RuntimeError("DOM gone")

        chat.on_render = broken_render

        outcome = await controller.handle_outgoing(1)

        assert outcome is TranslationOutcome.APPLIED
        assert chat.get_message(1).text == "HELLO THERE"


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_settings_change_during_call_does_not_affect_it(
        self, controller, store, fake_client
    ):
        store.set_auto_mode("both")
        seen = []

        async def translate(text, target, settings, lookup):
            store.set_provider("claude")
            store.set_target_language("Japanese")
            seen.append((settings.provider, target))
            return TranslationResult.success(text)

        fake_client.translate.side_effect = translate

        await controller.handle_incoming(0)
        await controller.handle_incoming(0)

        assert seen == [(Provider.OPENAI, "English"), (Provider.CLAUDE, "Japanese")]

    @pytest.mark.asyncio
    async def test_deleted_message_result_is_dropped(self, controller, store, chat, fake_client):
        store.set_auto_mode("both")
        original = chat.get_message(1)

        async def translate(text, *args):
            chat.truncate(1)
            return TranslationResult.success("Bonjour")

        fake_client.translate.side_effect = translate

        outcome = await controller.handle_outgoing(1)

        assert outcome is TranslationOutcome.STALE
        assert original.text == "Hello there"
        assert original.extra.display_text is None
        assert chat.render_count == 0

    @pytest.mark.asyncio
    async def test_replaced_message_result_is_dropped(self, controller, store, chat, fake_client):
        store.set_auto_mode("both")

        async def translate(text, *args):
            chat.delete(0)
            chat.append(ChatMessage(text="newer", name="Amélie"))
            return TranslationResult.success("Hello")

        fake_client.translate.side_effect = translate

        outcome = await controller.handle_incoming(0)

        assert outcome is TranslationOutcome.STALE
        assert chat.get_message(0).extra.display_text is None
        assert chat.get_message(1).extra.display_text is None

    @pytest.mark.asyncio
    async def test_overlapping_dispatches_of_same_message_keep_original(
        self, controller, store, chat, fake_client
    ):
        store.set_auto_mode("inputs")

        async def slow_translate(text, *args):
            await asyncio.sleep(0.01)
            return TranslationResult.success("Bonjour")

        fake_client.translate.side_effect = slow_translate

        outcomes = await asyncio.gather(controller.handle_outgoing(1), controller.handle_outgoing(1))

        assert outcomes == [TranslationOutcome.APPLIED, TranslationOutcome.SKIPPED]
        assert fake_client.translate.await_count == 1
        message = chat.get_message(1)
        assert message.text == "Bonjour"
        assert message.extra.display_text == "Hello there"
        assert chat.render_count == 1

    @pytest.mark.asyncio
    async def test_manual_translation_during_auto_dispatch_is_skipped(
        self, controller, store, chat, fake_client
    ):
        store.set_auto_mode("inputs")
        release = asyncio.Event()

        async def gated_translate(text, *args):
            await release.wait()
            return TranslationResult.success("Bonjour")

        fake_client.translate.side_effect = gated_translate

        auto = asyncio.create_task(controller.handle_outgoing(1))
        await asyncio.sleep(0)
        manual = await controller.translate_message(1, MessageDirection.OUTGOING)
        release.set()

        assert manual is TranslationOutcome.SKIPPED
        assert await auto is TranslationOutcome.APPLIED
        assert chat.get_message(1).extra.display_text == "Hello there"

    @pytest.mark.asyncio
    async def test_message_is_translatable_again_after_dispatch(
        self, controller, store, fake_client
    ):
        store.set_auto_mode("responses")
        fake_client.translate.side_effect = RuntimeError("first call fails")

        assert await controller.handle_incoming(0) is TranslationOutcome.APPLIED_FALLBACK

        fake_client.translate.side_effect = lambda text, *args: TranslationResult.success("Hi")
        assert await controller.handle_incoming(0) is TranslationOutcome.APPLIED

    @pytest.mark.asyncio
    async def test_text_edited_during_call_is_stale(self, controller, store, chat, fake_client):
        store.set_auto_mode("inputs")
        message = chat.get_message(1)

        async def translate(text, *args):
            message.text = "Hello there, friend"
            return TranslationResult.success("Bonjour")

        fake_client.translate.side_effect = translate

        outcome = await controller.handle_outgoing(1)

        assert outcome is TranslationOutcome.STALE
        assert message.text == "Hello there, friend"
        assert message.extra.display_text is None

    @pytest.mark.asyncio
    async def test_non_integer_id_is_logged_and_skipped(self, controller, caplog):
        outcome = await controller.translate_message("first", "incoming")  # type: ignore[arg-type]

        assert outcome is TranslationOutcome.SKIPPED
        assert "Unexpected error translating incoming message first" in caplog.text

    @pytest.mark.asyncio
    async def test_concurrent_messages_translate_independently(
        self, controller, store, chat, fake_client
    ):
        store.set_auto_mode("both")
        release = asyncio.Event()

        async def translate(text, *args):
            if text == "Hello there":
                await release.wait()
            else:
                release.set()
            return TranslationResult.success(f"<{text}>")

        fake_client.translate.side_effect = translate

        outcomes = await asyncio.gather(
            controller.handle_outgoing(1), controller.handle_incoming(0)
        )

        assert outcomes == [TranslationOutcome.APPLIED, TranslationOutcome.APPLIED]
        assert chat.get_message(1).text == "<Hello there>"
        assert chat.get_message(0).extra.display_text == "<Bonjour Sam, je suis Amélie>"


# ============================================================================
# END TO END
# ============================================================================


class TestEndToEnd:
    @pytest.mark.asyncio
    @respx.mock
    async def test_bus_event_translates_character_message(
        self, chat, store, client, endpoint, credentials
    ):
        route = respx.post(endpoint).mock(
            return_value=Response(200, json={"translation": "Hello Sam, I am Amélie"})
        )
        store.set_auto_mode("responses")
        store.set_target_language("English")

        bus = EventBus()
        controller = InterceptionController(
            host=chat, store=store, client=client, credential_lookup=credentials
        )
        controller.attach(BusMessageSubscriber(bus))

        bus.emit(HostEvents.CHARACTER_MESSAGE_RENDERED, {"message_id": 0})
        bus.emit(HostEvents.USER_MESSAGE_RENDERED, {"message_id": 1})
        await bus.drain()

        assert route.call_count == 1
        payload = json.loads(route.calls.last.request.content)
        assert payload["text"] == "Bonjour Sam, je suis Amélie"
        assert payload["provider"] == "openai"
        assert chat.get_message(0).displayed_text == "Hello Sam, I am Amélie"
        assert chat.get_message(1).extra.display_text is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_credential_falls_back_without_request(
        self, chat, store, client, endpoint, notifier
    ):
        route = respx.post(endpoint)
        store.set_auto_mode("inputs")
        controller = InterceptionController(
            host=chat, store=store, client=client, credential_lookup=lambda provider: None
        )

        outcome = await controller.handle_outgoing(1)

        assert outcome is TranslationOutcome.APPLIED_FALLBACK
        assert route.call_count == 0
        assert notifier.errors == [("Translation Failed", "No API key found for openai")]
        message = chat.get_message(1)
        assert message.text == "Hello there"
        assert message.extra.display_text == "Hello there"

    @pytest.mark.asyncio
    async def test_detach_stops_handling(self, chat, store, fake_client, credentials):
        store.set_auto_mode("both")
        bus = EventBus()
        controller = InterceptionController(
            host=chat, store=store, client=fake_client, credential_lookup=credentials
        )
        controller.attach(BusMessageSubscriber(bus))
        controller.detach()

        bus.emit(HostEvents.CHARACTER_MESSAGE_RENDERED, {"message_id": 0})
        await bus.drain()

        fake_client.translate.assert_not_called()
        assert bus.get_handler_count(HostEvents.CHARACTER_MESSAGE_RENDERED) == 0
