"""
Command-line interface for llm-translate.

Provides commands for inspecting and changing the translation settings and
for running one message through the full translation pipeline:

- providers: List providers and their submodels
- config show: Print the effective settings
- config set-provider / set-submodel / set-auto-mode / set-prompt / set-target:
  Change one setting and persist it
- translate: Translate a message as the host would

Usage:
    llm-translate providers
    llm-translate config show
    llm-translate config set-provider claude
    llm-translate translate "Bonjour {{user}}" --direction incoming --target English

Environment Variables:
    LLM_TRANSLATE_ENDPOINT: Translation endpoint URL
    LLM_TRANSLATE_SETTINGS_PATH: Settings file (default: data/settings.json)
    OPENAI_API_KEY, ANTHROPIC_API_KEY, COHERE_API_KEY, GOOGLE_API_KEY:
        Provider keys checked before any request is made
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence

from llm_translate.config import config
from llm_translate.errors import ConfigurationError
from llm_translate.host.chat import ChatHistory
from llm_translate.host.controller import (
    InterceptionController,
    MessageDirection,
    TranslationOutcome,
)
from llm_translate.logging_setup import configure_logging
from llm_translate.messages import ChatMessage
from llm_translate.settings.models import SUBMODELS
from llm_translate.settings.persistence import JsonFileSettingsPersistence
from llm_translate.settings.store import ConfigurationStore
from llm_translate.translation.client import TranslationClient
from llm_translate.translation.credentials import EnvCredentialLookup


class StderrNotifier:
    """Print user-visible translation errors to stderr."""

    def error(self, message: str, title: str) -> None:
        print(f"{title}: {message}", file=sys.stderr)


def open_store(args: argparse.Namespace, *, persist: bool = True) -> ConfigurationStore:
    """
    Load the Configuration Store from the settings file.

    Changes are saved with the configured debounce delay; commands that
    change a setting call ``store.flush()`` before returning.  With
    ``persist=False`` the store is a detached copy: changes made to it (such
    as a one-off target language) are never written back.
    """
    path = getattr(args, "settings", None) or config.settings.absolute_path
    persistence = JsonFileSettingsPersistence(path, config.settings.extension_name)
    if not persist:
        store = ConfigurationStore()
        store.load(persistence.read())
        return store
    return ConfigurationStore.from_persistence(
        persistence, debounce_seconds=config.settings.debounce_seconds
    )


# ============================================================================
# PROVIDERS
# ============================================================================


def cmd_providers(args: argparse.Namespace) -> int:
    """List every provider with its submodels; the first one is the default."""
    for provider, models in SUBMODELS.items():
        print(provider.value)
        for index, model in enumerate(models):
            marker = "*" if index == 0 else " "
            print(f"  {marker} {model.id:<28} {model.display_name}")
    return 0


# ============================================================================
# CONFIG
# ============================================================================


def cmd_config_show(args: argparse.Namespace) -> int:
    """Print the effective settings as JSON."""
    store = open_store(args)
    print(json.dumps(store.snapshot().to_dict(), indent=2, ensure_ascii=False))
    return 0


def cmd_config_set(args: argparse.Namespace) -> int:
    """
    Change one setting.

    ``args.setter`` names the ConfigurationStore method and ``args.value``
    is its argument.  Invalid values print the error and return 1.
    """
    store = open_store(args)
    try:
        settings = getattr(store, args.setter)(args.value)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    store.flush()
    print(json.dumps(settings.to_dict(), indent=2, ensure_ascii=False))
    return 0


# ============================================================================
# TRANSLATE
# ============================================================================


async def _translate_once(
    store: ConfigurationStore,
    message: ChatMessage,
    direction: MessageDirection,
    user_name: str,
) -> tuple[TranslationOutcome, ChatMessage]:
    chat = ChatHistory([message], user_name=user_name)
    async with TranslationClient(
        config.service.endpoint,
        timeout_seconds=config.service.timeout_seconds,
        headers=config.service.headers,
        notifier=StderrNotifier(),
    ) as client:
        controller = InterceptionController(
            host=chat,
            store=store,
            client=client,
            credential_lookup=EnvCredentialLookup(),
        )
        outcome = await controller.translate_message(0, direction)
    return outcome, message


def cmd_translate(args: argparse.Namespace) -> int:
    """
    Translate one message through the full pipeline.

    Prints the message as the host would store it: ``text`` (what downstream
    logic sees) and ``display_text`` (what the user sees).

    Returns:
        0 when the translation was applied, 1 when it fell back to the
        original text.
    """
    store = open_store(args, persist=False)
    if args.target:
        try:
            store.set_target_language(args.target)
        except ConfigurationError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    direction = MessageDirection(args.direction)
    message = ChatMessage(
        text=args.text,
        name=args.name,
        is_user=direction is MessageDirection.OUTGOING,
    )
    outcome, message = asyncio.run(_translate_once(store, message, direction, args.user_name))

    extra = message.extra
    display_text = extra.display_text if extra is not None else None
    print(json.dumps({"text": message.text, "display_text": display_text}, ensure_ascii=False))
    return 0 if outcome is TranslationOutcome.APPLIED else 1


# ============================================================================
# ENTRY POINT
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="llm-translate",
        description="LLM-backed chat message translation",
    )
    parser.add_argument(
        "--settings",
        default=None,
        help="Settings file (default: from config / LLM_TRANSLATE_SETTINGS_PATH)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Log level (default: {config.logging.level})",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    providers_parser = subparsers.add_parser("providers", help="List providers and submodels")
    providers_parser.set_defaults(func=cmd_providers)

    # config command group
    config_parser = subparsers.add_parser("config", help="Show or change settings")
    config_sub = config_parser.add_subparsers(dest="config_command")

    show_parser = config_sub.add_parser("show", help="Print the effective settings")
    show_parser.set_defaults(func=cmd_config_show)

    setters = {
        "set-provider": ("set_provider", "Provider (openai, claude, cohere, google)"),
        "set-submodel": ("set_submodel", "Submodel id of the current provider"),
        "set-auto-mode": ("set_auto_mode", "Auto mode (none, responses, inputs, both)"),
        "set-prompt": ("set_translation_prompt", "Prompt template"),
        "set-target": ("set_target_language", "Target language"),
    }
    for name, (setter, value_help) in setters.items():
        setter_parser = config_sub.add_parser(name, help=f"Change: {value_help}")
        setter_parser.add_argument("value", help=value_help)
        setter_parser.set_defaults(func=cmd_config_set, setter=setter)

    # translate command
    translate_parser = subparsers.add_parser(
        "translate",
        help="Translate one message",
        description="Run one message through the same pipeline the host uses.",
    )
    translate_parser.add_argument("text", help="Message text")
    translate_parser.add_argument(
        "--direction",
        choices=[d.value for d in MessageDirection],
        default=MessageDirection.INCOMING.value,
        help="incoming (character) or outgoing (user) message",
    )
    translate_parser.add_argument("--target", default=None, help="Target language override")
    translate_parser.add_argument("--name", default="Character", help="Speaker name for {{char}}")
    translate_parser.add_argument("--user-name", default="User", help="Name for {{user}}")
    translate_parser.set_defaults(func=cmd_translate)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level or config.logging.level, config.logging.format)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
