"""Settings persistence for the Configuration Store.

The host keeps every extension's settings in one mapping keyed by extension
name; this adapter owns the ``llm_translate`` block inside it.  The block is
read once at startup and written back (debounced) after every settings
change.

Two backends are provided:

``JsonFileSettingsPersistence``
    Reads and writes the host's JSON settings file.  Blocks belonging to
    other extensions are preserved on every write.  A missing or corrupt
    file reads as "nothing persisted yet" so that the store falls back to
    defaults instead of refusing to start.  Before the first write over an
    unreadable file, that file is moved aside to ``<name>.bak`` so the other
    extensions' blocks can still be recovered by hand.

``InMemorySettingsPersistence``
    Keeps the block in a dict.  Used by tests and by hosts that persist
    settings themselves.

``DebouncedSaver`` sits between the store and a backend: settings-UI
handlers call ``schedule()`` on every change and a single write happens
once the changes stop for ``delay_seconds``.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION_NAME = "llm_translate"


class SettingsPersistence(Protocol):
    """Storage for the adapter's settings block."""

    def read(self) -> Mapping[str, Any] | None:
        """Return the persisted block, or ``None`` when nothing is stored."""

    def write(self, settings: Mapping[str, Any]) -> None:
        """Replace the persisted block with ``settings``."""


class InMemorySettingsPersistence:
    """Dict-backed persistence.

    Attributes:
        data:        The stored block (``None`` until the first write).
        write_count: Number of ``write`` calls, handy for debounce tests.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self.data: dict[str, Any] | None = dict(initial) if initial is not None else None
        self.write_count = 0

    def read(self) -> Mapping[str, Any] | None:
        return dict(self.data) if self.data is not None else None

    def write(self, settings: Mapping[str, Any]) -> None:
        self.data = dict(settings)
        self.write_count += 1


class JsonFileSettingsPersistence:
    """Persist the settings block inside the host's JSON settings file.

    The file holds a top-level object keyed by extension name::

        {
          "llm_translate": {"provider": "openai", ...},
          "some_other_extension": {...}
        }

    Writes go to a sibling temporary file which then replaces the original,
    so a crash mid-write never leaves a truncated settings file behind.
    """

    def __init__(self, path: Path | str, extension_name: str = DEFAULT_EXTENSION_NAME) -> None:
        self.path = Path(path)
        self.extension_name = extension_name

    def read(self) -> Mapping[str, Any] | None:
        document, _ = self._read_document()
        block = document.get(self.extension_name)
        if block is None:
            return None
        if not isinstance(block, dict):
            logger.warning(
                "Settings block %r in %s is not an object; ignoring it.",
                self.extension_name,
                self.path,
            )
            return None
        return block

    def write(self, settings: Mapping[str, Any]) -> None:
        document, readable = self._read_document()
        if not readable:
            backup = self.path.with_name(self.path.name + ".bak")
            os.replace(self.path, backup)
            logger.warning("Moved unreadable settings file %s to %s", self.path, backup)
        document[self.extension_name] = dict(settings)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(
            json.dumps(document, ensure_ascii=False, indent=2, sort_keys=True),
            encoding="utf-8",
        )
        os.replace(tmp_path, self.path)
        logger.debug("Wrote %r settings to %s", self.extension_name, self.path)

    def _read_document(self) -> tuple[dict[str, Any], bool]:
        """Load the whole settings document.

        Returns ``(document, readable)``.  A missing file is ``({}, True)``;
        a file that exists but is not a JSON object is ``({}, False)``.
        """
        if not self.path.exists():
            return {}, True
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Cannot read settings file %s (%s); using defaults.", self.path, exc)
            return {}, False
        if not isinstance(document, dict):
            logger.warning(
                "Settings file %s does not hold a JSON object; using defaults.", self.path
            )
            return {}, False
        return document, True


class DebouncedSaver:
    """Collapse bursts of settings changes into a single write.

    ``schedule()`` is fire-and-forget: it (re)starts a timer and returns
    immediately.  When the timer fires, the most recent value returned by
    the ``source`` callable is written.  A failed write is logged and never
    propagated back to the settings handler that triggered it.

    Args:
        persistence:   Backend that receives the write.
        source:        Zero-argument callable returning the block to persist.
                       Called at write time so the latest value always wins.
        delay_seconds: Quiet period before writing.  ``0`` writes
                       synchronously inside ``schedule()``.
    """

    def __init__(
        self,
        persistence: SettingsPersistence,
        source: Callable[[], Mapping[str, Any]],
        delay_seconds: float = 1.0,
    ) -> None:
        self._persistence = persistence
        self._source = source
        self._delay = delay_seconds
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    @property
    def pending(self) -> bool:
        """True while a write is scheduled but has not happened yet."""
        with self._lock:
            return self._timer is not None

    def schedule(self) -> None:
        """Request a write after the quiet period, replacing any pending one."""
        if self._delay <= 0:
            self._write()
            return

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> None:
        """Cancel the pending timer, if any, and write immediately."""
        with self._lock:
            had_pending = self._timer is not None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if had_pending:
            self._write()

    def cancel(self) -> None:
        """Drop a pending write without performing it."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        self._write()

    def _write(self) -> None:
        try:
            self._persistence.write(self._source())
        except Exception:
            logger.warning("Settings write failed; changes remain in memory.", exc_info=True)
