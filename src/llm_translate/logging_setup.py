"""Logging setup for command-line use.

Library modules only ever call ``logging.getLogger(__name__)``; installing
handlers is left to the application.  When the adapter runs standalone (the
``llm-translate`` CLI) this module installs one stream handler on the
package logger.
"""

from __future__ import annotations

import logging
import sys

FORMATS = {
    "simple": "%(levelname)s: %(message)s",
    "detailed": "%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
}

PACKAGE_LOGGER = "llm_translate"


def configure_logging(level: str = "INFO", fmt: str = "simple") -> logging.Logger:
    """Attach a stderr handler to the package logger.

    Calling it again replaces the previous handler instead of adding a
    second one.

    Args:
        level: Level name (``"DEBUG"``, ``"INFO"``, ...).  Unknown names
               fall back to ``INFO``.
        fmt:   ``"simple"`` or ``"detailed"``.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_llm_translate_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(FORMATS.get(fmt, FORMATS["simple"])))
    handler._llm_translate_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)

    resolved = logging.getLevelName(level.upper())
    logger.setLevel(resolved if isinstance(resolved, int) else logging.INFO)
    return logger
