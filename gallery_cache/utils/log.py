"""
Logging for the gallery cache.

Messages carry an inline ``[CATEGORY]`` tag (``[SCAN]``, ``[CACHE]``,
``[TOKEN]`` ...) which the console handler colours.  Inside GitHub Actions
warnings and errors are turned into workflow annotations instead.
"""

import logging
import os
import re
from pathlib import Path

try:
    import colorlog
    _COLORLOG_AVAILABLE = True
except ImportError:
    _COLORLOG_AVAILABLE = False

log = logging.getLogger("gallery-cache")

_CONSOLE_FMT = "%(asctime)s [%(levelname)s] %(message)s"
_CONSOLE_DATEFMT = "%H:%M:%S"
_FILE_FMT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_RESET = "\033[0m"
_TAG_COLOURS: dict[str, str] = {
    "SCAN":   "\033[1;32m",
    "FOLDER": "\033[37m",
    "LIST":   "\033[34m",
    "SKIP":   "\033[90m",
    "CACHE":  "\033[36m",
    "FRESH":  "\033[32m",
    "STALE":  "\033[33m",
    "TOKEN":  "\033[1;33m",
    "DENY":   "\033[1;31m",
    "ERR":    "\033[1;31m",
}
_TAG_RE = re.compile(r"\[([A-Z]+)\]")

_ANNOTATIONS: dict[int, str] = {
    logging.WARNING:  "::warning::",
    logging.ERROR:    "::error::",
    logging.CRITICAL: "::error::",
}


def highlight_tags(msg: str) -> str:
    """Wrap every known ``[CATEGORY]`` tag in *msg* in its ANSI colour."""
    def _paint(match: re.Match) -> str:
        colour = _TAG_COLOURS.get(match.group(1))
        return f"{colour}{match.group(0)}{_RESET}" if colour else match.group(0)
    return _TAG_RE.sub(_paint, msg)


def running_in_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


class _TagFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return highlight_tags(super().format(record))


class _ActionsFormatter(logging.Formatter):
    """Prefix warnings and errors with the matching workflow command."""

    def format(self, record: logging.LogRecord) -> str:
        return _ANNOTATIONS.get(record.levelno, "") + super().format(record)


if _COLORLOG_AVAILABLE:
    class _ColourTagFormatter(colorlog.ColoredFormatter):
        def format(self, record: logging.LogRecord) -> str:
            return highlight_tags(super().format(record))


def _console_handler() -> logging.Handler:
    if running_in_actions():
        handler = logging.StreamHandler()
        handler.setFormatter(_ActionsFormatter(_CONSOLE_FMT, datefmt=_CONSOLE_DATEFMT))
    elif _COLORLOG_AVAILABLE:
        handler = colorlog.StreamHandler()
        handler.setFormatter(_ColourTagFormatter(
            "%(log_color)s%(asctime)s [%(levelname)s]%(reset)s %(message)s",
            datefmt=_CONSOLE_DATEFMT,
            log_colors={
                "DEBUG":    "cyan",
                "INFO":     "green",
                "WARNING":  "yellow",
                "ERROR":    "red",
                "CRITICAL": "bold_red",
            },
        ))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(_TagFormatter(_CONSOLE_FMT, datefmt=_CONSOLE_DATEFMT))
    return handler


def setup_logging(debug: bool = False, log_file: str | None = None) -> None:
    """Configure the package logger.

    Parameters
    ----------
    debug : bool
        Log at DEBUG instead of INFO on the console.
    log_file : str | None
        Also append every record (DEBUG and up) to this file.
    """
    log.setLevel(logging.DEBUG if debug else logging.INFO)
    log.handlers.clear()
    log.addHandler(_console_handler())

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_FILE_FMT, datefmt=_FILE_DATEFMT))
        log.addHandler(fh)
        log.info("Logging to file: %s", path.resolve())
