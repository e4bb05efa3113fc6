"""Console output for the watcher.

Two channels:

- Status lines on stdout (banner, observed SHA, change, pull), styled with
  ANSI colors only when the stream is a terminal or BRUN_FORCE_COLOR is set,
  so redirected output stays plain text.
- Diagnostics through stdlib ``logging`` on stderr, verbosity from BRUN_LOG
  (trace, debug, info, warning, error; default warning).

Usage:
    from brun.run_log import status, bold_cyan
    status(bold_cyan("Listening for changes from ..."))
"""

import logging
import os
import sys
from typing import Optional, TextIO

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_ENV_VAR = "BRUN_LOG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"

_LEVELS = {
    "trace": TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


# ---------------------------------------------------------------------------
# Color state
# ---------------------------------------------------------------------------

_ANSI = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
}


def _use_color(stream: TextIO) -> bool:
    if os.environ.get("BRUN_FORCE_COLOR", ""):
        return True
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def _styled(text: str, *styles: str, stream: Optional[TextIO] = None) -> str:
    """Apply ANSI styles to text. E.g. _styled("hi", "bold", "cyan")."""
    if not _use_color(stream or sys.stdout):
        return text
    prefix = "".join(_ANSI.get(s, "") for s in styles)
    return f"{prefix}{text}{_ANSI['reset']}"


def bold_cyan(text: str, stream: Optional[TextIO] = None) -> str:
    return _styled(text, "bold", "cyan", stream=stream)


def bold_green(text: str, stream: Optional[TextIO] = None) -> str:
    return _styled(text, "bold", "green", stream=stream)


def yellow(text: str, stream: Optional[TextIO] = None) -> str:
    return _styled(text, "yellow", stream=stream)


def dim(text: str, stream: Optional[TextIO] = None) -> str:
    return _styled(text, "dim", stream=stream)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def status(message: str, stream: Optional[TextIO] = None):
    """Print a status line on stdout."""
    print(message, file=stream or sys.stdout, flush=True)


def error(message: str, stream: Optional[TextIO] = None):
    """Print ``error: <message>`` on stderr."""
    out = stream or sys.stderr
    print(f"{_styled('error:', 'bold', 'red', stream=out)} {message}", file=out, flush=True)


def parse_level(value: str) -> int:
    """Map a BRUN_LOG value to a logging level (unknown -> WARNING)."""
    return _LEVELS.get((value or "").strip().lower(), logging.WARNING)


def setup_logging(level: Optional[str] = None):
    """Configure the root logger on stderr from *level* or BRUN_LOG."""
    if level is None:
        level = os.environ.get(LOG_ENV_VAR, "")
    logging.basicConfig(
        level=parse_level(level),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
