"""Logging-related utilities.

This module has *no* third-party dependencies; it is shared by
the controller, the remote client and the CLI.
"""

from __future__ import annotations

import logging
import re
import sys
import threading
from pathlib import Path
from typing import Optional


# A reasonably complete ANSI escape sequence matcher (CSI + single-character).
_ANSI_ESCAPE_RE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")

# Long unbroken base64 runs are media payloads, never useful in a log line.
_BASE64_RUN_RE = re.compile(r"[A-Za-z0-9+/]{120,}={0,2}")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def sanitize_log(text: str) -> str:
    """Sanitize text before it ends up in logs or alerts.

    - Normalize carriage returns (``\\r``) into newlines (``\\n``).
    - Strip ANSI escape sequences (colors, cursor movement, etc.).
    - Collapse long base64 runs into ``<base64: N chars>`` so encoded media
      payloads echoed back by the service do not flood the log.
    """

    if not text:
        return ""

    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _ANSI_ESCAPE_RE.sub("", text)
    return _BASE64_RUN_RE.sub(lambda m: f"<base64: {len(m.group(0))} chars>", text)


def default_log_dir() -> Path:
    return Path.home() / ".veritas_scan"


def setup_logging(log_dir: Optional[Path] = None, *, verbose: bool = False) -> Optional[str]:
    """Configure logging to a persistent file plus stdout.

    Returns the log file path, or None when the file could not be set up.
    An existing logging configuration (e.g. when embedded) is left alone.
    """

    try:
        log_dir = Path(log_dir) if log_dir is not None else default_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / "scan.log"

        root = logging.getLogger()
        if not root.handlers:
            logging.basicConfig(
                level=logging.DEBUG if verbose else logging.INFO,
                format=LOG_FORMAT,
                handlers=[
                    logging.FileHandler(str(log_path), mode="a", encoding="utf-8"),
                    logging.StreamHandler(sys.stdout),
                ],
            )

        # Hook unhandled exceptions so we get a traceback in the log file.
        def _excepthook(exc_type, exc, tb):
            logging.error("Unhandled exception", exc_info=(exc_type, exc, tb))
            sys.__excepthook__(exc_type, exc, tb)

        sys.excepthook = _excepthook

        def _thread_excepthook(args):
            logging.error("Unhandled thread exception", exc_info=(args.exc_type, args.exc_value, args.exc_traceback))

        threading.excepthook = _thread_excepthook

        return str(log_path)
    except OSError as e:
        logging.getLogger(__name__).warning("Could not set up log file: %s", e)
        return None
