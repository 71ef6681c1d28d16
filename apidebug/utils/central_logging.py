"""
Central logging for the API debug server.

stdout carries the JSON-RPC stream, so every handler writes to stderr or to
an optional rotating file. Category loggers live under ``apidebug.*``:
catalog, executor, auth, mcp, http.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

FMT = "%(asctime)s|%(levelname)-8s|%(name)-25s|%(message)s"
FMT_DETAIL = "%(asctime)s|%(levelname)-8s|%(name)-25s|%(filename)s:%(lineno)d|%(message)s"
DATE_FMT = "%Y-%m-%d %H:%M:%S"
MAX_BYTES, BACKUP = 10 * 1024 * 1024, 5

_init = {"central": False}


class ColorFormatter(logging.Formatter):
    """Formatter with ANSI colors for terminals."""
    C = {10: '\033[36m', 20: '\033[32m', 30: '\033[33m', 40: '\033[31m', 50: '\033[35m'}
    R = '\033[0m'

    def format(self, r):
        return f"{self.C.get(r.levelno, '')}{super().format(r)}{self.R}"


def _file_handler(path: str) -> RotatingFileHandler:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    h = RotatingFileHandler(path, maxBytes=MAX_BYTES, backupCount=BACKUP, encoding="utf-8")
    h.setLevel(logging.DEBUG)
    h.setFormatter(logging.Formatter(FMT_DETAIL, DATE_FMT))
    return h


def setup_logging(level: str | int = logging.INFO, log_file: Optional[str] = None) -> None:
    """Initialize logging once at startup. Later calls are no-ops."""
    if _init["central"]:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger("apidebug")
    root.setLevel(logging.DEBUG)
    root.propagate = False

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    formatter_cls = ColorFormatter if sys.stderr.isatty() else logging.Formatter
    console.setFormatter(formatter_cls(FMT, DATE_FMT))
    root.addHandler(console)

    if log_file:
        root.addHandler(_file_handler(log_file))

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _init["central"] = True
    root.debug("Logging ready | level=%s | file=%s", logging.getLevelName(level), log_file or "-")


def reset_logging() -> None:
    """Drop installed handlers so ``setup_logging`` can run again."""
    root = logging.getLogger("apidebug")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    _init["central"] = False
