"""Logging for repograph.

All modules log through children of the ``repograph`` logger, obtained with
``get_logger("view")``, ``get_logger("watching")`` and so on. Nothing is
attached to that logger until ``setup_logging`` runs, so records propagate
to whatever the embedding process configured.

``setup_logging`` picks one destination:

- the file named by ``LoggingConfig.file`` or the ``RG_LOG`` variable;
- otherwise stderr, but only when stderr is an interactive console. A host
  that owns the pipe never sees log noise.

Levels are picked by name (``level``) or by a 0-4 verbosity number
(``verbose``), the number winning. Two extra levels sit between the standard
ones: VERBOSE (15) and TRACE (5).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repograph.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

for _level, _name in ((TRACE, "TRACE"), (VERBOSE, "VERBOSE")):
    logging.addLevelName(_level, _name)

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"

logger = logging.getLogger("repograph")

_configured = False

_NAMED_LEVELS = {
    name: value
    for value, names in (
        (TRACE, ("TRACE",)),
        (logging.DEBUG, ("DEBUG",)),
        (VERBOSE, ("VERBOSE",)),
        (logging.INFO, ("INFO",)),
        (logging.WARNING, ("WARNING", "WARN")),
        (logging.ERROR, ("ERROR",)),
        (logging.CRITICAL, ("CRITICAL",)),
    )
    for name in names
}

# Index is the verbosity number; anything past the end means TRACE
_VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)


class _LowercaseLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Effective level for ``config``; INFO when nothing is set."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        index = max(config.verbose, 0)
        return _VERBOSITY_LEVELS[index] if index < len(_VERBOSITY_LEVELS) else TRACE
    if config.level:
        return _NAMED_LEVELS.get(config.level.upper(), logging.INFO)
    return logging.INFO


def _log_file(config: LoggingConfig | None) -> str | None:
    path = (config.file if config else None) or os.environ.get("RG_LOG")
    return os.path.expanduser(path) if path else None


def _attach(handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(_LowercaseLevelFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the ``repograph`` logger once; later calls do nothing."""
    global _configured
    if _configured:
        return
    _configured = True

    level = resolve_level(config)
    logger.setLevel(level)

    path = _log_file(config)
    if path is not None:
        try:
            _attach(logging.FileHandler(path, mode="a", encoding="utf-8"), level)
            return
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[repograph] Cannot write log file {path}: {e}", file=sys.stderr)

    if sys.stderr.isatty():
        _attach(logging.StreamHandler(sys.stderr), level)


def get_logger(name: str | None = None) -> logging.Logger:
    """The ``repograph`` logger, or its child ``repograph.<name>``."""
    return logger.getChild(name) if name else logger
