from __future__ import annotations

import logging
import sys

_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def configure_logging(*, verbosity: int) -> tuple[int, list[logging.Handler]]:
    """
    Send log records to stderr at a level picked by ``-v`` count.

    Returns the previous root level and handlers for ``restore_logging``.
    """
    root = logging.getLogger()
    previous = (root.level, list(root.handlers))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    root.handlers = [handler]
    root.setLevel(_LEVELS.get(verbosity, logging.DEBUG))
    return previous


def restore_logging(previous: tuple[int, list[logging.Handler]]) -> None:
    level, handlers = previous
    root = logging.getLogger()
    root.handlers = handlers
    root.setLevel(level)
