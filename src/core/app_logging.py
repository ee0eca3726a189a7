from __future__ import annotations

import logging
import sys
from typing import Union

_LOG = logging.getLogger(__name__)

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def init_logging(level: Union[int, str] = "INFO") -> bool:
    """Attach a stderr handler to the root logger once per process.

    stdout is reserved for the MCP stdio transport, so nothing may log there.
    Returns False when logging was already initialised.
    """
    if getattr(init_logging, "_initialised", False):
        return False

    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper() or "INFO")
        if not isinstance(resolved, int):
            resolved = logging.INFO
    else:
        resolved = int(level)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(resolved)

    setattr(init_logging, "_initialised", True)
    _LOG.debug("logging initialised at %s", logging.getLevelName(resolved))
    return True
