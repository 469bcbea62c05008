"""taskrelay logging configuration.

Every module logs through ``logging.getLogger(__name__)``; this module
configures the root handler once at daemon startup. The level comes from
``TASKRELAY_LOG_LEVEL`` unless an explicit override is passed.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from taskrelay.constants import DEFAULT_LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Third-party loggers that are noisy at INFO
_QUIET_LOGGERS = ("discord.gateway", "discord.client", "discord.http")


def setup_logging(level: Optional[str] = None) -> None:
    """Configure taskrelay logging.

    Args:
        level: Optional override for `TASKRELAY_LOG_LEVEL`.
    """
    if level:
        os.environ["TASKRELAY_LOG_LEVEL"] = level

    resolved = os.getenv("TASKRELAY_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
