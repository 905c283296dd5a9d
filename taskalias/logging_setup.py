"""Logging setup for the taskalias command line.

Author: Gia Tenica*
*Gia Tenica is an anagram for Agentic AI. Gia is a fully autonomous AI researcher,
for more information see: https://giatenica.com
"""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from loguru import logger

from taskalias.config import LOGGING


def configure_logging(level: Optional[str] = None, *, sink: Optional[TextIO] = None) -> int:
    """Replace loguru's default sink with a compact stderr sink.

    Returns:
        The loguru handler id.
    """

    logger.remove()
    return logger.add(
        sink or sys.stderr,
        level=(level or LOGGING.LEVEL).upper(),
        format=LOGGING.FORMAT,
        colorize=None,
        backtrace=False,
        diagnose=False,
    )
