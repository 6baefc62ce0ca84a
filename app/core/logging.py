"""
Logging setup for the recommendation service.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Third-party loggers that drown out engine decisions at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio")


def setup_logging(level: str = "INFO", debug: bool = False) -> None:
    """
    Configure root logging to stdout.

    With debug enabled the engine loggers (app.domain.*) emit per-tier
    resolver decisions; third-party noise stays at WARNING either way.
    """
    root_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=root_level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if debug:
        logging.getLogger("app.domain").setLevel(logging.DEBUG)
