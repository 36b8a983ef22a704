# backend/equipdb/logging_config.py
"""Process-wide logging setup, called once from create_app()."""

from __future__ import annotations

import logging
import sys

from .config import Settings

DEV_FORMAT = "%(levelname)-7s %(name)s: %(message)s"
PROD_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_HANDLER_NAME = "equipdb"


def configure_logging(settings: Settings) -> None:
    """
    Install one stream handler on the root logger. Calling this again
    replaces the handler instead of adding another.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter(PROD_FORMAT if settings.is_production else DEV_FORMAT)
    )
    root.addHandler(handler)
    root.setLevel(settings.log_level.upper())

    # SQL echo is far too chatty at debug level.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
