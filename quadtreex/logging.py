"""Logger factory for the `quadtreex` namespace, levelled by `RuntimeConfig`."""

from __future__ import annotations

import logging
from typing import Optional

from . import config as qx_config


def get_logger(name: Optional[str] = None, *, level: Optional[str] = None) -> logging.Logger:
    """Return `quadtreex.<name>` at the runtime log level unless `level` overrides it."""

    logger_name = "quadtreex" if name is None else f"quadtreex.{name}"
    runtime = qx_config.runtime_config()
    logger = logging.getLogger(logger_name)
    logger.setLevel((level or runtime.log_level).upper())
    return logger
