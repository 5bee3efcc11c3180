# Licensed under the Apache License, Version 2.0
import logging
import os
from typing import Optional

LOG_LEVEL_ENV = "HANDLEFS_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def resolve_level(level: Optional[str] = None) -> int:
    level_name = (level or os.getenv(LOG_LEVEL_ENV, "INFO")).upper()
    return getattr(logging, level_name, logging.INFO)


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging; `level` wins over HANDLEFS_LOG_LEVEL."""
    logging.basicConfig(level=resolve_level(level), format=LOG_FORMAT)
    logging.getLogger().setLevel(resolve_level(level))
