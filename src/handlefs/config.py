# Licensed under the Apache License, Version 2.0
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .adapters.local.local_storage import LocalDirectoryHandle
from .adapters.memory.memory_storage import MemoryDirectoryHandle
from .ports.storage import DirectoryHandle

STORAGE_DIR_ENV = "HANDLEFS_STORAGE_DIR"

logger = logging.getLogger(__name__)

_memory_root: Optional[MemoryDirectoryHandle] = None


def get_storage_root() -> DirectoryHandle:
    """
    Return the process-wide storage root.

    With HANDLEFS_STORAGE_DIR set this is that directory on disk (created on
    demand); otherwise one in-memory tree shared by the whole process.
    """
    global _memory_root
    storage_dir = os.getenv(STORAGE_DIR_ENV)
    if storage_dir:
        path = Path(storage_dir).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        logger.debug("using local storage root %s", path)
        return LocalDirectoryHandle(path)
    if _memory_root is None:
        _memory_root = MemoryDirectoryHandle()
    return _memory_root


def reset_storage_root() -> None:
    global _memory_root
    _memory_root = None
