# Licensed under the Apache License, Version 2.0
from __future__ import annotations

import os
from enum import Enum
from typing import Union
from urllib.parse import ParseResult, SplitResult


class FileType(Enum):
    FILE = 0
    DIRECTORY = 1


PathLike = Union[str, bytes, bytearray, "os.PathLike[str]", ParseResult, SplitResult]
