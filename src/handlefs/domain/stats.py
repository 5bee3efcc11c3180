# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ..ports.storage import FileSnapshot
from .types import FileType

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)
NS_PER_MS = 1_000_000


def _to_datetime(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class _StatsBase:
    """
    Synthesized metadata snapshot.

    The storage provider only knows a file's size and last-modified time, so
    all four timestamps carry that one value and directories are all zeros.
    """

    _type: FileType = field(default=FileType.DIRECTORY, repr=False)
    atime: datetime = EPOCH
    mtime: datetime = EPOCH
    ctime: datetime = EPOCH
    birthtime: datetime = EPOCH

    def is_file(self) -> bool:
        return self._type is FileType.FILE

    def is_directory(self) -> bool:
        return self._type is FileType.DIRECTORY

    def is_block_device(self) -> bool:
        return False

    def is_character_device(self) -> bool:
        return False

    def is_symbolic_link(self) -> bool:
        return False

    def is_fifo(self) -> bool:
        return False

    def is_socket(self) -> bool:
        return False


@dataclass(frozen=True)
class Stats(_StatsBase):
    dev: int = 0
    ino: int = 0
    mode: int = 0o777
    nlink: int = 1
    uid: int = 0
    gid: int = 0
    rdev: int = 0
    size: int = 0
    blksize: int = 0
    blocks: int = 1
    atime_ms: float = 0.0
    mtime_ms: float = 0.0
    ctime_ms: float = 0.0
    birthtime_ms: float = 0.0

    @classmethod
    def create(cls, file: Optional[FileSnapshot] = None) -> Stats:
        if file is None:
            return cls()
        ms = float(file.last_modified)
        date = _to_datetime(file.last_modified)
        return cls(
            _type=FileType.FILE,
            atime=date,
            mtime=date,
            ctime=date,
            birthtime=date,
            size=file.size,
            blksize=file.size,
            atime_ms=ms,
            mtime_ms=ms,
            ctime_ms=ms,
            birthtime_ms=ms,
        )


@dataclass(frozen=True)
class BigIntStats(_StatsBase):
    dev: int = 0
    ino: int = 0
    mode: int = 0o777
    nlink: int = 1
    uid: int = 0
    gid: int = 0
    rdev: int = 0
    size: int = 0
    blksize: int = 0
    blocks: int = 1
    atime_ms: int = 0
    mtime_ms: int = 0
    ctime_ms: int = 0
    birthtime_ms: int = 0
    atime_ns: int = 0
    mtime_ns: int = 0
    ctime_ns: int = 0
    birthtime_ns: int = 0

    @classmethod
    def create(cls, file: Optional[FileSnapshot] = None) -> BigIntStats:
        if file is None:
            return cls()
        ms = int(file.last_modified)
        ns = ms * NS_PER_MS
        date = _to_datetime(ms)
        return cls(
            _type=FileType.FILE,
            atime=date,
            mtime=date,
            ctime=date,
            birthtime=date,
            size=file.size,
            blksize=file.size,
            atime_ms=ms,
            mtime_ms=ms,
            ctime_ms=ms,
            birthtime_ms=ms,
            atime_ns=ns,
            mtime_ns=ns,
            ctime_ns=ns,
            birthtime_ns=ns,
        )
