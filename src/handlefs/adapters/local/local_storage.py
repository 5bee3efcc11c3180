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

import errno
import io
import logging
import os
import shutil
from pathlib import Path
from typing import AsyncIterator, BinaryIO, Optional, Set, Union

from ...ports.storage import (
    BytesLike,
    DirectoryHandle,
    FileHandle,
    FileSnapshot,
    Handle,
    StorageError,
    StorageErrorKind,
    SyncAccessHandle,
    WritableFileStream,
    check_entry_name,
)

logger = logging.getLogger(__name__)

# Files with an open sync access handle, by absolute path.
_LOCKED: Set[str] = set()


def _storage_error(exc: OSError, path: Path) -> StorageError:
    if isinstance(exc, FileNotFoundError):
        kind = StorageErrorKind.NOT_FOUND
    elif isinstance(exc, (IsADirectoryError, NotADirectoryError)):
        kind = StorageErrorKind.TYPE_MISMATCH
    elif isinstance(exc, FileExistsError):
        kind = StorageErrorKind.TYPE_MISMATCH
    elif exc.errno == errno.ENOTEMPTY:
        kind = StorageErrorKind.NOT_EMPTY
    else:
        kind = StorageErrorKind.INVALID_STATE
    return StorageError(kind, f"{path}: {exc.strerror or exc}")


class LocalFileHandle(FileHandle):
    """
    A regular file on local disk.

    Blocking I/O runs inline; files handled here are expected to be small
    enough that this doesn't matter for the event loop.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    @property
    def name(self) -> str:
        return self._path.name

    async def get_file(self) -> FileSnapshot:
        try:
            content = self._path.read_bytes()
            st = self._path.stat()
        except OSError as e:
            raise _storage_error(e, self._path) from e
        return FileSnapshot(self.name, content, st.st_mtime_ns // 1_000_000)

    async def create_writable(
        self, *, keep_existing_data: bool = False
    ) -> LocalWritableFileStream:
        self._ensure_unlocked()
        initial = b""
        if keep_existing_data:
            try:
                initial = self._path.read_bytes()
            except OSError as e:
                raise _storage_error(e, self._path) from e
        return LocalWritableFileStream(self._path, initial)

    async def create_sync_access_handle(self) -> LocalSyncAccessHandle:
        self._ensure_unlocked()
        try:
            fh = open(self._path, "r+b")
        except OSError as e:
            raise _storage_error(e, self._path) from e
        _LOCKED.add(str(self._path.resolve()))
        return LocalSyncAccessHandle(self._path, fh)

    def _ensure_unlocked(self) -> None:
        if str(self._path.resolve()) in _LOCKED:
            raise StorageError(
                StorageErrorKind.INVALID_STATE,
                f"{self._path} has an open sync access handle",
            )


class LocalWritableFileStream(WritableFileStream):
    """Buffers in memory and replaces the file's content on close."""

    def __init__(self, path: Path, initial: bytes) -> None:
        self._path = path
        self._buffer: Optional[io.BytesIO] = io.BytesIO(initial)
        self._state = "open"

    def _ensure_open(self) -> io.BytesIO:
        if self._state != "open" or self._buffer is None:
            raise StorageError(StorageErrorKind.INVALID_STATE, f"stream is {self._state}")
        return self._buffer

    async def write(self, data: BytesLike) -> None:
        self._ensure_open().write(bytes(data))

    async def seek(self, position: int) -> None:
        self._ensure_open().seek(position)

    async def truncate(self, size: int) -> None:
        buf = self._ensure_open()
        buf.truncate(size)
        if buf.tell() > size:
            buf.seek(size)

    async def close(self) -> None:
        if self._state != "open" or self._buffer is None:
            return
        data = self._buffer.getvalue()
        self._state = "closed"
        self._buffer = None
        try:
            self._path.write_bytes(data)
        except OSError as e:
            raise _storage_error(e, self._path) from e

    async def abort(self, reason: Optional[object] = None) -> None:
        if self._state != "open":
            return
        logger.debug("aborting write to %s: %s", self._path, reason)
        self._state = "aborted"
        self._buffer = None


class LocalSyncAccessHandle(SyncAccessHandle):
    def __init__(self, path: Path, fh: BinaryIO) -> None:
        self._path = path
        self._fh: Optional[BinaryIO] = fh

    def _file(self) -> BinaryIO:
        if self._fh is None:
            raise StorageError(StorageErrorKind.INVALID_STATE, "access handle is closed")
        return self._fh

    def read(self, size: int = -1, *, at: Optional[int] = None) -> bytes:
        fh = self._file()
        if at is not None:
            fh.seek(at)
        return fh.read(size)

    def write(self, data: BytesLike, *, at: Optional[int] = None) -> int:
        fh = self._file()
        if at is not None:
            fh.seek(at)
        return fh.write(bytes(data))

    def truncate(self, size: int) -> None:
        fh = self._file()
        fh.truncate(size)
        if fh.tell() > size:
            fh.seek(size)

    def get_size(self) -> int:
        return os.fstat(self._file().fileno()).st_size

    def flush(self) -> None:
        fh = self._file()
        fh.flush()
        os.fsync(fh.fileno())

    def close(self) -> None:
        if self._fh is None:
            return
        try:
            self._fh.close()
        finally:
            self._fh = None
            _LOCKED.discard(str(self._path.resolve()))


class LocalDirectoryHandle(DirectoryHandle):
    """A directory on local disk. Entries that are neither files nor dirs are skipped."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def path(self) -> Path:
        return self._path

    async def get_directory_handle(
        self, name: str, *, create: bool = False
    ) -> LocalDirectoryHandle:
        check_entry_name(name)
        target = self._path / name
        if target.is_dir():
            return LocalDirectoryHandle(target)
        if target.exists():
            raise StorageError(StorageErrorKind.TYPE_MISMATCH, f"{target} is a file")
        if not create:
            raise StorageError(StorageErrorKind.NOT_FOUND, f"{target} not found")
        try:
            target.mkdir(exist_ok=True)
        except OSError as e:
            raise _storage_error(e, target) from e
        logger.debug("created directory %s", target)
        return LocalDirectoryHandle(target)

    async def get_file_handle(
        self, name: str, *, create: bool = False
    ) -> LocalFileHandle:
        check_entry_name(name)
        target = self._path / name
        if target.is_dir():
            raise StorageError(StorageErrorKind.TYPE_MISMATCH, f"{target} is a directory")
        if target.is_file():
            return LocalFileHandle(target)
        if not create:
            raise StorageError(StorageErrorKind.NOT_FOUND, f"{target} not found")
        try:
            target.touch()
        except OSError as e:
            raise _storage_error(e, target) from e
        logger.debug("created file %s", target)
        return LocalFileHandle(target)

    async def remove_entry(self, name: str, *, recursive: bool = False) -> None:
        check_entry_name(name)
        target = self._path / name
        try:
            if target.is_dir():
                if recursive:
                    shutil.rmtree(target)
                else:
                    target.rmdir()
            else:
                target.unlink()
        except OSError as e:
            raise _storage_error(e, target) from e

    async def values(self) -> AsyncIterator[Handle]:
        try:
            entries = list(os.scandir(self._path))
        except OSError as e:
            raise _storage_error(e, self._path) from e
        for entry in entries:
            if entry.is_dir():
                yield LocalDirectoryHandle(entry.path)
            elif entry.is_file():
                yield LocalFileHandle(entry.path)
