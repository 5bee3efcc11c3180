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

import asyncio
import logging
import time
from typing import Any, AsyncIterator, Dict, Mapping, Optional, Union

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

Tree = Mapping[str, Union["Tree", bytes, str]]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _write_at(buf: bytearray, position: int, data: BytesLike) -> int:
    chunk = bytes(data)
    if position > len(buf):
        buf.extend(b"\x00" * (position - len(buf)))
    buf[position : position + len(chunk)] = chunk
    return len(chunk)


class MemoryFileHandle(FileHandle):
    def __init__(
        self, name: str, content: BytesLike = b"", last_modified: Optional[int] = None
    ) -> None:
        self._name = name
        self._content = bytearray(content)
        self._last_modified = _now_ms() if last_modified is None else last_modified
        self._locked = False

    @property
    def name(self) -> str:
        return self._name

    async def get_file(self) -> FileSnapshot:
        return FileSnapshot(self._name, bytes(self._content), self._last_modified)

    async def create_writable(
        self, *, keep_existing_data: bool = False
    ) -> MemoryWritableFileStream:
        self._ensure_unlocked()
        initial = bytes(self._content) if keep_existing_data else b""
        return MemoryWritableFileStream(self, initial)

    async def create_sync_access_handle(self) -> MemorySyncAccessHandle:
        self._ensure_unlocked()
        self._locked = True
        return MemorySyncAccessHandle(self)

    def _ensure_unlocked(self) -> None:
        if self._locked:
            raise StorageError(
                StorageErrorKind.INVALID_STATE,
                f"{self._name} has an open sync access handle",
            )

    def _commit(self, data: BytesLike) -> None:
        self._content = bytearray(data)
        self._touch()

    def _touch(self) -> None:
        self._last_modified = _now_ms()


class MemoryWritableFileStream(WritableFileStream):
    def __init__(self, file: MemoryFileHandle, initial: bytes) -> None:
        self._file = file
        self._buffer = bytearray(initial)
        self._position = 0
        self._state = "open"

    def _ensure_open(self) -> None:
        if self._state != "open":
            raise StorageError(StorageErrorKind.INVALID_STATE, f"stream is {self._state}")

    async def write(self, data: BytesLike) -> None:
        self._ensure_open()
        # Yield once, as a real provider would while it performs I/O.
        await asyncio.sleep(0)
        self._ensure_open()
        self._position += _write_at(self._buffer, self._position, data)

    async def seek(self, position: int) -> None:
        self._ensure_open()
        self._position = position

    async def truncate(self, size: int) -> None:
        self._ensure_open()
        if size < len(self._buffer):
            del self._buffer[size:]
        else:
            self._buffer.extend(b"\x00" * (size - len(self._buffer)))
        self._position = min(self._position, size)

    async def close(self) -> None:
        if self._state != "open":
            return
        self._state = "closed"
        self._file._commit(self._buffer)

    async def abort(self, reason: Optional[object] = None) -> None:
        if self._state != "open":
            return
        logger.debug("aborting write to %s: %s", self._file.name, reason)
        self._state = "aborted"
        self._buffer = bytearray()


class MemorySyncAccessHandle(SyncAccessHandle):
    def __init__(self, file: MemoryFileHandle) -> None:
        self._file = file
        self._position = 0
        self._closed = False

    def _ensure_open(self) -> None:
        if self._closed:
            raise StorageError(StorageErrorKind.INVALID_STATE, "access handle is closed")

    def read(self, size: int = -1, *, at: Optional[int] = None) -> bytes:
        self._ensure_open()
        start = self._position if at is None else at
        content = self._file._content
        end = len(content) if size < 0 else start + size
        chunk = bytes(content[start:end])
        self._position = start + len(chunk)
        return chunk

    def write(self, data: BytesLike, *, at: Optional[int] = None) -> int:
        self._ensure_open()
        start = self._position if at is None else at
        written = _write_at(self._file._content, start, data)
        self._position = start + written
        self._file._touch()
        return written

    def truncate(self, size: int) -> None:
        self._ensure_open()
        content = self._file._content
        if size < len(content):
            del content[size:]
        else:
            content.extend(b"\x00" * (size - len(content)))
        self._position = min(self._position, size)
        self._file._touch()

    def get_size(self) -> int:
        self._ensure_open()
        return len(self._file._content)

    def flush(self) -> None:
        self._ensure_open()

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._file._locked = False


class MemoryDirectoryHandle(DirectoryHandle):
    """
    Directory node of an in-process handle tree.

    Children keep insertion order, which is what `values()` yields.

    Example:
        MemoryDirectoryHandle.from_tree({
            "readme.txt": "Hello, world!",
            "docs": {"guide.txt": b"A guide"},
        })
    """

    def __init__(self, name: str = "") -> None:
        self._name = name
        self._children: Dict[str, Handle] = {}

    @property
    def name(self) -> str:
        return self._name

    @classmethod
    def from_tree(cls, tree: Tree, name: str = "") -> MemoryDirectoryHandle:
        """Build a handle tree: mappings are directories, bytes/str are files."""
        root = cls(name)
        for child_name, node in tree.items():
            check_entry_name(child_name)
            if isinstance(node, Mapping):
                root._children[child_name] = cls.from_tree(node, child_name)
            else:
                data = node.encode("utf-8") if isinstance(node, str) else bytes(node)
                root._children[child_name] = MemoryFileHandle(child_name, data)
        return root

    def to_tree(self) -> Dict[str, Any]:
        """Inverse of `from_tree`, with file content as bytes."""
        out: Dict[str, Any] = {}
        for name, child in self._children.items():
            if isinstance(child, MemoryDirectoryHandle):
                out[name] = child.to_tree()
            else:
                out[name] = bytes(child._content)  # type: ignore[attr-defined]
        return out

    async def get_directory_handle(
        self, name: str, *, create: bool = False
    ) -> MemoryDirectoryHandle:
        check_entry_name(name)
        child = self._children.get(name)
        if child is None:
            if not create:
                raise StorageError(StorageErrorKind.NOT_FOUND, f"{name} not found")
            child = MemoryDirectoryHandle(name)
            self._children[name] = child
            logger.debug("created directory %s", name)
        if not isinstance(child, MemoryDirectoryHandle):
            raise StorageError(StorageErrorKind.TYPE_MISMATCH, f"{name} is a file")
        return child

    async def get_file_handle(
        self, name: str, *, create: bool = False
    ) -> MemoryFileHandle:
        check_entry_name(name)
        child = self._children.get(name)
        if child is None:
            if not create:
                raise StorageError(StorageErrorKind.NOT_FOUND, f"{name} not found")
            child = MemoryFileHandle(name)
            self._children[name] = child
            logger.debug("created file %s", name)
        if not isinstance(child, MemoryFileHandle):
            raise StorageError(StorageErrorKind.TYPE_MISMATCH, f"{name} is a directory")
        return child

    async def remove_entry(self, name: str, *, recursive: bool = False) -> None:
        check_entry_name(name)
        child = self._children.get(name)
        if child is None:
            raise StorageError(StorageErrorKind.NOT_FOUND, f"{name} not found")
        if isinstance(child, MemoryDirectoryHandle) and child._children and not recursive:
            raise StorageError(StorageErrorKind.NOT_EMPTY, f"{name} is not empty")
        del self._children[name]

    async def values(self) -> AsyncIterator[Handle]:
        # Snapshot so removals during iteration don't break it.
        for child in list(self._children.values()):
            yield child
