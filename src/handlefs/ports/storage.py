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

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Optional, Union

BytesLike = Union[bytes, bytearray, memoryview]


class HandleKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class StorageErrorKind(str, Enum):
    NOT_FOUND = "NotFoundError"
    TYPE_MISMATCH = "TypeMismatchError"
    NOT_EMPTY = "InvalidModificationError"
    INVALID_STATE = "InvalidStateError"
    INVALID_NAME = "InvalidNameError"


class StorageError(Exception):
    """
    Failure reported by a storage provider.

    Providers classify their own failures with `kind`; the filesystem layer
    only ever branches on the kind, never on the message.
    """

    def __init__(self, kind: StorageErrorKind, message: str = "") -> None:
        self.kind = kind
        super().__init__(f"{kind.value}: {message}" if message else kind.value)


def check_entry_name(name: str) -> None:
    """Raise INVALID_NAME for names a single directory level can't hold."""
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise StorageError(StorageErrorKind.INVALID_NAME, f"invalid name {name!r}")


@dataclass(frozen=True)
class FileSnapshot:
    """Immutable view of a file's content at the time `get_file()` ran."""

    name: str
    content: bytes
    last_modified: int  # ms since epoch

    @property
    def size(self) -> int:
        return len(self.content)


class Handle(ABC):
    """Common surface of directory and file handles."""

    @property
    @abstractmethod
    def name(self) -> str:
        raise NotImplementedError

    @property
    @abstractmethod
    def kind(self) -> HandleKind:
        raise NotImplementedError


class DirectoryHandle(Handle):
    """One directory level. Children are looked up by bare name only."""

    @property
    def kind(self) -> HandleKind:
        return HandleKind.DIRECTORY

    @abstractmethod
    async def get_directory_handle(
        self, name: str, *, create: bool = False
    ) -> DirectoryHandle:
        """Return the child directory `name`, creating it when `create` is set."""
        raise NotImplementedError

    @abstractmethod
    async def get_file_handle(self, name: str, *, create: bool = False) -> FileHandle:
        """Return the child file `name`, creating an empty one when `create` is set."""
        raise NotImplementedError

    @abstractmethod
    async def remove_entry(self, name: str, *, recursive: bool = False) -> None:
        """Remove the child `name`. Non-empty directories need `recursive`."""
        raise NotImplementedError

    @abstractmethod
    def values(self) -> AsyncIterator[Handle]:
        """Yield immediate children in provider-defined order."""
        raise NotImplementedError


class FileHandle(Handle):
    @property
    def kind(self) -> HandleKind:
        return HandleKind.FILE

    @abstractmethod
    async def get_file(self) -> FileSnapshot:
        raise NotImplementedError

    @abstractmethod
    async def create_writable(
        self, *, keep_existing_data: bool = False
    ) -> WritableFileStream:
        """Open a buffered write channel; nothing is visible until `close()`."""
        raise NotImplementedError

    @abstractmethod
    async def create_sync_access_handle(self) -> SyncAccessHandle:
        """Open an exclusive, in-place, synchronous read/write channel."""
        raise NotImplementedError


class WritableFileStream(ABC):
    """
    Buffered writer. `close()` commits, `abort()` discards.

    Closing an aborted stream is a no-op; writing to a closed or aborted
    stream raises StorageError(INVALID_STATE).
    """

    @abstractmethod
    async def write(self, data: BytesLike) -> None:
        raise NotImplementedError

    @abstractmethod
    async def seek(self, position: int) -> None:
        raise NotImplementedError

    @abstractmethod
    async def truncate(self, size: int) -> None:
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def abort(self, reason: Optional[object] = None) -> None:
        raise NotImplementedError

    async def __aenter__(self) -> WritableFileStream:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class SyncAccessHandle(ABC):
    """Synchronous in-place access. Only one may be open per file."""

    @abstractmethod
    def read(self, size: int = -1, *, at: Optional[int] = None) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def write(self, data: BytesLike, *, at: Optional[int] = None) -> int:
        raise NotImplementedError

    @abstractmethod
    def truncate(self, size: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_size(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def flush(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    def __enter__(self) -> SyncAccessHandle:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
