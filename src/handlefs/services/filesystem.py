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
from typing import Any, List, Mapping, Optional, Union

from ..config import get_storage_root
from ..domain.dirent import Dirent
from ..domain.errors import (
    AbortError,
    ErrorCode,
    FsError,
    create_error,
    describe_path,
    is_type_mismatch,
)
from ..domain.paths import (
    join_paths,
    paths_to_dirs_and_filename,
    split_path,
    split_path_to_dirs_and_filename,
)
from ..domain.stats import BigIntStats, Stats
from ..domain.text_codec import decode_buffer, encode_string
from ..domain.types import PathLike
from ..ports.storage import (
    DirectoryHandle,
    FileHandle,
    FileSnapshot,
    StorageError,
    StorageErrorKind,
    WritableFileStream,
)
from .navigator import HandleNavigator
from .options import (
    FilesystemOptions,
    MkdirOptions,
    ReaddirOptions,
    ReadFileOptions,
    RmdirOptions,
    StatOptions,
    WriteFileOptions,
)

logger = logging.getLogger(__name__)

WriteData = Union[bytes, bytearray, memoryview, str, FileSnapshot, Any]


def _to_bytes(data: WriteData, encoding: Optional[str]) -> bytes:
    if isinstance(data, str):
        return encode_string(data, encoding)
    if isinstance(data, FileSnapshot):
        return data.content
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    read = getattr(data, "read", None)
    if callable(read):
        chunk = read()
        return encode_string(chunk, encoding) if isinstance(chunk, str) else bytes(chunk)
    raise TypeError(f"Unsupported data type for write_file: {type(data).__name__}")


class HandleFilesystem:
    """
    POSIX-style async filesystem over a handle-based storage provider.

    Every call normalizes its path, re-resolves handles from the session root
    and translates provider failures into FsError codes.

    Example:
        fs = HandleFilesystem(MemoryDirectoryHandle())
        await fs.mkdir("a/b", {"recursive": True})
        await fs.write_file("a/b/c.txt", "hello")
        await fs.read_file("a/b/c.txt", "utf8")  # -> "hello"
    """

    def __init__(
        self,
        options: Union[FilesystemOptions, Mapping[str, Any], PathLike, DirectoryHandle, None] = None,
        *,
        use_sync_access_handle: Optional[bool] = None,
        navigator: Optional[HandleNavigator] = None,
    ) -> None:
        if isinstance(options, (FilesystemOptions, Mapping)) or options is None:
            opts = FilesystemOptions.coerce(options)
        else:
            opts = FilesystemOptions(root=options)
        if use_sync_access_handle is not None:
            opts = FilesystemOptions(opts.root, bool(use_sync_access_handle))

        self._navigator = navigator or HandleNavigator()
        self._use_sync_access_handle = opts.use_sync_access_handle
        self._root_locator: PathLike = ""
        self._root_handle: Optional[DirectoryHandle] = None
        if isinstance(opts.root, DirectoryHandle):
            self._root_handle = opts.root
        else:
            self._root_locator = opts.root

    @property
    def use_sync_access_handle(self) -> bool:
        return self._use_sync_access_handle

    async def root(self) -> DirectoryHandle:
        """The session root, resolved against the storage root on first use."""
        if self._root_handle is None:
            self._root_handle = await self._navigator.resolve_directory(
                split_path(self._root_locator),
                get_storage_root(),
                create=True,
                path=self._root_locator,
            )
        return self._root_handle

    # --- files --------------------------------------------------------------

    async def read_file(
        self, path: PathLike, options: Union[ReadFileOptions, Mapping[str, Any], str, None] = None
    ) -> Union[bytes, str]:
        """Return the file's bytes, or decoded text when an encoding is given."""
        opts = ReadFileOptions.coerce(options)
        logger.debug("read_file %s encoding=%s", describe_path(path), opts.encoding)
        handle = await self._get_file_handle(path)
        content = (await self._snapshot(handle, path, "read")).content
        if opts.encoding:
            return decode_buffer(content, opts.encoding)
        return content

    async def read_bytes(self, path: PathLike) -> bytes:
        return await self.read_file(path)  # type: ignore[return-value]

    async def read_text(self, path: PathLike, encoding: str = "utf8") -> str:
        return await self.read_file(path, ReadFileOptions(encoding=encoding))  # type: ignore[return-value]

    async def write_file(
        self,
        path: PathLike,
        data: WriteData,
        options: Union[WriteFileOptions, Mapping[str, Any], str, None] = None,
    ) -> None:
        """
        Create or truncate `path` and write `data` to it.

        flag "a" appends instead, flag "x" raises EEXIST when the file is
        already there. The parent directory must exist.
        """
        opts = WriteFileOptions.coerce(options)
        if isinstance(opts.flag, int):
            raise NotImplementedError("Not implemented: number flag")
        logger.debug("write_file %s flag=%s", describe_path(path), opts.flag)

        payload = _to_bytes(data, opts.encoding)
        if opts.exclusive and await self.exist(path):
            raise create_error(ErrorCode.EEXIST, path, "open")
        handle = await self._get_file_handle(path, create=True)

        if self._use_sync_access_handle:
            await self._write_with_sync_access(handle, payload, opts, path)
        else:
            await self._write_with_stream(handle, payload, opts, path)

    async def _write_with_sync_access(
        self, handle: FileHandle, payload: bytes, opts: WriteFileOptions, path: PathLike
    ) -> None:
        if opts.signal is not None and opts.signal.is_set():
            raise AbortError(describe_path(path))
        with await handle.create_sync_access_handle() as access:
            if opts.append:
                access.write(payload, at=access.get_size())
            else:
                access.truncate(0)
                access.write(payload, at=0)
            if opts.flush:
                access.flush()

    async def _write_with_stream(
        self, handle: FileHandle, payload: bytes, opts: WriteFileOptions, path: PathLike
    ) -> None:
        writable = await handle.create_writable(keep_existing_data=opts.append)
        signal = opts.signal
        aborted = False

        async def abort(reason: str) -> None:
            nonlocal aborted
            aborted = True
            await writable.abort(reason)

        async def abort_when_set(event: asyncio.Event) -> None:
            await event.wait()
            await abort("signal set during write")

        watcher = asyncio.ensure_future(abort_when_set(signal)) if signal is not None else None
        try:
            if signal is not None and signal.is_set():
                await abort("signal set before write")
            else:
                await self._stream_payload(handle, writable, payload, opts.append)
        except BaseException as e:
            # Only a write that ran to completion may commit.
            await writable.abort(e)
            if aborted and isinstance(e, StorageError):
                raise AbortError(describe_path(path)) from e
            raise
        else:
            await writable.close()
        finally:
            if watcher is not None:
                watcher.cancel()
        if aborted:
            raise AbortError(describe_path(path))

    async def _stream_payload(
        self, handle: FileHandle, writable: WritableFileStream, payload: bytes, append: bool
    ) -> None:
        if append:
            size = (await handle.get_file()).size
            await writable.seek(size)
        await writable.write(payload)

    async def unlink(self, path: PathLike) -> None:
        logger.debug("unlink %s", describe_path(path))
        dirs, filename = split_path_to_dirs_and_filename(path)
        parent = await self._navigator.resolve_directory(dirs, await self.root(), path=path)
        try:
            await parent.get_file_handle(filename)
        except StorageError as e:
            code = ErrorCode.EPERM if is_type_mismatch(e) else ErrorCode.ENOENT
            raise create_error(code, path, "unlink", e) from e
        try:
            await parent.remove_entry(filename)
        except StorageError as e:
            raise create_error(ErrorCode.ENOENT, path, "unlink", e) from e

    # --- directories --------------------------------------------------------

    async def readdir(
        self, path: PathLike, options: Union[ReaddirOptions, Mapping[str, Any], str, None] = None
    ) -> Union[List[str], List[bytes], List[Dirent]]:
        """
        List a directory.

        Returns names, UTF-8 name bytes (encoding "buffer") or Dirents
        (with_file_types). Recursive listings put each directory before its
        contents; nested names are joined with "/".
        """
        opts = ReaddirOptions.coerce(options)
        logger.debug("readdir %s recursive=%s", describe_path(path), opts.recursive)
        segments = split_path(path)
        handle = await self._navigator.resolve_directory(segments, await self.root(), path=path)
        try:
            if opts.with_file_types:
                return await self._navigator.list_entries(
                    handle, join_paths(segments), recursive=opts.recursive
                )
            names = await self._navigator.list_names(handle, recursive=opts.recursive)
        except StorageError as e:
            raise create_error(ErrorCode.ENOENT, path, "scandir", e) from e
        if opts.encoding == "buffer":
            return [name.encode("utf-8") for name in names]
        return names

    async def mkdir(
        self, path: PathLike, options: Union[MkdirOptions, Mapping[str, Any], None] = None
    ) -> Optional[str]:
        """
        Create a directory.

        Non-recursive: the parent must exist and the leaf must not; returns
        None. Recursive: creates what is missing and returns the canonical
        path ("." for the root).
        """
        opts = MkdirOptions.coerce(options)
        logger.debug("mkdir %s recursive=%s", describe_path(path), opts.recursive)
        segments = split_path(path)
        if opts.recursive:
            if not segments:
                return "."
            await self._navigator.resolve_directory(
                segments, await self.root(), create=True, path=path
            )
            return join_paths(segments)

        dirs, filename = paths_to_dirs_and_filename(segments)
        parent = await self._navigator.resolve_directory(dirs, await self.root(), path=path)
        if await self._is_dir_exist_on_handle(parent, filename):
            raise create_error(ErrorCode.EEXIST, path, "mkdir")
        try:
            await parent.get_directory_handle(filename, create=True)
        except StorageError as e:
            raise create_error(ErrorCode.ENOENT, path, "mkdir", e) from e
        return None

    async def rmdir(
        self, path: PathLike, options: Union[RmdirOptions, Mapping[str, Any], None] = None
    ) -> None:
        opts = RmdirOptions.coerce(options)
        logger.debug("rmdir %s recursive=%s", describe_path(path), opts.recursive)
        dirs, filename = split_path_to_dirs_and_filename(path)
        parent = await self._navigator.resolve_directory(dirs, await self.root(), path=path)
        try:
            await parent.get_directory_handle(filename)
        except StorageError as e:
            raise create_error(ErrorCode.ENOENT, path, "rmdir", e) from e
        try:
            await parent.remove_entry(filename, recursive=opts.recursive)
        except StorageError as e:
            code = ErrorCode.ENOENT if e.kind is StorageErrorKind.NOT_FOUND else ErrorCode.ENOTEMPTY
            raise create_error(code, path, "rmdir", e) from e

    # --- metadata -----------------------------------------------------------

    async def exist(self, path: PathLike) -> bool:
        """
        True if a file is at `path`, or a directory is (wrong kind still
        counts as existing). The root itself is not a file and reports False.
        """
        try:
            dirs, filename = split_path_to_dirs_and_filename(path)
            parent = await self._navigator.resolve_directory(dirs, await self.root(), path=path)
        except FsError:
            return False
        try:
            await parent.get_file_handle(filename)
        except StorageError as e:
            return is_type_mismatch(e)
        return True

    async def stat(
        self, path: PathLike, options: Union[StatOptions, Mapping[str, Any], None] = None
    ) -> Union[Stats, BigIntStats]:
        opts = StatOptions.coerce(options)
        stats_cls = BigIntStats if opts.bigint else Stats
        segments = split_path(path)
        if not segments:
            return stats_cls.create()
        dirs, filename = paths_to_dirs_and_filename(segments)
        # Domain errors from the parent walk propagate as they are.
        parent = await self._navigator.resolve_directory(dirs, await self.root(), path=path)
        try:
            handle = await parent.get_file_handle(filename)
            snapshot = await handle.get_file()
        except StorageError as e:
            if is_type_mismatch(e):
                return stats_cls.create()
            raise create_error(ErrorCode.ENOENT, path, "stat", e) from e
        return stats_cls.create(snapshot)

    async def lstat(
        self, path: PathLike, options: Union[StatOptions, Mapping[str, Any], None] = None
    ) -> Union[Stats, BigIntStats]:
        """Same as `stat()`; there are no symbolic links to not follow."""
        return await self.stat(path, options)

    async def readlink(self, path: PathLike, options: Any = None) -> str:
        raise NotImplementedError("Not implemented: readlink")

    async def symlink(self, target: PathLike, path: PathLike, type: Optional[str] = None) -> None:
        raise NotImplementedError("Not implemented: symlink")

    async def chmod(self, path: PathLike, mode: Union[str, int]) -> None:
        """Does nothing; permission bits aren't stored."""

    # --- helpers ------------------------------------------------------------

    async def _get_file_handle(self, path: PathLike, *, create: bool = False) -> FileHandle:
        return await self._navigator.resolve_file(
            split_path(path), await self.root(), create=create, path=path
        )

    async def _snapshot(self, handle: FileHandle, path: PathLike, syscall: str) -> FileSnapshot:
        try:
            return await handle.get_file()
        except StorageError as e:
            raise create_error(ErrorCode.ENOENT, path, syscall, e) from e

    async def _is_dir_exist_on_handle(self, handle: DirectoryHandle, name: str) -> bool:
        try:
            await handle.get_directory_handle(name)
        except StorageError as e:
            return is_type_mismatch(e)
        return True
