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

import logging
from typing import AsyncIterator, Iterator, List, Optional, Sequence, Tuple

from ..domain.dirent import Dirent
from ..domain.errors import ErrorCode, create_error
from ..domain.paths import join_paths, paths_to_dirs_and_filename
from ..domain.types import FileType, PathLike
from ..ports.storage import DirectoryHandle, FileHandle, Handle, HandleKind, StorageError

logger = logging.getLogger(__name__)


class HandleNavigator:
    """
    Turns segment lists into handles by walking the provider tree.

    Holds no state: every call starts from the root handle it is given, so
    handles are never reused across operations.
    """

    async def resolve_directory(
        self,
        segments: Sequence[str],
        root: DirectoryHandle,
        *,
        create: bool = False,
        path: Optional[PathLike] = None,
    ) -> DirectoryHandle:
        """
        Walk `segments` from `root`, one directory level at a time.

        With `create`, missing directories are created along the way.
        Any provider failure becomes ENOENT for the whole requested path.
        """
        handle = root
        try:
            for name in segments:
                handle = await handle.get_directory_handle(name, create=create)
        except StorageError as e:
            logger.debug("resolve_directory %s failed at %r: %s", list(segments), name, e)
            raise create_error(
                ErrorCode.ENOENT,
                join_paths(segments) if path is None else path,
                "open",
                e,
            ) from e
        return handle

    async def resolve_file(
        self,
        segments: Sequence[str],
        root: DirectoryHandle,
        *,
        create: bool = False,
        path: Optional[PathLike] = None,
    ) -> FileHandle:
        """Resolve the parent directories (never created), then the file itself."""
        dirs, filename = paths_to_dirs_and_filename(segments)
        parent = await self.resolve_directory(dirs, root, path=path)
        try:
            return await parent.get_file_handle(filename, create=create)
        except StorageError as e:
            logger.debug("resolve_file %s failed: %s", list(segments), e)
            raise create_error(
                ErrorCode.ENOENT,
                join_paths(segments) if path is None else path,
                "open",
                e,
            ) from e

    async def _sorted_children(self, directory: DirectoryHandle) -> Iterator[Handle]:
        children = [child async for child in directory.values()]
        return iter(sorted(children, key=lambda h: h.name))

    async def iter_entries(
        self, directory: DirectoryHandle, *, recursive: bool = False
    ) -> AsyncIterator[Tuple[str, Handle]]:
        """
        Yield `(relative_parent, child)` for each entry below `directory`.

        Children of one directory come out sorted by name. Recursive walks are
        depth-first pre-order, driven by an explicit stack of open listings.
        """
        stack: List[Tuple[str, Iterator[Handle]]] = [
            ("", await self._sorted_children(directory))
        ]
        while stack:
            base, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                continue
            yield base, child
            if recursive and child.kind is HandleKind.DIRECTORY:
                nested = f"{base}/{child.name}" if base else child.name
                stack.append((nested, await self._sorted_children(child)))  # type: ignore[arg-type]

    async def list_names(
        self, directory: DirectoryHandle, *, recursive: bool = False
    ) -> List[str]:
        return [
            f"{base}/{child.name}" if base else child.name
            async for base, child in self.iter_entries(directory, recursive=recursive)
        ]

    async def list_entries(
        self, directory: DirectoryHandle, base: str = "", *, recursive: bool = False
    ) -> List[Dirent]:
        """List `Dirent`s; `base` is the canonical path of `directory` itself."""
        entries = []
        async for relative, child in self.iter_entries(directory, recursive=recursive):
            parent = "/".join(p for p in (base, relative) if p) or "."
            kind = FileType.DIRECTORY if child.kind is HandleKind.DIRECTORY else FileType.FILE
            entries.append(Dirent.create(child.name, parent, kind))
        return entries
