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

import os
from enum import Enum
from typing import Optional
from urllib.parse import ParseResult, SplitResult

from ..ports.storage import StorageError, StorageErrorKind
from .types import PathLike


class ErrorCode(str, Enum):
    ENOENT = "ENOENT"
    EEXIST = "EEXIST"
    EPERM = "EPERM"
    ENOTEMPTY = "ENOTEMPTY"


_MESSAGES = {
    ErrorCode.ENOENT: "no such file or directory",
    ErrorCode.EEXIST: "file already exists",
    ErrorCode.EPERM: "operation not permitted",
    ErrorCode.ENOTEMPTY: "directory not empty",
}


class HandleFsError(Exception):
    """Base exception for errors raised by the filesystem layer."""


class FsError(HandleFsError):
    """
    POSIX-flavored failure of a filesystem operation.

    `code` is one of ErrorCode, `syscall` the operation that failed and
    `path` the path as the caller supplied it. The provider failure that
    triggered it, if any, is chained as `__cause__`.
    """

    def __init__(self, message: str, code: ErrorCode, syscall: str, path: str) -> None:
        super().__init__(f"{code.value}: {message}")
        self.code = code
        self.syscall = syscall
        self.path = path


class AbortError(HandleFsError):
    """A write was cancelled through its signal."""

    code = "ABORT_ERR"

    def __init__(self, path: str) -> None:
        super().__init__(f"The operation was aborted, write '{path}'")
        self.path = path


def describe_path(path: PathLike) -> str:
    if isinstance(path, (bytes, bytearray)):
        return bytes(path).decode("utf-8", errors="replace")
    if isinstance(path, (ParseResult, SplitResult)):
        return path.geturl()
    if isinstance(path, os.PathLike):
        return os.fspath(path)
    return str(path)


def create_error(
    code: ErrorCode,
    path: PathLike,
    syscall: str,
    cause: Optional[BaseException] = None,
) -> FsError:
    shown = describe_path(path)
    err = FsError(f"{_MESSAGES[code]}, {syscall} '{shown}'", code, syscall, shown)
    if cause is not None:
        err.__cause__ = cause
    return err


def _has_kind(exc: Optional[BaseException], kind: StorageErrorKind) -> bool:
    seen = set()
    while exc is not None and id(exc) not in seen:
        if isinstance(exc, StorageError) and exc.kind is kind:
            return True
        seen.add(id(exc))
        exc = exc.__cause__
    return False


def is_type_mismatch(exc: Optional[BaseException]) -> bool:
    """True if `exc` or anything in its cause chain is a provider type mismatch."""
    return _has_kind(exc, StorageErrorKind.TYPE_MISMATCH)


def is_not_found(exc: Optional[BaseException]) -> bool:
    return _has_kind(exc, StorageErrorKind.NOT_FOUND)
