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
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Type, TypeVar, Union

from ..domain.types import PathLike
from ..ports.storage import DirectoryHandle

T = TypeVar("T", bound="_Options")


class _Options:
    """
    Shared coercion for per-operation option structures.

    Accepts an instance, None, a Mapping (unknown keys are ignored) or, for
    structures with an `encoding` field, a bare encoding string.
    """

    @classmethod
    def coerce(cls: Type[T], options: Any = None) -> T:
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        known = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        if isinstance(options, str) and "encoding" in known:
            return cls(encoding=options)  # type: ignore[call-arg]
        if isinstance(options, Mapping):
            return cls(**{k: v for k, v in options.items() if k in known})
        raise TypeError(f"Unsupported options for {cls.__name__}: {options!r}")


@dataclass(frozen=True)
class ReadFileOptions(_Options):
    encoding: Optional[str] = None


@dataclass(frozen=True)
class WriteFileOptions(_Options):
    """
    `flag` is an fs-style mode string: "a" appends, "x" fails if the file
    exists. `signal` cancels the write once set.
    """

    encoding: Optional[str] = None
    flag: Union[str, int] = "w"
    flush: bool = False
    signal: Optional[asyncio.Event] = None

    @property
    def append(self) -> bool:
        return isinstance(self.flag, str) and "a" in self.flag

    @property
    def exclusive(self) -> bool:
        return isinstance(self.flag, str) and "x" in self.flag


@dataclass(frozen=True)
class ReaddirOptions(_Options):
    # "buffer" returns names as bytes
    encoding: Optional[str] = None
    with_file_types: bool = False
    recursive: bool = False


@dataclass(frozen=True)
class MkdirOptions(_Options):
    recursive: bool = False


@dataclass(frozen=True)
class RmdirOptions(_Options):
    recursive: bool = False


@dataclass(frozen=True)
class StatOptions(_Options):
    bigint: bool = False


@dataclass(frozen=True)
class FilesystemOptions(_Options):
    """
    `root` is a DirectoryHandle, or a path resolved against the process-wide
    storage root. `use_sync_access_handle` picks the exclusive in-place write
    channel over the buffered writable stream.
    """

    root: Union[PathLike, DirectoryHandle] = ""
    use_sync_access_handle: bool = False
