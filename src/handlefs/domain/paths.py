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

import os
import re
from typing import List, NamedTuple, Sequence
from urllib.parse import ParseResult, SplitResult, unquote

from .errors import ErrorCode, create_error
from .types import PathLike

_SEPARATORS = re.compile(r"[/\\]")


class SplitPath(NamedTuple):
    dirs: List[str]
    filename: str


def path_like_to_string(path: PathLike) -> str:
    """
    Convert a str, bytes, os.PathLike or parsed file URL into a plain string.

    Non-file URLs are rejected with ENOENT.
    """
    if isinstance(path, str):
        return path
    if isinstance(path, (ParseResult, SplitResult)):
        if path.scheme != "file":
            raise create_error(ErrorCode.ENOENT, path, "open")
        return unquote(path.path)
    if isinstance(path, (bytes, bytearray)):
        return bytes(path).decode("utf-8", errors="surrogateescape")
    return os.fspath(path)


def split_path(path_like: PathLike) -> List[str]:
    """
    Normalize a path into its canonical segments.

    `.` and empty segments are dropped and `..` pops the previous segment.
    Climbing above the root raises ENOENT.
    """
    path = path_like_to_string(path_like)
    if not path:
        return []
    result: List[str] = []
    for part in _SEPARATORS.split(path):
        if not part or part == ".":
            continue
        if part == "..":
            if not result:
                raise create_error(ErrorCode.ENOENT, path_like, "open")
            result.pop()
            continue
        result.append(part)
    return result


def join_paths(paths: Sequence[str]) -> str:
    return "/".join(paths)


def paths_to_dirs_and_filename(paths: Sequence[str]) -> SplitPath:
    # The root has no name of its own.
    if not paths:
        raise create_error(ErrorCode.ENOENT, join_paths(paths), "open")
    return SplitPath(dirs=list(paths[:-1]), filename=paths[-1])


def split_path_to_dirs_and_filename(path: PathLike) -> SplitPath:
    return paths_to_dirs_and_filename(split_path(path))
