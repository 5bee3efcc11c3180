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

import warnings
from dataclasses import dataclass, field

from .types import FileType


@dataclass(frozen=True)
class Dirent:
    """
    One entry of a directory listing.

    `parent_path` is the canonical path of the containing directory, with
    the root spelled ".".
    """

    name: str
    parent_path: str
    _type: FileType = field(repr=False)

    @property
    def path(self) -> str:
        """Deprecated alias of `parent_path`."""
        warnings.warn(
            "Dirent.path is deprecated, use Dirent.parent_path",
            DeprecationWarning,
            stacklevel=2,
        )
        return self.parent_path

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

    @classmethod
    def create(cls, name: str, parent_path: str, type: FileType) -> Dirent:
        return cls(name, parent_path, type)
