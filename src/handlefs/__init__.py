from .adapters.local.local_storage import LocalDirectoryHandle, LocalFileHandle
from .adapters.memory.memory_storage import MemoryDirectoryHandle, MemoryFileHandle
from .domain import (
    AbortError,
    BigIntStats,
    Dirent,
    ErrorCode,
    FileType,
    FsError,
    HandleFsError,
    PathLike,
    Stats,
)
from .services import (
    FilesystemOptions,
    HandleFilesystem,
    HandleNavigator,
    MkdirOptions,
    ReaddirOptions,
    ReadFileOptions,
    RmdirOptions,
    StatOptions,
    WriteFileOptions,
)

__all__ = [
    "AbortError",
    "BigIntStats",
    "Dirent",
    "ErrorCode",
    "FileType",
    "FilesystemOptions",
    "FsError",
    "HandleFilesystem",
    "HandleFsError",
    "HandleNavigator",
    "LocalDirectoryHandle",
    "LocalFileHandle",
    "MemoryDirectoryHandle",
    "MemoryFileHandle",
    "MkdirOptions",
    "PathLike",
    "ReadFileOptions",
    "ReaddirOptions",
    "RmdirOptions",
    "StatOptions",
    "Stats",
    "WriteFileOptions",
]
