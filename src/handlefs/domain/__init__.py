from .dirent import Dirent
from .errors import (
    AbortError,
    ErrorCode,
    FsError,
    HandleFsError,
    create_error,
    is_not_found,
    is_type_mismatch,
)
from .paths import (
    SplitPath,
    join_paths,
    path_like_to_string,
    paths_to_dirs_and_filename,
    split_path,
    split_path_to_dirs_and_filename,
)
from .stats import BigIntStats, Stats
from .text_codec import SUPPORTED_ENCODINGS, decode_buffer, encode_string
from .types import FileType, PathLike

__all__ = [
    "AbortError",
    "BigIntStats",
    "Dirent",
    "ErrorCode",
    "FileType",
    "FsError",
    "HandleFsError",
    "PathLike",
    "SUPPORTED_ENCODINGS",
    "SplitPath",
    "Stats",
    "create_error",
    "decode_buffer",
    "encode_string",
    "is_not_found",
    "is_type_mismatch",
    "join_paths",
    "path_like_to_string",
    "paths_to_dirs_and_filename",
    "split_path",
    "split_path_to_dirs_and_filename",
]
