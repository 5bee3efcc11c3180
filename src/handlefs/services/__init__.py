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
from .filesystem import HandleFilesystem


__all__ = [
    'HandleNavigator',
    'HandleFilesystem',
    'FilesystemOptions',
    'MkdirOptions',
    'ReaddirOptions',
    'ReadFileOptions',
    'RmdirOptions',
    'StatOptions',
    'WriteFileOptions',
]
