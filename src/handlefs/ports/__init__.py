from .storage import (
    DirectoryHandle,
    FileHandle,
    FileSnapshot,
    Handle,
    HandleKind,
    StorageError,
    StorageErrorKind,
    SyncAccessHandle,
    WritableFileStream,
)

__all__ = [
    "DirectoryHandle",
    "FileHandle",
    "FileSnapshot",
    "Handle",
    "HandleKind",
    "StorageError",
    "StorageErrorKind",
    "SyncAccessHandle",
    "WritableFileStream",
]
