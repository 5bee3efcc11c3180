from urllib.parse import urlparse

from handlefs.domain.errors import (
    AbortError,
    ErrorCode,
    FsError,
    HandleFsError,
    create_error,
    is_not_found,
    is_type_mismatch,
)
from handlefs.ports.storage import StorageError, StorageErrorKind


def test_create_error_carries_context():
    err = create_error(ErrorCode.ENOENT, "a/b", "open")
    assert isinstance(err, FsError)
    assert isinstance(err, HandleFsError)
    assert err.code is ErrorCode.ENOENT
    assert err.syscall == "open"
    assert err.path == "a/b"
    assert str(err) == "ENOENT: no such file or directory, open 'a/b'"
    assert err.__cause__ is None


def test_create_error_messages_per_code():
    assert "file already exists, mkdir 'd'" in str(create_error(ErrorCode.EEXIST, "d", "mkdir"))
    assert "operation not permitted" in str(create_error(ErrorCode.EPERM, "d", "unlink"))
    assert "directory not empty" in str(create_error(ErrorCode.ENOTEMPTY, "d", "rmdir"))


def test_create_error_chains_cause():
    cause = StorageError(StorageErrorKind.NOT_FOUND, "x")
    err = create_error(ErrorCode.ENOENT, "x", "open", cause)
    assert err.__cause__ is cause


def test_create_error_path_forms():
    assert create_error(ErrorCode.ENOENT, b"raw", "open").path == "raw"
    url = urlparse("http://example.com/a")
    assert create_error(ErrorCode.ENOENT, url, "open").path == "http://example.com/a"


def test_is_type_mismatch_direct_and_chained():
    mismatch = StorageError(StorageErrorKind.TYPE_MISMATCH, "is a directory")
    assert is_type_mismatch(mismatch)

    wrapped = create_error(ErrorCode.ENOENT, "p", "open", mismatch)
    assert is_type_mismatch(wrapped)

    outer = RuntimeError("outer")
    outer.__cause__ = wrapped
    assert is_type_mismatch(outer)


def test_is_type_mismatch_negative_cases():
    assert not is_type_mismatch(None)
    assert not is_type_mismatch(ValueError("nope"))
    not_found = StorageError(StorageErrorKind.NOT_FOUND)
    assert not is_type_mismatch(not_found)
    assert not is_type_mismatch(create_error(ErrorCode.ENOENT, "p", "open", not_found))
    assert is_not_found(create_error(ErrorCode.ENOENT, "p", "open", not_found))


def test_cause_cycle_terminates():
    err = ValueError("loop")
    err.__cause__ = err
    assert not is_type_mismatch(err)


def test_abort_error():
    err = AbortError("f.txt")
    assert err.code == "ABORT_ERR"
    assert err.path == "f.txt"
    assert "aborted" in str(err)
