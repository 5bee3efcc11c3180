import asyncio
import io

import pytest

from handlefs.adapters.memory.memory_storage import MemoryDirectoryHandle, MemoryWritableFileStream
from handlefs.domain.errors import AbortError, ErrorCode, FsError
from handlefs.domain.text_codec import encode_string
from handlefs.ports.storage import FileSnapshot
from handlefs.services import HandleFilesystem, ReadFileOptions, WriteFileOptions

FILEPATH = "test.txt"
CONTENT = "hello word"
CONTENT_BYTES = CONTENT.encode("utf-8")
ENCODINGS = ["ascii", "utf-8", "ucs-2", "latin1"]


def run(coro):
    return asyncio.run(coro)


def make_fs(tree=None, **kwargs):
    root = MemoryDirectoryHandle.from_tree(tree or {})
    return HandleFilesystem(root, **kwargs), root


@pytest.mark.parametrize("options", [None, {"encoding": None}, ReadFileOptions()])
def test_read_file_without_encoding_returns_bytes(options):
    fs, _ = make_fs({FILEPATH: CONTENT_BYTES})
    assert run(fs.read_file(FILEPATH, options)) == CONTENT_BYTES
    assert run(fs.read_bytes(FILEPATH)) == CONTENT_BYTES


@pytest.mark.parametrize("encoding", ENCODINGS)
def test_read_file_with_encoding(encoding):
    fs, _ = make_fs({FILEPATH: encode_string(CONTENT, encoding)})
    assert run(fs.read_file(FILEPATH, encoding)) == CONTENT
    assert run(fs.read_file(FILEPATH, {"encoding": encoding})) == CONTENT
    assert run(fs.read_text(FILEPATH, encoding)) == CONTENT


def test_read_file_in_dir():
    fs, _ = make_fs({"foo": {"bar": {FILEPATH: CONTENT_BYTES}}})
    assert run(fs.read_file(f"foo/bar/{FILEPATH}")) == CONTENT_BYTES
    assert run(fs.read_file(f"/foo/./baz/../bar/{FILEPATH}")) == CONTENT_BYTES


@pytest.mark.parametrize("path", [FILEPATH, "foo", "missing/x"])
def test_read_file_missing_or_directory(path):
    fs, _ = make_fs({"foo": {}})
    with pytest.raises(FsError) as info:
        run(fs.read_file(path))
    assert info.value.code is ErrorCode.ENOENT
    assert info.value.syscall == "open"
    assert info.value.path == path


@pytest.mark.parametrize("options", [None, {"encoding": None}])
def test_write_file_default_encoding(options):
    fs, root = make_fs()
    assert run(fs.write_file(FILEPATH, CONTENT, options)) is None
    assert root.to_tree()[FILEPATH] == CONTENT_BYTES


@pytest.mark.parametrize("encoding", ENCODINGS)
def test_write_file_with_encoding(encoding):
    fs, root = make_fs()
    run(fs.write_file(FILEPATH, CONTENT, encoding))
    assert root.to_tree()[FILEPATH] == encode_string(CONTENT, encoding)


@pytest.mark.parametrize("encoding", ENCODINGS)
def test_write_then_read_round_trip(encoding):
    fs, _ = make_fs()

    async def scenario():
        await fs.write_file(FILEPATH, CONTENT, {"encoding": encoding})
        assert await fs.read_file(FILEPATH, encoding) == CONTENT
        assert await fs.read_file(FILEPATH) == encode_string(CONTENT, encoding)

    run(scenario())


def test_write_file_append():
    fs, root = make_fs({FILEPATH: b"abc"})
    run(fs.write_file(FILEPATH, b"123", {"flag": "a"}))
    assert root.to_tree()[FILEPATH] == b"abc123"
    run(fs.write_file(FILEPATH, "456", WriteFileOptions(flag="a")))
    assert run(fs.read_file(FILEPATH, "utf8")) == "abc123456"


def test_write_file_append_creates_missing_file():
    fs, root = make_fs()
    run(fs.write_file(FILEPATH, b"abc", {"flag": "a"}))
    assert root.to_tree()[FILEPATH] == b"abc"


def test_write_file_exclusive():
    fs, root = make_fs({FILEPATH: CONTENT_BYTES, "dir": {}})
    with pytest.raises(FsError) as info:
        run(fs.write_file(FILEPATH, b"other", {"flag": "x"}))
    assert info.value.code is ErrorCode.EEXIST
    assert info.value.syscall == "open"
    assert root.to_tree()[FILEPATH] == CONTENT_BYTES

    with pytest.raises(FsError) as info:
        run(fs.write_file("dir", b"other", {"flag": "wx"}))
    assert info.value.code is ErrorCode.EEXIST

    run(fs.write_file("fresh.txt", b"data", {"flag": "wx"}))
    assert root.to_tree()["fresh.txt"] == b"data"


def test_write_file_overwrite_truncates():
    fs, _ = make_fs({FILEPATH: b"abc123"})
    run(fs.write_file(FILEPATH, b"123"))
    assert run(fs.read_file(FILEPATH)) == b"123"


def test_write_file_in_dir_and_missing_parent():
    fs, root = make_fs({"foo": {"bar": {}}})
    run(fs.write_file(f"foo/bar/{FILEPATH}", CONTENT_BYTES))
    assert run(fs.read_file(f"foo/bar/{FILEPATH}")) == CONTENT_BYTES

    with pytest.raises(FsError) as info:
        run(fs.write_file("nope/file.txt", b"x"))
    assert info.value.code is ErrorCode.ENOENT
    assert "nope" not in root.to_tree()


def test_write_file_onto_directory_is_enoent():
    fs, _ = make_fs({"foo": {}})
    with pytest.raises(FsError) as info:
        run(fs.write_file("foo", b"x"))
    assert info.value.code is ErrorCode.ENOENT


@pytest.mark.parametrize(
    "data",
    [
        bytearray(b"payload"),
        memoryview(b"payload"),
        FileSnapshot("src", b"payload", 0),
        io.BytesIO(b"payload"),
    ],
)
def test_write_file_accepts_binary_like_data(data):
    fs, root = make_fs()
    run(fs.write_file(FILEPATH, data))
    assert root.to_tree()[FILEPATH] == b"payload"


def test_write_file_rejects_unknown_data():
    fs, _ = make_fs()
    with pytest.raises(TypeError):
        run(fs.write_file(FILEPATH, 42))


def test_write_file_numeric_flag_not_implemented():
    fs, _ = make_fs()
    with pytest.raises(NotImplementedError):
        run(fs.write_file(FILEPATH, b"x", {"flag": 1}))


def test_write_file_signal_set_before_write_aborts():
    fs, root = make_fs({FILEPATH: b"keep"})

    async def scenario():
        signal = asyncio.Event()
        signal.set()
        with pytest.raises(AbortError):
            await fs.write_file(FILEPATH, b"replace", {"signal": signal})

    run(scenario())
    assert root.to_tree()[FILEPATH] == b"keep"


def test_write_file_signal_set_during_write_aborts():
    fs, root = make_fs({FILEPATH: b"keep"})

    async def scenario():
        signal = asyncio.Event()

        async def cancel_soon():
            signal.set()

        # Runs at the first point the write yields to the event loop.
        asyncio.ensure_future(cancel_soon())
        with pytest.raises(AbortError):
            await fs.write_file(FILEPATH, b"replace", WriteFileOptions(signal=signal))

    run(scenario())
    assert root.to_tree()[FILEPATH] == b"keep"


def test_write_file_unset_signal_is_harmless():
    fs, root = make_fs()

    async def scenario():
        await fs.write_file(FILEPATH, b"data", {"signal": asyncio.Event(), "flush": True})

    run(scenario())
    assert root.to_tree()[FILEPATH] == b"data"


def test_unknown_option_keys_are_ignored():
    fs, root = make_fs()
    run(fs.write_file(FILEPATH, "x", {"encoding": "utf8", "mode": 0o644}))
    assert run(fs.read_file(FILEPATH, {"encoding": "utf8", "whatever": True})) == "x"


def test_read_non_ascii_file_as_ascii_replaces():
    fs, _ = make_fs({FILEPATH: "héllo".encode("utf-8")})
    assert run(fs.read_file(FILEPATH, "ascii")) == "h\ufffd\ufffdllo"


def test_write_unencodable_text_replaces():
    fs, root = make_fs()
    run(fs.write_file(FILEPATH, "héllo", "ascii"))
    assert root.to_tree()[FILEPATH] == b"h?llo"


def test_cancelled_write_commits_nothing():
    fs, root = make_fs({FILEPATH: b"old"})

    async def scenario():
        task = asyncio.ensure_future(fs.write_file(FILEPATH, b"new"))
        # let the write start and park inside the stream write
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    run(scenario())
    assert root.to_tree()[FILEPATH] == b"old"


def test_failed_stream_write_commits_nothing(monkeypatch):
    fs, root = make_fs({FILEPATH: b"old"})

    async def broken_write(self, data):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(MemoryWritableFileStream, "write", broken_write)
    with pytest.raises(RuntimeError):
        run(fs.write_file(FILEPATH, b"new"))
    assert root.to_tree()[FILEPATH] == b"old"
