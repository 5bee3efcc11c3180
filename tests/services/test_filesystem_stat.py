import asyncio
from urllib.parse import urlparse

import pytest

from handlefs.adapters.memory.memory_storage import MemoryDirectoryHandle
from handlefs.domain.errors import ErrorCode, FsError
from handlefs.domain.stats import BigIntStats, Stats
from handlefs.services import HandleFilesystem, StatOptions

CONTENT = b"hello word"
TREE = {"dir1": {"file1": CONTENT}, "file1": CONTENT, "file2": b""}


def run(coro):
    return asyncio.run(coro)


def make_fs(tree=TREE):
    root = MemoryDirectoryHandle.from_tree(tree)
    return HandleFilesystem(root), root


@pytest.mark.parametrize(
    "path,size", [("file1", len(CONTENT)), ("file2", 0), ("dir1/file1", len(CONTENT))]
)
def test_stat_file(path, size):
    fs, _ = make_fs()
    st = run(fs.stat(path))
    assert isinstance(st, Stats)
    assert st.is_file()
    assert not st.is_directory()
    assert st.size == size


@pytest.mark.parametrize("path", [".", "", "/", "dir1", "dir1/"])
def test_stat_directory(path):
    fs, _ = make_fs()
    st = run(fs.stat(path))
    assert st.is_directory()
    assert st.size == 0
    assert st.mtime_ms == 0


def test_stat_timestamps_match_last_modified():
    fs, root = make_fs({})

    async def scenario():
        await fs.write_file("f.bin", b"12345")
        snapshot = await (await root.get_file_handle("f.bin")).get_file()
        st = await fs.stat("f.bin")
        assert st.size == 5
        expected = float(snapshot.last_modified)
        assert st.atime_ms == st.mtime_ms == st.ctime_ms == st.birthtime_ms == expected

        big = await fs.stat("f.bin", {"bigint": True})
        assert isinstance(big, BigIntStats)
        assert big.mtime_ms == snapshot.last_modified
        assert big.birthtime_ns == snapshot.last_modified * 1_000_000

    run(scenario())


def test_stat_bigint_directory():
    fs, _ = make_fs()
    st = run(fs.stat(".", StatOptions(bigint=True)))
    assert isinstance(st, BigIntStats)
    assert st.is_directory()
    assert st.mtime_ns == 0


def test_stat_missing():
    fs, _ = make_fs()
    with pytest.raises(FsError) as info:
        run(fs.stat("not-exist"))
    assert info.value.code is ErrorCode.ENOENT
    assert info.value.syscall == "stat"

    with pytest.raises(FsError) as info:
        run(fs.stat("dir1/not-exist"))
    assert info.value.syscall == "stat"

    # parent walk failures come through unchanged
    with pytest.raises(FsError) as info:
        run(fs.stat("missing/file"))
    assert info.value.code is ErrorCode.ENOENT
    assert info.value.syscall == "open"


def test_lstat_matches_stat():
    fs, _ = make_fs()
    assert run(fs.lstat("file1")) == run(fs.stat("file1"))
    assert run(fs.lstat("dir1", {"bigint": True})).is_directory()


def test_exist():
    fs, _ = make_fs()
    assert run(fs.exist("file1")) is True
    assert run(fs.exist("dir1/file1")) is True
    # a directory still counts as existing
    assert run(fs.exist("dir1")) is True
    assert run(fs.exist("nope")) is False
    assert run(fs.exist("nope/file1")) is False
    assert run(fs.exist("file1/child")) is False
    assert run(fs.exist("..")) is False
    assert run(fs.exist(".")) is False
    assert run(fs.exist(urlparse("http://example.com/file1"))) is False
    assert run(fs.exist(urlparse("file:///file1"))) is True
    assert run(fs.exist(b"\xff\xfe")) is False
    assert run(fs.exist(b"file1")) is True


def test_symlink_family_not_implemented():
    fs, _ = make_fs()
    with pytest.raises(NotImplementedError):
        run(fs.readlink("file1"))
    with pytest.raises(NotImplementedError):
        run(fs.symlink("file1", "link"))


def test_chmod_is_a_no_op():
    fs, root = make_fs()
    before = root.to_tree()
    assert run(fs.chmod("file1", 0o600)) is None
    assert run(fs.chmod("does-not-exist", "755")) is None
    assert root.to_tree() == before
