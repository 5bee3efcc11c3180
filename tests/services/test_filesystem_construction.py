import asyncio
from pathlib import Path

import pytest

from handlefs.adapters.local.local_storage import LocalDirectoryHandle
from handlefs.adapters.memory.memory_storage import MemoryDirectoryHandle
from handlefs.config import STORAGE_DIR_ENV, get_storage_root, reset_storage_root
from handlefs.domain.errors import ErrorCode, FsError
from handlefs.services import FilesystemOptions, HandleFilesystem


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def memory_storage(monkeypatch):
    monkeypatch.delenv(STORAGE_DIR_ENV, raising=False)
    reset_storage_root()
    yield get_storage_root()
    reset_storage_root()


def test_handle_root_is_used_as_is():
    root = MemoryDirectoryHandle()
    fs = HandleFilesystem(root)
    assert run(fs.root()) is root


def test_options_object_and_mapping():
    root = MemoryDirectoryHandle()
    fs = HandleFilesystem(FilesystemOptions(root=root, use_sync_access_handle=True))
    assert fs.use_sync_access_handle is True
    assert run(fs.root()) is root

    fs = HandleFilesystem({"root": root, "use_sync_access_handle": True, "extra": 1})
    assert fs.use_sync_access_handle is True

    fs = HandleFilesystem({"root": root}, use_sync_access_handle=True)
    assert fs.use_sync_access_handle is True


def test_string_root_resolves_against_memory_storage(memory_storage):
    fs = HandleFilesystem("sessions/./a")

    async def scenario():
        await fs.write_file("f.txt", "x")
        # the root is resolved once and reused
        assert await fs.root() is await fs.root()

    run(scenario())
    assert memory_storage.to_tree() == {"sessions": {"a": {"f.txt": b"x"}}}


def test_default_root_is_storage_root(memory_storage):
    fs = HandleFilesystem()
    run(fs.mkdir("top"))
    assert run(fs.root()) is memory_storage
    assert memory_storage.to_tree() == {"top": {}}


def test_sessions_share_the_memory_storage(memory_storage):
    run(HandleFilesystem("shared").write_file("note", b"hi"))
    assert run(HandleFilesystem("shared").read_file("note")) == b"hi"
    assert run(HandleFilesystem().readdir("shared")) == ["note"]


def test_root_escaping_storage_is_enoent(memory_storage):
    fs = HandleFilesystem("../outside")
    with pytest.raises(FsError) as info:
        run(fs.readdir("."))
    assert info.value.code is ErrorCode.ENOENT


def test_env_storage_dir_uses_local_disk(monkeypatch, tmp_path):
    store = tmp_path / "store"
    monkeypatch.setenv(STORAGE_DIR_ENV, str(store))
    assert isinstance(get_storage_root(), LocalDirectoryHandle)

    fs = HandleFilesystem(Path("session"))
    run(fs.write_file("f.txt", "on disk"))
    assert (store / "session" / "f.txt").read_text() == "on disk"
