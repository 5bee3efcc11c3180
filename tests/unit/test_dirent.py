import dataclasses

import pytest

from handlefs.domain.dirent import Dirent
from handlefs.domain.types import FileType


def test_file_dirent():
    d = Dirent.create("file1", "dir1", FileType.FILE)
    assert d.name == "file1"
    assert d.parent_path == "dir1"
    assert d.is_file()
    assert not d.is_directory()


def test_directory_dirent_at_root():
    d = Dirent.create("dir1", ".", FileType.DIRECTORY)
    assert d.is_directory()
    assert not d.is_file()
    assert d.parent_path == "."


def test_path_is_deprecated_alias():
    d = Dirent.create("x", "a/b", FileType.FILE)
    with pytest.deprecated_call():
        assert d.path == d.parent_path


def test_dirent_is_immutable_and_comparable():
    d = Dirent.create("x", ".", FileType.FILE)
    with pytest.raises(dataclasses.FrozenInstanceError):
        d.name = "y"  # type: ignore[misc]
    assert d == Dirent.create("x", ".", FileType.FILE)
    assert d != Dirent.create("x", ".", FileType.DIRECTORY)


def test_special_kinds_are_always_false():
    d = Dirent.create("x", ".", FileType.FILE)
    assert not d.is_block_device()
    assert not d.is_character_device()
    assert not d.is_symbolic_link()
    assert not d.is_fifo()
    assert not d.is_socket()
