import pytest

from workshop_sync.errors import FilesystemError
from workshop_sync.inventory import scan_installed


def test_directories_and_pak_files_are_items(tmp_path):
    (tmp_path / "111").mkdir()
    (tmp_path / "222.pak").write_bytes(b"pak")
    (tmp_path / "manifest.json").write_text("{}")
    (tmp_path / "steamcmd.log").write_text("")
    (tmp_path / "notes.txt").write_text("hello")

    assert scan_installed(tmp_path) == {"111", "222"}


def test_custom_extension(tmp_path):
    (tmp_path / "333.zip").write_bytes(b"zip")
    (tmp_path / "444.pak").write_bytes(b"pak")

    assert scan_installed(tmp_path, item_extension=".zip") == {"333"}


def test_empty_directory(tmp_path):
    assert scan_installed(tmp_path) == set()


def test_missing_directory_raises(tmp_path):
    with pytest.raises(FilesystemError):
        scan_installed(tmp_path / "missing")


def test_dangling_symlink_is_ignored(tmp_path):
    (tmp_path / "555.pak").symlink_to(tmp_path / "nowhere")
    assert scan_installed(tmp_path) == set()
