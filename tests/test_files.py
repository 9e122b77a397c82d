import pytest

from bookmarkcaller.server.adapters import files


@pytest.fixture
def vault(tmp_path):
    root = tmp_path / "vault"
    (root / ".obsidian").mkdir(parents=True)
    (root / "Journal").mkdir()
    (root / "Journal" / "2024-01-01.md").write_text("# Day", encoding="utf-8")
    (root / "archive.tar.gz").write_bytes(b"")
    return root


def test_is_vault(vault):
    assert files.is_vault(vault)
    assert not files.is_vault(vault / "Journal")


def test_bookmarks_file_location(vault):
    assert files.bookmarks_file(vault) == vault / ".obsidian" / "bookmarks.json"


def test_is_file_and_folder(vault):
    assert files.is_file(vault, "Journal/2024-01-01.md")
    assert files.is_file(vault, "/Journal/2024-01-01.md")
    assert not files.is_file(vault, "Journal")
    assert files.is_folder(vault, "Journal")
    assert not files.is_folder(vault, "Missing")
    assert not files.is_file(vault, "")


def test_basename_strips_last_suffix(vault):
    assert files.basename(vault, "Journal/2024-01-01.md") == "2024-01-01"
    assert files.basename(vault, "archive.tar.gz") == "archive.tar"
    assert files.basename(vault, "Journal/missing.md") is None


def test_paths_outside_the_vault_are_refused(vault):
    outside = vault.parent / "secret.md"
    outside.write_text("x", encoding="utf-8")
    assert files.resolve_vault_path(vault, "../secret.md") is None
    assert not files.is_file(vault, "../secret.md")
    assert files.basename(vault, "../secret.md") is None
    with pytest.raises(files.FileAccessError):
        files._resolve(vault, "../secret.md")
