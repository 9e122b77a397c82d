from __future__ import annotations

from pathlib import Path
from typing import Optional

CONFIG_DIR_NAME = ".obsidian"
BOOKMARKS_FILE_NAME = "bookmarks.json"


class FileAccessError(RuntimeError):
    pass


def _resolve(root: Path, relative_path: str) -> Path:
    if not relative_path:
        raise FileAccessError("Path must not be empty")
    rel = relative_path.lstrip("/")
    root = root.resolve()
    target = (root / rel).resolve()
    if root not in target.parents and target != root:
        raise FileAccessError("Attempted access outside the vault root")
    return target


def resolve_vault_path(root: Path, path: str) -> Optional[Path]:
    """Return the absolute path for a vault-relative path, or None when it escapes the vault."""
    try:
        return _resolve(root, path)
    except FileAccessError:
        return None


def is_file(root: Path, path: str) -> bool:
    target = resolve_vault_path(root, path)
    return bool(target and target.is_file())


def is_folder(root: Path, path: str) -> bool:
    target = resolve_vault_path(root, path)
    return bool(target and target.is_dir())


def basename(root: Path, path: str) -> Optional[str]:
    """Return the file name without its extension, or None when the file is gone.

    ``Notes/Daily.md`` resolves to ``Daily``; a dotted name such as
    ``archive.tar.gz`` keeps everything but the last suffix.
    """
    target = resolve_vault_path(root, path)
    if target is None or not target.is_file():
        return None
    return target.stem


def bookmarks_file(root: Path) -> Path:
    """Location of the bookmark registry inside a vault."""
    return root / CONFIG_DIR_NAME / BOOKMARKS_FILE_NAME


def is_vault(root: Path) -> bool:
    return root.is_dir() and (root / CONFIG_DIR_NAME).is_dir()
