"""Filesystem helpers."""

from __future__ import annotations

import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path

__all__ = ["atomic_write_text", "backup_with_timestamp", "copy_tree_contents", "remove_tree"]


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path atomically using temp file + replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def backup_with_timestamp(path: Path, *, now: datetime | None = None) -> Path | None:
    """Copy path to `<name>.backup.YYYYmmddHHMMSS` beside it.

    Returns the backup path, or None when there was nothing to back up.
    """
    if not path.is_file():
        return None
    stamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
    backup = path.with_name(f"{path.name}.backup.{stamp}")
    shutil.copy2(path, backup)
    return backup


def copy_tree_contents(src: Path, dest: Path) -> int:
    """Copy the children of src into dest, merging over existing files.

    Returns the number of files copied.
    """
    dest.mkdir(parents=True, exist_ok=True)
    count = 0
    for item in src.iterdir():
        target = dest / item.name
        if item.is_dir():
            shutil.copytree(item, target, dirs_exist_ok=True)
            count += sum(1 for p in item.rglob("*") if p.is_file())
        else:
            shutil.copy2(item, target)
            count += 1
    return count


def remove_tree(path: Path) -> bool:
    """Remove a directory tree if present. Returns True if removed."""
    if path.exists():
        shutil.rmtree(path, ignore_errors=True)
        return True
    return False
