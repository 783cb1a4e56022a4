"""Entry-point publishing into tools/bin.

Every installed executable is exposed through one flat directory that is
on the user's PATH. An entry point is a symbolic link to the executable
inside its install root; where the filesystem refuses symlinks (Windows
without developer mode) the executable is copied instead, which is what
`ln -s` does under Git for Windows.

Publishing always overwrites: the last install that publishes a name
owns it.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from devsetup.core.errors import ErrorKind, ProvisionError
from devsetup.core.result import Err, Ok, Result

__all__ = ["EntryPointLinker"]


class EntryPointLinker:
    """Publishes named entry points that resolve to installed executables.

    Usage:
        linker = EntryPointLinker(layout.bin_dir)
        linker.publish("python3.11.4.exe", install_root / "python.exe")
    """

    def __init__(self, bin_dir: Path, *, allow_symlinks: bool = True) -> None:
        """Initialize the linker.

        Args:
            bin_dir: Directory holding entry points
            allow_symlinks: False forces the copy fallback
        """
        self._bin_dir = bin_dir
        self._allow_symlinks = allow_symlinks
        self.published: list[str] = []

    @property
    def bin_dir(self) -> Path:
        return self._bin_dir

    def path(self, name: str) -> Path:
        return self._bin_dir / name

    def publish(self, name: str, target: Path) -> Result[Path, ProvisionError]:
        """Create or replace bin/<name> so that it resolves to target."""
        if not target.is_file():
            return Err(
                ProvisionError(
                    ErrorKind.NOT_FOUND, f"Cannot link {name}: target missing", str(target)
                )
            )

        link = self.path(name)
        try:
            self._bin_dir.mkdir(parents=True, exist_ok=True)
            if link.is_symlink() or link.exists():
                link.unlink()
            self._place(link, target)
        except OSError as e:
            return Err(ProvisionError(ErrorKind.IO_ERROR, f"Cannot publish {name}", str(e)))

        self.published.append(name)
        return Ok(link)

    def _place(self, link: Path, target: Path) -> None:
        if self._allow_symlinks:
            try:
                os.symlink(target, link)
                return
            except (OSError, NotImplementedError):
                pass
        shutil.copy2(target, link)

    def resolve(self, name: str) -> Path | None:
        """Where bin/<name> points: the link target, or the copy itself."""
        link = self.path(name)
        if link.is_symlink():
            return link.resolve()
        if link.is_file():
            return link
        return None

    def exists(self, name: str) -> bool:
        return self.resolve(name) is not None
