"""Command-line utilities that ship as a single executable.

Two shapes exist upstream: a bare .exe that is downloaded straight into
tools/bin, and a zip whose executables have to be located (anywhere in
the archive) and copied into tools/bin.
"""

from __future__ import annotations

import contextlib
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from devsetup.core.errors import ErrorKind, ProvisionError
from devsetup.core.result import Err, Ok, Result
from devsetup.tools.base import Category, ToolInstaller, discard, fetch_and_extract
from devsetup.tools.extract import find_file

if TYPE_CHECKING:
    from devsetup.platform.paths import Layout
    from devsetup.tools.base import InstallContext

__all__ = ["ArchiveBinaryInstaller", "BinaryInstaller"]


def _make_executable(path: Path) -> None:
    with contextlib.suppress(OSError):
        path.chmod(0o755)


class BinaryInstaller(ToolInstaller):
    """Fetches <url> directly to tools/bin/<name>.exe."""

    category = Category.CLI_TOOLS

    def __init__(self, name: str, url: str) -> None:
        self.name = name
        self.url = url

    @property
    def exe(self) -> str:
        return f"{self.name}.exe"

    def markers(self, layout: Layout) -> tuple[Path, ...]:
        return (layout.bin_dir / self.exe,)

    def install(self, ctx: InstallContext) -> Result[None, ProvisionError]:
        ctx.layout.bin_dir.mkdir(parents=True, exist_ok=True)
        target = ctx.layout.bin_dir / self.exe
        result = ctx.fetcher.fetch(self.url, target)
        if isinstance(result, Err):
            return Err(result.error)
        _make_executable(target)
        return Ok(None)


class ArchiveBinaryInstaller(ToolInstaller):
    """Extracts a zip into tools/temp and copies the named executables to tools/bin.

    Executables are searched for recursively; release archives put them
    at the top level, under bin/, or under a versioned directory.
    """

    category = Category.CLI_TOOLS

    def __init__(self, name: str, url: str, binaries: tuple[str, ...]) -> None:
        self.name = name
        self.url = url
        self.binaries = binaries

    def markers(self, layout: Layout) -> tuple[Path, ...]:
        return tuple(layout.bin_dir / b for b in self.binaries)

    def install(self, ctx: InstallContext) -> Result[None, ProvisionError]:
        archive = ctx.scratch(f"{self.name}.zip")
        staging = ctx.scratch(self.name)

        extracted = fetch_and_extract(ctx, self.url, archive.name, staging)
        if isinstance(extracted, Err):
            return Err(extracted.error)

        found: list[Path] = []
        for binary in self.binaries:
            path = find_file(staging, binary)
            if path is None:
                return Err(
                    ProvisionError(
                        ErrorKind.NOT_FOUND,
                        f"Could not find {binary} in extracted files",
                        str(staging),
                    )
                )
            found.append(path)

        ctx.layout.bin_dir.mkdir(parents=True, exist_ok=True)
        for path in found:
            target = ctx.layout.bin_dir / path.name
            shutil.copy2(path, target)
            _make_executable(target)

        discard(archive, staging)
        return Ok(None)
