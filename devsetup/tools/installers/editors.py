"""Portable desktop applications extracted in place (text editors)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from devsetup.core.errors import ProvisionError
from devsetup.core.result import Err, Ok, Result
from devsetup.tools.base import (
    Category,
    ToolInstaller,
    discard,
    fetch_and_extract,
    publish_all,
    require_file,
)

if TYPE_CHECKING:
    from devsetup.platform.paths import Layout
    from devsetup.tools.base import InstallContext

__all__ = ["PortableAppInstaller"]


class PortableAppInstaller(ToolInstaller):
    """Extracts a portable zip into tools/<directory> and links its exe.

    Attributes:
        exe: Main executable at the top of the archive (e.g. "sublime_text.exe")
        alias: Extra short entry point (e.g. "subl"), published as <alias>.exe
    """

    category = Category.EDITORS

    def __init__(self, name: str, url: str, directory: str, exe: str, alias: str) -> None:
        self.name = name
        self.url = url
        self.directory = directory
        self.exe = exe
        self.alias = alias

    def root(self, layout: Layout) -> Path:
        return layout.tool_dir(self.directory)

    def markers(self, layout: Layout) -> tuple[Path, ...]:
        return (self.root(layout) / self.exe,)

    def install(self, ctx: InstallContext) -> Result[None, ProvisionError]:
        root = self.root(ctx.layout)
        archive_name = f"{self.directory}.zip"

        extracted = fetch_and_extract(ctx, self.url, archive_name, root)
        if isinstance(extracted, Err):
            return Err(extracted.error)

        exe = require_file(root / self.exe, f"{self.name} executable")
        if isinstance(exe, Err):
            return Err(exe.error)

        linked = publish_all(ctx, [(self.exe, exe.value), (f"{self.alias}.exe", exe.value)])
        if isinstance(linked, Err):
            return linked

        discard(ctx.scratch(archive_name))
        return Ok(None)
