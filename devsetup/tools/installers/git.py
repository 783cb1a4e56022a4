"""Portable Git.

Git itself is not downloaded here: the first-run bootstrap unpacks
portable Git into tools/git before this program can even run (it is what
provides bash). This installer publishes the entry points and enables
Git LFS when the distribution bundles it.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from devsetup.core.errors import ErrorKind, ProvisionError
from devsetup.core.result import Err, Ok, Result
from devsetup.tools.base import Category, ToolInstaller

if TYPE_CHECKING:
    from devsetup.platform.paths import Layout
    from devsetup.tools.base import InstallContext

__all__ = ["GitInstaller", "git_root"]

BOOTSTRAP_HINT = "Git should have been installed by the bootstrap script; run it first"


def git_root(layout: Layout) -> Path:
    return layout.tool_dir("git")


class GitInstaller(ToolInstaller):
    name = "git"
    category = Category.VERSION_CONTROL

    def __init__(self, bootstrap_hint: str = BOOTSTRAP_HINT) -> None:
        self.bootstrap_hint = bootstrap_hint

    def markers(self, layout: Layout) -> tuple[Path, ...]:
        return (layout.bin_dir / "git.exe",)

    def install(self, ctx: InstallContext) -> Result[None, ProvisionError]:
        root = git_root(ctx.layout)
        git = root / "bin" / "git.exe"
        if not git.is_file():
            return Err(
                ProvisionError(
                    ErrorKind.NOT_FOUND,
                    f"Git installation not found at {root}",
                    self.bootstrap_hint,
                )
            )

        linked = ctx.linker.publish("git.exe", git)
        if isinstance(linked, Err):
            return Err(linked.error)

        self._configure_lfs(ctx, root, git)
        return Ok(None)

    def _configure_lfs(self, ctx: InstallContext, root: Path, git: Path) -> None:
        lfs = root / "mingw64" / "bin" / "git-lfs.exe"
        if not lfs.is_file():
            ctx.console.info("Git LFS is not bundled with this Git distribution")
            return

        linked = ctx.linker.publish("git-lfs.exe", lfs)
        if isinstance(linked, Err):
            ctx.console.warning(str(linked.error))
            return

        result = ctx.runner.run([str(git), "lfs", "install", "--skip-repo"])
        if isinstance(result, Err):
            ctx.console.warning(f"git lfs install failed: {result.error}")
            return
        ctx.console.success("Git LFS configured")
