"""Windows Terminal package and the Git Bash shortcut.

Installing an MSIX bundle needs the Store or administrator rights, so
the package is only downloaded into tools/terminal for the user to
install by hand. Git Bash stays the working terminal; a desktop
shortcut to it is created through PowerShell.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from devsetup.core.errors import ProvisionError
from devsetup.core.result import Err, Ok, Result
from devsetup.tools.base import Category, ToolInstaller
from devsetup.tools.installers.git import git_root

if TYPE_CHECKING:
    from devsetup.platform.paths import Layout
    from devsetup.tools.base import InstallContext

__all__ = ["TerminalInstaller", "shortcut_script"]

PACKAGE_NAME = "WindowsTerminal.msixbundle"


def shortcut_script(shortcut: Path, target: Path, working_dir: Path) -> str:
    return "; ".join(
        [
            "$WshShell = New-Object -ComObject WScript.Shell",
            f"$Shortcut = $WshShell.CreateShortcut('{shortcut}')",
            f"$Shortcut.TargetPath = '{target}'",
            f"$Shortcut.IconLocation = '{target},0'",
            "$Shortcut.Description = 'Git Bash Terminal'",
            f"$Shortcut.WorkingDirectory = '{working_dir}'",
            "$Shortcut.Save()",
        ]
    )


class TerminalInstaller(ToolInstaller):
    name = "windows-terminal"
    category = Category.TERMINAL

    def __init__(self, url: str) -> None:
        self.url = url

    def package(self, layout: Layout) -> Path:
        return layout.tool_dir("terminal") / PACKAGE_NAME

    def markers(self, layout: Layout) -> tuple[Path, ...]:
        return (self.package(layout),)

    def install(self, ctx: InstallContext) -> Result[None, ProvisionError]:
        console = ctx.console
        console.warning(
            "Windows Terminal typically requires Microsoft Store or admin privileges to install."
        )
        console.warning("The MSIX package is downloaded but may need to be installed manually.")

        package = self.package(ctx.layout)
        package.parent.mkdir(parents=True, exist_ok=True)
        fetched = ctx.fetcher.fetch(self.url, package)
        if isinstance(fetched, Err):
            return Err(fetched.error)

        console.info(f"Windows Terminal package downloaded to {package}")
        console.info("To install, double-click the package and follow the prompts.")

        self._create_shortcut(ctx)
        return Ok(None)

    def _create_shortcut(self, ctx: InstallContext) -> None:
        ctx.console.info("Configuring Git Bash as the primary terminal...")
        home = ctx.layout.home
        script = shortcut_script(
            home / "Desktop" / "Git Bash.lnk",
            git_root(ctx.layout) / "git-bash.exe",
            home,
        )
        result = ctx.runner.run(["powershell.exe", "-NoProfile", "-Command", script])
        if isinstance(result, Err):
            ctx.console.warning("Failed to create Git Bash shortcut on the desktop.")
            return
        ctx.console.success("Git Bash shortcut created on the desktop")
