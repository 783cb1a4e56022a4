"""Multi-version language runtimes (Node.js, Python).

Each declared version gets its own root, tools/<runtime>/<version>, and
a version-qualified entry point (node18.16.1.exe, python3.11.4.exe) that
no other install touches. The install marked default also publishes the
unqualified names (node.exe, python.exe, ...), overwriting whatever
owned them before.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from devsetup.core.errors import ErrorKind, ProvisionError
from devsetup.core.result import Err, Ok, Result
from devsetup.output.console import Style
from devsetup.platform.files import copy_tree_contents
from devsetup.tools.base import (
    Category,
    ToolInstaller,
    discard,
    fetch_and_extract,
    publish_all,
    require_file,
)
from devsetup.tools.extract import find_root

if TYPE_CHECKING:
    from devsetup.platform.paths import Layout
    from devsetup.tools.base import InstallContext

__all__ = ["NodeInstaller", "PythonInstaller", "pth_filename"]


class _RuntimeInstaller(ToolInstaller):
    runtime: str
    category = Category.LANGUAGES

    def __init__(self, version: str, url_template: str, *, is_default: bool) -> None:
        self.version = version
        self.url = url_template.format(version=version)
        self.is_default = is_default
        self.name = f"{self.runtime} {version}"

    def root(self, layout: Layout) -> Path:
        return layout.tool_dir(self.runtime, self.version)


class NodeInstaller(_RuntimeInstaller):
    runtime = "node"

    def markers(self, layout: Layout) -> tuple[Path, ...]:
        return (self.root(layout) / "node.exe",)

    def install(self, ctx: InstallContext) -> Result[None, ProvisionError]:
        root = self.root(ctx.layout)
        archive_name = f"node-{self.version}.zip"
        staging = ctx.scratch(f"node-{self.version}_extracted")

        extracted = fetch_and_extract(ctx, self.url, archive_name, staging)
        if isinstance(extracted, Err):
            return Err(extracted.error)

        # Release zips contain a single node-v<version>-win-x64/ directory
        source = find_root(staging, "node-*")
        if source is None:
            return Err(
                ProvisionError(
                    ErrorKind.NOT_FOUND, "Could not find extracted Node.js directory", str(staging)
                )
            )
        copy_tree_contents(source, root)

        node = require_file(root / "node.exe", "node.exe")
        if isinstance(node, Err):
            return Err(node.error)

        links = [(f"node{self.version}.exe", node.value)]
        if self.is_default:
            links += [
                ("node.exe", node.value),
                ("npm.cmd", root / "npm.cmd"),
                ("npx.cmd", root / "npx.cmd"),
            ]
        linked = publish_all(ctx, links)
        if isinstance(linked, Err):
            return linked

        self._install_yarn(ctx, root)
        discard(ctx.scratch(archive_name), staging)
        return Ok(None)

    def _install_yarn(self, ctx: InstallContext, root: Path) -> None:
        ctx.console.info("Installing Yarn...")
        result = ctx.runner.run([str(root / "npm.cmd"), "install", "--global", "yarn"], cwd=root)
        if isinstance(result, Err):
            ctx.console.warning(f"npm install --global yarn failed: {result.error}")

        yarn = root / "yarn.cmd"
        if not yarn.is_file():
            ctx.console.warning("Yarn installation may have failed")
            return
        if self.is_default:
            linked = ctx.linker.publish("yarn.cmd", yarn)
            if isinstance(linked, Err):
                ctx.console.warning(str(linked.error))
                return
        ctx.console.success("Yarn installed successfully")


def pth_filename(version: str) -> str:
    """Name of the embeddable distribution's path file: 3.11.4 -> python311._pth."""
    major, minor = version.split(".")[:2]
    return f"python{major}{minor}._pth"


class PythonInstaller(_RuntimeInstaller):
    """Embeddable Python distribution, made pip-capable.

    The embeddable zip ships with site disabled; the ._pth file is
    rewritten to enable it and to add Lib/site-packages, then get-pip.py
    is run against the new interpreter.
    """

    runtime = "python"

    def __init__(
        self, version: str, url_template: str, get_pip_url: str, *, is_default: bool
    ) -> None:
        super().__init__(version, url_template, is_default=is_default)
        self.get_pip_url = get_pip_url

    def markers(self, layout: Layout) -> tuple[Path, ...]:
        return (self.root(layout) / "python.exe",)

    def install(self, ctx: InstallContext) -> Result[None, ProvisionError]:
        root = self.root(ctx.layout)
        archive_name = f"python-{self.version}.zip"

        extracted = fetch_and_extract(ctx, self.url, archive_name, root)
        if isinstance(extracted, Err):
            return Err(extracted.error)

        python = require_file(root / "python.exe", "python.exe")
        if isinstance(python, Err):
            return Err(python.error)

        get_pip = ctx.scratch(f"get-pip-{self.version}.py")
        fetched = ctx.fetcher.fetch(self.get_pip_url, get_pip)
        if isinstance(fetched, Err):
            return Err(fetched.error)

        self._enable_site(root)
        self._install_pip(ctx, python.value, get_pip)

        links = [(f"python{self.version}.exe", python.value)]
        if self.is_default:
            links += [("python.exe", python.value), ("python3.exe", python.value)]
        linked = publish_all(ctx, links)
        if isinstance(linked, Err):
            return linked

        if self.is_default:
            self._link_pip(ctx, root)

        discard(ctx.scratch(archive_name), get_pip)
        return Ok(None)

    def _enable_site(self, root: Path) -> None:
        major, minor = self.version.split(".")[:2]
        lines = [f"python{major}{minor}.zip", ".", "./Lib/site-packages", "import site"]
        (root / pth_filename(self.version)).write_text("\n".join(lines) + "\n", encoding="utf-8")
        (root / "Lib" / "site-packages").mkdir(parents=True, exist_ok=True)

    def _install_pip(self, ctx: InstallContext, python: Path, get_pip: Path) -> None:
        ctx.console.info("Installing pip...")
        result = ctx.runner.run(
            [str(python), str(get_pip), "--no-warn-script-location"], cwd=python.parent
        )
        if isinstance(result, Err):
            ctx.console.warning(f"get-pip.py failed: {result.error}")
            if result.error.stderr:
                ctx.console.print(result.error.stderr.strip(), Style.DIM)

    def _link_pip(self, ctx: InstallContext, root: Path) -> None:
        pip = root / "Scripts" / "pip.exe"
        if not pip.is_file():
            ctx.console.warning("pip installation may have failed")
            return
        linked = publish_all(ctx, [("pip.exe", pip), ("pip3.exe", pip)])
        if isinstance(linked, Err):
            ctx.console.warning(str(linked.error))
            return
        ctx.console.success("pip installed successfully")
