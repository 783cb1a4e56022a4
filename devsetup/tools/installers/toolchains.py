"""Toolchains installed by their own upstream installer (rustup, SDKMAN!).

Both need environment variables in every shell, so each appends an
initialisation block to the paths fragment. The block is guarded by a
marker substring and never written twice.
"""

from __future__ import annotations

import contextlib
from pathlib import Path
from typing import TYPE_CHECKING

from devsetup.core.errors import ErrorKind, ProvisionError
from devsetup.core.options import JavaOptions
from devsetup.core.result import Err, Ok, Result
from devsetup.platform.shell import bash_path
from devsetup.tools.base import Category, ToolInstaller, discard, publish_all, require_file

if TYPE_CHECKING:
    from devsetup.platform.paths import Layout
    from devsetup.platform.process import ProcessError
    from devsetup.tools.base import InstallContext

__all__ = ["RustInstaller", "SdkmanInstaller"]

RUST_MARKER = "CARGO_HOME="
SDKMAN_MARKER = "SDKMAN_DIR="


def _post_step_failed(what: str, error: ProcessError) -> Err[ProvisionError]:
    detail = error.stderr.strip() or str(error)
    return Err(ProvisionError(ErrorKind.POST_STEP_FAILED, f"{what} failed", detail))


class RustInstaller(ToolInstaller):
    name = "rust"
    category = Category.LANGUAGES

    def __init__(self, rustup_init_url: str) -> None:
        self.url = rustup_init_url

    def root(self, layout: Layout) -> Path:
        return layout.tool_dir("rust")

    def markers(self, layout: Layout) -> tuple[Path, ...]:
        return (self.root(layout) / "bin" / "rustc.exe",)

    def install(self, ctx: InstallContext) -> Result[None, ProvisionError]:
        root = self.root(ctx.layout)
        root.mkdir(parents=True, exist_ok=True)

        rustup_init = ctx.scratch("rustup-init.exe")
        fetched = ctx.fetcher.fetch(self.url, rustup_init)
        if isinstance(fetched, Err):
            return Err(fetched.error)
        with contextlib.suppress(OSError):
            rustup_init.chmod(0o755)

        ctx.console.info("Running Rust installer...")
        env = {"RUSTUP_HOME": str(root), "CARGO_HOME": str(root)}
        ran = ctx.runner.run([str(rustup_init), "-y", "--no-modify-path"], env=env)
        if isinstance(ran, Err):
            return _post_step_failed("rustup-init", ran.error)

        bin_dir = root / "bin"
        rustc = require_file(bin_dir / "rustc.exe", "rustc.exe")
        if isinstance(rustc, Err):
            return Err(rustc.error)

        linked = publish_all(
            ctx, [(exe, bin_dir / exe) for exe in ("rustc.exe", "cargo.exe", "rustup.exe")]
        )
        if isinstance(linked, Err):
            return linked

        home = bash_path(root)
        written = ctx.fragments.append_block(
            RUST_MARKER,
            "Rust initialization",
            [
                f'export RUSTUP_HOME="{home}"',
                f'export CARGO_HOME="{home}"',
                'export PATH="$CARGO_HOME/bin:$PATH"',
            ],
        )
        if not written:
            ctx.console.info("Rust already initialized in shell profile")

        discard(rustup_init)
        return Ok(None)


class SdkmanInstaller(ToolInstaller):
    """SDKMAN! (and optionally one Java candidate through it)."""

    name = "sdkman"
    category = Category.LANGUAGES

    def __init__(self, installer_url: str, java: JavaOptions) -> None:
        self.url = installer_url
        self.java = java

    def root(self, layout: Layout) -> Path:
        return layout.tool_dir("sdkman")

    def markers(self, layout: Layout) -> tuple[Path, ...]:
        return (self.root(layout) / "bin" / "sdkman-init.sh",)

    def install(self, ctx: InstallContext) -> Result[None, ProvisionError]:
        root = self.root(ctx.layout)
        root.mkdir(parents=True, exist_ok=True)
        env = {"SDKMAN_DIR": bash_path(root)}

        script = ctx.scratch("sdkman-install.sh")
        fetched = ctx.fetcher.fetch(self.url, script)
        if isinstance(fetched, Err):
            return Err(fetched.error)

        ctx.console.info("Running SDKMAN! installer...")
        ran = ctx.runner.run(["bash", str(script)], env=env)
        if isinstance(ran, Err):
            return _post_step_failed("SDKMAN! installer", ran.error)

        init = require_file(root / "bin" / "sdkman-init.sh", "sdkman-init.sh")
        if isinstance(init, Err):
            return Err(init.error)

        written = ctx.fragments.append_block(
            SDKMAN_MARKER,
            "SDKMAN! initialization",
            [
                f'export SDKMAN_DIR="{bash_path(root)}"',
                '[[ -s "$SDKMAN_DIR/bin/sdkman-init.sh" ]] && '
                'source "$SDKMAN_DIR/bin/sdkman-init.sh"',
            ],
        )
        if not written:
            ctx.console.info("SDKMAN! already initialized in shell profile")

        if self.java.install:
            self._install_java(ctx, init.value, env)

        discard(script)
        return Ok(None)

    def _install_java(self, ctx: InstallContext, init: Path, env: dict[str, str]) -> None:
        version = self.java.version
        ctx.console.info(f"Installing Java {version} with SDKMAN!...")
        command = f'source "{bash_path(init)}" && sdk install java {version}'
        result = ctx.runner.run(["bash", "-c", command], env=env)
        if isinstance(result, Err):
            ctx.console.warning(f"Java {version} installation failed: {result.error}")
            return
        ctx.console.success(f"Java {version} installed")
