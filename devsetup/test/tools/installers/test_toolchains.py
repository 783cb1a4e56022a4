"""Tests for rustup and SDKMAN! driven installs."""

from __future__ import annotations

from pathlib import Path

from devsetup.core.errors import ErrorKind
from devsetup.core.options import JavaOptions
from devsetup.output.console import MockConsole
from devsetup.platform.process import MockRunner
from devsetup.tools.base import InstallContext, InstallStatus
from devsetup.tools.http import MockHttpClient
from devsetup.tools.installers import RustInstaller, SdkmanInstaller

RUSTUP_URL = "https://example.com/rustup-init.exe"
SDKMAN_URL = "https://example.com/sdkman.sh"


def _rustup_populates(cmd: list[str], cwd: Path | None, env: dict[str, str] | None) -> None:
    assert env is not None
    bin_dir = Path(env["CARGO_HOME"]) / "bin"
    bin_dir.mkdir(parents=True, exist_ok=True)
    for exe in ("rustc.exe", "cargo.exe", "rustup.exe"):
        (bin_dir / exe).write_bytes(exe.encode())


class TestRustInstaller:
    def test_install_links_and_initializes_shell(
        self, ctx: InstallContext, http: MockHttpClient, runner: MockRunner
    ) -> None:
        http.set_download(RUSTUP_URL, b"rustup")
        runner.on("rustup-init", _rustup_populates)

        result = RustInstaller(RUSTUP_URL).ensure_installed(ctx)

        root = ctx.layout.tool_dir("rust")
        assert result.status is InstallStatus.INSTALLED
        assert runner.calls[0][1:] == ("-y", "--no-modify-path")
        assert runner.envs[0] == {"RUSTUP_HOME": str(root), "CARGO_HOME": str(root)}
        for exe in ("rustc.exe", "cargo.exe", "rustup.exe"):
            assert ctx.linker.resolve(exe) == root / "bin" / exe
        paths = ctx.fragments.paths.read_text(encoding="utf-8")
        assert "# Rust initialization" in paths
        assert 'export PATH="$CARGO_HOME/bin:$PATH"' in paths
        assert not (ctx.layout.temp_dir / "rustup-init.exe").exists()

    def test_init_block_written_once(
        self,
        ctx: InstallContext,
        http: MockHttpClient,
        runner: MockRunner,
        console: MockConsole,
    ) -> None:
        http.set_download(RUSTUP_URL, b"rustup")
        runner.on("rustup-init", _rustup_populates)
        installer = RustInstaller(RUSTUP_URL)

        installer.install(ctx)
        installer.install(ctx)

        paths = ctx.fragments.paths.read_text(encoding="utf-8")
        assert paths.count("CARGO_HOME=") == 1
        assert console.find("Rust already initialized in shell profile")

    def test_ansi_edited_paths_file_does_not_break_install(
        self, ctx: InstallContext, http: MockHttpClient, runner: MockRunner
    ) -> None:
        ctx.fragments.paths.parent.mkdir(parents=True, exist_ok=True)
        ctx.fragments.paths.write_bytes(b"# mes r\xe9glages\n")
        http.set_download(RUSTUP_URL, b"rustup")
        runner.on("rustup-init", _rustup_populates)

        result = RustInstaller(RUSTUP_URL).ensure_installed(ctx)

        assert result.status is InstallStatus.INSTALLED
        assert b"# Rust initialization" in ctx.fragments.paths.read_bytes()

    def test_rustup_failure_is_post_step_failed(
        self, ctx: InstallContext, http: MockHttpClient, runner: MockRunner
    ) -> None:
        http.set_download(RUSTUP_URL, b"rustup")
        runner.fail("rustup-init", returncode=1, stderr="error: could not download\n")

        result = RustInstaller(RUSTUP_URL).ensure_installed(ctx)

        assert result.status is InstallStatus.FAILED
        assert result.error is not None
        assert result.error.kind is ErrorKind.POST_STEP_FAILED
        assert result.error.detail == "error: could not download"
        assert not ctx.fragments.paths.exists()

    def test_missing_rustc_after_installer(
        self, ctx: InstallContext, http: MockHttpClient
    ) -> None:
        http.set_download(RUSTUP_URL, b"rustup")

        result = RustInstaller(RUSTUP_URL).ensure_installed(ctx)

        assert result.status is InstallStatus.FAILED
        assert result.error is not None
        assert result.error.kind is ErrorKind.NOT_FOUND


class TestSdkmanInstaller:
    def _serve(self, ctx: InstallContext, http: MockHttpClient, runner: MockRunner) -> Path:
        init = ctx.layout.tool_dir("sdkman") / "bin" / "sdkman-init.sh"

        def populate(cmd: list[str], cwd: Path | None, env: dict[str, str] | None) -> None:
            init.parent.mkdir(parents=True, exist_ok=True)
            init.write_text("# sdkman", encoding="utf-8")

        http.set_download(SDKMAN_URL, b"#!/bin/bash")
        runner.on("sdkman-install.sh", populate)
        return init

    def test_install_without_java(
        self, ctx: InstallContext, http: MockHttpClient, runner: MockRunner
    ) -> None:
        self._serve(ctx, http, runner)

        result = SdkmanInstaller(SDKMAN_URL, JavaOptions()).ensure_installed(ctx)

        assert result.status is InstallStatus.INSTALLED
        assert runner.calls[0][0] == "bash"
        assert runner.envs[0] is not None and "SDKMAN_DIR" in runner.envs[0]
        assert not runner.called("sdk install java")
        assert ctx.fragments.contains("SDKMAN_DIR=")

    def test_install_with_java(
        self, ctx: InstallContext, http: MockHttpClient, runner: MockRunner
    ) -> None:
        self._serve(ctx, http, runner)
        java = JavaOptions(install=True, version="17.0.8-tem")

        SdkmanInstaller(SDKMAN_URL, java).ensure_installed(ctx)

        assert runner.called("sdk install java 17.0.8-tem")

    def test_java_failure_is_a_warning(
        self,
        ctx: InstallContext,
        http: MockHttpClient,
        runner: MockRunner,
        console: MockConsole,
    ) -> None:
        runner.fail("sdk install java")
        self._serve(ctx, http, runner)

        result = SdkmanInstaller(SDKMAN_URL, JavaOptions(install=True)).ensure_installed(ctx)

        assert result.status is InstallStatus.INSTALLED
        assert console.find("installation failed")

    def test_installer_failure(
        self, ctx: InstallContext, http: MockHttpClient, runner: MockRunner
    ) -> None:
        http.set_download(SDKMAN_URL, b"#!/bin/bash")
        runner.fail("sdkman-install.sh", stderr="unzip not found")

        result = SdkmanInstaller(SDKMAN_URL, JavaOptions()).ensure_installed(ctx)

        assert result.status is InstallStatus.FAILED
        assert result.error is not None
        assert result.error.kind is ErrorKind.POST_STEP_FAILED
