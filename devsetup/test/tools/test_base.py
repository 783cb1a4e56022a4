"""Tests for the installer template method and shared helpers."""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path

from devsetup.core.errors import ErrorKind, ProvisionError
from devsetup.core.result import Err, Ok, Result
from devsetup.output.console import MockConsole
from devsetup.platform.paths import Layout
from devsetup.platform.process import SubprocessRunner
from devsetup.tools.base import (
    Category,
    InstallContext,
    InstallStatus,
    MarkerProbe,
    ProvisioningResult,
    ToolInstaller,
    discard,
    fetch_and_extract,
    publish_all,
    require_file,
)
from devsetup.tools.http import MockHttpClient


type ZipBuilder = Callable[[dict[str, bytes]], bytes]


class StubInstaller(ToolInstaller):
    name = "stub"
    category = Category.CLI_TOOLS

    def __init__(self, outcome: Result[None, ProvisionError] | Exception = Ok(None)) -> None:
        self.outcome = outcome
        self.install_calls = 0

    def markers(self, layout: Layout) -> tuple[Path, ...]:
        return (layout.bin_dir / "stub.exe",)

    def install(self, ctx: InstallContext) -> Result[None, ProvisionError]:
        self.install_calls += 1
        if isinstance(self.outcome, Exception):
            raise self.outcome
        if isinstance(self.outcome, Ok):
            (ctx.layout.bin_dir / "stub.exe").write_bytes(b"")
        return self.outcome


class TestCategory:
    def test_labels(self) -> None:
        assert Category.CLI_TOOLS.label == "CLI Tools"
        assert Category.VERSION_CONTROL.label == "Version Control"
        assert str(Category.LANGUAGES) == "languages"


class TestEnsureInstalled:
    def test_installs_when_marker_absent(
        self, ctx: InstallContext, console: MockConsole
    ) -> None:
        installer = StubInstaller()

        result = installer.ensure_installed(ctx)

        assert result == ProvisioningResult("stub", Category.CLI_TOOLS, InstallStatus.INSTALLED)
        assert console.find("Installing stub...")
        assert console.find("stub installed successfully")

    def test_second_run_is_a_no_op(self, ctx: InstallContext, console: MockConsole) -> None:
        installer = StubInstaller()
        installer.ensure_installed(ctx)

        result = installer.ensure_installed(ctx)

        assert result.status is InstallStatus.ALREADY_PRESENT
        assert installer.install_calls == 1
        assert console.find("stub is already installed")

    def test_error_value_becomes_failed(self, ctx: InstallContext, console: MockConsole) -> None:
        error = ProvisionError(ErrorKind.FETCH_FAILED, "Download failed", "HTTP 503")
        result = StubInstaller(Err(error)).ensure_installed(ctx)

        assert result.status is InstallStatus.FAILED
        assert result.error == error
        assert not result.ok
        assert console.find("Failed to install stub: Download failed")
        assert console.find("HTTP 503")

    def test_os_error_is_contained(self, ctx: InstallContext) -> None:
        result = StubInstaller(PermissionError("denied")).ensure_installed(ctx)

        assert result.status is InstallStatus.FAILED
        assert result.error is not None
        assert result.error.kind is ErrorKind.IO_ERROR

    def test_any_exception_is_contained(self, ctx: InstallContext, console: MockConsole) -> None:
        result = StubInstaller(ValueError("not enough values to unpack")).ensure_installed(ctx)

        assert result.status is InstallStatus.FAILED
        assert result.error is not None
        assert result.error.kind is ErrorKind.INSTALLER_ERROR
        assert "not enough values" in (result.error.detail or "")
        assert console.find("Failed to install stub")

    def test_undecodable_tool_output_does_not_escape(self, ctx: InstallContext) -> None:
        class ChattyInstaller(StubInstaller):
            def install(self, ctx: InstallContext) -> Result[None, ProvisionError]:
                script = "import sys; sys.stdout.buffer.write(b'progress \\xff\\xfe\\n')"
                output = SubprocessRunner().run([sys.executable, "-c", script])
                assert isinstance(output, Ok)
                return super().install(ctx)

        result = ChattyInstaller().ensure_installed(ctx)

        assert result.status is InstallStatus.INSTALLED


class TestMarkerProbe:
    def test_all_markers_required(self, layout: Layout) -> None:
        class TwoMarkers(StubInstaller):
            def markers(self, layout: Layout) -> tuple[Path, ...]:
                return (layout.bin_dir / "age.exe", layout.bin_dir / "age-keygen.exe")

        layout.ensure()
        installer = TwoMarkers()
        probe = MarkerProbe()
        (layout.bin_dir / "age.exe").write_bytes(b"")
        assert not probe.is_installed(installer, layout)
        (layout.bin_dir / "age-keygen.exe").write_bytes(b"")
        assert probe.is_installed(installer, layout)


class TestHelpers:
    def test_fetch_and_extract(
        self, ctx: InstallContext, http: MockHttpClient, make_zip: ZipBuilder
    ) -> None:
        http.set_download("https://example.com/a.zip", make_zip({"a/a.exe": b"a"}))
        dest = ctx.layout.tool_dir("a")

        result = fetch_and_extract(ctx, "https://example.com/a.zip", "a.zip", dest)

        assert result == Ok(dest)
        assert (dest / "a" / "a.exe").is_file()

    def test_fetch_and_extract_stops_at_fetch(self, ctx: InstallContext) -> None:
        result = fetch_and_extract(ctx, "https://example.com/none.zip", "none.zip", ctx.layout.root)
        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.FETCH_FAILED

    def test_publish_all_stops_at_first_failure(self, ctx: InstallContext, tmp_path: Path) -> None:
        exe = tmp_path / "x.exe"
        exe.write_bytes(b"")

        result = publish_all(ctx, [("x.exe", exe), ("y.exe", tmp_path / "y.exe"), ("z.exe", exe)])

        assert isinstance(result, Err)
        assert ctx.linker.published == ["x.exe"]

    def test_require_file(self, tmp_path: Path) -> None:
        assert isinstance(require_file(tmp_path / "python.exe", "python.exe"), Err)
        (tmp_path / "python.exe").write_bytes(b"")
        assert require_file(tmp_path / "python.exe", "python.exe") == Ok(tmp_path / "python.exe")

    def test_discard(self, tmp_path: Path) -> None:
        (tmp_path / "staging" / "deep").mkdir(parents=True)
        (tmp_path / "a.zip").write_bytes(b"")
        discard(tmp_path / "staging", tmp_path / "a.zip", tmp_path / "never-existed")
        assert list(tmp_path.iterdir()) == []

    def test_scratch_creates_temp(self, ctx: InstallContext) -> None:
        ctx.layout.temp_dir.rmdir()
        path = ctx.scratch("k9s.zip")
        assert path.parent.is_dir()
