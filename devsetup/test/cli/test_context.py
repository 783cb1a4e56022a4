from __future__ import annotations

import builtins
from pathlib import Path

import pytest

from devsetup.cli.context import build_context
from devsetup.core.errors import ErrorKind
from devsetup.tools.base import InstallStatus
from devsetup.tools.http import RealHttpClient
from devsetup.tools.installers import BinaryInstaller


@pytest.fixture
def isolated_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("DEVSETUP_ROOT", str(tmp_path / "dev"))
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("USERPROFILE", str(tmp_path))
    return tmp_path / "dev"


@pytest.fixture
def without_ssl(monkeypatch: pytest.MonkeyPatch) -> None:
    real_import = builtins.__import__

    def importer(name: str, *args: object, **kwargs: object) -> object:
        if name == "ssl":
            raise ImportError("No module named '_ssl'")
        return real_import(name, *args, **kwargs)  # type: ignore[arg-type]

    monkeypatch.setattr(builtins, "__import__", importer)


def test_real_transport_by_default(isolated_root: Path) -> None:
    ctx = build_context()
    assert isinstance(ctx.http, RealHttpClient)
    assert ctx.layout.root == isolated_root


@pytest.mark.usefixtures("without_ssl")
class TestWithoutSsl:
    def test_transport_unavailable(self) -> None:
        assert RealHttpClient.available() is False

    def test_context_has_no_transport(self, isolated_root: Path) -> None:
        assert build_context().http is None

    def test_installers_report_transport_unavailable(self, isolated_root: Path) -> None:
        ctx = build_context().install_context()

        result = BinaryInstaller("jq", "https://example.com/jq.exe").ensure_installed(ctx)

        assert result.status is InstallStatus.FAILED
        assert result.error is not None
        assert result.error.kind is ErrorKind.TRANSPORT_UNAVAILABLE
