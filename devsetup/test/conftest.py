"""Shared fixtures: an isolated destination tree and fake collaborators."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from devsetup.output.console import MockConsole
from devsetup.platform.paths import Layout
from devsetup.platform.process import MockRunner
from devsetup.platform.shell import ShellFragments
from devsetup.tools.base import InstallContext
from devsetup.tools.catalog import CliToolSpec, EditorSpec, ToolCatalog
from devsetup.tools.download import ArchiveFetcher
from devsetup.tools.extract import ArchiveExtractor, NativeBackend
from devsetup.tools.http import MockHttpClient
from devsetup.tools.links import EntryPointLinker

type ZipBuilder = Callable[[dict[str, bytes]], bytes]


def build_zip(entries: dict[str, bytes]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buf.getvalue()


@pytest.fixture
def make_zip() -> ZipBuilder:
    return build_zip


@pytest.fixture
def layout(tmp_path: Path) -> Layout:
    home = tmp_path / "home"
    home.mkdir()
    return Layout(root=home / "dev", home=home)


@pytest.fixture
def console() -> MockConsole:
    return MockConsole()


@pytest.fixture
def http() -> MockHttpClient:
    return MockHttpClient()


@pytest.fixture
def runner() -> MockRunner:
    return MockRunner()


@pytest.fixture
def ctx(
    layout: Layout, http: MockHttpClient, runner: MockRunner, console: MockConsole
) -> InstallContext:
    layout.ensure()
    return InstallContext(
        layout=layout,
        fetcher=ArchiveFetcher(http),
        extractor=ArchiveExtractor([NativeBackend()]),
        linker=EntryPointLinker(layout.bin_dir),
        runner=runner,
        fragments=ShellFragments(layout.config_dir),
        console=console,
    )


@pytest.fixture
def catalog() -> ToolCatalog:
    return ToolCatalog(
        git_bootstrap_hint="run the bootstrap first",
        terminal_url="https://example.com/terminal.msixbundle",
        editors=(
            EditorSpec(
                name="Sublime Text",
                url="https://example.com/sublime.zip",
                directory="sublime_text",
                exe="sublime_text.exe",
                alias="subl",
            ),
        ),
        cli_tools=(
            CliToolSpec(name="jq", url="https://example.com/jq.exe"),
            CliToolSpec(name="k9s", url="https://example.com/k9s.zip", binaries=("k9s.exe",)),
        ),
        node_url="https://example.com/node-v{version}.zip",
        python_url="https://example.com/python-{version}-embed.zip",
        get_pip_url="https://example.com/get-pip.py",
        rustup_init_url="https://example.com/rustup-init.exe",
        sdkman_installer_url="https://example.com/sdkman.sh",
    )
