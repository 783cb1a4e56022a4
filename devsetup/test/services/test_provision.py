"""Tests for the provisioning orchestrator."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

import pytest

from devsetup.core.errors import ErrorKind
from devsetup.core.options import DesiredState, Toggle, parse_options
from devsetup.core.result import Err, Ok
from devsetup.output.console import MockConsole, Style
from devsetup.platform.process import MockRunner
from devsetup.services.provision import CATEGORY_ORDER, ProvisioningOrchestrator
from devsetup.tools.base import Category, InstallContext, InstallStatus
from devsetup.tools.catalog import PLAN_BUILDERS, CliToolSpec, ToolCatalog
from devsetup.tools.http import MockHttpClient
from devsetup.tools.installers.git import git_root

type ZipBuilder = Callable[[dict[str, bytes]], bytes]


def _touch_all(directory: Path, *names: str) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_bytes(name.encode())


@pytest.fixture
def served(
    ctx: InstallContext, http: MockHttpClient, runner: MockRunner, make_zip: ZipBuilder
) -> InstallContext:
    """Bootstrapped git plus every download and installer the test catalog needs."""
    _touch_all(git_root(ctx.layout) / "bin", "git.exe")

    http.set_download("https://example.com/terminal.msixbundle", b"msix")
    http.set_download("https://example.com/sublime.zip", make_zip({"sublime_text.exe": b"st"}))
    http.set_download("https://example.com/jq.exe", b"jq")
    http.set_download("https://example.com/k9s.zip", make_zip({"k9s/k9s.exe": b"k9s"}))
    http.set_download(
        "https://example.com/node-v18.16.1.zip",
        make_zip(
            {
                "node-v18.16.1-win-x64/node.exe": b"node",
                "node-v18.16.1-win-x64/npm.cmd": b"npm",
                "node-v18.16.1-win-x64/npx.cmd": b"npx",
            }
        ),
    )
    http.set_download(
        "https://example.com/python-3.11.4-embed.zip",
        make_zip({"python.exe": b"py", "python311.zip": b"lib", "python311._pth": b""}),
    )
    http.set_download("https://example.com/get-pip.py", b"# get-pip")
    http.set_download("https://example.com/rustup-init.exe", b"rustup")
    http.set_download("https://example.com/sdkman.sh", b"#!/bin/bash")

    layout = ctx.layout
    runner.on(
        "npm.cmd",
        lambda cmd, cwd, env: _touch_all(Path(cmd[0]).parent, "yarn.cmd"),
    )
    runner.on(
        "get-pip",
        lambda cmd, cwd, env: _touch_all(Path(cmd[0]).parent / "Scripts", "pip.exe"),
    )
    runner.on(
        "rustup-init",
        lambda cmd, cwd, env: _touch_all(
            layout.tool_dir("rust") / "bin", "rustc.exe", "cargo.exe", "rustup.exe"
        ),
    )
    runner.on(
        "sdkman-install.sh",
        lambda cmd, cwd, env: _touch_all(layout.tool_dir("sdkman") / "bin", "sdkman-init.sh"),
    )
    return ctx


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        str(p.relative_to(root)): p.read_bytes() for p in sorted(root.rglob("*")) if p.is_file()
    }


def _headers(console: MockConsole) -> list[str]:
    return [o.message for o in console.outputs if o.style is Style.HEADER]


class TestRun:
    def test_full_run(
        self, served: InstallContext, catalog: ToolCatalog, console: MockConsole
    ) -> None:
        result = ProvisioningOrchestrator(served, catalog).run(DesiredState.default())

        assert isinstance(result, Ok)
        report = result.value
        assert report.failed == []
        assert [r.tool for r in report.installed] == [
            "git",
            "windows-terminal",
            "Sublime Text",
            "jq",
            "k9s",
            "node 18.16.1",
            "python 3.11.4",
            "sdkman",
            "rust",
        ]
        assert _headers(console) == [c.label for c in CATEGORY_ORDER]
        assert not served.layout.temp_dir.exists()
        assert (served.layout.config_dir / "bashrc.template").is_file()
        assert console.find("9 installed, 0 already present, 0 failed")

    def test_second_run_is_a_no_op(
        self,
        served: InstallContext,
        catalog: ToolCatalog,
        http: MockHttpClient,
        runner: MockRunner,
    ) -> None:
        orchestrator = ProvisioningOrchestrator(served, catalog)
        orchestrator.run(DesiredState.default())
        downloads = len(http.calls)
        commands = len(runner.calls)

        report = orchestrator.run(DesiredState.default()).unwrap()

        assert report.installed == []
        assert len(report.already_present) == 9
        assert len(http.calls) == downloads
        assert len(runner.calls) == commands

    def test_failed_tool_does_not_stop_the_run(
        self,
        served: InstallContext,
        catalog: ToolCatalog,
        console: MockConsole,
    ) -> None:
        broken = replace(
            catalog,
            cli_tools=(
                CliToolSpec("jq", "https://example.com/missing.exe"),
                catalog.cli_tools[1],
            ),
        )

        report = ProvisioningOrchestrator(served, broken).run(DesiredState.default()).unwrap()

        jq = report.result_for("jq")
        assert jq is not None and jq.status is InstallStatus.FAILED
        assert jq.error is not None and jq.error.kind is ErrorKind.FETCH_FAILED
        k9s = report.result_for("k9s")
        assert k9s is not None and k9s.status is InstallStatus.INSTALLED
        assert len(report.for_category(Category.LANGUAGES)) == 4
        assert console.find("1 failed")

    def test_missing_git_is_reported_not_fatal(
        self, served: InstallContext, catalog: ToolCatalog
    ) -> None:
        (git_root(served.layout) / "bin" / "git.exe").unlink()

        report = ProvisioningOrchestrator(served, catalog).run(DesiredState.default()).unwrap()

        git = report.result_for("git")
        assert git is not None and git.status is InstallStatus.FAILED
        assert len(report.installed) == 8

    def test_disabled_categories_are_skipped(
        self, served: InstallContext, catalog: ToolCatalog, console: MockConsole
    ) -> None:
        state = DesiredState(terminal=Toggle(False), editors=Toggle(False))

        report = ProvisioningOrchestrator(served, catalog).run(state).unwrap()

        assert report.skipped == (Category.TERMINAL, Category.EDITORS)
        assert report.for_category(Category.EDITORS) == []
        assert console.find("Terminal installation disabled in options, skipping")
        assert "Editors" not in _headers(console)

    def test_disabled_runtime_is_logged(
        self, served: InstallContext, catalog: ToolCatalog, console: MockConsole
    ) -> None:
        state = parse_options({"languages": {"node": {"install": False}}}).state

        report = ProvisioningOrchestrator(served, catalog).run(state).unwrap()

        assert report.result_for("node 18.16.1") is None
        assert console.find("node installation disabled in options, skipping")


    def test_cli_tools_disabled_touches_nothing_of_that_category(
        self, served: InstallContext, catalog: ToolCatalog, http: MockHttpClient
    ) -> None:
        state = DesiredState(cli_tools=Toggle(False))

        report = ProvisioningOrchestrator(served, catalog).run(state).unwrap()

        assert report.for_category(Category.CLI_TOOLS) == []
        assert not (served.layout.bin_dir / "jq.exe").exists()
        assert not (served.layout.bin_dir / "k9s.exe").exists()
        assert "https://example.com/jq.exe" not in http.calls
        assert "https://example.com/k9s.zip" not in http.calls

    def test_second_run_leaves_the_tree_unchanged(
        self, served: InstallContext, catalog: ToolCatalog
    ) -> None:
        orchestrator = ProvisioningOrchestrator(served, catalog)
        orchestrator.run(DesiredState.default())
        before = _snapshot(served.layout.root)

        orchestrator.run(DesiredState.default())

        assert _snapshot(served.layout.root) == before


class TestMissingComponent:
    def test_run_stops_before_any_change(
        self,
        ctx: InstallContext,
        catalog: ToolCatalog,
        http: MockHttpClient,
        console: MockConsole,
    ) -> None:
        builders = {c: b for c, b in PLAN_BUILDERS.items() if c is not Category.LANGUAGES}

        result = ProvisioningOrchestrator(ctx, catalog, builders).run(DesiredState.default())

        assert isinstance(result, Err)
        assert result.error.kind is ErrorKind.MISSING_COMPONENT
        assert result.error.detail == "languages"
        assert http.calls == []
        assert not (ctx.layout.config_dir / "bashrc.template").exists()
        assert console.find("Missing 1 required component(s). Cannot continue.")


class TestSeedTemplates:
    def test_local_edits_survive(self, ctx: InstallContext, catalog: ToolCatalog) -> None:
        custom = ctx.layout.config_dir / "bashrc.template"
        custom.write_text("# mine\n", encoding="utf-8")

        seeded = ProvisioningOrchestrator(ctx, catalog).seed_templates()

        assert seeded == ["gitconfig.template"]
        assert custom.read_text(encoding="utf-8") == "# mine\n"
