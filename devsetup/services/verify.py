# SPDX-License-Identifier: MIT
"""Post-run verification.

Re-probes the environment the run was supposed to produce and states,
tool by tool, what is and is not there. Purely observational: nothing
here changes state or fails the run.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING

from devsetup.core.result import Err

if TYPE_CHECKING:
    from devsetup.output.console import ConsoleProtocol
    from devsetup.platform.paths import Layout
    from devsetup.platform.process import CommandRunner

__all__ = [
    "CLI_TOOLS",
    "EDITORS",
    "LANGUAGE_TOOLS",
    "CheckResult",
    "CheckStatus",
    "VerificationReporter",
]

CLI_TOOLS = (
    "jq", "yq", "kubectl", "k9s", "age", "dive", "gh",
    "kind", "pandoc", "bat", "fd", "rg", "fzf", "helm",
)  # fmt: skip
LANGUAGE_TOOLS = ("node", "npm", "yarn", "python", "pip", "rustc", "cargo", "rustup")
EDITORS = ("sublime_text", "notepad++")

_EXTENSIONS = ("", ".exe", ".cmd")


class CheckStatus(Enum):
    """Status of a check result."""

    OK = auto()
    """Present (and answered --version where asked)."""

    WARNING = auto()
    """Missing or not answering; reported, never fatal."""

    ERROR = auto()
    """Missing and nothing else can work without it (git)."""


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Result of a single check.

    Attributes:
        name: What was checked (e.g. "git", "rg", "PATH")
        status: Whether the check passed, warned, or failed
        message: Human-readable result message
    """

    name: str
    status: CheckStatus
    message: str

    @property
    def ok(self) -> bool:
        return self.status is CheckStatus.OK

    @classmethod
    def success(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, status=CheckStatus.OK, message=message)

    @classmethod
    def warning(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, status=CheckStatus.WARNING, message=message)

    @classmethod
    def error(cls, name: str, message: str) -> CheckResult:
        return cls(name=name, status=CheckStatus.ERROR, message=message)


class VerificationReporter:
    def __init__(
        self,
        layout: Layout,
        runner: CommandRunner,
        console: ConsoleProtocol,
        search_path: Sequence[Path] | None = None,
        environ_path: str | None = None,
    ) -> None:
        """Initialize the reporter.

        Args:
            layout: Destination tree
            runner: Used for `<tool> --version`
            console: Report sink
            search_path: Directories searched for entry points (default: bin)
            environ_path: PATH to test for the bin directory (default: os.environ)
        """
        self._layout = layout
        self._runner = runner
        self._console = console
        self._search_path = tuple(search_path) if search_path else (layout.bin_dir,)
        self._environ_path = environ_path

    def locate(self, name: str) -> Path | None:
        for directory in self._search_path:
            for ext in _EXTENSIONS:
                candidate = directory / f"{name}{ext}"
                if candidate.is_file():
                    return candidate
        return None

    def version_of(self, executable: Path) -> str | None:
        """First line of `<executable> --version`, or None."""
        result = self._runner.run([str(executable), "--version"])
        if isinstance(result, Err):
            # Some tools print their version on stderr or exit non-zero
            if result.error.returncode == -1:
                return None
            text = result.error.stdout or result.error.stderr
        else:
            text = result.value
        lines = [line.strip() for line in text.splitlines() if line.strip()]
        return lines[0] if lines else None

    def check_git(self) -> CheckResult:
        git = self.locate("git")
        if git is None:
            return CheckResult.error("git", "Git installation failed")
        version = self.version_of(git)
        return CheckResult.success("git", f"Git installed: {version or 'version unknown'}")

    def check_cli_tool(self, name: str) -> CheckResult:
        if self.locate(name) is None:
            return CheckResult.warning(name, f"{name} not found in PATH")
        return CheckResult.success(name, f"{name} installed and in PATH")

    def check_language_tool(self, name: str) -> CheckResult:
        path = self.locate(name)
        if path is None:
            return CheckResult.warning(name, f"{name} not found in PATH")
        version = self.version_of(path)
        if version is None:
            return CheckResult.warning(name, f"{name} found at {path} but --version failed")
        return CheckResult.success(name, f"{name} installed: {version}")

    def check_editor(self, name: str) -> CheckResult:
        exe = self._layout.tool_dir(name) / f"{name}.exe"
        if exe.is_file():
            return CheckResult.success(name, f"{name} installed at {exe}")
        return CheckResult.warning(name, f"{name} not found")

    def check_sdkman(self) -> CheckResult:
        init = self._layout.tool_dir("sdkman") / "bin" / "sdkman-init.sh"
        if init.is_file():
            return CheckResult.success("sdkman", f"SDKMAN! installed at {init.parent.parent}")
        return CheckResult.warning("sdkman", "SDKMAN! not found")

    def check_bin_on_path(self) -> CheckResult:
        raw = self._environ_path if self._environ_path is not None else os.environ.get("PATH", "")
        bin_dir = self._layout.bin_dir
        for entry in raw.split(os.pathsep):
            if entry and _same_dir(Path(entry), bin_dir):
                return CheckResult.success("PATH", f"{bin_dir} is on PATH")
        return CheckResult.warning(
            "PATH", f"{bin_dir} is not on PATH yet; start a new shell session"
        )

    def collect(self) -> list[CheckResult]:
        checks = [self.check_git()]
        checks += [self.check_cli_tool(name) for name in CLI_TOOLS]
        checks += [self.check_language_tool(name) for name in LANGUAGE_TOOLS]
        checks += [self.check_editor(name) for name in EDITORS]
        checks.append(self.check_sdkman())
        checks.append(self.check_bin_on_path())
        return checks

    def report(self) -> list[CheckResult]:
        """Run every check and print it. Never raises on a failed check."""
        self._console.header("Verifying installed tools")
        checks = self.collect()
        for check in checks:
            match check.status:
                case CheckStatus.OK:
                    self._console.success(check.message)
                case CheckStatus.WARNING:
                    self._console.warning(check.message)
                case CheckStatus.ERROR:
                    self._console.error(check.message)
        return checks


def _same_dir(a: Path, b: Path) -> bool:
    try:
        return a.resolve() == b.resolve()
    except OSError:
        return False
