"""Subprocess execution with Result-based error handling.

Installers shell out to tool-provided setup programs (get-pip.py,
rustup-init, npm, the SDKMAN! installer) through a CommandRunner so tests
can substitute canned outcomes.

Usage:
    match runner.run(["npm.cmd", "install", "--global", "yarn"], cwd=node_dir):
        case Ok(stdout):
            ...
        case Err(error):
            console.print(error.stderr, Style.DIM)
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from devsetup.core.result import Err, Ok, Result

__all__ = ["CommandRunner", "MockRunner", "ProcessError", "SubprocessRunner", "run"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: Exit code, or -1 when the program could not be started.
        stdout: Standard output (may be empty).
        stderr: Standard error, or the OS error text.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def run(
    cmd: list[str],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Output is decoded in the locale encoding; undecodable bytes become U+FFFD.

    No timeout: tool installers may legitimately run for minutes.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory (current directory if None).
        env: Extra environment variables, layered over os.environ.

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    full_env = {**os.environ, **env} if env else None
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            env=full_env,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)


class CommandRunner(Protocol):
    """Protocol for running external commands (mocked in tests)."""

    def run(
        self,
        cmd: list[str],
        *,
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
    ) -> Result[str, ProcessError]: ...


class SubprocessRunner:
    """Default runner using subprocess.run."""

    def run(
        self,
        cmd: list[str],
        *,
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
    ) -> Result[str, ProcessError]:
        return run(cmd, cwd=cwd, env=env)


type Effect = Callable[[list[str], Path | None, dict[str, str] | None], str | None]


class MockRunner:
    """Runner returning canned outcomes, for tests.

    Rules match when their needle is a substring of the joined command.
    The first matching rule wins; unmatched commands succeed with no
    output.

    Usage:
        runner = MockRunner()
        runner.on("npm.cmd", lambda cmd, cwd, env: (cwd / "yarn.cmd").touch())
        runner.fail("rustup-init", returncode=1, stderr="network down")
    """

    def __init__(self) -> None:
        self._rules: list[tuple[str, Effect | ProcessError]] = []
        self.calls: list[tuple[str, ...]] = []
        self.envs: list[dict[str, str] | None] = []

    def on(self, needle: str, effect: Effect) -> None:
        """Run effect (e.g. create the files a real installer would) and succeed."""
        self._rules.append((needle, effect))

    def fail(
        self, needle: str, *, returncode: int = 1, stdout: str = "", stderr: str = ""
    ) -> None:
        error = ProcessError(
            command=(needle,), returncode=returncode, stdout=stdout, stderr=stderr
        )
        self._rules.append((needle, error))

    def called(self, needle: str) -> bool:
        return any(needle in " ".join(call) for call in self.calls)

    def run(
        self,
        cmd: list[str],
        *,
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
    ) -> Result[str, ProcessError]:
        self.calls.append(tuple(cmd))
        self.envs.append(env)
        joined = " ".join(cmd)
        for needle, rule in self._rules:
            if needle not in joined:
                continue
            if isinstance(rule, ProcessError):
                return Err(
                    ProcessError(
                        command=tuple(cmd),
                        returncode=rule.returncode,
                        stdout=rule.stdout,
                        stderr=rule.stderr,
                    )
                )
            return Ok(rule(cmd, cwd, env) or "")
        return Ok("")
