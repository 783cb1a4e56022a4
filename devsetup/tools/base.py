"""Base definitions for tool installers.

This module defines the core abstractions:
- Category: Tool grouping, each gated by one options flag
- InstallStatus / ProvisioningResult: Per-tool outcome
- InstallationProbe / MarkerProbe: "Is work needed?" check
- InstallContext: Collaborators handed to every installer
- ToolInstaller: Abstract base with the ensure_installed template method
"""

from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from devsetup.core.errors import ErrorKind, ProvisionError
from devsetup.core.result import Err, Ok, Result
from devsetup.output.console import Style

if TYPE_CHECKING:
    from devsetup.output.console import ConsoleProtocol
    from devsetup.platform.paths import Layout
    from devsetup.platform.process import CommandRunner
    from devsetup.platform.shell import ShellFragments
    from devsetup.tools.download import ArchiveFetcher
    from devsetup.tools.extract import ArchiveExtractor
    from devsetup.tools.links import EntryPointLinker

__all__ = [
    "Category",
    "InstallContext",
    "InstallStatus",
    "InstallationProbe",
    "MarkerProbe",
    "ProvisioningResult",
    "ToolInstaller",
    "discard",
    "fetch_and_extract",
    "publish_all",
    "require_file",
]


class Category(Enum):
    """Tool categories, in the order they are provisioned."""

    VERSION_CONTROL = "version_control"
    TERMINAL = "terminal"
    EDITORS = "editors"
    CLI_TOOLS = "cli_tools"
    LANGUAGES = "languages"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    Category.VERSION_CONTROL: "Version Control",
    Category.TERMINAL: "Terminal",
    Category.EDITORS: "Editors",
    Category.CLI_TOOLS: "CLI Tools",
    Category.LANGUAGES: "Languages",
}


class InstallStatus(Enum):
    ALREADY_PRESENT = "already-present"
    INSTALLED = "installed"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ProvisioningResult:
    """Outcome of one ensure_installed call.

    Attributes:
        tool: Installer name (e.g. "k9s", "python 3.11.4")
        category: Category the installer belongs to
        status: already-present, installed or failed
        error: Cause when status is FAILED
    """

    tool: str
    category: Category
    status: InstallStatus
    error: ProvisionError | None = None

    @property
    def ok(self) -> bool:
        return self.status is not InstallStatus.FAILED


@dataclass(frozen=True, slots=True)
class InstallContext:
    """Everything an installer touches, injected for testability."""

    layout: Layout
    fetcher: ArchiveFetcher
    extractor: ArchiveExtractor
    linker: EntryPointLinker
    runner: CommandRunner
    fragments: ShellFragments
    console: ConsoleProtocol

    def scratch(self, name: str) -> Path:
        """Path under tools/temp; the temp directory is created on demand."""
        self.layout.temp_dir.mkdir(parents=True, exist_ok=True)
        return self.layout.temp_dir / name


class InstallationProbe(Protocol):
    """Decides whether an installer has work to do."""

    def is_installed(self, installer: ToolInstaller, layout: Layout) -> bool: ...


class MarkerProbe:
    """Existence of every marker path is the only signal.

    No version or checksum is compared, so changing a declared version
    for a tool whose marker is present does nothing.
    """

    def is_installed(self, installer: ToolInstaller, layout: Layout) -> bool:
        markers = installer.markers(layout)
        return bool(markers) and all(path.exists() for path in markers)


class ToolInstaller(ABC):
    """Abstract base class for all installers.

    Subclasses must define:
    - name / category
    - markers(): Paths whose existence means "installed"
    - install(): The fetch/extract/link work itself

    ensure_installed() is the error boundary: nothing raised or returned
    by install() escapes as anything other than a FAILED result.
    """

    name: str
    category: Category
    probe: InstallationProbe = MarkerProbe()

    @abstractmethod
    def markers(self, layout: Layout) -> tuple[Path, ...]:
        """Paths that must all exist for the tool to count as installed."""
        ...

    @abstractmethod
    def install(self, ctx: InstallContext) -> Result[None, ProvisionError]:
        """Perform the installation. Only called when the probe says so."""
        ...

    def ensure_installed(self, ctx: InstallContext) -> ProvisioningResult:
        if self.probe.is_installed(self, ctx.layout):
            ctx.console.success(f"{self.name} is already installed")
            return ProvisioningResult(self.name, self.category, InstallStatus.ALREADY_PRESENT)

        ctx.console.info(f"Installing {self.name}...")
        try:
            result = self.install(ctx)
        except OSError as e:
            result = Err(ProvisionError(ErrorKind.IO_ERROR, "Filesystem operation failed", str(e)))
        except Exception as e:
            result = Err(
                ProvisionError(ErrorKind.INSTALLER_ERROR, "Installer raised an error", repr(e))
            )

        match result:
            case Ok():
                ctx.console.success(f"{self.name} installed successfully")
                return ProvisioningResult(self.name, self.category, InstallStatus.INSTALLED)
            case Err(error):
                ctx.console.error(f"Failed to install {self.name}: {error.message}")
                if error.detail:
                    ctx.console.print(f"  {error.detail}", Style.DIM)
                return ProvisioningResult(
                    self.name, self.category, InstallStatus.FAILED, error=error
                )


def fetch_and_extract(
    ctx: InstallContext, url: str, archive_name: str, destination: Path
) -> Result[Path, ProvisionError]:
    """Download url into tools/temp and extract it into destination."""
    archive = ctx.scratch(archive_name)
    return ctx.fetcher.fetch(url, archive).flat_map(
        lambda path: ctx.extractor.extract(path, destination)
    )


def publish_all(
    ctx: InstallContext, links: Iterable[tuple[str, Path]]
) -> Result[None, ProvisionError]:
    """Publish (name, target) pairs in order, stopping at the first failure."""
    for name, target in links:
        result = ctx.linker.publish(name, target)
        if isinstance(result, Err):
            return Err(result.error)
    return Ok(None)


def require_file(path: Path, what: str) -> Result[Path, ProvisionError]:
    if path.is_file():
        return Ok(path)
    return Err(ProvisionError(ErrorKind.NOT_FOUND, f"{what} not found", str(path)))


def discard(*paths: Path) -> None:
    """Remove scratch files and directories."""
    for path in paths:
        if path.is_dir():
            shutil.rmtree(path, ignore_errors=True)
        else:
            path.unlink(missing_ok=True)
