from __future__ import annotations

from dataclasses import dataclass

from devsetup.output.console import ConsoleProtocol, RichConsole
from devsetup.platform.paths import Layout
from devsetup.platform.process import CommandRunner, SubprocessRunner
from devsetup.platform.shell import ShellFragments
from devsetup.tools.base import InstallContext
from devsetup.tools.download import ArchiveFetcher
from devsetup.tools.extract import ArchiveExtractor
from devsetup.tools.http import HttpClient, RealHttpClient
from devsetup.tools.links import EntryPointLinker


@dataclass(frozen=True, slots=True)
class CLIContext:
    layout: Layout
    console: ConsoleProtocol
    runner: CommandRunner
    http: HttpClient | None

    def install_context(self) -> InstallContext:
        return InstallContext(
            layout=self.layout,
            fetcher=ArchiveFetcher(self.http),
            extractor=ArchiveExtractor.default(self.runner),
            linker=EntryPointLinker(self.layout.bin_dir),
            runner=self.runner,
            fragments=ShellFragments(self.layout.config_dir),
            console=self.console,
        )


def build_context() -> CLIContext:
    http: HttpClient | None = RealHttpClient() if RealHttpClient.available() else None
    return CLIContext(
        layout=Layout.default(),
        console=RichConsole(),
        runner=SubprocessRunner(),
        http=http,
    )
