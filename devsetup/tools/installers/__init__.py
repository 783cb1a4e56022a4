"""Per-tool installer specialisations."""

from .binaries import ArchiveBinaryInstaller, BinaryInstaller
from .editors import PortableAppInstaller
from .git import GitInstaller
from .runtimes import NodeInstaller, PythonInstaller
from .terminal import TerminalInstaller
from .toolchains import RustInstaller, SdkmanInstaller

__all__ = [
    "ArchiveBinaryInstaller",
    "BinaryInstaller",
    "GitInstaller",
    "NodeInstaller",
    "PortableAppInstaller",
    "PythonInstaller",
    "RustInstaller",
    "SdkmanInstaller",
    "TerminalInstaller",
]
