"""Archive extraction over several backends.

The target host has no single decompressor that is always present, so
extraction goes through an ordered list of backends and the first one
that reports itself available is used:

1. NativeBackend       zipfile/tarfile, in-process
2. UnzipBackend        `unzip`
3. SevenZipBackend     `7z` (bundled with Git for Windows)
4. PowerShellBackend   `Expand-Archive`

A backend that is available but fails does not hand over to the next
one; the failure is reported as EXTRACT_FAILED.

The archive layout is not normalised. Callers locate the real content
with find_root() / find_file().
"""

from __future__ import annotations

import contextlib
import os
import shutil
import stat
import tarfile
import zipfile
from collections.abc import Callable, Sequence
from pathlib import Path, PurePosixPath
from typing import Protocol

from devsetup.core.errors import ErrorKind, ProvisionError
from devsetup.core.result import Err, Ok, Result
from devsetup.platform.process import CommandRunner

__all__ = [
    "ArchiveExtractor",
    "ExtractBackend",
    "NativeBackend",
    "PowerShellBackend",
    "SevenZipBackend",
    "UnzipBackend",
    "find_file",
    "find_root",
]

Which = Callable[[str], str | None]

_TAR_MODES: dict[tuple[str, ...], str] = {
    (".tar.gz", ".tgz"): "r:gz",
    (".tar.xz", ".txz"): "r:xz",
}


class ExtractBackend(Protocol):
    name: str

    def is_available(self, archive: Path) -> bool: ...

    def extract(self, archive: Path, destination: Path) -> Result[int, str]:
        """Extract archive into destination; Ok carries the file count (-1 if unknown)."""
        ...


class NativeBackend:
    """In-process zip/tar reader.

    Entries that would escape the destination, symlinks and special
    files are skipped.
    """

    name = "native"

    def is_available(self, archive: Path) -> bool:
        name = archive.name.lower()
        # NOTE: Path.suffixes is misleading for names like "fd-v8.7.0-x86_64.zip"
        return name.endswith(".zip") or self._tar_mode(name) is not None

    def extract(self, archive: Path, destination: Path) -> Result[int, str]:
        name = archive.name.lower()
        try:
            if name.endswith(".zip"):
                return Ok(self._extract_zip(archive, destination))
            mode = self._tar_mode(name)
            if mode is None:
                return Err(f"Unsupported archive format: {archive.name}")
            return Ok(self._extract_tar(archive, destination, mode))
        except zipfile.BadZipFile as e:
            return Err(f"Invalid zip file: {e}")
        except tarfile.TarError as e:
            return Err(f"Tar extraction failed: {e}")
        except OSError as e:
            return Err(f"IO error: {e}")

    @staticmethod
    def _tar_mode(name: str) -> str | None:
        for suffixes, mode in _TAR_MODES.items():
            if name.endswith(suffixes):
                return mode
        return None

    def _safe_target(self, root: Path, member_name: str) -> Path | None:
        normalized = member_name.replace("\\", "/")
        if normalized.startswith("/"):
            return None
        parts = PurePosixPath(normalized).parts
        if not parts or any(part in {"", ".", ".."} for part in parts):
            return None
        if parts[0].endswith(":"):
            return None

        target = root / Path(*parts)
        try:
            if not target.resolve().is_relative_to(root.resolve()):
                return None
        except OSError:
            return None
        return target

    def _extract_zip(self, archive: Path, destination: Path) -> int:
        count = 0
        with zipfile.ZipFile(archive, "r") as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                unix_attrs = info.external_attr >> 16
                if (unix_attrs & 0o170000) == stat.S_IFLNK:
                    continue

                target = self._safe_target(destination, info.filename)
                if target is None:
                    continue

                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)

                if unix_attrs & 0o777:
                    with contextlib.suppress(OSError):
                        os.chmod(target, unix_attrs & 0o777)
                count += 1
        return count

    def _extract_tar(self, archive: Path, destination: Path, mode: str) -> int:
        count = 0
        with tarfile.open(archive, mode) as tar:
            for member in tar.getmembers():
                if not member.isreg():
                    continue

                target = self._safe_target(destination, member.name)
                if target is None:
                    continue

                src = tar.extractfile(member)
                if src is None:
                    continue

                target.parent.mkdir(parents=True, exist_ok=True)
                with src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)

                if member.mode & 0o777:
                    with contextlib.suppress(OSError):
                        os.chmod(target, member.mode & 0o777)
                count += 1
        return count


class _CommandBackend:
    """Backend that shells out to an extraction program found on PATH."""

    name = "command"
    programs: tuple[str, ...] = ()
    zip_only = False

    def __init__(self, runner: CommandRunner, which: Which = shutil.which) -> None:
        self._runner = runner
        self._which = which

    def _program(self) -> str | None:
        for program in self.programs:
            found = self._which(program)
            if found:
                return found
        return None

    def is_available(self, archive: Path) -> bool:
        if self.zip_only and not archive.name.lower().endswith(".zip"):
            return False
        return self._program() is not None

    def command(self, program: str, archive: Path, destination: Path) -> list[str]:
        raise NotImplementedError

    def extract(self, archive: Path, destination: Path) -> Result[int, str]:
        program = self._program()
        if program is None:
            return Err(f"{self.name} is not available")
        result = self._runner.run(self.command(program, archive, destination))
        if isinstance(result, Err):
            detail = result.error.stderr.strip() or str(result.error)
            return Err(detail)
        return Ok(-1)


class UnzipBackend(_CommandBackend):
    name = "unzip"
    programs = ("unzip",)
    zip_only = True

    def command(self, program: str, archive: Path, destination: Path) -> list[str]:
        return [program, "-q", "-o", str(archive), "-d", str(destination)]


class SevenZipBackend(_CommandBackend):
    name = "7z"
    programs = ("7z", "7za")

    def command(self, program: str, archive: Path, destination: Path) -> list[str]:
        return [program, "x", "-y", f"-o{destination}", str(archive)]


class PowerShellBackend(_CommandBackend):
    name = "powershell"
    programs = ("powershell.exe", "powershell", "pwsh")
    zip_only = True

    def command(self, program: str, archive: Path, destination: Path) -> list[str]:
        script = (
            f"Expand-Archive -Path '{archive}' -DestinationPath '{destination}' -Force"
        )
        return [program, "-NoProfile", "-NonInteractive", "-Command", script]


class ArchiveExtractor:
    """Extracts archives with the first available backend.

    Usage:
        extractor = ArchiveExtractor.default(runner)
        result = extractor.extract(zip_path, layout.temp_dir / "k9s")
    """

    def __init__(self, backends: Sequence[ExtractBackend]) -> None:
        self._backends = tuple(backends)
        self.last_backend: str | None = None
        self.extract_count = 0

    @classmethod
    def default(cls, runner: CommandRunner, which: Which = shutil.which) -> ArchiveExtractor:
        return cls(
            [
                NativeBackend(),
                UnzipBackend(runner, which),
                SevenZipBackend(runner, which),
                PowerShellBackend(runner, which),
            ]
        )

    @property
    def backends(self) -> tuple[ExtractBackend, ...]:
        return self._backends

    def select(self, archive: Path) -> ExtractBackend | None:
        for backend in self._backends:
            if backend.is_available(archive):
                return backend
        return None

    def extract(self, archive: Path, destination: Path) -> Result[Path, ProvisionError]:
        """Extract archive into destination (created if absent).

        Returns:
            Ok with destination, or Err with NO_EXTRACTOR_AVAILABLE,
            EXTRACT_FAILED or IO_ERROR
        """
        if not archive.is_file():
            return Err(ProvisionError(ErrorKind.EXTRACT_FAILED, "Archive not found", str(archive)))

        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(
                ProvisionError(ErrorKind.IO_ERROR, f"Cannot create {destination}", str(e))
            )

        backend = self.select(archive)
        if backend is None:
            return Err(
                ProvisionError(
                    ErrorKind.NO_EXTRACTOR_AVAILABLE,
                    "No extraction tool available (tried "
                    + ", ".join(b.name for b in self._backends)
                    + ")",
                    str(archive),
                )
            )

        self.extract_count += 1
        self.last_backend = backend.name
        result = backend.extract(archive, destination)
        if isinstance(result, Err):
            return Err(
                ProvisionError(
                    ErrorKind.EXTRACT_FAILED,
                    f"Extraction of {archive.name} failed ({backend.name})",
                    result.error,
                )
            )
        return Ok(destination)


def find_root(directory: Path, pattern: str) -> Path | None:
    """First top-level directory under directory matching a glob pattern."""
    if not directory.is_dir():
        return None
    matches = sorted(p for p in directory.glob(pattern) if p.is_dir())
    return matches[0] if matches else None


def find_file(directory: Path, name: str) -> Path | None:
    """Locate a file by exact name, preferring the top level."""
    direct = directory / name
    if direct.is_file():
        return direct
    matches = sorted(p for p in directory.rglob(name) if p.is_file())
    return matches[0] if matches else None
