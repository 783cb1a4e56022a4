"""Artifact fetching.

ArchiveFetcher downloads one URL to one path and checks that the bytes
actually landed on disk. It does not retry and does not clean up after a
failed transfer: a partial file from an interrupted download stays where
it was, and callers must not assume the destination is absent after a
failure.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from devsetup.core.errors import ErrorKind, ProvisionError
from devsetup.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from devsetup.tools.http import HttpClient

__all__ = ["ArchiveFetcher"]


class ArchiveFetcher:
    """Fetches remote artifacts (archives or bare binaries).

    Usage:
        fetcher = ArchiveFetcher(RealHttpClient())
        match fetcher.fetch(url, layout.temp_dir / "k9s.zip"):
            case Ok(path): ...
            case Err(error): ...
    """

    def __init__(self, http: HttpClient | None) -> None:
        """Initialize the fetcher.

        Args:
            http: Transport, or None when the host has no usable one
        """
        self._http = http
        self.fetch_count = 0

    def fetch(self, url: str, destination: Path) -> Result[Path, ProvisionError]:
        """Download url to destination.

        Returns:
            Ok with destination, or Err with TRANSPORT_UNAVAILABLE,
            IO_ERROR (destination directory missing or read-only) or
            FETCH_FAILED (network/HTTP failure, or no file afterwards)
        """
        if self._http is None:
            return Err(
                ProvisionError(
                    ErrorKind.TRANSPORT_UNAVAILABLE,
                    "No HTTP transport available, cannot download files",
                    url,
                )
            )

        parent = destination.parent
        if not parent.is_dir():
            return Err(
                ProvisionError(
                    ErrorKind.IO_ERROR, "Download directory does not exist", str(parent)
                )
            )
        if not os.access(parent, os.W_OK):
            return Err(
                ProvisionError(
                    ErrorKind.IO_ERROR, "Download directory is not writable", str(parent)
                )
            )

        self.fetch_count += 1
        result = self._http.download(url, destination)
        if isinstance(result, Err):
            return Err(
                ProvisionError(
                    ErrorKind.FETCH_FAILED, f"Download failed: {url}", str(result.error)
                )
            )

        if not destination.is_file():
            return Err(
                ProvisionError(
                    ErrorKind.FETCH_FAILED, "Download produced no file", str(destination)
                )
            )

        return Ok(destination)
