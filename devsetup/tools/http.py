"""HTTP transport for downloads.

This module provides:
- HttpClient: Protocol for the one operation provisioning needs (injectable)
- RealHttpClient: urllib implementation
- MockHttpClient: in-memory implementation for tests
"""

from __future__ import annotations

import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from devsetup.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
]

USER_AGENT = "devsetup/0.1.0"


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for downloading a URL to a file."""

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[Path, HttpError]:
        """Download url into dest (parent must already exist)."""
        ...


class RealHttpClient:
    """urllib client. Follows redirects; deliberately has no timeout."""

    def __init__(self, user_agent: str = USER_AGENT) -> None:
        import ssl

        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    @staticmethod
    def available() -> bool:
        """True when this interpreter can speak HTTPS.

        Python builds without OpenSSL have no ssl module and no HTTPSHandler.
        """
        try:
            import ssl  # noqa: F401
        except ImportError:
            return False
        return hasattr(urllib.request, "HTTPSHandler")

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[Path, HttpError]:
        try:
            req = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
            with urllib.request.urlopen(req, context=self._ssl_context) as response:
                total = int(response.headers.get("Content-Length", 0))
                downloaded = 0
                chunk_size = 64 * 1024

                with open(dest, "wb") as f:
                    while True:
                        chunk = response.read(chunk_size)
                        if not chunk:
                            break
                        f.write(chunk)
                        downloaded += len(chunk)
                        if progress:
                            progress(downloaded, total)

                return Ok(dest)

        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))


class MockHttpClient:
    """Mock HTTP client for testing.

    Usage:
        client = MockHttpClient()
        client.set_download("https://example.com/jq.exe", b"binary")
        client.set_download("https://example.com/gone.zip", HttpError(url, 404, "Not Found"))
    """

    def __init__(self) -> None:
        self._responses: dict[str, bytes | HttpError] = {}
        self._partials: dict[str, bytes] = {}
        self.calls: list[str] = []

    def set_download(
        self,
        url: str,
        response: bytes | HttpError,
        *,
        partial: bytes | None = None,
    ) -> None:
        """Set the outcome for url.

        With an HttpError response, `partial` bytes are written to the
        destination before the error is returned (an interrupted transfer).
        """
        self._responses[url] = response
        if partial is not None:
            self._partials[url] = partial

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[Path, HttpError]:
        self.calls.append(url)

        if url not in self._responses:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = self._responses[url]
        if isinstance(response, HttpError):
            partial = self._partials.get(url)
            if partial is not None:
                dest.write_bytes(partial)
            return Err(response)

        dest.write_bytes(response)
        if progress:
            progress(len(response), len(response))
        return Ok(dest)
