"""HTTP client abstraction for release discovery and downloads.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from stencila_action import __version__
from stencila_action.core.result import Err, Ok, Result

__all__ = [
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    "Redirect",
]


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


@dataclass(frozen=True, slots=True)
class Redirect:
    """Status and ``Location`` of a response fetched without following redirects."""

    status: int
    location: str | None


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Lets tests inject a mock client instead of touching the network.
    """

    def get_redirect(self, url: str) -> Result[Redirect, HttpError]:
        """GET ``url`` without following redirects.

        Returns:
            Ok with the response status and Location header (any status),
            or Err with HttpError when no response was received
        """
        ...

    def download(
        self,
        url: str,
        dest: Path,
    ) -> Result[Path, HttpError]:
        """Download URL to file.

        Args:
            url: URL to download
            dest: Destination path

        Returns:
            Ok with dest path, or Err with HttpError
        """
        ...


class _NoRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Surface 3xx responses as HTTPError instead of following them."""

    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[override]
        return None


class RealHttpClient:
    """Real HTTP client using urllib.

    Handles:
    - HTTPS with system certificates
    - Redirect inspection
    - Timeout handling
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = f"stencila-action/{__version__}",
    ) -> None:
        """Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header value
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def get_redirect(self, url: str) -> Result[Redirect, HttpError]:
        """GET without following redirects; 3xx/4xx/5xx are returned as-is."""
        opener = urllib.request.build_opener(
            _NoRedirectHandler(),
            urllib.request.HTTPSHandler(context=self._ssl_context),
        )
        req = urllib.request.Request(url, headers={"User-Agent": self.user_agent})
        try:
            with opener.open(req, timeout=self.timeout) as response:
                location = response.headers.get("Location")
                return Ok(Redirect(status=response.status, location=location))
        except urllib.error.HTTPError as e:
            with e:
                location = e.headers.get("Location") if e.headers is not None else None
                return Ok(Redirect(status=e.code, location=location))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def download(
        self,
        url: str,
        dest: Path,
    ) -> Result[Path, HttpError]:
        """Download URL to file."""
        try:
            req = urllib.request.Request(
                url,
                headers={"User-Agent": self.user_agent},
            )
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                chunk_size = 64 * 1024

                dest.parent.mkdir(parents=True, exist_ok=True)

                with open(dest, "wb") as f:
                    while True:
                        chunk = response.read(chunk_size)
                        if not chunk:
                            break
                        f.write(chunk)

                return Ok(dest)

        except urllib.error.HTTPError as e:
            with e:
                return Err(HttpError(url=url, status=e.code, message=e.reason))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Download timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))


class MockHttpClient:
    """Mock HTTP client for testing.

    Usage:
        client = MockHttpClient()
        client.set_redirect(LATEST_RELEASE_URL, 302, ".../releases/tag/v2.3.0")
        client.set_download(url, archive_bytes)
    """

    def __init__(self) -> None:
        self._redirects: dict[str, Redirect | HttpError] = {}
        self._download_responses: dict[str, bytes | HttpError] = {}
        self.calls: list[tuple[str, str]] = []

    def set_redirect(self, url: str, status: int | HttpError, location: str | None = None) -> None:
        """Set the response (or network error) for a redirect lookup."""
        if isinstance(status, HttpError):
            self._redirects[url] = status
        else:
            self._redirects[url] = Redirect(status=status, location=location)

    def set_download(self, url: str, response: bytes | HttpError) -> None:
        """Set download content for URL."""
        self._download_responses[url] = response

    def get_redirect(self, url: str) -> Result[Redirect, HttpError]:
        self.calls.append(("get_redirect", url))

        response = self._redirects.get(url)
        if response is None:
            return Ok(Redirect(status=404, location=None))
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def download(
        self,
        url: str,
        dest: Path,
    ) -> Result[Path, HttpError]:
        """Mock download - writes predefined content to dest."""
        self.calls.append(("download", url))

        if url not in self._download_responses:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))

        response = self._download_responses[url]
        if isinstance(response, HttpError):
            return Err(response)

        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(response)

        return Ok(dest)

    def count(self, method: str) -> int:
        """Number of calls made to ``method``."""
        return sum(1 for name, _ in self.calls if name == method)
