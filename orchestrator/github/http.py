"""HTTP client abstraction for the GitHub REST API.

This module provides:
- HttpClient: Protocol for JSON GET requests (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from orchestrator.core.result import Err, Ok, Result
from orchestrator.core.timeouts import GITHUB_HTTP_TIMEOUT_SECONDS

__all__ = [
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
]

_MAX_ERROR_BODY = 2000


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
        body: Response body, if the server sent one
        malformed: True when the response arrived but was not valid JSON
    """

    url: str
    status: int
    message: str
    body: str = ""
    malformed: bool = False

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP GET requests returning JSON."""

    def get_json(self, url: str, headers: Mapping[str, str]) -> Result[object, HttpError]:
        """Fetch URL and parse the body as JSON.

        Args:
            url: URL to fetch
            headers: Extra request headers (auth, accept)

        Returns:
            Ok with the decoded JSON value, or Err with HttpError
        """
        ...


class RealHttpClient:
    """Real HTTP client using urllib with system certificates."""

    def __init__(
        self,
        timeout: float = GITHUB_HTTP_TIMEOUT_SECONDS,
        user_agent: str = "truthdb-orchestrator",
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def get_json(self, url: str, headers: Mapping[str, str]) -> Result[object, HttpError]:
        request = urllib.request.Request(
            url,
            headers={"User-Agent": self.user_agent, **headers},
        )
        try:
            with urllib.request.urlopen(
                request,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                raw: bytes = response.read()
        except urllib.error.HTTPError as e:
            return Err(
                HttpError(url=url, status=e.code, message=str(e.reason), body=_read_body(e))
            )
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

        try:
            return Ok(json.loads(raw.decode("utf-8")))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(
                HttpError(url=url, status=0, message=f"JSON parse error: {e}", malformed=True)
            )


def _read_body(error: urllib.error.HTTPError) -> str:
    try:
        data = error.read()
    except OSError:
        return ""
    return data.decode("utf-8", errors="replace")[:_MAX_ERROR_BODY]


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are queued per URL; each request pops the next one, and the last
    queued response repeats. Unknown URLs answer 404.

    Usage:
        client = MockHttpClient()
        client.set_json(url, {"assets": []})
        client.set_json(url, {"assets": [{"name": "a", "size": 1}]})
    """

    def __init__(self) -> None:
        self._responses: dict[str, list[object | HttpError]] = {}
        self.calls: list[tuple[str, dict[str, str]]] = []

    def set_json(self, url: str, response: object | HttpError) -> None:
        """Queue a response (JSON value or HttpError) for URL."""
        self._responses.setdefault(url, []).append(response)

    def set_error(self, url: str, status: int, message: str = "error", body: str = "") -> None:
        self.set_json(url, HttpError(url=url, status=status, message=message, body=body))

    def get_json(self, url: str, headers: Mapping[str, str]) -> Result[object, HttpError]:
        self.calls.append((url, dict(headers)))

        queued = self._responses.get(url)
        if not queued:
            return Err(HttpError(url=url, status=404, message="Not Found (mock)"))

        response = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]
