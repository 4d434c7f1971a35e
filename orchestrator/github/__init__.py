"""GitHub REST access."""

from .client import (
    GitHubClient,
    HostingClient,
    HostingError,
    Release,
    ReleaseAsset,
    WorkflowRun,
)
from .http import HttpClient, HttpError, MockHttpClient, RealHttpClient

__all__ = [
    "GitHubClient",
    "HostingClient",
    "HostingError",
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    "Release",
    "ReleaseAsset",
    "WorkflowRun",
]
