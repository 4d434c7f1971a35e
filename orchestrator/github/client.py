"""GitHub REST client for releases, CI runs and compares.

Only the read endpoints the orchestrator needs are covered. Authentication is
a bearer token; an empty token sends unauthenticated requests (fine for
public repos, but heavily rate-limited).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol
from urllib.parse import quote

from orchestrator.core.config import TOKEN_ENV_VARS
from orchestrator.core.result import Err, Ok, Result
from orchestrator.core.structured import as_obj_list, as_str_dict, get_int, get_list, get_str
from orchestrator.github.http import HttpClient, HttpError, RealHttpClient

__all__ = [
    "GITHUB_API_URL",
    "GitHubClient",
    "HostingClient",
    "HostingError",
    "Release",
    "ReleaseAsset",
    "WorkflowRun",
]

GITHUB_API_URL = "https://api.github.com"

HostingErrorKind = Literal["auth_failed", "api_error", "invalid_payload", "not_found"]


@dataclass(frozen=True, slots=True)
class HostingError:
    kind: HostingErrorKind
    message: str
    status: int = 0
    body: str = ""
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseAsset:
    name: str
    size: int


@dataclass(frozen=True, slots=True)
class Release:
    tag: str
    assets: tuple[ReleaseAsset, ...]

    def asset_sizes(self) -> dict[str, int]:
        return {a.name: a.size for a in self.assets}


@dataclass(frozen=True, slots=True)
class WorkflowRun:
    status: str
    conclusion: str | None


class HostingClient(Protocol):
    """Hosting-service operations consumed by the poller and the monitor."""

    @property
    def owner(self) -> str: ...

    def get_release_by_tag(self, repo: str, tag: str) -> Result[Release | None, HostingError]: ...

    def get_default_branch(self, repo: str) -> Result[str, HostingError]: ...

    def get_latest_workflow_run(self, repo: str) -> Result[WorkflowRun | None, HostingError]: ...

    def get_latest_release_tag(self, repo: str) -> Result[str | None, HostingError]: ...

    def compare_ahead_by(self, repo: str, base: str, head: str) -> Result[int, HostingError]: ...


class GitHubClient:
    """GitHub REST API client scoped to one owner/org."""

    def __init__(
        self,
        owner: str,
        token: str,
        *,
        http: HttpClient | None = None,
        base_url: str = GITHUB_API_URL,
    ) -> None:
        self._owner = owner
        self._token = token.strip()
        self._http = http or RealHttpClient()
        self._base_url = base_url.rstrip("/")

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def authenticated(self) -> bool:
        return bool(self._token)

    def repo_url(self, repo: str, path: str = "") -> str:
        url = f"{self._base_url}/repos/{self._owner}/{repo}"
        return f"{url}/{path}" if path else url

    def get_release_by_tag(self, repo: str, tag: str) -> Result[Release | None, HostingError]:
        """Release for ``tag``; Ok(None) while GitHub has not created it yet."""
        result = self._get(repo, f"releases/tags/{quote(tag, safe='')}", missing_ok=True)
        if isinstance(result, Err):
            return result
        if result.value is None:
            return Ok(None)

        data = as_str_dict(result.value)
        raw_assets = get_list(data, "assets") if data is not None else None
        if data is None or raw_assets is None:
            return Err(
                HostingError(kind="invalid_payload", message=f"unexpected release payload: {repo}")
            )

        assets: list[ReleaseAsset] = []
        for item in raw_assets:
            asset = as_str_dict(item)
            if asset is None:
                continue
            name = get_str(asset, "name")
            size = get_int(asset, "size")
            if name is None or size is None:
                continue
            assets.append(ReleaseAsset(name=name, size=size))

        return Ok(Release(tag=get_str(data, "tag_name") or tag, assets=tuple(assets)))

    def get_default_branch(self, repo: str) -> Result[str, HostingError]:
        result = self._get(repo, "")
        if isinstance(result, Err):
            return result

        data = as_str_dict(result.value)
        branch = get_str(data, "default_branch") if data is not None else None
        if branch is None:
            return Err(
                HostingError(kind="invalid_payload", message=f"missing default_branch: {repo}")
            )
        return Ok(branch)

    def get_latest_workflow_run(self, repo: str) -> Result[WorkflowRun | None, HostingError]:
        result = self._get(repo, "actions/runs?per_page=1", missing_ok=True)
        if isinstance(result, Err):
            return result
        if result.value is None:
            return Ok(None)

        data = as_str_dict(result.value)
        runs = as_obj_list(data.get("workflow_runs")) if data is not None else None
        if runs is None:
            return Err(
                HostingError(kind="invalid_payload", message=f"missing workflow_runs: {repo}")
            )
        if not runs:
            return Ok(None)

        run = as_str_dict(runs[0])
        status = get_str(run, "status") if run is not None else None
        if run is None or status is None:
            return Err(
                HostingError(kind="invalid_payload", message=f"invalid workflow run: {repo}")
            )
        return Ok(WorkflowRun(status=status, conclusion=get_str(run, "conclusion")))

    def get_latest_release_tag(self, repo: str) -> Result[str | None, HostingError]:
        result = self._get(repo, "releases/latest", missing_ok=True)
        if isinstance(result, Err):
            return result
        if result.value is None:
            return Ok(None)

        data = as_str_dict(result.value)
        tag = get_str(data, "tag_name") if data is not None else None
        if tag is None:
            return Err(HostingError(kind="invalid_payload", message=f"missing tag_name: {repo}"))
        return Ok(tag)

    def compare_ahead_by(self, repo: str, base: str, head: str) -> Result[int, HostingError]:
        """Commits on ``head`` that ``base`` lacks."""
        result = self._get(repo, f"compare/{quote(base, safe='')}...{quote(head, safe='')}")
        if isinstance(result, Err):
            if result.error.kind == "not_found":
                return Err(
                    HostingError(
                        kind="not_found",
                        message=f"compare not available for {self._owner}/{repo}",
                        status=404,
                    )
                )
            return result

        data = as_str_dict(result.value)
        ahead_by = get_int(data, "ahead_by") if data is not None else None
        if ahead_by is None:
            return Err(HostingError(kind="invalid_payload", message=f"missing ahead_by: {repo}"))
        return Ok(ahead_by)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _get(
        self,
        repo: str,
        path: str,
        *,
        missing_ok: bool = False,
    ) -> Result[object | None, HostingError]:
        url = self.repo_url(repo, path)
        result = self._http.get_json(url, self._headers())
        if isinstance(result, Ok):
            return Ok(result.value)

        error = result.error
        if error.status == 404 and missing_ok:
            return Ok(None)
        return Err(self._map_error(repo, error))

    def _map_error(self, repo: str, error: HttpError) -> HostingError:
        if error.malformed:
            return HostingError(kind="invalid_payload", message=f"{repo}: {error.message}")
        if error.status in (401, 403):
            env_names = "/".join(TOKEN_ENV_VARS)
            return HostingError(
                kind="auth_failed",
                message=f"GitHub API auth failed (status {error.status})",
                status=error.status,
                body=error.body,
                hint=f"Set {env_names} with access to {self._owner}/{repo}.",
            )
        if error.status == 404:
            return HostingError(
                kind="not_found",
                message=f"not found: {error.url}",
                status=404,
                body=error.body,
            )
        return HostingError(
            kind="api_error",
            message=f"GitHub API error ({error.status or 'network'}): {error.message}",
            status=error.status,
            body=error.body,
        )
