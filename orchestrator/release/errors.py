"""Release failure taxonomy.

Every way a release run can stop is one frozen dataclass. The union is
matched exhaustively for messages (``describe_release_error``) and exit
codes (``orchestrator.output.errors``).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from orchestrator.core.config import TOKEN_ENV_VARS
from orchestrator.github.client import HostingError

__all__ = [
    "ACCEPTED_VERSION_FORMATS",
    "AssetWaitTimeout",
    "BranchDiverged",
    "DetachedHead",
    "DirtyWorktree",
    "FetchFailed",
    "GitQueryFailed",
    "HostingFailed",
    "InvalidVersion",
    "MissingDirectory",
    "MissingToken",
    "OriginMismatch",
    "ReleaseError",
    "RemoteQueryFailed",
    "ReposRootNotFound",
    "TagAlreadyExists",
    "TagAlreadyReleased",
    "TagConflict",
    "TagCreateFailed",
    "TagPushFailed",
    "describe_release_error",
    "release_error_hint",
]

ACCEPTED_VERSION_FORMATS: tuple[str, ...] = ("1.2.3", "v1.2.3", "1.2.3-rc.1", "v1.2.3-rc.1")


# -----------------------------------------------------------------------------
# Input validation
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class InvalidVersion:
    input: str
    reason: str


@dataclass(frozen=True, slots=True)
class ReposRootNotFound:
    cwd: Path
    expected: tuple[str, ...]


# -----------------------------------------------------------------------------
# Preconditions (preflight, before any mutation)
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MissingDirectory:
    repo: str
    path: Path


@dataclass(frozen=True, slots=True)
class OriginMismatch:
    repo: str
    expected: str
    actual: str


@dataclass(frozen=True, slots=True)
class FetchFailed:
    repo: str
    detail: str


@dataclass(frozen=True, slots=True)
class RemoteQueryFailed:
    repo: str
    detail: str


@dataclass(frozen=True, slots=True)
class GitQueryFailed:
    repo: str
    detail: str


@dataclass(frozen=True, slots=True)
class DirtyWorktree:
    repo: str
    paths: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class DetachedHead:
    repo: str


@dataclass(frozen=True, slots=True)
class BranchDiverged:
    repo: str
    remote_ref: str
    local_sha: str
    remote_sha: str
    ahead: int
    behind: int


@dataclass(frozen=True, slots=True)
class MissingToken:
    env_vars: tuple[str, ...] = TOKEN_ENV_VARS


# -----------------------------------------------------------------------------
# Conflicts
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TagAlreadyReleased:
    repo: str
    tag: str


@dataclass(frozen=True, slots=True)
class TagAlreadyExists:
    repo: str
    tag: str
    where: Literal["local", "remote"]


@dataclass(frozen=True, slots=True)
class TagConflict:
    repo: str
    tag: str
    existing_sha: str
    head_sha: str


# -----------------------------------------------------------------------------
# Mutation (apply phase)
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TagCreateFailed:
    repo: str
    tag: str
    detail: str


@dataclass(frozen=True, slots=True)
class TagPushFailed:
    repo: str
    tag: str
    detail: str


# -----------------------------------------------------------------------------
# Availability
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HostingFailed:
    repo: str
    error: HostingError


@dataclass(frozen=True, slots=True)
class AssetWaitTimeout:
    repo: str
    tag: str
    missing: tuple[str, ...]
    elapsed_secs: float
    timeout_secs: float


ReleaseError = (
    InvalidVersion
    | ReposRootNotFound
    | MissingDirectory
    | OriginMismatch
    | FetchFailed
    | RemoteQueryFailed
    | GitQueryFailed
    | DirtyWorktree
    | DetachedHead
    | BranchDiverged
    | MissingToken
    | TagAlreadyReleased
    | TagAlreadyExists
    | TagConflict
    | TagCreateFailed
    | TagPushFailed
    | HostingFailed
    | AssetWaitTimeout
)


def describe_release_error(error: ReleaseError) -> str:
    """One-paragraph message with enough context to act on."""
    match error:
        case InvalidVersion(input=raw, reason=reason):
            return f"invalid version '{raw}': {reason}"
        case ReposRootNotFound(cwd=cwd, expected=expected):
            dirs = ", ".join(f"{name}/" for name in expected)
            return f"can't infer repos root from {cwd}; expected a directory containing {dirs}"
        case MissingDirectory(repo=repo, path=path):
            return f"[{repo}] repo directory not found: {path}"
        case OriginMismatch(repo=repo, expected=expected, actual=actual):
            return (
                f"[{repo}] origin remote doesn't look like {expected} (got: {actual}). "
                "Refusing to push tags."
            )
        case FetchFailed(repo=repo, detail=detail):
            return f"[{repo}] git fetch origin failed: {detail}"
        case RemoteQueryFailed(repo=repo, detail=detail):
            return f"[{repo}] failed to query remote tags: {detail}"
        case GitQueryFailed(repo=repo, detail=detail):
            return f"[{repo}] git failed: {detail}"
        case DirtyWorktree(repo=repo, paths=paths):
            listing = "\n".join(f"  {p}" for p in paths)
            return f"[{repo}] has uncommitted changes:\n{listing}"
        case DetachedHead(repo=repo):
            return f"[{repo}] is in detached HEAD state; check out a branch first."
        case BranchDiverged(
            repo=repo,
            remote_ref=remote_ref,
            local_sha=local_sha,
            remote_sha=remote_sha,
            ahead=ahead,
            behind=behind,
        ):
            return (
                f"[{repo}] is not synced with {remote_ref}.\n"
                f"local HEAD:  {local_sha}\n"
                f"remote HEAD: {remote_sha}\n"
                f"(ahead {ahead}, behind {behind})"
            )
        case MissingToken(env_vars=env_vars):
            names = env_vars[0]
            if len(env_vars) > 1:
                names += f" (or {', '.join(env_vars[1:])})"
            return f"missing {names}. This is required to poll release assets after tagging."
        case TagAlreadyReleased(repo=repo, tag=tag):
            return f"[{repo}] already has remote tag {tag} on origin."
        case TagAlreadyExists(repo=repo, tag=tag, where=where):
            if where == "remote":
                return f"[{repo}] already has remote tag {tag} on origin"
            return f"[{repo}] already has local tag {tag}"
        case TagConflict(repo=repo, tag=tag, existing_sha=existing, head_sha=head):
            return (
                f"[{repo}] already has local tag {tag}, but it does not point at HEAD "
                f"(tag={existing}, head={head}). Refusing to push."
            )
        case TagCreateFailed(repo=repo, tag=tag, detail=detail):
            return f"[{repo}] failed to create tag {tag}: {detail}"
        case TagPushFailed(repo=repo, tag=tag, detail=detail):
            return f"[{repo}] failed to push tag {tag}: {detail}"
        case HostingFailed(repo=repo, error=hosting):
            text = f"[{repo}] {hosting.message}"
            if hosting.body.strip():
                text += f": {hosting.body.strip()}"
            return text
        case AssetWaitTimeout(
            repo=repo,
            tag=tag,
            missing=missing,
            elapsed_secs=elapsed,
            timeout_secs=timeout,
        ):
            return (
                f"[{repo}] timed out waiting for {tag} assets after {elapsed:.0f}s "
                f"(timeout {timeout:.0f}s); still missing or unstable: {', '.join(missing)}"
            )


def release_error_hint(error: ReleaseError) -> str | None:
    match error:
        case InvalidVersion():
            return "Expected SemVer like " + ", ".join(f"'{f}'" for f in ACCEPTED_VERSION_FORMATS)
        case ReposRootNotFound():
            return "Run from the repos root or pass --repos-root"
        case DirtyWorktree():
            return "Commit/stash them before releasing."
        case BranchDiverged():
            return "Run `git pull` / fast-forward your branch before tagging."
        case TagAlreadyReleased():
            return "Re-run with --resume to continue."
        case TagConflict():
            return "Delete/fix the local tag or choose a new version."
        case TagCreateFailed() | TagPushFailed():
            return "Tags pushed earlier in this run stay pushed; fix the cause and re-run with --resume."
        case HostingFailed(error=hosting):
            return hosting.hint
        case AssetWaitTimeout():
            return "Check the release workflow; re-run with --resume once it is fixed."
        case _:
            return None
