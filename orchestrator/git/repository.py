"""Git repository handle used by the release orchestrator.

This module provides the ``Repository`` class wrapping the handful of git
commands a release needs: worktree status, fetching tags, resolving refs,
checking the origin URL, and creating/pushing annotated tags. All operations
return Result types; no method raises for a failing git command.

``RepoHandle`` is the structural type the orchestrator depends on, so tests
can substitute an in-memory fake.

Usage:
    repo = Repository(Path("/src/truthdb"))

    match repo.remote_tag_exists("v1.2.3"):
        case Ok(True):
            print("already released")
        case Ok(False):
            print("free to tag")
        case Err(e):
            print(f"ls-remote failed: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from orchestrator.core.result import Err, Ok, Result
from orchestrator.core.timeouts import GIT_NETWORK_TIMEOUT_SECONDS, GIT_TIMEOUT_SECONDS
from orchestrator.platform.process import CompletedOutput, ProcessError
from orchestrator.platform.process import run as run_process
from orchestrator.platform.process import run_status

__all__ = [
    "GitError",
    "RepoHandle",
    "Repository",
    "StatusEntry",
    "TAG_MESSAGE_TEMPLATE",
]

TAG_MESSAGE_TEMPLATE = "Release {tag}"

_NETWORK_COMMANDS = frozenset({"fetch", "push", "ls-remote"})

# `git ls-remote --exit-code` uses exit code 2 for "no matching refs".
_LS_REMOTE_NOT_FOUND = 2


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message (stderr, or a description)
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single line of ``git status --porcelain``.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str

    def pretty_xy(self) -> str:
        """Format XY with dots for spaces (". M" instead of " M")."""
        return self.xy.replace(" ", ".")


class RepoHandle(Protocol):
    """Version-control operations consumed by the release orchestrator."""

    @property
    def path(self) -> Path: ...

    def status_entries(self) -> Result[tuple[StatusEntry, ...], GitError]: ...

    def fetch_tags(self) -> Result[None, GitError]: ...

    def head_commit(self) -> Result[str, GitError]: ...

    def resolve_ref(self, ref: str) -> Result[str, GitError]: ...

    def current_branch(self) -> Result[str | None, GitError]: ...

    def divergence(self, left: str, right: str) -> Result[tuple[int, int], GitError]: ...

    def remote_url(self) -> Result[str, GitError]: ...

    def local_tag_commit(self, tag: str) -> Result[str | None, GitError]: ...

    def remote_tag_commit(self, tag: str) -> Result[str | None, GitError]: ...

    def remote_tag_exists(self, tag: str) -> Result[bool, GitError]: ...

    def create_annotated_tag(self, tag: str) -> Result[None, GitError]: ...

    def push_tag(self, tag: str) -> Result[None, GitError]: ...


class Repository:
    """Git repository handle backed by the ``git`` executable.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def status_entries(self) -> Result[tuple[StatusEntry, ...], GitError]:
        """Dirty paths from ``git status --porcelain`` (empty when clean)."""
        result = self._run(["status", "--porcelain"])
        if isinstance(result, Err):
            return Err(self._error("status", result.error, "git status failed"))

        entries: list[StatusEntry] = []
        for line in result.value.splitlines():
            if len(line) < 4:
                continue
            entries.append(StatusEntry(xy=line[:2], path=line[3:]))
        return Ok(tuple(entries))

    def fetch_tags(self) -> Result[None, GitError]:
        result = self._run(["fetch", "--tags", "origin"])
        if isinstance(result, Err):
            return Err(self._error("fetch", result.error, "git fetch origin failed"))
        return Ok(None)

    def head_commit(self) -> Result[str, GitError]:
        return self.resolve_ref("HEAD")

    def resolve_ref(self, ref: str) -> Result[str, GitError]:
        result = self._run(["rev-parse", ref])
        if isinstance(result, Err):
            return Err(self._error("rev-parse", result.error, f"failed to resolve {ref}"))
        return Ok(result.value.strip())

    def current_branch(self) -> Result[str | None, GitError]:
        """Checked-out branch name, or None on a detached HEAD."""
        result = self._run_status(["symbolic-ref", "--quiet", "--short", "HEAD"])
        if isinstance(result, Err):
            return Err(self._error("symbolic-ref", result.error, "git symbolic-ref failed"))

        out = result.value
        if out.returncode != 0 or not out.stdout:
            return Ok(None)
        return Ok(out.stdout)

    def divergence(self, left: str, right: str) -> Result[tuple[int, int], GitError]:
        """Commits only on ``left`` and only on ``right``, as (ahead, behind)."""
        result = self._run(["rev-list", "--left-right", "--count", f"{left}...{right}"])
        if isinstance(result, Err):
            return Err(self._error("rev-list", result.error, "git rev-list failed"))

        parts = result.value.split()
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            return Err(
                GitError(
                    command="rev-list",
                    message=f"unexpected rev-list output: {result.value.strip()!r}",
                )
            )
        return Ok((int(parts[0]), int(parts[1])))

    def remote_url(self) -> Result[str, GitError]:
        result = self._run(["remote", "get-url", "origin"])
        if isinstance(result, Err):
            return Err(self._error("remote", result.error, "no origin remote"))
        return Ok(result.value.strip())

    def local_tag_commit(self, tag: str) -> Result[str | None, GitError]:
        """Commit the local tag ultimately points at, or None if absent."""
        probe = self._run_status(["rev-parse", "--verify", "--quiet", f"refs/tags/{tag}"])
        if isinstance(probe, Err):
            return Err(self._error("rev-parse", probe.error, "git rev-parse failed"))
        if probe.value.returncode != 0:
            return Ok(None)

        result = self._run(["rev-list", "-n", "1", f"refs/tags/{tag}"])
        if isinstance(result, Err):
            return Err(self._error("rev-list", result.error, f"failed to resolve tag {tag}"))
        sha = result.value.strip()
        return Ok(sha or None)

    def remote_tag_commit(self, tag: str) -> Result[str | None, GitError]:
        """Commit the tag points at on origin, or None if origin lacks it."""
        refname = f"refs/tags/{tag}"
        result = self._run_status(["ls-remote", "--tags", "origin", refname, f"{refname}^{{}}"])
        if isinstance(result, Err):
            return Err(self._error("ls-remote", result.error, "git ls-remote failed"))

        out = result.value
        if out.returncode != 0:
            return Err(
                GitError(
                    command="ls-remote",
                    message=f"failed to query remote tag {tag}: {out.stderr}",
                    returncode=out.returncode,
                )
            )
        return Ok(_parse_ls_remote(out.stdout, refname))

    def remote_tag_exists(self, tag: str) -> Result[bool, GitError]:
        result = self._run_status(
            ["ls-remote", "--exit-code", "--tags", "origin", f"refs/tags/{tag}"]
        )
        if isinstance(result, Err):
            return Err(self._error("ls-remote", result.error, "git ls-remote failed"))
        return _interpret_exit_code(result.value, tag)

    def create_annotated_tag(self, tag: str) -> Result[None, GitError]:
        message = TAG_MESSAGE_TEMPLATE.format(tag=tag)
        result = self._run(["tag", "-a", tag, "-m", message])
        if isinstance(result, Err):
            return Err(self._error("tag", result.error, f"failed to create tag {tag}"))
        return Ok(None)

    def push_tag(self, tag: str) -> Result[None, GitError]:
        result = self._run(["push", "origin", f"refs/tags/{tag}"])
        if isinstance(result, Err):
            return Err(self._error("push", result.error, f"failed to push tag {tag}"))
        return Ok(None)

    def _timeout(self, args: list[str]) -> float:
        command = args[0] if args else ""
        return GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else GIT_TIMEOUT_SECONDS

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        return run_process(
            ["git", "-C", str(self._path), *args],
            cwd=self._path,
            timeout=self._timeout(args),
        )

    def _run_status(self, args: list[str]) -> Result[CompletedOutput, ProcessError]:
        return run_status(
            ["git", "-C", str(self._path), *args],
            cwd=self._path,
            timeout=self._timeout(args),
        )

    def _error(self, command: str, error: ProcessError, fallback: str) -> GitError:
        return GitError(
            command=command,
            message=error.stderr.strip() or error.stdout.strip() or fallback,
            returncode=error.returncode,
        )


def _parse_ls_remote(stdout: str, refname: str) -> str | None:
    """Pick the commit sha from ``ls-remote`` output.

    Annotated tags list both the tag object and a peeled ``^{}`` line; the
    peeled line is the commit.
    """
    direct: str | None = None
    for line in stdout.splitlines():
        parts = line.split()
        if len(parts) != 2:
            continue
        sha, ref = parts
        if ref == f"{refname}^{{}}":
            return sha
        if ref == refname:
            direct = sha
    return direct


def _interpret_exit_code(out: CompletedOutput, tag: str) -> Result[bool, GitError]:
    if out.returncode == 0:
        return Ok(True)
    if out.returncode == _LS_REMOTE_NOT_FOUND:
        return Ok(False)
    return Err(
        GitError(
            command="ls-remote",
            message=f"failed to query remote tags for {tag} (exit={out.returncode}): {out.stderr}",
            returncode=out.returncode,
        )
    )
