"""Read-only release checks, run for every repo before anything is tagged.

A failure on any repo stops the run with nothing mutated anywhere. The only
state carried forward is whether each repo already has the tag on origin,
captured once in the ``PreflightSnapshot``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from types import MappingProxyType

from orchestrator.core.result import Err, Ok, Result
from orchestrator.git.repository import RepoHandle
from orchestrator.output.reporter import Reporter
from orchestrator.release.errors import (
    BranchDiverged,
    DetachedHead,
    DirtyWorktree,
    FetchFailed,
    GitQueryFailed,
    MissingDirectory,
    OriginMismatch,
    ReleaseError,
    RemoteQueryFailed,
    TagAlreadyExists,
    TagAlreadyReleased,
    TagConflict,
)
from orchestrator.release.model import PreflightSnapshot, RepoDescriptor, RepoPreflight


@dataclass(frozen=True, slots=True)
class RepoTarget:
    """A release repo paired with the git handle operating on it."""

    repo: RepoDescriptor
    git: RepoHandle


def run_preflight(
    targets: Sequence[RepoTarget],
    tag: str,
    *,
    resume: bool,
    reporter: Reporter,
) -> Result[PreflightSnapshot, ReleaseError]:
    results: dict[str, RepoPreflight] = {}
    for target in targets:
        reporter.step(f"Preflight [{target.repo.name}]", str(target.repo.local_path))
        checked = check_repo(target, tag, resume=resume, reporter=reporter)
        if isinstance(checked, Err):
            return checked
        results[target.repo.name] = checked.value

    return Ok(PreflightSnapshot(tag=tag, repos=MappingProxyType(results)))


def check_repo(
    target: RepoTarget,
    tag: str,
    *,
    resume: bool,
    reporter: Reporter,
) -> Result[RepoPreflight, ReleaseError]:
    repo = target.repo
    git = target.git
    name = repo.name

    if not repo.local_path.is_dir():
        return Err(MissingDirectory(repo=name, path=repo.local_path))

    origin = _check_origin(target)
    if isinstance(origin, Err):
        return origin

    reporter.update(f"[{name}] fetching tags from origin…")
    fetched = git.fetch_tags()
    if isinstance(fetched, Err):
        return Err(FetchFailed(repo=name, detail=fetched.error.message))

    remote = git.remote_tag_commit(tag)
    if isinstance(remote, Err):
        return Err(RemoteQueryFailed(repo=name, detail=remote.error.message))

    if remote.value is not None:
        if not resume:
            return Err(TagAlreadyReleased(repo=name, tag=tag))
        # Already released; local state no longer matters for this repo.
        reporter.update(f"[{name}] {tag} already on origin; skipping local checks")
        return Ok(RepoPreflight(already_tagged_remotely=True))

    synced = _check_worktree_and_branch(target)
    if isinstance(synced, Err):
        return synced
    head = synced.value

    tags = _check_tag_absent(target, tag, head=head, resume=resume)
    if isinstance(tags, Err):
        return tags

    reporter.update(f"[{name}] clean, synced with origin, ready to tag {head[:12]}")
    return Ok(RepoPreflight(already_tagged_remotely=False))


def _check_origin(target: RepoTarget) -> Result[None, ReleaseError]:
    url = target.git.remote_url()
    if isinstance(url, Err):
        return Err(GitQueryFailed(repo=target.repo.name, detail=url.error.message))

    # SSH and HTTPS remotes both contain "owner/name".
    needle = target.repo.slug
    if needle.lower() not in url.value.lower():
        return Err(OriginMismatch(repo=target.repo.name, expected=needle, actual=url.value))
    return Ok(None)


def _check_worktree_and_branch(target: RepoTarget) -> Result[str, ReleaseError]:
    """Clean tree on a branch that matches origin; returns the HEAD sha."""
    git = target.git
    name = target.repo.name

    status = git.status_entries()
    if isinstance(status, Err):
        return Err(GitQueryFailed(repo=name, detail=status.error.message))
    if status.value:
        paths = tuple(f"{e.pretty_xy()} {e.path}" for e in status.value)
        return Err(DirtyWorktree(repo=name, paths=paths))

    branch = git.current_branch()
    if isinstance(branch, Err):
        return Err(GitQueryFailed(repo=name, detail=branch.error.message))
    if branch.value is None:
        return Err(DetachedHead(repo=name))

    head = git.head_commit()
    if isinstance(head, Err):
        return Err(GitQueryFailed(repo=name, detail=head.error.message))

    remote_ref = f"origin/{branch.value}"
    remote_head = git.resolve_ref(remote_ref)
    if isinstance(remote_head, Err):
        return Err(
            GitQueryFailed(
                repo=name,
                detail=f"failed to resolve {remote_ref}: {remote_head.error.message}",
            )
        )

    if head.value != remote_head.value:
        counts = git.divergence("HEAD", remote_ref)
        ahead, behind = counts.value if isinstance(counts, Ok) else (0, 0)
        return Err(
            BranchDiverged(
                repo=name,
                remote_ref=remote_ref,
                local_sha=head.value,
                remote_sha=remote_head.value,
                ahead=ahead,
                behind=behind,
            )
        )

    return Ok(head.value)


def _check_tag_absent(
    target: RepoTarget,
    tag: str,
    *,
    head: str,
    resume: bool,
) -> Result[None, ReleaseError]:
    git = target.git
    name = target.repo.name

    local = git.local_tag_commit(tag)
    if isinstance(local, Err):
        return Err(GitQueryFailed(repo=name, detail=local.error.message))

    if resume:
        # A local tag left by an interrupted run is fine if it is on HEAD.
        if local.value is not None and local.value != head:
            return Err(TagConflict(repo=name, tag=tag, existing_sha=local.value, head_sha=head))
        return Ok(None)

    if local.value is not None:
        return Err(TagAlreadyExists(repo=name, tag=tag, where="local"))

    exists = git.remote_tag_exists(tag)
    if isinstance(exists, Err):
        return Err(RemoteQueryFailed(repo=name, detail=exists.error.message))
    if exists.value:
        return Err(TagAlreadyExists(repo=name, tag=tag, where="remote"))
    return Ok(None)
