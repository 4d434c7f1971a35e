"""release-iso: tag every ISO dependency in order and wait for its assets.

The run is two-phase. Preflight checks all repos without touching anything;
only if every repo passes does apply start tagging, pushing and waiting for
each repo's CI to publish its release assets, in dependency order:
installer-kernel → installer → truthdb → installer-iso.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path

from orchestrator.core.config import resolve_token
from orchestrator.core.result import Err, Ok, Result
from orchestrator.git.repository import RepoHandle, Repository
from orchestrator.github.client import GitHubClient, HostingClient
from orchestrator.output.reporter import Reporter
from orchestrator.release.apply import narrate_dry_run, run_apply
from orchestrator.release.errors import MissingToken, ReleaseError, ReposRootNotFound
from orchestrator.release.model import (
    RELEASE_REPO_NAMES,
    ReleaseOptions,
    build_repo_descriptors,
    looks_like_repos_root,
)
from orchestrator.release.preflight import RepoTarget, run_preflight
from orchestrator.release.version import normalize_version

RepoFactory = Callable[[Path], RepoHandle]
ClientFactory = Callable[[str, str], HostingClient]


def _default_client(owner: str, token: str) -> HostingClient:
    return GitHubClient(owner, token)


def resolve_repos_root(explicit: Path | None, cwd: Path | None = None) -> Result[Path, ReleaseError]:
    """Explicit root, else the current directory or its parent if it holds all repos."""
    if explicit is not None:
        return Ok(explicit.expanduser())

    here = (cwd or Path.cwd()).resolve()
    for candidate in (here, here.parent):
        if looks_like_repos_root(candidate):
            return Ok(candidate)
    return Err(ReposRootNotFound(cwd=here, expected=RELEASE_REPO_NAMES))


def run_release(
    options: ReleaseOptions,
    *,
    reporter: Reporter,
    repo_factory: RepoFactory = Repository,
    client_factory: ClientFactory = _default_client,
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> Result[None, ReleaseError]:
    version = normalize_version(options.version)
    if isinstance(version, Err):
        return version
    tag = version.value.tag

    root = resolve_repos_root(options.repos_root, cwd)
    if isinstance(root, Err):
        return root

    repos = build_repo_descriptors(root.value, options.owner)
    targets = tuple(RepoTarget(repo=r, git=repo_factory(r.local_path)) for r in repos)

    mode = "dry-run" if options.dry_run else ("resume" if options.resume else "release")
    reporter.step(
        f"Release {tag}",
        f"mode: {mode}\nrepos root: {root.value}\norder: {' → '.join(r.name for r in repos)}",
    )

    snapshot = run_preflight(targets, tag, resume=options.resume, reporter=reporter)
    if isinstance(snapshot, Err):
        return snapshot
    reporter.ok(f"preflight passed for {len(targets)} repos")

    if options.dry_run:
        narrate_dry_run(targets, version.value, snapshot.value, reporter=reporter)
        done = f"Dry run complete for {tag}; nothing was tagged or pushed."
    else:
        token = resolve_token(env)
        if not token:
            return Err(MissingToken())

        applied = run_apply(
            targets,
            version.value,
            snapshot.value,
            options=options,
            client=client_factory(options.owner, token),
            reporter=reporter,
        )
        if isinstance(applied, Err):
            return applied
        done = f"All done. installer-iso release should now produce the ISO for {tag}."

    reporter.step("Done", done)
    reporter.ok(done)
    return Ok(None)
