"""Tag, push and wait for assets, one repo at a time in release order.

Nothing here re-checks the remote: the preflight snapshot decides which repos
are skipped. A failure stops the run; tags already pushed earlier in the run
are left in place and ``--resume`` picks up from there.
"""

from __future__ import annotations

from collections.abc import Sequence

from orchestrator.core.result import Err, Ok, Result
from orchestrator.github.client import HostingClient
from orchestrator.output.reporter import Reporter
from orchestrator.release.assets import wait_for_release_assets
from orchestrator.release.errors import (
    GitQueryFailed,
    ReleaseError,
    TagCreateFailed,
    TagPushFailed,
)
from orchestrator.release.model import PreflightSnapshot, ReleaseOptions, expected_assets
from orchestrator.release.preflight import RepoTarget
from orchestrator.release.version import ReleaseVersion


def run_apply(
    targets: Sequence[RepoTarget],
    version: ReleaseVersion,
    snapshot: PreflightSnapshot,
    *,
    options: ReleaseOptions,
    client: HostingClient,
    reporter: Reporter,
) -> Result[None, ReleaseError]:
    for target in targets:
        tagged = _tag_repo(target, version.tag, snapshot, reporter=reporter)
        if isinstance(tagged, Err):
            return tagged

        waited = _wait_for_assets(
            target,
            version,
            options=options,
            client=client,
            reporter=reporter,
        )
        if isinstance(waited, Err):
            return waited

    return Ok(None)


def narrate_dry_run(
    targets: Sequence[RepoTarget],
    version: ReleaseVersion,
    snapshot: PreflightSnapshot,
    *,
    reporter: Reporter,
) -> None:
    """Report what ``run_apply`` would do, touching neither git nor GitHub."""
    for target in targets:
        name = target.repo.name
        reporter.step(f"[{name}] tagging {version.tag}", str(target.repo.local_path))
        if snapshot.already_tagged_remotely(name):
            reporter.update(f"[{name}] (dry-run) tag already on origin; would skip tagging")
        else:
            reporter.update(f"[{name}] (dry-run) would create annotated tag {version.tag} and push")

        expected = expected_assets(name, version.version)
        if expected:
            listing = "\n".join(f"  {asset}" for asset in expected)
            reporter.step(f"[{name}] (dry-run) would wait for assets", listing)


def _tag_repo(
    target: RepoTarget,
    tag: str,
    snapshot: PreflightSnapshot,
    *,
    reporter: Reporter,
) -> Result[None, ReleaseError]:
    name = target.repo.name
    reporter.step(f"[{name}] tagging {tag}", str(target.repo.local_path))

    if snapshot.already_tagged_remotely(name):
        reporter.update(f"[{name}] tag already exists on origin; skipping create/push")
        return Ok(None)

    local = target.git.local_tag_commit(tag)
    if isinstance(local, Err):
        return Err(GitQueryFailed(repo=name, detail=local.error.message))

    # Present after a resumed run, or if someone tagged between the phases.
    if local.value is None:
        reporter.update(f"[{name}] creating annotated tag {tag}…")
        created = target.git.create_annotated_tag(tag)
        if isinstance(created, Err):
            return Err(TagCreateFailed(repo=name, tag=tag, detail=created.error.message))

    reporter.update(f"[{name}] pushing {tag} to origin…")
    pushed = target.git.push_tag(tag)
    if isinstance(pushed, Err):
        return Err(TagPushFailed(repo=name, tag=tag, detail=pushed.error.message))

    reporter.ok(f"[{name}] pushed {tag}")
    return Ok(None)


def _wait_for_assets(
    target: RepoTarget,
    version: ReleaseVersion,
    *,
    options: ReleaseOptions,
    client: HostingClient,
    reporter: Reporter,
) -> Result[None, ReleaseError]:
    name = target.repo.name
    expected = expected_assets(name, version.version)
    if not expected:
        return Ok(None)

    listing = "\n".join(f"  {asset}" for asset in expected)
    reporter.step(f"[{name}] waiting for release assets…", listing)
    waited = wait_for_release_assets(
        client,
        name,
        version.tag,
        expected,
        poll_interval=options.poll_interval_secs,
        timeout=options.timeout_secs,
        reporter=reporter,
    )
    if isinstance(waited, Err):
        return waited

    reporter.ok(f"[{name}] assets ready for {version.tag}")
    return Ok(None)
