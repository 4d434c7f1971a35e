"""Wait for a tag's release assets to be uploaded and stop growing.

A GitHub release can list an asset before its upload has finished, so
"present with a non-zero size" is not enough: the full name→size map must be
identical on two consecutive polls before the assets count as ready.
"""

from __future__ import annotations

from collections.abc import Sequence
from time import monotonic, sleep

from orchestrator.core.result import Err, Ok, Result
from orchestrator.github.client import HostingClient
from orchestrator.output.reporter import Reporter
from orchestrator.release.errors import AssetWaitTimeout, HostingFailed, ReleaseError

# Identical observations needed after the first complete one.
_STABLE_TICKS_REQUIRED = 1


def missing_assets(sizes: dict[str, int], expected: Sequence[str]) -> tuple[str, ...]:
    """Expected names that are absent or still reported with size 0."""
    return tuple(name for name in expected if sizes.get(name, 0) <= 0)


def wait_for_release_assets(
    client: HostingClient,
    repo: str,
    tag: str,
    expected: Sequence[str],
    *,
    poll_interval: float,
    timeout: float,
    reporter: Reporter,
) -> Result[None, ReleaseError]:
    """Block until every expected asset is present and stable, or time out."""
    started = monotonic()
    deadline = started + timeout
    last_sizes: dict[str, int] | None = None
    stable_count = 0
    pending: tuple[str, ...] = tuple(expected)

    while True:
        now = monotonic()
        if now > deadline:
            return Err(
                AssetWaitTimeout(
                    repo=repo,
                    tag=tag,
                    missing=pending,
                    elapsed_secs=now - started,
                    timeout_secs=timeout,
                )
            )

        fetched = client.get_release_by_tag(repo, tag)
        if isinstance(fetched, Err):
            return Err(HostingFailed(repo=repo, error=fetched.error))

        release = fetched.value
        if release is None:
            reporter.update(f"[{repo}] release {tag} not found yet; waiting…")
            sleep(poll_interval)
            continue

        sizes = release.asset_sizes()
        missing = missing_assets(sizes, expected)
        if missing:
            stable_count = 0
            pending = missing
            reporter.update(
                f"[{repo}] waiting for assets (missing {len(missing)}): {', '.join(missing)}"
            )
            sleep(poll_interval)
            continue

        if sizes == last_sizes:
            stable_count += 1
        else:
            stable_count = 0
            last_sizes = sizes

        if stable_count >= _STABLE_TICKS_REQUIRED:
            reporter.update(f"[{repo}] assets ready for {tag}")
            return Ok(None)

        pending = tuple(expected)
        reporter.update(f"[{repo}] assets present; verifying stability…")
        sleep(poll_interval)
