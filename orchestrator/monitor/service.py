"""Fleet monitor: keep a live table of CI/release state for every org repo.

Each pass walks the static repo list one repo at a time and publishes the
whole row set after every repo, so the table fills in progressively instead
of stalling until the slowest API call returns. Between passes the loop
sleeps in short slices so a shutdown request is noticed quickly.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from time import sleep

from orchestrator.core.result import Err, Ok, Result
from orchestrator.core.timeouts import (
    DEFAULT_MONITOR_INTERVAL_SECONDS,
    MONITOR_SLEEP_SLICE_SECONDS,
)
from orchestrator.github.client import GitHubClient, HostingClient, HostingError, WorkflowRun
from orchestrator.monitor.model import (
    DEFAULT_BRANCH_FALLBACK,
    MONITORED_REPOS,
    CiState,
    RepoStatusRow,
)
from orchestrator.output.reporter import Reporter

PublishRows = Callable[[tuple[RepoStatusRow, ...]], None]

_FAILED_CONCLUSIONS = frozenset({"failure", "cancelled", "timed_out"})

# Errors worth surfacing; a 404 just means "nothing there yet".
_SERIOUS_KINDS = frozenset({"auth_failed", "api_error"})


@dataclass(frozen=True, slots=True)
class MonitorOptions:
    owner: str
    poll_interval_secs: float = DEFAULT_MONITOR_INTERVAL_SECONDS
    repos: tuple[str, ...] = MONITORED_REPOS


def ci_state_for(run: WorkflowRun | None) -> CiState:
    if run is None:
        return CiState.UNKNOWN
    if run.status != "completed":
        return CiState.RUNNING
    if run.conclusion == "success":
        return CiState.SUCCESS
    if run.conclusion in _FAILED_CONCLUSIONS:
        return CiState.FAILURE
    return CiState.UNKNOWN


def placeholder_rows(repos: Sequence[str]) -> list[RepoStatusRow]:
    return [RepoStatusRow(name=name, loading=True) for name in repos]


def fetch_row(client: HostingClient, repo: str) -> tuple[RepoStatusRow, HostingError | None]:
    """Current status of one repo.

    Individual lookup failures degrade the affected column to unknown; the
    first auth/API failure is returned alongside so the caller can flag it.
    """
    problem: HostingError | None = None

    def note(error: HostingError) -> None:
        nonlocal problem
        if problem is None and error.kind in _SERIOUS_KINDS:
            problem = error

    default_branch = DEFAULT_BRANCH_FALLBACK
    branch = client.get_default_branch(repo)
    if isinstance(branch, Ok):
        default_branch = branch.value
    else:
        note(branch.error)

    ci_state = CiState.UNKNOWN
    run = client.get_latest_workflow_run(repo)
    if isinstance(run, Ok):
        ci_state = ci_state_for(run.value)
    else:
        note(run.error)

    tag: str | None = None
    latest = client.get_latest_release_tag(repo)
    if isinstance(latest, Ok):
        tag = latest.value
    else:
        note(latest.error)

    ahead_by: int | None = None
    if tag is not None:
        compared = client.compare_ahead_by(repo, tag, default_branch)
        if isinstance(compared, Ok):
            ahead_by = compared.value
        else:
            note(compared.error)

    row = RepoStatusRow(
        name=repo,
        ci_state=ci_state,
        latest_release_tag=tag,
        ahead_by=ahead_by,
        loading=False,
    )
    return row, problem


def refresh_rows(
    client: HostingClient,
    rows: list[RepoStatusRow],
    publish_rows: PublishRows,
) -> Result[None, HostingError]:
    """One pass over all repos, publishing after each one.

    Rows keep their previous values (flagged loading) until refreshed.
    """
    for i, row in enumerate(rows):
        rows[i] = replace(row, loading=True)
    publish_rows(tuple(rows))

    first_problem: HostingError | None = None
    for i, row in enumerate(rows):
        rows[i], problem = fetch_row(client, row.name)
        if first_problem is None:
            first_problem = problem
        publish_rows(tuple(rows))

    if first_problem is not None:
        return Err(first_problem)
    return Ok(None)


def sleep_until_next_pass(interval: float, shutdown: threading.Event) -> None:
    slept = 0.0
    while slept < interval and not shutdown.is_set():
        sleep(MONITOR_SLEEP_SLICE_SECONDS)
        slept += MONITOR_SLEEP_SLICE_SECONDS


def run_monitor(
    options: MonitorOptions,
    *,
    token: str,
    reporter: Reporter,
    publish_rows: PublishRows,
    shutdown: threading.Event,
    client: HostingClient | None = None,
) -> Result[None, HostingError]:
    """Refresh the fleet table until ``shutdown`` is set.

    Returns the result of the last completed pass.
    """
    reporter.step(
        "Monitor",
        f"owner={options.owner}\nrepos={len(options.repos)}\n"
        f"refresh={options.poll_interval_secs:g}s",
    )

    has_token = bool(token)
    if has_token:
        reporter.ok("OK")
    else:
        reporter.error(
            "Missing GITHUB_TOKEN (or GH_TOKEN). Repo status will likely be "
            "rate-limited/unauthenticated."
        )

    gh = client or GitHubClient(options.owner, token)
    rows = placeholder_rows(options.repos)
    publish_rows(tuple(rows))

    last_pass: Result[None, HostingError] = Ok(None)
    while not shutdown.is_set():
        last_pass = refresh_rows(gh, rows, publish_rows)
        if isinstance(last_pass, Err):
            reporter.error(f"Monitor refresh failed: {last_pass.error.message}")
        elif has_token:
            reporter.ok("OK")

        sleep_until_next_pass(options.poll_interval_secs, shutdown)

    return last_pass
