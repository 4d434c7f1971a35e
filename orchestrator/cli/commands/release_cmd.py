"""release-iso command - tag every ISO dependency and wait for its assets."""

from __future__ import annotations

from pathlib import Path

import typer

from orchestrator.cli.context import build_context
from orchestrator.core.result import Err, Ok, Result
from orchestrator.output.dashboard import Dashboard
from orchestrator.output.errors import print_release_error, release_error_exit_code
from orchestrator.output.session import WorkerContext, run_session
from orchestrator.release.errors import ReleaseError, describe_release_error
from orchestrator.release.model import RELEASE_REPO_NAMES, ReleaseOptions
from orchestrator.release.orchestrator import run_release

RELEASE_HELP = (
    "Tags each repo in order and waits for its release assets:\n"
    f"  {' → '.join(RELEASE_REPO_NAMES)}\n"
    "Nothing is tagged until every repo passes preflight.\n"
    "If the run stops half-way, fix the cause and re-run with --resume."
)


def release_iso(
    version: str = typer.Option(
        ..., "--version", help="Release version (e.g. 1.2.3, v1.2.3, 1.2.3-rc.1)"
    ),
    repos_root: Path | None = typer.Option(
        None,
        "--repos-root",
        help="Directory holding the repo checkouts (default: cwd or its parent)",
        show_default=False,
    ),
    owner: str | None = typer.Option(
        None, "--owner", help="GitHub owner (default: Truthdb)", show_default=False
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Run preflight and narrate, change nothing"),
    resume: bool = typer.Option(
        False, "--resume", help="Continue a partial release (skip repos already tagged on origin)"
    ),
    poll_interval_secs: int | None = typer.Option(
        None, "--poll-interval-secs", min=1, help="Asset poll interval (default: 10)", show_default=False
    ),
    timeout_secs: int | None = typer.Option(
        None, "--timeout-secs", min=1, help="Per-repo asset wait timeout (default: 2700)", show_default=False
    ),
    no_tui: bool = typer.Option(False, "--no-tui", help="Plain line output instead of the dashboard"),
    auto_exit: bool = typer.Option(
        False, "--auto-exit", help="Close the dashboard automatically on success"
    ),
) -> None:
    """Tag and release installer-kernel, installer, truthdb and installer-iso."""
    ctx = build_context()
    defaults = ctx.config.release

    options = ReleaseOptions(
        version=version,
        repos_root=repos_root or defaults.repos_root,
        owner=owner or defaults.owner,
        dry_run=dry_run,
        resume=resume,
        poll_interval_secs=poll_interval_secs or defaults.poll_interval_secs,
        timeout_secs=timeout_secs or defaults.timeout_secs,
    )

    def worker(w: WorkerContext) -> Result[None, ReleaseError]:
        return run_release(options, reporter=w.reporter)

    result = run_session(
        worker,
        interactive=ctx.interactive(no_tui=no_tui),
        auto_exit=auto_exit,
        console=ctx.console,
        describe=describe_release_error,
        report_error=print_release_error,
        dashboard=lambda: Dashboard(help_text=RELEASE_HELP),
    )

    match result:
        case Ok(_):
            return
        case Err(error):
            raise typer.Exit(code=release_error_exit_code(error))
