"""monitor command - live CI/release status for every repo in the org."""

from __future__ import annotations

import typer

from orchestrator.cli.context import build_context
from orchestrator.core.config import resolve_token
from orchestrator.core.errors import ErrorCode
from orchestrator.core.result import Err, Result
from orchestrator.github.client import HostingError
from orchestrator.monitor.service import MonitorOptions, run_monitor
from orchestrator.output.dashboard import Dashboard
from orchestrator.output.session import WorkerContext, run_session

MONITOR_HELP = (
    "CI: latest workflow run on the default branch (OK / FAIL / RUN / -).\n"
    "Release: latest published release tag.\n"
    "Ahead: commits on the default branch since that release.\n"
    "Rows marked … are being refreshed."
)


def monitor(
    owner: str | None = typer.Option(
        None, "--owner", help="GitHub owner (default: Truthdb)", show_default=False
    ),
    poll_interval_secs: int | None = typer.Option(
        None, "--poll-interval-secs", min=1, help="Refresh interval (default: 30)", show_default=False
    ),
    no_tui: bool = typer.Option(False, "--no-tui", help="Print the table after each pass instead"),
) -> None:
    """Watch CI and release state of every repo (Ctrl-C to stop)."""
    ctx = build_context()
    defaults = ctx.config.monitor

    options = MonitorOptions(
        owner=owner or defaults.owner,
        poll_interval_secs=poll_interval_secs or defaults.poll_interval_secs,
    )
    token = resolve_token()

    def worker(w: WorkerContext) -> Result[None, HostingError]:
        return run_monitor(
            options,
            token=token,
            reporter=w.reporter,
            publish_rows=w.publish_rows,
            shutdown=w.shutdown,
        )

    result = run_session(
        worker,
        interactive=ctx.interactive(no_tui=no_tui),
        auto_exit=False,
        console=ctx.console,
        describe=lambda e: e.message,
        dashboard=lambda: Dashboard(help_text=MONITOR_HELP),
        interruptible=True,
    )
    if isinstance(result, Err):
        raise typer.Exit(code=int(ErrorCode.NETWORK_ERROR))
