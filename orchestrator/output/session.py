"""Run a worker either behind the live dashboard or inline with plain output.

Interactive sessions run the worker in its own thread with a
``ChannelReporter`` while the dashboard owns the calling thread. Once the
dashboard returns (finished, or the operator quit) the channel is closed and
the worker is always joined, so a release is never abandoned half-way. Any
error is printed again on the plain console after the dashboard is gone.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from orchestrator.core.result import Err, Ok, Result
from orchestrator.monitor.model import CiState, RepoStatusRow
from orchestrator.output.console import ConsoleProtocol, Style
from orchestrator.output.events import EventChannel, Finished, MarkError, RepoRowsUpdated
from orchestrator.output.reporter import ChannelReporter, PlainReporter, Reporter

__all__ = [
    "DashboardRunner",
    "PlainRowPrinter",
    "WorkerContext",
    "format_status_row",
    "run_session",
]


@dataclass(frozen=True, slots=True)
class WorkerContext:
    """What a worker gets to talk to the outside world."""

    reporter: Reporter
    publish_rows: Callable[[tuple[RepoStatusRow, ...]], None]
    shutdown: threading.Event


class DashboardRunner(Protocol):
    def run(self, channel: EventChannel, *, auto_exit: bool = False) -> None: ...


def _default_dashboard() -> DashboardRunner:
    from orchestrator.output.dashboard import Dashboard

    return Dashboard()


def _print_error_message(error: object, console: ConsoleProtocol) -> None:
    console.error(str(getattr(error, "message", error)))


@dataclass
class _Outcome[E]:
    result: Result[None, E] | None = None
    exception: BaseException | None = None


def run_session[E](
    worker: Callable[[WorkerContext], Result[None, E]],
    *,
    interactive: bool,
    auto_exit: bool,
    console: ConsoleProtocol,
    describe: Callable[[E], str] = str,
    report_error: Callable[[E, ConsoleProtocol], None] = _print_error_message,
    dashboard: Callable[[], DashboardRunner] = _default_dashboard,
    interruptible: bool = False,
) -> Result[None, E]:
    """Run ``worker`` to completion and return its result.

    ``interruptible`` workers (the monitor) treat Ctrl-C in plain mode as a
    shutdown request instead of aborting the process.
    """
    if not interactive:
        return _run_plain(
            worker,
            console=console,
            report_error=report_error,
            interruptible=interruptible,
        )

    channel = EventChannel()
    shutdown = threading.Event()
    ctx = WorkerContext(
        reporter=ChannelReporter(channel),
        publish_rows=lambda rows: channel.send(RepoRowsUpdated(rows=rows)),
        shutdown=shutdown,
    )
    outcome: _Outcome[E] = _Outcome()

    def target() -> None:
        try:
            outcome.result = worker(ctx)
        except BaseException as e:
            outcome.exception = e
            channel.send(MarkError(msg=f"internal error: {e}"))
            channel.send(Finished(ok=False))
            return

        if isinstance(outcome.result, Err):
            channel.send(MarkError(msg=describe(outcome.result.error)))
            channel.send(Finished(ok=False))
        else:
            channel.send(Finished(ok=True))

    thread = threading.Thread(target=target, name="orchestrator-worker")
    thread.start()
    try:
        dashboard().run(channel, auto_exit=auto_exit)
    finally:
        shutdown.set()
        channel.close()
        if thread.is_alive():
            console.print("waiting for worker…", Style.DIM)
        thread.join()

    if outcome.exception is not None:
        raise outcome.exception

    result = outcome.result
    assert result is not None
    if isinstance(result, Err):
        report_error(result.error, console)
    return result


def _run_plain[E](
    worker: Callable[[WorkerContext], Result[None, E]],
    *,
    console: ConsoleProtocol,
    report_error: Callable[[E, ConsoleProtocol], None],
    interruptible: bool,
) -> Result[None, E]:
    shutdown = threading.Event()
    ctx = WorkerContext(
        reporter=PlainReporter(console),
        publish_rows=PlainRowPrinter(console),
        shutdown=shutdown,
    )
    try:
        result = worker(ctx)
    except KeyboardInterrupt:
        shutdown.set()
        if not interruptible:
            raise
        console.print("interrupted", Style.DIM)
        return Ok(None)

    if isinstance(result, Err):
        report_error(result.error, console)
    return result


# ----------------------------------------------------------------------------
# Plain monitor output
# ----------------------------------------------------------------------------

_CI_WORDS: dict[CiState, str] = {
    CiState.SUCCESS: "OK",
    CiState.FAILURE: "FAIL",
    CiState.RUNNING: "RUN",
    CiState.UNKNOWN: "-",
}


def format_status_row(row: RepoStatusRow) -> str:
    ahead = "-" if row.ahead_by is None else f"+{row.ahead_by}"
    tag = row.latest_release_tag or "-"
    return f"{row.name:<32} {_CI_WORDS[row.ci_state]:<5} {tag:<16} {ahead}"


@dataclass
class PlainRowPrinter:
    """Prints the fleet table once per completed pass."""

    console: ConsoleProtocol
    _pass_running: bool = False

    def __call__(self, rows: tuple[RepoStatusRow, ...]) -> None:
        if any(r.loading for r in rows):
            self._pass_running = True
            return
        if not rows or not self._pass_running:
            return
        self._pass_running = False
        self.console.header("Repos")
        for row in rows:
            style = Style.ERROR if row.ci_state is CiState.FAILURE else Style.DEFAULT
            self.console.print(format_status_row(row), style)
