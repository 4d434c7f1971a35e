"""Live full-screen dashboard built on ``rich.live``.

The dashboard runs in the calling (main) thread and never does I/O of its
own besides drawing: it drains the event channel, polls the keyboard for at
most ``INPUT_POLL_SECONDS`` and redraws every ``RENDER_TICK_SECONDS``.
Quitting only stops the UI; the worker keeps running until it is joined.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from time import monotonic
from typing import Protocol

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from orchestrator.core.timeouts import INPUT_POLL_SECONDS, RENDER_TICK_SECONDS
from orchestrator.monitor.model import CiState, RepoStatusRow
from orchestrator.output.events import EventChannel
from orchestrator.output.state import DashboardState, KeyAction
from orchestrator.platform.keys import Key, KeyReader

__all__ = ["Dashboard", "KeyPoller", "format_elapsed"]


class KeyPoller(Protocol):
    def poll(self, timeout: float) -> Key | None: ...


KeySourceFactory = Callable[[], AbstractContextManager[KeyPoller]]

_CI_LABELS: dict[CiState, tuple[str, str]] = {
    CiState.SUCCESS: ("OK", "green"),
    CiState.FAILURE: ("FAIL", "red bold"),
    CiState.RUNNING: ("RUN", "yellow"),
    CiState.UNKNOWN: ("-", "dim"),
}

_KEY_HELP = (
    "q / Esc / Ctrl-C  quit the dashboard (a running release keeps going)",
    "Tab               focus this help panel",
    "Up / Down         scroll help (when focused)",
    "PgUp / PgDn       scroll help by a page (when focused)",
)


def format_elapsed(seconds: float) -> str:
    total = int(seconds)
    return f"{total // 60:02d}:{total % 60:02d}"


class Dashboard:
    """Four-panel view: current step, repo table, status line, help."""

    def __init__(
        self,
        *,
        help_text: str = "",
        console: Console | None = None,
        keys: KeySourceFactory = KeyReader,
        state: DashboardState | None = None,
    ) -> None:
        self.state = state or DashboardState()
        self._console = console or Console(stderr=True)
        self._keys = keys
        self._help_lines = [*help_text.splitlines(), *([""] if help_text else []), *_KEY_HELP]
        self._spinner = Spinner("dots", style="cyan")

    @property
    def help_line_count(self) -> int:
        return len(self._help_lines)

    def run(self, channel: EventChannel, *, auto_exit: bool = False) -> None:
        with (
            self._keys() as keys,
            Live(
                self.render(),
                console=self._console,
                auto_refresh=False,
                screen=True,
                transient=True,
            ) as live,
        ):
            next_draw = 0.0
            try:
                while True:
                    for event in channel.drain():
                        self.state.apply(event)
                    if auto_exit and self.state.finished_ok:
                        break

                    key = keys.poll(INPUT_POLL_SECONDS)
                    if key is not None:
                        action = self.state.handle_key(key, help_lines=self.help_line_count)
                        if action is KeyAction.QUIT:
                            break

                    now = monotonic()
                    if now >= next_draw:
                        live.update(self.render(now), refresh=True)
                        next_draw = now + RENDER_TICK_SECONDS
            except KeyboardInterrupt:
                # Ctrl-C outside cbreak reads lands here; same as pressing q.
                pass

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, now: float | None = None) -> RenderableType:
        parts: list[RenderableType] = [self._render_step(now)]
        if self.state.rows:
            parts.append(render_repo_table(self.state.rows))
        parts.append(self._render_status())
        parts.append(self._render_help())
        return Group(*parts)

    def _render_step(self, now: float | None) -> Panel:
        state = self.state
        header = Table.grid(padding=(0, 1))
        header.add_column(width=2)
        header.add_column(ratio=1)
        header.add_column(justify="right")

        if state.finished is None:
            indicator: RenderableType = self._spinner
        elif state.finished:
            indicator = Text("✓", style="green bold")
        else:
            indicator = Text("✗", style="red bold")

        header.add_row(
            indicator,
            Text(state.title, style="bold"),
            Text(format_elapsed(state.elapsed(now)), style="dim"),
        )
        body = Text(state.body) if state.body else Text("")
        return Panel(Group(header, body), title="Current Step", title_align="left")

    def _render_status(self) -> Panel:
        state = self.state
        if state.error:
            content = Text(state.error, style="red bold")
            border = "red"
        elif state.ok_message:
            content = Text(state.ok_message, style="green")
            border = "green"
        else:
            content = Text("working…", style="dim")
            border = "blue"
        return Panel(content, title="Status", title_align="left", border_style=border)

    def _render_help(self) -> Panel:
        state = self.state
        visible = self._help_lines[state.help_scroll :]
        title = "Help (focused)" if state.help_focused else "Help (Tab to focus)"
        return Panel(
            Text("\n".join(visible), style="dim"),
            title=title,
            title_align="left",
            border_style="cyan" if state.help_focused else "dim",
        )


def render_repo_table(rows: tuple[RepoStatusRow, ...]) -> Table:
    table = Table(title="Repos", title_justify="left", expand=True)
    table.add_column("Repo")
    table.add_column("CI")
    table.add_column("Release")
    table.add_column("Ahead", justify="right")

    for row in rows:
        label, style = _CI_LABELS[row.ci_state]
        ahead = "-" if row.ahead_by is None else f"+{row.ahead_by}"
        table.add_row(
            Text(row.name + (" …" if row.loading else "")),
            Text(label, style=style),
            Text(row.latest_release_tag or "-"),
            Text(ahead, style="yellow" if row.ahead_by else "dim"),
        )
    return table
