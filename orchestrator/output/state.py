"""Dashboard state and its transitions.

``DashboardState`` is plain data: ``apply`` folds one progress event into it
and ``handle_key`` reacts to a key press. Rendering lives in
``output.dashboard`` and only reads this state, so every transition can be
tested without a terminal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from time import monotonic

from orchestrator.monitor.model import RepoStatusRow
from orchestrator.output.events import (
    BodyUpdated,
    Finished,
    MarkError,
    MarkOk,
    ProgressEvent,
    RepoRowsUpdated,
    StepChanged,
)
from orchestrator.platform.keys import Key

__all__ = ["DONE_MESSAGE", "HELP_PAGE_LINES", "DashboardState", "KeyAction"]

DONE_MESSAGE = "DONE — press q to exit"

HELP_PAGE_LINES = 5


def _no_rows() -> tuple[RepoStatusRow, ...]:
    return ()


@dataclass
class DashboardState:
    title: str = "Starting…"
    body: str = ""
    started_at: float = field(default_factory=monotonic)
    ok_message: str | None = None
    error: str | None = None
    finished: bool | None = None
    rows: tuple[RepoStatusRow, ...] = field(default_factory=_no_rows)
    help_focused: bool = False
    help_scroll: int = 0

    @property
    def finished_ok(self) -> bool:
        return self.finished is True

    def elapsed(self, now: float | None = None) -> float:
        return max(0.0, (monotonic() if now is None else now) - self.started_at)

    def apply(self, event: ProgressEvent, *, now: float | None = None) -> None:
        match event:
            case StepChanged(title=title, body=body):
                self.title = title
                self.body = body
                self.started_at = monotonic() if now is None else now
                self.error = None
                self.ok_message = None
            case BodyUpdated(body=body):
                self.body = body
            case MarkOk(msg=msg):
                self.error = None
                self.ok_message = msg.strip() or "OK"
            case MarkError(msg=msg):
                self.error = msg
            case RepoRowsUpdated(rows=rows):
                self.rows = rows
            case Finished(ok=ok):
                self.finished = ok
                if ok:
                    self.error = None
                    self.ok_message = DONE_MESSAGE

    def handle_key(self, key: Key, *, help_lines: int) -> KeyAction:
        """React to a key press; scrolling only applies while help is focused."""
        max_scroll = max(0, help_lines - 1)
        match key:
            case Key.QUIT:
                return KeyAction.QUIT
            case Key.TAB:
                self.help_focused = not self.help_focused
            case Key.UP if self.help_focused:
                self.help_scroll = max(0, self.help_scroll - 1)
            case Key.DOWN if self.help_focused:
                self.help_scroll = min(max_scroll, self.help_scroll + 1)
            case Key.PAGE_UP if self.help_focused:
                self.help_scroll = max(0, self.help_scroll - HELP_PAGE_LINES)
            case Key.PAGE_DOWN if self.help_focused:
                self.help_scroll = min(max_scroll, self.help_scroll + HELP_PAGE_LINES)
            case _:
                pass
        return KeyAction.CONTINUE


class KeyAction(Enum):
    CONTINUE = auto()
    QUIT = auto()
