"""Narration sinks for worker code.

Release and monitor logic only ever talk to a ``Reporter``; whether that ends
up as plain stderr lines or as events for the live dashboard is decided by
the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol

from orchestrator.output.console import ConsoleProtocol, Style
from orchestrator.output.events import (
    BodyUpdated,
    EventChannel,
    MarkError,
    MarkOk,
    StepChanged,
)

__all__ = [
    "ChannelReporter",
    "PlainReporter",
    "RecordingReporter",
    "Reporter",
]


class Reporter(Protocol):
    def step(self, title: str, body: str = "") -> None:
        """Enter a new phase; resets the elapsed-time display."""
        ...

    def update(self, body: str) -> None:
        """Replace the detail text of the current phase."""
        ...

    def ok(self, msg: str = "") -> None: ...

    def error(self, msg: str) -> None:
        """Show a sticky error until the next step or ok."""
        ...


class PlainReporter:
    """Line-oriented narration for non-interactive runs."""

    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console

    def step(self, title: str, body: str = "") -> None:
        self._console.header(title)
        if body.strip():
            self._console.print(body)

    def update(self, body: str) -> None:
        if body.strip():
            self._console.print(body, Style.DIM)

    def ok(self, msg: str = "") -> None:
        self._console.success(msg.strip() or "OK")

    def error(self, msg: str) -> None:
        self._console.error(msg)


class ChannelReporter:
    """Turns narration into progress events for the dashboard."""

    def __init__(self, channel: EventChannel) -> None:
        self._channel = channel

    def step(self, title: str, body: str = "") -> None:
        self._channel.send(StepChanged(title=title, body=body))

    def update(self, body: str) -> None:
        self._channel.send(BodyUpdated(body=body))

    def ok(self, msg: str = "") -> None:
        self._channel.send(MarkOk(msg=msg))

    def error(self, msg: str) -> None:
        self._channel.send(MarkError(msg=msg))


NarrationKind = Literal["step", "update", "ok", "error"]


@dataclass(frozen=True, slots=True)
class Narration:
    kind: NarrationKind
    text: str
    body: str = ""


def _empty_narrations() -> list[Narration]:
    return []


@dataclass
class RecordingReporter:
    """Reporter that records every call, for tests."""

    calls: list[Narration] = field(default_factory=_empty_narrations)

    def step(self, title: str, body: str = "") -> None:
        self.calls.append(Narration("step", title, body))

    def update(self, body: str) -> None:
        self.calls.append(Narration("update", body))

    def ok(self, msg: str = "") -> None:
        self.calls.append(Narration("ok", msg))

    def error(self, msg: str) -> None:
        self.calls.append(Narration("error", msg))

    @property
    def text(self) -> str:
        lines: list[str] = []
        for c in self.calls:
            lines.append(c.text)
            if c.body:
                lines.append(c.body)
        return "\n".join(lines)

    def of_kind(self, kind: NarrationKind) -> list[str]:
        return [c.text for c in self.calls if c.kind == kind]
