"""Progress events flowing from the worker thread to the dashboard.

The worker is the only producer and the dashboard the only consumer.
``EventChannel.send`` never blocks and never raises: once the dashboard has
closed the channel, further events are dropped so a quitting UI cannot break
a release that is still running.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass

from orchestrator.monitor.model import RepoStatusRow

__all__ = [
    "BodyUpdated",
    "EventChannel",
    "Finished",
    "MarkError",
    "MarkOk",
    "ProgressEvent",
    "RepoRowsUpdated",
    "StepChanged",
]


@dataclass(frozen=True, slots=True)
class StepChanged:
    title: str
    body: str


@dataclass(frozen=True, slots=True)
class BodyUpdated:
    body: str


@dataclass(frozen=True, slots=True)
class MarkOk:
    msg: str


@dataclass(frozen=True, slots=True)
class MarkError:
    msg: str


@dataclass(frozen=True, slots=True)
class Finished:
    ok: bool


@dataclass(frozen=True, slots=True)
class RepoRowsUpdated:
    rows: tuple[RepoStatusRow, ...]


ProgressEvent = StepChanged | BodyUpdated | MarkOk | MarkError | Finished | RepoRowsUpdated


class EventChannel:
    """Unbounded single-producer/single-consumer FIFO of progress events."""

    def __init__(self) -> None:
        self._queue: queue.SimpleQueue[ProgressEvent] = queue.SimpleQueue()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, event: ProgressEvent) -> None:
        if self._closed.is_set():
            return
        self._queue.put_nowait(event)

    def drain(self) -> list[ProgressEvent]:
        """All pending events, oldest first."""
        events: list[ProgressEvent] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def close(self) -> None:
        self._closed.set()
