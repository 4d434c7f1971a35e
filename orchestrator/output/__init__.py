"""Output abstraction layer."""

from .console import (
    ConsoleProtocol,
    MockConsole,
    RichConsole,
    Style,
)
from .reporter import ChannelReporter, PlainReporter, RecordingReporter, Reporter

__all__ = [
    "ChannelReporter",
    "ConsoleProtocol",
    "MockConsole",
    "PlainReporter",
    "RecordingReporter",
    "Reporter",
    "RichConsole",
    "Style",
]
