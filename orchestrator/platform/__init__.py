"""Platform layer: subprocess execution and terminal input."""

from .keys import Key, KeyReader, decode_key
from .process import CompletedOutput, ProcessError, run, run_status

__all__ = [
    "CompletedOutput",
    "Key",
    "KeyReader",
    "ProcessError",
    "decode_key",
    "run",
    "run_status",
]
