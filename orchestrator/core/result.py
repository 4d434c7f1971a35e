"""Result type for explicit error handling.

Every fallible operation in the orchestrator (git calls, GitHub calls,
preflight checks) returns a ``Result`` instead of raising, so the release
state machine can stop exactly where a step failed and report why.

Usage:
    match repo.head_commit():
        case Ok(sha):
            print(sha)
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["Err", "Ok", "Result"]


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful outcome carrying ``value``."""

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed outcome carrying ``error``."""

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
