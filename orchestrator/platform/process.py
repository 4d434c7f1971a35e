"""Subprocess execution with Result-based error handling.

Two flavours:
- ``run`` treats any non-zero exit as an error and returns stdout on success.
- ``run_status`` returns the exit code alongside the output, for commands
  where a specific non-zero code is meaningful (``git ls-remote
  --exit-code`` reports "not found" as exit 2).

Usage:
    match run(["git", "rev-parse", "HEAD"], cwd=repo_dir):
        case Ok(stdout):
            print(stdout.strip())
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from orchestrator.core.result import Err, Ok, Result

__all__ = ["CompletedOutput", "ProcessError", "run", "run_status"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it never ran).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:4])
        if len(self.command) > 4:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


@dataclass(frozen=True, slots=True)
class CompletedOutput:
    """Exit code plus stripped output of a process that did run."""

    returncode: int
    stdout: str
    stderr: str


def _spawn(
    cmd: list[str],
    cwd: Path,
    timeout: float | None,
) -> Result[subprocess.CompletedProcess[str], ProcessError]:
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))
    return Ok(proc)


def run(
    cmd: list[str],
    cwd: Path,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout, or an error on non-zero exit."""
    spawned = _spawn(cmd, cwd, timeout)
    if isinstance(spawned, Err):
        return spawned

    proc = spawned.value
    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout or "",
                stderr=proc.stderr or "",
            )
        )
    return Ok(proc.stdout or "")


def run_status(
    cmd: list[str],
    cwd: Path,
    *,
    timeout: float | None = None,
) -> Result[CompletedOutput, ProcessError]:
    """Execute a command and return its exit code and output.

    Only a failure to run the command at all (missing binary, timeout) is an
    Err; a non-zero exit is reported through ``CompletedOutput.returncode``.
    """
    spawned = _spawn(cmd, cwd, timeout)
    if isinstance(spawned, Err):
        return spawned

    proc = spawned.value
    return Ok(
        CompletedOutput(
            returncode=proc.returncode,
            stdout=(proc.stdout or "").strip(),
            stderr=(proc.stderr or "").strip(),
        )
    )
