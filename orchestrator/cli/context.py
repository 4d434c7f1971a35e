from __future__ import annotations

import sys
from dataclasses import dataclass, field

import typer

from orchestrator.core.config import Config, find_config_path, load_config
from orchestrator.core.errors import ErrorCode
from orchestrator.core.result import Err
from orchestrator.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config = field(default_factory=Config)
    console: ConsoleProtocol = field(default_factory=RichConsole)
    is_tty: bool = False

    def interactive(self, *, no_tui: bool) -> bool:
        """Use the live dashboard unless disabled or not on a terminal."""
        return self.is_tty and not no_tui


def build_context() -> CLIContext:
    config = Config()
    config_path = find_config_path(None)
    if config_path is not None:
        config_result = load_config(config_path)
        if isinstance(config_result, Err):
            typer.echo(f"error: {config_path}: {config_result.error.message}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        config = config_result.value

    return CLIContext(
        config=config,
        console=RichConsole(),
        is_tty=sys.stdin.isatty() and sys.stdout.isatty(),
    )
