"""Typed configuration loading.

The orchestrator runs fine without any config file. When one is present
(``--config``, ``$ORCHESTRATOR_CONFIG`` or ``./orchestrator.toml``) it
supplies defaults that command-line flags can still override:

    [release]
    owner = "Truthdb"
    repos_root = "~/src/truthdb"
    poll_interval_secs = 10
    timeout_secs = 2700

    [monitor]
    owner = "Truthdb"
    poll_interval_secs = 30
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_table
from .timeouts import (
    DEFAULT_ASSET_TIMEOUT_SECONDS,
    DEFAULT_MONITOR_INTERVAL_SECONDS,
    DEFAULT_POLL_INTERVAL_SECONDS,
)

__all__ = [
    "CONFIG_ENV_VAR",
    "CONFIG_FILE_NAME",
    "DEFAULT_OWNER",
    "TOKEN_ENV_VARS",
    "Config",
    "ConfigError",
    "MonitorConfig",
    "ReleaseConfig",
    "find_config_path",
    "load_config",
    "resolve_token",
]

DEFAULT_OWNER = "Truthdb"
CONFIG_FILE_NAME = "orchestrator.toml"
CONFIG_ENV_VAR = "ORCHESTRATOR_CONFIG"

# Checked in order; the first variable that is set wins, even if empty.
TOKEN_ENV_VARS: tuple[str, ...] = ("GITHUB_TOKEN", "GH_TOKEN")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    owner: str = DEFAULT_OWNER
    repos_root: Path | None = None
    poll_interval_secs: int = DEFAULT_POLL_INTERVAL_SECONDS
    timeout_secs: int = DEFAULT_ASSET_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class MonitorConfig:
    owner: str = DEFAULT_OWNER
    poll_interval_secs: int = DEFAULT_MONITOR_INTERVAL_SECONDS


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        release: StrDict = get_table(data, "release") or {}
        monitor: StrDict = get_table(data, "monitor") or {}

        repos_root_raw = get_str(release, "repos_root")
        repos_root = Path(repos_root_raw).expanduser() if repos_root_raw else None

        return cls(
            release=ReleaseConfig(
                owner=get_str(release, "owner") or DEFAULT_OWNER,
                repos_root=repos_root,
                poll_interval_secs=_positive(get_int(release, "poll_interval_secs"))
                or DEFAULT_POLL_INTERVAL_SECONDS,
                timeout_secs=_positive(get_int(release, "timeout_secs"))
                or DEFAULT_ASSET_TIMEOUT_SECONDS,
            ),
            monitor=MonitorConfig(
                owner=get_str(monitor, "owner") or DEFAULT_OWNER,
                poll_interval_secs=_positive(get_int(monitor, "poll_interval_secs"))
                or DEFAULT_MONITOR_INTERVAL_SECONDS,
            ),
        )


def _positive(value: int | None) -> int | None:
    if value is None or value <= 0:
        return None
    return value


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse a TOML config file."""
    try:
        raw = path.read_bytes()
    except OSError as e:
        return Err(ConfigError(message=f"cannot read config: {e}", path=path))

    try:
        data_obj: object = tomllib.loads(raw.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        return Err(ConfigError(message=f"invalid TOML: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError(message="config root must be a table", path=path))

    return Ok(Config.from_dict(data))


def find_config_path(
    explicit: Path | None,
    *,
    env: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> Path | None:
    """Locate the config file: explicit path, then env var, then ./orchestrator.toml."""
    if explicit is not None:
        return explicit.expanduser()

    environ = os.environ if env is None else env
    from_env = environ.get(CONFIG_ENV_VAR, "").strip()
    if from_env:
        return Path(from_env).expanduser()

    candidate = (cwd or Path.cwd()) / CONFIG_FILE_NAME
    if candidate.is_file():
        return candidate
    return None


def resolve_token(env: Mapping[str, str] | None = None) -> str:
    """Return the GitHub credential, or "" when none is configured."""
    environ = os.environ if env is None else env
    for name in TOKEN_ENV_VARS:
        if name in environ:
            return environ[name].strip()
    return ""
