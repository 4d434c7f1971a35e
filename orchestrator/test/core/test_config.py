"""Tests for orchestrator.core.config module."""

from __future__ import annotations

from pathlib import Path

from orchestrator.core.config import (
    CONFIG_ENV_VAR,
    CONFIG_FILE_NAME,
    DEFAULT_OWNER,
    Config,
    find_config_path,
    load_config,
    resolve_token,
)
from orchestrator.core.errors import ErrorCode
from orchestrator.core.result import Err, Ok
from orchestrator.core.structured import get_int, get_str


class TestConfigFromDict:
    def test_empty_uses_defaults(self) -> None:
        config = Config.from_dict({})
        assert config.release.owner == DEFAULT_OWNER
        assert config.release.repos_root is None
        assert config.release.poll_interval_secs == 10
        assert config.release.timeout_secs == 2700
        assert config.monitor.owner == DEFAULT_OWNER
        assert config.monitor.poll_interval_secs == 30

    def test_full_tables(self) -> None:
        config = Config.from_dict(
            {
                "release": {
                    "owner": "acme",
                    "repos_root": "/src/acme",
                    "poll_interval_secs": 5,
                    "timeout_secs": 60,
                },
                "monitor": {"owner": "acme-mon", "poll_interval_secs": 12},
            }
        )
        assert config.release.owner == "acme"
        assert config.release.repos_root == Path("/src/acme")
        assert config.release.poll_interval_secs == 5
        assert config.release.timeout_secs == 60
        assert config.monitor.owner == "acme-mon"
        assert config.monitor.poll_interval_secs == 12

    def test_invalid_values_fall_back(self) -> None:
        config = Config.from_dict(
            {
                "release": {"owner": "  ", "poll_interval_secs": 0, "timeout_secs": True},
                "monitor": "not a table",
            }
        )
        assert config.release.owner == DEFAULT_OWNER
        assert config.release.poll_interval_secs == 10
        assert config.release.timeout_secs == 2700
        assert config.monitor.poll_interval_secs == 30


class TestLoadConfig:
    def test_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text('[release]\nowner = "acme"\ntimeout_secs = 120\n', encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Ok)
        assert result.value.release.owner == "acme"
        assert result.value.release.timeout_secs == 120

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "nope.toml")

        assert isinstance(result, Err)
        assert "cannot read config" in result.error.message
        assert result.error.path == tmp_path / "nope.toml"

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text("[release\nowner = ", encoding="utf-8")

        result = load_config(path)

        assert isinstance(result, Err)
        assert "invalid TOML" in result.error.message


class TestFindConfigPath:
    def test_explicit_wins(self, tmp_path: Path) -> None:
        explicit = tmp_path / "custom.toml"
        found = find_config_path(explicit, env={CONFIG_ENV_VAR: "/elsewhere.toml"}, cwd=tmp_path)
        assert found == explicit

    def test_env_var(self, tmp_path: Path) -> None:
        found = find_config_path(None, env={CONFIG_ENV_VAR: "/etc/orch.toml"}, cwd=tmp_path)
        assert found == Path("/etc/orch.toml")

    def test_cwd_file(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILE_NAME).write_text("", encoding="utf-8")
        assert find_config_path(None, env={}, cwd=tmp_path) == tmp_path / CONFIG_FILE_NAME

    def test_none_found(self, tmp_path: Path) -> None:
        assert find_config_path(None, env={}, cwd=tmp_path) is None


class TestResolveToken:
    def test_github_token_first(self) -> None:
        assert resolve_token({"GITHUB_TOKEN": "a", "GH_TOKEN": "b"}) == "a"

    def test_gh_token_fallback(self) -> None:
        assert resolve_token({"GH_TOKEN": " b "}) == "b"

    def test_first_present_wins_even_if_empty(self) -> None:
        assert resolve_token({"GITHUB_TOKEN": "", "GH_TOKEN": "b"}) == ""

    def test_missing(self) -> None:
        assert resolve_token({}) == ""


class TestStructured:
    def test_get_str_strips(self) -> None:
        assert get_str({"k": "  v  "}, "k") == "v"
        assert get_str({"k": ""}, "k") is None
        assert get_str({"k": 3}, "k") is None

    def test_get_int_rejects_bool(self) -> None:
        assert get_int({"k": 3}, "k") == 3
        assert get_int({"k": True}, "k") is None
        assert get_int({}, "k") is None


class TestErrorCode:
    def test_values_are_stable(self) -> None:
        assert [int(c) for c in ErrorCode] == [0, 1, 2, 3, 4, 5]
