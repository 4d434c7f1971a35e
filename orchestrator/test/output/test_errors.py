"""Tests for release error presentation and exit codes."""

from __future__ import annotations

from pathlib import Path

import pytest

from orchestrator.core.errors import ErrorCode
from orchestrator.github.client import HostingError
from orchestrator.output.console import MockConsole, Style
from orchestrator.output.errors import print_release_error, release_error_exit_code
from orchestrator.release.errors import (
    AssetWaitTimeout,
    BranchDiverged,
    DetachedHead,
    DirtyWorktree,
    FetchFailed,
    GitQueryFailed,
    HostingFailed,
    InvalidVersion,
    MissingDirectory,
    MissingToken,
    OriginMismatch,
    ReleaseError,
    RemoteQueryFailed,
    ReposRootNotFound,
    TagAlreadyExists,
    TagAlreadyReleased,
    TagConflict,
    TagCreateFailed,
    TagPushFailed,
    describe_release_error,
)

_AUTH = HostingError(kind="auth_failed", message="GitHub API auth failed (status 401)", status=401, body="Bad credentials", hint="Set GITHUB_TOKEN/GH_TOKEN.")


@pytest.mark.parametrize(
    ("error", "code"),
    [
        (InvalidVersion("x", "bad"), ErrorCode.USER_ERROR),
        (ReposRootNotFound(Path("/tmp"), ("a",)), ErrorCode.USER_ERROR),
        (MissingDirectory("a", Path("/a")), ErrorCode.ENV_ERROR),
        (OriginMismatch("a", "Truthdb/a", "x"), ErrorCode.ENV_ERROR),
        (DirtyWorktree("a", (".M f",)), ErrorCode.ENV_ERROR),
        (DetachedHead("a"), ErrorCode.ENV_ERROR),
        (BranchDiverged("a", "origin/main", "1", "2", 0, 1), ErrorCode.ENV_ERROR),
        (MissingToken(), ErrorCode.ENV_ERROR),
        (GitQueryFailed("a", "x"), ErrorCode.ENV_ERROR),
        (TagAlreadyReleased("a", "v1"), ErrorCode.CONFLICT_ERROR),
        (TagAlreadyExists("a", "v1", "local"), ErrorCode.CONFLICT_ERROR),
        (TagConflict("a", "v1", "1", "2"), ErrorCode.CONFLICT_ERROR),
        (FetchFailed("a", "x"), ErrorCode.NETWORK_ERROR),
        (RemoteQueryFailed("a", "x"), ErrorCode.NETWORK_ERROR),
        (HostingFailed("a", _AUTH), ErrorCode.NETWORK_ERROR),
        (AssetWaitTimeout("a", "v1", ("f",), 10.0, 5.0), ErrorCode.NETWORK_ERROR),
        (TagCreateFailed("a", "v1", "x"), ErrorCode.RELEASE_ERROR),
        (TagPushFailed("a", "v1", "x"), ErrorCode.RELEASE_ERROR),
    ],
)
def test_exit_codes(error: ReleaseError, code: ErrorCode) -> None:
    assert release_error_exit_code(error) == int(code)


class TestDescribe:
    def test_missing_token(self) -> None:
        assert describe_release_error(MissingToken()) == (
            "missing GITHUB_TOKEN (or GH_TOKEN). This is required to poll release assets after tagging."
        )

    def test_timeout_lists_assets(self) -> None:
        text = describe_release_error(
            AssetWaitTimeout("installer-iso", "v2.0.0", ("a.iso", "a.iso.sha256"), 2701.2, 2700)
        )
        assert "a.iso, a.iso.sha256" in text
        assert "after 2701s" in text
        assert "timeout 2700s" in text

    def test_hosting_includes_body(self) -> None:
        text = describe_release_error(HostingFailed("truthdb", _AUTH))
        assert text == "[truthdb] GitHub API auth failed (status 401): Bad credentials"

    def test_diverged_shows_shas(self) -> None:
        text = describe_release_error(BranchDiverged("a", "origin/main", "abc", "def", 2, 3))
        assert "local HEAD:  abc" in text
        assert "remote HEAD: def" in text
        assert "(ahead 2, behind 3)" in text


class TestPrintReleaseError:
    def test_error_and_hint(self) -> None:
        console = MockConsole()

        print_release_error(TagAlreadyReleased("installer", "v1.0.0"), console)

        assert console.messages == [
            "ERROR: [installer] already has remote tag v1.0.0 on origin.",
            "hint: Re-run with --resume to continue.",
        ]
        assert console.outputs[1].style == Style.DIM

    def test_hosting_hint_comes_from_client(self) -> None:
        console = MockConsole()
        print_release_error(HostingFailed("truthdb", _AUTH), console)
        assert console.messages[-1] == "hint: Set GITHUB_TOKEN/GH_TOKEN."

    def test_no_hint(self) -> None:
        console = MockConsole()
        print_release_error(DetachedHead("truthdb"), console)
        assert len(console.messages) == 1
