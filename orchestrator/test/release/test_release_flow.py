"""Tests for preflight, apply and the release-iso orchestration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

import pytest

from orchestrator.core.result import Err, Ok, Result
from orchestrator.git.repository import GitError, StatusEntry
from orchestrator.github.client import GitHubClient, HostingClient
from orchestrator.github.http import MockHttpClient
from orchestrator.output.reporter import RecordingReporter
from orchestrator.release import assets as assets_mod
from orchestrator.release.errors import (
    BranchDiverged,
    DetachedHead,
    DirtyWorktree,
    FetchFailed,
    InvalidVersion,
    MissingDirectory,
    MissingToken,
    OriginMismatch,
    ReposRootNotFound,
    TagAlreadyExists,
    TagAlreadyReleased,
    TagConflict,
    TagPushFailed,
)
from orchestrator.release.apply import narrate_dry_run
from orchestrator.release.model import (
    RELEASE_REPO_NAMES,
    PreflightSnapshot,
    ReleaseOptions,
    RepoPreflight,
    build_repo_descriptors,
    expected_assets,
)
from orchestrator.release.orchestrator import resolve_repos_root, run_release
from orchestrator.release.preflight import RepoTarget
from orchestrator.release.version import ReleaseVersion

MUTATIONS = frozenset({"create_annotated_tag", "push_tag"})
TOKEN_ENV = {"GITHUB_TOKEN": "tok"}


# =============================================================================
# Fakes
# =============================================================================


@dataclass
class FakeRepo:
    """In-memory stand-in for a git checkout and its origin."""

    path: Path
    log: list[tuple[str, str]]
    head: str = "c0ffee"
    branch: str | None = "main"
    remote_head: str | None = None
    dirty: tuple[StatusEntry, ...] = ()
    origin: str | None = None
    local_tag: str | None = None
    remote_tag: str | None = None
    remote_tag_listed: bool | None = None
    failures: dict[str, GitError] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.path.name

    def _call(self, method: str) -> GitError | None:
        self.log.append((self.name, method))
        return self.failures.get(method)

    def status_entries(self) -> Result[tuple[StatusEntry, ...], GitError]:
        if err := self._call("status_entries"):
            return Err(err)
        return Ok(self.dirty)

    def fetch_tags(self) -> Result[None, GitError]:
        if err := self._call("fetch_tags"):
            return Err(err)
        return Ok(None)

    def head_commit(self) -> Result[str, GitError]:
        if err := self._call("head_commit"):
            return Err(err)
        return Ok(self.head)

    def resolve_ref(self, ref: str) -> Result[str, GitError]:
        if err := self._call("resolve_ref"):
            return Err(err)
        return Ok(self.remote_head or self.head)

    def current_branch(self) -> Result[str | None, GitError]:
        if err := self._call("current_branch"):
            return Err(err)
        return Ok(self.branch)

    def divergence(self, left: str, right: str) -> Result[tuple[int, int], GitError]:
        if err := self._call("divergence"):
            return Err(err)
        return Ok((1, 2))

    def remote_url(self) -> Result[str, GitError]:
        if err := self._call("remote_url"):
            return Err(err)
        return Ok(self.origin or f"git@github.com:Truthdb/{self.name}.git")

    def local_tag_commit(self, tag: str) -> Result[str | None, GitError]:
        if err := self._call("local_tag_commit"):
            return Err(err)
        return Ok(self.local_tag)

    def remote_tag_commit(self, tag: str) -> Result[str | None, GitError]:
        if err := self._call("remote_tag_commit"):
            return Err(err)
        return Ok(self.remote_tag)

    def remote_tag_exists(self, tag: str) -> Result[bool, GitError]:
        if err := self._call("remote_tag_exists"):
            return Err(err)
        if self.remote_tag_listed is not None:
            return Ok(self.remote_tag_listed)
        return Ok(self.remote_tag is not None)

    def create_annotated_tag(self, tag: str) -> Result[None, GitError]:
        if err := self._call("create_annotated_tag"):
            return Err(err)
        self.local_tag = self.head
        return Ok(None)

    def push_tag(self, tag: str) -> Result[None, GitError]:
        if err := self._call("push_tag"):
            return Err(err)
        self.remote_tag = self.local_tag
        return Ok(None)


@dataclass
class Workspace:
    root: Path
    repos: dict[str, FakeRepo]
    log: list[tuple[str, str]]
    client_calls: list[tuple[str, str]] = field(default_factory=list)
    http: MockHttpClient = field(default_factory=MockHttpClient)

    def factory(self, path: Path) -> FakeRepo:
        return self.repos[path.name]

    def client_factory(self, owner: str, token: str) -> HostingClient:
        self.client_calls.append((owner, token))
        return GitHubClient(owner, token, http=self.http)

    def mutations(self) -> list[tuple[str, str]]:
        return [(repo, m) for repo, m in self.log if m in MUTATIONS]

    def publish_assets(self, version: str) -> None:
        for name in RELEASE_REPO_NAMES:
            url = f"https://api.github.com/repos/Truthdb/{name}/releases/tags/v{version}"
            assets = [{"name": a, "size": 1024} for a in expected_assets(name, version)]
            self.http.set_json(url, {"tag_name": f"v{version}", "assets": assets})

    def run(self, version: str = "2.0.0", **kwargs: object) -> tuple[Result[None, object], RecordingReporter]:
        env = kwargs.pop("env", TOKEN_ENV)
        reporter = RecordingReporter()
        options = ReleaseOptions(version=version, repos_root=self.root, **kwargs)  # type: ignore[arg-type]
        result = run_release(
            options,
            reporter=reporter,
            repo_factory=self.factory,
            client_factory=self.client_factory,
            env=env,  # type: ignore[arg-type]
        )
        return result, reporter


@pytest.fixture
def ws(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Workspace:
    monkeypatch.setattr(assets_mod, "sleep", lambda _s: None)
    log: list[tuple[str, str]] = []
    repos: dict[str, FakeRepo] = {}
    for name in RELEASE_REPO_NAMES:
        (tmp_path / name).mkdir()
        repos[name] = FakeRepo(path=tmp_path / name, log=log)
    return Workspace(root=tmp_path, repos=repos, log=log)


# =============================================================================
# Happy path
# =============================================================================


class TestRelease:
    def test_tags_and_pushes_every_repo_in_order(self, ws: Workspace) -> None:
        ws.publish_assets("2.0.0")

        result, reporter = ws.run()

        assert result == Ok(None)
        assert ws.mutations() == [
            (name, m) for name in RELEASE_REPO_NAMES for m in ("create_annotated_tag", "push_tag")
        ]
        assert ws.client_calls == [("Truthdb", "tok")]
        assert "All done. installer-iso release should now produce the ISO for v2.0.0." in reporter.of_kind("ok")

    def test_no_mutation_before_all_preflight(self, ws: Workspace) -> None:
        ws.publish_assets("2.0.0")

        ws.run()

        first_mutation = next(i for i, (_, m) in enumerate(ws.log) if m in MUTATIONS)
        checked = {repo for repo, m in ws.log[:first_mutation] if m == "remote_tag_exists"}
        assert checked == set(RELEASE_REPO_NAMES)

    def test_last_repo_failing_preflight_mutates_nothing(self, ws: Workspace) -> None:
        ws.repos["installer-iso"].dirty = (StatusEntry(" M", "build.sh"),)

        result, _ = ws.run()

        assert result == Err(DirtyWorktree(repo="installer-iso", paths=(".M build.sh",)))
        assert ws.mutations() == []
        assert ws.client_calls == []

    def test_waits_for_assets_of_each_repo(self, ws: Workspace) -> None:
        ws.publish_assets("2.0.0")

        ws.run()

        polled = {url.split("/")[5] for url in ws.http.urls}
        assert polled == set(RELEASE_REPO_NAMES)


class TestDryRun:
    def test_end_to_end(self, ws: Workspace) -> None:
        result, reporter = ws.run("2.0.0", dry_run=True, env={})

        assert result == Ok(None)
        assert ws.mutations() == []
        assert ws.client_calls == []
        assert ws.http.calls == []
        for name in RELEASE_REPO_NAMES:
            for asset in expected_assets(name, "2.0.0"):
                assert asset in reporter.text
        assert "would create annotated tag v2.0.0" in reporter.text
        assert "Dry run complete for v2.0.0; nothing was tagged or pushed." in reporter.of_kind("ok")

    def test_still_runs_preflight(self, ws: Workspace) -> None:
        ws.repos["truthdb"].branch = None

        result, _ = ws.run(dry_run=True)

        assert result == Err(DetachedHead(repo="truthdb"))

    def test_narration_touches_neither_git_nor_github(self, ws: Workspace) -> None:
        targets = tuple(
            RepoTarget(repo=r, git=ws.repos[r.name]) for r in build_repo_descriptors(ws.root, "Truthdb")
        )
        snapshot = PreflightSnapshot(
            tag="v2.0.0",
            repos=MappingProxyType({"installer-kernel": RepoPreflight(already_tagged_remotely=True)}),
        )
        reporter = RecordingReporter()

        narrate_dry_run(targets, ReleaseVersion(tag="v2.0.0", version="2.0.0"), snapshot, reporter=reporter)

        assert ws.log == []
        assert ws.http.calls == []
        updates = reporter.of_kind("update")
        assert updates[0] == "[installer-kernel] (dry-run) tag already on origin; would skip tagging"
        assert updates[1] == "[installer] (dry-run) would create annotated tag v2.0.0 and push"


class TestResume:
    def test_skips_repos_already_on_origin(self, ws: Workspace) -> None:
        ws.publish_assets("2.0.0")
        for name in ("installer-kernel", "installer"):
            ws.repos[name].remote_tag = "c0ffee"

        result, _ = ws.run(resume=True)

        assert result == Ok(None)
        assert ws.mutations() == [
            ("truthdb", "create_annotated_tag"),
            ("truthdb", "push_tag"),
            ("installer-iso", "create_annotated_tag"),
            ("installer-iso", "push_tag"),
        ]

    def test_second_resume_is_a_no_op(self, ws: Workspace) -> None:
        ws.publish_assets("2.0.0")
        first, _ = ws.run()
        assert first == Ok(None)
        ws.log.clear()

        second, _ = ws.run(resume=True)

        assert second == Ok(None)
        assert ws.mutations() == []

    def test_local_tag_on_head_is_pushed_not_recreated(self, ws: Workspace) -> None:
        ws.publish_assets("2.0.0")
        ws.repos["installer-kernel"].local_tag = "c0ffee"

        result, _ = ws.run(resume=True)

        assert result == Ok(None)
        assert ("installer-kernel", "create_annotated_tag") not in ws.mutations()
        assert ("installer-kernel", "push_tag") in ws.mutations()

    def test_local_tag_elsewhere_conflicts(self, ws: Workspace) -> None:
        ws.repos["installer"].local_tag = "deadbeef"

        result, _ = ws.run(resume=True)

        assert result == Err(
            TagConflict(repo="installer", tag="v2.0.0", existing_sha="deadbeef", head_sha="c0ffee")
        )
        assert ws.mutations() == []


# =============================================================================
# Preflight failures
# =============================================================================


class TestPreflightFailures:
    def test_already_released_without_resume(self, ws: Workspace) -> None:
        ws.repos["installer-kernel"].remote_tag = "c0ffee"

        result, _ = ws.run()

        assert result == Err(TagAlreadyReleased(repo="installer-kernel", tag="v2.0.0"))

    def test_local_tag_exists(self, ws: Workspace) -> None:
        ws.repos["truthdb"].local_tag = "c0ffee"

        result, _ = ws.run()

        assert result == Err(TagAlreadyExists(repo="truthdb", tag="v2.0.0", where="local"))

    def test_remote_tag_listed_late(self, ws: Workspace) -> None:
        ws.repos["truthdb"].remote_tag_listed = True

        result, _ = ws.run()

        assert result == Err(TagAlreadyExists(repo="truthdb", tag="v2.0.0", where="remote"))

    def test_missing_directory(self, ws: Workspace) -> None:
        (ws.root / "installer").rmdir()

        result, _ = ws.run()

        assert result == Err(MissingDirectory(repo="installer", path=ws.root / "installer"))

    def test_origin_mismatch(self, ws: Workspace) -> None:
        ws.repos["installer"].origin = "git@github.com:someone-else/installer.git"

        result, _ = ws.run()

        assert isinstance(result, Err)
        assert isinstance(result.error, OriginMismatch)
        assert result.error.expected == "Truthdb/installer"

    def test_origin_check_is_case_insensitive(self, ws: Workspace) -> None:
        ws.publish_assets("2.0.0")
        ws.repos["installer"].origin = "https://github.com/truthdb/Installer"

        result, _ = ws.run()

        assert result == Ok(None)

    def test_fetch_failure(self, ws: Workspace) -> None:
        ws.repos["truthdb"].failures["fetch_tags"] = GitError("fetch", "could not resolve host")

        result, _ = ws.run()

        assert result == Err(FetchFailed(repo="truthdb", detail="could not resolve host"))

    def test_branch_diverged(self, ws: Workspace) -> None:
        ws.repos["installer"].remote_head = "beef"

        result, _ = ws.run()

        assert result == Err(
            BranchDiverged(
                repo="installer",
                remote_ref="origin/main",
                local_sha="c0ffee",
                remote_sha="beef",
                ahead=1,
                behind=2,
            )
        )

    def test_divergence_lookup_failure_reports_zero_counts(self, ws: Workspace) -> None:
        repo = ws.repos["installer"]
        repo.remote_head = "beef"
        repo.failures["divergence"] = GitError("rev-list", "boom")

        result, _ = ws.run()

        assert isinstance(result, Err)
        assert isinstance(result.error, BranchDiverged)
        assert (result.error.ahead, result.error.behind) == (0, 0)

    def test_invalid_version(self, ws: Workspace) -> None:
        result, _ = ws.run("vv2.0.0")

        assert isinstance(result, Err)
        assert isinstance(result.error, InvalidVersion)
        assert ws.log == []


# =============================================================================
# Apply failures
# =============================================================================


class TestApplyFailures:
    def test_missing_token_after_preflight(self, ws: Workspace) -> None:
        result, reporter = ws.run(env={})

        assert result == Err(MissingToken())
        assert ws.mutations() == []
        assert any("preflight passed" in line for line in reporter.of_kind("ok"))

    def test_push_failure_stops_the_run(self, ws: Workspace) -> None:
        ws.publish_assets("2.0.0")
        ws.repos["installer"].failures["push_tag"] = GitError("push", "rejected")

        result, _ = ws.run()

        assert result == Err(TagPushFailed(repo="installer", tag="v2.0.0", detail="rejected"))
        mutated = {repo for repo, _ in ws.mutations()}
        assert mutated == {"installer-kernel", "installer"}


# =============================================================================
# Repos root resolution
# =============================================================================


class TestResolveReposRoot:
    def test_explicit(self, tmp_path: Path) -> None:
        assert resolve_repos_root(tmp_path / "x", tmp_path) == Ok(tmp_path / "x")

    def test_cwd_is_root(self, ws: Workspace) -> None:
        assert resolve_repos_root(None, ws.root) == Ok(ws.root.resolve())

    def test_inside_one_repo(self, ws: Workspace) -> None:
        assert resolve_repos_root(None, ws.root / "truthdb") == Ok(ws.root.resolve())

    def test_not_found(self, tmp_path: Path) -> None:
        result = resolve_repos_root(None, tmp_path)

        assert isinstance(result, Err)
        assert isinstance(result.error, ReposRootNotFound)
        assert result.error.expected == RELEASE_REPO_NAMES
