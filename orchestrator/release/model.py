from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from orchestrator.core.timeouts import DEFAULT_ASSET_TIMEOUT_SECONDS, DEFAULT_POLL_INTERVAL_SECONDS


# Build dependency order: each repo's CI consumes the previous repo's release.
RELEASE_REPO_NAMES: tuple[str, ...] = (
    "installer-kernel",
    "installer",
    "truthdb",
    "installer-iso",
)

# Release assets each repo's CI uploads for a tag; {version} has no leading "v".
ASSET_TEMPLATES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "installer-kernel": ("BOOTX64.EFI",),
        "installer": (
            "truthdb-installer-v{version}-x86_64-linux-musl.tar.gz",
            "truthdb-installer-v{version}-x86_64-linux-musl.sha256",
        ),
        "truthdb": (
            "truthdb-v{version}-x86_64-linux-gnu.tar.gz",
            "truthdb-v{version}-x86_64-linux-gnu.sha256",
        ),
        "installer-iso": (
            "truthdb-installer-v{version}.iso",
            "truthdb-installer-v{version}.iso.sha256",
        ),
    }
)


@dataclass(frozen=True, slots=True)
class RepoDescriptor:
    """A repo taking part in the release, at its fixed position."""

    name: str
    local_path: Path
    owner: str
    order_index: int

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True, slots=True)
class ReleaseOptions:
    version: str
    repos_root: Path | None = None
    owner: str = "Truthdb"
    dry_run: bool = False
    resume: bool = False
    poll_interval_secs: float = DEFAULT_POLL_INTERVAL_SECONDS
    timeout_secs: float = DEFAULT_ASSET_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class RepoPreflight:
    already_tagged_remotely: bool


@dataclass(frozen=True, slots=True)
class PreflightSnapshot:
    """What preflight learned, handed unchanged to the apply phase.

    Apply never re-queries the remote: a tag pushed by someone else between
    the two phases is not detected here.
    """

    tag: str
    repos: Mapping[str, RepoPreflight] = field(default_factory=lambda: MappingProxyType({}))

    def already_tagged_remotely(self, repo: str) -> bool:
        entry = self.repos.get(repo)
        return entry.already_tagged_remotely if entry is not None else False


def build_repo_descriptors(repos_root: Path, owner: str) -> tuple[RepoDescriptor, ...]:
    return tuple(
        RepoDescriptor(name=name, local_path=repos_root / name, owner=owner, order_index=i)
        for i, name in enumerate(RELEASE_REPO_NAMES)
    )


def expected_assets(repo: str, version: str) -> tuple[str, ...]:
    """Asset filenames ``repo`` publishes for ``version`` (empty if none)."""
    return tuple(t.format(version=version) for t in ASSET_TEMPLATES.get(repo, ()))


def looks_like_repos_root(path: Path) -> bool:
    return all((path / name).is_dir() for name in RELEASE_REPO_NAMES)
