from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class CiState(Enum):
    SUCCESS = auto()
    FAILURE = auto()
    RUNNING = auto()
    UNKNOWN = auto()

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class RepoStatusRow:
    """One line of the fleet table."""

    name: str
    ci_state: CiState = CiState.UNKNOWN
    latest_release_tag: str | None = None
    ahead_by: int | None = None
    loading: bool = True


# Every repo in the org, shown in this order.
MONITORED_REPOS: tuple[str, ...] = (
    ".github",
    "docs",
    "installer",
    "installer-iso",
    "installer-kernel",
    "installer-kernel-builder-image",
    "orchestrator",
    "truthdb",
    "truthdb-cli",
    "truthdb-net",
    "truthdb-proto",
    "website",
)

DEFAULT_BRANCH_FALLBACK = "main"
