"""Error presentation utilities.

Centralized release error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from orchestrator.core.errors import ErrorCode
from orchestrator.output.console import Style
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
    release_error_hint,
)

if TYPE_CHECKING:
    from orchestrator.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    """Print release error to console with its hint, if any."""
    console.error(describe_release_error(error))
    hint = release_error_hint(error)
    if hint:
        console.print(f"hint: {hint}", Style.DIM)


def release_error_exit_code(error: ReleaseError) -> int:
    """Get exit code for a release error."""
    match error:
        case InvalidVersion() | ReposRootNotFound():
            return int(ErrorCode.USER_ERROR)
        case MissingDirectory() | OriginMismatch() | DirtyWorktree() | DetachedHead():
            return int(ErrorCode.ENV_ERROR)
        case BranchDiverged() | MissingToken() | GitQueryFailed():
            return int(ErrorCode.ENV_ERROR)
        case TagAlreadyReleased() | TagAlreadyExists() | TagConflict():
            return int(ErrorCode.CONFLICT_ERROR)
        case FetchFailed() | RemoteQueryFailed() | HostingFailed() | AssetWaitTimeout():
            return int(ErrorCode.NETWORK_ERROR)
        case TagCreateFailed() | TagPushFailed():
            return int(ErrorCode.RELEASE_ERROR)
    # Fallback for exhaustiveness
    return int(ErrorCode.RELEASE_ERROR)
