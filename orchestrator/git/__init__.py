"""Git operations."""

from .repository import GitError, RepoHandle, Repository, StatusEntry

__all__ = [
    "GitError",
    "RepoHandle",
    "Repository",
    "StatusEntry",
]
