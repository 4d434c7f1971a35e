"""Process exit codes.

Each release failure category maps to one stable exit code so wrapper
scripts can tell a typo in the version apart from a network outage.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success
    - 1: User error (bad version string, invalid arguments)
    - 2: Environment error (missing repo, dirty tree, detached HEAD, ...)
    - 3: Conflict (tag already exists or points elsewhere)
    - 4: Network error (fetch, GitHub API, auth, asset wait timeout)
    - 5: Release error (tag create/push failed mid-run)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    CONFLICT_ERROR = 3
    NETWORK_ERROR = 4
    RELEASE_ERROR = 5
