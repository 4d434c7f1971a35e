"""Multi-repo release: version parsing, preflight, tagging, asset polling."""

from .errors import ReleaseError, describe_release_error, release_error_hint
from .model import ReleaseOptions
from .orchestrator import run_release
from .version import ReleaseVersion, normalize_version

__all__ = [
    "ReleaseError",
    "ReleaseOptions",
    "ReleaseVersion",
    "describe_release_error",
    "normalize_version",
    "release_error_hint",
    "run_release",
]
