from __future__ import annotations

import re
from dataclasses import dataclass

from orchestrator.core.result import Err, Ok, Result
from orchestrator.release.errors import ACCEPTED_VERSION_FORMATS, InvalidVersion

# SemVer 2.0.0 grammar (semver.org), ASCII digits only, no leading zeros.
_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$",
    re.ASCII,
)


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text


@dataclass(frozen=True, slots=True)
class ReleaseVersion:
    """A validated release version; ``tag`` is always ``"v" + version``."""

    tag: str
    version: str

    @classmethod
    def from_semver(cls, semver: SemVer) -> ReleaseVersion:
        version = str(semver)
        return cls(tag=f"v{version}", version=version)


def parse_semver(text: str) -> SemVer | None:
    m = _SEMVER_RE.match(text)
    if m is None:
        return None
    return SemVer(
        major=int(m.group(1)),
        minor=int(m.group(2)),
        patch=int(m.group(3)),
        prerelease=m.group(4),
        build=m.group(5),
    )


def normalize_version(raw: str) -> Result[ReleaseVersion, InvalidVersion]:
    """Parse operator input such as ``v1.2.3`` or ``1.2.3-rc.1+build.5``."""
    text = raw.strip()
    without_v = text[1:] if text.startswith("v") else text

    # "vv1.2.3" is almost always a typo.
    if text.startswith("v") and without_v.startswith("v"):
        return Err(
            InvalidVersion(input=raw, reason="remove extra leading 'v'. Example: v1.2.3")
        )

    semver = parse_semver(without_v)
    if semver is None:
        formats = ", ".join(f"'{f}'" for f in ACCEPTED_VERSION_FORMATS)
        return Err(InvalidVersion(input=raw, reason=f"expected SemVer like {formats}"))

    return Ok(ReleaseVersion.from_semver(semver))
