"""
Package identity loaded from Cargo.toml.

The identity (name + version) is read once and never changes for the
lifetime of a run. Everything downstream keys off it: the release tag,
the cache slot, the ledger entry.
"""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass
from pathlib import Path

from .errors import ManifestError

MANIFEST_FILE = "Cargo.toml"

_SEMVER_PATTERN = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


def parse_version(version: str) -> tuple[int, int, int, tuple[tuple[int, int | str], ...]]:
    """
    Parse a semantic version into a sortable key.

    Pre-release versions sort before the release they precede; build
    metadata is ignored for ordering.

    Raises:
        ValueError: If the string is not a semantic version
    """
    match = _SEMVER_PATTERN.match(version.strip())
    if match is None:
        raise ValueError(f"not a semantic version: {version!r}")

    pre = match.group("pre")
    if pre is None:
        # Release sorts after every pre-release of the same triple.
        pre_key: tuple[tuple[int, int | str], ...] = ((2, 0),)
    else:
        parts: list[tuple[int, int | str]] = []
        for ident in pre.split("."):
            parts.append((0, int(ident)) if ident.isdigit() else (1, ident))
        pre_key = tuple(parts)

    return (
        int(match.group("major")),
        int(match.group("minor")),
        int(match.group("patch")),
        pre_key,
    )


@dataclass(frozen=True)
class PackageIdentity:
    """Name and version of the crate being distributed."""

    name: str
    version: str

    @property
    def tag(self) -> str:
        """Release tag for this version."""
        return f"v{self.version}"

    @property
    def library_name(self) -> str:
        """Library file stem produced by cargo (dashes become underscores)."""
        return self.name.replace("-", "_")

    @classmethod
    def parse(cls, manifest: str, *, file_name: str | None = None) -> PackageIdentity:
        try:
            data = tomllib.loads(manifest)
        except tomllib.TOMLDecodeError as e:
            raise ManifestError(f"invalid TOML: {e}", file_name=file_name) from e

        package = data.get("package")
        if not isinstance(package, dict):
            raise ManifestError("Missing package section", file_name=file_name)

        name = package.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ManifestError("Missing package name", file_name=file_name)

        version = package.get("version")
        if not isinstance(version, str) or not version.strip():
            raise ManifestError("Missing package version", file_name=file_name)

        try:
            parse_version(version)
        except ValueError as e:
            raise ManifestError(str(e), file_name=file_name) from e

        return cls(name=name.strip(), version=version.strip())

    @classmethod
    def load(cls, manifest_dir: Path) -> PackageIdentity:
        manifest_path = manifest_dir / MANIFEST_FILE
        try:
            text = manifest_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ManifestError(f"cannot read manifest: {e}", file_name=str(manifest_path)) from e
        return cls.parse(text, file_name=str(manifest_path))
