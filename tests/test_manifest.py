"""Tests for package identity loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from crateship.errors import ManifestError
from crateship.manifest import PackageIdentity, parse_version


def test_load_reads_name_and_version(crate_dir: Path) -> None:
    identity = PackageIdentity.load(crate_dir)
    assert identity == PackageIdentity(name="foo", version="1.2.0")
    assert identity.tag == "v1.2.0"


def test_library_name_replaces_dashes() -> None:
    identity = PackageIdentity.parse('[package]\nname = "my-crate"\nversion = "0.1.0"\n')
    assert identity.library_name == "my_crate"


@pytest.mark.parametrize(
    "manifest, message",
    [
        ('[dependencies]\nserde = "1"\n', "Missing package section"),
        ('[package]\nversion = "1.0.0"\n', "Missing package name"),
        ('[package]\nname = "foo"\n', "Missing package version"),
        ('[package]\nname = "foo"\nversion = "latest"\n', "not a semantic version"),
        ("[package\nname=", "invalid TOML"),
    ],
)
def test_parse_failures_name_the_file(manifest: str, message: str) -> None:
    with pytest.raises(ManifestError) as exc:
        PackageIdentity.parse(manifest, file_name="rust/Cargo.toml")
    assert message in str(exc.value)
    assert str(exc.value).startswith("Failed to parse package manifest at rust/Cargo.toml")


def test_load_missing_manifest(tmp_path: Path) -> None:
    with pytest.raises(ManifestError):
        PackageIdentity.load(tmp_path)


def test_parse_version_orders_prereleases_first() -> None:
    versions = ["1.0.0", "1.0.0-alpha", "1.0.0-alpha.1", "0.9.12", "1.0.0-beta", "1.0.0+build.5"]
    ordered = sorted(versions, key=parse_version)
    assert ordered[0] == "0.9.12"
    assert ordered.index("1.0.0-alpha") < ordered.index("1.0.0-alpha.1") < ordered.index("1.0.0-beta")
    assert ordered.index("1.0.0-beta") < ordered.index("1.0.0")
    assert parse_version("1.0.0") == parse_version("1.0.0+build.5")
