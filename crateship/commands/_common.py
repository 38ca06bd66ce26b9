"""Helpers shared by the command modules."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..config import BuildConfiguration, BuildEnvironment, CrateOptions
from ..errors import ConfigError, CrateshipError
from ..manifest import PackageIdentity
from ..targets import Target, for_triple


def report_error(error: CrateshipError) -> int:
    Console(stderr=True).print(str(error), style="bold red", markup=False, highlight=False)
    return 1


def parse_targets(triples: tuple[str, ...] | list[str]) -> list[Target]:
    targets: list[Target] = []
    for triple in triples:
        target = for_triple(triple)
        if target is None:
            raise ConfigError(f"Unknown target: {triple}")
        if target not in targets:
            targets.append(target)
    return targets


def load_environment(
    manifest_dir: Path,
    temp_dir: Path,
    *,
    configuration: BuildConfiguration = BuildConfiguration.RELEASE,
    android_sdk_path: Path | None = None,
    android_ndk_version: str | None = None,
    android_min_sdk_version: int | None = None,
    java_home: Path | None = None,
    glibc_version: str | None = None,
    macos_deployment_target: str | None = None,
    ios_deployment_target: str | None = None,
) -> BuildEnvironment:
    """Read identity and crate options once and freeze them with the build hints."""
    manifest_dir = manifest_dir.resolve()
    return BuildEnvironment(
        configuration=configuration,
        manifest_dir=manifest_dir,
        target_temp_dir=temp_dir.resolve(),
        crate_info=PackageIdentity.load(manifest_dir),
        crate_options=CrateOptions.load(manifest_dir),
        android_sdk_path=android_sdk_path,
        android_ndk_version=android_ndk_version,
        android_min_sdk_version=android_min_sdk_version,
        java_home=java_home,
        glibc_version=glibc_version,
        macos_deployment_target=macos_deployment_target,
        ios_deployment_target=ios_deployment_target,
    )
