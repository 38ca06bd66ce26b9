"""Resolve artifacts for a host build: precompiled where possible, else cargo."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from rich.console import Console

from ..artifacts import ArtifactProvider, install_artifacts
from ..build.cleanup import prune
from ..build.compiler import CargoCompiler, CompilerDriver
from ..config import BuildConfiguration, UserOptions
from ..errors import ConfigError, CrateshipError
from ..process import ProcessRunner, SubprocessRunner
from ..store import ReleaseStore
from ..targets import Target, buildable_targets, for_android_abi, select_darwin_targets
from ._common import load_environment, parse_targets, report_error


def _select_targets(
    target_triples: tuple[str, ...],
    darwin_platform: str | None,
    darwin_archs: tuple[str, ...],
    android_abis: tuple[str, ...],
    configuration: BuildConfiguration,
) -> list[Target]:
    if target_triples:
        return parse_targets(target_triples)
    if darwin_platform:
        if not darwin_archs:
            raise ConfigError("--darwin-platform requires at least one --darwin-arch")
        return select_darwin_targets(darwin_platform, list(darwin_archs), configuration.value)
    if android_abis:
        targets: list[Target] = []
        for abi in android_abis:
            target = for_android_abi(abi)
            if target is None:
                raise ConfigError(f"Unknown Android ABI: {abi}")
            if target not in targets:
                targets.append(target)
        return targets
    return buildable_targets()


def run_build(
    manifest_dir: Path,
    output_dir: Path,
    temp_dir: Path,
    *,
    configuration: str = "release",
    target_triples: tuple[str, ...] = (),
    darwin_platform: str | None = None,
    darwin_archs: tuple[str, ...] = (),
    android_abis: tuple[str, ...] = (),
    android_sdk_location: Path | None = None,
    android_ndk_version: str | None = None,
    android_min_sdk_version: int | None = None,
    java_home: Path | None = None,
    glibc_version: str | None = None,
    macos_deployment_target: str | None = None,
    ios_deployment_target: str | None = None,
    root_project_dir: Path | None = None,
    prune_after: bool = False,
    env: Mapping[str, str] | None = None,
    runner: ProcessRunner | None = None,
    compiler: CompilerDriver | None = None,
    store: ReleaseStore | None = None,
) -> int:
    console = Console()
    runner = runner or SubprocessRunner()
    try:
        build_configuration = BuildConfiguration.parse(configuration)
        user_options = UserOptions.load(root_project_dir, os.environ if env is None else env)
        if user_options.verbose_logging:
            logging.getLogger("crateship").setLevel(logging.DEBUG)
        environment = load_environment(
            manifest_dir,
            temp_dir,
            configuration=build_configuration,
            android_sdk_path=android_sdk_location,
            android_ndk_version=android_ndk_version,
            android_min_sdk_version=android_min_sdk_version,
            java_home=java_home,
            glibc_version=glibc_version,
            macos_deployment_target=macos_deployment_target,
            ios_deployment_target=ios_deployment_target,
        )

        targets = _select_targets(target_triples, darwin_platform, darwin_archs, android_abis, build_configuration)
        if not targets:
            raise ConfigError("No targets selected for this host; pass --target explicitly")

        provider = ArtifactProvider(
            environment,
            user_options,
            compiler or CargoCompiler(runner),
            runner,
            store=store,
        )
        artifacts = provider.get_artifacts(targets)
        written = install_artifacts(artifacts, output_dir)
    except CrateshipError as e:
        return report_error(e)

    for path in written:
        console.print(f"  {path}", style="dim", highlight=False)
    console.print(f"[green]Installed[/green] {len(written)} artifacts for {len(artifacts)} targets into {output_dir}")

    if prune_after:
        removed = prune(environment.cargo_target_dir, environment.crate_info.name)
        console.print(f"Pruned {removed} entries from {environment.cargo_target_dir}", style="dim")
    return 0
