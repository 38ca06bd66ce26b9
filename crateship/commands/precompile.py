"""Build, sign and publish precompiled binaries for a crate."""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

from rich.console import Console

from ..build.compiler import CargoCompiler, CompilerDriver
from ..errors import ConfigError, CrateshipError
from ..process import ProcessRunner, SubprocessRunner
from ..publish import Publisher, PublishMode, UploadTo, WriteTo
from ..signing import load_private_key
from ..store import GhCliReleaseStore, ReleaseStore
from ..targets import buildable_targets
from ._common import load_environment, parse_targets, report_error

logger = logging.getLogger(__name__)


def run_precompile_binaries(
    manifest_dir: Path,
    *,
    private_key_hex: str | None,
    repository: str | None = None,
    output: Path | None = None,
    target_triples: tuple[str, ...] = (),
    temp_dir: Path | None = None,
    android_sdk_location: Path | None = None,
    android_ndk_version: str | None = None,
    android_min_sdk_version: int | None = None,
    java_home: Path | None = None,
    glibc_version: str | None = None,
    compress: bool = False,
    runner: ProcessRunner | None = None,
    compiler: CompilerDriver | None = None,
    store: ReleaseStore | None = None,
) -> int:
    console = Console()
    runner = runner or SubprocessRunner()

    created_temp = temp_dir is None
    work_dir = Path(tempfile.mkdtemp(prefix="crateship_precompile_")) if temp_dir is None else temp_dir
    try:
        if (repository is None) == (output is None):
            raise ConfigError("Exactly one of --repository or --output must be given")
        if not private_key_hex:
            raise ConfigError("Missing (or empty) PRIVATE_KEY environment variable")
        private_key = load_private_key(private_key_hex)

        environment = load_environment(
            manifest_dir,
            work_dir,
            android_sdk_path=android_sdk_location,
            android_ndk_version=android_ndk_version,
            android_min_sdk_version=android_min_sdk_version,
            java_home=java_home,
            glibc_version=glibc_version,
        )

        if target_triples:
            targets = parse_targets(target_triples)
        else:
            targets = buildable_targets(include_android=android_sdk_location is not None)
        if not targets:
            raise ConfigError("No buildable targets for this host; pass --target explicitly")

        mode: PublishMode
        if output is not None:
            mode = WriteTo(output.resolve())
        else:
            mode = UploadTo(store or GhCliReleaseStore(repository, runner))

        publisher = Publisher(environment, private_key, compiler or CargoCompiler(runner), compress=compress)
        report = publisher.publish(targets, mode)
    except CrateshipError as e:
        return report_error(e)
    finally:
        if created_temp:
            logger.debug("Removing temporary directory %s", work_dir)
            shutil.rmtree(work_dir, ignore_errors=True)

    destination = repository if repository is not None else str(output)
    console.print(
        f"[green]Done[/green] {report.tag}: built {len(report.built)}, "
        f"skipped {len(report.skipped)}, published {len(report.published)} files to {destination}"
    )
    return 0
