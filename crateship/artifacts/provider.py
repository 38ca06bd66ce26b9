"""
Resolve artifacts for a set of targets: precompiled where possible,
built from source where not.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from ..build.compiler import CompilerDriver
from ..config import BuildEnvironment, UserOptions
from ..errors import CompilerError
from ..process import ProcessRunner
from ..store import ReleaseStore, store_for_config
from ..targets import ArtifactKind, Target, artifact_names
from .acquirer import ArtifactAcquirer
from .models import Artifact

logger = logging.getLogger(__name__)


def collect_local_artifacts(target: Target, library_name: str, output_dir: Path) -> list[Artifact]:
    """
    Artifacts a local build left in `output_dir`.

    Local builds accept both static and dynamic libraries (plus debug
    files); only names that exist on disk are returned.
    """
    names: list[str] = []
    for kind in (ArtifactKind.DYNAMIC_LIBRARY, ArtifactKind.STATIC_LIBRARY):
        for name in artifact_names(target, library_name, remote=False, kind=kind):
            if name not in names:
                names.append(name)
    return [
        Artifact(path=output_dir / name, final_file_name=name)
        for name in names
        if (output_dir / name).is_file()
    ]


class ArtifactProvider:
    def __init__(
        self,
        environment: BuildEnvironment,
        user_options: UserOptions,
        compiler: CompilerDriver,
        runner: ProcessRunner,
        *,
        store: ReleaseStore | None = None,
    ) -> None:
        self.environment = environment
        self.user_options = user_options
        self.compiler = compiler
        self.runner = runner
        self.store = store

    def _acquirer(self) -> ArtifactAcquirer | None:
        if not self.user_options.use_precompiled_binaries:
            logger.info("Precompiled binaries are disabled")
            return None
        config = self.environment.crate_options.precompiled_binaries
        if config is None:
            logger.debug("Precompiled binaries not enabled for this crate")
            return None
        store = self.store or store_for_config(config, self.runner)
        return ArtifactAcquirer(self.environment, store, config.public_key)

    def get_artifacts(self, targets: list[Target]) -> dict[Target, list[Artifact]]:
        result: dict[Target, list[Artifact]] = {}

        acquirer = self._acquirer()
        if acquirer is not None:
            for target, acquired in acquirer.acquire(targets).items():
                if acquired.satisfied:
                    result[target] = list(acquired.artifacts)

        pending = [t for t in targets if t not in result]
        library_name = self.environment.crate_info.library_name
        for target in pending:
            self.compiler.prepare(target, self.environment)
            output_dir = self.compiler.build(target, self.environment)
            artifacts = collect_local_artifacts(target, library_name, output_dir)
            if not artifacts:
                raise CompilerError(f"Build for {target} produced no artifacts in {output_dir}")
            result[target] = artifacts

        return result


def install_artifacts(artifacts: dict[Target, list[Artifact]], output_dir: Path) -> list[Path]:
    """
    Copy resolved artifacts to `output_dir/<triple>/<final name>`.

    Returns:
        Paths written
    """
    written: list[Path] = []
    for target, items in artifacts.items():
        dest_dir = output_dir / target.triple
        dest_dir.mkdir(parents=True, exist_ok=True)
        for artifact in items:
            dest = dest_dir / artifact.final_file_name
            shutil.copyfile(artifact.path, dest)
            written.append(dest)
    return written
