"""Prune a cargo target directory for cache reuse."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..build.cleanup import prune
from ..errors import CrateshipError
from ..manifest import PackageIdentity
from ._common import report_error


def run_prune(target_dir: Path, manifest_dir: Path) -> int:
    try:
        identity = PackageIdentity.load(manifest_dir)
    except CrateshipError as e:
        return report_error(e)

    removed = prune(target_dir, identity.name)
    Console().print(f"Pruned {removed} entries for {identity.name} from {target_dir}")
    return 0
