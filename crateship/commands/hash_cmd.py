"""Print a crate's identity and content hash."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console

from .. import crate_hash
from ..errors import CrateshipError
from ..manifest import PackageIdentity
from ._common import report_error


def run_hash(manifest_dir: Path, *, output_json: bool = False) -> int:
    try:
        identity = PackageIdentity.load(manifest_dir)
        content_hash = crate_hash.compute(manifest_dir)
    except CrateshipError as e:
        return report_error(e)

    if output_json:
        print(
            json.dumps(
                {"name": identity.name, "version": identity.version, "tag": identity.tag, "hash": content_hash},
                indent=2,
            )
        )
        return 0

    console = Console()
    console.print(f"[bold]{identity.name}[/bold] {identity.version} (tag {identity.tag})")
    console.print(content_hash, style="cyan", highlight=False)
    return 0
