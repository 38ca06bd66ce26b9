"""Audit a published release against the full target catalog."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..config import CrateOptions
from ..errors import ConfigError, CrateshipError
from ..manifest import PackageIdentity
from ..process import ProcessRunner, SubprocessRunner
from ..store import LocalDirectoryStore, ReleaseStore, store_for_config
from ..verify import Auditor, AuditReport, TargetStatus
from ._common import report_error

_STATUS_STYLE = {
    TargetStatus.OK: "green",
    TargetStatus.MISSING_BINARY: "yellow",
    TargetStatus.MISSING_SIGNATURE: "yellow",
    TargetStatus.INVALID_SIGNATURE: "bold red",
    TargetStatus.ERROR: "red",
}


def _print_report(report: AuditReport) -> None:
    console = Console()
    table = Table(title=f"Release {report.tag} ({report.store})")
    table.add_column("target", style="cyan", no_wrap=True)
    table.add_column("status")
    table.add_column("detail", style="dim")
    for r in report.results:
        style = _STATUS_STYLE[r.status]
        table.add_row(r.target.triple, f"[{style}]{r.status.value}[/{style}]", r.detail)
    console.print(table)

    counts = ", ".join(f"{k}: {v}" for k, v in sorted(report.counts().items()))
    if report.ok:
        console.print(f"All targets published and signed ({counts})", style="green")
    else:
        console.print(f"Release is incomplete ({counts})", style="bold red")


def run_verify_binaries(
    manifest_dir: Path,
    *,
    output_json: bool = False,
    verify_signatures: bool = False,
    local_dir: Path | None = None,
    runner: ProcessRunner | None = None,
    store: ReleaseStore | None = None,
) -> int:
    try:
        identity = PackageIdentity.load(manifest_dir)
        config = CrateOptions.load(manifest_dir).precompiled_binaries
        if config is None:
            raise ConfigError(f"No precompiled_binaries section in {manifest_dir / 'crateship.yaml'}")

        if store is None:
            if local_dir is not None:
                store = LocalDirectoryStore(local_dir)
            else:
                store = store_for_config(config, runner or SubprocessRunner())

        auditor = Auditor(store, config.public_key, identity.library_name, verify_signatures=verify_signatures)
        report = auditor.audit(identity.tag)
    except CrateshipError as e:
        if output_json:
            print(json.dumps({"ok": False, "error": str(e)}, indent=2))
            return 1
        return report_error(e)

    if output_json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        _print_report(report)
    return 0 if report.ok else 1
