"""Version ledger diagnostics and maintenance."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..manifest import parse_version
from ..version_ledger import VersionLedger


def _version_key(version: str) -> tuple:
    try:
        return (0, parse_version(version))
    except ValueError:
        return (1, version)


def run_ledger_show(temp_dir: Path, *, output_json: bool = False) -> int:
    ledger = VersionLedger(temp_dir)
    entries = ledger.entries()

    if output_json:
        print(json.dumps(entries, indent=2, sort_keys=True))
        return 0

    console = Console()
    if not entries:
        console.print(f"No versions recorded in {ledger.path}", style="dim")
        return 0

    table = Table(title=f"Version ledger ({ledger.path})")
    table.add_column("version", style="cyan", no_wrap=True)
    table.add_column("content hash", style="dim")
    for version in sorted(entries, key=_version_key):
        table.add_row(version, entries[version])
    console.print(table)
    return 0


def run_ledger_clear(temp_dir: Path) -> int:
    console = Console()
    ledger = VersionLedger(temp_dir)
    if ledger.clear():
        console.print(f"Removed {ledger.path}", style="green")
    else:
        console.print(f"No version ledger at {ledger.path}", style="dim")
    return 0
