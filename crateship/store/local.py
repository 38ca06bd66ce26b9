"""
Directory-backed release store.

Used for local-output publishing: assets land flat in one directory, with
no tag subdirectories, so the directory can be uploaded by other tooling
as-is. The tag argument is accepted for interface compatibility only.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def write_atomic(path: Path, data: bytes) -> None:
    """Write `data` to `path` via a temp file in the same directory and a rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise


class LocalDirectoryStore:
    writable = True

    def __init__(self, root: Path) -> None:
        self.root = root

    def describe(self) -> str:
        return str(self.root)

    def exists(self, tag: str) -> bool:
        return self.root.is_dir()

    def list_assets(self, tag: str) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.name for p in self.root.iterdir() if p.is_file() and not p.name.startswith("."))

    def get_asset(self, tag: str, name: str) -> bytes | None:
        path = self.root / name
        if not path.is_file():
            return None
        return path.read_bytes()

    def upload_asset(self, tag: str, name: str, data: bytes) -> None:
        write_atomic(self.root / name, data)
