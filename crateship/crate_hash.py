"""
Deterministic content hash over a crate's source tree.

The hash identifies crate content independently of the version string.
It covers the manifest files (so metadata-only edits change it) and every
file under src/, and skips build output. Paths are hashed in POSIX form
and text files have CRLF normalised so the same checkout hashes the same
on every OS.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from .errors import ManifestError
from .manifest import MANIFEST_FILE

logger = logging.getLogger(__name__)

# Files at the crate root that participate in the hash.
ROOT_FILES = (MANIFEST_FILE, "Cargo.lock", "build.rs", "crateship.yaml")
SOURCE_DIRS = ("src",)
IGNORED_DIRS = frozenset({"target", ".git", ".dart_tool", "node_modules"})


def _normalize(content: bytes) -> bytes:
    # Binary files (anything containing NUL) are hashed verbatim.
    if b"\0" in content:
        return content
    return content.replace(b"\r\n", b"\n")


def collect_files(crate_dir: Path) -> list[Path]:
    """
    List the files that make up a crate's identity, sorted by relative path.

    Raises:
        ManifestError: If the crate directory or its manifest is missing
    """
    if not crate_dir.is_dir():
        raise ManifestError(f"crate directory does not exist: {crate_dir}")
    if not (crate_dir / MANIFEST_FILE).is_file():
        raise ManifestError("Missing manifest", file_name=str(crate_dir / MANIFEST_FILE))

    files = [crate_dir / name for name in ROOT_FILES if (crate_dir / name).is_file()]

    for dir_name in SOURCE_DIRS:
        root = crate_dir / dir_name
        if not root.is_dir():
            continue
        for path in root.rglob("*"):
            rel_parts = path.relative_to(crate_dir).parts
            if any(part in IGNORED_DIRS or part.startswith(".") for part in rel_parts):
                continue
            if path.is_file():
                files.append(path)

    return sorted(files, key=lambda p: p.relative_to(crate_dir).as_posix())


def compute(crate_dir: Path) -> str:
    """
    Compute the content hash of a crate.

    Each file contributes its relative POSIX path, a separator, its
    (normalised) length and its bytes, so renames and content edits are
    both visible.

    Returns:
        Hex-encoded sha256 digest

    Raises:
        ManifestError: If the tree cannot be read (identity cannot be established)
    """
    hasher = hashlib.sha256()
    files = collect_files(crate_dir)

    for path in files:
        rel = path.relative_to(crate_dir).as_posix()
        try:
            content = _normalize(path.read_bytes())
        except OSError as e:
            raise ManifestError(f"cannot read {rel}: {e}", file_name=str(path)) from e
        hasher.update(rel.encode("utf-8"))
        hasher.update(b"\0")
        hasher.update(str(len(content)).encode("ascii"))
        hasher.update(b"\0")
        hasher.update(content)

    digest = hasher.hexdigest()
    logger.debug("Hashed %d files in %s -> %s", len(files), crate_dir, digest)
    return digest
