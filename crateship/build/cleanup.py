"""
Cargo target-directory pruning for CI cache reuse.

Keeps compiled dependencies (expensive, safe to reuse) and removes
everything that belongs to the crate being built, so an edit can never be
masked by a stale copy of its own artifacts. Layout handled:

    target/                     <- toolchain root (CACHEDIR.TAG)
      <triple>/                 <- nested toolchain root
        release/                <- profile directory
          deps/ build/ .fingerprint/   <- pruned selectively
          incremental/ examples/ ...   <- removed
          libfoo.so ...                <- removed
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

ROOT_MARKERS = ("CACHEDIR.TAG", ".rustc_info.json")
SELECTIVE_DIRS = frozenset({"build", ".fingerprint", "deps"})


def _is_toolchain_root(path: Path) -> bool:
    return any((path / marker).is_file() for marker in ROOT_MARKERS)


def _strip_suffix(name: str) -> str:
    # "mypkg-a1b2c3d4" -> "mypkg", "libmypkg-ff00.rlib" -> "libmypkg"
    idx = name.rfind("-")
    return name[:idx] if idx != -1 else name


def belongs_to_package(entry_name: str, package_name: str) -> bool:
    """
    Whether a cache entry was produced for `package_name` (or one of its
    own `<package>_*` sub-crates) rather than for a dependency.
    """
    normalized = package_name.replace("-", "_")
    base = _strip_suffix(entry_name).replace("-", "_")
    if base.startswith("lib"):
        candidates = (base, base[3:])
    else:
        candidates = (base,)
    return any(c == normalized or c.startswith(normalized + "_") for c in candidates)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _clean_selective_dir(path: Path, package_name: str) -> int:
    removed = 0
    for entry in sorted(path.iterdir()):
        if belongs_to_package(entry.name, package_name):
            logger.debug("Deleting package artifact: %s", entry)
            _remove(entry)
            removed += 1
    return removed


def _clean_profile_dir(path: Path, package_name: str) -> int:
    logger.debug("Cleaning profile directory: %s", path)
    removed = 0
    for entry in sorted(path.iterdir()):
        if entry.is_dir() and not entry.is_symlink():
            if entry.name in SELECTIVE_DIRS:
                removed += _clean_selective_dir(entry, package_name)
            else:
                logger.debug("Deleting directory: %s", entry)
                shutil.rmtree(entry)
                removed += 1
        else:
            logger.debug("Deleting file: %s", entry)
            entry.unlink()
            removed += 1
    return removed


def prune(target_dir: Path, package_name: str) -> int:
    """
    Prune a cargo target directory in place.

    Args:
        target_dir: Toolchain output root (e.g. `target/`)
        package_name: Crate whose own artifacts must be forced to rebuild

    Returns:
        Number of entries removed
    """
    if not target_dir.is_dir():
        logger.debug("Target directory %s does not exist, nothing to clean", target_dir)
        return 0

    logger.info("Cleaning up target directory: %s", target_dir)
    removed = 0
    for entry in sorted(target_dir.iterdir()):
        if not entry.is_dir() or entry.is_symlink():
            continue
        if _is_toolchain_root(entry):
            removed += prune(entry, package_name)
        else:
            removed += _clean_profile_dir(entry, package_name)
    return removed
