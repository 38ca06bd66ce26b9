"""
Version -> content hash ledger.

Catches republishing different content under an already-used version.
The ledger is a safety net, not the source of truth: a missing or corrupt
file starts empty, and a failed save only warns. A conflict, however, is
a hard failure.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from .errors import VersionConflictError
from .manifest import PackageIdentity

logger = logging.getLogger(__name__)

LEDGER_FILE = ".crateship_version_cache.json"


@dataclass(frozen=True)
class LedgerResult:
    """Outcome of a successful validation."""

    version: str
    content_hash: str
    # Set when this version was already recorded with the same hash.
    already_recorded: bool = False
    # Other versions previously published with identical content.
    reused_by: tuple[str, ...] = ()


class VersionLedger:
    """
    Append-only mapping of version string to content hash.

    Stored as an indented JSON object in the working directory:

        {"1.2.0": "ab12...", "1.3.0": "cd34..."}
    """

    def __init__(self, cache_dir: Path):
        self.cache_dir = cache_dir
        self.path = cache_dir / LEDGER_FILE

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Failed to load version cache %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Version cache %s is not a JSON object; ignoring it", self.path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, entries: dict[str, str]) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            temp_path = self.path.with_suffix(".tmp")
            temp_path.write_text(json.dumps(entries, indent=2, sort_keys=True), encoding="utf-8")
            temp_path.replace(self.path)
        except OSError as e:
            logger.warning("Failed to save version cache %s: %s", self.path, e)

    def validate(self, identity: PackageIdentity, content_hash: str) -> LedgerResult:
        """
        Check `(version, hash)` against the ledger and record it.

        Raises:
            VersionConflictError: The version was recorded with another hash
        """
        version = identity.version
        entries = self._load()
        logger.debug("Validating version %s with hash %s", version, content_hash)

        stored = entries.get(version)
        if stored is not None:
            if stored != content_hash:
                logger.error(
                    "Version %s was previously built with different content (previous %s, current %s)",
                    version,
                    stored,
                    content_hash,
                )
                raise VersionConflictError(version, stored, content_hash)
            logger.debug("Version %s matches stored hash", version)
            return LedgerResult(version, content_hash, already_recorded=True)

        reused_by = tuple(v for v, h in entries.items() if h == content_hash)
        if reused_by:
            logger.warning(
                "Crate content (hash %s) was previously published as version %s, "
                "now publishing as %s. This may be an accidental version change or rollback.",
                content_hash,
                ", ".join(reused_by),
                version,
            )

        entries[version] = content_hash
        self._save(entries)
        logger.debug("Recorded %s -> %s", version, content_hash)
        return LedgerResult(version, content_hash, reused_by=reused_by)

    def entries(self) -> dict[str, str]:
        """All known version -> hash pairs."""
        return self._load()

    def clear(self) -> bool:
        """Delete the ledger file. Returns True if something was removed."""
        if not self.path.exists():
            return False
        self.path.unlink()
        logger.info("Cleared version cache %s", self.path)
        return True
