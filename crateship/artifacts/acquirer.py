"""
Obtain verified precompiled artifacts for the crate's current version.

For each target, every required artifact is looked up in this order:

1. the local cache slot `{temp}/precompiled/{version}/{content_hash}/`
2. the uncompressed asset + signature from the release store
3. the compressed (`.zst`) asset + signature, decompressed after verifying

A target is satisfied only when every required artifact was accepted.
One missing or unverifiable artifact makes the whole target unsatisfied;
it is then built from source instead of mixing precompiled and local
binaries.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

import zstandard
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from .. import crate_hash
from ..compression import decompress
from ..config import BuildEnvironment
from ..errors import StoreError
from ..manifest import PackageIdentity
from ..signing import verify
from ..store import ReleaseStore, write_atomic
from ..targets import Target, artifact_names
from .models import AcquisitionResult, Artifact
from .naming import asset_name, signature_name

logger = logging.getLogger(__name__)


class ArtifactAcquirer:
    def __init__(
        self,
        environment: BuildEnvironment,
        store: ReleaseStore,
        public_key: Ed25519PublicKey,
        *,
        hasher: Callable[[Path], str] = crate_hash.compute,
    ) -> None:
        self.environment = environment
        self.store = store
        self.public_key = public_key
        self.hasher = hasher
        self._cache_dir: Path | None = None

    @property
    def identity(self) -> PackageIdentity:
        return self.environment.crate_info

    def cache_dir(self) -> Path:
        """Cache slot keyed by version and content hash so distinct contents never collide."""
        if self._cache_dir is None:
            start = time.monotonic()
            content_hash = self.hasher(self.environment.manifest_dir)
            logger.debug("Computed crate hash %s in %.0fms", content_hash, (time.monotonic() - start) * 1000)
            self._cache_dir = (
                self.environment.target_temp_dir / "precompiled" / self.identity.version / content_hash
            )
        return self._cache_dir

    def acquire(self, targets: list[Target]) -> dict[Target, AcquisitionResult]:
        tag = self.identity.tag
        logger.info("Looking for precompiled binaries for version %s (tag: %s)", self.identity.version, tag)

        cache_dir = self.cache_dir()
        cache_dir.mkdir(parents=True, exist_ok=True)

        results: dict[Target, AcquisitionResult] = {}
        for target in targets:
            results[target] = self._acquire_target(target, tag, cache_dir)
        return results

    def _acquire_target(self, target: Target, tag: str, cache_dir: Path) -> AcquisitionResult:
        required = artifact_names(target, self.identity.library_name, remote=True)
        artifacts: list[Artifact] = []

        for artifact in required:
            cached = cache_dir / asset_name(target, artifact)
            if cached.is_file() or self._download(target, artifact, tag, cached):
                artifacts.append(Artifact(path=cached, final_file_name=artifact))
                continue
            logger.warning("Missing precompiled artifact for %s: %s", target, artifact)
            logger.info("Incomplete precompiled artifacts for %s - will build from source", target)
            return AcquisitionResult.unsatisfied(target, [artifact])

        logger.debug("Found precompiled artifacts for %s", target)
        return AcquisitionResult.satisfied_with(target, artifacts)

    def _download(self, target: Target, artifact: str, tag: str, final_path: Path) -> bool:
        for compressed in (False, True):
            if self._try_variant(target, artifact, tag, final_path, compressed=compressed):
                return True
        return False

    def _try_variant(
        self,
        target: Target,
        artifact: str,
        tag: str,
        final_path: Path,
        *,
        compressed: bool,
    ) -> bool:
        file_name = asset_name(target, artifact, compressed=compressed)
        sig_name = signature_name(target, artifact, compressed=compressed)

        try:
            signature = self.store.get_asset(tag, sig_name)
            if signature is None:
                logger.debug("Precompiled binaries not available for version %s (%s)", self.identity.version, file_name)
                return False
            data = self.store.get_asset(tag, file_name)
            if data is None:
                logger.warning("Signature %s is published but %s is not", sig_name, file_name)
                return False
        except StoreError as e:
            logger.error("Failed to download %s from %s: %s", file_name, self.store.describe(), e)
            return False

        # The signature covers the bytes as transferred (compressed when compressed).
        if not verify(self.public_key, data, signature):
            logger.critical("Signature verification failed for %s! Ignoring binary.", file_name)
            return False

        if compressed:
            logger.debug("Decompressing %s", file_name)
            try:
                data = decompress(data)
            except zstandard.ZstdError as e:
                logger.error("Failed to decompress %s: %s", file_name, e)
                return False

        write_atomic(final_path, data)
        logger.debug("Successfully downloaded and verified %s", file_name)
        return True
