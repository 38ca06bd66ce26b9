"""
Build, sign and publish precompiled binaries.

Two destinations:

- UploadTo(store): a version-tagged release that must already exist.
  The version/hash pair is checked against the ledger first, and targets
  whose full asset set is already published are skipped, so re-runs are
  idempotent.
- WriteTo(directory): files written atomically into a local directory.
  No ledger check and no release lookup; this mode does not assert a
  public identity.

Every payload is signed over its final wire bytes and the signature is
verified again before anything leaves the process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Union

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from . import crate_hash
from .artifacts.models import SignedArtifact
from .artifacts.naming import asset_name, signature_name
from .build.cleanup import prune
from .build.compiler import CompilerDriver
from .compression import compress
from .config import BuildEnvironment
from .errors import CompilerError, PreconditionError, TrustError
from .retry import UPLOAD_RETRY, RetryPolicy
from .signing import public_key_hex, public_key_to_hex, sign, verify
from .store import LocalDirectoryStore, ReleaseStore
from .targets import Target, artifact_names
from .version_ledger import VersionLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadTo:
    store: ReleaseStore


@dataclass(frozen=True)
class WriteTo:
    directory: Path


PublishMode = Union[UploadTo, WriteTo]


@dataclass
class PublishReport:
    tag: str
    content_hash: str
    built: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    published: list[str] = field(default_factory=list)


class Publisher:
    def __init__(
        self,
        environment: BuildEnvironment,
        private_key: Ed25519PrivateKey,
        compiler: CompilerDriver,
        *,
        compress: bool = False,
        ledger: VersionLedger | None = None,
        upload_retry: RetryPolicy = UPLOAD_RETRY,
        prune_after_build: bool = True,
        hasher: Callable[[Path], str] = crate_hash.compute,
    ) -> None:
        self.environment = environment
        self.private_key = private_key
        self.public_key = private_key.public_key()
        self.compiler = compiler
        self.compress = compress
        self.ledger = ledger or VersionLedger(environment.target_temp_dir)
        self.upload_retry = upload_retry
        self.prune_after_build = prune_after_build
        self.hasher = hasher

    # -------------------------------------------------------------------------
    # Preconditions
    # -------------------------------------------------------------------------

    def _check_key_matches_config(self) -> None:
        config = self.environment.crate_options.precompiled_binaries
        if config is None:
            return
        configured = public_key_to_hex(config.public_key)
        if configured != public_key_hex(self.private_key):
            raise PreconditionError(
                "PRIVATE_KEY does not match public_key in crateship.yaml; consumers would reject "
                "every published binary. Use the key pair generated together with the configured public key."
            )

    def _check_release(self, store: ReleaseStore, tag: str) -> None:
        logger.info("Fetching release for tag %s", tag)
        if not store.exists(tag):
            raise PreconditionError(
                f"Release not found for tag {tag} in {store.describe()}. Please ensure the tag and release "
                "have been created by your publish script before running precompile-binaries. "
                f"The tag should match the version in Cargo.toml ({tag})."
            )
        logger.info("Found existing release for tag %s", tag)

    # -------------------------------------------------------------------------
    # Per-target work
    # -------------------------------------------------------------------------

    def _already_published(self, store: ReleaseStore, tag: str, target: Target, names: list[str]) -> bool:
        assets = set(store.list_assets(tag))
        return all(
            asset_name(target, n, compressed=self.compress) in assets
            and signature_name(target, n, compressed=self.compress) in assets
            for n in names
        )

    def sign_payload(self, target: Target, artifact: str, data: bytes) -> SignedArtifact:
        """
        Compress (optionally), sign and self-verify one artifact.

        Raises:
            TrustError: The fresh signature does not verify
        """
        if self.compress:
            logger.info("Compressing %s for %s", artifact, target)
            data = compress(data)
        signature = sign(self.private_key, data)
        if not verify(self.public_key, data, signature):
            raise TrustError(f"Signature verification failed for {asset_name(target, artifact, compressed=self.compress)}")
        return SignedArtifact(
            target=target,
            artifact_name=artifact,
            asset_name=asset_name(target, artifact, compressed=self.compress),
            data=data,
            signature_name=signature_name(target, artifact, compressed=self.compress),
            signature=signature,
        )

    def _build_target(self, target: Target, names: list[str]) -> list[SignedArtifact]:
        logger.info("Building for %s", target)
        self.compiler.prepare(target, self.environment)
        output_dir = self.compiler.build(target, self.environment)

        signed: list[SignedArtifact] = []
        for name in names:
            path = output_dir / name
            if not path.is_file():
                raise CompilerError(f"Missing artifact: {path}")
            signed.append(self.sign_payload(target, name, path.read_bytes()))

        if self.prune_after_build:
            prune(self.environment.cargo_target_dir, self.environment.crate_info.name)
        return signed

    def _upload(self, store: ReleaseStore, tag: str, name: str, data: bytes) -> None:
        # One asset per call; bulk uploads proved less reliable.
        self.upload_retry.call(lambda: store.upload_asset(tag, name, data), describe=f"Upload of {name}")

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def publish(self, targets: list[Target], mode: PublishMode) -> PublishReport:
        identity = self.environment.crate_info
        tag = identity.tag

        self._check_key_matches_config()

        content_hash = self.hasher(self.environment.manifest_dir)
        logger.info("Computed crate hash: %s", content_hash)
        logger.info("Using version tag: %s", tag)

        if isinstance(mode, UploadTo):
            self.ledger.validate(identity, content_hash)
            self._check_release(mode.store, tag)
            store: ReleaseStore = mode.store
        else:
            if not mode.directory.exists():
                logger.info("Creating output directory: %s", mode.directory)
            mode.directory.mkdir(parents=True, exist_ok=True)
            store = LocalDirectoryStore(mode.directory)

        suffix = " (compressed)" if self.compress else ""
        logger.info("Precompiling binaries for %s%s", ", ".join(t.triple for t in targets), suffix)

        report = PublishReport(tag=tag, content_hash=content_hash)
        for target in targets:
            names = artifact_names(target, identity.library_name, remote=True)

            if isinstance(mode, UploadTo) and self._already_published(store, tag, target, names):
                logger.info("All artifacts for %s already exist - skipping", target)
                report.skipped.append(target.triple)
                continue

            signed = self._build_target(target, names)
            report.built.append(target.triple)

            for item in signed:
                for name, data in ((item.asset_name, item.data), (item.signature_name, item.signature)):
                    if isinstance(mode, UploadTo):
                        logger.info("Uploading %s", name)
                        self._upload(store, tag, name, data)
                    else:
                        store.upload_asset(tag, name, data)
                        logger.info("Copied: %s", name)
                    report.published.append(name)

        return report
