"""
Release auditor: is every catalog target fully published and signed?

Read-only. Stores that can enumerate a release are checked by asset
list (and optionally by fetching and verifying); anonymous stores are
checked by fetching each signature and binary and verifying them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from .artifacts.naming import asset_name, signature_name
from .errors import ReleaseNotFoundError, StoreError
from .signing import verify
from .store import ReleaseStore
from .targets import CATALOG, Target, artifact_names

logger = logging.getLogger(__name__)


class TargetStatus(str, Enum):
    OK = "ok"
    MISSING_BINARY = "missing-binary"
    MISSING_SIGNATURE = "missing-signature"
    INVALID_SIGNATURE = "invalid-signature"
    ERROR = "error"


@dataclass(frozen=True)
class TargetAudit:
    target: Target
    status: TargetStatus
    detail: str = ""
    # Asset the status refers to (first offending asset for failures).
    asset: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is TargetStatus.OK


@dataclass
class AuditReport:
    tag: str
    store: str
    results: list[TargetAudit] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    def counts(self) -> dict[str, int]:
        out: dict[str, int] = {}
        for r in self.results:
            out[r.status.value] = out.get(r.status.value, 0) + 1
        return out

    def to_dict(self) -> dict[str, Any]:
        return {
            "tag": self.tag,
            "store": self.store,
            "ok": self.ok,
            "counts": self.counts(),
            "targets": [
                {
                    "target": r.target.triple,
                    "status": r.status.value,
                    "asset": r.asset,
                    "detail": r.detail,
                }
                for r in self.results
            ],
        }


class Auditor:
    def __init__(
        self,
        store: ReleaseStore,
        public_key: Ed25519PublicKey,
        library_name: str,
        *,
        verify_signatures: bool = False,
    ) -> None:
        self.store = store
        self.public_key = public_key
        self.library_name = library_name
        # Anonymous stores cannot list, so they are always audited by fetching.
        self.verify_signatures = verify_signatures or not store.writable

    def audit(self, tag: str, targets: Iterable[Target] = CATALOG) -> AuditReport:
        """
        Audit `tag` for every target.

        Raises:
            ReleaseNotFoundError: A listable store has no release for `tag`
        """
        report = AuditReport(tag=tag, store=self.store.describe())

        assets: set[str] | None = None
        if self.store.writable:
            if not self.store.exists(tag):
                raise ReleaseNotFoundError(f"Release {tag} not found in {self.store.describe()}")
            assets = set(self.store.list_assets(tag))
            logger.debug("Release %s has %d assets", tag, len(assets))

        for target in targets:
            try:
                result = self._audit_target(target, tag, assets)
            except StoreError as e:
                logger.error("Failed to audit %s: %s", target, e)
                result = TargetAudit(target, TargetStatus.ERROR, detail=str(e))
            logger.info("%s: %s", target, result.status.value)
            report.results.append(result)
        return report

    def _audit_target(self, target: Target, tag: str, assets: set[str] | None) -> TargetAudit:
        for artifact in artifact_names(target, self.library_name, remote=True):
            if assets is None:
                failure = self._fetch_and_check(target, artifact, tag)
            else:
                failure = self._list_and_check(target, artifact, tag, assets)
            if failure is not None:
                return failure
        return TargetAudit(target, TargetStatus.OK)

    def _list_and_check(self, target: Target, artifact: str, tag: str, assets: set[str]) -> TargetAudit | None:
        failure: TargetAudit | None = None
        for compressed in (False, True):
            name = asset_name(target, artifact, compressed=compressed)
            if name not in assets:
                continue
            sig_name = signature_name(target, artifact, compressed=compressed)
            if sig_name not in assets:
                variant_failure = TargetAudit(target, TargetStatus.MISSING_SIGNATURE, f"{sig_name} not published", sig_name)
            elif self.verify_signatures:
                variant_failure = self._check_signature(target, tag, name, sig_name)
            else:
                variant_failure = None
            if variant_failure is None:
                return None
            failure = failure or variant_failure
        if failure is not None:
            return failure
        name = asset_name(target, artifact)
        return TargetAudit(target, TargetStatus.MISSING_BINARY, f"{name} not published", name)

    def _fetch_and_check(self, target: Target, artifact: str, tag: str) -> TargetAudit | None:
        failure: TargetAudit | None = None
        for compressed in (False, True):
            name = asset_name(target, artifact, compressed=compressed)
            sig_name = signature_name(target, artifact, compressed=compressed)
            signature = self.store.get_asset(tag, sig_name)
            data = self.store.get_asset(tag, name)
            if data is None and signature is None:
                continue
            variant_failure = self._judge(target, name, sig_name, data, signature)
            if variant_failure is None:
                return None
            failure = failure or variant_failure
        if failure is not None:
            return failure
        name = asset_name(target, artifact)
        return TargetAudit(target, TargetStatus.MISSING_BINARY, f"{name} not published", name)

    def _check_signature(self, target: Target, tag: str, name: str, sig_name: str) -> TargetAudit | None:
        signature = self.store.get_asset(tag, sig_name)
        data = self.store.get_asset(tag, name)
        return self._judge(target, name, sig_name, data, signature)

    def _judge(
        self,
        target: Target,
        name: str,
        sig_name: str,
        data: bytes | None,
        signature: bytes | None,
    ) -> TargetAudit | None:
        if data is None:
            return TargetAudit(target, TargetStatus.MISSING_BINARY, f"{name} not published", name)
        if signature is None:
            return TargetAudit(target, TargetStatus.MISSING_SIGNATURE, f"{sig_name} not published", sig_name)
        if not verify(self.public_key, data, signature):
            return TargetAudit(target, TargetStatus.INVALID_SIGNATURE, f"{sig_name} does not verify", name)
        return None
