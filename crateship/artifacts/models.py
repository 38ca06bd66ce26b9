"""Artifact value types."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..targets import ArtifactKind, Target, kind_for_file_name


@dataclass(frozen=True)
class Artifact:
    """A built binary on disk and the name it should have at its destination."""

    path: Path
    final_file_name: str

    @property
    def kind(self) -> ArtifactKind:
        return kind_for_file_name(self.final_file_name)


@dataclass(frozen=True)
class SignedArtifact:
    """Wire-ready artifact: the bytes to transfer and their signature."""

    target: Target
    artifact_name: str
    asset_name: str
    data: bytes = field(repr=False)
    signature_name: str
    signature: bytes = field(repr=False)


@dataclass(frozen=True)
class AcquisitionResult:
    """
    Per-target outcome of acquisition.

    Either every required artifact was obtained and verified (satisfied),
    or the target must be built locally. Partial sets are never exposed.
    """

    target: Target
    artifacts: tuple[Artifact, ...] = ()
    missing: tuple[str, ...] = ()

    @property
    def satisfied(self) -> bool:
        return not self.missing and bool(self.artifacts)

    @classmethod
    def satisfied_with(cls, target: Target, artifacts: list[Artifact]) -> AcquisitionResult:
        return cls(target=target, artifacts=tuple(artifacts))

    @classmethod
    def unsatisfied(cls, target: Target, missing: list[str]) -> AcquisitionResult:
        return cls(target=target, missing=tuple(missing))
