"""
Artifact resolution.

- naming: release asset / signature file names
- models: Artifact, SignedArtifact, AcquisitionResult
- acquirer: verified download with compressed fallback, all-or-nothing per target
- provider: acquisition followed by local builds for unsatisfied targets
"""

from .acquirer import ArtifactAcquirer
from .models import AcquisitionResult, Artifact, SignedArtifact
from .naming import asset_name, signature_name
from .provider import ArtifactProvider, collect_local_artifacts, install_artifacts

__all__ = [
    "AcquisitionResult",
    "Artifact",
    "ArtifactAcquirer",
    "ArtifactProvider",
    "SignedArtifact",
    "asset_name",
    "collect_local_artifacts",
    "install_artifacts",
    "signature_name",
]
