"""Release asset naming."""

from __future__ import annotations

from ..compression import COMPRESSED_SUFFIX, SIGNATURE_SUFFIX
from ..targets import Target


def asset_name(target: Target, artifact_name: str, *, compressed: bool = False) -> str:
    """`{triple}_{artifact}`, plus `.zst` for the compressed variant."""
    base = f"{target.triple}_{artifact_name}"
    return base + COMPRESSED_SUFFIX if compressed else base


def signature_name(target: Target, artifact_name: str, *, compressed: bool = False) -> str:
    return asset_name(target, artifact_name, compressed=compressed) + SIGNATURE_SUFFIX
