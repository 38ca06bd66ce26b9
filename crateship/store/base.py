"""Release store interface."""

from __future__ import annotations

from typing import Protocol


class ReleaseStore(Protocol):
    """
    A version-tagged container of uploaded assets.

    `get_asset` returns None when the asset (or the whole release) is not
    published; that is an expected condition, not an error. Other
    failures raise StoreError subclasses.
    """

    # Whether the store can enumerate assets and accept uploads.
    writable: bool

    def describe(self) -> str:
        """Human-readable store location for log and error messages."""
        ...

    def exists(self, tag: str) -> bool:
        ...

    def list_assets(self, tag: str) -> list[str]:
        ...

    def get_asset(self, tag: str, name: str) -> bytes | None:
        ...

    def upload_asset(self, tag: str, name: str, data: bytes) -> None:
        ...
