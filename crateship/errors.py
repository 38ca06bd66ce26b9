"""
Exception hierarchy for crateship.

Errors fall into five classes, each with its own handling policy:

- Identity (ManifestError): fatal before any network or build work
- Trust (TrustError): fatal on the publish path; on the consumer path a
  failed signature is logged and the artifact treated as absent
- Consistency (VersionConflictError): fatal, tells the operator to bump
- Transport (StoreError, TransientStoreError): retried within budget
- Precondition (PreconditionError, SetupError): fatal with a remedy
"""

from __future__ import annotations


class CrateshipError(Exception):
    """Base class for all crateship errors."""


class ManifestError(CrateshipError):
    """The package manifest is missing, unparseable or incomplete."""

    def __init__(self, message: str, *, file_name: str | None = None):
        self.message = message
        self.file_name = file_name
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.file_name is not None:
            return f"Failed to parse package manifest at {self.file_name}: {self.message}"
        return f"Failed to parse package manifest: {self.message}"


class ConfigError(CrateshipError):
    """Crate or user options are invalid."""


class VersionConflictError(CrateshipError):
    """A version was already recorded with different content."""

    def __init__(self, version: str, previous_hash: str, current_hash: str):
        self.version = version
        self.previous_hash = previous_hash
        self.current_hash = current_hash
        super().__init__(
            f"Version {version} has been used before with different crate content.\n"
            f"Previous hash: {previous_hash}\n"
            f"Current hash: {current_hash}\n"
            "Please bump the version in Cargo.toml before publishing new binaries."
        )


class TrustError(CrateshipError):
    """A freshly produced signature does not verify."""


class PreconditionError(CrateshipError):
    """Something required before any target work is missing."""


class CompilerError(CrateshipError):
    """The external toolchain failed or did not produce an expected artifact."""


class StoreError(CrateshipError):
    """Remote release store operation failed."""


class TransientStoreError(StoreError):
    """Store operation failed in a way that is worth retrying (connection reset)."""


class SetupError(StoreError):
    """The store binding is not usable (tool missing, not authenticated)."""


class AuthenticationError(StoreError):
    """The store rejected our credentials."""


class RepositoryNotFoundError(StoreError):
    """Repository does not exist or is not accessible."""


class ReleaseNotFoundError(StoreError):
    """No release exists for the requested tag."""


class AssetNotFoundError(StoreError):
    """The release exists but does not contain the requested asset."""
