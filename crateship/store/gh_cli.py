"""
Release store backed by the GitHub CLI (`gh`).

Required for private repositories, where anonymous HTTP downloads do not
work, and for uploads. Every call goes through a ProcessRunner; stderr is
classified into StoreError subclasses so callers can tell "not published
yet" apart from "not authenticated".
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

from ..errors import (
    AssetNotFoundError,
    AuthenticationError,
    ReleaseNotFoundError,
    RepositoryNotFoundError,
    SetupError,
    StoreError,
)
from ..process import ProcessResult, ProcessRunner

logger = logging.getLogger(__name__)

INSTALL_HINT = (
    "gh CLI is not installed. Please install it from: https://cli.github.com\n"
    "Or install via package manager:\n"
    "  - macOS: brew install gh\n"
    "  - Linux: See https://github.com/cli/cli/blob/trunk/docs/install_linux.md\n"
    "  - Windows: winget install --id GitHub.cli"
)


def classify_error(stderr: str, *, repository: str, tag: str, what: str) -> StoreError:
    """Map gh stderr output to the matching StoreError subclass."""
    lowered = stderr.lower()
    if "could not find any assets matching" in lowered:
        return AssetNotFoundError(f"No assets matching {what!r} found in release {tag} of {repository}")
    if "release not found" in lowered:
        return ReleaseNotFoundError(f"Release {tag} not found in repository {repository}")
    if "http 404" in lowered or "not found" in lowered:
        return RepositoryNotFoundError(
            f"Repository {repository} not found or not accessible. "
            "Ensure you have access and are authenticated with: gh auth status"
        )
    if "authentication" in lowered or "unauthorized" in lowered or "http 401" in lowered:
        return AuthenticationError("Authentication failed. Please run: gh auth login")
    return StoreError(f"gh failed for {what}: {stderr.strip()}")


class GhCliReleaseStore:
    """Authenticated store for `owner/name` repositories."""

    writable = True

    def __init__(self, repository: str, runner: ProcessRunner) -> None:
        self.repository = repository
        self.runner = runner
        self._setup_validated = False

    def describe(self) -> str:
        return self.repository

    def _gh(self, *args: str) -> ProcessResult:
        return self.runner.run("gh", list(args))

    def validate_setup(self) -> None:
        """
        Check that gh is installed, authenticated and can see the repository.

        Raises:
            SetupError: With the remedy in the message
        """
        if self._setup_validated:
            return

        if self.runner.which("gh") is None:
            raise SetupError(INSTALL_HINT)

        if not self._gh("auth", "status").ok:
            raise SetupError(
                "gh CLI is not authenticated. Please run: gh auth login\n"
                "and follow the prompts to authenticate with GitHub."
            )

        user = self._gh("api", "user", "--jq", ".login")
        if user.ok and user.stdout.strip():
            logger.debug("Authenticated as: %s", user.stdout.strip())

        access = self._gh("api", f"repos/{self.repository}", "--silent")
        if not access.ok and "HTTP 404" in access.stderr:
            raise SetupError(
                f"Repository {self.repository} not found or not accessible. "
                "Ensure you have read access to this repository."
            )

        self._setup_validated = True

    def exists(self, tag: str) -> bool:
        self.validate_setup()
        return self._gh("release", "view", tag, "--repo", self.repository).ok

    def list_assets(self, tag: str) -> list[str]:
        self.validate_setup()
        result = self._gh(
            "release", "view", tag,
            "--repo", self.repository,
            "--json", "assets",
            "--jq", ".assets[].name",
        )
        if not result.ok:
            raise classify_error(result.stderr, repository=self.repository, tag=tag, what="asset list")
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def get_asset(self, tag: str, name: str) -> bytes | None:
        self.validate_setup()
        with tempfile.TemporaryDirectory(prefix="crateship_download_") as tmp:
            logger.debug("Downloading %s from %s@%s via gh CLI", name, self.repository, tag)
            result = self._gh(
                "release", "download", tag,
                "--repo", self.repository,
                "--pattern", name,
                "--dir", tmp,
            )
            if not result.ok:
                error = classify_error(result.stderr, repository=self.repository, tag=tag, what=name)
                if isinstance(error, (AssetNotFoundError, ReleaseNotFoundError)):
                    logger.debug("%s", error)
                    return None
                raise error

            path = Path(tmp) / name
            if not path.is_file():
                logger.warning("Asset file not found after download: %s", path)
                return None
            return path.read_bytes()

    def upload_asset(self, tag: str, name: str, data: bytes) -> None:
        self.validate_setup()
        with tempfile.TemporaryDirectory(prefix="crateship_upload_") as tmp:
            path = Path(tmp) / name
            path.write_bytes(data)
            result = self._gh(
                "release", "upload", tag, str(path),
                "--repo", self.repository,
                "--clobber",
            )
            if not result.ok:
                raise classify_error(result.stderr, repository=self.repository, tag=tag, what=name)
