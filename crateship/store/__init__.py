"""
Release store bindings.

- HttpReleaseStore: anonymous GET against `{uri_prefix}{tag}/{name}`
- GhCliReleaseStore: authenticated, via the gh CLI (private repos, uploads)
- LocalDirectoryStore: flat directory (local-output publishing)
"""

from __future__ import annotations

from ..config import PrecompiledBinariesConfig
from ..errors import ConfigError
from ..process import ProcessRunner
from .base import ReleaseStore
from .gh_cli import GhCliReleaseStore
from .http import HttpReleaseStore
from .local import LocalDirectoryStore, write_atomic


def store_for_config(config: PrecompiledBinariesConfig, runner: ProcessRunner) -> ReleaseStore:
    """Pick the store binding a crate's precompiled-binaries config asks for."""
    if config.private:
        if config.repository is None:
            raise ConfigError("precompiled_binaries: private requires a repository")
        return GhCliReleaseStore(config.repository, runner)
    if config.url_prefix is None:
        raise ConfigError("precompiled_binaries: url_prefix is required unless private is set")
    return HttpReleaseStore(config.url_prefix)


__all__ = [
    "ReleaseStore",
    "GhCliReleaseStore",
    "HttpReleaseStore",
    "LocalDirectoryStore",
    "store_for_config",
    "write_atomic",
]
