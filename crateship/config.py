"""
Configuration values, built once at startup and passed into components.

Three sources feed them:

- crateship.yaml next to Cargo.toml (crate options, owned by the crate author)
- crateship_options.yaml in the root project + CRATESHIP_* env (user options)
- command-line arguments (build environment)

Components never consult os.environ themselves; the CLI resolves the
environment into these values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from .errors import ConfigError
from .manifest import PackageIdentity
from .signing import load_public_key

CRATE_OPTIONS_FILE = "crateship.yaml"
USER_OPTIONS_FILE = "crateship_options.yaml"


class BuildConfiguration(str, Enum):
    DEBUG = "debug"
    RELEASE = "release"
    PROFILE = "profile"

    @property
    def cargo_profile_dir(self) -> str:
        return "debug" if self is BuildConfiguration.DEBUG else "release"

    @classmethod
    def parse(cls, value: str) -> BuildConfiguration:
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            raise ConfigError(f"Unknown build configuration: {value}") from e


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return data


def _parse_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off", ""):
            return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class PrecompiledBinariesConfig:
    """Where published binaries live and how to trust them."""

    public_key: Ed25519PublicKey = field(repr=False)
    url_prefix: str | None = None
    private: bool = False
    repository: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PrecompiledBinariesConfig:
        public_key = data.get("public_key")
        if not isinstance(public_key, str) or not public_key.strip():
            raise ConfigError("precompiled_binaries.public_key is required")

        private = _parse_bool(data.get("private", False), "precompiled_binaries.private")
        url_prefix = data.get("url_prefix")
        repository = data.get("repository")

        if private:
            if url_prefix:
                raise ConfigError("precompiled_binaries: url_prefix cannot be combined with private: true")
            if not repository:
                raise ConfigError("precompiled_binaries.repository is required when private: true")
        elif not url_prefix:
            raise ConfigError("precompiled_binaries.url_prefix is required for public binaries")

        return cls(
            public_key=load_public_key(public_key),
            url_prefix=str(url_prefix) if url_prefix else None,
            private=private,
            repository=str(repository) if repository else None,
        )


@dataclass(frozen=True)
class CrateOptions:
    precompiled_binaries: PrecompiledBinariesConfig | None = None

    @classmethod
    def load(cls, manifest_dir: Path) -> CrateOptions:
        path = manifest_dir / CRATE_OPTIONS_FILE
        if not path.exists():
            return cls()
        data = _read_yaml(path)
        section = data.get("precompiled_binaries")
        if section is None:
            return cls()
        if not isinstance(section, dict):
            raise ConfigError(f"{path}: precompiled_binaries must be a mapping")
        return cls(precompiled_binaries=PrecompiledBinariesConfig.from_mapping(section))


@dataclass(frozen=True)
class UserOptions:
    use_precompiled_binaries: bool = True
    verbose_logging: bool = False

    @classmethod
    def load(cls, root_project_dir: Path | None, env: Mapping[str, str]) -> UserOptions:
        """
        Load user options; environment variables win over the file.

        Args:
            root_project_dir: Directory that may contain crateship_options.yaml
            env: Environment mapping (usually os.environ)
        """
        data: dict[str, Any] = {}
        if root_project_dir is not None:
            path = root_project_dir / USER_OPTIONS_FILE
            if path.exists():
                data = _read_yaml(path)

        use_precompiled = _parse_bool(data.get("use_precompiled_binaries", True), "use_precompiled_binaries")
        verbose = _parse_bool(data.get("verbose_logging", False), "verbose_logging")

        if "CRATESHIP_USE_PRECOMPILED_BINARIES" in env:
            use_precompiled = _parse_bool(env["CRATESHIP_USE_PRECOMPILED_BINARIES"], "CRATESHIP_USE_PRECOMPILED_BINARIES")
        if env.get("CRATESHIP_VERBOSE") == "1":
            verbose = True

        return cls(use_precompiled_binaries=use_precompiled, verbose_logging=verbose)


@dataclass(frozen=True)
class BuildEnvironment:
    """Everything a build needs to know, resolved once."""

    configuration: BuildConfiguration
    manifest_dir: Path
    target_temp_dir: Path
    crate_info: PackageIdentity
    crate_options: CrateOptions = field(default_factory=CrateOptions)
    android_sdk_path: Path | None = None
    android_ndk_version: str | None = None
    android_min_sdk_version: int | None = None
    java_home: Path | None = None
    glibc_version: str | None = None
    macos_deployment_target: str | None = None
    ios_deployment_target: str | None = None

    @property
    def is_android(self) -> bool:
        return self.android_sdk_path is not None

    @property
    def cargo_target_dir(self) -> Path:
        return self.target_temp_dir / "target"
