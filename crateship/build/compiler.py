"""
Compiler driver: turns a target into a directory of built artifacts.

The driver only knows how to invoke the Rust toolchain; choosing which
targets to build and what to do with the output is the caller's job.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from ..config import BuildConfiguration, BuildEnvironment
from ..errors import CompilerError, PreconditionError
from ..manifest import MANIFEST_FILE
from ..process import ProcessRunner
from ..targets import Family, Target
from .android import AndroidEnvironment

logger = logging.getLogger(__name__)

RUSTUP_HINT = "rustup not found in PATH. Install Rust from https://rustup.rs and try again."


class CompilerDriver(Protocol):
    def prepare(self, target: Target, environment: BuildEnvironment) -> None:
        """Make sure the toolchain can build `target`."""
        ...

    def build(self, target: Target, environment: BuildEnvironment) -> Path:
        """Build `target` and return the directory holding its artifacts."""
        ...


class CargoCompiler:
    """CompilerDriver that runs cargo (plus cargo-ndk / cargo-zigbuild where needed)."""

    def __init__(self, runner: ProcessRunner) -> None:
        self.runner = runner
        self._installed_targets: set[str] | None = None

    # -------------------------------------------------------------------------
    # Preparation
    # -------------------------------------------------------------------------

    def _require(self, tool: str, hint: str) -> None:
        if self.runner.which(tool) is None:
            raise PreconditionError(hint)

    def _installed(self) -> set[str]:
        if self._installed_targets is None:
            result = self.runner.run("rustup", ["target", "list", "--installed"])
            if not result.ok:
                raise CompilerError(f"rustup target list failed: {result.stderr.strip()}")
            self._installed_targets = {line.strip() for line in result.stdout.splitlines() if line.strip()}
        return self._installed_targets

    def prepare(self, target: Target, environment: BuildEnvironment) -> None:
        self._require("rustup", RUSTUP_HINT)

        if target.triple not in self._installed():
            logger.info("Installing Rust target %s", target.triple)
            result = self.runner.run("rustup", ["target", "add", target.triple])
            if not result.ok:
                raise CompilerError(f"Failed to install Rust target {target.triple}: {result.stderr.strip()}")
            self._installed().add(target.triple)

        if target.family is Family.ANDROID:
            self._require("cargo-ndk", "cargo-ndk not found in PATH. Install it with: cargo install cargo-ndk")
            android = self._android_environment(target, environment)
            if not android.ndk_is_installed():
                if environment.java_home is None:
                    raise PreconditionError(
                        f"Android NDK {android.ndk_version} is not installed and JAVA_HOME is unknown; "
                        "install the NDK with sdkmanager or pass --java-home"
                    )
                android.install_ndk(self.runner, java_home=environment.java_home)
        elif target.family is Family.LINUX and environment.glibc_version:
            self._require(
                "cargo-zigbuild",
                "cargo-zigbuild not found in PATH. Install it with: cargo install cargo-zigbuild",
            )

    # -------------------------------------------------------------------------
    # Build
    # -------------------------------------------------------------------------

    @staticmethod
    def _android_environment(target: Target, environment: BuildEnvironment) -> AndroidEnvironment:
        if environment.android_sdk_path is None or not environment.android_ndk_version:
            raise PreconditionError(
                f"Building {target} requires --android-sdk-location and --android-ndk-version"
            )
        return AndroidEnvironment(
            sdk_path=environment.android_sdk_path,
            ndk_version=environment.android_ndk_version,
            min_sdk_version=environment.android_min_sdk_version or 21,
            target=target,
        )

    def command_for(self, target: Target, environment: BuildEnvironment) -> tuple[list[str], dict[str, str]]:
        """Return (cargo arguments, extra environment) for building `target`."""
        env: dict[str, str] = {}
        common = [
            "--manifest-path", str(environment.manifest_dir / MANIFEST_FILE),
            "-p", environment.crate_info.name,
            "--target-dir", str(environment.cargo_target_dir),
        ]
        if environment.configuration is not BuildConfiguration.DEBUG:
            common.append("--release")

        if target.family is Family.ANDROID:
            android = self._android_environment(target, environment)
            env["ANDROID_NDK_HOME"] = str(android.ndk_home)
            args = [
                "ndk",
                "--target", target.triple,
                "--platform", str(android.effective_min_sdk_version),
                "build", *common,
            ]
        elif target.family is Family.LINUX and environment.glibc_version:
            args = ["zigbuild", "--target", f"{target.triple}.{environment.glibc_version}", *common]
        else:
            args = ["build", "--target", target.triple, *common]

        if target.family is Family.MACOS and environment.macos_deployment_target:
            env["MACOSX_DEPLOYMENT_TARGET"] = environment.macos_deployment_target
        if target.family in (Family.IOS_DEVICE, Family.IOS_SIMULATOR) and environment.ios_deployment_target:
            env["IPHONEOS_DEPLOYMENT_TARGET"] = environment.ios_deployment_target

        return args, env

    def output_dir(self, target: Target, environment: BuildEnvironment) -> Path:
        return environment.cargo_target_dir / target.triple / environment.configuration.cargo_profile_dir

    def build(self, target: Target, environment: BuildEnvironment) -> Path:
        args, env = self.command_for(target, environment)
        logger.info("Building %s for %s", environment.crate_info.name, target)
        result = self.runner.run("cargo", args, env=env or None, cwd=environment.manifest_dir)
        if not result.ok:
            raise CompilerError(f"cargo build failed for {target}:\n{result.stderr.strip()}")
        return self.output_dir(target, environment)
