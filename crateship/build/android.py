"""Android SDK/NDK helpers for cargo-ndk builds."""

from __future__ import annotations

import logging
import platform
from dataclasses import dataclass
from pathlib import Path

from ..errors import CompilerError
from ..process import ProcessRunner
from ..targets import Target

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AndroidEnvironment:
    sdk_path: Path
    ndk_version: str
    min_sdk_version: int
    target: Target

    @property
    def ndk_home(self) -> Path:
        """ANDROID_NDK_HOME for cargo-ndk."""
        return self.sdk_path / "ndk" / self.ndk_version

    @property
    def effective_min_sdk_version(self) -> int:
        """Requested minimum SDK, raised to the target's own minimum if needed."""
        target_min = self.target.android_min_sdk
        if target_min is None:
            return self.min_sdk_version
        return max(target_min, self.min_sdk_version)

    def ndk_is_installed(self) -> bool:
        return (self.ndk_home / "package.xml").exists()

    def install_ndk(self, runner: ProcessRunner, *, java_home: Path) -> None:
        extension = ".bat" if platform.system() == "Windows" else ""
        sdk_manager = self.sdk_path / "cmdline-tools" / "latest" / "bin" / f"sdkmanager{extension}"

        logger.info("Installing NDK %s", self.ndk_version)
        result = runner.run(
            str(sdk_manager),
            ["--install", f"ndk;{self.ndk_version}"],
            env={"JAVA_HOME": str(java_home)},
        )
        if not result.ok:
            raise CompilerError(f"Failed to install NDK {self.ndk_version}: {result.stderr.strip()}")
