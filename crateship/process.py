"""
Narrow synchronous interface to external processes.

Everything that shells out (cargo, rustup, gh, sdkmanager) goes through a
ProcessRunner so acquisition, publishing and auditing can be tested with a
fake runner and never touch a real toolchain.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Protocol, Sequence

from .errors import PreconditionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ProcessRunner(Protocol):
    def run(
        self,
        command: str,
        args: Sequence[str],
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> ProcessResult:
        """Run `command` with `args` to completion and capture its output."""
        ...

    def which(self, command: str) -> str | None:
        """Locate `command` on PATH."""
        ...


class SubprocessRunner:
    """ProcessRunner backed by subprocess.run."""

    def __init__(self, timeout_s: float | None = None):
        self.timeout_s = timeout_s

    def run(
        self,
        command: str,
        args: Sequence[str],
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> ProcessResult:
        full_env = None
        if env:
            full_env = dict(os.environ)
            full_env.update(env)
        logger.debug("Running %s %s", command, " ".join(args))
        try:
            completed = subprocess.run(
                [command, *args],
                capture_output=True,
                text=True,
                env=full_env,
                cwd=cwd,
                timeout=self.timeout_s,
            )
        except FileNotFoundError as e:
            raise PreconditionError(f"Required tool '{command}' is not installed or not in PATH") from e
        return ProcessResult(completed.returncode, completed.stdout, completed.stderr)

    def which(self, command: str) -> str | None:
        return shutil.which(command)
