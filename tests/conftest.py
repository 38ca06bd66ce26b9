"""Pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Mapping, Sequence

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from crateship.config import BuildConfiguration, BuildEnvironment, CrateOptions
from crateship.errors import StoreError
from crateship.manifest import PackageIdentity
from crateship.process import ProcessResult
from crateship.signing import generate_key_pair, load_private_key, load_public_key
from crateship.targets import Target, artifact_names


CARGO_TOML = """\
[package]
name = "foo"
version = "1.2.0"
edition = "2021"

[lib]
crate-type = ["cdylib", "staticlib"]
"""


def write_crate(root: Path, *, version: str = "1.2.0", lib_source: str = "pub fn answer() -> u32 { 42 }\n") -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "Cargo.toml").write_text(CARGO_TOML.replace('"1.2.0"', f'"{version}"'), encoding="utf-8")
    (root / "src").mkdir(exist_ok=True)
    (root / "src" / "lib.rs").write_text(lib_source, encoding="utf-8")
    return root


# -----------------------------------------------------------------------------
# Fakes
# -----------------------------------------------------------------------------


class FakeProcessRunner:
    """
    ProcessRunner that never spawns anything.

    Rules are matched newest first on (command, leading args); unmatched
    calls succeed with empty output.
    """

    def __init__(self, tools: Sequence[str] = ("gh", "rustup", "cargo", "cargo-ndk", "cargo-zigbuild")):
        self.tools = set(tools)
        self.calls: list[tuple[str, list[str], dict[str, str] | None, Path | None]] = []
        self._rules: list[tuple[str, tuple[str, ...], ProcessResult, Callable | None]] = []

    def on(
        self,
        command: str,
        *prefix: str,
        exit_code: int = 0,
        stdout: str = "",
        stderr: str = "",
        effect: Callable[[list[str]], None] | None = None,
    ) -> None:
        self._rules.append((command, prefix, ProcessResult(exit_code, stdout, stderr), effect))

    def run(
        self,
        command: str,
        args: Sequence[str],
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> ProcessResult:
        args = list(args)
        self.calls.append((command, args, dict(env) if env else None, cwd))
        for rule_command, prefix, result, effect in reversed(self._rules):
            if rule_command == command and tuple(args[: len(prefix)]) == prefix:
                if effect is not None:
                    effect(args)
                return result
        return ProcessResult(0, "", "")

    def which(self, command: str) -> str | None:
        return f"/usr/bin/{command}" if command in self.tools else None

    def commands(self) -> list[list[str]]:
        return [[command, *args] for command, args, _, _ in self.calls]


class InMemoryStore:
    """Writable release store keeping assets in a dict per tag."""

    writable = True

    def __init__(self, releases: Mapping[str, Mapping[str, bytes]] | None = None):
        self.releases: dict[str, dict[str, bytes]] = {t: dict(a) for t, a in (releases or {}).items()}
        self.uploads: list[tuple[str, str]] = []
        self.downloads: list[tuple[str, str]] = []
        self.fail_uploads = 0
        self.fail_downloads: set[str] = set()

    def describe(self) -> str:
        return "memory"

    def exists(self, tag: str) -> bool:
        return tag in self.releases

    def list_assets(self, tag: str) -> list[str]:
        return sorted(self.releases.get(tag, {}))

    def get_asset(self, tag: str, name: str) -> bytes | None:
        self.downloads.append((tag, name))
        if name in self.fail_downloads:
            raise StoreError(f"download of {name} failed")
        return self.releases.get(tag, {}).get(name)

    def upload_asset(self, tag: str, name: str, data: bytes) -> None:
        if self.fail_uploads > 0:
            self.fail_uploads -= 1
            raise StoreError(f"upload of {name} failed")
        self.uploads.append((tag, name))
        self.releases.setdefault(tag, {})[name] = data


class ReadOnlyStore(InMemoryStore):
    """Behaves like the anonymous HTTP store: fetch only."""

    writable = False

    def exists(self, tag: str) -> bool:
        raise StoreError("cannot check releases")

    def list_assets(self, tag: str) -> list[str]:
        raise StoreError("cannot list")

    def upload_asset(self, tag: str, name: str, data: bytes) -> None:
        raise StoreError("read-only")


class FakeCompiler:
    """CompilerDriver writing predictable bytes for each target's artifacts."""

    def __init__(self, *, remote_only: bool = True):
        self.prepared: list[str] = []
        self.built: list[str] = []
        self.remote_only = remote_only

    @staticmethod
    def payload(target: Target, name: str) -> bytes:
        return f"binary {target.triple} {name}".encode()

    def prepare(self, target: Target, environment: BuildEnvironment) -> None:
        self.prepared.append(target.triple)

    def build(self, target: Target, environment: BuildEnvironment) -> Path:
        self.built.append(target.triple)
        out = environment.cargo_target_dir / target.triple / environment.configuration.cargo_profile_dir
        out.mkdir(parents=True, exist_ok=True)
        for name in artifact_names(target, environment.crate_info.library_name, remote=self.remote_only):
            (out / name).write_bytes(self.payload(target, name))
        return out


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def crate_dir(tmp_path: Path) -> Path:
    """Minimal crate named foo at version 1.2.0."""
    return write_crate(tmp_path / "crate")


@pytest.fixture
def key_hex() -> tuple[str, str]:
    return generate_key_pair()


@pytest.fixture
def private_key(key_hex: tuple[str, str]) -> Ed25519PrivateKey:
    return load_private_key(key_hex[0])


@pytest.fixture
def public_key(key_hex: tuple[str, str]) -> Ed25519PublicKey:
    return load_public_key(key_hex[1])


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def environment(crate_dir: Path, temp_dir: Path) -> BuildEnvironment:
    return BuildEnvironment(
        configuration=BuildConfiguration.RELEASE,
        manifest_dir=crate_dir,
        target_temp_dir=temp_dir,
        crate_info=PackageIdentity.load(crate_dir),
        crate_options=CrateOptions(),
    )


@pytest.fixture
def runner() -> FakeProcessRunner:
    return FakeProcessRunner()


@pytest.fixture
def sleeps() -> list[float]:
    """Collects delays passed to an injected sleep."""
    return []
