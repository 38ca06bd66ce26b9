"""
Target catalog and artifact naming rules.

A Target is a Rust triple tagged with its platform family. Naming and
packaging rules live in a small per-family table instead of being
string-matched at call sites.
"""

from __future__ import annotations

import platform
from dataclasses import dataclass, field
from enum import Enum


class Family(str, Enum):
    ANDROID = "android"
    IOS_DEVICE = "ios-device"
    IOS_SIMULATOR = "ios-simulator"
    MACOS = "macos"
    LINUX = "linux"
    WINDOWS = "windows"


class ArtifactKind(str, Enum):
    STATIC_LIBRARY = "static-library"
    DYNAMIC_LIBRARY = "dynamic-library"


@dataclass(frozen=True)
class NamingRules:
    """File naming conventions for one platform family."""

    static: tuple[str, ...]
    dynamic: tuple[str, ...]
    # Emitted by local builds only; never published.
    local_only_dynamic: tuple[str, ...] = ()
    default_kind: ArtifactKind = ArtifactKind.DYNAMIC_LIBRARY
    # Xcode PLATFORM_NAME for Apple families.
    darwin_platform: str | None = None


_APPLE = dict(
    static=("lib{lib}.a",),
    dynamic=("lib{lib}.dylib",),
    default_kind=ArtifactKind.STATIC_LIBRARY,
)
_UNIX = dict(static=("lib{lib}.a",), dynamic=("lib{lib}.so",))

RULES: dict[Family, NamingRules] = {
    Family.ANDROID: NamingRules(**_UNIX),
    Family.LINUX: NamingRules(**_UNIX),
    Family.WINDOWS: NamingRules(
        static=("{lib}.lib",),
        dynamic=("{lib}.dll", "{lib}.dll.lib"),
        local_only_dynamic=("{lib}.pdb",),
    ),
    Family.MACOS: NamingRules(**_APPLE, darwin_platform="macosx"),
    Family.IOS_DEVICE: NamingRules(**_APPLE, darwin_platform="iphoneos"),
    Family.IOS_SIMULATOR: NamingRules(**_APPLE, darwin_platform="iphonesimulator"),
}


@dataclass(frozen=True)
class Target:
    """A platform/architecture/ABI combination. Equality is by triple."""

    triple: str
    family: Family = field(compare=False)
    arch: str = field(compare=False)
    abi: str | None = field(default=None, compare=False)
    android_min_sdk: int | None = field(default=None, compare=False)

    @property
    def rules(self) -> NamingRules:
        return RULES[self.family]

    @property
    def darwin_platform(self) -> str | None:
        return self.rules.darwin_platform

    @property
    def is_apple(self) -> bool:
        return self.darwin_platform is not None

    def __str__(self) -> str:
        return self.triple


CATALOG: tuple[Target, ...] = (
    Target("armv7-linux-androideabi", Family.ANDROID, "armv7", abi="armeabi-v7a", android_min_sdk=16),
    Target("aarch64-linux-android", Family.ANDROID, "arm64", abi="arm64-v8a", android_min_sdk=21),
    Target("i686-linux-android", Family.ANDROID, "x86", abi="x86", android_min_sdk=16),
    Target("x86_64-linux-android", Family.ANDROID, "x86_64", abi="x86_64", android_min_sdk=21),
    Target("x86_64-pc-windows-msvc", Family.WINDOWS, "x86_64"),
    Target("aarch64-pc-windows-msvc", Family.WINDOWS, "arm64"),
    Target("x86_64-unknown-linux-gnu", Family.LINUX, "x86_64"),
    Target("aarch64-unknown-linux-gnu", Family.LINUX, "arm64"),
    Target("x86_64-apple-darwin", Family.MACOS, "x86_64"),
    Target("aarch64-apple-darwin", Family.MACOS, "arm64"),
    Target("aarch64-apple-ios", Family.IOS_DEVICE, "arm64"),
    Target("aarch64-apple-ios-sim", Family.IOS_SIMULATOR, "arm64"),
    Target("x86_64-apple-ios", Family.IOS_SIMULATOR, "x86_64"),
)

_BY_TRIPLE = {t.triple: t for t in CATALOG}

# Flutter's android-* platform names map onto ABIs.
_FLUTTER_ANDROID = {
    "android-arm": "armeabi-v7a",
    "android-arm64": "arm64-v8a",
    "android-x86": "x86",
    "android-x64": "x86_64",
}


def for_triple(triple: str) -> Target | None:
    return _BY_TRIPLE.get(triple)


def for_android_abi(abi: str) -> Target | None:
    """Look up an Android target by ABI name or Flutter platform name."""
    abi = _FLUTTER_ANDROID.get(abi, abi)
    for target in CATALOG:
        if target.family is Family.ANDROID and target.abi == abi:
            return target
    return None


def android_targets() -> list[Target]:
    return [t for t in CATALOG if t.family is Family.ANDROID]


def for_darwin(platform_name: str, arch: str) -> Target | None:
    """Look up an Apple target by Xcode platform name and architecture."""
    if arch == "aarch64":
        arch = "arm64"
    for target in CATALOG:
        if target.darwin_platform == platform_name and target.arch == arch:
            return target
    return None


def select_darwin_archs(
    platform_name: str,
    archs: list[str],
    configuration: str,
    host_arch: str,
    native_arch: str | None = None,
) -> list[str]:
    """
    Reduce the Xcode ARCHS list to the architectures a build actually needs.

    Release builds use everything Xcode asks for. Debug builds for the
    simulator or macOS only need the architecture of the host (or the
    native arch Xcode reports), which avoids compiling every slice on
    each iteration.
    """
    if configuration.lower() != "debug":
        return list(archs)

    host = "arm64" if host_arch in ("arm64", "aarch64") else "x86_64"

    if platform_name == "iphonesimulator":
        return [host]
    if platform_name == "macosx":
        if native_arch:
            return [native_arch]
        if sorted(archs) == ["arm64", "x86_64"]:
            return [host]
        return list(archs)
    return list(archs)


def select_darwin_targets(
    platform_name: str,
    archs: list[str],
    configuration: str,
    host_arch: str | None = None,
    native_arch: str | None = None,
) -> list[Target]:
    """Resolve Xcode platform/arch hints to catalog targets, skipping unknown archs."""
    host_arch = host_arch or platform.machine()
    selected = select_darwin_archs(platform_name, archs, configuration, host_arch, native_arch)
    targets: list[Target] = []
    for arch in selected:
        target = for_darwin(platform_name, arch)
        if target is not None and target not in targets:
            targets.append(target)
    return targets


def buildable_targets(
    host_system: str | None = None,
    host_machine: str | None = None,
    *,
    include_android: bool = False,
) -> list[Target]:
    """
    Targets this host can compile for.

    Linux does not cross-compile, so only the host triple is returned.
    """
    host_system = (host_system or platform.system()).lower()
    host_machine = (host_machine or platform.machine()).lower()

    if host_system == "linux":
        triple = "aarch64-unknown-linux-gnu" if host_machine in ("aarch64", "arm64") else "x86_64-unknown-linux-gnu"
        result = [_BY_TRIPLE[triple]]
    elif host_system == "darwin":
        result = [t for t in CATALOG if t.is_apple]
    elif host_system == "windows":
        result = [t for t in CATALOG if t.family is Family.WINDOWS]
    else:
        result = []

    if include_android:
        result += android_targets()
    return result


def default_kind(target: Target) -> ArtifactKind:
    """Apple platforms link a static library into the bundle; everything else is dynamic."""
    return target.rules.default_kind


def artifact_names(
    target: Target,
    library_name: str,
    *,
    remote: bool,
    kind: ArtifactKind | None = None,
) -> list[str]:
    """
    File names a build produces for `target`.

    Args:
        target: Target being built
        library_name: Library stem (package name with underscores)
        remote: Published set only; drops local-only debug files
        kind: Override the family's default artifact kind
    """
    rules = target.rules
    kind = kind or rules.default_kind
    if kind is ArtifactKind.STATIC_LIBRARY:
        patterns = rules.static
    else:
        patterns = rules.dynamic if remote else rules.dynamic + rules.local_only_dynamic
    return [p.format(lib=library_name) for p in patterns]


def kind_for_file_name(file_name: str) -> ArtifactKind:
    """Classify an artifact by its file name."""
    if file_name.endswith((".dll", ".dll.lib", ".pdb", ".so", ".dylib")):
        return ArtifactKind.DYNAMIC_LIBRARY
    if file_name.endswith((".lib", ".a")):
        return ArtifactKind.STATIC_LIBRARY
    raise ValueError(f"Unknown artifact type for {file_name}")
