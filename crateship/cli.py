"""CLI entrypoint for crateship."""

import logging
import os
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import BuildConfiguration

_DIR = click.Path(file_okay=False, dir_okay=True, path_type=Path)
_EXISTING_DIR = click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path)


def _configure_logging(verbose: bool) -> None:
    """Route the crateship logger hierarchy through one RichHandler on stderr."""
    logger = logging.getLogger("crateship")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=verbose,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _manifest_dir_option(f):
    return click.option(
        "--manifest-dir",
        type=_EXISTING_DIR,
        default=Path("."),
        show_default=True,
        help="Directory containing Cargo.toml",
    )(f)


def _android_options(f):
    f = click.option("--java-home", type=_DIR, default=None, help="JAVA_HOME used to run sdkmanager")(f)
    f = click.option("--android-min-sdk-version", type=int, default=None, help="Minimum Android SDK version")(f)
    f = click.option("--android-ndk-version", default=None, help="Android NDK version (e.g. 26.1.10909125)")(f)
    f = click.option("--android-sdk-location", type=_DIR, default=None, help="Android SDK location")(f)
    return f


@click.group()
@click.version_option(__version__, prog_name="crateship")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging (also CRATESHIP_VERBOSE=1)")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """crateship - Signed precompiled binaries for Rust crates.

    Publish signed build outputs to a release, fetch and verify them at
    build time, and fall back to cargo when nothing trustworthy is available.
    """
    ctx.ensure_object(dict)
    verbose = verbose or os.environ.get("CRATESHIP_VERBOSE") == "1"
    _configure_logging(verbose)
    ctx.obj["verbose"] = verbose


@cli.command("gen-key")
@click.option("--json", "output_json", is_flag=True, help="Output the key pair as JSON")
def gen_key(output_json: bool) -> None:
    """Generate a new Ed25519 key pair for signing binaries."""
    from .commands.keys import run_gen_key

    sys.exit(run_gen_key(output_json=output_json))


@cli.command("hash")
@_manifest_dir_option
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def hash_(manifest_dir: Path, output_json: bool) -> None:
    """Print the crate's version, release tag and content hash."""
    from .commands.hash_cmd import run_hash

    sys.exit(run_hash(manifest_dir, output_json=output_json))


@cli.command("precompile-binaries")
@_manifest_dir_option
@click.option("--repository", default=None, help="owner/name of the release repository to upload to")
@click.option("--output", type=_DIR, default=None, help="Write signed binaries to this directory instead")
@click.option("--target", "target_triples", multiple=True, help="Rust target triple (repeatable; default: host)")
@click.option("--temp-dir", type=_DIR, default=None, help="Working directory (kept for cache reuse when given)")
@_android_options
@click.option("--glibc-version", default=None, help="Link Linux targets against this glibc (uses cargo-zigbuild)")
@click.option("--compress", is_flag=True, help="zstd-compress binaries before signing")
def precompile_binaries(
    manifest_dir: Path,
    repository: str | None,
    output: Path | None,
    target_triples: tuple[str, ...],
    temp_dir: Path | None,
    android_sdk_location: Path | None,
    android_ndk_version: str | None,
    android_min_sdk_version: int | None,
    java_home: Path | None,
    glibc_version: str | None,
    compress: bool,
) -> None:
    """Build, sign and publish binaries for the current crate version.

    Requires PRIVATE_KEY (hex) in the environment. With --repository the
    release tagged v<version> must already exist.

    Examples:

        crateship precompile-binaries --manifest-dir rust --repository owner/repo

        crateship precompile-binaries --manifest-dir rust --output dist --compress
    """
    from .commands.precompile import run_precompile_binaries

    exit_code = run_precompile_binaries(
        manifest_dir,
        private_key_hex=os.environ.get("PRIVATE_KEY"),
        repository=repository,
        output=output,
        target_triples=target_triples,
        temp_dir=temp_dir,
        android_sdk_location=android_sdk_location,
        android_ndk_version=android_ndk_version,
        android_min_sdk_version=android_min_sdk_version,
        java_home=java_home,
        glibc_version=glibc_version,
        compress=compress,
    )
    sys.exit(exit_code)


@cli.command("verify-binaries")
@_manifest_dir_option
@click.option("--json", "output_json", is_flag=True, help="Output the report as JSON")
@click.option("--verify-signatures", is_flag=True, help="Also fetch and verify every signature")
@click.option("--local-dir", type=_EXISTING_DIR, default=None, help="Audit a local output directory instead")
def verify_binaries(manifest_dir: Path, output_json: bool, verify_signatures: bool, local_dir: Path | None) -> None:
    """Check that every catalog target is published and signed."""
    from .commands.verify_cmd import run_verify_binaries

    exit_code = run_verify_binaries(
        manifest_dir,
        output_json=output_json,
        verify_signatures=verify_signatures,
        local_dir=local_dir,
    )
    sys.exit(exit_code)


@cli.command()
@_manifest_dir_option
@click.option("--output-dir", type=_DIR, required=True, help="Where resolved artifacts are copied")
@click.option("--temp-dir", type=_DIR, required=True, help="Working directory for downloads and cargo output")
@click.option(
    "--configuration",
    type=click.Choice([c.value for c in BuildConfiguration]),
    default="release",
    show_default=True,
)
@click.option("--target", "target_triples", multiple=True, help="Rust target triple (repeatable)")
@click.option("--darwin-platform", default=None, help="Xcode PLATFORM_NAME (macosx, iphoneos, iphonesimulator)")
@click.option("--darwin-arch", "darwin_archs", multiple=True, help="Xcode ARCHS entry (repeatable)")
@click.option("--android-abi", "android_abis", multiple=True, help="Android ABI or Flutter platform name (repeatable)")
@_android_options
@click.option("--glibc-version", default=None, help="Link Linux targets against this glibc (uses cargo-zigbuild)")
@click.option("--macos-deployment-target", default=None, help="MACOSX_DEPLOYMENT_TARGET for macOS builds")
@click.option("--ios-deployment-target", default=None, help="IPHONEOS_DEPLOYMENT_TARGET for iOS builds")
@click.option("--root-project-dir", type=_DIR, default=None, help="Directory holding crateship_options.yaml")
@click.option("--prune", "prune_after", is_flag=True, help="Prune the cargo target directory afterwards")
def build(
    manifest_dir: Path,
    output_dir: Path,
    temp_dir: Path,
    configuration: str,
    target_triples: tuple[str, ...],
    darwin_platform: str | None,
    darwin_archs: tuple[str, ...],
    android_abis: tuple[str, ...],
    android_sdk_location: Path | None,
    android_ndk_version: str | None,
    android_min_sdk_version: int | None,
    java_home: Path | None,
    glibc_version: str | None,
    macos_deployment_target: str | None,
    ios_deployment_target: str | None,
    root_project_dir: Path | None,
    prune_after: bool,
) -> None:
    """Provide binaries for a host build system.

    Verified precompiled binaries are used when every artifact of a target
    is available; otherwise the target is built with cargo.
    """
    from .commands.build_cmd import run_build

    exit_code = run_build(
        manifest_dir,
        output_dir,
        temp_dir,
        configuration=configuration,
        target_triples=target_triples,
        darwin_platform=darwin_platform,
        darwin_archs=darwin_archs,
        android_abis=android_abis,
        android_sdk_location=android_sdk_location,
        android_ndk_version=android_ndk_version,
        android_min_sdk_version=android_min_sdk_version,
        java_home=java_home,
        glibc_version=glibc_version,
        macos_deployment_target=macos_deployment_target,
        ios_deployment_target=ios_deployment_target,
        root_project_dir=root_project_dir,
        prune_after=prune_after,
    )
    sys.exit(exit_code)


@cli.group()
def ledger() -> None:
    """Inspect or reset the version -> content hash ledger."""


@ledger.command("show")
@click.option("--temp-dir", type=_DIR, required=True, help="Directory holding the ledger file")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def ledger_show(temp_dir: Path, output_json: bool) -> None:
    """List recorded versions and their content hashes."""
    from .commands.ledger_cmd import run_ledger_show

    sys.exit(run_ledger_show(temp_dir, output_json=output_json))


@ledger.command("clear")
@click.option("--temp-dir", type=_DIR, required=True, help="Directory holding the ledger file")
def ledger_clear(temp_dir: Path) -> None:
    """Delete the ledger file."""
    from .commands.ledger_cmd import run_ledger_clear

    sys.exit(run_ledger_clear(temp_dir))


@cli.command()
@click.option("--target-dir", type=_DIR, required=True, help="Cargo target directory to prune")
@_manifest_dir_option
def prune(target_dir: Path, manifest_dir: Path) -> None:
    """Remove the crate's own build state, keeping dependency caches."""
    from .commands.prune_cmd import run_prune

    sys.exit(run_prune(target_dir, manifest_dir))


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
