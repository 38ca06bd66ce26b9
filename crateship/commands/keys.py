"""Signing key generation."""

from __future__ import annotations

import json

from rich.console import Console

from ..signing import generate_key_pair


def run_gen_key(*, output_json: bool = False) -> int:
    private_hex, public_hex = generate_key_pair()

    if output_json:
        print(json.dumps({"private_key": private_hex, "public_key": public_hex}, indent=2))
        return 0

    console = Console()
    console.print(f"[bold]Public Key:[/bold] {public_hex}")
    console.print(f"[bold]Private Key:[/bold] {private_hex}")
    console.print()
    console.print("Put the public key in crateship.yaml as precompiled_binaries.public_key.", style="dim")
    console.print("Keep the private key secret; precompile-binaries reads it from PRIVATE_KEY.", style="dim")
    return 0
