"""
Ed25519 signing and verification of artifact bytes.

Signatures are raw 64-byte Ed25519 signatures over the exact bytes that go
over the wire (the compressed bytes when compression is used). Keys are
exchanged as hex: public keys are 32 bytes, private keys either the
32-byte seed or the 64-byte seed||public form.
"""

from __future__ import annotations

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from .errors import ConfigError

SIGNATURE_SIZE = 64


def _public_bytes_raw(public_key: Ed25519PublicKey) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def _decode_hex(text: str, what: str) -> bytes:
    try:
        return bytes.fromhex(text.strip())
    except ValueError as e:
        raise ConfigError(f"{what} is not valid hex") from e


def load_private_key(hex_key: str) -> Ed25519PrivateKey:
    """
    Parse a hex private key.

    Raises:
        ConfigError: Wrong length, bad hex, or the embedded public half
            does not match the seed
    """
    raw = _decode_hex(hex_key, "Private key")
    if len(raw) not in (32, 64):
        raise ConfigError("Private key must be 32 or 64 bytes long")
    key = Ed25519PrivateKey.from_private_bytes(raw[:32])
    if len(raw) == 64 and _public_bytes_raw(key.public_key()) != raw[32:]:
        raise ConfigError("Private key public half does not match its seed")
    return key


def load_public_key(hex_key: str) -> Ed25519PublicKey:
    raw = _decode_hex(hex_key, "Public key")
    if len(raw) != 32:
        raise ConfigError("Public key must be 32 bytes long")
    return Ed25519PublicKey.from_public_bytes(raw)


def public_key_to_hex(public_key: Ed25519PublicKey) -> str:
    return _public_bytes_raw(public_key).hex()


def public_key_hex(private_key: Ed25519PrivateKey) -> str:
    return public_key_to_hex(private_key.public_key())


def generate_key_pair() -> tuple[str, str]:
    """
    Generate a signing key pair.

    Returns:
        (private_hex, public_hex); the private key is the 64-byte seed||public form
    """
    key = Ed25519PrivateKey.generate()
    seed = key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public = _public_bytes_raw(key.public_key())
    return (seed + public).hex(), public.hex()


def sign(private_key: Ed25519PrivateKey, data: bytes) -> bytes:
    return private_key.sign(data)


def verify(public_key: Ed25519PublicKey, data: bytes, signature: bytes) -> bool:
    """Return True only if `signature` is a valid signature of `data`."""
    if len(signature) != SIGNATURE_SIZE:
        return False
    try:
        public_key.verify(signature, data)
    except InvalidSignature:
        return False
    return True
