from __future__ import annotations

import base64
import binascii
import hashlib
import json
from typing import NewType

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

# Stronger semantic aliases
PublicKeyB64 = NewType("PublicKeyB64", str)
SignatureB64 = NewType("SignatureB64", str)

PUBLIC_KEY_LENGTH = 32


def json_to_bytes(data: dict) -> bytes:
    """Serialize dict to canonical JSON bytes for signing/verification."""
    return json.dumps(data, separators=(",", ":"), sort_keys=True).encode("utf-8")


def generate_private_key() -> ed25519.Ed25519PrivateKey:
    return ed25519.Ed25519PrivateKey.generate()


def public_key_b64(
    key: ed25519.Ed25519PrivateKey | ed25519.Ed25519PublicKey,
) -> PublicKeyB64:
    """Return the base64-encoded raw 32-byte public key for a private or public key."""
    if isinstance(key, ed25519.Ed25519PrivateKey):
        key = key.public_key()
    raw = key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    return PublicKeyB64(base64.b64encode(raw).decode("utf-8"))


def decode_public_key_bytes(value: str) -> bytes:
    """Decode a base64 public key string, raising ValueError unless it is 32 bytes."""
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Public key is not valid base64: {e}") from e
    if len(raw) != PUBLIC_KEY_LENGTH:
        raise ValueError(
            f"Public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(raw)}"
        )
    return raw


def is_valid_public_key(value: str) -> bool:
    try:
        decode_public_key_bytes(value)
    except ValueError:
        return False
    return True


def load_public_key_from_b64(value: str) -> ed25519.Ed25519PublicKey:
    """Load a cryptography public key object from a base64 raw public key."""
    return ed25519.Ed25519PublicKey.from_public_bytes(decode_public_key_bytes(value))


def load_private_key_from_pem(pem_str: str) -> ed25519.Ed25519PrivateKey:
    """Load an Ed25519 private key object from a PEM-formatted string."""
    key = serialization.load_pem_private_key(pem_str.encode(), password=None)
    if not isinstance(key, ed25519.Ed25519PrivateKey):
        raise ValueError("Private key must be an Ed25519 key")
    return key


def private_key_to_pem(private_key: ed25519.Ed25519PrivateKey) -> str:
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


def sign_bytes(private_key: ed25519.Ed25519PrivateKey, payload_bytes: bytes) -> str:
    """Sign bytes with Ed25519 and return the base64-encoded signature."""
    return base64.b64encode(private_key.sign(payload_bytes)).decode("utf-8")


def verify_signature_bytes(
    public_key: ed25519.Ed25519PublicKey, payload_bytes: bytes, signature_b64: str
) -> bool:
    """Verify a base64-encoded signature over payload bytes. Raises InvalidSignature on failure."""
    signature_bytes = base64.b64decode(signature_b64, validate=True)
    public_key.verify(signature_bytes, payload_bytes)
    return True


def generate_reference() -> PublicKeyB64:
    """Allocate a fresh single-use reference.

    The reference is the public half of a throwaway keypair: it is
    unpredictable, and the private half is discarded so nobody can sign
    for it.
    """
    return public_key_b64(generate_private_key())


def derive_holding_address(owner: str, token: str) -> PublicKeyB64:
    """Deterministic holding-account address for (owner, token)."""
    hasher = hashlib.sha256()
    hasher.update(b"couponpay:holding")
    hasher.update(decode_public_key_bytes(owner))
    hasher.update(decode_public_key_bytes(token))
    return PublicKeyB64(base64.b64encode(hasher.digest()).decode("utf-8"))


def derive_program_id(name: str) -> PublicKeyB64:
    digest = hashlib.sha256(f"couponpay:program:{name}".encode("utf-8")).digest()
    return PublicKeyB64(base64.b64encode(digest).decode("utf-8"))
