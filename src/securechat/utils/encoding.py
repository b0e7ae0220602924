# src/securechat/utils/encoding.py
"""Text encodings for keys and ciphertext blobs."""

from __future__ import annotations

import base64
import binascii

PUBKEY_LENGTH_BYTES = 32


def b64encode(data: bytes) -> str:
    """Encode bytes as standard, padded base64."""
    return base64.b64encode(data).decode("ascii")


def b64decode(data: str) -> bytes:
    """Strictly decode standard base64.

    Raises:
        ValueError: If `data` contains characters outside the alphabet or bad padding.
    """
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValueError(f"Invalid base64 encoding: {err}") from err


def _decode_hex(data: str) -> bytes:
    try:
        return bytes.fromhex(data)
    except ValueError as err:
        raise ValueError(f"Invalid hex encoding: {err}") from err


def decode_public_key(encoded: str) -> bytes:
    """Decode a 32-byte public key given as base64 or hex."""
    cleaned = encoded.strip()
    errors: list[str] = []
    for decoder in (b64decode, _decode_hex):
        try:
            result = decoder(cleaned)
        except ValueError as err:
            errors.append(str(err))
            continue
        if len(result) != PUBKEY_LENGTH_BYTES:
            errors.append(f"public keys must be {PUBKEY_LENGTH_BYTES} bytes")
            continue
        return result
    joined = "; ".join(errors) if errors else "unknown decoding error"
    raise ValueError(f"Invalid public key format: {joined}")
