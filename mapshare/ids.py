"""Short opaque identifiers for stored records."""

from __future__ import annotations

import secrets

from mapshare.errors import ResourceExhausted

# URL-safe, the same 64 symbols nanoid draws from
ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz_-"
MIN_ID_SIZE = 8
DEFAULT_ID_SIZE = 8


def generate_id(size: int = DEFAULT_ID_SIZE) -> str:
    """Return a random identifier of ``size`` URL-safe characters.

    Eight characters give 48 bits of entropy, which is plenty for
    user-shared map links.

    Raises:
        ValueError: size below MIN_ID_SIZE.
        ResourceExhausted: the OS random source failed.
    """
    if size < MIN_ID_SIZE:
        raise ValueError(f"id size must be at least {MIN_ID_SIZE}, got {size}")
    try:
        raw = secrets.token_bytes(size)
    except (OSError, NotImplementedError) as e:
        raise ResourceExhausted(f"Entropy source unavailable: {e}") from e
    # 256 is a multiple of 64, so masking keeps the distribution uniform
    return "".join(ALPHABET[b & 63] for b in raw)


def generate_hex_id(nbytes: int = 8) -> str:
    """Return a hex identifier (used for map session ids)."""
    try:
        return secrets.token_hex(nbytes)
    except (OSError, NotImplementedError) as e:
        raise ResourceExhausted(f"Entropy source unavailable: {e}") from e
