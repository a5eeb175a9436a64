"""Stable request fingerprints.

The fingerprint doubles as the cache key, the queue key and the externally
visible image id, so it must not change between processes or releases.

Algorithm:
    BLAKE2b with an 8-byte (64-bit) digest over the UTF-8 bytes of
    `"{width}x{height}-{text}"`, rendered as 16 lowercase hex characters.
    Lone surrogates in `text` are encoded with `surrogatepass` so no string input
    can make the function raise.
"""

import hashlib


FINGERPRINT_DIGEST_SIZE = 8


def fingerprint(width: int, height: int, text: str) -> str:
    """Return the deterministic id for one (width, height, text) request."""
    content = f"{width}x{height}-{text}"
    digest = hashlib.blake2b(
        content.encode("utf-8", "surrogatepass"),
        digest_size=FINGERPRINT_DIGEST_SIZE,
    )
    return digest.hexdigest()
