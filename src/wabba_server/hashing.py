"""Content hashing for catalog identity.

Hashes are xxHash64 (seed 0) digests, serialized little-endian and encoded
as standard padded base64, the same form Wabbajack manifests use for their
``Hash`` fields.
"""

import base64
from pathlib import Path

import xxhash

_CHUNK_SIZE = 65_536  # 64 KB


def _encode(digest: int) -> str:
    return base64.b64encode(digest.to_bytes(8, "little")).decode("ascii")


def hash_bytes(data: bytes) -> str:
    return _encode(xxhash.xxh64_intdigest(data))


def compute_hash(file_path: Path) -> str:
    h = xxhash.xxh64()
    with file_path.open("rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return _encode(h.intdigest())


def to_base64url(hash_b64: str) -> str:
    """Convert a base64 hash into a filename-safe form without padding."""
    return hash_b64.replace("+", "-").replace("/", "_").rstrip("=")
