"""Hashing utilities.

Content hashes are lowercase hex SHA-256 digests of the raw file bytes.
Hex (not raw bytes) because the digest is also a SQLite key and a cache filename.

Why SHA-256:
- deterministic across machines
- stable for dedup keys across runs
- collisions are out of scope
"""

import hashlib

_CHUNK = 1 << 16


def content_digest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def file_digest(path: str) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for block in iter(lambda: f.read(_CHUNK), b""):
            h.update(block)
    return h.hexdigest()
