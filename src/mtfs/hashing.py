"""Content hashing for MTFS."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class FileDigest:
    """Hashes computed from one file's content."""

    content_hash: str
    size: int
    chunk_hashes: list[str] = field(default_factory=list)


def compute_hash(data: bytes | str) -> str:
    """Compute SHA256 hex digest. Strings are hashed as their encoded name bytes."""
    if isinstance(data, str):
        data = encode_name(data)
    return hashlib.sha256(data).hexdigest()


def encode_name(name: str) -> bytes:
    """Encode a filesystem name to the bytes that are hashed.

    Names that were decoded from non-UTF-8 bytes round-trip through
    surrogateescape to their original bytes.
    """
    return name.encode("utf-8", "surrogateescape")


def hash_file_content(filepath: Path, chunk_size: int) -> FileDigest:
    """Hash a file in fixed-size chunks.

    Every chunk is hashed on its own and also fed into the digest of the
    whole content. The last chunk may be shorter than chunk_size; an empty
    file has no chunks and the digest of empty input as content hash.
    """
    content = hashlib.sha256()
    chunk_hashes: list[str] = []
    size = 0
    with open(filepath, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            content.update(chunk)
            chunk_hashes.append(hashlib.sha256(chunk).hexdigest())
            size += len(chunk)
    return FileDigest(content_hash=content.hexdigest(), size=size, chunk_hashes=chunk_hashes)
