"""Builds Merkle trees by walking a directory on disk."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from . import DEFAULT_CHUNK_SIZE, MTFS_DIR
from .exceptions import (
    EntryUnreadableError,
    NotADirectoryError,
    PathNotFoundError,
)
from .hashing import hash_file_content
from .merkle import MerkleNode, validate_chunk_size

logger = logging.getLogger(__name__)


@dataclass
class BuildWarning:
    """An entry that was skipped during a build."""

    path: str  # Relative path from build root
    reason: str


@dataclass
class BuildResult:
    """Output of a single tree build."""

    root: MerkleNode
    content_index: dict[str, MerkleNode] = field(default_factory=dict)
    warnings: list[BuildWarning] = field(default_factory=list)


class TreeBuilder:
    """Walks a directory and constructs its Merkle tree."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.chunk_size = validate_chunk_size(chunk_size)
        self._content_index: dict[str, MerkleNode] = {}
        self._warnings: list[BuildWarning] = []
        self._root_path = Path(".")

    def build(self, directory: Path | str) -> BuildResult:
        """
        Walk directory and build a full Merkle tree.

        Entries that cannot be read are skipped and reported as warnings.
        Entries named .mtfs hold tool settings and are never part of a tree.

        Args:
            directory: Root directory to walk

        Returns:
            BuildResult with the root node, content index and warnings

        Raises:
            PathNotFoundError: If directory does not exist
            NotADirectoryError: If directory is not a directory
            EntryUnreadableError: If the root directory cannot be listed
        """
        root_path = Path(directory)
        if not root_path.exists():
            raise PathNotFoundError(f"Directory does not exist: {root_path}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Path is not a directory: {root_path}")

        self._content_index = {}
        self._warnings = []
        self._root_path = root_path

        logger.debug("Building tree for %s (chunk size %d)", root_path, self.chunk_size)
        root = self._build_directory(root_path, name=root_path.resolve().name, ancestors=frozenset())
        root.refresh_hash()

        return BuildResult(root=root, content_index=self._content_index, warnings=self._warnings)

    def _relative(self, path: Path) -> str:
        return path.relative_to(self._root_path).as_posix()

    def _build_node(self, path: Path, ancestors: frozenset[str]) -> MerkleNode:
        """Build a node for a single directory entry."""
        try:
            is_dir = path.is_dir()
            is_file = not is_dir and path.is_file()
        except OSError as e:
            raise EntryUnreadableError(f"Cannot stat {path}: {e.strerror or e}") from e

        if is_dir:
            return self._build_directory(path, name=path.name, ancestors=ancestors)
        if is_file:
            return self._build_file(path)
        if path.is_symlink():
            raise EntryUnreadableError(f"Broken symlink: {path}")
        if not path.exists():
            raise EntryUnreadableError(f"Entry vanished: {path}")
        raise EntryUnreadableError(f"Unsupported file type: {path}")

    def _build_file(self, path: Path) -> MerkleNode:
        try:
            digest = hash_file_content(path, self.chunk_size)
        except OSError as e:
            raise EntryUnreadableError(f"Cannot read file {path}: {e.strerror or e}") from e

        node = MerkleNode(
            name=path.name,
            type="file",
            path=self._relative(path),
            content_hash=digest.content_hash,
            chunk_hashes=digest.chunk_hashes,
            size=digest.size,
        )
        # Last file with a given content hash wins
        self._content_index[digest.content_hash] = node
        return node

    def _build_directory(self, path: Path, name: str, ancestors: frozenset[str]) -> MerkleNode:
        real_path = os.path.realpath(path)
        if real_path in ancestors:
            raise EntryUnreadableError(f"Symlink cycle: {path}")
        ancestors = ancestors | {real_path}

        node = MerkleNode(name=name, type="directory", path=self._relative(path))
        try:
            entries = list(path.iterdir())
        except OSError as e:
            raise EntryUnreadableError(f"Error reading directory {path}: {e.strerror or e}") from e

        for entry in entries:
            if entry.name == MTFS_DIR:
                logger.debug("Skipping settings directory %s", entry)
                continue
            try:
                child = self._build_node(entry, ancestors)
            except EntryUnreadableError as e:
                self._warnings.append(BuildWarning(path=self._relative(entry), reason=str(e)))
                logger.warning("Skipping %s - %s", entry, e)
                continue
            node.add_child(child)

        return node
