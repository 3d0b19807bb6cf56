"""Merkle tree data model for MTFS."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from . import DEFAULT_CHUNK_SIZE, MAX_CHUNK_SIZE, MIN_CHUNK_SIZE
from .exceptions import InvalidConfigurationError, StructuralViolationError
from .hashing import compute_hash, encode_name

if TYPE_CHECKING:
    from .builder import BuildWarning
    from .export import TreeStats

NodeType = Literal["file", "directory"]


@dataclass
class MerkleNode:
    """A node in the Merkle tree representing a file or directory."""

    name: str  # Local name, not a path
    type: NodeType
    hash: str = ""
    path: str = "."  # Relative path from build root
    content_hash: str = ""  # For files only
    chunk_hashes: list[str] = field(default_factory=list)  # For files only
    size: int = 0  # For files only
    children: dict[str, MerkleNode] = field(default_factory=dict)
    _depth: int | None = field(default=None, init=False, repr=False, compare=False)

    def __setattr__(self, key: str, value: object) -> None:
        if key == "type" and "type" in self.__dict__:
            raise StructuralViolationError(f"Node type is immutable: {self.name}")
        super().__setattr__(key, value)

    @property
    def is_file(self) -> bool:
        return self.type == "file"

    @property
    def is_directory(self) -> bool:
        return self.type == "directory"

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def add_child(self, child: MerkleNode | None) -> None:
        """Attach a child node, replacing any existing child with the same name."""
        if self.is_file:
            raise StructuralViolationError(f"Cannot add child to a file node: {self.name}")
        if child is None:
            raise StructuralViolationError(f"Cannot add null child to node: {self.name}")
        self.children[child.name] = child
        self._depth = None

    def sorted_children(self) -> Iterator[MerkleNode]:
        """Yield children in the name order used for hashing."""
        for name in sorted(self.children, key=encode_name):
            yield self.children[name]

    def compute_hash(self) -> str:
        """Compute this node's hash from its subtree without storing anything."""
        if self.is_file:
            return self.content_hash
        return compute_directory_hash(
            self.name,
            [(child.name, child.compute_hash()) for child in self.children.values()],
        )

    def refresh_hash(self) -> str:
        """Recompute and store hashes for this node and every descendant."""
        if self.is_file:
            self.hash = self.content_hash
        else:
            self.hash = compute_directory_hash(
                self.name,
                [(child.name, child.refresh_hash()) for child in self.children.values()],
            )
        return self.hash

    @property
    def depth(self) -> int:
        """Height of the subtree below this node (0 for leaves)."""
        if self._depth is None:
            if not self.children:
                self._depth = 0
            else:
                self._depth = max(child.depth for child in self.children.values()) + 1
        return self._depth

    @property
    def total_size(self) -> int:
        """Bytes of all files under this node."""
        if self.is_file:
            return self.size
        return sum(child.total_size for child in self.children.values())

    @property
    def file_count(self) -> int:
        if self.is_file:
            return 1
        return sum(child.file_count for child in self.children.values())

    def iter_nodes(self) -> Iterator[MerkleNode]:
        """Depth-first pre-order walk, children in name order."""
        yield self
        for child in self.sorted_children():
            yield from child.iter_nodes()


@dataclass
class TreeDiff:
    """File paths, relative to the build root, that differ between two trees."""

    new: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)

    @property
    def total_changes(self) -> int:
        return sum(map(len, (self.new, self.modified, self.deleted)))

    @property
    def has_changes(self) -> bool:
        return self.total_changes > 0


def compute_directory_hash(name: str, child_hashes: list[tuple[str, str]]) -> str:
    """Compute a directory hash from its (child name, child hash) pairs.

    An empty directory hashes its own name. Otherwise the digest covers
    "name:hash;" for every child, ordered by the bytes of the encoded name
    and regardless of the order the pairs are given in.
    """
    if not child_hashes:
        return compute_hash(name)
    combined = b"".join(
        encode_name(child_name) + b":" + child_hash.encode() + b";"
        for child_name, child_hash in sorted(child_hashes, key=lambda pair: encode_name(pair[0]))
    )
    return compute_hash(combined)


def validate_chunk_size(chunk_size: int) -> int:
    """Return chunk_size if it lies within the allowed bounds."""
    if not MIN_CHUNK_SIZE <= chunk_size <= MAX_CHUNK_SIZE:
        raise InvalidConfigurationError(
            f"Invalid chunk size {chunk_size}. Must be between "
            f"{MIN_CHUNK_SIZE} and {MAX_CHUNK_SIZE} bytes"
        )
    return chunk_size


class MerkleTree:
    """Content-addressed tree mirroring a directory structure."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._chunk_size = validate_chunk_size(chunk_size)
        self.root: MerkleNode | None = None
        self.content_index: dict[str, MerkleNode] = {}
        self.warnings: list[BuildWarning] = []
        self.root_path: Path | None = None

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @chunk_size.setter
    def chunk_size(self, value: int) -> None:
        self._chunk_size = validate_chunk_size(value)

    def set_chunk_size(self, chunk_size: int) -> None:
        """Set the chunk size used by the next build; the old value is kept on error."""
        self.chunk_size = chunk_size

    def build(self, directory: Path | str) -> MerkleNode:
        """
        Build the tree from a directory, discarding any previous build.

        Args:
            directory: Root directory to walk

        Returns:
            The root node with all hashes computed

        Raises:
            PathNotFoundError: If directory does not exist
            NotADirectoryError: If directory is not a directory
        """
        from .builder import TreeBuilder

        result = TreeBuilder(self.chunk_size).build(directory)
        self.root = result.root
        self.content_index = result.content_index
        self.warnings = result.warnings
        self.root_path = Path(directory)
        return result.root

    def verify(self) -> bool:
        """Recompute every hash and compare with the stored values."""
        from .verify import verify_node

        return verify_node(self.root)

    def verify_on_disk(self) -> bool:
        """Re-read the last build root and report whether any file changed."""
        from .verify import verify_on_disk

        return not verify_on_disk(self).has_changes

    def stats(self) -> TreeStats:
        from .export import collect_stats

        return collect_stats(self)

    def find_node(self, name: str) -> MerkleNode | None:
        """Find the first node with the given local name."""
        from .export import find_node

        return find_node(self.root, name)

    def to_json(self) -> str:
        from .export import to_json

        return to_json(self)

    def compare(self, other: MerkleTree) -> TreeDiff:
        """List the files that differ between this tree and a newer one."""
        diff = TreeDiff()
        diff_nodes(self.root, other.root, diff)
        return diff


def _file_paths(node: MerkleNode | None) -> Iterator[str]:
    if node is None:
        return
    for descendant in node.iter_nodes():
        if descendant.is_file:
            yield descendant.path


def diff_nodes(old: MerkleNode | None, new: MerkleNode | None, diff: TreeDiff) -> None:
    """Record in diff every file path that differs between old and new.

    Subtrees with equal hashes are not descended into. A path whose node
    changed kind, or exists on one side only, counts as deleted files from
    old plus new files from new.
    """
    if old is None or new is None or old.type != new.type:
        diff.deleted.extend(_file_paths(old))
        diff.new.extend(_file_paths(new))
        return

    if old.hash == new.hash:
        return

    if old.is_file:
        diff.modified.append(new.path)
        return

    for name in sorted(old.children.keys() | new.children.keys(), key=encode_name):
        diff_nodes(old.children.get(name), new.children.get(name), diff)
