"""Integrity verification for built Merkle trees."""

from __future__ import annotations

import logging

from .builder import TreeBuilder
from .merkle import MerkleNode, MerkleTree, TreeDiff

logger = logging.getLogger(__name__)


def verify_node(node: MerkleNode | None) -> bool:
    """Check that node and every descendant still hash to their stored values.

    Each recomputed hash is compared with the stored one without
    overwriting it. The first mismatch fails the whole check. A missing
    node is vacuously valid.
    """
    if node is None:
        return True

    if node.compute_hash() != node.hash:
        logger.debug("Hash mismatch at %s", node.path)
        return False

    return all(verify_node(child) for child in node.sorted_children())


def verify_on_disk(tree: MerkleTree) -> TreeDiff:
    """Rebuild the tree's directory from disk and diff it against the stored tree.

    Returns an empty diff for a tree that was never built.
    """
    if tree.root is None or tree.root_path is None:
        return TreeDiff()

    current = MerkleTree(chunk_size=tree.chunk_size)
    current.root = TreeBuilder(tree.chunk_size).build(tree.root_path).root
    return tree.compare(current)
