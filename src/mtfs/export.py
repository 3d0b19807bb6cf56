"""Statistics, JSON export and lookup over built Merkle trees."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from .merkle import MerkleNode, MerkleTree


@dataclass
class TreeStats:
    """Aggregate counts for a built tree."""

    files: int = 0
    directories: int = 0
    total_size: int = 0
    depth: int = 0
    root_hash: str = ""


class ExportedNode(BaseModel):
    """One node of a JSON export, as read back for comparison."""

    type: Literal["file", "directory"]
    hash: str
    size: int | None = None
    chunks: int | None = None
    content_hash: str | None = None
    children: dict[str, ExportedNode] = Field(default_factory=dict)


def collect_stats(tree: MerkleTree) -> TreeStats:
    """Count files, directories and bytes in a single traversal."""
    if tree.root is None:
        return TreeStats()

    stats = TreeStats(depth=tree.root.depth, root_hash=tree.root.hash)
    _collect_stats(tree.root, stats)
    return stats


def _collect_stats(node: MerkleNode, stats: TreeStats) -> None:
    if node.is_file:
        stats.files += 1
        stats.total_size += node.size
    else:
        stats.directories += 1
        for child in node.children.values():
            _collect_stats(child, stats)


def node_to_dict(node: MerkleNode) -> dict[str, Any]:
    """Serialize a node to a dictionary, children in name order."""
    result: dict[str, Any] = {
        "type": node.type,
        "hash": node.hash,
    }
    if node.is_file:
        result["size"] = node.size
        result["chunks"] = len(node.chunk_hashes)
        result["content_hash"] = node.content_hash
    elif node.children:
        result["children"] = {
            child.name: node_to_dict(child) for child in node.sorted_children()
        }
    return result


def to_json(tree: MerkleTree) -> str:
    """Export the tree as JSON keyed by the root name. An empty tree gives "{}"."""
    if tree.root is None:
        return "{}"
    return json.dumps({tree.root.name: node_to_dict(tree.root)}, indent=2)


def node_from_dict(name: str, data: dict[str, Any] | ExportedNode, path: str = ".") -> MerkleNode:
    """Rebuild a hash-only node tree from an export.

    Chunk hashes are not part of an export, so file nodes come back with
    an empty chunk list.
    """
    exported = data if isinstance(data, ExportedNode) else ExportedNode.model_validate(data)
    node = MerkleNode(
        name=name,
        type=exported.type,
        hash=exported.hash,
        path=path,
        content_hash=exported.content_hash or "",
        size=exported.size or 0,
    )
    for child_name, child_data in exported.children.items():
        child_path = child_name if path == "." else f"{path}/{child_name}"
        node.add_child(node_from_dict(child_name, child_data, child_path))
    return node


def load_export(export_path: Path) -> MerkleTree:
    """Load a JSON export written by to_json into a hash-only tree."""
    with open(export_path) as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Export must be a JSON object: {export_path}")

    tree = MerkleTree()
    if not data:
        return tree
    if len(data) != 1:
        raise ValueError(f"Export must hold exactly one root entry: {export_path}")

    name, root_data = next(iter(data.items()))
    tree.root = node_from_dict(name, root_data)
    return tree


def find_node(node: MerkleNode | None, name: str) -> MerkleNode | None:
    """Return the first node named name in a depth-first walk, or None."""
    if node is None:
        return None
    for candidate in node.iter_nodes():
        if candidate.name == name:
            return candidate
    return None
