"""Integration tests for statistics, JSON export and lookup."""

import json
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from mtfs.export import collect_stats, load_export, node_from_dict, node_to_dict
from mtfs.merkle import MerkleNode, MerkleTree


class TestStats:
    def test_empty_tree_stats_are_zero(self):
        stats = collect_stats(MerkleTree())
        assert (stats.files, stats.directories, stats.total_size, stats.depth) == (0, 0, 0, 0)
        assert stats.root_hash == ""

    def test_sample_project_stats(self, sample_project: Path):
        tree = MerkleTree()
        tree.build(sample_project)

        total = sum(p.stat().st_size for p in sample_project.rglob("*") if p.is_file())
        stats = tree.stats()

        assert stats.files == 4
        assert stats.directories == 4
        assert stats.total_size == total
        assert stats.depth == 3
        assert tree.root.total_size == total
        assert tree.root.file_count == 4


class TestJsonExport:
    def test_empty_tree_exports_empty_object(self):
        assert MerkleTree().to_json() == "{}"

    def test_hello_tree_export(self, hello_tree: Path):
        tree = MerkleTree()
        root = tree.build(hello_tree)

        data = json.loads(tree.to_json())

        assert list(data) == ["root"]
        exported = data["root"]
        assert exported["type"] == "directory"
        assert exported["hash"] == root.hash
        assert list(exported["children"]) == ["a.txt", "empty"]
        assert exported["children"]["a.txt"] == {
            "type": "file",
            "hash": root.children["a.txt"].hash,
            "size": 5,
            "chunks": 1,
            "content_hash": root.children["a.txt"].content_hash,
        }
        # Empty directories carry no children key
        assert exported["children"]["empty"] == {
            "type": "directory",
            "hash": root.children["empty"].hash,
        }

    def test_children_emitted_in_name_order(self, tmp_path: Path):
        root = tmp_path / "ordered"
        root.mkdir()
        for name in ["zeta", "alpha", "Mid", "beta"]:
            (root / name).write_text(name)

        tree = MerkleTree()
        tree.build(root)

        assert list(node_to_dict(tree.root)["children"]) == ["Mid", "alpha", "beta", "zeta"]

    def test_export_compares_clean_against_rebuild(self, sample_project: Path, tmp_path: Path):
        tree = MerkleTree()
        tree.build(sample_project)
        export_path = tmp_path / "export.json"
        export_path.write_text(tree.to_json())

        previous = load_export(export_path)

        assert previous.root.hash == tree.root.hash
        assert not previous.compare(tree).has_changes

        (sample_project / "notes.txt").write_text("edited\n")
        rebuilt = MerkleTree()
        rebuilt.build(sample_project)

        assert previous.compare(rebuilt).modified == ["notes.txt"]

    def test_load_empty_export(self, tmp_path: Path):
        export_path = tmp_path / "empty.json"
        export_path.write_text("{}")

        assert load_export(export_path).root is None

    def test_load_export_with_two_roots_fails(self, tmp_path: Path):
        export_path = tmp_path / "bad.json"
        export_path.write_text(json.dumps({"a": {}, "b": {}}))

        with pytest.raises(ValueError):
            load_export(export_path)

    @pytest.mark.parametrize("payload", ["[]", "[1]", '"root"', "0"])
    def test_load_non_object_export_fails(self, tmp_path: Path, payload: str):
        export_path = tmp_path / "bad.json"
        export_path.write_text(payload)

        with pytest.raises(ValueError, match="JSON object"):
            load_export(export_path)

    def test_children_dict_follows_hash_order(self):
        raw = os.fsdecode(b"\x80")
        root = MerkleNode(name="root", type="directory")
        for name in ["\u00e9", raw, "a"]:
            root.add_child(MerkleNode(name=name, type="directory"))
        root.refresh_hash()

        assert list(node_to_dict(root)["children"]) == ["a", raw, "\u00e9"]

    def test_node_from_dict_rejects_bad_type(self):
        with pytest.raises(ValidationError):
            node_from_dict("x", {"type": "socket", "hash": "abc"})


class TestFindNode:
    def test_find_existing(self, sample_project: Path):
        tree = MerkleTree()
        tree.build(sample_project)

        node = tree.find_node("old.log")

        assert node is not None
        assert node.path == "data/archive/old.log"

    def test_find_root_by_name(self, hello_tree: Path):
        tree = MerkleTree()
        root = tree.build(hello_tree)

        assert tree.find_node("root") is root

    def test_find_missing(self, sample_project: Path):
        tree = MerkleTree()
        tree.build(sample_project)

        assert tree.find_node("nope") is None

    def test_find_on_empty_tree(self):
        assert MerkleTree().find_node("anything") is None
