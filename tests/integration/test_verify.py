"""Integration tests for integrity verification."""

import hashlib
from pathlib import Path

import pytest

from mtfs.merkle import MerkleTree
from mtfs.verify import verify_node, verify_on_disk


@pytest.fixture
def built_tree(sample_project: Path) -> MerkleTree:
    tree = MerkleTree()
    tree.build(sample_project)
    return tree


class TestVerifyInMemory:
    """Tests for recomputing and comparing stored hashes."""

    def test_fresh_tree_is_valid(self, built_tree: MerkleTree):
        assert built_tree.verify() is True

    def test_empty_tree_is_vacuously_valid(self):
        assert MerkleTree().verify() is True
        assert verify_node(None) is True

    def test_tampered_file_fails_up_to_root(self, built_tree: MerkleTree):
        root = built_tree.root
        data = root.children["data"]
        archive = data.children["archive"]
        old_log = archive.children["old.log"]

        old_log.content_hash = hashlib.sha256(b"tampered").hexdigest()

        assert verify_node(old_log) is False
        assert verify_node(archive) is False
        assert verify_node(data) is False
        assert built_tree.verify() is False

    def test_tamper_leaves_siblings_valid(self, built_tree: MerkleTree):
        root = built_tree.root
        docs_hash = root.children["docs"].hash
        notes_hash = root.children["notes.txt"].hash

        root.children["data"].children["records.csv"].content_hash = "0" * 64

        assert verify_node(root.children["docs"]) is True
        assert verify_node(root.children["notes.txt"]) is True
        assert root.children["docs"].hash == docs_hash
        assert root.children["notes.txt"].hash == notes_hash

    def test_verify_does_not_overwrite_stored_hashes(self, built_tree: MerkleTree):
        root = built_tree.root
        stored = {node.path: node.hash for node in root.iter_nodes()}

        root.children["notes.txt"].content_hash = "0" * 64
        assert built_tree.verify() is False
        # A second pass still sees the mismatch
        assert built_tree.verify() is False

        assert {node.path: node.hash for node in root.iter_nodes()} == stored

    def test_refresh_after_tamper_restores_validity(self, built_tree: MerkleTree):
        root = built_tree.root
        root.children["notes.txt"].content_hash = "0" * 64

        root.refresh_hash()

        assert built_tree.verify() is True


class TestVerifyOnDisk:
    """Tests for re-reading the build root and diffing."""

    def test_unchanged_directory(self, built_tree: MerkleTree):
        assert built_tree.verify_on_disk() is True
        assert not verify_on_disk(built_tree).has_changes

    def test_modified_file_detected(self, built_tree: MerkleTree, sample_project: Path):
        (sample_project / "data" / "archive" / "old.log").write_text("rewritten\n")

        diff = verify_on_disk(built_tree)

        assert built_tree.verify_on_disk() is False
        assert diff.modified == ["data/archive/old.log"]
        assert diff.new == []
        assert diff.deleted == []

    def test_added_and_removed_files_detected(self, built_tree: MerkleTree, sample_project: Path):
        (sample_project / "docs" / "readme.md").unlink()
        (sample_project / "docs" / "guide.md").write_text("guide\n")

        diff = verify_on_disk(built_tree)

        assert diff.new == ["docs/guide.md"]
        assert diff.deleted == ["docs/readme.md"]

    def test_unbuilt_tree_has_no_changes(self):
        assert MerkleTree().verify_on_disk() is True

    def test_stored_tree_untouched(self, built_tree: MerkleTree, sample_project: Path):
        root_hash = built_tree.root.hash
        (sample_project / "notes.txt").write_text("changed\n")

        verify_on_disk(built_tree)

        assert built_tree.root.hash == root_hash
        assert built_tree.verify() is True
