"""Tests for binder tree operations."""

import pytest

from nebuladocs.core import binder
from nebuladocs.core.item import Container, Document, new_document


def test_find_depth_first(tree):
    """Test finding nested and top-level items."""
    assert binder.find(tree, "b").title == "Scene B"
    assert binder.find(tree, "c").title == "Scene C"
    assert binder.find(tree, "missing") is None
    assert binder.find((), "a") is None


def test_iter_items_order(tree):
    """Test children come before later siblings."""
    assert [item.id for item in binder.iter_items(tree)] == ["part", "a", "sub", "b", "c"]


def test_find_parent_context(tree):
    """Test parent lookup for nested and top-level items."""
    nested = binder.find_parent_context(tree, "b")
    assert nested.parent.id == "sub"
    assert [item.id for item in nested.siblings] == ["b"]

    top = binder.find_parent_context(tree, "c")
    assert top.parent is None
    assert [item.id for item in top.siblings] == ["part", "c"]

    assert binder.find_parent_context(tree, "missing") is None


def test_update_replaces_path_and_shares_the_rest(tree):
    """Test update only rebuilds the ancestors of the changed item."""
    new_tree = binder.update(tree, "b", title="Renamed")

    assert binder.find(new_tree, "b").title == "Renamed"
    assert binder.find(tree, "b").title == "Scene B"
    assert new_tree[1] is tree[1]
    assert new_tree[0] is not tree[0]
    assert binder.find(new_tree, "a") is binder.find(tree, "a")


def test_update_missing_id_returns_input(tree):
    """Test update is a no-op for absent ids."""
    assert binder.update(tree, "missing", title="x") is tree


def test_update_rejects_fields_of_the_other_kind(tree):
    """Test documents cannot be given children."""
    with pytest.raises(TypeError):
        binder.update(tree, "c", children=())


def test_insert_into_container_expands_it():
    """Test inserting into a collapsed container."""
    folder = Container(id="f", title="Folder", is_expanded=False)
    doc = new_document("New")

    new_tree = binder.insert((folder,), "f", doc)

    assert new_tree[0].is_expanded is True
    assert new_tree[0].children == (doc,)


def test_insert_top_level(tree):
    """Test inserting without a parent appends at the top level."""
    doc = new_document("Last")
    new_tree = binder.insert(tree, None, doc)
    assert new_tree[-1] is doc
    assert len(new_tree) == 3


def test_insert_under_document_is_ignored(tree):
    """Test inserting under a non-container does nothing."""
    assert binder.insert(tree, "c", new_document()) is tree
    assert binder.insert(tree, "missing", new_document()) is tree


def test_delete_removes_subtree(tree):
    """Test deleting a container removes its descendants."""
    new_tree = binder.delete(tree, "sub")

    assert binder.find(new_tree, "sub") is None
    assert binder.find(new_tree, "b") is None
    assert binder.find(new_tree, "a") is not None
    assert binder.delete(tree, "missing") is tree


def test_subtree_ids(tree):
    """Test collecting an item and its descendants."""
    assert binder.subtree_ids(tree, "part") == ["part", "a", "sub", "b"]
    assert binder.subtree_ids(tree, "c") == ["c"]
    assert binder.subtree_ids(tree, "missing") == []


def test_toggles(tree):
    """Test expansion and bookmark toggles."""
    collapsed = binder.toggle_expanded(tree, "sub")
    assert binder.find(collapsed, "sub").is_expanded is False
    assert binder.toggle_expanded(tree, "c") is tree

    marked = binder.toggle_bookmark(tree, "c")
    assert binder.find(marked, "c").is_bookmarked is True
    assert binder.find(binder.toggle_bookmark(marked, "c"), "c").is_bookmarked is False


def test_documents_and_first_document(tree):
    """Test flattening the tree into documents."""
    assert [d.id for d in binder.documents(tree)] == ["a", "b", "c"]
    assert binder.first_document(tree).id == "a"
    assert binder.first_document((Container(id="empty"),)) is None


def test_word_count_and_duplicates(tree):
    """Test tree-wide word count and duplicate detection."""
    assert binder.word_count(tree) == 5
    assert binder.duplicate_ids(tree) == []

    clash = tree + (Document(id="a", title="Copy"),)
    assert binder.duplicate_ids(clash) == ["a"]


def test_update_is_idempotent(tree):
    """Test applying the same field change twice equals applying it once."""
    once = binder.update(tree, "b", title="Renamed", is_bookmarked=True)
    twice = binder.update(once, "b", title="Renamed", is_bookmarked=True)
    assert twice == once


def test_contains(tree):
    """Test membership for nested, top-level and absent ids."""
    assert binder.contains(tree, "b")
    assert binder.contains(tree, "part")
    assert not binder.contains(tree, "missing")
    assert not binder.contains((), "a")
