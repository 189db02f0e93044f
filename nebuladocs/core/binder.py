"""Persistent operations over the binder tree.

A tree is an ordered sequence of items. Every operation here is pure: it
returns a new tree and never mutates its input. Subtrees that an operation
does not touch are shared by identity between the old and the new tree, and
an operation that matches nothing returns its input object unchanged.
Absent ids are never an error, because another pane may already have
deleted them.
"""

from dataclasses import dataclass, replace
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from .item import Container, Document, Item

Tree = Sequence[Item]


@dataclass(frozen=True)
class ParentContext:
    """Where an item lives: its parent container (None at top level) and its siblings."""

    parent: Optional[Container]
    siblings: Tuple[Item, ...]


def iter_items(tree: Tree) -> Iterator[Item]:
    """Yield every item depth-first, children before later siblings."""
    for item in tree:
        yield item
        if isinstance(item, Container):
            yield from iter_items(item.children)


def find(tree: Tree, item_id: str) -> Optional[Item]:
    """Find an item by id, or None."""
    for item in iter_items(tree):
        if item.id == item_id:
            return item
    return None


def contains(tree: Tree, item_id: str) -> bool:
    return find(tree, item_id) is not None


def find_parent_context(tree: Tree, item_id: str) -> Optional[ParentContext]:
    """Locate the parent and sibling list of an item; None if absent."""
    for item in tree:
        if isinstance(item, Container):
            if any(child.id == item_id for child in item.children):
                return ParentContext(parent=item, siblings=tuple(item.children))
            found = find_parent_context(item.children, item_id)
            if found:
                return found
    if any(item.id == item_id for item in tree):
        return ParentContext(parent=None, siblings=tuple(tree))
    return None


def documents(tree: Tree) -> List[Document]:
    """Flatten the tree into its documents, in binder order."""
    return [item for item in iter_items(tree) if isinstance(item, Document)]


def first_document(tree: Tree) -> Optional[Document]:
    for item in iter_items(tree):
        if isinstance(item, Document):
            return item
    return None


def subtree_ids(tree: Tree, item_id: str) -> List[str]:
    """Ids of an item and all of its descendants; empty if absent."""
    item = find(tree, item_id)
    if item is None:
        return []
    return [item.id] + [child.id for child in iter_items(getattr(item, "children", ()))]


def update(tree: Tree, item_id: str, **fields: Any) -> Tree:
    """Merge ``fields`` into the item with ``item_id``.

    Ancestors along the path are replaced; everything else is shared.
    Raises TypeError if a field does not exist on the item's kind.
    """
    new_tree, changed = _update(tree, item_id, fields)
    return new_tree if changed else tree


def _update(tree: Tree, item_id: str, fields: dict) -> Tuple[Tree, bool]:
    result: List[Item] = []
    changed = False
    for item in tree:
        if not changed and item.id == item_id:
            result.append(replace(item, **fields))
            changed = True
        elif not changed and isinstance(item, Container) and item.children:
            children, child_changed = _update(item.children, item_id, fields)
            if child_changed:
                item = replace(item, children=children)
                changed = True
            result.append(item)
        else:
            result.append(item)
    if not changed:
        return tree, False
    return tuple(result), True


def insert(tree: Tree, parent_id: Optional[str], new_item: Item) -> Tree:
    """Append ``new_item`` under ``parent_id`` or at the top level.

    The receiving container is expanded. Nothing is inserted when
    ``parent_id`` does not name a container.
    """
    if not parent_id:
        return tuple(tree) + (new_item,)
    parent = find(tree, parent_id)
    if not isinstance(parent, Container):
        return tree
    return update(
        tree,
        parent_id,
        children=tuple(parent.children) + (new_item,),
        is_expanded=True,
    )


def delete(tree: Tree, item_id: str) -> Tree:
    """Remove an item and its whole subtree wherever it occurs."""
    new_tree, changed = _delete(tree, item_id)
    return new_tree if changed else tree


def _delete(tree: Tree, item_id: str) -> Tuple[Tree, bool]:
    result: List[Item] = []
    changed = False
    for item in tree:
        if item.id == item_id:
            changed = True
            continue
        if isinstance(item, Container) and item.children:
            children, child_changed = _delete(item.children, item_id)
            if child_changed:
                item = replace(item, children=children)
                changed = True
        result.append(item)
    if not changed:
        return tree, False
    return tuple(result), True


def toggle_expanded(tree: Tree, item_id: str) -> Tree:
    item = find(tree, item_id)
    if not isinstance(item, Container):
        return tree
    return update(tree, item_id, is_expanded=not item.is_expanded)


def toggle_bookmark(tree: Tree, item_id: str) -> Tree:
    item = find(tree, item_id)
    if item is None:
        return tree
    return update(tree, item_id, is_bookmarked=not item.is_bookmarked)


def duplicate_ids(tree: Tree) -> List[str]:
    """Ids that occur more than once in the tree."""
    seen = set()
    duplicates = []
    for item in iter_items(tree):
        if item.id in seen and item.id not in duplicates:
            duplicates.append(item.id)
        seen.add(item.id)
    return duplicates


def word_count(tree: Tree) -> int:
    """Total word count across all documents."""
    return sum(document.word_count for document in documents(tree))
