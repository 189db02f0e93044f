"""Tests for the two-pane workspace."""

import pytest

from nebuladocs.core import binder
from nebuladocs.core.item import Container, ItemKind, StickyNote
from nebuladocs.core.store import META_KEY
from nebuladocs.core.workspace import PaneId, PresentationMode, SplitMode, Workspace


@pytest.fixture
def project_id(store, tree):
    project = store.create_project("Novel")
    store.apply(project.id, items=tree)
    return project.id


@pytest.fixture
def ws(store, project_id):
    return Workspace(store, project_id)


def test_open_project_selects_first_document(ws, project_id):
    """Test a project opens on its first document in the editor."""
    assert ws.primary.project_id == project_id
    assert ws.primary.selected_item_id == "a"
    assert ws.primary.mode == PresentationMode.EDITOR
    assert ws.active_title() == "Scene A"


def test_selecting_document_leaves_aggregate_view(ws):
    """Test aggregate modes switch to the editor when a document is picked."""
    ws.set_mode(PresentationMode.CORKBOARD)
    ws.select("part")
    assert ws.primary.mode == PresentationMode.CORKBOARD

    ws.select("b")
    assert ws.primary.mode == PresentationMode.EDITOR
    assert ws.primary.selected_item_id == "b"

    ws.set_mode(PresentationMode.CHARACTERS)
    ws.select("c")
    assert ws.primary.mode == PresentationMode.CHARACTERS


def test_select_unknown_item_is_ignored(ws):
    """Test selecting an id that is not in the tree."""
    before = ws.primary
    assert ws.select("missing") == before


def test_split_clones_primary_and_focuses_secondary(ws):
    """Test splitting and merging panes."""
    ws.focus(PaneId.SECONDARY)
    assert ws.focused == PaneId.PRIMARY

    ws.split(SplitMode.VERTICAL)
    assert ws.secondary == ws.primary
    assert ws.focused == PaneId.SECONDARY

    ws.select("c")
    assert ws.secondary.selected_item_id == "c"
    assert ws.primary.selected_item_id == "a"

    ws.split(SplitMode.SINGLE)
    assert ws.focused == PaneId.PRIMARY
    assert ws.secondary == ws.primary


def test_edit_in_one_pane_is_visible_in_the_other(ws):
    """Test both panes read the same store."""
    ws.split(SplitMode.HORIZONTAL)
    ws.rename_item("a", "Opening", PaneId.SECONDARY)
    assert ws.active_title(PaneId.PRIMARY) == "Opening"


def test_deleting_selected_item_resets_every_pane(ws):
    """Test panes never point at deleted items."""
    ws.split(SplitMode.VERTICAL)
    removed = ws.delete_item("a", PaneId.SECONDARY)

    assert removed == ["a"]
    for pane in (ws.primary, ws.secondary):
        assert pane.selected_item_id is None
        assert pane.mode.is_aggregate


def test_deleting_container_resets_panes_on_descendants(ws):
    """Test a pane showing a nested document is cleared with its ancestor."""
    ws.select("b")
    removed = ws.delete_item("part")

    assert set(removed) == {"part", "a", "sub", "b"}
    assert ws.primary.selected_item_id is None
    assert [item.id for item in ws.items()] == ["c"]


def test_panes_resolve_their_own_project(store, ws):
    """Test per-pane threads come from that pane's project."""
    other = store.create_project("Other")
    ws.split(SplitMode.VERTICAL)
    ws.open_project(other.id, PaneId.SECONDARY)
    ws.add_thread("Heist", "#fff000", PaneId.SECONDARY)

    assert [t.name for t in ws.threads(PaneId.PRIMARY)] == ["Main Plot"]
    assert [t.name for t in ws.threads(PaneId.SECONDARY)] == ["Main Plot", "Heist"]
    assert ws.active_title(PaneId.SECONDARY) == "Chapter 1"


def test_delete_in_other_project_leaves_pane_alone(store, ws, project_id, tree):
    """Test deletion only clears panes of the same project."""
    other = store.create_project("Other")
    store.apply(other.id, items=tree)
    ws.split(SplitMode.VERTICAL)
    ws.open_project(other.id, PaneId.SECONDARY)
    assert ws.secondary.selected_item_id == "a"
    other_items = store.items(other.id)

    assert ws.delete_item("a", PaneId.PRIMARY) == ["a"]

    assert ws.primary.selected_item_id is None
    assert ws.secondary.selected_item_id == "a"
    assert ws.secondary.mode == PresentationMode.EDITOR
    assert store.items(other.id) is other_items
    assert binder.contains(ws.items(PaneId.SECONDARY), "a")
    assert not binder.contains(ws.items(PaneId.PRIMARY), "a")


def test_add_item_default_insertion_points(ws):
    """Test where new items land without an explicit parent."""
    ws.select("part")
    inside = ws.add_item(ItemKind.DOCUMENT, title="Inside")
    assert binder.find_parent_context(ws.items(), inside.id).parent.id == "part"
    assert ws.primary.selected_item_id == inside.id
    assert ws.primary.mode == PresentationMode.EDITOR

    ws.select("b")
    sibling = ws.add_item(ItemKind.DOCUMENT, title="Sibling")
    assert binder.find_parent_context(ws.items(), sibling.id).parent.id == "sub"

    ws.navigate(None)
    folder = ws.add_item(ItemKind.CONTAINER, title="Act II")
    assert ws.items()[-1].id == folder.id
    assert isinstance(ws.items()[-1], Container)
    assert ws.primary.mode == PresentationMode.CORKBOARD


def test_add_item_into_collapsed_container_expands_it(ws):
    """Test the receiving container opens."""
    ws.toggle_expanded("sub")
    assert binder.find(ws.items(), "sub").is_expanded is False
    ws.add_item(ItemKind.DOCUMENT, parent_id="sub")
    assert binder.find(ws.items(), "sub").is_expanded is True


def test_write_and_bookmark(ws):
    """Test editing the selected document."""
    ws.write("<p>New words here</p>")
    ws.toggle_bookmark()
    document = binder.find(ws.items(), "a")
    assert document.word_count == 3
    assert document.is_bookmarked is True

    ws.write("<p>ignored</p>", item_id="part")
    assert not hasattr(binder.find(ws.items(), "part"), "body")


def test_remove_thread_strips_annotations(ws):
    """Test annotations disappear with their thread."""
    heist = ws.add_thread("Heist")
    ws.annotate("a", heist.id, "Plan is made")
    ws.annotate("c", "main", "Setup")
    assert binder.find(ws.items(), "a").plot_points == {heist.id: "Plan is made"}

    ws.remove_thread(heist.id)
    assert binder.find(ws.items(), "a").plot_points == {}
    assert binder.find(ws.items(), "c").plot_points == {"main": "Setup"}
    assert [t.id for t in ws.threads()] == ["main"]


def test_snapshots(ws):
    """Test capturing and restoring a document body."""
    ws.write("<p>first draft</p>")
    snap = ws.create_snapshot("Draft 1")
    ws.write("<p>second draft</p>")

    assert ws.restore_snapshot(snap.id) is True
    assert ws.active_document().body == "<p>first draft</p>"
    assert ws.restore_snapshot("missing") is False

    ws.delete_snapshot(snap.id)
    assert ws.active_document().snapshots == ()


def test_snapshot_needs_a_document(ws):
    """Test containers cannot be snapshotted."""
    ws.select("part")
    assert ws.create_snapshot("nope") is None


def test_sticky_notes(ws):
    """Test notes on the selected document."""
    note = ws.add_sticky_note("#fef08a", "Check dates")
    ws.update_sticky_note(note.id, "Dates checked")
    ws.recolor_sticky_note(note.id, "#bbf7d0")

    stored = ws.active_document().notes[0]
    assert (stored.content, stored.color) == ("Dates checked", "#bbf7d0")

    ws.delete_sticky_note(note.id)
    assert ws.active_document().notes == ()


def test_delete_project_repoints_panes(store, ws, project_id):
    """Test panes move to a remaining project."""
    other = store.create_project("Other")
    ws.delete_project(project_id)
    assert ws.primary.project_id == other.id
    assert ws.secondary.project_id != project_id


def test_import_project_opens_it(store, ws, project_id):
    """Test importing an exported record through the workspace."""
    record = {
        "format": "nebuladocs.project",
        "version": 1,
        "metadata": store.get_project(project_id).to_dict(),
        "content": store.content(project_id).to_dict(),
    }
    imported = ws.import_project(record)

    assert imported.id != project_id
    assert ws.primary.project_id == imported.id
    assert [d.title for d in binder.documents(ws.items())] == ["Scene A", "Scene B", "Scene C"]


def test_matrix_view_switches_to_editor_on_document(ws):
    """Test the matrix view is left for the editor like other aggregate views."""
    ws.set_mode(PresentationMode.MATRIX)
    ws.select("sub")
    assert ws.primary.mode == PresentationMode.MATRIX

    ws.select("b")
    assert ws.primary.mode == PresentationMode.EDITOR


def test_editor_keeps_its_mode_on_container(ws):
    """Test selecting a container from the editor does not switch views."""
    ws.select("part")
    assert ws.primary.selected_item_id == "part"
    assert ws.primary.mode == PresentationMode.EDITOR


def test_navigate_ignores_unknown_ids(ws):
    """Test a pane never points at an id missing from its tree."""
    assert ws.navigate("missing").selected_item_id == "a"
    assert ws.navigate(None).selected_item_id is None


def test_root_notes_follow_the_pane_project(store, ws, project_id):
    """Test project notes are read and written through each pane's project."""
    other = store.create_project("Other")
    ws.split(SplitMode.VERTICAL)
    ws.open_project(other.id, PaneId.SECONDARY)

    theme = StickyNote(id="n1", content="Theme: trust")
    ws.set_root_notes([theme], PaneId.SECONDARY)

    assert ws.notes(PaneId.SECONDARY) == (theme,)
    assert ws.notes(PaneId.PRIMARY) == ()
    assert store.content(other.id).notes == (theme,)
    assert store.content(project_id).notes == ()

    ws.set_root_notes([], PaneId.SECONDARY)
    assert ws.notes(PaneId.SECONDARY) == ()


def test_edits_after_last_project_is_deleted_store_nothing(store, storage, scheduler, ws, project_id):
    """Test an empty workspace ignores edits instead of saving content for no project."""
    ws.delete_project(project_id)
    assert ws.primary.project_id == ""
    assert store.list_projects() == []

    assert ws.add_thread("X") is None
    ws.add_item(ItemKind.DOCUMENT, title="Stray")
    ws.set_root_notes([StickyNote(id="n1", content="Stray")])
    scheduler.advance(5.0)

    assert sorted(storage.data) == [META_KEY]
    assert ws.items() == ()
    assert ws.notes() == ()
    assert ws.active_title() == "Untitled"
