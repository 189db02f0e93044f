"""Tests for the project content store and its debounced saves."""

import json

import pytest

from nebuladocs.core import binder
from nebuladocs.core.exceptions import ProjectNotFoundError
from nebuladocs.core.item import new_document
from nebuladocs.core.project import PlotThread, Project, ProjectContent
from nebuladocs.core.store import META_KEY, ProjectContentStore, SaveStatus, content_key


def saved_content(storage, project_id):
    return json.loads(storage.data[content_key(project_id)].decode("utf-8"))


@pytest.fixture
def project(store, scheduler):
    created = store.create_project("Novel", "Ada")
    scheduler.advance(2.0)
    return created


def test_create_project_seeds_one_chapter(store, storage, project):
    """Test a new project starts with one document and is persisted."""
    assert [item.title for item in store.items(project.id)] == ["Chapter 1"]
    assert store.status == SaveStatus.SAVED
    assert META_KEY in storage.data
    assert saved_content(storage, project.id)["items"][0]["title"] == "Chapter 1"


def test_burst_of_edits_is_written_once(store, storage, scheduler, project):
    """Test only the last state of a burst reaches storage."""
    writes = storage.writes
    for title in ("One", "Two", "Three"):
        scheduler.advance(1.0)
        items = binder.update(store.items(project.id), store.items(project.id)[0].id, title=title)
        store.apply(project.id, items=items)
        assert store.status == SaveStatus.SAVING

    scheduler.advance(1.5)
    assert storage.writes == writes
    assert store.status == SaveStatus.SAVING

    scheduler.advance(0.5)
    assert store.status == SaveStatus.SAVED
    assert storage.writes == writes + 2  # metadata and content
    assert saved_content(storage, project.id)["items"][0]["title"] == "Three"


def test_failed_write_keeps_changes_and_retries(store, storage, scheduler, project):
    """Test a failing backend leaves the store unsaved until the next edit succeeds."""
    storage.fail_writes = True
    store.apply(project.id, items=store.items(project.id) + (new_document("Lost?"),))
    scheduler.advance(2.0)

    assert store.status == SaveStatus.UNSAVED
    assert len(saved_content(storage, project.id)["items"]) == 1
    assert len(store.items(project.id)) == 2

    storage.fail_writes = False
    store.apply(project.id, threads=store.content(project.id).threads + (PlotThread("t2", "Romance"),))
    scheduler.advance(2.0)

    assert store.status == SaveStatus.SAVED
    stored = saved_content(storage, project.id)
    assert [item["title"] for item in stored["items"]] == ["Chapter 1", "Lost?"]
    assert [thread["name"] for thread in stored["threads"]] == ["Main Plot", "Romance"]


def test_flush_writes_immediately(store, storage, scheduler, project):
    """Test flush bypasses the quiet period and cancels the pending save."""
    store.apply(project.id, items=())
    assert store.flush() is True
    assert saved_content(storage, project.id)["items"] == []
    assert scheduler.advance(5.0) == 0


def test_apply_updates_word_count(store, project):
    """Test project metadata follows the tree."""
    store.apply(project.id, items=(new_document("Words", "<p>a b c d</p>"),))
    assert store.get_project(project.id).word_count == 4


def test_ensure_loaded_is_idempotent(store, project):
    """Test a resident bundle is not reloaded."""
    first = store.ensure_loaded(project.id)
    assert store.ensure_loaded(project.id) is first


def test_missing_content_gets_default_bundle(store):
    """Test a project without stored content opens with a seed document."""
    content = store.ensure_loaded("p-unknown")
    assert len(content.items) == 1
    assert content.items[0].title == "Untitled Document"


@pytest.mark.parametrize("raw", [b"not json", b"[1, 2]", b'{"items": [{"id": "a"}, {"id": "a"}]}'])
def test_malformed_content_falls_back_to_default(storage, scheduler, raw):
    """Test unreadable content never crashes loading."""
    storage.data[content_key("p-1")] = raw
    store = ProjectContentStore(storage, scheduler)
    content = store.ensure_loaded("p-1")
    assert [item.title for item in content.items] == ["Untitled Document"]


def test_malformed_metadata_yields_no_projects(storage, scheduler):
    """Test unreadable metadata is treated as an empty shelf."""
    storage.data[META_KEY] = b"{broken"
    store = ProjectContentStore(storage, scheduler)
    assert store.load_projects() == []


def test_reload_from_storage(store, storage, scheduler, project):
    """Test a second store sees what the first one saved."""
    store.apply(project.id, items=store.items(project.id) + (new_document("Second"),))
    scheduler.advance(2.0)

    other = ProjectContentStore(storage, scheduler)
    projects = other.load_projects()
    assert [p.title for p in projects] == ["Novel"]
    assert [item.title for item in other.items(project.id)] == ["Chapter 1", "Second"]


def test_delete_project_removes_metadata_and_content(store, storage, scheduler, project):
    """Test project deletion is complete once saved."""
    store.delete_project(project.id)
    assert not store.has_project(project.id)
    assert not store.is_loaded(project.id)

    scheduler.advance(2.0)
    assert content_key(project.id) not in storage.data
    assert json.loads(storage.data[META_KEY].decode("utf-8")) == []

    with pytest.raises(ProjectNotFoundError):
        store.delete_project(project.id)


def test_project_listing_and_updates(store, project):
    """Test favorites sort first and updates are validated."""
    other = store.create_project("Other")
    assert store.list_projects()[0].id == other.id

    store.toggle_favorite(project.id)
    assert store.list_projects()[0].id == project.id

    store.update_project(project.id, synopsis="A tale")
    assert store.get_project(project.id).synopsis == "A tale"
    with pytest.raises(TypeError):
        store.update_project(project.id, colour="red")
    with pytest.raises(ProjectNotFoundError):
        store.get_project("p-missing")


def test_register_existing_bundle(store):
    """Test registering a prepared project and bundle."""
    project = Project.create("Imported")
    content = ProjectContent(items=(new_document("Only", "<p>one two</p>"),))
    store.register(project, content)
    assert store.content(project.id) is content
    assert store.get_project(project.id).word_count == 2


def test_superseded_timer_does_not_save_or_drop_the_pending_save(store, storage, scheduler, project):
    """Test a timer that fires after being replaced is a no-op."""
    writes = storage.writes
    store.apply(project.id, items=(new_document("First"),))
    stale = scheduler.pending[0]
    store.apply(project.id, items=(new_document("Second"),))

    # A threading.Timer can fire after cancel() once it is already running
    stale.callback()
    assert storage.writes == writes
    assert store.status == SaveStatus.SAVING
    assert len(scheduler.pending) == 1

    scheduler.advance(2.0)
    assert storage.writes == writes + 2
    assert store.status == SaveStatus.SAVED
    assert saved_content(storage, project.id)["items"][0]["title"] == "Second"


def test_apply_refuses_unregistered_project(store, storage, scheduler):
    """Test content is never stored for an id without a metadata record."""
    with pytest.raises(ProjectNotFoundError):
        store.apply("p-missing", items=())
    assert scheduler.advance(5.0) == 0
    assert content_key("p-missing") not in storage.data
