"""Tests for item, participant and project records."""

import json
from datetime import datetime, timedelta

import pytest

from nebuladocs.core.character import Participant, ParticipantRole
from nebuladocs.core.exceptions import MalformedDataError, ProjectNotFoundError
from nebuladocs.core.item import (
    Container,
    Document,
    SceneMechanics,
    SceneSetting,
    Senses,
    Snapshot,
    StickyNote,
    TimelineData,
    item_from_dict,
    strip_markup,
)
from nebuladocs.core.project import DEFAULT_THREADS, PlotThread, Project, ProjectContent, sort_projects


def test_strip_markup():
    """Test rich-text bodies reduce to plain text."""
    assert strip_markup("<p>Hello <b>world</b></p><p>Fish &amp; chips</p>") == "Hello world\nFish & chips"
    assert strip_markup("") == ""


def test_document_word_count():
    """Test word count ignores markup."""
    doc = Document(id="d", body="<h1>Title</h1><p>one two</p>")
    assert doc.word_count == 3


def test_date_key_prefers_scheduled_start():
    """Test date bucketing."""
    both = Document(id="d", timeline=TimelineData(start="2024-05-01T09:30"), setting=SceneSetting(time="Dawn"))
    assert both.date_key == "2024-05-01"
    assert Document(id="e", setting=SceneSetting(time="Dawn")).date_key == "Dawn"
    assert Document(id="f").date_key == ""


def test_participant_role_parse():
    """Test free-text roles resolve to the closed set."""
    assert ParticipantRole.parse("Protagonist") == ParticipantRole.PROTAGONIST
    assert ParticipantRole.parse("love_interest") == ParticipantRole.LOVE_INTEREST
    assert ParticipantRole.parse("sidekick") == ParticipantRole.SUPPORTING
    assert ParticipantRole.parse(None) == ParticipantRole.SUPPORTING
    assert ParticipantRole.LOVE_INTEREST.label == "Love Interest"


def test_participant_from_dict_requires_name():
    """Test malformed participant records."""
    with pytest.raises(MalformedDataError):
        Participant.from_dict({"id": "x"})


def test_mechanics_range_is_enforced():
    """Test tension and pacing stay within 1-10."""
    with pytest.raises(ValueError):
        SceneMechanics(tension=11)
    clamped = SceneMechanics.from_dict({"tension": 42, "pacing": 0})
    assert clamped.tension == 10
    assert clamped.pacing == 1


def test_item_from_dict_kinds():
    """Test container and document records parse into the right kind."""
    data = {
        "id": "f",
        "kind": "folder",
        "title": "Act I",
        "children": [{"id": "d", "kind": "document", "title": "Opening", "plot_points": {"main": "Setup"}}],
    }
    item = item_from_dict(data)
    assert isinstance(item, Container)
    assert isinstance(item.children[0], Document)
    assert item.children[0].plot_points == {"main": "Setup"}

    with pytest.raises(MalformedDataError):
        item_from_dict({"id": "x", "kind": "spreadsheet"})
    with pytest.raises(MalformedDataError):
        item_from_dict({"kind": "document"})


def test_snapshot_capture():
    """Test snapshots copy the body."""
    snap = Snapshot.capture("Draft 1", "<p>text</p>")
    assert snap.label == "Draft 1"
    assert snap.body == "<p>text</p>"
    assert snap.id


def test_content_seeded_and_serialized():
    """Test the seeded bundle and its dictionary form."""
    content = ProjectContent.seeded("Chapter 1")
    assert [item.title for item in content.items] == ["Chapter 1"]
    assert content.threads == DEFAULT_THREADS

    data = json.loads(json.dumps(content.to_dict()))
    restored = ProjectContent.from_dict(data)
    assert restored.items[0].id == content.items[0].id


def test_content_rejects_duplicate_ids():
    """Test duplicate ids make a bundle malformed."""
    data = {"items": [{"id": "a", "kind": "document"}, {"id": "a", "kind": "document"}]}
    with pytest.raises(MalformedDataError):
        ProjectContent.from_dict(data)


def test_project_round_trip_and_sort():
    """Test project metadata and shelf ordering."""
    old = Project.create("Old")
    old.last_modified = datetime.now() - timedelta(days=3)
    new = Project.create("New")
    fav = Project.create("Fav", is_favorite=True)
    fav.last_modified = datetime.now() - timedelta(days=10)

    assert [p.title for p in sort_projects([old, new, fav])] == ["Fav", "New", "Old"]
    assert Project.from_dict(old.to_dict()).last_modified == old.last_modified
    assert str(new) == "New by Author"


def test_project_not_found_is_a_key_error():
    """Test the lookup error carries the id."""
    error = ProjectNotFoundError("p-1")
    assert isinstance(error, KeyError)
    assert str(error) == "Project not found: p-1"


def test_content_round_trip_keeps_every_attachment():
    """Test a nested bundle with every attachment survives JSON unchanged."""
    hero = Participant(
        id="p1",
        name="Ana",
        role=ParticipantRole.LOVE_INTEREST,
        goal="Escape",
        motivation="Freedom",
        conflict="The warden",
        climax="The gate",
        outcome="Free",
        arc_start="Timid",
        arc_end="Bold",
    )
    scene_doc = Document(
        id="d1",
        title="Breakout",
        body="<p>She ran.</p>",
        is_bookmarked=True,
        snapshots=(Snapshot(id="s1", label="Draft", timestamp="2024-05-01T09:30:00", body="<p>She walked.</p>"),),
        timeline=TimelineData(start="2024-05-01T08:00", duration=45, color="#f87171", label="Escape"),
        plot_points={"main": "Turning point", "t-heist": "Setup"},
        participants=(hero, Participant(id="p2", name="Bo")),
        setting=SceneSetting(
            location="Prison yard",
            time="Dawn",
            objects=("key", "rope"),
            senses=Senses(sight="Fog", smell="Rust", taste="Salt", sound="Bells", touch="Cold"),
            emotional_impact="Dread",
        ),
        mechanics=SceneMechanics(
            story_map="Act II",
            purpose="Raise stakes",
            scene_type="Action",
            tension=9,
            pacing=8,
            is_flashback=True,
            backstory="Low",
            revelation="The key is fake",
            plot_point="Midpoint",
        ),
        notes=(StickyNote(id="n1", content="Tighten", color="#bae6fd", rotation=-2.5),),
        pov_participant_id="p1",
    )
    inner = Container(id="inner", title="Chapter 3", children=(scene_doc,), is_expanded=False)
    outer = Container(id="outer", title="Part II", children=(inner, Document(id="d2")), is_bookmarked=True)
    content = ProjectContent(
        items=(outer,),
        threads=(PlotThread("main", "Main Plot", "#818cf8"), PlotThread("t-heist", "Heist", "#22d3ee")),
        notes=(StickyNote(id="n2", content="Theme: freedom", rotation=1.5),),
    )

    restored = ProjectContent.from_dict(json.loads(json.dumps(content.to_dict())))

    assert restored == content
    assert restored.items[0].children[0].children[0].pov_participant_id == "p1"
    assert restored.items[0].children[0].children[0].snapshots[0].timestamp == "2024-05-01T09:30:00"
