"""Shared fixtures."""

import pytest

from nebuladocs.core.item import Container, Document, SceneSetting, TimelineData
from nebuladocs.core.character import Participant, ParticipantRole
from nebuladocs.core.scheduler import ManualScheduler
from nebuladocs.core.store import ProjectContentStore
from nebuladocs.io.storage import MemoryKeyValueStore


@pytest.fixture
def storage():
    return MemoryKeyValueStore()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def store(storage, scheduler):
    return ProjectContentStore(storage, scheduler, save_delay=2.0)


@pytest.fixture
def tree():
    """Part 1 > (Scene A, Sub > (Scene B)), Scene C"""
    scene_a = Document(id="a", title="Scene A", body="<p>One two three</p>")
    scene_b = Document(id="b", title="Scene B", body="<p>Four five</p>")
    sub = Container(id="sub", title="Sub", children=(scene_b,))
    part = Container(id="part", title="Part 1", children=(scene_a, sub))
    scene_c = Document(id="c", title="Scene C")
    return (part, scene_c)


def scene(doc_id, title=None, date=None, location=None, names=(), time=None, roles=None, plot_points=None):
    """Build a document with scene details for cross-reference tests."""
    roles = roles or {}
    setting = SceneSetting(location=location or "", time=time or "") if (location or time) else None
    return Document(
        id=doc_id,
        title=title or doc_id,
        timeline=TimelineData(start=date) if date else None,
        setting=setting,
        participants=tuple(
            Participant(id=f"{doc_id}-{name}", name=name, role=roles.get(name, ParticipantRole.SUPPORTING))
            for name in names
        ),
        plot_points=dict(plot_points or {}),
    )
