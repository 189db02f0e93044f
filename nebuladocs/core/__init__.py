"""Core domain models for NebulaDocs."""

from . import binder
from .character import Participant, ParticipantRole
from .item import (
    Container,
    Document,
    Item,
    ItemKind,
    SceneMechanics,
    SceneSetting,
    Senses,
    Snapshot,
    StickyNote,
    TimelineData,
    new_container,
    new_document,
    new_id,
)
from .project import PlotThread, Project, ProjectContent
from .scheduler import ManualScheduler, SaveScheduler, TimerScheduler
from .store import ProjectContentStore, SaveStatus
from .workspace import Pane, PaneId, PresentationMode, SplitMode, Workspace

__all__ = [
    "binder",
    "Participant",
    "ParticipantRole",
    "Container",
    "Document",
    "Item",
    "ItemKind",
    "SceneMechanics",
    "SceneSetting",
    "Senses",
    "Snapshot",
    "StickyNote",
    "TimelineData",
    "new_container",
    "new_document",
    "new_id",
    "PlotThread",
    "Project",
    "ProjectContent",
    "ManualScheduler",
    "SaveScheduler",
    "TimerScheduler",
    "ProjectContentStore",
    "SaveStatus",
    "Pane",
    "PaneId",
    "PresentationMode",
    "SplitMode",
    "Workspace",
]
