"""Binder items: containers and documents with their attachments."""

import uuid
from enum import Enum
from html.parser import HTMLParser
from typing import Dict, List, Any, Optional, Tuple, Union
from dataclasses import dataclass, field
from datetime import datetime

from .character import Participant
from .exceptions import MalformedDataError


def new_id(prefix: str = "item") -> str:
    """Mint a globally unique identifier."""
    return f"{prefix}-{uuid.uuid4().hex}"


class _TextExtractor(HTMLParser):
    BLOCK_TAGS = {"p", "div", "br", "li", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote"}

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.parts: List[str] = []

    def handle_starttag(self, tag, attrs):
        if tag in self.BLOCK_TAGS:
            self.parts.append("\n")

    def handle_endtag(self, tag):
        if tag in self.BLOCK_TAGS:
            self.parts.append("\n")

    def handle_data(self, data):
        self.parts.append(data)


def strip_markup(body: str) -> str:
    """Return the plain text of a rich-text body."""
    if not body:
        return ""
    extractor = _TextExtractor()
    extractor.feed(body)
    extractor.close()
    text = "".join(extractor.parts)
    lines = [" ".join(line.split()) for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


class ItemKind(Enum):
    """Capability set of a binder item."""
    CONTAINER = "container"
    DOCUMENT = "document"


@dataclass(frozen=True)
class Snapshot:
    """A saved copy of a document body."""

    id: str
    label: str
    timestamp: str
    body: str = ""

    @classmethod
    def capture(cls, label: str, body: str) -> "Snapshot":
        return cls(id=new_id("snap"), label=label, timestamp=datetime.now().isoformat(), body=body)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "timestamp": self.timestamp, "body": self.body}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        return cls(
            id=data["id"],
            label=data.get("label", ""),
            timestamp=data.get("timestamp", ""),
            body=data.get("body", ""),
        )


@dataclass(frozen=True)
class TimelineData:
    """Scheduling data for a scene."""

    start: Optional[str] = None  # ISO timestamp
    duration: Optional[int] = None  # minutes
    color: Optional[str] = None
    label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "duration": self.duration, "color": self.color, "label": self.label}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimelineData":
        duration = data.get("duration")
        return cls(
            start=data.get("start"),
            duration=int(duration) if duration is not None else None,
            color=data.get("color"),
            label=data.get("label"),
        )


@dataclass(frozen=True)
class Senses:
    sight: str = ""
    smell: str = ""
    taste: str = ""
    sound: str = ""
    touch: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "sight": self.sight,
            "smell": self.smell,
            "taste": self.taste,
            "sound": self.sound,
            "touch": self.touch,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Senses":
        return cls(**{key: data.get(key, "") for key in ("sight", "smell", "taste", "sound", "touch")})


@dataclass(frozen=True)
class SceneSetting:
    """World and atmosphere of a scene."""

    location: str = ""
    time: str = ""
    objects: Tuple[str, ...] = ()
    senses: Senses = field(default_factory=Senses)
    emotional_impact: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location": self.location,
            "time": self.time,
            "objects": list(self.objects),
            "senses": self.senses.to_dict(),
            "emotional_impact": self.emotional_impact,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SceneSetting":
        return cls(
            location=data.get("location", ""),
            time=data.get("time", ""),
            objects=tuple(data.get("objects", [])),
            senses=Senses.from_dict(data.get("senses") or {}),
            emotional_impact=data.get("emotional_impact", ""),
        )


@dataclass(frozen=True)
class SceneMechanics:
    """Story mechanics and narrative-arc placement of a scene."""

    story_map: str = ""
    purpose: str = ""
    scene_type: str = ""  # Action, Sequel, Mixed
    opening_type: str = ""
    entry_hook: str = ""
    closing_type: str = ""
    exit_hook: str = ""
    tension: int = 5
    pacing: int = 5
    is_flashback: bool = False
    backstory: str = "None"  # None, Low, Moderate, High
    revelation: str = ""
    plot_point: str = ""

    def __post_init__(self):
        for name in ("tension", "pacing"):
            value = getattr(self, name)
            if not 1 <= value <= 10:
                raise ValueError(f"{name} must be between 1 and 10, got {value}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "story_map": self.story_map,
            "purpose": self.purpose,
            "scene_type": self.scene_type,
            "opening_type": self.opening_type,
            "entry_hook": self.entry_hook,
            "closing_type": self.closing_type,
            "exit_hook": self.exit_hook,
            "tension": self.tension,
            "pacing": self.pacing,
            "is_flashback": self.is_flashback,
            "backstory": self.backstory,
            "revelation": self.revelation,
            "plot_point": self.plot_point,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SceneMechanics":
        defaults = cls()
        values = {key: data.get(key, getattr(defaults, key)) for key in defaults.to_dict()}
        values["tension"] = min(10, max(1, int(values["tension"])))
        values["pacing"] = min(10, max(1, int(values["pacing"])))
        values["is_flashback"] = bool(values["is_flashback"])
        return cls(**values)


@dataclass(frozen=True)
class StickyNote:
    """A free-floating note pinned to a document or to a project."""

    id: str
    content: str = ""
    color: str = "#fef08a"
    rotation: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "content": self.content, "color": self.color, "rotation": self.rotation}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StickyNote":
        return cls(
            id=data["id"],
            content=data.get("content", ""),
            color=data.get("color", "#fef08a"),
            rotation=float(data.get("rotation", 0.0)),
        )


@dataclass(frozen=True)
class Container:
    """A binder folder. Only containers own children."""

    id: str
    title: str = "New Group"
    children: Tuple["Item", ...] = ()
    is_expanded: bool = True
    is_bookmarked: bool = False

    @property
    def kind(self) -> ItemKind:
        return ItemKind.CONTAINER

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "title": self.title,
            "children": [child.to_dict() for child in self.children],
            "is_expanded": self.is_expanded,
            "is_bookmarked": self.is_bookmarked,
        }


@dataclass(frozen=True)
class Document:
    """A binder document: a scene, chapter or any writable page.

    ``plot_points`` maps a narrative-thread id to the annotation this
    document carries for that thread. The mapping is replaced, never
    mutated, when the document is updated.
    """

    id: str
    title: str = "Untitled Scene"
    body: str = ""
    is_bookmarked: bool = False
    snapshots: Tuple[Snapshot, ...] = ()
    timeline: Optional[TimelineData] = None
    plot_points: Dict[str, str] = field(default_factory=dict)
    participants: Tuple[Participant, ...] = ()
    setting: Optional[SceneSetting] = None
    mechanics: Optional[SceneMechanics] = None
    notes: Tuple[StickyNote, ...] = ()
    pov_participant_id: Optional[str] = None

    @property
    def kind(self) -> ItemKind:
        return ItemKind.DOCUMENT

    @property
    def plain_text(self) -> str:
        return strip_markup(self.body)

    @property
    def word_count(self) -> int:
        return len(self.plain_text.split())

    @property
    def location(self) -> str:
        return self.setting.location if self.setting else ""

    @property
    def date_key(self) -> str:
        """Normalized date used to bucket scenes in time.

        The date part of the scheduled start wins; a freeform setting time
        is used when nothing is scheduled.
        """
        if self.timeline and self.timeline.start:
            return self.timeline.start.split("T")[0]
        if self.setting and self.setting.time:
            return self.setting.time
        return ""

    def participant_names(self) -> List[str]:
        return [participant.name for participant in self.participants]

    def get_participant(self, name: str) -> Optional[Participant]:
        """Get a participant by exact name."""
        for participant in self.participants:
            if participant.name == name:
                return participant
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "title": self.title,
            "body": self.body,
            "is_bookmarked": self.is_bookmarked,
            "snapshots": [snapshot.to_dict() for snapshot in self.snapshots],
            "timeline": self.timeline.to_dict() if self.timeline else None,
            "plot_points": dict(self.plot_points),
            "participants": [participant.to_dict() for participant in self.participants],
            "setting": self.setting.to_dict() if self.setting else None,
            "mechanics": self.mechanics.to_dict() if self.mechanics else None,
            "notes": [note.to_dict() for note in self.notes],
            "pov_participant_id": self.pov_participant_id,
        }


Item = Union[Container, Document]


def new_document(title: str = "Untitled Scene", body: str = "") -> Document:
    return Document(id=new_id("doc"), title=title, body=body)


def new_container(title: str = "New Group") -> Container:
    return Container(id=new_id("folder"), title=title)


def item_from_dict(data: Dict[str, Any]) -> Item:
    """Create a container or document from its dictionary form."""
    try:
        kind = data.get("kind", "document")
        if kind in ("container", "folder"):
            return Container(
                id=data["id"],
                title=data.get("title", ""),
                children=tuple(item_from_dict(child) for child in data.get("children") or []),
                is_expanded=bool(data.get("is_expanded", True)),
                is_bookmarked=bool(data.get("is_bookmarked", False)),
            )
        if kind != "document":
            raise MalformedDataError(f"Unknown item kind: {kind!r}")

        timeline = data.get("timeline")
        setting = data.get("setting")
        mechanics = data.get("mechanics")
        return Document(
            id=data["id"],
            title=data.get("title", ""),
            body=data.get("body", ""),
            is_bookmarked=bool(data.get("is_bookmarked", False)),
            snapshots=tuple(Snapshot.from_dict(s) for s in data.get("snapshots") or []),
            timeline=TimelineData.from_dict(timeline) if timeline else None,
            plot_points={str(k): str(v) for k, v in (data.get("plot_points") or {}).items()},
            participants=tuple(Participant.from_dict(p) for p in data.get("participants") or []),
            setting=SceneSetting.from_dict(setting) if setting else None,
            mechanics=SceneMechanics.from_dict(mechanics) if mechanics else None,
            notes=tuple(StickyNote.from_dict(n) for n in data.get("notes") or []),
            pov_participant_id=data.get("pov_participant_id"),
        )
    except MalformedDataError:
        raise
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise MalformedDataError(f"Invalid item record: {e}") from e
