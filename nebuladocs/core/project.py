"""Project metadata and per-project content bundles."""

from typing import Dict, Any, Optional, List, Tuple
from dataclasses import dataclass, field
from datetime import datetime

from . import binder
from .exceptions import MalformedDataError
from .item import Item, StickyNote, item_from_dict, new_document, new_id


@dataclass(frozen=True)
class PlotThread:
    """A named storyline scoped to one project."""

    id: str
    name: str
    color: str = "#818cf8"

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlotThread":
        return cls(id=str(data["id"]), name=data["name"], color=data.get("color", "#818cf8"))


DEFAULT_THREADS: Tuple[PlotThread, ...] = (PlotThread("main", "Main Plot", "#818cf8"),)

THREAD_COLORS = ("#f87171", "#fb923c", "#fbbf24", "#a3e635", "#22d3ee", "#818cf8", "#e879f9", "#fb7185")


@dataclass(frozen=True)
class ProjectContent:
    """Everything a project owns: its binder tree, threads and loose notes."""

    items: Tuple[Item, ...] = ()
    threads: Tuple[PlotThread, ...] = DEFAULT_THREADS
    notes: Tuple[StickyNote, ...] = ()

    @classmethod
    def seeded(cls, title: str = "Untitled Document", body: str = "") -> "ProjectContent":
        """A fresh bundle holding a single seed document."""
        return cls(items=(new_document(title, body),))

    def get_thread(self, thread_id: str) -> Optional[PlotThread]:
        for thread in self.threads:
            if thread.id == thread_id:
                return thread
        return None

    def thread_by_name(self, name: str) -> Optional[PlotThread]:
        for thread in self.threads:
            if thread.name == name:
                return thread
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert content bundle to dictionary for serialization."""
        return {
            "items": [item.to_dict() for item in self.items],
            "threads": [thread.to_dict() for thread in self.threads],
            "notes": [note.to_dict() for note in self.notes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectContent":
        """Create content bundle from dictionary.

        Raises MalformedDataError if the record cannot be parsed or if the
        tree repeats an id.
        """
        if not isinstance(data, dict):
            raise MalformedDataError("Project content must be a mapping")
        try:
            items = tuple(item_from_dict(item) for item in data.get("items") or [])
            threads = data.get("threads")
            content = cls(
                items=items,
                threads=tuple(PlotThread.from_dict(t) for t in threads) if threads is not None else DEFAULT_THREADS,
                notes=tuple(StickyNote.from_dict(n) for n in data.get("notes") or []),
            )
        except MalformedDataError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedDataError(f"Invalid project content: {e}") from e

        duplicates = binder.duplicate_ids(content.items)
        if duplicates:
            raise MalformedDataError(f"Duplicate item ids: {', '.join(duplicates)}")
        return content


@dataclass
class Project:
    """Display metadata for a writing project."""

    id: str
    title: str = "Untitled Project"
    author: str = "Author"
    synopsis: str = ""
    cover_style: Dict[str, str] = field(default_factory=lambda: {"color": "#4f46e5", "font": "Inter"})
    last_modified: datetime = field(default_factory=datetime.now)
    word_count: int = 0
    is_favorite: bool = False

    @classmethod
    def create(cls, title: str = "Untitled Project", author: str = "Author", **kwargs: Any) -> "Project":
        """Create project metadata with a freshly minted id."""
        return cls(id=new_id("p"), title=title, author=author, **kwargs)

    def touch(self) -> None:
        self.last_modified = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Convert project to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "synopsis": self.synopsis,
            "cover_style": dict(self.cover_style),
            "last_modified": self.last_modified.isoformat(),
            "word_count": self.word_count,
            "is_favorite": self.is_favorite,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        """Create project from dictionary."""
        try:
            project = cls(
                id=str(data["id"]),
                title=data.get("title", "Untitled Project"),
                author=data.get("author", "Author"),
                synopsis=data.get("synopsis", ""),
                cover_style=dict(data.get("cover_style") or {}),
                word_count=int(data.get("word_count", 0)),
                is_favorite=bool(data.get("is_favorite", False)),
            )
            if data.get("last_modified"):
                project.last_modified = datetime.fromisoformat(data["last_modified"])
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedDataError(f"Invalid project metadata: {e}") from e
        return project

    def __str__(self) -> str:
        return f"{self.title} by {self.author}"


def sort_projects(projects: List[Project]) -> List[Project]:
    """Favorites first, then most recently modified."""
    return sorted(projects, key=lambda p: (not p.is_favorite, -p.last_modified.timestamp()))
