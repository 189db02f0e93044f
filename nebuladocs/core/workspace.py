"""Two-pane viewport management over the project content store."""

import logging
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from . import binder
from .item import Container, Document, Item, ItemKind, Snapshot, StickyNote, new_container, new_document, new_id
from .project import THREAD_COLORS, PlotThread, Project, ProjectContent
from .store import ProjectContentStore

logger = logging.getLogger(__name__)


class PresentationMode(Enum):
    EDITOR = "editor"
    SCRIVENINGS = "scrivenings"
    DIALOGUE = "dialogue"
    STYLE = "style"
    CORKBOARD = "corkboard"
    TIMELINE = "timeline"
    PLOTGRID = "plotgrid"
    GRAPH = "graph"
    CHARACTERS = "characters"
    MECHANICS = "mechanics"
    SETTINGS = "settings"
    DATABASE = "database"
    MATRIX = "matrix"
    REPORTS = "reports"

    @property
    def is_aggregate(self) -> bool:
        """Aggregate views show many items and have no selected document."""
        return self in AGGREGATE_MODES


AGGREGATE_MODES = frozenset({
    PresentationMode.CORKBOARD,
    PresentationMode.TIMELINE,
    PresentationMode.PLOTGRID,
    PresentationMode.GRAPH,
    PresentationMode.DATABASE,
    PresentationMode.MATRIX,
    PresentationMode.REPORTS,
})

DEFAULT_AGGREGATE_MODE = PresentationMode.CORKBOARD


class PaneId(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class SplitMode(Enum):
    SINGLE = "single"
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


@dataclass(frozen=True)
class Pane:
    """A cursor into (project, selected item, presentation mode)."""

    project_id: str
    selected_item_id: Optional[str] = None
    mode: PresentationMode = PresentationMode.EDITOR

    def to_dict(self) -> Dict[str, Any]:
        return {"project_id": self.project_id, "selected_item_id": self.selected_item_id, "mode": self.mode.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pane":
        return cls(
            project_id=data["project_id"],
            selected_item_id=data.get("selected_item_id"),
            mode=PresentationMode(data.get("mode", "editor")),
        )


class Workspace:
    """Application state shared by both panes.

    Each pane names its own project; every per-pane lookup (items, threads,
    notes) is resolved from that pane's project only. Both panes read the
    same store, so an edit made through one pane is visible in the other
    immediately when they show the same project.

    Methods that take ``pane`` act on the focused pane when it is omitted.
    """

    def __init__(self, store: ProjectContentStore, project_id: Optional[str] = None):
        self.store = store
        start = project_id or ""
        self._panes: Dict[PaneId, Pane] = {
            PaneId.PRIMARY: Pane(start),
            PaneId.SECONDARY: Pane(start),
        }
        self.focused = PaneId.PRIMARY
        self.split_mode = SplitMode.SINGLE
        if project_id:
            self.open_project(project_id, PaneId.PRIMARY)
            self._panes[PaneId.SECONDARY] = self._panes[PaneId.PRIMARY]

    # Pane state

    @property
    def primary(self) -> Pane:
        return self._panes[PaneId.PRIMARY]

    @property
    def secondary(self) -> Pane:
        return self._panes[PaneId.SECONDARY]

    def pane(self, pane: Optional[PaneId] = None) -> Pane:
        return self._panes[pane or self.focused]

    def _set(self, pane: Optional[PaneId], **changes: Any) -> Pane:
        key = pane or self.focused
        self._panes[key] = replace(self._panes[key], **changes)
        return self._panes[key]

    def focus(self, pane: PaneId) -> None:
        if pane == PaneId.SECONDARY and self.split_mode == SplitMode.SINGLE:
            return
        self.focused = pane

    def set_mode(self, mode: PresentationMode, pane: Optional[PaneId] = None) -> Pane:
        return self._set(pane, mode=mode)

    def split(self, mode: SplitMode) -> None:
        """Change the layout.

        Splitting a single pane clones the primary into the secondary and
        focuses it. Returning to a single pane discards the secondary.
        """
        if mode != SplitMode.SINGLE and self.split_mode == SplitMode.SINGLE:
            self._panes[PaneId.SECONDARY] = self.primary
            self.focused = PaneId.SECONDARY
        elif mode == SplitMode.SINGLE:
            self._panes[PaneId.SECONDARY] = self.primary
            self.focused = PaneId.PRIMARY
        self.split_mode = mode

    # Resolution

    def content(self, pane: Optional[PaneId] = None) -> ProjectContent:
        """The pane's project content; empty when the pane names no registered project."""
        project_id = self.pane(pane).project_id
        if not self.store.has_project(project_id):
            return ProjectContent(items=())
        return self.store.ensure_loaded(project_id)

    def items(self, pane: Optional[PaneId] = None) -> Sequence[Item]:
        return self.content(pane).items

    def threads(self, pane: Optional[PaneId] = None) -> Tuple[PlotThread, ...]:
        return self.content(pane).threads

    def notes(self, pane: Optional[PaneId] = None) -> Tuple[StickyNote, ...]:
        return self.content(pane).notes

    def active_item(self, pane: Optional[PaneId] = None) -> Optional[Item]:
        selected = self.pane(pane).selected_item_id
        if not selected:
            return None
        return binder.find(self.items(pane), selected)

    def active_document(self, pane: Optional[PaneId] = None) -> Optional[Document]:
        item = self.active_item(pane)
        return item if isinstance(item, Document) else None

    def active_title(self, pane: Optional[PaneId] = None) -> str:
        item = self.active_item(pane)
        if item is not None:
            return item.title
        project_id = self.pane(pane).project_id
        if self.store.has_project(project_id):
            return self.store.get_project(project_id).title
        return "Untitled"

    # Navigation

    def select(self, item_id: str, pane: Optional[PaneId] = None) -> Pane:
        """Select an item; selecting a document leaves aggregate views for the editor."""
        current = self.pane(pane)
        item = binder.find(self.items(pane), item_id)
        if item is None:
            return current
        mode = current.mode
        if isinstance(item, Document) and mode.is_aggregate:
            mode = PresentationMode.EDITOR
        return self._set(pane, selected_item_id=item_id, mode=mode)

    def navigate(self, item_id: Optional[str], pane: Optional[PaneId] = None) -> Pane:
        """Point the pane at an item (or nothing) without touching its mode.

        An id that is not in the pane's tree is ignored.
        """
        if item_id is not None and not binder.contains(self.items(pane), item_id):
            return self.pane(pane)
        return self._set(pane, selected_item_id=item_id)

    def open_project(self, project_id: str, pane: Optional[PaneId] = None) -> Pane:
        content = self.store.ensure_loaded(project_id)
        first = binder.first_document(content.items)
        logger.debug(f"Opening project {project_id} in {(pane or self.focused).value} pane")
        return self._set(
            pane,
            project_id=project_id,
            selected_item_id=first.id if first else None,
            mode=PresentationMode.EDITOR,
        )

    def on_item_deleted(self, item_id: str, project_id: Optional[str] = None) -> List[PaneId]:
        """Clear every pane that was showing a deleted item. Returns the panes reset."""
        reset = []
        for key, pane in self._panes.items():
            if pane.selected_item_id != item_id:
                continue
            if project_id is not None and pane.project_id != project_id:
                continue
            self._panes[key] = replace(pane, selected_item_id=None, mode=DEFAULT_AGGREGATE_MODE)
            reset.append(key)
        return reset

    # Binder editing

    def _apply(self, pane: Optional[PaneId], **parts: Any) -> bool:
        project_id = self.pane(pane).project_id
        if not self.store.has_project(project_id):
            logger.debug(f"Ignoring edit for unregistered project '{project_id}'")
            return False
        self.store.apply(project_id, **parts)
        return True

    def _apply_items(self, items: Sequence[Item], pane: Optional[PaneId]) -> bool:
        return self._apply(pane, items=items)

    def update_item(self, item_id: str, pane: Optional[PaneId] = None, **fields: Any) -> None:
        items = self.items(pane)
        new_items = binder.update(items, item_id, **fields)
        if new_items is not items:
            self._apply_items(new_items, pane)

    def write(self, body: str, item_id: Optional[str] = None, pane: Optional[PaneId] = None) -> None:
        """Replace a document body (the selected one by default)."""
        target = item_id or self.pane(pane).selected_item_id
        if target and isinstance(binder.find(self.items(pane), target), Document):
            self.update_item(target, pane, body=body)

    def rename_item(self, item_id: str, title: str, pane: Optional[PaneId] = None) -> None:
        self.update_item(item_id, pane, title=title)

    def toggle_expanded(self, item_id: str, pane: Optional[PaneId] = None) -> None:
        items = self.items(pane)
        new_items = binder.toggle_expanded(items, item_id)
        if new_items is not items:
            self._apply_items(new_items, pane)

    def toggle_bookmark(self, item_id: Optional[str] = None, pane: Optional[PaneId] = None) -> None:
        target = item_id or self.pane(pane).selected_item_id
        if not target:
            return
        items = self.items(pane)
        new_items = binder.toggle_bookmark(items, target)
        if new_items is not items:
            self._apply_items(new_items, pane)

    def add_item(
        self,
        kind: ItemKind,
        parent_id: Optional[str] = None,
        title: Optional[str] = None,
        pane: Optional[PaneId] = None,
    ) -> Item:
        """Create a document or container and select it.

        Without an explicit parent the item goes into the selected container,
        or next to the selected item, or at the top level.
        """
        items = self.items(pane)
        if kind == ItemKind.CONTAINER:
            new_item: Item = new_container(title or "New Group")
        else:
            new_item = new_document(title or "Untitled Scene")

        target = parent_id
        selected = self.pane(pane).selected_item_id
        if not target and selected:
            active = binder.find(items, selected)
            if isinstance(active, Container):
                target = active.id
            else:
                context = binder.find_parent_context(items, selected)
                if context and context.parent:
                    target = context.parent.id

        new_items = binder.insert(items, target, new_item)
        if new_items is items:
            logger.debug(f"Parent {target} is not a container; nothing inserted")
            return new_item
        if not self._apply_items(new_items, pane):
            return new_item
        mode = PresentationMode.EDITOR if kind == ItemKind.DOCUMENT else PresentationMode.CORKBOARD
        self._set(pane, selected_item_id=new_item.id, mode=mode)
        return new_item

    def delete_item(self, item_id: str, pane: Optional[PaneId] = None) -> List[str]:
        """Delete an item with its subtree. Returns the removed ids."""
        project_id = self.pane(pane).project_id
        items = self.items(pane)
        removed = binder.subtree_ids(items, item_id)
        if not removed:
            return []
        self._apply_items(binder.delete(items, item_id), pane)
        for removed_id in removed:
            self.on_item_deleted(removed_id, project_id)
        logger.info(f"Deleted {len(removed)} item(s) from project {project_id}")
        return removed

    # Threads and notes

    def add_thread(self, name: str, color: Optional[str] = None, pane: Optional[PaneId] = None) -> Optional[PlotThread]:
        thread = PlotThread(id=new_id("thread"), name=name, color=color or random.choice(THREAD_COLORS))
        if not self._apply(pane, threads=self.threads(pane) + (thread,)):
            return None
        return thread

    def remove_thread(self, thread_id: str, pane: Optional[PaneId] = None) -> None:
        """Remove a thread and every annotation documents carry for it."""
        threads = tuple(t for t in self.threads(pane) if t.id != thread_id)
        items = self.items(pane)
        for document in binder.documents(items):
            if thread_id in document.plot_points:
                points = {k: v for k, v in document.plot_points.items() if k != thread_id}
                items = binder.update(items, document.id, plot_points=points)
        self._apply(pane, items=items, threads=threads)

    def annotate(self, item_id: str, thread_id: str, text: str, pane: Optional[PaneId] = None) -> None:
        """Set a document's annotation for a thread; empty text removes it."""
        document = binder.find(self.items(pane), item_id)
        if not isinstance(document, Document):
            return
        points = dict(document.plot_points)
        if text:
            points[thread_id] = text
        else:
            points.pop(thread_id, None)
        self.update_item(item_id, pane, plot_points=points)

    def set_root_notes(self, notes: Iterable[StickyNote], pane: Optional[PaneId] = None) -> None:
        self._apply(pane, notes=tuple(notes))

    def _update_notes(self, pane: Optional[PaneId], change) -> None:
        document = self.active_document(pane)
        if document is None:
            return
        self.update_item(document.id, pane, notes=tuple(change(document.notes)))

    def add_sticky_note(self, color: str, content: str = "", pane: Optional[PaneId] = None) -> Optional[StickyNote]:
        if self.active_document(pane) is None:
            return None
        note = StickyNote(id=new_id("note"), content=content, color=color, rotation=(random.random() - 0.5) * 4)
        self._update_notes(pane, lambda notes: notes + (note,))
        return note

    def update_sticky_note(self, note_id: str, content: str, pane: Optional[PaneId] = None) -> None:
        self._update_notes(pane, lambda notes: [replace(n, content=content) if n.id == note_id else n for n in notes])

    def recolor_sticky_note(self, note_id: str, color: str, pane: Optional[PaneId] = None) -> None:
        self._update_notes(pane, lambda notes: [replace(n, color=color) if n.id == note_id else n for n in notes])

    def delete_sticky_note(self, note_id: str, pane: Optional[PaneId] = None) -> None:
        self._update_notes(pane, lambda notes: [n for n in notes if n.id != note_id])

    # Snapshots

    def create_snapshot(self, label: str, pane: Optional[PaneId] = None) -> Optional[Snapshot]:
        document = self.active_document(pane)
        if document is None:
            return None
        snapshot = Snapshot.capture(label, document.body)
        self.update_item(document.id, pane, snapshots=document.snapshots + (snapshot,))
        return snapshot

    def restore_snapshot(self, snapshot_id: str, pane: Optional[PaneId] = None) -> bool:
        document = self.active_document(pane)
        if document is None:
            return False
        for snapshot in document.snapshots:
            if snapshot.id == snapshot_id:
                self.update_item(document.id, pane, body=snapshot.body)
                return True
        return False

    def delete_snapshot(self, snapshot_id: str, pane: Optional[PaneId] = None) -> None:
        document = self.active_document(pane)
        if document is None:
            return
        kept = tuple(s for s in document.snapshots if s.id != snapshot_id)
        self.update_item(document.id, pane, snapshots=kept)

    # Projects

    def create_project(self, title: str = "Untitled Project", author: str = "Author", **fields: Any) -> Project:
        project = self.store.create_project(title, author, **fields)
        self.open_project(project.id)
        return project

    def delete_project(self, project_id: str) -> None:
        """Delete a project; panes that showed it move to another project or go empty."""
        self.store.delete_project(project_id)
        remaining = self.store.list_projects()
        for key, pane in list(self._panes.items()):
            if pane.project_id != project_id:
                continue
            if remaining:
                self.open_project(remaining[0].id, key)
            else:
                self._panes[key] = Pane("")

    def import_project(self, record: Dict[str, Any]) -> Project:
        """Register an exported project record under a fresh id and open it."""
        from ..io.project_loader import import_project

        project = import_project(self.store, record)
        self.open_project(project.id)
        return project
