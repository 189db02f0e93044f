"""Project content store with debounced persistence."""

import json
import logging
import threading
from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Set

from . import binder
from .exceptions import MalformedDataError, ProjectNotFoundError
from .item import Item, StickyNote
from .project import PlotThread, Project, ProjectContent, sort_projects
from .scheduler import SaveScheduler, ScheduledCall, TimerScheduler

if TYPE_CHECKING:
    from ..io.storage import KeyValueStore

logger = logging.getLogger(__name__)

META_KEY = "nebula_projects_meta"
CONTENT_PREFIX = "nebula_content_"


def content_key(project_id: str) -> str:
    return CONTENT_PREFIX + project_id


class SaveStatus(Enum):
    SAVED = "saved"
    SAVING = "saving"
    UNSAVED = "unsaved"


class ProjectContentStore:
    """Owns project metadata and resident content bundles.

    Every mutation goes through :meth:`apply` (or one of the metadata
    methods), which arms a single save after ``save_delay`` seconds. A new
    mutation before the delay elapses replaces the pending save, so only
    the last state of a burst of edits is written. A failed write leaves
    the status ``UNSAVED`` and the data dirty; the next mutation retries.
    """

    def __init__(
        self,
        storage: "KeyValueStore",
        scheduler: Optional[SaveScheduler] = None,
        save_delay: float = 2.0,
    ):
        self.storage = storage
        self.scheduler = scheduler or TimerScheduler()
        self.save_delay = save_delay
        self.status = SaveStatus.SAVED

        self._projects: Dict[str, Project] = {}
        self._contents: Dict[str, ProjectContent] = {}
        self._dirty: Set[str] = set()
        self._deleted: Set[str] = set()
        self._meta_dirty = False
        self._pending: Optional[ScheduledCall] = None
        self._generation = 0
        self._lock = threading.RLock()

    # Metadata

    def load_projects(self) -> List[Project]:
        """Read the metadata list from storage; malformed data yields no projects."""
        raw = self.storage.load(META_KEY)
        projects: List[Project] = []
        if raw:
            try:
                records = json.loads(raw.decode("utf-8"))
                if not isinstance(records, list):
                    raise MalformedDataError("Project metadata must be a list")
                projects = [Project.from_dict(record) for record in records]
            except (ValueError, MalformedDataError) as e:
                logger.warning(f"Ignoring unreadable project metadata: {e}")
                projects = []
        with self._lock:
            self._projects = {project.id: project for project in projects}
        logger.debug(f"Loaded {len(projects)} project records")
        return self.list_projects()

    def list_projects(self) -> List[Project]:
        with self._lock:
            return sort_projects(list(self._projects.values()))

    def get_project(self, project_id: str) -> Project:
        try:
            return self._projects[project_id]
        except KeyError:
            raise ProjectNotFoundError(project_id) from None

    def has_project(self, project_id: str) -> bool:
        return project_id in self._projects

    def create_project(self, title: str = "Untitled Project", author: str = "Author", **fields: Any) -> Project:
        """Register a new project whose binder starts with one chapter."""
        project = Project.create(title=title, author=author, **fields)
        self.register(project, ProjectContent.seeded("Chapter 1"))
        logger.info(f"Created project '{title}' ({project.id})")
        return project

    def register(self, project: Project, content: ProjectContent) -> Project:
        """Add a project together with its content bundle."""
        with self._lock:
            project.word_count = binder.word_count(content.items)
            self._projects[project.id] = project
            self._contents[project.id] = content
            self._deleted.discard(project.id)
            self._dirty.add(project.id)
            self._meta_dirty = True
            self._schedule_save()
        return project

    def update_project(self, project_id: str, **fields: Any) -> Project:
        with self._lock:
            project = self.get_project(project_id)
            for name, value in fields.items():
                if name == "id" or not hasattr(project, name):
                    raise TypeError(f"Cannot update project field: {name}")
                setattr(project, name, value)
            project.touch()
            self._meta_dirty = True
            self._schedule_save()
        return project

    def toggle_favorite(self, project_id: str) -> Project:
        project = self.get_project(project_id)
        return self.update_project(project_id, is_favorite=not project.is_favorite)

    def delete_project(self, project_id: str) -> None:
        """Remove a project's metadata and content in one step."""
        with self._lock:
            if project_id not in self._projects and project_id not in self._contents:
                raise ProjectNotFoundError(project_id)
            self._projects.pop(project_id, None)
            self._contents.pop(project_id, None)
            self._dirty.discard(project_id)
            self._deleted.add(project_id)
            self._meta_dirty = True
            self._schedule_save()
        logger.info(f"Deleted project {project_id}")

    # Content

    def is_loaded(self, project_id: str) -> bool:
        return project_id in self._contents

    def ensure_loaded(self, project_id: str) -> ProjectContent:
        """Make a project's content resident, synthesizing a default bundle if needed."""
        with self._lock:
            if project_id in self._contents:
                return self._contents[project_id]
            content = self._read_content(project_id)
            self._contents[project_id] = content
            return content

    def _read_content(self, project_id: str) -> ProjectContent:
        raw = self.storage.load(content_key(project_id))
        if raw is None:
            logger.debug(f"No stored content for {project_id}; using default bundle")
            return ProjectContent.seeded()
        try:
            return ProjectContent.from_dict(json.loads(raw.decode("utf-8")))
        except (ValueError, MalformedDataError) as e:
            logger.warning(f"Stored content for {project_id} is unreadable, using default bundle: {e}")
            return ProjectContent.seeded()

    def content(self, project_id: str) -> ProjectContent:
        return self.ensure_loaded(project_id)

    def items(self, project_id: str) -> Sequence[Item]:
        return self.ensure_loaded(project_id).items

    def apply(
        self,
        project_id: str,
        items: Optional[Sequence[Item]] = None,
        threads: Optional[Sequence[PlotThread]] = None,
        notes: Optional[Sequence[StickyNote]] = None,
    ) -> ProjectContent:
        """Merge new parts into a project's bundle and schedule a save.

        Raises ProjectNotFoundError for an id with no metadata record, so
        content is never stored without its project.
        """
        with self._lock:
            if project_id not in self._projects:
                raise ProjectNotFoundError(project_id)
            current = self.ensure_loaded(project_id)
            changes: Dict[str, Any] = {}
            if items is not None:
                changes["items"] = tuple(items)
            if threads is not None:
                changes["threads"] = tuple(threads)
            if notes is not None:
                changes["notes"] = tuple(notes)
            if not changes:
                return current

            content = replace(current, **changes)
            self._contents[project_id] = content
            self._dirty.add(project_id)

            project = self._projects.get(project_id)
            if project is not None:
                project.touch()
                if items is not None:
                    project.word_count = binder.word_count(content.items)
                self._meta_dirty = True

            self._schedule_save()
            return content

    # Persistence

    def _schedule_save(self) -> None:
        self.status = SaveStatus.SAVING
        if self._pending is not None:
            self._pending.cancel()
        self._generation += 1
        generation = self._generation
        self._pending = self.scheduler.schedule(self.save_delay, lambda: self._save(generation))

    def flush(self) -> bool:
        """Write pending changes now. Returns True when nothing is left unsaved."""
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None
            if self._dirty or self._deleted or self._meta_dirty:
                self._save()
            return self.status == SaveStatus.SAVED

    def _write(self, key: str, value: bytes) -> bool:
        try:
            return self.storage.store(key, value)
        except OSError as e:
            logger.error(f"Storage write for {key} raised: {e}")
            return False

    def _save(self, generation: Optional[int] = None) -> None:
        with self._lock:
            if generation is not None and generation != self._generation:
                # A newer save was armed while this timer waited for the lock
                return
            self._pending = None
            ok = True

            if self._meta_dirty:
                records = [project.to_dict() for project in self._projects.values()]
                if self._write(META_KEY, _encode(records)):
                    self._meta_dirty = False
                else:
                    ok = False

            for project_id in sorted(self._dirty):
                content = self._contents.get(project_id)
                if content is None:
                    self._dirty.discard(project_id)
                    continue
                if self._write(content_key(project_id), _encode(content.to_dict())):
                    self._dirty.discard(project_id)
                else:
                    ok = False

            for project_id in sorted(self._deleted):
                if self.storage.delete(content_key(project_id)):
                    self._deleted.discard(project_id)
                else:
                    ok = False

            if ok:
                self.status = SaveStatus.SAVED
                logger.debug("Saved project data")
            else:
                self.status = SaveStatus.UNSAVED
                logger.warning("Saving project data failed; changes are kept in memory and retried on the next edit")


def _encode(data: Any) -> bytes:
    return json.dumps(data, ensure_ascii=False, indent=2).encode("utf-8")
