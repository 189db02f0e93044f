"""Project export and import records."""

import logging
from pathlib import Path
from typing import Any, Dict, Union

from ..core.exceptions import InvalidProjectRecordError, MalformedDataError
from ..core.item import new_id
from ..core.project import Project, ProjectContent
from ..core.store import ProjectContentStore
from .file_handler import FileHandler

logger = logging.getLogger(__name__)

RECORD_FORMAT = "nebuladocs.project"
RECORD_VERSION = 1

YAML_SUFFIXES = ('.yaml', '.yml')


class ProjectLoader:
    """Handles exporting projects to files and reading them back."""

    def __init__(self):
        self.file_handler = FileHandler()

    def export_project(self, store: ProjectContentStore, project_id: str) -> Dict[str, Any]:
        """Build a self-contained record of one project's metadata and content."""
        project = store.get_project(project_id)
        content = store.content(project_id)
        return {
            "format": RECORD_FORMAT,
            "version": RECORD_VERSION,
            "metadata": project.to_dict(),
            "content": content.to_dict(),
        }

    def save_record(self, record: Dict[str, Any], path: Union[str, Path]) -> None:
        """Write a record as YAML or JSON depending on the file suffix."""
        path = Path(path)
        if path.suffix.lower() in YAML_SUFFIXES:
            self.file_handler.write_yaml(path, record)
        else:
            self.file_handler.write_json(path, record)
        logger.info(f"Wrote project record to {path}")

    def load_record(self, path: Union[str, Path]) -> Dict[str, Any]:
        path = Path(path)
        if path.suffix.lower() in YAML_SUFFIXES:
            record = self.file_handler.read_yaml(path)
        else:
            record = self.file_handler.read_json(path)
        if not isinstance(record, dict):
            raise InvalidProjectRecordError(f"{path} does not contain a project record")
        return record


def import_project(store: ProjectContentStore, record: Dict[str, Any]) -> Project:
    """Register an exported project under a fresh id and return it."""
    if not isinstance(record, dict):
        raise InvalidProjectRecordError("Project record must be a mapping")
    if record.get("format", RECORD_FORMAT) != RECORD_FORMAT:
        raise InvalidProjectRecordError(f"Unknown record format: {record.get('format')}")
    metadata = record.get("metadata")
    content_data = record.get("content")
    if not isinstance(metadata, dict) or not isinstance(content_data, dict):
        raise InvalidProjectRecordError("Project record needs both metadata and content")

    try:
        project = Project.from_dict({**metadata, "id": new_id("p")})
        content = ProjectContent.from_dict(content_data)
    except MalformedDataError as e:
        raise InvalidProjectRecordError(f"Project record is malformed: {e}") from e

    project.touch()
    store.register(project, content)
    logger.info(f"Imported project '{project.title}' as {project.id}")
    return project
