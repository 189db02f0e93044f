"""File I/O and persistence modules."""

from .exporter import ManuscriptExporter
from .file_handler import FileHandler
from .project_loader import ProjectLoader, import_project
from .storage import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore

__all__ = [
    "FileHandler",
    "FileKeyValueStore",
    "KeyValueStore",
    "ManuscriptExporter",
    "MemoryKeyValueStore",
    "ProjectLoader",
    "import_project",
]
