"""
NebulaDocs - a writing-project binder with cross-reference insight.
"""

__version__ = "1.0.0"
__author__ = "NebulaDocs Team"

from .core import Container, Document, Participant, PlotThread, Project, ProjectContent, ProjectContentStore, Workspace
from .ai import ClaudeAssistant, FallbackAssistant, OfflineAssistant, SceneSync
from .editor import ContinuityTracker, Dimension, build_grid, find_conflicts

__all__ = [
    "Container",
    "Document",
    "Participant",
    "PlotThread",
    "Project",
    "ProjectContent",
    "ProjectContentStore",
    "Workspace",
    "ClaudeAssistant",
    "FallbackAssistant",
    "OfflineAssistant",
    "SceneSync",
    "ContinuityTracker",
    "Dimension",
    "build_grid",
    "find_conflicts",
]
