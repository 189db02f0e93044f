"""AI integration modules for NebulaDocs."""

from .assistant import AssistResult, AssistTask, Assistant, FallbackAssistant, OfflineAssistant, SceneExtraction
from .claude_client import ClaudeAssistant
from .scene_sync import SceneSync

__all__ = [
    "AssistResult",
    "AssistTask",
    "Assistant",
    "ClaudeAssistant",
    "FallbackAssistant",
    "OfflineAssistant",
    "SceneExtraction",
    "SceneSync",
]
