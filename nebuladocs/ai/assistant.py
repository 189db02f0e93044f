"""Generative assistant interface and its offline implementations."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

from ..core.character import Participant, ParticipantRole
from ..core.exceptions import AssistError
from ..core.item import SceneMechanics, SceneSetting, Senses, new_id

logger = logging.getLogger(__name__)


class AssistTask(Enum):
    CONTINUE = "continue"
    REFINE = "refine"
    IMAGE = "image"
    EXTRACT = "extract"


@dataclass(frozen=True)
class SceneExtraction:
    """Structured scene details read out of a document's text."""

    participants: Tuple[Participant, ...] = ()
    setting: Optional[SceneSetting] = None
    mechanics: Optional[SceneMechanics] = None
    start: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SceneExtraction":
        """Build an extraction from loosely shaped model output."""
        participants = []
        for entry in data.get("participants") or data.get("characters") or []:
            if isinstance(entry, str):
                entry = {"name": entry}
            if not isinstance(entry, dict) or not entry.get("name"):
                continue
            participants.append(Participant.from_dict({"id": new_id("char"), **entry}))

        setting = data.get("setting")
        mechanics = data.get("mechanics")
        return cls(
            participants=tuple(participants),
            setting=SceneSetting.from_dict(setting) if isinstance(setting, dict) else None,
            mechanics=SceneMechanics.from_dict(mechanics) if isinstance(mechanics, dict) else None,
            start=data.get("start") or None,
        )


@dataclass(frozen=True)
class AssistResult:
    task: AssistTask
    text: str = ""
    image: Optional[str] = None
    extraction: Optional[SceneExtraction] = None
    degraded: bool = False
    error: Optional[str] = None


class Assistant(ABC):
    """Something that can continue, refine, illustrate or analyze prose."""

    @abstractmethod
    async def run(self, task: AssistTask, text: str, instruction: str = "") -> AssistResult:
        """Perform ``task`` on ``text``. Raises AssistError when the task cannot be done."""
        pass


class OfflineAssistant(Assistant):
    """Stand-in used when no generative service is reachable.

    Every result is clearly labelled as simulated so it is never mistaken
    for real output.
    """

    def __init__(self, delay: float = 0.0):
        self.delay = delay

    async def run(self, task: AssistTask, text: str, instruction: str = "") -> AssistResult:
        if self.delay:
            await asyncio.sleep(self.delay)

        if task == AssistTask.CONTINUE:
            prompt = instruction or text[:80]
            return AssistResult(
                task,
                text=f'[OFFLINE MODE] Here is a simulated continuation based on your prompt: "{prompt}". '
                "(This is placeholder text generated because no generative service is available.)",
            )
        if task == AssistTask.REFINE:
            return AssistResult(task, text=f"[OFFLINE REWRITE]: {text} (Simulated polish for instruction: {instruction})")
        if task == AssistTask.IMAGE:
            caption = quote((instruction or text)[:20])
            return AssistResult(task, image=f"https://placehold.co/600x400/EEE/31343C?text={caption}")
        return AssistResult(task, extraction=self._simulated_extraction())

    def _simulated_extraction(self) -> SceneExtraction:
        return SceneExtraction(
            participants=(
                Participant(
                    id=new_id("char"),
                    name="John Doe",
                    role=ParticipantRole.PROTAGONIST,
                    goal="To survive",
                    motivation="Fear",
                    conflict="The storm",
                    arc_start="Anxious",
                    arc_end="Brave",
                ),
            ),
            setting=SceneSetting(
                location="Simulation Room",
                time="Midnight",
                objects=("Computer", "Coffee Cup"),
                senses=Senses(sight="Dim light", sound="Humming", smell="Coffee", touch="Cold keys", taste="Bitter"),
                emotional_impact="Isolation",
            ),
            mechanics=SceneMechanics(
                story_map="Rising Action",
                purpose="Establish the stakes",
                scene_type="Action",
                tension=7,
                pacing=8,
                plot_point="Inciting Incident",
            ),
            start=datetime.now().strftime("%Y-%m-%dT%H:%M"),
        )


class FallbackAssistant(Assistant):
    """Try a primary assistant and fall back to another when it fails."""

    def __init__(self, primary: Assistant, fallback: Optional[Assistant] = None):
        self.primary = primary
        self.fallback = fallback or OfflineAssistant()

    async def run(self, task: AssistTask, text: str, instruction: str = "") -> AssistResult:
        try:
            return await self.primary.run(task, text, instruction)
        except AssistError as e:
            logger.warning(f"Assistant failed for {task.value}, using fallback: {e}")
            result = await self.fallback.run(task, text, instruction)
            return replace(result, degraded=True, error=str(e))
