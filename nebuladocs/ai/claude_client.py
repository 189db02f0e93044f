"""Claude-backed assistant for NebulaDocs."""

import json
import logging
import os
import re
from typing import Dict, List, Optional

from anthropic import AnthropicError, AsyncAnthropic
from tenacity import retry, stop_after_attempt, wait_exponential

from ..core.exceptions import AssistError, AssistUnavailableError, MalformedDataError
from .assistant import AssistResult, AssistTask, Assistant, SceneExtraction

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"

EXTRACTION_PROMPT = """You are a story analyst. Read the scene and describe it as JSON with this shape:
{
    "participants": [
        {"name": "...", "role": "protagonist/antagonist/deuteragonist/mentor/love interest/supporting/minor",
         "goal": "...", "motivation": "...", "conflict": "...", "arc_start": "...", "arc_end": "..."}
    ],
    "setting": {"location": "...", "time": "...", "objects": ["..."],
                "senses": {"sight": "...", "sound": "...", "smell": "...", "touch": "...", "taste": "..."},
                "emotional_impact": "..."},
    "mechanics": {"story_map": "...", "purpose": "...", "scene_type": "Action/Sequel/Mixed",
                  "tension": 1-10, "pacing": 1-10, "plot_point": "..."},
    "start": "YYYY-MM-DDTHH:MM or null"
}
Return ONLY the JSON."""

_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)


class ClaudeAssistant(Assistant):
    """Assistant that talks to the Claude API with retries."""

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_MODEL, max_tokens: int = 4000):
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise AssistUnavailableError("ANTHROPIC_API_KEY environment variable or api_key parameter is required")

        self.client = AsyncAnthropic(api_key=self.api_key)
        self.model = model
        self.max_tokens = max_tokens

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=4, max=10), reraise=True)
    async def _make_request(self, messages: List[Dict[str, str]], system: str = "") -> str:
        """Make a request to Claude API with retry logic."""
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system,
            messages=messages,
        )
        return response.content[0].text

    async def _ask(self, prompt: str, system: str) -> str:
        try:
            return await self._make_request([{"role": "user", "content": prompt}], system)
        except AnthropicError as e:
            logger.error(f"API request failed: {e}")
            raise AssistError(f"Claude request failed: {e}") from e

    async def run(self, task: AssistTask, text: str, instruction: str = "") -> AssistResult:
        if task == AssistTask.IMAGE:
            raise AssistUnavailableError("Image generation is not supported by the Claude assistant")

        if task == AssistTask.CONTINUE:
            system = (
                "You are an expert editor and writing assistant. "
                f'Context: "{text[-8000:]}". Return ONLY the improved or generated text.'
            )
            reply = await self._ask(instruction or "Continue the scene.", system)
            return AssistResult(task, text=reply)

        if task == AssistTask.REFINE:
            system = "You are a professional editor. Rewrite the passage as instructed. Return ONLY the rewritten text."
            reply = await self._ask(f"Instruction: {instruction}\n\nPassage:\n{text}", system)
            return AssistResult(task, text=reply)

        reply = await self._ask(f"Scene:\n{text[:25000]}", EXTRACTION_PROMPT)
        return AssistResult(task, text=reply, extraction=parse_extraction(reply))


def parse_extraction(reply: str) -> SceneExtraction:
    """Pull the JSON object out of a model reply."""
    match = _JSON_BLOCK.search(reply)
    if not match:
        raise AssistError("No JSON object in extraction reply")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise AssistError(f"Extraction reply is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise AssistError("Extraction reply must be a JSON object")
    try:
        return SceneExtraction.from_dict(data)
    except (MalformedDataError, TypeError, ValueError) as e:
        raise AssistError(f"Extraction reply has unusable fields: {e}") from e
