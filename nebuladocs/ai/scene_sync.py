"""Fill scene metadata from document text using an assistant."""

import logging
from dataclasses import replace
from typing import List, Optional

from ..core import binder
from ..core.item import Document, TimelineData
from ..core.store import ProjectContentStore
from .assistant import AssistTask, Assistant, SceneExtraction

logger = logging.getLogger(__name__)

MIN_SCAN_CHARS = 50


class SceneSync:
    """Runs scene extraction and merges the result into the binder.

    The assistant call is slow, so the tree is read again once it returns;
    a result for a document that was deleted meanwhile is discarded.
    """

    def __init__(self, store: ProjectContentStore, assistant: Assistant):
        self.store = store
        self.assistant = assistant

    async def sync_document(self, project_id: str, item_id: str) -> Optional[Document]:
        document = binder.find(self.store.items(project_id), item_id)
        if not isinstance(document, Document) or not document.plain_text.strip():
            logger.info(f"Nothing to sync for {item_id}")
            return None

        result = await self.assistant.run(AssistTask.EXTRACT, document.plain_text)
        if result.extraction is None:
            logger.warning(f"Assistant returned no scene details for {item_id}")
            return None
        if result.degraded:
            logger.warning(f"Scene details for {item_id} are simulated: {result.error}")

        if not self.store.has_project(project_id):
            logger.info(f"Discarding scene details for {item_id}; project {project_id} was deleted")
            return None
        items = self.store.items(project_id)
        current = binder.find(items, item_id)
        if not isinstance(current, Document):
            logger.info(f"Discarding scene details for {item_id}; the document no longer exists")
            return None

        merged = merge_extraction(current, result.extraction)
        self.store.apply(
            project_id,
            items=binder.update(
                items,
                item_id,
                participants=merged.participants,
                setting=merged.setting,
                mechanics=merged.mechanics,
                timeline=merged.timeline,
            ),
        )
        logger.info(f"Synced scene details for '{merged.title}'")
        return merged

    async def scan_project(self, project_id: str) -> List[Document]:
        """Sync every document with enough text that is missing participants or a location."""
        targets = [
            document.id
            for document in binder.documents(self.store.items(project_id))
            if len(document.plain_text.strip()) > MIN_SCAN_CHARS
            and (not document.participants or not document.location)
        ]
        logger.info(f"Scanning {len(targets)} document(s) in {project_id}")
        synced = []
        for item_id in targets:
            document = await self.sync_document(project_id, item_id)
            if document is not None:
                synced.append(document)
        return synced


def merge_extraction(document: Document, extraction: SceneExtraction) -> Document:
    """Combine extracted details with what the document already records.

    Participants are added only for names not already present (ignoring
    case). Setting location and time are taken from the extraction when it
    has them.
    """
    known = {name.lower() for name in document.participant_names()}
    participants = list(document.participants)
    for participant in extraction.participants:
        if participant.name.lower() not in known:
            participants.append(participant)
            known.add(participant.name.lower())

    setting = document.setting
    if extraction.setting is not None:
        if setting is None:
            setting = extraction.setting
        else:
            setting = replace(
                setting,
                location=extraction.setting.location or setting.location,
                time=extraction.setting.time or setting.time,
            )

    timeline = document.timeline
    if extraction.start:
        timeline = replace(timeline or TimelineData(), start=extraction.start)

    return replace(
        document,
        participants=tuple(participants),
        setting=setting,
        mechanics=extraction.mechanics or document.mechanics,
        timeline=timeline,
    )
