"""Continuity tracking: scheduling conflicts and scene chronology."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.item import Document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Conflict:
    """A participant required in more than one place on the same date."""

    participant: str
    date: str
    locations: Tuple[str, ...]
    documents: Tuple[Tuple[str, str], ...]  # (id, title)

    @property
    def id(self) -> str:
        return f"{self.participant}-{self.date}"

    @property
    def description(self) -> str:
        return f"{self.participant} is in {len(self.locations)} places on {self.date}: {', '.join(self.locations)}"

    @property
    def document_ids(self) -> List[str]:
        return [doc_id for doc_id, _ in self.documents]


class ContinuityTracker:
    """Detects continuity problems across the documents of one project."""

    def __init__(self, documents: Sequence[Document]):
        self.documents = list(documents)

    def conflicts(self) -> List[Conflict]:
        """Group documents by (participant, date) and report groups spread over several locations.

        Only documents that carry a date, a location and at least one
        participant place someone somewhere.
        """
        placements: Dict[str, Dict[str, List[str]]] = {}
        for document in self.documents:
            key = document.date_key
            location = document.location
            if not (key and location and document.participants):
                continue
            for name in document.participant_names():
                locations = placements.setdefault(name, {}).setdefault(key, [])
                if location not in locations:
                    locations.append(location)

        conflicts = []
        for name, dates in placements.items():
            for key, locations in dates.items():
                if len(locations) <= 1:
                    continue
                involved = tuple(
                    (d.id, d.title)
                    for d in self.documents
                    if d.date_key == key and name in d.participant_names()
                )
                conflicts.append(Conflict(name, key, tuple(locations), involved))

        if conflicts:
            logger.debug(f"Found {len(conflicts)} scheduling conflict(s)")
        return conflicts

    def timeline(self, chronological: bool = True) -> List[Document]:
        """Documents in story-time order; undated documents follow in binder order."""
        if not chronological:
            return list(self.documents)
        dated: List[Tuple[datetime, int, Document]] = []
        undated: List[Document] = []
        for index, document in enumerate(self.documents):
            start = _parse_start(document)
            if start is None:
                undated.append(document)
            else:
                dated.append((start, index, document))
        dated.sort(key=lambda entry: (entry[0], entry[1]))
        return [document for _, _, document in dated] + undated

    def timeline_collisions(self) -> List[List[Document]]:
        """Groups of documents scheduled to start at exactly the same moment."""
        groups: Dict[str, List[Document]] = {}
        for document in self.documents:
            if document.timeline and document.timeline.start:
                groups.setdefault(document.timeline.start, []).append(document)
        return [group for group in groups.values() if len(group) > 1]


def _parse_start(document: Document) -> Optional[datetime]:
    if not (document.timeline and document.timeline.start):
        return None
    try:
        start = datetime.fromisoformat(document.timeline.start)
    except ValueError:
        logger.debug(f"Unparseable start time on {document.id}: {document.timeline.start!r}")
        return None
    return start.replace(tzinfo=None)


def find_conflicts(documents: Sequence[Document]) -> List[Conflict]:
    return ContinuityTracker(documents).conflicts()
