"""Participant records attached to documents."""

from enum import Enum
from typing import Dict, Any, Optional
from dataclasses import dataclass

from .exceptions import MalformedDataError


class ParticipantRole(Enum):
    """Role a participant plays within a scene."""
    PROTAGONIST = "protagonist"
    ANTAGONIST = "antagonist"
    DEUTERAGONIST = "deuteragonist"
    MENTOR = "mentor"
    LOVE_INTEREST = "love interest"
    SUPPORTING = "supporting"
    MINOR = "minor"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ParticipantRole":
        """Resolve a role from free text, falling back to SUPPORTING."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.SUPPORTING
        normalized = str(value).strip().lower().replace("_", " ")
        for role in cls:
            if role.value == normalized:
                return role
        return cls.SUPPORTING

    @property
    def label(self) -> str:
        return self.value.title()


@dataclass(frozen=True)
class Participant:
    """A named character taking part in one document.

    The ``name`` is the join key used by the cross-reference views, so two
    records with the same name in different documents are the same person.
    """

    id: str
    name: str
    role: ParticipantRole = ParticipantRole.SUPPORTING
    goal: str = ""
    motivation: str = ""
    conflict: str = ""
    climax: str = ""
    outcome: str = ""
    arc_start: Optional[str] = None
    arc_end: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert participant to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role.value,
            "goal": self.goal,
            "motivation": self.motivation,
            "conflict": self.conflict,
            "climax": self.climax,
            "outcome": self.outcome,
            "arc_start": self.arc_start,
            "arc_end": self.arc_end,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Participant":
        """Create participant from dictionary."""
        try:
            return cls(
                id=data["id"],
                name=data["name"],
                role=ParticipantRole.parse(data.get("role")),
                goal=data.get("goal", ""),
                motivation=data.get("motivation", ""),
                conflict=data.get("conflict", ""),
                climax=data.get("climax", ""),
                outcome=data.get("outcome", ""),
                arc_start=data.get("arc_start"),
                arc_end=data.get("arc_end"),
            )
        except (KeyError, TypeError) as e:
            raise MalformedDataError(f"Invalid participant record: {e}") from e

    def __str__(self) -> str:
        """String representation of participant."""
        return f"{self.name} ({self.role.value})"
