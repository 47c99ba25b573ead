"""Datenmodell für Probenvorlagen."""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field, field_validator

from models.base import WireModel, text
from models.enums import RehearsalStatus, RehearsalType, SongDifficulty, coerce_enum
from models.rehearsal import Rehearsal
from models.song_plan import SongPlan


class RehearsalTemplate(WireModel):
    """Wiederverwendbare Vorlage für neue Proben."""

    id: int = 0
    title: str
    type: RehearsalType = RehearsalType.GENERAL_PRACTICE
    duration: int = Field(60, ge=1)
    objectives: str = ""
    category: str = "General"
    tags: list[str] = []
    estimated_attendees: int = Field(20, ge=0)
    difficulty: SongDifficulty = SongDifficulty.EASY
    song_plans: list[SongPlan] = Field(default_factory=list, alias="rehearsalSongs")
    last_used: Optional[datetime] = None
    usage_count: int = Field(0, ge=0)

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, v: Any) -> RehearsalType:
        return coerce_enum(RehearsalType, v, RehearsalType.GENERAL_PRACTICE)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _coerce_difficulty(cls, v: Any) -> SongDifficulty:
        return coerce_enum(SongDifficulty, v, SongDifficulty.EASY)

    @field_validator("objectives", "category", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> str:
        return text(v)

    @field_validator("tags", mode="before")
    @classmethod
    def _clean_tags(cls, v: Any) -> list[str]:
        tags: list[str] = []
        for t in v or []:
            t = text(t).strip()
            if t and t not in tags:
                tags.append(t)
        return tags

    def matches(self, term: str) -> bool:
        """Volltextsuche über Titel, Ziele, Kategorie und Tags."""
        needle = term.strip().lower()
        if not needle:
            return True
        haystack = [self.title, self.objectives, self.category, *self.tags]
        return any(needle in h.lower() for h in haystack)

    def to_draft(self, **overrides: Any) -> Rehearsal:
        """Neuer Entwurf (id 0) mit den Werten der Vorlage. Die Vorlage bleibt unverändert."""
        data: dict[str, Any] = {
            "title": self.title,
            "type": self.type,
            "duration": self.duration,
            "objectives": self.objectives,
            "status": RehearsalStatus.PLANNING,
            "is_template": False,
        }
        data.update(overrides)
        data["id"] = 0
        return Rehearsal.model_validate(data)
