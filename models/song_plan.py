"""Datenmodelle für die Song-Planung innerhalb einer Probe (Pydantic v2)."""

import logging
from typing import Any, Optional

from pydantic import Field, field_validator

from models.base import WireModel, text, to_int, unique_ids
from models.enums import MusicalKey, SongDifficulty, VoicePartType, coerce_enum
from models.musician import SongMusician

logger = logging.getLogger(__name__)


class VoicePartAssignment(WireModel):
    """Stimmgruppe eines Songs mit zugeordneten Mitgliedern."""

    voice_part_type: VoicePartType = VoicePartType.SOPRANO
    member_ids: list[int] = []
    needs_work: bool = False
    focus_points: str = ""
    notes: str = ""
    # Nur Anzeige, wird nicht an die Schnittstelle gesendet
    member_names: list[str] = Field(default_factory=list, exclude=True)

    @field_validator("voice_part_type", mode="before")
    @classmethod
    def _sanitize_voice_part(cls, v: Any) -> VoicePartType:
        part = coerce_enum(VoicePartType, v)
        if part is None:
            logger.warning(f"Unbekannte Stimmgruppe {v!r} → Soprano")
            return VoicePartType.SOPRANO
        return part

    @field_validator("member_ids", mode="before")
    @classmethod
    def _dedupe_members(cls, v: Any) -> list[int]:
        return unique_ids(v or [])

    @field_validator("focus_points", "notes", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> str:
        return text(v)

    @property
    def is_unassigned(self) -> bool:
        return not self.member_ids and not self.member_names


class SongPlan(WireModel):
    """Planung eines Songs in einer Probe."""

    rehearsal_song_id: Optional[int] = None   # None = noch nicht gespeichert
    song_id: int = 0                          # Katalog-Song, nach dem Setzen unveränderlich
    difficulty: SongDifficulty = SongDifficulty.INTERMEDIATE
    musical_key: MusicalKey = MusicalKey.C
    needs_work: bool = False
    order: int = Field(0, ge=0)               # 0 = wird beim Hinzufügen vergeben
    time_allocated: int = Field(0, ge=0)      # Minuten
    focus_points: str = ""
    notes: str = ""
    lead_singer_ids: list[int] = []
    chorus_member_ids: list[int] = []
    voice_parts: list[VoicePartAssignment] = []
    musicians: list[SongMusician] = []
    added_by_id: Optional[int] = None
    # Nur Anzeige
    song_title: str = Field("", exclude=True)
    lead_singer_names: list[str] = Field(default_factory=list, exclude=True)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _coerce_difficulty(cls, v: Any) -> SongDifficulty:
        return coerce_enum(SongDifficulty, v, SongDifficulty.INTERMEDIATE)

    @field_validator("musical_key", mode="before")
    @classmethod
    def _coerce_key(cls, v: Any) -> MusicalKey:
        return coerce_enum(MusicalKey, v, MusicalKey.C)

    @field_validator("lead_singer_ids", "chorus_member_ids", mode="before")
    @classmethod
    def _dedupe_ids(cls, v: Any) -> list[int]:
        return unique_ids(v or [])

    @field_validator("rehearsal_song_id", "added_by_id", mode="before")
    @classmethod
    def _positive_or_none(cls, v: Any) -> Optional[int]:
        i = to_int(v)
        return i if i and i > 0 else None

    @field_validator("focus_points", "notes", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> str:
        return text(v)

    @property
    def is_persisted(self) -> bool:
        return self.rehearsal_song_id is not None

    @property
    def has_lead_singer(self) -> bool:
        return bool(self.lead_singer_ids)

    def with_changes(self, changes: dict[str, Any]) -> "SongPlan":
        """Neue Kopie mit geänderten Feldern. Die Song-ID bleibt unverändert."""
        data = self.model_dump()
        for key, value in changes.items():
            name = self.field_for_key(key)
            if name is None or name in ("song_id", "rehearsal_song_id"):
                continue
            data[name] = value
        updated = SongPlan.model_validate(data)
        updated.song_title = self.song_title
        if updated.lead_singer_ids == self.lead_singer_ids:
            updated.lead_singer_names = list(self.lead_singer_names)
        return updated
