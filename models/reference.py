"""Referenzdaten externer Kollaborateure (Benutzer, Songs, Dienste, Auftritte).

Diese Modelle werden nur gelesen. Die Probenplanung besitzt sie nicht.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import ConfigDict, Field, field_validator

from models.base import WireModel, text, unique_ids
from models.enums import ShiftStatus, coerce_enum


class UserRef(WireModel):
    """Ein Mitglied aus dem Benutzerverzeichnis."""

    id: int
    first_name: str = ""
    last_name: str = ""
    role: str = "USER"                      # UserRole-Wert, unbekannte Rollen bleiben erhalten
    categories: list[str] = []              # z.B. "SINGER", "MUSICIAN", "WORSHIPPER"
    voice_category: Optional[str] = None    # "Soprano", "Alto", ...

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> str:
        return text(v).strip()

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, v: Any) -> str:
        return text(v).strip().upper() or "USER"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class SongRef(WireModel):
    """Ein Eintrag im Song-Katalog."""

    id: int
    title: str
    composer: str = ""
    genre: str = ""
    added_by_id: Optional[int] = None

    @field_validator("composer", "genre", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> str:
        return text(v)


class DutyShift(WireModel):
    """Ein Dienst aus dem Dienstplan (Schichtleiter + Zeitraum)."""

    id: int
    leader_id: Optional[int] = None
    status: ShiftStatus = ShiftStatus.UPCOMING
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, v: Any) -> ShiftStatus:
        return coerce_enum(ShiftStatus, v, ShiftStatus.UPCOMING)

    @property
    def has_leader(self) -> bool:
        return bool(self.leader_id and self.leader_id > 0)


class Performance(WireModel):
    """Auftritt, Ziel einer Übernahme. Unbekannte Felder bleiben erhalten."""

    model_config = ConfigDict(extra="allow")

    id: int
    title: str = ""
    date: Optional[datetime] = None
    status: str = "Upcoming"
    rehearsal_id: Optional[int] = None
    song_ids: list[int] = Field(default_factory=list)

    @field_validator("song_ids", mode="before")
    @classmethod
    def _dedupe_songs(cls, v: Any) -> list[int]:
        return unique_ids(v or [])
