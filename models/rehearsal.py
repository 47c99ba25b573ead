"""Datenmodell einer Probe (Aggregat-Wurzel)."""

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from pydantic import Field, field_validator

from models.base import WireModel, text, to_int
from models.enums import RehearsalStatus, RehearsalType, coerce_enum
from models.musician import SessionMusician
from models.song_plan import SongPlan

logger = logging.getLogger(__name__)


class Rehearsal(WireModel):
    """Eine Probe mit Song-Planungen und Instrumentalisten.

    ``id == 0`` kennzeichnet einen Entwurf, der noch nie gespeichert wurde.
    Die Song-Planungen sind immer nach ``order`` sortiert, jede Position
    kommt höchstens einmal vor.
    """

    id: int = 0
    title: str = ""
    date: Optional[datetime] = None
    location: str = ""
    duration: int = 60                        # Minuten
    type: RehearsalType = RehearsalType.GENERAL_PRACTICE
    objectives: str = ""
    notes: str = ""
    feedback: str = ""
    is_template: bool = False
    performance_id: int = 0                   # 0 = kein Auftritt verknüpft
    rehearsal_lead_id: int = 0
    shift_lead_id: int = 0                    # nur mit aktivem Dienst Pflicht
    status: RehearsalStatus = RehearsalStatus.PLANNING
    is_promoted: bool = False                 # einmal gesetzt, nie zurück
    song_plans: list[SongPlan] = Field(default_factory=list, alias="rehearsalSongs")
    musicians: list[SessionMusician] = []

    @field_validator("id", "performance_id", "rehearsal_lead_id", "shift_lead_id",
                     mode="before")
    @classmethod
    def _id_or_zero(cls, v: Any) -> int:
        i = to_int(v)
        return i if i and i > 0 else 0

    @field_validator("title", "location", "objectives", "notes", "feedback", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> str:
        return text(v)

    @field_validator("date", mode="before")
    @classmethod
    def _blank_date(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, v: Any) -> RehearsalType:
        return coerce_enum(RehearsalType, v, RehearsalType.GENERAL_PRACTICE)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, v: Any) -> Any:
        if v is None:
            return RehearsalStatus.PLANNING
        return coerce_enum(RehearsalStatus, v) or v

    @field_validator("song_plans")
    @classmethod
    def _sort_plans(cls, v: list[SongPlan]) -> list[SongPlan]:
        return _resequence(v)

    # ─── Abgeleitete Werte ───

    @property
    def is_persisted(self) -> bool:
        return self.id > 0

    @property
    def total_time_allocated(self) -> int:
        return sum(p.time_allocated for p in self.song_plans)

    def next_song_order(self) -> int:
        """Nächste freie Position: größte vergebene + 1 (1 bei leerer Liste)."""
        return max((p.order for p in self.song_plans), default=0) + 1

    # ─── Song-Planungen ───

    def add_song_plan(self, plan: SongPlan) -> SongPlan:
        """Fügt eine Song-Planung ein. Ohne Position wird die nächste vergeben."""
        plan = plan.model_copy(deep=True)
        if plan.order <= 0:
            plan.order = self.next_song_order()
        elif any(p.order == plan.order for p in self.song_plans):
            raise ValueError(f"Song order {plan.order} is already used in this rehearsal")
        self.song_plans.append(plan)
        self.song_plans.sort(key=lambda p: p.order)
        return plan

    def replace_song_plans(self, plans: Iterable[SongPlan]) -> None:
        self.song_plans = _resequence(list(plans))

    def find_song_plan(self, key: int) -> Optional[SongPlan]:
        """Sucht zuerst über die RehearsalSong-ID, danach über die Song-ID."""
        for p in self.song_plans:
            if p.rehearsal_song_id == key:
                return p
        for p in self.song_plans:
            if p.song_id == key:
                return p
        return None

    def remove_song_plan(self, key: int) -> bool:
        plan = self.find_song_plan(key)
        if plan is None:
            return False
        self.song_plans.remove(plan)
        return True

    # ─── Aktualisierung ───

    def apply_update(self, changes: dict[str, Any]) -> "Rehearsal":
        """Gibt eine neue Probe mit den übernommenen Feldern zurück.

        Unbekannte Schlüssel werden ignoriert, Song-Planungen laufen über
        eigene Operationen. ``is_promoted`` kann nicht zurückgesetzt werden.
        """
        names: dict[str, Any] = {}
        for key, value in changes.items():
            name = self.field_for_key(key)
            if name is None or name in ("id", "song_plans"):
                continue
            names[name] = value

        probe = Rehearsal.model_validate(names)
        update = {name: getattr(probe, name) for name in names}
        update["is_promoted"] = self.is_promoted or bool(update.get("is_promoted", False))
        return self.model_copy(update=update, deep=True)


def _resequence(plans: list[SongPlan]) -> list[SongPlan]:
    """Sortiert nach Position, doppelte oder fehlende Positionen werden hinten neu vergeben."""
    ordered = sorted(plans, key=lambda p: (p.order <= 0, p.order))
    used: set[int] = set()
    next_free = max((p.order for p in ordered), default=0) + 1
    for p in ordered:
        if p.order <= 0 or p.order in used:
            if p.order > 0:
                logger.warning(
                    f"Doppelte Position {p.order} (Song {p.song_id}) → neu vergeben: {next_free}"
                )
            p.order = next_free
            next_free += 1
        used.add(p.order)
    return sorted(ordered, key=lambda p: p.order)
