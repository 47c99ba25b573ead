"""ChoirData: Vollständiger Datensatz des lokalen Speichers (Pydantic v2)."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel

from models.reference import DutyShift, Performance, SongRef, UserRef
from models.template import RehearsalTemplate


class ChoirData(BaseModel):
    """Mitglieder, Song-Katalog, Dienste, Auftritte, Proben und Vorlagen.

    Proben liegen in der kombinierten Form der Schnittstelle vor
    (Song-Details direkt in ``rehearsalSongs``).
    """

    choir_name: str = "Muster-Chor"
    users: list[UserRef] = []
    songs: list[SongRef] = []
    shifts: list[DutyShift] = []
    performances: list[Performance] = []
    rehearsals: list[dict[str, Any]] = []
    templates: list[RehearsalTemplate] = []
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    data_version: str = "1.0"

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Datensatz."""
        singers = sum(1 for u in self.users if "SINGER" in u.categories)
        musicians = sum(1 for u in self.users if "MUSICIAN" in u.categories)
        lines = [
            f"Chor: {self.choir_name}",
            f"Mitglieder: {len(self.users)} ({singers} Sänger, {musicians} Musiker)",
            f"Songs im Katalog: {len(self.songs)}",
            f"Dienste: {len(self.shifts)}",
            f"Auftritte: {len(self.performances)}",
            f"Proben: {len(self.rehearsals)}",
            f"Vorlagen: {len(self.templates)}",
        ]
        return "\n".join(lines)

    # ─── Persistenz ────────────────────────────────────────────────────────

    def save_json(self, path: Path) -> None:
        """Speichert den kompletten Datensatz als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        updated = self.model_copy(update={
            "modified_at": now,
            "created_at": self.created_at or now,
        })
        with open(path, "w", encoding="utf-8") as f:
            f.write(updated.model_dump_json(indent=2, by_alias=True))

    @classmethod
    def load_json(cls, path: Path) -> "ChoirData":
        """Lädt einen Datensatz aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())
