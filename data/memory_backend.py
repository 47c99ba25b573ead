"""Lokale Umsetzung der Schnittstelle im Speicher, optional mit JSON-Datei.

Proben werden in kombinierter Form gespeichert; ``fetch_rehearsal_songs``
liefert die getrennte Form (``songLibrary`` + ``rehearsalDetails``), wie
sie auch ein entfernter Dienst liefern würde.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Optional

from models.choir_data import ChoirData
from models.reference import Performance
from models.template import RehearsalTemplate

logger = logging.getLogger(__name__)


def _next_id(ids) -> int:
    return max(ids, default=0) + 1


class InMemoryBackend:
    """Erfüllt ``RehearsalBackend``. Jeder Aufruf wird in ``calls`` protokolliert."""

    def __init__(self, data: Optional[ChoirData] = None, path: Optional[Path] = None):
        self.data = data or ChoirData()
        self.path = Path(path) if path else None
        self.calls: list[str] = []

    @classmethod
    def from_file(cls, path: Path) -> "InMemoryBackend":
        return cls(ChoirData.load_json(path), path)

    def save(self) -> None:
        if self.path is not None:
            self.data.save_json(self.path)

    # ─── Hilfsfunktionen ───

    def _rehearsal(self, rehearsal_id: int) -> dict[str, Any]:
        for r in self.data.rehearsals:
            if r.get("id") == rehearsal_id:
                return r
        raise KeyError(f"Rehearsal {rehearsal_id} not found")

    def _song_record(self, rehearsal: dict, key: int) -> dict[str, Any]:
        songs = rehearsal.setdefault("rehearsalSongs", [])
        for s in songs:
            if s.get("id") == key:
                return s
        for s in songs:
            if s.get("songId") == key:
                return s
        raise KeyError(f"Song {key} not found in rehearsal {rehearsal.get('id')}")

    def _next_song_record_id(self) -> int:
        return _next_id(
            s.get("id", 0) for r in self.data.rehearsals for s in r.get("rehearsalSongs", [])
        )

    def _store_song(self, rehearsal: dict, payload: dict[str, Any]) -> dict[str, Any]:
        song = copy.deepcopy(payload)
        song["id"] = self._next_song_record_id()
        if not song.get("addedById"):
            song["addedById"] = rehearsal.get("rehearsalLeadId")
        rehearsal.setdefault("rehearsalSongs", []).append(song)
        return song

    def _user_ref(self, user_id: Any) -> dict[str, Any]:
        for u in self.data.users:
            if u.id == user_id:
                return {"id": u.id, "firstName": u.first_name, "lastName": u.last_name}
        return {"id": user_id}

    def _performance(self, performance_id: Any) -> Performance:
        for p in self.data.performances:
            if p.id == performance_id:
                return p
        raise KeyError(f"Performance {performance_id} not found")

    def list_rehearsals(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self.data.rehearsals)

    # ─── Proben ───

    async def fetch_rehearsal(self, rehearsal_id: int) -> dict[str, Any]:
        self.calls.append("fetch_rehearsal")
        return copy.deepcopy(self._rehearsal(rehearsal_id))

    async def create_rehearsal(self, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append("create_rehearsal")
        record = copy.deepcopy(payload)
        songs = record.pop("rehearsalSongs", None) or record.pop("songPlans", None) or []
        record["id"] = _next_id(r.get("id", 0) for r in self.data.rehearsals)
        record.setdefault("status", "Planning")
        record["isPromoted"] = False
        record["rehearsalSongs"] = []
        self.data.rehearsals.append(record)
        for s in songs:
            self._store_song(record, s)
        self.save()
        logger.debug(f"Probe {record['id']} gespeichert")
        return copy.deepcopy(record)

    async def update_rehearsal(self, rehearsal_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append("update_rehearsal")
        record = self._rehearsal(rehearsal_id)
        record.update(copy.deepcopy(payload))
        self.save()
        return copy.deepcopy(record)

    async def delete_rehearsal(self, rehearsal_id: int) -> None:
        self.calls.append("delete_rehearsal")
        self.data.rehearsals.remove(self._rehearsal(rehearsal_id))
        self.save()

    # ─── Song-Planungen ───

    async def add_song_to_rehearsal(self, rehearsal_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append("add_song_to_rehearsal")
        song = self._store_song(self._rehearsal(rehearsal_id), payload)
        self.save()
        return copy.deepcopy(song)

    async def add_multiple_songs_to_rehearsal(
        self, rehearsal_id: int, payloads: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        self.calls.append("add_multiple_songs_to_rehearsal")
        rehearsal = self._rehearsal(rehearsal_id)
        stored = [self._store_song(rehearsal, p) for p in payloads]
        self.save()
        return copy.deepcopy(stored)

    async def update_rehearsal_song(
        self, rehearsal_id: int, rehearsal_song_id: int, payload: dict[str, Any]
    ) -> dict[str, Any]:
        self.calls.append("update_rehearsal_song")
        song = self._song_record(self._rehearsal(rehearsal_id), rehearsal_song_id)
        song.update(copy.deepcopy(payload))
        self.save()
        return copy.deepcopy(song)

    async def delete_rehearsal_song(self, rehearsal_id: int, rehearsal_song_id: int) -> None:
        self.calls.append("delete_rehearsal_song")
        rehearsal = self._rehearsal(rehearsal_id)
        rehearsal["rehearsalSongs"].remove(self._song_record(rehearsal, rehearsal_song_id))
        self.save()

    async def fetch_rehearsal_songs(self, rehearsal_id: int) -> dict[str, Any]:
        self.calls.append("fetch_rehearsal_songs")
        rehearsal = self._rehearsal(rehearsal_id)
        info = {k: rehearsal.get(k) for k in
                ("id", "title", "date", "status", "rehearsalLeadId", "performanceId")}
        return {
            "rehearsalInfo": info,
            "rehearsalSongs": [self._separated(s) for s in rehearsal.get("rehearsalSongs", [])],
        }

    def _separated(self, song: dict[str, Any]) -> dict[str, Any]:
        ref = next((s for s in self.data.songs if s.id == song.get("songId")), None)
        library = {"id": song.get("songId"), "addedById": song.get("addedById")}
        if ref is not None:
            library.update(title=ref.title, composer=ref.composer, genre=ref.genre)
        details = {k: copy.deepcopy(song.get(k)) for k in
                   ("difficulty", "musicalKey", "needsWork", "order", "timeAllocated",
                    "focusPoints", "notes")}
        details["leadSingers"] = [self._user_ref(i) for i in song.get("leadSingerIds") or []]
        if "leadSinger" in song:
            details["leadSinger"] = copy.deepcopy(song["leadSinger"])
        details["chorusMembers"] = [self._user_ref(i) for i in song.get("chorusMemberIds", [])]
        details["voiceParts"] = [
            {
                "voicePartType": vp.get("voicePartType"),
                "members": [self._user_ref(i) for i in vp.get("memberIds", [])],
                "needsWork": vp.get("needsWork", False),
                "focusPoints": vp.get("focusPoints", ""),
                "notes": vp.get("notes", ""),
            }
            for vp in song.get("voiceParts", [])
        ]
        details["musicians"] = [
            {
                "user": self._user_ref(m.get("userId")),
                "instrument": m.get("instrument"),
                "customInstrument": m.get("customInstrument", ""),
                "isAccompanist": m.get("isAccompanist", False),
                "order": m.get("order", 1),
                "notes": m.get("notes", ""),
            }
            for m in song.get("musicians", [])
        ]
        return {
            "rehearsalSongId": song.get("id"),
            "songLibrary": library,
            "rehearsalDetails": details,
        }

    # ─── Übernahme ───

    async def promote_rehearsal(self, rehearsal_id: int) -> dict[str, Any]:
        """Überträgt die Songs in den Auftritt; bereits vorhandene werden übersprungen."""
        self.calls.append("promote_rehearsal")
        rehearsal = self._rehearsal(rehearsal_id)
        performance = self._performance(rehearsal.get("performanceId"))
        added = 0
        for s in sorted(rehearsal.get("rehearsalSongs", []), key=lambda s: s.get("order", 0)):
            song_id = s.get("songId")
            if song_id and song_id not in performance.song_ids:
                performance.song_ids.append(song_id)
                added += 1
        performance.rehearsal_id = rehearsal_id
        rehearsal["isPromoted"] = True
        self.save()
        logger.debug(f"Auftritt {performance.id}: {added} Songs übernommen")
        return performance.to_wire()

    # ─── Vorlagen ───

    def _template(self, template_id: int) -> RehearsalTemplate:
        for t in self.data.templates:
            if t.id == template_id:
                return t
        raise KeyError(f"Template {template_id} not found")

    async def fetch_templates(self, category: Optional[str] = None) -> list[dict[str, Any]]:
        self.calls.append("fetch_templates")
        return [t.to_wire() for t in self.data.templates
                if category is None or t.category == category]

    async def create_template(self, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append("create_template")
        data = dict(payload)
        data["id"] = _next_id(t.id for t in self.data.templates)
        template = RehearsalTemplate.model_validate(data)
        self.data.templates.append(template)
        self.save()
        return template.to_wire()

    async def update_template(self, template_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append("update_template")
        current = self._template(template_id)
        merged = {**current.to_wire(), **payload, "id": template_id}
        updated = RehearsalTemplate.model_validate(merged)
        self.data.templates[self.data.templates.index(current)] = updated
        self.save()
        return updated.to_wire()

    async def delete_template(self, template_id: int) -> None:
        self.calls.append("delete_template")
        self.data.templates.remove(self._template(template_id))
        self.save()
