"""Vereinheitlicht Song-Planungen aus beiden Leseformen der Schnittstelle.

Kombinierte Form: die Song-Details liegen direkt auf dem Datensatz
(``rehearsalSongs`` bzw. ``songPlans`` einer Probe).

Getrennte Form: jeder Datensatz hat eine Katalog-Referenz ``songLibrary``
und ein Detail-Bündel ``rehearsalDetails`` (Antwort von
``fetch_rehearsal_songs``).

Die Normalisierung wirft nie. Unbrauchbare Einträge werden mit einer
Warnung verworfen, fehlende Werte fallen auf Standardwerte zurück.
"""

import logging
from typing import Any, Callable, Iterable, Optional

from pydantic import ValidationError

from models.base import text, to_int, unique_ids
from models.enums import VoicePartType, coerce_enum
from models.musician import SessionMusician, SongMusician
from models.song_plan import SongPlan, VoicePartAssignment
from planning.resolver import ReferenceResolver

logger = logging.getLogger(__name__)

# (Bündel, äußerer Datensatz) → Benutzer-Referenzen (IDs oder Objekte)
LeadSingerStrategy = Callable[[dict, dict], list]


# ─── LEAD-SINGER-QUELLEN ───

def _lead_singer_ids(bundle: dict, record: dict) -> list:
    for value in (record.get("leadSingerIds"), bundle.get("leadSingerIds")):
        if isinstance(value, list) and _ref_ids(value):
            return value
    return []


def _lead_singers(bundle: dict, record: dict) -> list:
    value = bundle.get("leadSingers")
    return value if isinstance(value, list) else []


def _lead_singer(bundle: dict, record: dict) -> list:
    """``leadSinger`` im Bündel: Liste vor Einzelobjekt."""
    value = bundle.get("leadSinger")
    if isinstance(value, list):
        return value
    return [value] if isinstance(value, dict) else []


def _lead_singer_id(bundle: dict, record: dict) -> list:
    value = bundle.get("leadSingerId")
    return [value] if value is not None else []


def _outer_record(bundle: dict, record: dict) -> list:
    """Nur getrennte Form: ``leadSingers`` / ``leadSinger`` am äußeren Datensatz."""
    if record is bundle:
        return []
    for key in ("leadSingers", "leadSinger"):
        value = record.get(key)
        if isinstance(value, list) and _ref_ids(value):
            return value
    value = record.get("leadSinger")
    return [value] if isinstance(value, dict) else []


# Feste Reihenfolge: die erste nicht-leere Quelle gewinnt, spätere werden ignoriert.
LEAD_SINGER_STRATEGIES: tuple[tuple[str, LeadSingerStrategy], ...] = (
    ("leadSingerIds", _lead_singer_ids),
    ("leadSingers", _lead_singers),
    ("leadSinger", _lead_singer),
    ("leadSingerId", _lead_singer_id),
    ("outer", _outer_record),
)


# ─── HILFSFUNKTIONEN ───

def _ref_id(ref: Any) -> Optional[int]:
    """ID aus einer Benutzer-Referenz (int, String oder Objekt mit id/userId)."""
    if isinstance(ref, dict):
        return to_int(ref.get("id", ref.get("userId")))
    return to_int(ref)


def _ref_ids(refs: Iterable[Any]) -> list[int]:
    return unique_ids(_ref_id(r) for r in refs)


def _ref_name(ref: Any) -> str:
    """Anzeigename aus einem eingebetteten Benutzer-Objekt (sonst "")."""
    if not isinstance(ref, dict):
        return ""
    if ref.get("name"):
        return text(ref["name"]).strip()
    first = text(ref.get("firstName")).strip()
    last = text(ref.get("lastName")).strip()
    return f"{first} {last}".strip()


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _non_negative(value: Any) -> int:
    i = to_int(value)
    return i if i and i > 0 else 0


class SongPlanNormalizer:
    """Erzeugt aus Rohdaten der Schnittstelle eine sortierte ``list[SongPlan]``."""

    def __init__(self, resolver: ReferenceResolver):
        self.resolver = resolver
        self.default_voice_part = coerce_enum(
            VoicePartType, resolver.display.default_voice_part, VoicePartType.SOPRANO
        )

    # ─── Einstiegspunkte ───

    def normalize_rehearsal(self, payload: Any) -> list[SongPlan]:
        """Kombinierte Form: Songs direkt in der Probe."""
        payload = _as_dict(payload)
        records = _as_list(payload.get("rehearsalSongs")) or _as_list(payload.get("songPlans"))
        return self.normalize_records(records, fallback_added_by=payload.get("rehearsalLeadId"))

    def normalize_songs_response(self, payload: Any) -> list[SongPlan]:
        """Getrennte Form: ``{rehearsalInfo, rehearsalSongs}``."""
        payload = _as_dict(payload)
        info = _as_dict(payload.get("rehearsalInfo"))
        return self.normalize_records(
            _as_list(payload.get("rehearsalSongs")),
            fallback_added_by=info.get("rehearsalLeadId"),
        )

    def normalize_records(
        self, records: Any, fallback_added_by: Any = None
    ) -> list[SongPlan]:
        """Normalisiert eine Liste von Datensätzen beliebiger Form."""
        plans: list[SongPlan] = []
        for record in _as_list(records):
            plan = self._normalize_record(record, fallback_added_by)
            if plan is not None:
                plans.append(plan)
        return sorted(plans, key=lambda p: (p.order <= 0, p.order))

    def normalize_session_musicians(self, raw: Any) -> list[SessionMusician]:
        result = []
        for entry in _as_list(raw):
            m = self._musician(entry, SessionMusician)
            if m is not None:
                result.append(m)
        return result

    def lead_singer_refs(self, bundle: dict, record: dict) -> tuple[str, list]:
        """Erste nicht-leere Lead-Singer-Quelle (Name der Quelle, Referenzen)."""
        for name, strategy in LEAD_SINGER_STRATEGIES:
            refs = strategy(bundle, record)
            if _ref_ids(refs):
                return name, refs
        return "", []

    # ─── Anzeige ───

    def attach_names(self, plan: SongPlan, known: Optional[dict[int, str]] = None) -> SongPlan:
        """Setzt die Anzeige-Felder (Songtitel, Namen) über den Resolver."""
        known = known or {}

        def name_for(user_id: int) -> str:
            if self.resolver.knows_user(user_id):
                return self.resolver.resolve_user_name(user_id)
            return known.get(user_id) or self.resolver.display.unknown_user_label

        if not plan.song_title:
            plan.song_title = self.resolver.resolve_song_title(plan.song_id)
        names: list[str] = []
        for uid in plan.lead_singer_ids:
            n = name_for(uid)
            if n not in names:
                names.append(n)
        plan.lead_singer_names = names
        for vp in plan.voice_parts:
            if vp.member_ids:
                vp.member_names = [name_for(uid) for uid in vp.member_ids]
        for m in plan.musicians:
            m.display_name = (
                name_for(m.user_id) if m.user_id else self.resolver.display.unassigned_label
            )
        return plan

    # ─── Einzelner Datensatz ───

    def _normalize_record(self, record: Any, fallback_added_by: Any) -> Optional[SongPlan]:
        if not isinstance(record, dict):
            logger.warning(f"Song-Eintrag ist kein Objekt, verworfen: {record!r}")
            return None

        library = record.get("songLibrary")
        if isinstance(library, dict):
            bundle = _as_dict(record.get("rehearsalDetails"))
            song_id = library.get("id")
            title = text(library.get("title"))
            rehearsal_song_id = record.get("rehearsalSongId", bundle.get("rehearsalSongId"))
            added_by = library.get("addedById") or bundle.get("addedById") or fallback_added_by
        else:
            bundle = record
            song = _as_dict(record.get("song"))
            song_id = record.get("songId", song.get("id"))
            title = text(song.get("title") or record.get("songTitle"))
            rehearsal_song_id = record.get("rehearsalSongId", record.get("id"))
            added_by = record.get("addedById") or fallback_added_by

        known: dict[int, str] = {}
        _, lead_refs = self.lead_singer_refs(bundle, record)
        self._collect_names(lead_refs, known)

        chorus = _as_list(bundle.get("chorusMemberIds")) or _as_list(bundle.get("chorusMembers"))

        voice_parts = []
        for raw in _as_list(bundle.get("voiceParts")):
            vp = self._voice_part(raw, known)
            if vp is not None:
                voice_parts.append(vp)

        musicians = []
        for raw in _as_list(bundle.get("musicians")):
            m = self._musician(raw, SongMusician)
            if m is not None:
                musicians.append(m)
                self._collect_names([_as_dict(raw).get("user")], known)

        try:
            plan = SongPlan(
                rehearsal_song_id=rehearsal_song_id,
                song_id=_non_negative(song_id),
                difficulty=bundle.get("difficulty"),
                musical_key=bundle.get("musicalKey"),
                needs_work=bool(bundle.get("needsWork")),
                order=_non_negative(bundle.get("order")),
                time_allocated=_non_negative(bundle.get("timeAllocated")),
                focus_points=bundle.get("focusPoints"),
                notes=bundle.get("notes"),
                lead_singer_ids=_ref_ids(lead_refs),
                chorus_member_ids=_ref_ids(chorus),
                voice_parts=voice_parts,
                musicians=musicians,
                added_by_id=added_by,
                song_title=title,
            )
        except ValidationError as e:
            logger.warning(f"Song-Eintrag verworfen ({e.error_count()} Fehler): {record!r}")
            return None
        return self.attach_names(plan, known)

    def _collect_names(self, refs: Iterable[Any], known: dict[int, str]) -> None:
        for ref in refs:
            uid, name = _ref_id(ref), _ref_name(ref)
            if uid and name:
                known.setdefault(uid, name)

    def _voice_part(self, raw: Any, known: dict[int, str]) -> Optional[VoicePartAssignment]:
        if not isinstance(raw, dict):
            logger.warning(f"Stimmgruppe ist kein Objekt, verworfen: {raw!r}")
            return None

        raw_type = raw.get("voicePartType")
        part = coerce_enum(VoicePartType, raw_type)
        if part is None:
            logger.warning(f"Unbekannte Stimmgruppe {raw_type!r} → {self.default_voice_part.value}")
            part = self.default_voice_part

        members = _as_list(raw.get("members"))
        member_ids = _ref_ids(members)
        names = [n for n in (_ref_name(m) for m in members) if n]
        if member_ids or names:
            self._collect_names(members, known)
        else:
            member_ids = _ref_ids(_as_list(raw.get("memberIds")))
            names = []

        return VoicePartAssignment(
            voice_part_type=part,
            member_ids=member_ids,
            needs_work=bool(raw.get("needsWork")),
            focus_points=raw.get("focusPoints"),
            notes=raw.get("notes"),
            member_names=names,
        )

    def _musician(self, raw: Any, cls: type[SongMusician]) -> Optional[SongMusician]:
        if not isinstance(raw, dict):
            logger.warning(f"Musiker-Eintrag ist kein Objekt, verworfen: {raw!r}")
            return None
        data = {k: v for k, v in raw.items() if k != "user" and v is not None}
        if "userId" not in data and "user_id" not in data:
            data["userId"] = _as_dict(raw.get("user")).get("id")
        data["order"] = _non_negative(data.get("order")) or 1
        data["timeAllocated"] = _non_negative(data.get("timeAllocated"))
        try:
            musician = cls.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Musiker-Eintrag verworfen ({e.error_count()} Fehler): {raw!r}")
            return None
        name = _ref_name(raw.get("user"))
        if musician.user_id and self.resolver.knows_user(musician.user_id):
            name = self.resolver.resolve_user_name(musician.user_id)
        musician.display_name = name or (
            self.resolver.display.unknown_user_label
            if musician.user_id else self.resolver.display.unassigned_label
        )
        return musician
