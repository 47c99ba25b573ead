"""Testdaten-Generator für die Probenplanung.

Erzeugt einen Chor mit Mitgliedern, Song-Katalog, Diensten, Auftritten,
Proben und Vorlagen. Einige Proben enthalten absichtlich Altlasten aus
früheren Versionen der Schnittstelle.

Absichtliche Besonderheiten:
  1. Probe mit einzelnem ``leadSinger``-Objekt statt ``leadSingerIds``
  2. Stimmgruppe "Countertenor" (wird beim Lesen zu Soprano)
  3. Abgeschlossene Probe mit Auftritt und Songs → übernehmbar
  4. Bereits übernommene Probe → erneute Übernahme wird abgelehnt
  5. Musiker ohne Benutzer (wird nicht an die Schnittstelle gesendet)
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from config.defaults import default_engine_config
from config.schema import EngineConfig
from models.choir_data import ChoirData
from models.enums import (
    InstrumentType,
    MusicalKey,
    RehearsalStatus,
    RehearsalType,
    ShiftStatus,
    SongDifficulty,
    UserRole,
    VoicePartType,
)
from models.reference import DutyShift, Performance, SongRef, UserRef
from models.template import RehearsalTemplate

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FIRST_NAMES = [
    "Andreas", "Birgit", "Christian", "Eva", "Franz", "Gabi", "Hans", "Iris",
    "Jürgen", "Kathrin", "Lena", "Markus", "Monika", "Norbert", "Petra",
    "Renate", "Sabine", "Stefan", "Tanja", "Tobias", "Ulrike", "Vera",
    "Werner", "Yusuf", "Zoe", "Claudia", "Helmut", "Ingrid",
]

_LAST_NAMES = [
    "Müller", "Schmidt", "Schneider", "Fischer", "Weber", "Meyer", "Wagner",
    "Becker", "Schulz", "Hoffmann", "Koch", "Bauer", "Richter", "Klein",
    "Wolf", "Neumann", "Schwarz", "Braun", "Krüger", "Lange", "Krause",
]

# ─── Song-Katalog ─────────────────────────────────────────────────────────────

_SONGS: list[tuple[str, str, str]] = [
    ("Amazing Grace", "John Newton", "Gospel"),
    ("Oh Happy Day", "Edwin Hawkins", "Gospel"),
    ("Swing Low, Sweet Chariot", "Wallace Willis", "Spiritual"),
    ("Down to the River to Pray", "Traditional", "Spiritual"),
    ("Siyahamba", "Traditional", "World"),
    ("Shenandoah", "Traditional", "Folk"),
    ("Dona Nobis Pacem", "Traditional", "Sacred"),
    ("Ave Verum Corpus", "W. A. Mozart", "Sacred"),
    ("Hallelujah Chorus", "G. F. Händel", "Oratorio"),
    ("Lean on Me", "Bill Withers", "Soul"),
    ("Total Praise", "Richard Smallwood", "Gospel"),
    ("Jerusalem", "Hubert Parry", "Hymn"),
]

_VOICE_SPREAD = [
    VoicePartType.SOPRANO, VoicePartType.SOPRANO, VoicePartType.ALTO,
    VoicePartType.ALTO, VoicePartType.TENOR, VoicePartType.BASS,
    VoicePartType.MEZZO_SOPRANO, VoicePartType.BARITONE,
]

_INSTRUMENTS = [
    InstrumentType.PIANO, InstrumentType.ACOUSTIC_GUITAR, InstrumentType.ELECTRIC_BASS,
    InstrumentType.DRUMS, InstrumentType.SAXOPHONE,
]


class FakeDataGenerator:
    """Generiert einen vollständigen Demo-Datensatz (reproduzierbar über ``seed``)."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        seed: Optional[int] = None,
        now: Optional[datetime] = None,
        num_singers: int = 20,
    ) -> None:
        self.config = config or default_engine_config()
        self.rng = random.Random(seed)
        self.now = now or datetime.now(timezone.utc).replace(microsecond=0)
        self.num_singers = num_singers

    # ─── Mitglieder ───────────────────────────────────────────────────────────

    def _generate_users(self) -> list[UserRef]:
        users: list[UserRef] = []
        used: set[tuple[str, str]] = set()

        def add(role: UserRole, categories: list[str], voice: Optional[VoicePartType] = None):
            while True:
                name = (self.rng.choice(_FIRST_NAMES), self.rng.choice(_LAST_NAMES))
                if name not in used:
                    used.add(name)
                    break
            users.append(UserRef(
                id=len(users) + 1,
                first_name=name[0],
                last_name=name[1],
                role=role.value,
                categories=categories,
                voice_category=voice.value if voice else None,
            ))

        add(UserRole.SUPER_ADMIN, ["LEAD"])
        add(UserRole.LEAD, ["LEAD", "SINGER"], VoicePartType.ALTO)
        add(UserRole.LEAD, ["LEAD", "SINGER"], VoicePartType.TENOR)
        for i in range(self.num_singers):
            add(UserRole.USER, ["SINGER"], _VOICE_SPREAD[i % len(_VOICE_SPREAD)])
        for _ in _INSTRUMENTS:
            add(UserRole.USER, ["MUSICIAN"])
        return users

    def _generate_songs(self, users: list[UserRef]) -> list[SongRef]:
        leads = [u.id for u in users if "LEAD" in u.categories]
        return [
            SongRef(id=i + 1, title=title, composer=composer, genre=genre,
                    added_by_id=self.rng.choice(leads))
            for i, (title, composer, genre) in enumerate(_SONGS)
        ]

    # ─── Dienste & Auftritte ──────────────────────────────────────────────────

    def _generate_shifts(self, users: list[UserRef]) -> list[DutyShift]:
        leads = [u.id for u in users if "LEAD" in u.categories]
        week = timedelta(days=7)
        return [
            DutyShift(id=1, leader_id=leads[0], status=ShiftStatus.COMPLETED,
                      start_date=self.now - 6 * week, end_date=self.now - 2 * week),
            DutyShift(id=2, leader_id=leads[1], status=ShiftStatus.ACTIVE,
                      start_date=self.now - 2 * week, end_date=self.now + 2 * week),
            DutyShift(id=3, leader_id=leads[-1], status=ShiftStatus.UPCOMING,
                      start_date=self.now + 2 * week, end_date=self.now + 6 * week),
        ]

    def _generate_performances(self) -> list[Performance]:
        return [
            Performance(id=1, title="Frühjahrskonzert", date=self.now + timedelta(days=21)),
            Performance(id=2, title="Gottesdienst Erntedank", date=self.now + timedelta(days=45)),
            Performance(id=3, title="Sommerfest", date=self.now - timedelta(days=10),
                        status="Completed", song_ids=[1]),
        ]

    # ─── Proben ───────────────────────────────────────────────────────────────

    def _song_record(
        self, song: SongRef, order: int, singers: list[UserRef], minutes: int
    ) -> dict[str, Any]:
        by_voice: dict[str, list[int]] = {}
        for s in singers:
            by_voice.setdefault(s.voice_category or "Soprano", []).append(s.id)
        voices = self.rng.sample(sorted(by_voice), k=min(2, len(by_voice)))
        return {
            "songId": song.id,
            "difficulty": self.rng.choice(list(SongDifficulty)).value,
            "musicalKey": self.rng.choice(list(MusicalKey)).value,
            "needsWork": self.rng.random() < 0.3,
            "order": order,
            "timeAllocated": minutes,
            "focusPoints": "",
            "notes": "",
            "leadSingerIds": [self.rng.choice(singers).id],
            "chorusMemberIds": [],
            "voiceParts": [
                {"voicePartType": v, "memberIds": by_voice[v][:3], "needsWork": False,
                 "focusPoints": "", "notes": ""}
                for v in voices
            ],
            "musicians": [],
            "addedById": song.added_by_id,
        }

    def _generate_rehearsals(
        self, users: list[UserRef], songs: list[SongRef]
    ) -> list[dict[str, Any]]:
        singers = [u for u in users if "SINGER" in u.categories]
        musicians = [u for u in users if "MUSICIAN" in u.categories]
        leads = [u.id for u in users if "LEAD" in u.categories]
        picks = self.rng.sample(songs, k=8)
        day = timedelta(days=1)

        base = {
            "location": "Gemeindesaal",
            "duration": self.config.rules.default_duration_minutes,
            "objectives": "",
            "notes": "",
            "feedback": "",
            "isTemplate": False,
            "rehearsalLeadId": leads[1],
            "shiftLeadId": leads[1],
            "isPromoted": False,
            "musicians": [],
        }

        planning = {
            **base, "id": 1, "title": "Stimmproben Frühjahr",
            "date": (self.now + 3 * day).isoformat(),
            "type": RehearsalType.SECTIONAL_PRACTICE.value,
            "status": RehearsalStatus.PLANNING.value, "performanceId": 1,
            "rehearsalSongs": [self._song_record(picks[0], 1, singers, 20),
                               self._song_record(picks[1], 2, singers, 25)],
        }
        planning["rehearsalSongs"][0]["id"] = 1
        planning["rehearsalSongs"][1]["id"] = 2

        # Altlast: einzelnes leadSinger-Objekt, unbekannte Stimmgruppe
        legacy = self._song_record(picks[2], 1, singers, 30)
        legacy["id"] = 3
        lead = self.rng.choice(singers)
        legacy.pop("leadSingerIds")
        legacy["leadSinger"] = {"id": lead.id, "firstName": lead.first_name,
                                "lastName": lead.last_name}
        legacy["voiceParts"].append({"voicePartType": "Countertenor", "memberIds": []})
        completed = {
            **base, "id": 2, "title": "Generalprobe Frühjahrskonzert",
            "date": (self.now - 2 * day).isoformat(),
            "type": RehearsalType.DRESS_REHEARSAL.value, "duration": 90,
            "status": RehearsalStatus.COMPLETED.value, "performanceId": 1,
            "rehearsalSongs": [legacy],
            "musicians": [
                {"userId": musicians[0].id, "instrument": InstrumentType.PIANO.value,
                 "isAccompanist": True, "order": 1, "needsPractice": False},
                {"userId": None, "instrument": "Banjo", "order": 2},
            ],
        }

        promoted_song = self._song_record(picks[3], 1, singers, 15)
        promoted_song["id"] = 4
        promoted = {
            **base, "id": 3, "title": "Probe Sommerfest",
            "date": (self.now - 14 * day).isoformat(),
            "type": RehearsalType.PERFORMANCE_PREPARATION.value,
            "status": RehearsalStatus.COMPLETED.value, "performanceId": 3,
            "isPromoted": True, "rehearsalSongs": [promoted_song],
        }
        return [planning, completed, promoted]

    # ─── Vorlagen ─────────────────────────────────────────────────────────────

    def _generate_templates(self) -> list[RehearsalTemplate]:
        return [
            RehearsalTemplate(id=1, title="Einsingen & Stimmbildung",
                              type=RehearsalType.GENERAL_PRACTICE, duration=45,
                              objectives="Atmung, Resonanz, Intonation",
                              category="Technik", tags=["warmup", "stimme"],
                              difficulty=SongDifficulty.EASY),
            RehearsalTemplate(id=2, title="Neues Stück erarbeiten",
                              type=RehearsalType.SONG_LEARNING, duration=90,
                              objectives="Töne lernen, Stimmen einzeln",
                              category="Repertoire", tags=["neu"],
                              difficulty=SongDifficulty.INTERMEDIATE),
            RehearsalTemplate(id=3, title="Generalprobe",
                              type=RehearsalType.DRESS_REHEARSAL, duration=120,
                              objectives="Durchlauf mit Band und Technik",
                              category="Auftritt", tags=["konzert", "band"],
                              difficulty=SongDifficulty.ADVANCED, estimated_attendees=35),
        ]

    # ─── Vollständiger Datensatz ──────────────────────────────────────────────

    def generate(self) -> ChoirData:
        """Erzeugt den vollständigen Datensatz als ChoirData-Objekt."""
        users = self._generate_users()
        songs = self._generate_songs(users)
        return ChoirData(
            choir_name=self.config.choir_name,
            users=users,
            songs=songs,
            shifts=self._generate_shifts(users),
            performances=self._generate_performances(),
            rehearsals=self._generate_rehearsals(users, songs),
            templates=self._generate_templates(),
        )

    # ─── Ausgabe ──────────────────────────────────────────────────────────────

    def print_summary(self, data: ChoirData) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht der erzeugten Daten aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Erzeugte Testdaten", box=box.ROUNDED)
        table.add_column("Kategorie", style="bold cyan")
        table.add_column("Anzahl", justify="right")
        table.add_column("Details")

        singers = sum(1 for u in data.users if "SINGER" in u.categories)
        table.add_row("Mitglieder", str(len(data.users)),
                      f"{singers} Sänger, {len(data.users) - singers} andere")
        table.add_row("Songs", str(len(data.songs)), "")
        table.add_row("Dienste", str(len(data.shifts)), "")
        table.add_row("Auftritte", str(len(data.performances)), "")
        promoted = sum(1 for r in data.rehearsals if r.get("isPromoted"))
        table.add_row("Proben", str(len(data.rehearsals)), f"{promoted} übernommen")
        table.add_row("Vorlagen", str(len(data.templates)), "")

        console.print(table)
