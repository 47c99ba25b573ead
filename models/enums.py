"""Aufzählungstypen der Probenplanung.

Die Werte entsprechen den Strings der Schnittstelle (z.B. "In Progress").
"""

from enum import Enum
from typing import Optional


class RehearsalType(str, Enum):
    GENERAL_PRACTICE = "General Practice"
    PERFORMANCE_PREPARATION = "Performance Preparation"
    SONG_LEARNING = "Song Learning"
    SECTIONAL_PRACTICE = "Sectional Practice"
    FULL_ENSEMBLE = "Full Ensemble"
    DRESS_REHEARSAL = "Dress Rehearsal"
    OTHER = "Other"


class RehearsalStatus(str, Enum):
    PLANNING = "Planning"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class MusicalKey(str, Enum):
    C = "C"
    C_SHARP = "C#"
    D = "D"
    D_SHARP = "D#"
    E = "E"
    F = "F"
    F_SHARP = "F#"
    G = "G"
    G_SHARP = "G#"
    A = "A"
    A_SHARP = "A#"
    B = "B"


class SongDifficulty(str, Enum):
    EASY = "Easy"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class VoicePartType(str, Enum):
    SOPRANO = "Soprano"
    ALTO = "Alto"
    TENOR = "Tenor"
    BASS = "Bass"
    MEZZO_SOPRANO = "Mezzo Soprano"
    BARITONE = "Baritone"


class InstrumentType(str, Enum):
    PIANO = "Piano"
    ELECTRIC_PIANO = "Electric Piano"
    DIGITAL_PIANO = "Digital Piano"
    KEYBOARD = "Keyboard"
    SYNTHESIZER = "Synthesizer"
    GUITAR = "Guitar"
    ACOUSTIC_GUITAR = "Acoustic Guitar"
    ELECTRIC_GUITAR = "Electric Guitar"
    CLASSICAL_GUITAR = "Classical Guitar"
    BASS = "Bass"
    ELECTRIC_BASS = "Electric Bass"
    VIOLIN = "Violin"
    VIOLA = "Viola"
    CELLO = "Cello"
    DOUBLE_BASS = "Double Bass"
    FLUTE = "Flute"
    PICCOLO = "Piccolo"
    CLARINET = "Clarinet"
    BASS_CLARINET = "Bass Clarinet"
    SAXOPHONE = "Saxophone"
    ALTO_SAXOPHONE = "Alto Saxophone"
    TENOR_SAXOPHONE = "Tenor Saxophone"
    BARITONE_SAXOPHONE = "Baritone Saxophone"
    TRUMPET = "Trumpet"
    CORNET = "Cornet"
    TROMBONE = "Trombone"
    BASS_TROMBONE = "Bass Trombone"
    FRENCH_HORN = "French Horn"
    EUPHONIUM = "Euphonium"
    TUBA = "Tuba"
    DRUMS = "Drums"
    SNARE_DRUM = "Snare Drum"
    BASS_DRUM = "Bass Drum"
    TOM_TOM = "Tom-Tom"
    HI_HAT = "Hi-Hat"
    CRASH_CYMBAL = "Crash Cymbal"
    RIDE_CYMBAL = "Ride Cymbal"
    TIMPANI = "Timpani"
    XYLOPHONE = "Xylophone"
    MARIMBA = "Marimba"
    VIBRAPHONE = "Vibraphone"
    GLOCKENSPIEL = "Glockenspiel"
    CONGA_DRUMS = "Conga Drums"
    BONGO_DRUMS = "Bongo Drums"
    DJEMBE = "Djembe"
    CAJON = "Cajon"
    TAMBOURINE = "Tambourine"
    TRIANGLE = "Triangle"
    HARP = "Harp"
    ORGAN = "Organ"
    PIPE_ORGAN = "Pipe Organ"
    ELECTRONIC_ORGAN = "Electronic Organ"
    ACCORDION = "Accordion"
    HARMONICA = "Harmonica"
    PIANO_ACCOMPANIMENT = "Piano Accompaniment"
    OTHER = "Other"


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ATTENDANCE_ADMIN = "ATTENDANCE_ADMIN"
    FINANCE_ADMIN = "FINANCE_ADMIN"
    LEAD = "LEAD"
    USER = "USER"


class ShiftStatus(str, Enum):
    UPCOMING = "Upcoming"
    ACTIVE = "Active"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


def _key(value: str) -> str:
    return value.strip().lower().replace("-", " ").replace("_", " ")


def coerce_enum(enum_cls: type[Enum], value, default: Optional[Enum] = None):
    """Toleranter Enum-Lookup: Wert, Name oder Schreibvariante.

    "mezzo-soprano", "MEZZO_SOPRANO" und "Mezzo Soprano" treffen denselben
    Eintrag. Ohne Treffer wird ``default`` zurückgegeben.
    """
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str) or not value.strip():
        return default
    wanted = _key(value)
    for member in enum_cls:
        if _key(member.value) == wanted or _key(member.name) == wanted:
            return member
    return default
