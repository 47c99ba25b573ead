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
from models.musician import SessionMusician, SongMusician
from models.song_plan import SongPlan, VoicePartAssignment
from models.rehearsal import Rehearsal
from models.template import RehearsalTemplate
from models.reference import DutyShift, Performance, SongRef, UserRef
from models.choir_data import ChoirData

__all__ = [
    "InstrumentType",
    "MusicalKey",
    "RehearsalStatus",
    "RehearsalType",
    "ShiftStatus",
    "SongDifficulty",
    "UserRole",
    "VoicePartType",
    "SessionMusician",
    "SongMusician",
    "SongPlan",
    "VoicePartAssignment",
    "Rehearsal",
    "RehearsalTemplate",
    "DutyShift",
    "Performance",
    "SongRef",
    "UserRef",
    "ChoirData",
]
