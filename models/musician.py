"""Datenmodelle für Instrumentalisten (Pydantic v2)."""

from typing import Any, Optional

from pydantic import Field, field_validator, model_validator

from models.base import WireModel, text, to_int
from models.enums import InstrumentType, coerce_enum


class SongMusician(WireModel):
    """Ein Instrumentalist innerhalb einer Song-Planung.

    Die Solo-Felder existieren in der Schnittstelle, werden aber nicht
    ausgewertet und bleiben immer 0 / False.
    """

    user_id: Optional[int] = None          # None = noch nicht besetzt
    instrument: InstrumentType = InstrumentType.OTHER
    custom_instrument: str = ""            # Freitext, wenn instrument == Other
    is_accompanist: bool = False
    order: int = 1
    time_allocated: int = Field(0, ge=0)   # Minuten
    notes: str = ""
    is_soloist: bool = False
    solo_start_time: int = 0
    solo_end_time: int = 0
    display_name: str = Field("", exclude=True)

    @model_validator(mode="before")
    @classmethod
    def _unknown_instrument_to_custom(cls, data: Any) -> Any:
        """Unbekanntes Instrument → Other + Freitext statt Fehler."""
        if not isinstance(data, dict):
            return data
        raw = data.get("instrument")
        if raw is None or isinstance(raw, InstrumentType):
            return data
        if coerce_enum(InstrumentType, raw) is None:
            data = dict(data)
            data["instrument"] = InstrumentType.OTHER
            custom_key = "customInstrument" if "customInstrument" in data else "custom_instrument"
            if not data.get(custom_key) and isinstance(raw, str):
                data[custom_key] = raw.strip()
        return data

    @field_validator("instrument", mode="before")
    @classmethod
    def _coerce_instrument(cls, v: Any) -> InstrumentType:
        return coerce_enum(InstrumentType, v, InstrumentType.OTHER)

    @field_validator("user_id", mode="before")
    @classmethod
    def _zero_is_unassigned(cls, v: Any) -> Optional[int]:
        i = to_int(v)
        return i if i and i > 0 else None

    @field_validator("custom_instrument", "notes", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> str:
        return text(v)

    @property
    def instrument_label(self) -> str:
        if self.instrument == InstrumentType.OTHER and self.custom_instrument:
            return self.custom_instrument
        return self.instrument.value

    @property
    def is_assigned(self) -> bool:
        return self.user_id is not None


class SessionMusician(SongMusician):
    """Instrumentalist auf Ebene der gesamten Probe (nicht an einen Song gebunden)."""

    needs_practice: bool = False
    practice_notes: str = ""
    accompaniment_notes: str = ""
    solo_notes: str = ""

    @field_validator("practice_notes", "accompaniment_notes", "solo_notes", mode="before")
    @classmethod
    def _session_none_to_empty(cls, v: Any) -> str:
        return text(v)
