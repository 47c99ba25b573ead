"""Gemeinsame Basis für alle Modelle der Schnittstelle (Pydantic v2).

Die Schnittstelle spricht camelCase (``leadSingerIds``), intern wird
snake_case verwendet. Beide Schreibweisen werden beim Einlesen akzeptiert.
"""

from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialisiert in die camelCase-Form der Schnittstelle."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def field_for_key(cls, key: str) -> Optional[str]:
        """Feldname zu einem Schlüssel der Schnittstelle (camelCase oder snake_case)."""
        if key in cls.model_fields:
            return key
        for name, info in cls.model_fields.items():
            if info.alias == key:
                return name
        return None


def to_int(value: Any) -> Optional[int]:
    """Wandelt IDs aus der Schnittstelle tolerant in int um (sonst None)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def unique_ids(values: Iterable[Any]) -> list[int]:
    """Positive IDs ohne Duplikate, Reihenfolge bleibt erhalten."""
    seen: set[int] = set()
    result: list[int] = []
    for v in values:
        i = to_int(v)
        if i is None or i <= 0 or i in seen:
            continue
        seen.add(i)
        result.append(i)
    return result


def text(value: Any) -> str:
    """None → "" (die Schnittstelle liefert Textfelder oft als null)."""
    if value is None:
        return ""
    return str(value)
