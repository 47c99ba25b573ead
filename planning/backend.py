"""Schnittstelle zu den externen Kollaborateuren (Persistenz, Auftritte, Vorlagen).

Alle Operationen sind ``async``; die Planung wartet ausschließlich an
diesen Aufrufen. Nutzlasten sind Dictionaries in der camelCase-Form.
"""

import logging
from typing import Any, Awaitable, Optional, Protocol, TypeVar, runtime_checkable

from planning.errors import CollaboratorError, PlanningError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class RehearsalBackend(Protocol):
    # ─── Proben ───

    async def fetch_rehearsal(self, rehearsal_id: int) -> dict[str, Any]:
        """Probe in kombinierter Form (Songs inline in ``rehearsalSongs``)."""
        ...

    async def create_rehearsal(self, payload: dict[str, Any]) -> dict[str, Any]:
        ...

    async def update_rehearsal(self, rehearsal_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        ...

    async def delete_rehearsal(self, rehearsal_id: int) -> None:
        ...

    # ─── Song-Planungen ───

    async def add_song_to_rehearsal(self, rehearsal_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        ...

    async def add_multiple_songs_to_rehearsal(
        self, rehearsal_id: int, payloads: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        ...

    async def update_rehearsal_song(
        self, rehearsal_id: int, rehearsal_song_id: int, payload: dict[str, Any]
    ) -> dict[str, Any]:
        ...

    async def delete_rehearsal_song(self, rehearsal_id: int, rehearsal_song_id: int) -> None:
        ...

    async def fetch_rehearsal_songs(self, rehearsal_id: int) -> dict[str, Any]:
        """Songs in getrennter Form: ``{rehearsalInfo, rehearsalSongs}``."""
        ...

    # ─── Übernahme ───

    async def promote_rehearsal(self, rehearsal_id: int) -> dict[str, Any]:
        """Überträgt Songs und Details in den verknüpften Auftritt."""
        ...

    # ─── Vorlagen ───

    async def fetch_templates(self, category: Optional[str] = None) -> list[dict[str, Any]]:
        ...

    async def create_template(self, payload: dict[str, Any]) -> dict[str, Any]:
        ...

    async def update_template(self, template_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        ...

    async def delete_template(self, template_id: int) -> None:
        ...


async def guarded(operation: str, pending: Awaitable[T]) -> T:
    """Wartet auf einen Aufruf der Schnittstelle und verpackt dessen Fehler."""
    try:
        return await pending
    except PlanningError:
        raise
    except Exception as e:
        logger.warning(f"{operation} fehlgeschlagen: {e}")
        raise CollaboratorError(operation, e) from e
