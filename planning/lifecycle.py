"""Status einer Probe: Planning, In Progress, Completed, Cancelled.

Jeder Status darf in jeden anderen wechseln. Ein Wechsel nach Completed
löst nichts aus; die Übernahme prüft den Status erst beim Aufruf.
"""

import logging
from typing import TYPE_CHECKING, Union

from models.enums import RehearsalStatus, coerce_enum
from models.rehearsal import Rehearsal
from planning.backend import guarded
from planning.errors import PlanningError

if TYPE_CHECKING:
    from planning.session import PlanningSession

logger = logging.getLogger(__name__)


def parse_status(value: Union[str, RehearsalStatus]) -> RehearsalStatus:
    status = coerce_enum(RehearsalStatus, value)
    if status is None:
        allowed = ", ".join(s.value for s in RehearsalStatus)
        raise PlanningError(f"Unknown rehearsal status {value!r} (allowed: {allowed})")
    return status


class RehearsalLifecycle:
    def __init__(self, session: "PlanningSession"):
        self.session = session

    async def set_status(
        self, rehearsal_id: int, status: Union[str, RehearsalStatus]
    ) -> Rehearsal:
        """Setzt den Status. Der lokale Wert ändert sich erst nach Erfolg."""
        target = parse_status(status)
        rehearsal = self.session.get(rehearsal_id)
        if rehearsal.status == target:
            return rehearsal

        previous = rehearsal.status
        await guarded(
            "update_rehearsal",
            self.session.backend.update_rehearsal(rehearsal_id, {"status": target.value}),
        )
        rehearsal.status = target
        logger.info(f"Probe {rehearsal_id}: {previous.value} → {target.value}")
        return rehearsal

    async def mark_in_progress(self, rehearsal_id: int) -> Rehearsal:
        return await self.set_status(rehearsal_id, RehearsalStatus.IN_PROGRESS)

    async def mark_completed(self, rehearsal_id: int) -> Rehearsal:
        return await self.set_status(rehearsal_id, RehearsalStatus.COMPLETED)

    async def mark_cancelled(self, rehearsal_id: int) -> Rehearsal:
        return await self.set_status(rehearsal_id, RehearsalStatus.CANCELLED)
