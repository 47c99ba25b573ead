"""Übernahme abgeschlossener Proben in den verknüpften Auftritt.

Die Übernahme ist einseitig: ``is_promoted`` wird nach Erfolg gesetzt und
nie zurückgenommen. Doppelte Songs im Auftritt erkennt die Schnittstelle.
"""

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from pydantic import BaseModel, ValidationError

from models.enums import RehearsalStatus
from models.reference import Performance, UserRef
from models.rehearsal import Rehearsal
from models.song_plan import SongPlan
from planning.backend import guarded
from planning.errors import EligibilityError, PlanningError, PromotionBlock

if TYPE_CHECKING:
    from planning.session import PlanningSession

logger = logging.getLogger(__name__)


class PromotionFailure(BaseModel):
    rehearsal_id: int
    error: str
    reason: Optional[PromotionBlock] = None


class PromotionResult(BaseModel):
    """Ergebnis einer Sammel-Übernahme."""

    success: int = 0
    errors: list[PromotionFailure] = []
    promoted_rehearsals: list[int] = []


def eligibility_error(rehearsal: Rehearsal) -> Optional[EligibilityError]:
    """Erster Hinderungsgrund in fester Priorität, sonst None."""
    if rehearsal.is_promoted:
        return EligibilityError(
            PromotionBlock.ALREADY_PROMOTED,
            "Rehearsal has already been promoted",
        )
    if rehearsal.status != RehearsalStatus.COMPLETED:
        return EligibilityError(
            PromotionBlock.NOT_COMPLETED,
            f"Rehearsal must be completed, current status is {rehearsal.status.value}",
        )
    if not (rehearsal.is_persisted and rehearsal.performance_id > 0 and rehearsal.song_plans):
        return EligibilityError(
            PromotionBlock.MISSING_LINK_OR_SONGS,
            "Cannot promote rehearsal, check the performance link and songs",
        )
    return None


def is_promotable(rehearsal: Rehearsal) -> bool:
    return eligibility_error(rehearsal) is None


def promotable(rehearsals: Iterable[Rehearsal]) -> list[Rehearsal]:
    return [r for r in rehearsals if is_promotable(r)]


def can_delete_song_plan(
    rehearsal: Rehearsal,
    plan: SongPlan,
    caller: UserRef,
    elevated_roles: Iterable[str] = ("SUPER_ADMIN",),
) -> bool:
    """Löschen erlaubt für: wer den Song hinzugefügt hat, Probenleitung, erweiterte Rollen."""
    if plan.added_by_id is not None and plan.added_by_id == caller.id:
        return True
    if rehearsal.rehearsal_lead_id and rehearsal.rehearsal_lead_id == caller.id:
        return True
    return caller.role.upper() in {r.upper() for r in elevated_roles}


class PromotionWorkflow:
    def __init__(self, session: "PlanningSession"):
        self.session = session

    async def promote(self, rehearsal_id: int) -> Performance:
        """Übernimmt eine Probe in ihren Auftritt (genau ein Aufruf der Schnittstelle)."""
        if rehearsal_id <= 0:
            raise EligibilityError(
                PromotionBlock.MISSING_LINK_OR_SONGS,
                "Cannot promote rehearsal, check the performance link and songs",
            )
        rehearsal = await self.session.ensure_loaded(rehearsal_id)
        error = eligibility_error(rehearsal)
        if error is not None:
            raise error

        response = await guarded(
            "promote_rehearsal", self.session.backend.promote_rehearsal(rehearsal_id)
        )
        rehearsal.is_promoted = True
        logger.info(f"Probe {rehearsal_id} in Auftritt {rehearsal.performance_id} übernommen")

        data = {"id": rehearsal.performance_id, "rehearsalId": rehearsal_id}
        if isinstance(response, dict):
            data.update(response)
        try:
            return Performance.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Antwort der Übernahme nicht lesbar ({e.error_count()} Fehler)")
            return Performance(id=rehearsal.performance_id, rehearsal_id=rehearsal_id)

    async def promote_many(self, rehearsal_ids: Iterable[int]) -> PromotionResult:
        """Übernimmt mehrere Proben nacheinander; Fehler werden je Probe gesammelt."""
        result = PromotionResult()
        for rid in rehearsal_ids:
            try:
                await self.promote(rid)
            except EligibilityError as e:
                result.errors.append(PromotionFailure(rehearsal_id=rid, error=e.message,
                                                      reason=e.reason))
            except PlanningError as e:
                result.errors.append(PromotionFailure(rehearsal_id=rid, error=str(e)))
            else:
                result.success += 1
                result.promoted_rehearsals.append(rid)
        return result
