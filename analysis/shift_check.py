"""Prüfung des Dienstplans (Schichten mit Dienstleiter) vor dem Anlegen einer Probe."""

import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel

from models.enums import ShiftStatus
from models.reference import DutyShift

logger = logging.getLogger(__name__)


class ShiftCheck(BaseModel):
    """Ergebnis der Dienstplan-Prüfung."""

    can_proceed: bool
    warning: Optional[str] = None
    current_shift: Optional[DutyShift] = None


def _aware(dt: datetime) -> datetime:
    # Zeitangaben ohne Zone gelten als UTC
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


class DutyRosterChecker:
    """Bewertet Dienste anhand ihres gespeicherten Status und ihres Zeitraums."""

    def check(self, shifts: list[DutyShift]) -> ShiftCheck:
        """Mehrere aktive Dienste sind erlaubt, erzeugen aber eine Warnung."""
        active = [s for s in shifts if s.status == ShiftStatus.ACTIVE]
        current = active[0] if active else None
        if len(active) > 1:
            warning = (
                f"Multiple active shifts detected ({len(active)}). "
                f"Rehearsal creation may not work correctly."
            )
            logger.warning(warning)
            return ShiftCheck(can_proceed=True, warning=warning, current_shift=current)
        return ShiftCheck(can_proceed=True, current_shift=current)

    def actual_status(self, shift: DutyShift, now: Optional[datetime] = None) -> ShiftStatus:
        """Tatsächlicher Status aus dem Zeitraum. Abgesagt bleibt abgesagt."""
        if shift.status == ShiftStatus.CANCELLED:
            return ShiftStatus.CANCELLED
        if shift.start_date is None or shift.end_date is None:
            return shift.status
        now = _aware(now or datetime.now(timezone.utc))
        if now < _aware(shift.start_date):
            return ShiftStatus.UPCOMING
        if now <= _aware(shift.end_date):
            return ShiftStatus.ACTIVE
        return ShiftStatus.COMPLETED

    def active_shift(
        self, shifts: list[DutyShift], now: Optional[datetime] = None
    ) -> Optional[DutyShift]:
        """Erster Dienst, dessen Zeitraum ``now`` enthält."""
        for s in shifts:
            if self.actual_status(s, now) == ShiftStatus.ACTIVE:
                return s
        return None
