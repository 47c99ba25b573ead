"""Fehlerhierarchie der Probenplanung.

Alle Fehler der Bibliothek erben von ``PlanningError``; die CLI fängt nur
diese Basisklasse ab.
"""

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from analysis.rehearsal_validator import ValidationReport


class PlanningError(Exception):
    """Basis aller Fehler der Probenplanung."""


class RehearsalValidationError(PlanningError):
    """Die Probe hat die Prüfung vor dem Speichern nicht bestanden."""

    def __init__(self, report: "ValidationReport"):
        self.report = report
        self.errors: dict[str, str] = report.errors_by_field()
        summary = "; ".join(f"{k}: {v}" for k, v in self.errors.items())
        super().__init__(f"Rehearsal is invalid: {summary}")


class PromotionBlock(str, Enum):
    """Grund, warum eine Probe nicht übernommen werden kann."""

    ALREADY_PROMOTED = "already_promoted"
    NOT_COMPLETED = "not_completed"
    MISSING_LINK_OR_SONGS = "missing_link_or_songs"


class EligibilityError(PlanningError):
    """Übernahme in den Auftritt ist nicht erlaubt."""

    def __init__(self, reason: PromotionBlock, message: str):
        self.reason = reason
        self.message = message
        super().__init__(message)


class SongPlanPermissionError(PlanningError):
    """Löschen einer Song-Planung verweigert."""


class NotFoundError(PlanningError):
    """Probe, Song-Planung oder Vorlage existiert nicht (lokal)."""


class CollaboratorError(PlanningError):
    """Ein Aufruf an der Schnittstelle ist fehlgeschlagen.

    Die ursprüngliche Ausnahme hängt als ``__cause__`` an.
    """

    def __init__(self, operation: str, cause: BaseException):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")
