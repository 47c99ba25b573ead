"""Planungs-Modul: Normalisierung, Status, Übernahme und Sitzung."""

from .errors import (
    CollaboratorError,
    EligibilityError,
    NotFoundError,
    PlanningError,
    PromotionBlock,
    RehearsalValidationError,
    SongPlanPermissionError,
)
from .resolver import ReferenceResolver
from .normalizer import LEAD_SINGER_STRATEGIES, SongPlanNormalizer
from .session import PlanningSession
from .lifecycle import RehearsalLifecycle
from .promotion import PromotionResult, PromotionWorkflow, can_delete_song_plan
from .templates import TemplateCatalog

__all__ = [
    "CollaboratorError",
    "EligibilityError",
    "NotFoundError",
    "PlanningError",
    "PromotionBlock",
    "RehearsalValidationError",
    "SongPlanPermissionError",
    "ReferenceResolver",
    "LEAD_SINGER_STRATEGIES",
    "SongPlanNormalizer",
    "PlanningSession",
    "RehearsalLifecycle",
    "PromotionResult",
    "PromotionWorkflow",
    "can_delete_song_plan",
    "TemplateCatalog",
]
