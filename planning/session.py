"""Planungssitzung: hält die Proben im Speicher und spricht die Schnittstelle an.

Lokaler Zustand wird erst nach einem erfolgreichen Aufruf an der
Schnittstelle geändert. Schlägt ein Aufruf fehl, bleibt die Probe auf dem
letzten bekannten Stand und ein ``CollaboratorError`` wird geworfen.
"""

import logging
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from analysis.rehearsal_validator import RehearsalValidator, ValidationContext, ValidationReport
from config.defaults import default_engine_config
from config.schema import EngineConfig
from models.reference import UserRef
from models.rehearsal import Rehearsal
from models.song_plan import SongPlan
from planning.backend import RehearsalBackend, guarded
from planning.errors import (
    CollaboratorError,
    NotFoundError,
    PlanningError,
    RehearsalValidationError,
    SongPlanPermissionError,
)
from planning.normalizer import SongPlanNormalizer
from planning.promotion import can_delete_song_plan
from planning.resolver import ReferenceResolver

logger = logging.getLogger(__name__)


_SONG_KEYS = ("rehearsalSongs", "songPlans", "song_plans", "musicians")


def _without_unassigned_musicians(data: dict[str, Any]) -> dict[str, Any]:
    """Musiker ohne Benutzer werden nicht an die Schnittstelle gesendet."""
    if "musicians" in data:
        data["musicians"] = [m for m in data["musicians"] if m.get("userId")]
    return data


def song_plan_payload(plan: SongPlan) -> dict[str, Any]:
    data = plan.to_wire()
    data.pop("rehearsalSongId", None)
    return _without_unassigned_musicians(data)


def rehearsal_payload(rehearsal: Rehearsal) -> dict[str, Any]:
    data = rehearsal.to_wire()
    data.pop("id", None)
    data["rehearsalSongs"] = [song_plan_payload(p) for p in rehearsal.song_plans]
    return _without_unassigned_musicians(data)


class PlanningSession:
    """Eine Bearbeitungssitzung über beliebig viele Proben."""

    def __init__(
        self,
        backend: RehearsalBackend,
        resolver: Optional[ReferenceResolver] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.config = config or default_engine_config()
        self.backend = backend
        self.resolver = resolver or ReferenceResolver(display=self.config.display)
        self.normalizer = SongPlanNormalizer(self.resolver)
        self.validator = RehearsalValidator(self.config.rules)
        self.rehearsals: dict[int, Rehearsal] = {}

    # ─── Schnittstelle ───

    def rehearsal_from_payload(self, payload: dict[str, Any]) -> Rehearsal:
        """Baut eine Probe aus der kombinierten Form (Songs werden normalisiert)."""
        scalars = {k: v for k, v in payload.items() if k not in _SONG_KEYS}
        rehearsal = Rehearsal.model_validate(scalars)
        rehearsal.replace_song_plans(self.normalizer.normalize_rehearsal(payload))
        rehearsal.musicians = self.normalizer.normalize_session_musicians(
            payload.get("musicians")
        )
        return rehearsal

    def _adopt(self, operation: str, payload: Any) -> Rehearsal:
        if not isinstance(payload, dict):
            raise CollaboratorError(operation, TypeError(f"unexpected response: {payload!r}"))
        try:
            rehearsal = self.rehearsal_from_payload(payload)
        except ValidationError as e:
            raise CollaboratorError(operation, e) from e
        if rehearsal.is_persisted:
            self.rehearsals[rehearsal.id] = rehearsal
        return rehearsal

    # ─── Proben ───

    def new_draft(self, **fields: Any) -> Rehearsal:
        """Leerer Entwurf (id 0) mit der konfigurierten Standarddauer."""
        fields.setdefault("duration", self.config.rules.default_duration_minutes)
        fields["id"] = 0
        return Rehearsal.model_validate(fields)

    def get(self, rehearsal_id: int) -> Rehearsal:
        try:
            return self.rehearsals[rehearsal_id]
        except KeyError:
            raise NotFoundError(f"Rehearsal {rehearsal_id} is not loaded") from None

    async def load(self, rehearsal_id: int) -> Rehearsal:
        payload = await guarded("fetch_rehearsal", self.backend.fetch_rehearsal(rehearsal_id))
        return self._adopt("fetch_rehearsal", payload)

    async def ensure_loaded(self, rehearsal_id: int) -> Rehearsal:
        if rehearsal_id in self.rehearsals:
            return self.rehearsals[rehearsal_id]
        return await self.load(rehearsal_id)

    async def refresh_songs(self, rehearsal_id: int) -> list[SongPlan]:
        """Lädt die Songs in getrennter Form neu und ersetzt die lokalen."""
        rehearsal = self.get(rehearsal_id)
        payload = await guarded(
            "fetch_rehearsal_songs", self.backend.fetch_rehearsal_songs(rehearsal_id)
        )
        rehearsal.replace_song_plans(self.normalizer.normalize_songs_response(payload))
        return rehearsal.song_plans

    def validate(
        self, rehearsal: Rehearsal, context: Optional[ValidationContext] = None
    ) -> ValidationReport:
        return self.validator.validate(rehearsal, context)

    async def create(
        self, draft: Rehearsal, context: Optional[ValidationContext] = None
    ) -> Rehearsal:
        """Prüft und speichert einen Entwurf samt Songs."""
        if context is not None and context.bound_performance_id and not draft.performance_id:
            draft = draft.model_copy(update={"performance_id": context.bound_performance_id})
        report = self.validate(draft, context)
        if not report.is_valid:
            raise RehearsalValidationError(report)
        payload = await guarded(
            "create_rehearsal", self.backend.create_rehearsal(rehearsal_payload(draft))
        )
        rehearsal = self._adopt("create_rehearsal", payload)
        logger.info(f"Probe {rehearsal.id} angelegt: {rehearsal.title!r}")
        return rehearsal

    async def update(
        self,
        rehearsal_id: int,
        changes: dict[str, Any],
        context: Optional[ValidationContext] = None,
    ) -> Rehearsal:
        """Übernimmt Teiländerungen erst nach erfolgreicher Prüfung und Speicherung."""
        current = self.get(rehearsal_id)
        try:
            updated = current.apply_update(changes)
        except ValidationError as e:
            raise PlanningError(f"Invalid update for rehearsal {rehearsal_id}: {e}") from e
        context = context or ValidationContext(first_save=False)
        report = self.validate(updated, context)
        if not report.is_valid:
            raise RehearsalValidationError(report)

        wire = updated.to_wire()
        payload = {}
        for key in changes:
            name = Rehearsal.field_for_key(key)
            if name is None or name in ("id", "song_plans"):
                continue
            alias = Rehearsal.model_fields[name].alias or name
            payload[alias] = wire[alias]
        payload = _without_unassigned_musicians(payload)
        await guarded("update_rehearsal",
                        self.backend.update_rehearsal(rehearsal_id, payload))
        self.rehearsals[rehearsal_id] = updated
        logger.info(f"Probe {rehearsal_id} aktualisiert: {sorted(payload)}")
        return updated

    async def delete(self, rehearsal_id: int) -> None:
        await guarded("delete_rehearsal", self.backend.delete_rehearsal(rehearsal_id))
        self.rehearsals.pop(rehearsal_id, None)
        logger.info(f"Probe {rehearsal_id} gelöscht")

    # ─── Song-Planungen ───

    def _prepare_song(self, rehearsal: Rehearsal, plan: SongPlan) -> SongPlan:
        if not rehearsal.is_persisted:
            raise PlanningError("Songs can only be added to a saved rehearsal")
        plan = plan.model_copy(deep=True)
        if plan.order <= 0:
            plan.order = rehearsal.next_song_order()
        elif any(p.order == plan.order for p in rehearsal.song_plans):
            raise PlanningError(f"Song order {plan.order} is already used in this rehearsal")
        return plan

    def _stored_song(self, plan: SongPlan, response: Any) -> SongPlan:
        """Übernimmt die von der Schnittstelle vergebene RehearsalSong-ID."""
        stored = plan.model_copy(deep=True)
        if isinstance(response, dict):
            normalized = self.normalizer.normalize_records([response])
            if normalized and normalized[0].rehearsal_song_id:
                stored.rehearsal_song_id = normalized[0].rehearsal_song_id
        return self.normalizer.attach_names(stored)

    async def add_song_plan(self, rehearsal_id: int, plan: SongPlan) -> SongPlan:
        rehearsal = self.get(rehearsal_id)
        plan = self._prepare_song(rehearsal, plan)
        response = await guarded(
            "add_song_to_rehearsal",
            self.backend.add_song_to_rehearsal(rehearsal_id, song_plan_payload(plan)),
        )
        stored = rehearsal.add_song_plan(self._stored_song(plan, response))
        logger.info(f"Song {stored.song_id} zu Probe {rehearsal_id} hinzugefügt "
                    f"(Position {stored.order})")
        return stored

    async def add_song_plans(
        self, rehearsal_id: int, plans: Iterable[SongPlan], bulk: bool = False
    ) -> list[SongPlan]:
        """Fügt mehrere Songs hinzu. Ohne ``bulk`` nacheinander, je ein Aufruf."""
        plans = list(plans)
        if not bulk:
            return [await self.add_song_plan(rehearsal_id, p) for p in plans]

        rehearsal = self.get(rehearsal_id)
        staged = rehearsal.model_copy(deep=True)
        prepared = []
        for p in plans:
            prepared.append(staged.add_song_plan(self._prepare_song(staged, p)))
        responses = await guarded(
            "add_multiple_songs_to_rehearsal",
            self.backend.add_multiple_songs_to_rehearsal(
                rehearsal_id, [song_plan_payload(p) for p in prepared]
            ),
        )
        responses = responses if isinstance(responses, list) else []
        stored = []
        for i, p in enumerate(prepared):
            response = responses[i] if i < len(responses) else None
            stored.append(rehearsal.add_song_plan(self._stored_song(p, response)))
        logger.info(f"{len(stored)} Songs zu Probe {rehearsal_id} hinzugefügt")
        return stored

    def _find_song(self, rehearsal: Rehearsal, key: int) -> SongPlan:
        plan = rehearsal.find_song_plan(key)
        if plan is None:
            raise NotFoundError(f"Song {key} is not part of rehearsal {rehearsal.id}")
        return plan

    async def update_song_plan(
        self, rehearsal_id: int, key: int, changes: dict[str, Any]
    ) -> SongPlan:
        rehearsal = self.get(rehearsal_id)
        plan = self._find_song(rehearsal, key)
        try:
            updated = plan.with_changes(changes)
        except ValidationError as e:
            raise PlanningError(f"Invalid update for song {key}: {e}") from e
        if updated.order != plan.order and any(
            p.order == updated.order for p in rehearsal.song_plans if p is not plan
        ):
            raise PlanningError(f"Song order {updated.order} is already used in this rehearsal")

        wire = song_plan_payload(updated)
        payload = {}
        for k in changes:
            name = SongPlan.field_for_key(k)
            if name is None or name in ("song_id", "rehearsal_song_id"):
                continue
            alias = SongPlan.model_fields[name].alias or name
            if alias in wire:
                payload[alias] = wire[alias]
        target = plan.rehearsal_song_id or plan.song_id
        await guarded("update_rehearsal_song",
                        self.backend.update_rehearsal_song(rehearsal_id, target, payload))

        self.normalizer.attach_names(updated)
        rehearsal.song_plans[rehearsal.song_plans.index(plan)] = updated
        rehearsal.replace_song_plans(rehearsal.song_plans)
        return updated

    async def delete_song_plan(self, rehearsal_id: int, key: int, caller: UserRef) -> None:
        """Löscht eine Song-Planung, wenn der Aufrufer dazu berechtigt ist."""
        rehearsal = self.get(rehearsal_id)
        plan = self._find_song(rehearsal, key)
        if not can_delete_song_plan(rehearsal, plan, caller, self.config.rules.elevated_roles):
            raise SongPlanPermissionError(
                f"User {caller.id} may not delete song {plan.song_id} "
                f"from rehearsal {rehearsal_id}"
            )
        target = plan.rehearsal_song_id or plan.song_id
        await guarded("delete_rehearsal_song",
                        self.backend.delete_rehearsal_song(rehearsal_id, target))
        rehearsal.song_plans.remove(plan)
        logger.info(f"Song {plan.song_id} aus Probe {rehearsal_id} entfernt")
