"""Probenvorlagen: Laden, Suchen, Pflegen und neue Entwürfe daraus erzeugen."""

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from models.enums import SongDifficulty, coerce_enum
from models.rehearsal import Rehearsal
from models.template import RehearsalTemplate
from planning.backend import RehearsalBackend, guarded
from planning.errors import CollaboratorError, NotFoundError, PlanningError

logger = logging.getLogger(__name__)


def search_templates(
    templates: Iterable[RehearsalTemplate],
    term: str = "",
    category: Optional[str] = None,
    difficulty: Optional[str] = None,
) -> list[RehearsalTemplate]:
    """Filtert nach Suchbegriff, Kategorie und Schwierigkeit (leer = alle)."""
    wanted = coerce_enum(SongDifficulty, difficulty) if difficulty else None
    result = []
    for t in templates:
        if category and t.category.lower() != category.strip().lower():
            continue
        if wanted is not None and t.difficulty != wanted:
            continue
        if t.matches(term):
            result.append(t)
    return result


def is_usable_template(template: RehearsalTemplate) -> bool:
    """Vorlagen ohne Titel oder ganz ohne Inhalt (keine Ziele, keine Songs) sind unbrauchbar."""
    if not template.title.strip():
        return False
    return bool(template.objectives.strip() or template.song_plans)


def template_from_rehearsal(
    rehearsal: Rehearsal, category: str = "General", tags: Iterable[str] = ()
) -> RehearsalTemplate:
    """Vorlage aus einer bestehenden Probe (Songs ohne RehearsalSong-IDs)."""
    seeds = []
    for p in rehearsal.song_plans:
        seed = p.model_copy(deep=True)
        seed.rehearsal_song_id = None
        seeds.append(seed)
    return RehearsalTemplate(
        title=rehearsal.title,
        type=rehearsal.type,
        duration=max(rehearsal.duration, 1),
        objectives=rehearsal.objectives,
        category=category,
        tags=list(tags),
        song_plans=seeds,
    )


class TemplateCatalog:
    """Vorlagen an der Schnittstelle, mit lokalem Zwischenstand."""

    def __init__(self, backend: RehearsalBackend):
        self.backend = backend
        self.templates: dict[int, RehearsalTemplate] = {}

    def _parse(self, raw: Any) -> Optional[RehearsalTemplate]:
        try:
            return RehearsalTemplate.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Vorlage verworfen ({e.error_count()} Fehler): {raw!r}")
            return None

    async def fetch(self, category: Optional[str] = None) -> list[RehearsalTemplate]:
        raw = await guarded("fetch_templates", self.backend.fetch_templates(category))
        templates = [t for t in (self._parse(r) for r in raw or []) if t is not None]
        self.templates = {t.id: t for t in templates}
        return templates

    def get(self, template_id: int) -> RehearsalTemplate:
        try:
            return self.templates[template_id]
        except KeyError:
            raise NotFoundError(f"Template {template_id} is not loaded") from None

    async def create(self, template: RehearsalTemplate) -> RehearsalTemplate:
        payload = template.to_wire()
        payload.pop("id", None)
        raw = await guarded("create_template", self.backend.create_template(payload))
        created = self._parse(raw)
        if created is None:
            raise CollaboratorError("create_template", ValueError(f"unexpected response: {raw!r}"))
        self.templates[created.id] = created
        logger.info(f"Vorlage {created.id} angelegt: {created.title!r}")
        return created

    async def update(self, template_id: int, changes: dict[str, Any]) -> RehearsalTemplate:
        current = self.get(template_id)
        data = current.model_dump()
        for key, value in changes.items():
            name = RehearsalTemplate.field_for_key(key)
            if name is not None and name != "id":
                data[name] = value
        try:
            updated = RehearsalTemplate.model_validate(data)
        except ValidationError as e:
            raise PlanningError(f"Invalid update for template {template_id}: {e}") from e
        wire = updated.to_wire()
        payload = {}
        for key in changes:
            name = RehearsalTemplate.field_for_key(key)
            if name is None or name == "id":
                continue
            alias = RehearsalTemplate.model_fields[name].alias or name
            payload[alias] = wire[alias]
        await guarded("update_template", self.backend.update_template(template_id, payload))
        self.templates[template_id] = updated
        return updated

    async def delete(self, template_id: int) -> None:
        await guarded("delete_template", self.backend.delete_template(template_id))
        self.templates.pop(template_id, None)
        logger.info(f"Vorlage {template_id} gelöscht")

    async def draft_from(self, template_id: int, **overrides: Any) -> Rehearsal:
        """Neuer Entwurf aus einer Vorlage; Nutzung wird an der Vorlage vermerkt."""
        template = self.get(template_id)
        draft = template.to_draft(**overrides)
        await self.update(template_id, {
            "usage_count": template.usage_count + 1,
            "last_used": datetime.now(timezone.utc),
        })
        return draft
