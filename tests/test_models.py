"""Tests für die Datenmodelle (Probe, Song-Planung, Musiker, Vorlage)."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from models import (
    InstrumentType,
    Rehearsal,
    RehearsalStatus,
    RehearsalTemplate,
    RehearsalType,
    SessionMusician,
    SongDifficulty,
    SongMusician,
    SongPlan,
    VoicePartAssignment,
    VoicePartType,
)
from models.enums import coerce_enum


def _plan(song_id: int, order: int = 0, minutes: int = 10, **kw) -> SongPlan:
    return SongPlan(song_id=song_id, order=order, time_allocated=minutes, **kw)


# ─── ENUMS ────────────────────────────────────────────────────────────────────

class TestCoerceEnum:
    def test_value_and_name(self):
        assert coerce_enum(RehearsalStatus, "In Progress") == RehearsalStatus.IN_PROGRESS
        assert coerce_enum(RehearsalStatus, "IN_PROGRESS") == RehearsalStatus.IN_PROGRESS
        assert coerce_enum(RehearsalStatus, "in-progress") == RehearsalStatus.IN_PROGRESS

    def test_unknown_returns_default(self):
        assert coerce_enum(VoicePartType, "Countertenor") is None
        assert coerce_enum(VoicePartType, 3, VoicePartType.BASS) == VoicePartType.BASS


# ─── SONG-PLANUNG ─────────────────────────────────────────────────────────────

class TestSongPlan:
    def test_wire_aliases(self):
        plan = SongPlan.model_validate({"songId": 3, "leadSingerIds": [1, 1, 2],
                                        "timeAllocated": 5, "musicalKey": "G#"})
        assert plan.song_id == 3
        assert plan.lead_singer_ids == [1, 2]
        wire = plan.to_wire()
        assert wire["songId"] == 3
        assert wire["musicalKey"] == "G#"
        assert "songTitle" not in wire
        assert "leadSingerNames" not in wire

    def test_negative_time_rejected(self):
        with pytest.raises(ValidationError):
            SongPlan(song_id=1, time_allocated=-5)

    def test_with_changes_keeps_song_id(self):
        plan = _plan(7, order=2, song_title="Shenandoah")
        updated = plan.with_changes({"songId": 99, "notes": "leiser", "timeAllocated": 12})
        assert updated.song_id == 7
        assert updated.notes == "leiser"
        assert updated.time_allocated == 12
        assert updated.song_title == "Shenandoah"
        assert plan.notes == ""

    def test_voice_part_sanitized_on_model(self):
        vp = VoicePartAssignment.model_validate({"voicePartType": "Countertenor"})
        assert vp.voice_part_type == VoicePartType.SOPRANO
        assert vp.is_unassigned


class TestMusicians:
    def test_unknown_instrument_becomes_custom(self):
        m = SongMusician.model_validate({"userId": 4, "instrument": "Banjo"})
        assert m.instrument == InstrumentType.OTHER
        assert m.custom_instrument == "Banjo"
        assert m.instrument_label == "Banjo"

    def test_zero_user_is_unassigned(self):
        assert not SongMusician(user_id=0).is_assigned

    def test_solo_fields_default_off(self):
        m = SongMusician(user_id=1, instrument=InstrumentType.PIANO)
        assert (m.is_soloist, m.solo_start_time, m.solo_end_time) == (False, 0, 0)

    def test_session_musician_fields(self):
        m = SessionMusician.model_validate({"userId": 2, "instrument": "cello",
                                            "needsPractice": True, "practiceNotes": None})
        assert m.instrument == InstrumentType.CELLO
        assert m.needs_practice
        assert m.practice_notes == ""


# ─── PROBE ────────────────────────────────────────────────────────────────────

class TestRehearsalSongOrder:
    def test_next_order_empty(self):
        assert Rehearsal().next_song_order() == 1

    def test_order_is_max_plus_one(self):
        """Neue Position = größte vorhandene + 1, auch bei Lücken."""
        r = Rehearsal(song_plans=[_plan(1, 1), _plan(2, 5)])
        added = r.add_song_plan(_plan(3))
        assert added.order == 6
        assert [p.order for p in r.song_plans] == [1, 5, 6]

    def test_duplicate_order_rejected(self):
        r = Rehearsal(song_plans=[_plan(1, 1)])
        with pytest.raises(ValueError, match="already used"):
            r.add_song_plan(_plan(2, 1))
        assert len(r.song_plans) == 1

    def test_explicit_order_kept_and_sorted(self):
        r = Rehearsal(song_plans=[_plan(1, 3)])
        r.add_song_plan(_plan(2, 2))
        assert [p.song_id for p in r.song_plans] == [2, 1]

    def test_read_duplicates_resequenced(self):
        """Doppelte Positionen aus der Schnittstelle werden hinten neu vergeben."""
        r = Rehearsal(song_plans=[_plan(1, 1), _plan(2, 1), _plan(3, 2)])
        orders = [p.order for p in r.song_plans]
        assert len(orders) == len(set(orders))
        assert orders == [1, 2, 3]
        assert r.song_plans[-1].song_id == 2

    def test_add_does_not_share_instance(self):
        plan = _plan(1)
        r = Rehearsal()
        stored = r.add_song_plan(plan)
        assert stored is not plan
        assert plan.order == 0

    def test_total_time(self):
        r = Rehearsal(song_plans=[_plan(1, 1, 40), _plan(2, 2, 30)])
        assert r.total_time_allocated == 70


class TestRehearsalLookup:
    def _make(self) -> Rehearsal:
        return Rehearsal(song_plans=[
            _plan(10, 1, rehearsal_song_id=5),
            _plan(5, 2, rehearsal_song_id=6),
        ])

    def test_find_prefers_rehearsal_song_id(self):
        """Schlüssel 5 trifft zuerst die RehearsalSong-ID 5, nicht Song 5."""
        assert self._make().find_song_plan(5).song_id == 10

    def test_find_falls_back_to_song_id(self):
        assert self._make().find_song_plan(10).song_id == 10

    def test_find_unknown(self):
        assert self._make().find_song_plan(99) is None

    def test_remove(self):
        r = self._make()
        assert r.remove_song_plan(6)
        assert [p.song_id for p in r.song_plans] == [10]
        assert not r.remove_song_plan(6)


class TestRehearsalUpdate:
    def test_partial_update_wire_keys(self):
        r = Rehearsal(id=4, title="Alt", location="Saal")
        updated = r.apply_update({"title": "Neu", "rehearsalLeadId": 3, "unknown": 1})
        assert updated.title == "Neu"
        assert updated.rehearsal_lead_id == 3
        assert updated.location == "Saal"
        assert r.title == "Alt"

    def test_promotion_flag_sticky(self):
        r = Rehearsal(id=4, is_promoted=True, status=RehearsalStatus.COMPLETED)
        updated = r.apply_update({"isPromoted": False, "status": "Planning"})
        assert updated.is_promoted is True
        assert updated.status == RehearsalStatus.PLANNING

    def test_id_and_songs_not_updated(self):
        r = Rehearsal(id=4, song_plans=[_plan(1, 1)])
        updated = r.apply_update({"id": 9, "rehearsalSongs": []})
        assert updated.id == 4
        assert len(updated.song_plans) == 1

    def test_invalid_status_rejected(self):
        with pytest.raises(ValidationError):
            Rehearsal(id=1).apply_update({"status": "Vertagt"})

    def test_wire_roundtrip_fields(self):
        r = Rehearsal.model_validate({
            "id": 2, "title": "Probe", "date": "2025-03-01T18:00:00",
            "type": "sectional practice", "performanceId": None, "notes": None,
        })
        assert r.type == RehearsalType.SECTIONAL_PRACTICE
        assert r.performance_id == 0
        assert r.notes == ""
        assert r.date == datetime(2025, 3, 1, 18, 0)
        assert r.is_persisted


# ─── VORLAGE ──────────────────────────────────────────────────────────────────

class TestTemplate:
    def _make(self) -> RehearsalTemplate:
        return RehearsalTemplate(
            id=3, title="Generalprobe", type=RehearsalType.DRESS_REHEARSAL,
            duration=120, objectives="Durchlauf", category="Auftritt",
            tags=["konzert", " konzert", "band", ""], difficulty="advanced",
        )

    def test_tags_cleaned(self):
        assert self._make().tags == ["konzert", "band"]

    def test_to_draft_copies_scalars(self):
        t = self._make()
        draft = t.to_draft(location="Kirche")
        assert draft.id == 0
        assert not draft.is_persisted
        assert draft.title == "Generalprobe"
        assert draft.type == RehearsalType.DRESS_REHEARSAL
        assert draft.duration == 120
        assert draft.location == "Kirche"
        assert draft.status == RehearsalStatus.PLANNING
        assert not draft.is_template

    def test_to_draft_never_persisted(self):
        assert self._make().to_draft(id=55).id == 0

    def test_to_draft_does_not_mutate_template(self):
        t = self._make()
        before = t.model_dump()
        draft = t.to_draft()
        draft.title = "Anders"
        assert t.model_dump() == before

    def test_matches(self):
        t = self._make()
        assert t.matches("BAND")
        assert t.matches("durch")
        assert not t.matches("jazz")
        assert t.difficulty == SongDifficulty.ADVANCED
