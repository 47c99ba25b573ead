"""Tests für Resolver und Normalisierung der Song-Planungen."""

import logging

import pytest

from config.schema import DisplayConfig
from models.enums import InstrumentType, MusicalKey, SongDifficulty, VoicePartType
from models.reference import SongRef, UserRef
from planning.normalizer import LEAD_SINGER_STRATEGIES, SongPlanNormalizer
from planning.resolver import ReferenceResolver


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def _make_resolver(display: DisplayConfig | None = None) -> ReferenceResolver:
    users = [
        UserRef(id=1, first_name="Anna", last_name="Müller", role="LEAD"),
        UserRef(id=2, first_name="Hans", last_name="Weber"),
        UserRef(id=3, first_name="Lena", last_name="Koch"),
        UserRef(id=4, first_name="Tobias", last_name="Braun"),
    ]
    songs = [
        SongRef(id=10, title="Amazing Grace", added_by_id=1),
        SongRef(id=11, title="Siyahamba", added_by_id=2),
    ]
    return ReferenceResolver(users, songs, display)


@pytest.fixture
def normalizer() -> SongPlanNormalizer:
    return SongPlanNormalizer(_make_resolver())


def _combined(**overrides) -> dict:
    record = {
        "id": 100,
        "songId": 10,
        "order": 1,
        "timeAllocated": 20,
        "difficulty": "Advanced",
        "musicalKey": "F#",
        "leadSingerIds": [2, 3],
        "voiceParts": [{"voicePartType": "Alto", "memberIds": [3, 4]}],
        "musicians": [{"userId": 4, "instrument": "Piano", "isAccompanist": True}],
        "chorusMemberIds": [1],
        "addedById": 1,
    }
    record.update(overrides)
    return record


def _separated(**detail_overrides) -> dict:
    details = {
        "order": 1,
        "timeAllocated": 20,
        "difficulty": "Advanced",
        "musicalKey": "F#",
        "leadSingers": [{"id": 2, "firstName": "Hans", "lastName": "Weber"},
                        {"id": 3, "firstName": "Lena", "lastName": "Koch"}],
        "voiceParts": [{"voicePartType": "Alto",
                        "members": [{"id": 3, "firstName": "Lena", "lastName": "Koch"},
                                    {"id": 4, "firstName": "Tobias", "lastName": "Braun"}]}],
        "musicians": [{"user": {"id": 4}, "instrument": "Piano", "isAccompanist": True}],
        "chorusMembers": [{"id": 1}],
    }
    details.update(detail_overrides)
    return {
        "rehearsalSongId": 100,
        "songLibrary": {"id": 10, "title": "Amazing Grace", "addedById": 1},
        "rehearsalDetails": details,
    }


# ─── RESOLVER ─────────────────────────────────────────────────────────────────

class TestResolver:
    def test_known_user(self):
        assert _make_resolver().resolve_user_name(2) == "Hans Weber"

    @pytest.mark.parametrize("value", [None, 0, 999, "abc", [], {"id": 1}, -3, True])
    def test_unknown_user_never_raises(self, value):
        """Unbekannte oder unbrauchbare IDs liefern den Platzhalter."""
        assert _make_resolver().resolve_user_name(value) == "Unknown user"

    def test_string_id_accepted(self):
        assert _make_resolver().resolve_user_name("3") == "Lena Koch"

    def test_song_title_and_placeholder(self):
        r = _make_resolver()
        assert r.resolve_song_title(11) == "Siyahamba"
        assert r.resolve_song_title(42) == "Unknown song"

    def test_configured_placeholders(self):
        r = _make_resolver(DisplayConfig(unknown_user_label="Unbekannt",
                                         unknown_song_label="Kein Titel"))
        assert r.resolve_user_name(99) == "Unbekannt"
        assert r.resolve_song_title(99) == "Kein Titel"

    def test_snapshot_not_mutated(self):
        users = [UserRef(id=1, first_name="A", last_name="B")]
        r = ReferenceResolver(users, [])
        r.users.append(UserRef(id=2, first_name="C", last_name="D"))
        assert len(users) == 1
        assert not r.knows_user(2)


# ─── LEAD-SINGER-STRATEGIEN ───────────────────────────────────────────────────

class TestLeadSingerStrategies:
    def test_strategy_order(self):
        """Die Reihenfolge der Quellen ist fest und Teil der Schnittstelle."""
        names = [name for name, _ in LEAD_SINGER_STRATEGIES]
        assert names == ["leadSingerIds", "leadSingers", "leadSinger", "leadSingerId", "outer"]

    def test_explicit_ids_win_over_everything(self, normalizer):
        record = _combined(leadSingerIds=[2], leadSingers=[{"id": 3}],
                           leadSinger={"id": 4}, leadSingerId=1)
        plan = normalizer.normalize_records([record])[0]
        assert plan.lead_singer_ids == [2]

    def test_alternate_list_before_single_object(self, normalizer):
        record = _combined(leadSingerIds=[], leadSingers=[{"id": 3}], leadSinger={"id": 4})
        assert normalizer.normalize_records([record])[0].lead_singer_ids == [3]

    def test_single_object_before_single_id(self, normalizer):
        record = _combined(leadSingerIds=None, leadSinger={"id": 4}, leadSingerId=1)
        assert normalizer.normalize_records([record])[0].lead_singer_ids == [4]

    def test_single_id(self, normalizer):
        record = _combined(leadSingerIds=None, leadSingerId="1")
        assert normalizer.normalize_records([record])[0].lead_singer_ids == [1]

    def test_list_on_bundle(self, normalizer):
        record = _separated(leadSingers=None, leadSinger=[{"id": 2}, {"id": 2}, {"id": 3}])
        plan = normalizer.normalize_records([record])[0]
        assert plan.lead_singer_ids == [2, 3]

    def test_lead_singer_list_before_single_id(self, normalizer):
        """Liste unter ``leadSinger`` schlägt ``leadSingerId``."""
        records = [{"songLibrary": {"id": 1},
                    "rehearsalDetails": {"leadSinger": [{"id": 5}], "leadSingerId": 7,
                                         "order": 1}}]
        assert normalizer.normalize_records(records)[0].lead_singer_ids == [5]

    def test_lead_singer_list_in_combined_shape(self, normalizer):
        record = _combined(leadSingerIds=None, leadSinger=[{"id": 3}, 4], leadSingerId=1)
        assert normalizer.normalize_records([record])[0].lead_singer_ids == [3, 4]

    def test_single_object_in_bundle_before_single_id(self, normalizer):
        record = _separated(leadSingers=None, leadSinger={"id": 4}, leadSingerId=2)
        assert normalizer.normalize_records([record])[0].lead_singer_ids == [4]

    def test_outer_ids_win_in_separated_shape(self, normalizer):
        """``leadSingerIds`` am äußeren Datensatz geht ``rehearsalDetails.leadSingers`` vor."""
        record = _separated(leadSinger={"id": 4}, leadSingerId=1)
        record["leadSingerIds"] = [1]
        plan = normalizer.normalize_records([record])[0]
        assert plan.lead_singer_ids == [1]
        assert plan.lead_singer_names == ["Anna Müller"]

    def test_bundle_ids_used_when_outer_ids_empty(self, normalizer):
        record = _separated(leadSingers=None, leadSingerIds=[3])
        record["leadSingerIds"] = []
        assert normalizer.normalize_records([record])[0].lead_singer_ids == [3]

    def test_bundle_id_before_outer_record(self, normalizer):
        record = _separated(leadSingers=None, leadSingerId=2)
        record["leadSingers"] = [{"id": 4}]
        assert normalizer.normalize_records([record])[0].lead_singer_ids == [2]

    def test_list_on_outer_record(self, normalizer):
        record = _separated(leadSingers=None)
        record["leadSingers"] = [{"id": 4}]
        assert normalizer.normalize_records([record])[0].lead_singer_ids == [4]

    def test_object_on_outer_record_is_last_source(self, normalizer):
        record = _separated(leadSingers=None)
        record["leadSinger"] = {"id": 3, "firstName": "Lena", "lastName": "Koch"}
        plan = normalizer.normalize_records([record])[0]
        assert plan.lead_singer_ids == [3]
        assert plan.lead_singer_names == ["Lena Koch"]

    def test_outer_record_ignored_in_combined_shape(self):
        record = _combined(leadSingerIds=None)
        assert dict(LEAD_SINGER_STRATEGIES)["outer"](record, record) == []

    def test_empty_sources_are_skipped(self, normalizer):
        """Leere Listen zählen nicht als Treffer."""
        record = _combined(leadSingerIds=[], leadSingers=[], leadSingerId=3)
        assert normalizer.normalize_records([record])[0].lead_singer_ids == [3]

    def test_no_source_gives_empty(self, normalizer):
        record = _combined(leadSingerIds=None)
        assert normalizer.normalize_records([record])[0].lead_singer_ids == []

    def test_names_deduplicated(self, normalizer):
        record = _combined(leadSingerIds=[2, 2, 3])
        plan = normalizer.normalize_records([record])[0]
        assert plan.lead_singer_ids == [2, 3]
        assert plan.lead_singer_names == ["Hans Weber", "Lena Koch"]

    def test_unknown_lead_singer_keeps_placeholder(self, normalizer):
        plan = normalizer.normalize_records([_combined(leadSingerIds=[77])])[0]
        assert plan.lead_singer_ids == [77]
        assert plan.lead_singer_names == ["Unknown user"]

    def test_embedded_name_used_for_unknown_user(self, normalizer):
        record = _combined(leadSingerIds=None,
                           leadSinger={"id": 50, "firstName": "Gast", "lastName": "Sänger"})
        assert normalizer.normalize_records([record])[0].lead_singer_names == ["Gast Sänger"]


# ─── FORM-UNABHÄNGIGKEIT ──────────────────────────────────────────────────────

class TestShapeIndependence:
    def test_same_result_for_both_shapes(self, normalizer):
        """Kombinierte und getrennte Form ergeben dieselben Lead-Singer und Stimmgruppen."""
        a = normalizer.normalize_records([_combined()])[0]
        b = normalizer.normalize_records([_separated()])[0]
        assert a.lead_singer_ids == b.lead_singer_ids
        assert [vp.member_ids for vp in a.voice_parts] == [vp.member_ids for vp in b.voice_parts]
        assert a.chorus_member_ids == b.chorus_member_ids
        assert [m.user_id for m in a.musicians] == [m.user_id for m in b.musicians]
        assert a.rehearsal_song_id == b.rehearsal_song_id == 100
        assert a.song_id == b.song_id == 10
        assert a.song_title == b.song_title == "Amazing Grace"
        assert a.to_wire() == b.to_wire()

    def test_rehearsal_and_songs_response(self, normalizer):
        via_rehearsal = normalizer.normalize_rehearsal(
            {"id": 5, "rehearsalLeadId": 1, "rehearsalSongs": [_combined()]})
        via_response = normalizer.normalize_songs_response(
            {"rehearsalInfo": {"id": 5, "rehearsalLeadId": 1}, "rehearsalSongs": [_separated()]})
        assert [p.to_wire() for p in via_rehearsal] == [p.to_wire() for p in via_response]

    def test_song_plans_key_accepted(self, normalizer):
        plans = normalizer.normalize_rehearsal({"songPlans": [_combined()]})
        assert [p.song_id for p in plans] == [10]

    def test_added_by_falls_back_to_rehearsal_lead(self, normalizer):
        record = _separated()
        record["songLibrary"].pop("addedById")
        plans = normalizer.normalize_songs_response(
            {"rehearsalInfo": {"rehearsalLeadId": 3}, "rehearsalSongs": [record]})
        assert plans[0].added_by_id == 3


# ─── STIMMGRUPPEN ─────────────────────────────────────────────────────────────

class TestVoiceParts:
    def test_countertenor_becomes_soprano(self, normalizer, caplog):
        """Unbekannte Stimmgruppen werden toleriert und zu Soprano."""
        record = _combined(voiceParts=[{"voicePartType": "Countertenor", "memberIds": [2]}])
        with caplog.at_level(logging.WARNING):
            plan = normalizer.normalize_records([record])[0]
        assert plan.voice_parts[0].voice_part_type == VoicePartType.SOPRANO
        assert plan.voice_parts[0].member_ids == [2]
        assert "Countertenor" in caplog.text

    def test_configured_default_voice_part(self):
        n = SongPlanNormalizer(_make_resolver(DisplayConfig(default_voice_part="Alto")))
        record = _combined(voiceParts=[{"voicePartType": "Falsett"}])
        assert n.normalize_records([record])[0].voice_parts[0].voice_part_type == VoicePartType.ALTO

    def test_spelling_variants_accepted(self, normalizer):
        record = _combined(voiceParts=[{"voicePartType": "mezzo-soprano"},
                                       {"voicePartType": "BARITONE"}])
        types = [vp.voice_part_type for vp in normalizer.normalize_records([record])[0].voice_parts]
        assert types == [VoicePartType.MEZZO_SOPRANO, VoicePartType.BARITONE]

    def test_members_before_member_ids(self, normalizer):
        record = _combined(voiceParts=[{"voicePartType": "Tenor",
                                        "members": [{"id": 2}], "memberIds": [3, 4]}])
        assert normalizer.normalize_records([record])[0].voice_parts[0].member_ids == [2]

    def test_member_ids_resolved(self, normalizer):
        plan = normalizer.normalize_records([_combined()])[0]
        assert plan.voice_parts[0].member_names == ["Lena Koch", "Tobias Braun"]

    def test_no_members_is_unassigned(self, normalizer):
        record = _combined(voiceParts=[{"voicePartType": "Bass"}])
        vp = normalizer.normalize_records([record])[0].voice_parts[0]
        assert vp.member_ids == []
        assert vp.is_unassigned


# ─── TOTALITÄT ────────────────────────────────────────────────────────────────

class TestTotality:
    @pytest.mark.parametrize("payload", [None, 5, "x", [], {}, {"rehearsalSongs": "nope"},
                                         {"rehearsalSongs": [None, 3, "a"]}])
    def test_garbage_rehearsal_gives_empty(self, normalizer, payload):
        assert normalizer.normalize_rehearsal(payload) == []

    def test_garbage_songs_response_gives_empty(self, normalizer):
        assert normalizer.normalize_songs_response({"rehearsalInfo": 3}) == []

    def test_malformed_nested_data_degrades(self, normalizer):
        record = {
            "songLibrary": {"id": "10"},
            "rehearsalDetails": {
                "difficulty": "Impossible",
                "musicalKey": "H",
                "order": -4,
                "timeAllocated": "viel",
                "voiceParts": "none",
                "musicians": [None, {"instrument": "Banjo", "userId": 0}],
                "leadSingers": [None, "x"],
            },
        }
        plan = normalizer.normalize_records([record])[0]
        assert plan.song_id == 10
        assert plan.difficulty == SongDifficulty.INTERMEDIATE
        assert plan.musical_key == MusicalKey.C
        assert plan.order == 0
        assert plan.time_allocated == 0
        assert plan.voice_parts == []
        assert plan.lead_singer_ids == []
        assert len(plan.musicians) == 1
        banjo = plan.musicians[0]
        assert banjo.instrument == InstrumentType.OTHER
        assert banjo.custom_instrument == "Banjo"
        assert banjo.user_id is None
        assert banjo.display_name == "Unassigned"

    def test_unknown_song_title_placeholder(self, normalizer):
        plan = normalizer.normalize_records([_combined(songId=999)])[0]
        assert plan.song_title == "Unknown song"

    def test_sorted_by_order(self, normalizer):
        records = [_combined(songId=10, order=3), _combined(songId=11, order=1, id=101)]
        assert [p.order for p in normalizer.normalize_records(records)] == [1, 3]
