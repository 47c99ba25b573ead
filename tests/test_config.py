"""Tests für das Konfigurationssystem, Demo-Daten und den Datensatz."""

from datetime import datetime, timezone
from pathlib import Path

import pytest
from pydantic import ValidationError

from config.schema import DisplayConfig, EngineConfig, RulesConfig
from config.defaults import (
    default_display,
    default_engine_config,
    default_rules,
    INSTRUMENT_FAMILIES,
)
from config.manager import ConfigManager
from models.enums import InstrumentType


# ─── DEFAULT-KONFIGURATION ────────────────────────────────────────────────────

class TestDefaultConfig:
    def test_default_rules(self):
        """Mindestdauer 15 min, Standarddauer 60 min, nur SUPER_ADMIN erweitert."""
        rules = default_rules()
        assert rules.min_duration_minutes == 15
        assert rules.default_duration_minutes == 60
        assert rules.elevated_roles == ["SUPER_ADMIN"]

    def test_default_display(self):
        d = default_display()
        assert d.unknown_user_label == "Unknown user"
        assert d.unknown_song_label == "Unknown song"
        assert d.default_voice_part == "Soprano"

    def test_default_engine_config_valid(self):
        config = default_engine_config()
        assert config.choir_name == "Muster-Chor"
        assert config.log_level == "WARNING"
        assert config.data_file == Path("output/rehearsals.json")

    def test_instrument_families_cover_all_instruments(self):
        """Jedes Instrument gehört genau einer Familie an."""
        listed = [i for family in INSTRUMENT_FAMILIES.values() for i in family]
        assert sorted(listed) == sorted(i.value for i in InstrumentType)
        assert len(listed) == len(set(listed))


# ─── PYDANTIC-VALIDIERUNG ─────────────────────────────────────────────────────

class TestPydanticValidation:
    def test_min_duration_must_be_positive(self):
        with pytest.raises(ValidationError):
            RulesConfig(min_duration_minutes=0)

    def test_elevated_roles_normalized(self):
        """Rollen werden getrimmt und großgeschrieben, leere entfernt."""
        rules = RulesConfig(elevated_roles=[" super_admin ", "lead", "  "])
        assert rules.elevated_roles == ["SUPER_ADMIN", "LEAD"]

    def test_log_level_normalized(self):
        assert EngineConfig(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            EngineConfig(log_level="LOUD")

    def test_display_overrides(self):
        d = DisplayConfig(unknown_user_label="Unbekannt")
        assert d.unknown_user_label == "Unbekannt"
        assert d.unassigned_label == "Unassigned"


# ─── CONFIG-MANAGER ───────────────────────────────────────────────────────────

class TestConfigManager:
    def _manager(self, tmp_path: Path) -> ConfigManager:
        mgr = ConfigManager()
        mgr.CONFIG_DIR = tmp_path
        mgr.DEFAULT_CONFIG = tmp_path / "engine_config.yaml"
        return mgr

    def test_save_and_load_roundtrip(self, tmp_path: Path):
        """Config speichern, laden und validieren (Roundtrip)."""
        config = default_engine_config()
        config.rules.min_duration_minutes = 20
        config.display.unknown_song_label = "Unbekannter Song"
        mgr = self._manager(tmp_path)

        mgr.save(config)
        assert mgr.DEFAULT_CONFIG.exists()

        loaded = mgr.load(mgr.DEFAULT_CONFIG)
        assert loaded.rules.min_duration_minutes == 20
        assert loaded.display.unknown_song_label == "Unbekannter Song"
        assert loaded.data_file == config.data_file

    def test_saved_file_has_comments(self, tmp_path: Path):
        mgr = self._manager(tmp_path)
        mgr.save(default_engine_config())
        content = mgr.DEFAULT_CONFIG.read_text(encoding="utf-8")
        assert content.startswith("# ====")
        assert "─── Regeln ───" in content
        assert "gilt nur vor dem ersten Speichern" in content

    def test_first_run_check_no_file(self, tmp_path: Path):
        mgr = ConfigManager()
        mgr.DEFAULT_CONFIG = tmp_path / "nonexistent.yaml"
        assert mgr.first_run_check() is True

    def test_first_run_check_with_file(self, tmp_path: Path):
        mgr = self._manager(tmp_path)
        mgr.save(default_engine_config())
        assert mgr.first_run_check() is False

    def test_load_nonexistent_raises(self, tmp_path: Path):
        mgr = ConfigManager()
        with pytest.raises(FileNotFoundError):
            mgr.load(tmp_path / "not_there.yaml")

    def test_load_invalid_raises_value_error(self, tmp_path: Path):
        """Ungültige Werte → ValueError mit Dateinamen."""
        bad = tmp_path / "bad.yaml"
        bad.write_text("rules:\n  min_duration_minutes: -5\n", encoding="utf-8")
        with pytest.raises(ValueError, match="bad.yaml"):
            ConfigManager().load(bad)

    def test_load_or_default_without_file(self, tmp_path: Path):
        mgr = self._manager(tmp_path)
        config = mgr.load_or_default()
        assert config.rules.min_duration_minutes == 15


# ─── DEMO-DATEN ───────────────────────────────────────────────────────────────

_NOW = datetime(2025, 3, 1, 18, 0, tzinfo=timezone.utc)


class TestFakeData:
    def _make_data(self, seed: int = 42):
        from data.fake_data import FakeDataGenerator
        return FakeDataGenerator(default_engine_config(), seed=seed, now=_NOW).generate()

    def test_generates_all_parts(self):
        data = self._make_data()
        assert len(data.users) == 3 + 20 + 5
        assert len(data.songs) == 12
        assert len(data.shifts) == 3
        assert len(data.rehearsals) == 3
        assert len(data.templates) == 3

    def test_seed_reproducible(self):
        a, b = self._make_data(7), self._make_data(7)
        assert [u.full_name for u in a.users] == [u.full_name for u in b.users]
        assert a.rehearsals == b.rehearsals

    def test_unique_member_names(self):
        data = self._make_data()
        names = [u.full_name for u in data.users]
        assert len(names) == len(set(names))

    def test_one_rehearsal_already_promoted(self):
        data = self._make_data()
        assert sum(1 for r in data.rehearsals if r["isPromoted"]) == 1

    def test_save_and_load_json(self, tmp_path: Path):
        """ChoirData → JSON → ChoirData Roundtrip."""
        data = self._make_data()
        json_path = tmp_path / "rehearsals.json"
        data.save_json(json_path)
        assert json_path.exists()

        loaded = type(data).load_json(json_path)
        assert len(loaded.users) == len(data.users)
        assert loaded.rehearsals == data.rehearsals
        assert loaded.templates[0].title == data.templates[0].title
        assert loaded.created_at is not None

    def test_load_json_nonexistent_raises(self, tmp_path: Path):
        from models.choir_data import ChoirData
        with pytest.raises(FileNotFoundError):
            ChoirData.load_json(tmp_path / "does_not_exist.json")

    def test_summary_mentions_choir(self):
        data = self._make_data()
        assert "Muster-Chor" in data.summary()
