"""Konfigurationsmanager: Engine-Config als kommentiertes YAML (ruamel.yaml)."""

import json
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.defaults import default_engine_config
from config.schema import EngineConfig

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTARE ───

_YAML_HEADER = f"""\
# ============================================
# Probenplanung: Engine-Konfiguration
# Erstellt: {date.today().isoformat()}
# ============================================
"""

# Abschnitt → (Überschrift, Erläuterung)
_SECTION_COMMENTS = {
    "rules": ("Regeln", "Mindestdauer, Standarddauer und Rollen mit erweitertem Lösch-Recht."),
    "display": ("Anzeige", "Platzhalter für nicht auflösbare Benutzer und Songs."),
    "log_level": ("Logging", None),
    "data_file": ("Datenablage", "JSON-Datei des lokalen Speichers (nur CLI)."),
}

# Zeilenkommentare innerhalb der Abschnitte
_FIELD_COMMENTS = {
    "rules": {
        "min_duration_minutes": "gilt nur vor dem ersten Speichern",
        "elevated_roles": "dürfen jede Song-Planung löschen",
    },
    "display": {
        "default_voice_part": "Ersatz für unbekannte Stimmgruppen",
    },
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "engine_config.yaml"

    def first_run_check(self) -> bool:
        """True, solange noch keine Konfigurationsdatei angelegt wurde."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> EngineConfig:
        """Liest die YAML-Datei und prüft sie gegen ``EngineConfig``."""
        target = Path(path or self.DEFAULT_CONFIG)
        if not target.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {target}\n"
                f"Anlegen mit 'python main.py config init'."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f) or {}
        try:
            return EngineConfig.model_validate(dict(raw))
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ValueError(f"Konfigurationsdatei ungültig: {target} ({problems})") from e

    def load_or_default(self, path: Optional[Path] = None) -> EngineConfig:
        """Wie ``load()``; ohne Datei gelten die Standardwerte."""
        target = Path(path or self.DEFAULT_CONFIG)
        if target.exists():
            return self.load(target)
        return default_engine_config()

    # ─── Speichern ───

    def save(self, config: EngineConfig, path: Optional[Path] = None) -> None:
        """Schreibt die Konfiguration als kommentiertes YAML."""
        target = Path(path or self.DEFAULT_CONFIG)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            f.write(_YAML_HEADER + "\n")
            yaml.dump(self._build_commented_yaml(config), f)
        console.print(f"[green]✓[/green] Konfiguration gespeichert: {target}")

    def _build_commented_yaml(self, config: EngineConfig) -> CommentedMap:
        cm = CommentedMap(json.loads(config.model_dump_json()))
        for key, (label, comment) in _SECTION_COMMENTS.items():
            if key in cm:
                before = f"\n─── {label} ───" + (f"\n{comment}" if comment else "")
                cm.yaml_set_comment_before_after_key(key, before=before)

        for section, comments in _FIELD_COMMENTS.items():
            sub = CommentedMap(cm[section])
            for key, comment in comments.items():
                sub.yaml_add_eol_comment(comment, key)
            cm[section] = sub
        return cm
