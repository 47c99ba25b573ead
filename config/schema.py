from pathlib import Path

from pydantic import BaseModel, Field, field_validator


# ─── PLANUNGS-REGELN ───

class RulesConfig(BaseModel):
    """Regeln für die Validierung von Proben vor dem Speichern."""
    # Mindestdauer einer Probe in Minuten (gilt vor dem ersten Speichern)
    min_duration_minutes: int = Field(15, ge=1, le=240,
        description="Mindestdauer einer Probe (Minuten)")
    # Vorgabe für neue Entwürfe
    default_duration_minutes: int = Field(60, ge=15, le=600,
        description="Standarddauer neuer Proben (Minuten)")
    # Rollen, die jede Song-Planung löschen dürfen
    elevated_roles: list[str] = Field(
        default=["SUPER_ADMIN"],
        description="Rollen mit Lösch-Recht auf alle Song-Planungen")

    @field_validator("elevated_roles")
    @classmethod
    def normalize_roles(cls, v: list[str]) -> list[str]:
        return [r.strip().upper() for r in v if r.strip()]


# ─── ANZEIGE ───

class DisplayConfig(BaseModel):
    """Platzhalter-Texte für nicht auflösbare Referenzen."""
    # Anzeige für unbekannte Benutzer-IDs
    unknown_user_label: str = Field("Unknown user",
        description="Platzhalter für unbekannte Benutzer")
    # Anzeige für unbekannte Song-IDs
    unknown_song_label: str = Field("Unknown song",
        description="Platzhalter für unbekannte Songs")
    # Anzeige für Stimmgruppen ohne Mitglieder
    unassigned_label: str = Field("Unassigned",
        description="Platzhalter für leere Stimmgruppen")
    # Ersatzwert für ungültige Stimmgruppen-Typen (bewusst tolerant)
    default_voice_part: str = Field("Soprano",
        description="Ersatz für unbekannte Stimmgruppen")


# ─── GESAMT-CONFIG ───

class EngineConfig(BaseModel):
    """Gesamtkonfiguration der Probenplanung."""
    # Name des Chors (nur Anzeige)
    choir_name: str = Field("Muster-Chor",
        description="Name des Chors")
    # Validierungsregeln
    rules: RulesConfig = Field(default_factory=RulesConfig)
    # Platzhalter und Anzeige
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    # Log-Level für die CLI (DEBUG, INFO, WARNING, ERROR)
    log_level: str = Field("WARNING",
        description="Log-Level der CLI")
    # Datendatei des lokalen Speichers (JSON)
    data_file: Path = Field(Path("output/rehearsals.json"),
        description="Datendatei des lokalen Speichers")

    @field_validator("log_level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unbekanntes Log-Level: {v}")
        return level
