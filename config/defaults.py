from config.schema import DisplayConfig, EngineConfig, RulesConfig


def default_rules() -> RulesConfig:
    """Standardregeln.

    Mindestdauer 15 min, neue Proben starten mit 60 min.
    Nur SUPER_ADMIN darf fremde Song-Planungen löschen; Probenleiter und
    derjenige, der den Song hinzugefügt hat, dürfen es immer.
    """
    return RulesConfig(
        min_duration_minutes=15,
        default_duration_minutes=60,
        elevated_roles=["SUPER_ADMIN"],
    )


def default_display() -> DisplayConfig:
    return DisplayConfig(
        unknown_user_label="Unknown user",
        unknown_song_label="Unknown song",
        unassigned_label="Unassigned",
        default_voice_part="Soprano",
    )


def default_engine_config() -> EngineConfig:
    """Vollständige Default-Konfiguration."""
    return EngineConfig(
        choir_name="Muster-Chor",
        rules=default_rules(),
        display=default_display(),
        log_level="WARNING",
    )


# Instrumente nach Familie (für die Auswahl-Listen der CLI)
INSTRUMENT_FAMILIES: dict[str, list[str]] = {
    "Saiten & Tasten": [
        "Piano", "Electric Piano", "Digital Piano", "Keyboard", "Synthesizer",
        "Guitar", "Acoustic Guitar", "Electric Guitar", "Classical Guitar",
        "Bass", "Electric Bass", "Violin", "Viola", "Cello", "Double Bass",
    ],
    "Blasinstrumente": [
        "Flute", "Piccolo", "Clarinet", "Bass Clarinet", "Saxophone",
        "Alto Saxophone", "Tenor Saxophone", "Baritone Saxophone", "Trumpet",
        "Cornet", "Trombone", "Bass Trombone", "French Horn", "Euphonium", "Tuba",
    ],
    "Schlagwerk": [
        "Drums", "Snare Drum", "Bass Drum", "Tom-Tom", "Hi-Hat", "Crash Cymbal",
        "Ride Cymbal", "Timpani", "Xylophone", "Marimba", "Vibraphone",
        "Glockenspiel", "Conga Drums", "Bongo Drums", "Djembe", "Cajon",
        "Tambourine", "Triangle",
    ],
    "Sonstige": [
        "Harp", "Organ", "Pipe Organ", "Electronic Organ", "Accordion",
        "Harmonica", "Piano Accompaniment", "Other",
    ],
}
