"""Probenplanung: Haupt-CLI.

Verwendung:
  python main.py config init              Standard-Konfiguration anlegen
  python main.py config show              Konfiguration anzeigen
  python main.py demo                     Demo-Datensatz erzeugen
  python main.py list                     Proben auflisten
  python main.py show <id>                Probe mit Songs anzeigen
  python main.py validate <id>            Probe prüfen
  python main.py status <id> <status>     Status setzen
  python main.py promote <id> [<id>...]   Proben in Auftritte übernehmen
  python main.py templates list           Vorlagen auflisten / suchen
  python main.py instruments              Instrumente nach Familie
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

from planning.errors import PlanningError

console = Console()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=False, show_path=False)],
        force=True,
    )


def _load_config():
    from config.manager import ConfigManager
    mgr = ConfigManager()
    try:
        config = mgr.load_or_default()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    _setup_logging(config.log_level)
    return mgr, config


def _open_session(data_file: Optional[str] = None):
    """Lädt Konfiguration und Datensatz und baut eine Planungssitzung."""
    from data.memory_backend import InMemoryBackend
    from planning.resolver import ReferenceResolver
    from planning.session import PlanningSession

    mgr, config = _load_config()
    path = Path(data_file) if data_file else config.data_file
    if not path.exists():
        console.print(
            f"[red]Keine Datendatei gefunden: {path}[/red]\n"
            "Verwenden Sie zunächst [bold]python main.py demo[/bold]."
        )
        sys.exit(1)
    backend = InMemoryBackend.from_file(path)
    resolver = ReferenceResolver(backend.data.users, backend.data.songs, config.display)
    return PlanningSession(backend, resolver, config), backend


def _run(coro):
    """Führt eine Operation aus; Planungsfehler beenden mit Exit-Code 1."""
    try:
        return asyncio.run(coro)
    except PlanningError as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(1)


data_file_option = click.option(
    "--data-file", default=None, help="JSON-Datendatei (Standard: aus der Konfiguration).")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen oder anlegen."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    mgr, config = _load_config()
    source = "Standardwerte" if mgr.first_run_check() else str(mgr.DEFAULT_CONFIG)

    console.print(Panel(
        f"[bold]{config.choir_name}[/bold]  |  Quelle: {source}",
        title="Engine-Konfiguration",
        border_style="cyan",
    ))

    table = Table(title="Regeln & Anzeige", box=box.ROUNDED)
    table.add_column("Schlüssel", style="bold")
    table.add_column("Wert")
    r, d = config.rules, config.display
    table.add_row("min_duration_minutes", str(r.min_duration_minutes))
    table.add_row("default_duration_minutes", str(r.default_duration_minutes))
    table.add_row("elevated_roles", ", ".join(r.elevated_roles))
    table.add_row("unknown_user_label", d.unknown_user_label)
    table.add_row("unknown_song_label", d.unknown_song_label)
    table.add_row("unassigned_label", d.unassigned_label)
    table.add_row("default_voice_part", d.default_voice_part)
    table.add_row("log_level", config.log_level)
    table.add_row("data_file", str(config.data_file))
    console.print(table)


@cmd_config.command("init")
@click.option("--force", is_flag=True, default=False, help="Bestehende Datei überschreiben.")
def config_init(force: bool):
    """Legt die Konfigurationsdatei mit Standardwerten an."""
    from config.defaults import default_engine_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check() and not force:
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            "Mit [bold]--force[/bold] wird sie überschrieben."
        )
        return
    mgr.save(default_engine_config())


# ─── DEMO ─────────────────────────────────────────────────────────────────────

@click.command("demo")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@data_file_option
def cmd_demo(seed: int, data_file: Optional[str]):
    """Erzeugt einen Demo-Datensatz (Mitglieder, Songs, Dienste, Proben, Vorlagen)."""
    from data.fake_data import FakeDataGenerator

    mgr, config = _load_config()
    console.print("[bold]Demo-Daten werden generiert...[/bold]")
    gen = FakeDataGenerator(config, seed=seed)
    data = gen.generate()
    gen.print_summary(data)
    console.print(f"\n[dim]{data.summary()}[/dim]")

    out_path = Path(data_file) if data_file else config.data_file
    data.save_json(out_path)
    console.print(f"[green]✓[/green] JSON gespeichert: {out_path}")


# ─── LIST / SHOW ──────────────────────────────────────────────────────────────

@click.command("list")
@data_file_option
def cmd_list(data_file: Optional[str]):
    """Listet alle Proben des Datensatzes."""
    session, backend = _open_session(data_file)

    table = Table(title="Proben", box=box.ROUNDED)
    table.add_column("ID", justify="right")
    table.add_column("Titel")
    table.add_column("Datum")
    table.add_column("Status")
    table.add_column("Songs", justify="right")
    table.add_column("Übernommen")
    for raw in backend.list_rehearsals():
        r = session.rehearsal_from_payload(raw)
        table.add_row(
            str(r.id),
            r.title,
            r.date.strftime("%d.%m.%Y %H:%M") if r.date else "—",
            r.status.value,
            str(len(r.song_plans)),
            "[green]✓[/green]" if r.is_promoted else "",
        )
    console.print(table)


@click.command("show")
@click.argument("rehearsal_id", type=int)
@click.option("--separated", is_flag=True, default=False,
              help="Songs über die getrennte Form laden (songLibrary + rehearsalDetails).")
@data_file_option
def cmd_show(rehearsal_id: int, separated: bool, data_file: Optional[str]):
    """Zeigt eine Probe mit ihren normalisierten Song-Planungen."""
    session, _ = _open_session(data_file)

    async def load():
        rehearsal = await session.load(rehearsal_id)
        if separated:
            await session.refresh_songs(rehearsal_id)
        return rehearsal

    r = _run(load())
    resolver = session.resolver
    console.print(Panel(
        f"[bold]{r.title}[/bold]  |  {r.type.value}  |  {r.status.value}\n"
        f"{r.location or '—'}  |  {r.duration} min  |  "
        f"Leitung: {resolver.resolve_user_name(r.rehearsal_lead_id)}\n"
        f"Songs: {r.total_time_allocated} / {r.duration} min verplant",
        title=f"Probe {r.id}",
        border_style="cyan",
    ))

    table = Table(title="Song-Planung", box=box.ROUNDED, show_lines=True)
    table.add_column("#", justify="right")
    table.add_column("Song")
    table.add_column("Tonart")
    table.add_column("Min", justify="right")
    table.add_column("Lead")
    table.add_column("Stimmgruppen")
    table.add_column("Musiker")
    unassigned = session.config.display.unassigned_label
    for p in r.song_plans:
        parts = [
            f"{vp.voice_part_type.value}: "
            f"{', '.join(vp.member_names) if not vp.is_unassigned else unassigned}"
            for vp in p.voice_parts
        ]
        musicians = [f"{m.display_name} ({m.instrument_label})" for m in p.musicians]
        table.add_row(
            str(p.order),
            p.song_title + (" [yellow]⚑[/yellow]" if p.needs_work else ""),
            p.musical_key.value,
            str(p.time_allocated),
            ", ".join(p.lead_singer_names) or "—",
            "\n".join(parts) or "—",
            "\n".join(musicians) or "—",
        )
    console.print(table)


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
@click.argument("rehearsal_id", type=int)
@click.option("--first-save", is_flag=True, default=False,
              help="Regeln für das erste Speichern anwenden (Song-Zeit, Lead-Singer).")
@click.option("--performance-id", default=0, help="Vorgegebener Auftritt.")
@data_file_option
def cmd_validate(rehearsal_id: int, first_save: bool, performance_id: int,
                 data_file: Optional[str]):
    """Prüft eine Probe gegen die Planungsregeln."""
    from analysis.rehearsal_validator import ValidationContext
    from analysis.shift_check import DutyRosterChecker

    session, backend = _open_session(data_file)
    rehearsal = _run(session.load(rehearsal_id))

    checker = DutyRosterChecker()
    context = ValidationContext(
        active_shift=checker.active_shift(backend.data.shifts),
        bound_performance_id=performance_id,
        first_save=first_save,
        shift_checker=checker,
    )
    report = session.validate(rehearsal, context)
    report.print_rich()
    sys.exit(0 if report.is_valid else 1)


# ─── STATUS / PROMOTE ─────────────────────────────────────────────────────────

@click.command("status")
@click.argument("rehearsal_id", type=int)
@click.argument("status")
@data_file_option
def cmd_status(rehearsal_id: int, status: str, data_file: Optional[str]):
    """Setzt den Status einer Probe (Planning, "In Progress", Completed, Cancelled)."""
    from planning.lifecycle import RehearsalLifecycle

    session, _ = _open_session(data_file)

    async def change():
        await session.load(rehearsal_id)
        return await RehearsalLifecycle(session).set_status(rehearsal_id, status)

    r = _run(change())
    console.print(f"[green]✓[/green] Probe {r.id}: {r.status.value}")


@click.command("promote")
@click.argument("rehearsal_ids", type=int, nargs=-1, required=True)
@data_file_option
def cmd_promote(rehearsal_ids: tuple[int, ...], data_file: Optional[str]):
    """Übernimmt abgeschlossene Proben in ihre Auftritte."""
    from planning.promotion import PromotionWorkflow

    session, _ = _open_session(data_file)
    result = _run(PromotionWorkflow(session).promote_many(rehearsal_ids))

    for rid in result.promoted_rehearsals:
        console.print(f"[green]✓[/green] Probe {rid} übernommen")
    for failure in result.errors:
        console.print(f"[red]✗ Probe {failure.rehearsal_id}: {failure.error}[/red]")
    console.print(f"\n[bold]{result.success}[/bold] von {len(rehearsal_ids)} übernommen")
    sys.exit(0 if not result.errors else 1)


# ─── TEMPLATES ────────────────────────────────────────────────────────────────

@click.group("templates")
def cmd_templates():
    """Probenvorlagen."""


@cmd_templates.command("list")
@click.option("--search", "-s", default="", help="Suchbegriff (Titel, Ziele, Kategorie, Tags).")
@click.option("--category", default=None, help="Nur diese Kategorie.")
@click.option("--difficulty", default=None, help="Easy, Intermediate oder Advanced.")
@data_file_option
def templates_list(search: str, category: Optional[str], difficulty: Optional[str],
                   data_file: Optional[str]):
    """Listet Vorlagen, optional gefiltert."""
    from planning.templates import TemplateCatalog, search_templates

    session, backend = _open_session(data_file)
    templates = _run(TemplateCatalog(backend).fetch())
    found = search_templates(templates, search, category, difficulty)

    table = Table(title=f"Vorlagen ({len(found)} von {len(templates)})", box=box.ROUNDED)
    table.add_column("ID", justify="right")
    table.add_column("Titel")
    table.add_column("Typ")
    table.add_column("Min", justify="right")
    table.add_column("Kategorie")
    table.add_column("Schwierigkeit")
    table.add_column("Tags")
    table.add_column("Genutzt", justify="right")
    for t in found:
        table.add_row(str(t.id), t.title, t.type.value, str(t.duration), t.category,
                      t.difficulty.value, ", ".join(t.tags), str(t.usage_count))
    console.print(table)


# ─── INSTRUMENTS ──────────────────────────────────────────────────────────────

@click.command("instruments")
def cmd_instruments():
    """Zeigt die verfügbaren Instrumente nach Familie."""
    from config.defaults import INSTRUMENT_FAMILIES

    table = Table(title="Instrumente", box=box.ROUNDED, show_lines=True)
    table.add_column("Familie", style="bold cyan")
    table.add_column("Instrumente")
    for family, instruments in INSTRUMENT_FAMILIES.items():
        table.add_row(family, ", ".join(instruments))
    console.print(table)


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
def cli():
    """Probenplanung für Chöre: Proben, Songs, Status und Übernahme in Auftritte.

    Starten Sie mit: python main.py demo
    """


def main():
    """Einstiegspunkt."""
    cli()


# Befehle registrieren
cli.add_command(cmd_config)
cli.add_command(cmd_demo)
cli.add_command(cmd_list)
cli.add_command(cmd_show)
cli.add_command(cmd_validate)
cli.add_command(cmd_status)
cli.add_command(cmd_promote)
cli.add_command(cmd_templates)
cli.add_command(cmd_instruments)


if __name__ == "__main__":
    main()
