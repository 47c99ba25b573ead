"""Prüfung einer Probe vor dem Anlegen oder Aktualisieren.

Die Regeln sind in Gruppen geordnet. Scheitert die Dienst-Prüfung, wird
abgebrochen; alle anderen Gruppen werden gemeinsam geprüft und gesammelt.
"""

from datetime import datetime, timezone
from typing import Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from analysis.shift_check import DutyRosterChecker
from config.defaults import default_rules
from config.schema import RulesConfig
from models.enums import ShiftStatus
from models.reference import DutyShift
from models.rehearsal import Rehearsal


class ValidationViolation(BaseModel):
    """Ein einzelner Regelverstoß."""

    severity: Literal["error", "warning"]
    field: str           # z.B. "location", "songs", "general"
    rule: str            # z.B. "duration_minimum"
    message: str


class ValidationReport(BaseModel):
    """Ergebnis der Prüfung einer Probe."""

    violations: list[ValidationViolation] = []
    is_valid: bool = True     # True wenn keine Errors (Warnings ok)
    failed_group: Optional[str] = None   # erste Gruppe mit Fehlern

    @property
    def errors(self) -> list[ValidationViolation]:
        return [v for v in self.violations if v.severity == "error"]

    @property
    def warnings(self) -> list[ValidationViolation]:
        return [v for v in self.violations if v.severity == "warning"]

    def errors_by_field(self) -> dict[str, str]:
        """Fehlermeldungen je Feld (erste Meldung gewinnt)."""
        result: dict[str, str] = {}
        for v in self.errors:
            result.setdefault(v.field, v.message)
        return result

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        status = (
            "[bold green]✓ GÜLTIG[/bold green]"
            if self.is_valid
            else "[bold red]✗ UNGÜLTIG[/bold red]"
        )
        lines = [status, f"Fehler: {len(self.errors)} | Warnungen: {len(self.warnings)}"]
        if self.failed_group:
            lines.append(f"[dim]Erste Regelgruppe mit Fehlern: {self.failed_group}[/dim]")
        console.print(Panel("\n".join(lines), title="Proben-Prüfung", border_style="cyan"))

        if not self.violations:
            console.print("[dim]Keine Verstöße gefunden.[/dim]")
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Typ", width=8)
        table.add_column("Feld", width=16)
        table.add_column("Regel", width=22)
        table.add_column("Meldung")
        for v in self.violations:
            color = "red" if v.severity == "error" else "yellow"
            table.add_row(
                f"[{color}]{v.severity.upper()}[/{color}]",
                v.field,
                v.rule,
                v.message,
            )
        console.print(table)


class ValidationContext(BaseModel):
    """Alles, was die Prüfung außerhalb der Probe selbst braucht."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    active_shift: Optional[DutyShift] = None
    bound_performance_id: int = 0             # vom Aufrufer vorgegebener Auftritt
    first_save: Optional[bool] = None         # None = aus rehearsal.is_persisted ableiten
    shift_checker: DutyRosterChecker = Field(default_factory=DutyRosterChecker)
    now: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


_Check = Callable[[Rehearsal, ValidationContext, list[ValidationViolation]], None]

# Gruppen, deren Fehler die weitere Prüfung abbrechen
_STOP_EARLY = frozenset({"shift"})


class RehearsalValidator:
    """Prüft eine Probe gruppenweise in fester Reihenfolge."""

    def __init__(self, rules: Optional[RulesConfig] = None):
        self.rules = rules or default_rules()
        self._groups: list[tuple[str, _Check]] = [
            ("shift", self._check_shift),
            ("required_fields", self._check_required),
            ("shift_lead", self._check_shift_lead),
            ("performance_link", self._check_performance_link),
            ("song_time_budget", self._check_time_budget),
            ("song_entries", self._check_song_entries),
        ]

    def validate(
        self, rehearsal: Rehearsal, context: Optional[ValidationContext] = None
    ) -> ValidationReport:
        """Führt die Regelgruppen aus und gibt einen ValidationReport zurück.

        Ein Fehler in der Dienst-Gruppe bricht sofort ab. Alle übrigen Gruppen
        laufen in einem Durchgang, damit alle Feldfehler gemeinsam gemeldet werden.
        """
        context = context or ValidationContext()
        violations: list[ValidationViolation] = []
        failed: Optional[str] = None
        for name, check in self._groups:
            found: list[ValidationViolation] = []
            check(rehearsal, context, found)
            violations.extend(found)
            if any(v.severity == "error" for v in found):
                failed = failed or name
                if name in _STOP_EARLY:
                    break
        return ValidationReport(violations=violations, is_valid=failed is None,
                                failed_group=failed)

    @staticmethod
    def _is_first_save(rehearsal: Rehearsal, context: ValidationContext) -> bool:
        if context.first_save is not None:
            return context.first_save
        return not rehearsal.is_persisted

    # ─── 1. Dienst ───

    def _check_shift(self, rehearsal, context, out) -> None:
        shift = context.active_shift
        if shift is None:
            return
        result = context.shift_checker.check([shift])
        if not result.can_proceed:
            out.append(ValidationViolation(
                severity="error", field="general", rule="shift_invalid",
                message=result.warning or "Shift validation failed"))
            return
        if result.warning:
            out.append(ValidationViolation(
                severity="warning", field="general", rule="shift_warning",
                message=result.warning))
        if not shift.has_leader:
            out.append(ValidationViolation(
                severity="error", field="general", rule="shift_without_leader",
                message="No duty supervisor is assigned to the shift"))
            return
        actual = context.shift_checker.actual_status(shift, context.now)
        if actual in (ShiftStatus.COMPLETED, ShiftStatus.CANCELLED):
            out.append(ValidationViolation(
                severity="error", field="general", rule="shift_closed",
                message=f"Shift is {actual.value.lower()}, a rehearsal cannot be created"))

    # ─── 2. Pflichtfelder ───

    def _check_required(self, rehearsal, context, out) -> None:
        if rehearsal.date is None:
            out.append(ValidationViolation(
                severity="error", field="date", rule="date_required",
                message="Date is required"))
        if not rehearsal.location.strip():
            out.append(ValidationViolation(
                severity="error", field="location", rule="location_required",
                message="Location is required"))
        minimum = self.rules.min_duration_minutes
        if rehearsal.duration <= 0:
            out.append(ValidationViolation(
                severity="error", field="duration", rule="duration_positive",
                message="Duration must be greater than 0"))
        elif self._is_first_save(rehearsal, context) and rehearsal.duration < minimum:
            out.append(ValidationViolation(
                severity="error", field="duration", rule="duration_minimum",
                message=f"Duration must be at least {minimum} minutes"))
        if not rehearsal.rehearsal_lead_id:
            out.append(ValidationViolation(
                severity="error", field="rehearsalLeadId", rule="lead_required",
                message="Please select a rehearsal lead"))

    # ─── 3. Dienstleiter ───

    def _check_shift_lead(self, rehearsal, context, out) -> None:
        if context.active_shift is not None and not rehearsal.shift_lead_id:
            out.append(ValidationViolation(
                severity="error", field="shiftLeadId", rule="shift_lead_required",
                message="Please select a duty supervisor"))

    # ─── 4. Auftritt ───

    def _check_performance_link(self, rehearsal, context, out) -> None:
        if context.bound_performance_id:
            return
        if not rehearsal.performance_id:
            out.append(ValidationViolation(
                severity="error", field="performanceId", rule="performance_required",
                message="Please select a performance"))

    # ─── 5./6. Songs (nur erstes Speichern) ───

    def _check_time_budget(self, rehearsal, context, out) -> None:
        if not self._is_first_save(rehearsal, context):
            return
        total = rehearsal.total_time_allocated
        if total > rehearsal.duration:
            out.append(ValidationViolation(
                severity="error", field="songs", rule="song_time_budget",
                message=(f"Total song time ({total} min) exceeds the rehearsal "
                         f"duration ({rehearsal.duration} min)")))

    def _check_song_entries(self, rehearsal, context, out) -> None:
        if not self._is_first_save(rehearsal, context):
            return
        incomplete = [p for p in rehearsal.song_plans
                      if not p.song_id or not p.lead_singer_ids]
        if incomplete:
            out.append(ValidationViolation(
                severity="error", field="songs", rule="song_entries_incomplete",
                message="Every song needs a selected song and at least one lead singer"))
