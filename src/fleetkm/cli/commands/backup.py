"""Backup export and import command implementations."""

import logging
from typing import Optional

from rich.console import Console
from rich.prompt import Confirm

from fleetkm.cli.context import CliContext, fail
from fleetkm.cli.ui import info_panel, success_panel, warning_panel
from fleetkm.core.codec import (
    STDIO,
    decode,
    encode,
    normalize,
    read_backup_text,
    write_backup_text,
)
from fleetkm.core.reconcile import StaleImportWarning, format_timestamp
from fleetkm.exceptions import FleetkmError, ImportCancelledError
from fleetkm.models.backup import BackupFormat

logger = logging.getLogger(__name__)
console = Console()
# Status output goes to stderr when the backup itself goes to stdout.
err_console = Console(stderr=True)


def run_export(ctx: CliContext, output: Optional[str] = None) -> None:
    """Write every stored year to a v2 backup."""
    destination = output or ctx.settings.backup_filename
    session = ctx.open_session()

    try:
        backup = session.build_backup()
        write_backup_text(encode(backup), destination)
    except FleetkmError as e:
        fail(e)

    logger.info("Exported %d year(s) to %s", len(backup.years), destination)
    out = err_console if destination == STDIO else console
    years = ", ".join(str(y) for y in backup.years) or "none"
    out.print()
    out.print(success_panel(f"Backup saved to {destination}\nYears: {years}"))


def run_import(ctx: CliContext, source: str, yes: bool = False) -> None:
    """Restore a backup, asking before old-format or stale data is applied."""

    def ask(question: str) -> bool:
        if yes:
            return True
        if source == STDIO:
            # stdin carries the backup, so there is nobody to answer.
            logger.info("Declined without prompt (stdin import): %s", question)
            return False
        return Confirm.ask(question, default=False)

    def confirm_stale(warning: StaleImportWarning) -> bool:
        console.print()
        console.print(warning_panel(warning.message))
        return ask(f"  Overwrite {warning.year} anyway?")

    session = ctx.open_session()

    try:
        payload = decode(read_backup_text(source), source)
        try:
            backup = normalize(payload, current_year=session.year)
        except ImportCancelledError as e:
            console.print()
            console.print(warning_panel(e.details or e.message))
            if not ask(f"  Import it into {session.year}?"):
                raise
            backup = normalize(payload, current_year=session.year, legacy_confirmed=True)

        report = session.import_backup(backup, confirm_stale=confirm_stale)
    except FleetkmError as e:
        fail(e)

    lines = [f"Format: {_format_label(backup.source_format)}"]
    lines.append(f"Backup time: {format_timestamp(backup.timestamp)}")
    if report.accepted:
        lines.append(f"[green]Imported:[/green] {', '.join(map(str, report.accepted))}")
    if report.rejected:
        lines.append(f"[yellow]Kept local:[/yellow] {', '.join(map(str, report.rejected))}")
    for key, reason in report.failed.items():
        lines.append(f"[red]Invalid {key}:[/red] {reason}")
    if report.company_name:
        lines.append(f"Company: {report.company_name}")

    console.print()
    if report.accepted:
        console.print(success_panel("Import complete."))
    else:
        console.print(warning_panel("No year was imported."))
    console.print(info_panel("\n".join(lines), title="Import"))


def _format_label(fmt: BackupFormat) -> str:
    return {
        BackupFormat.LEGACY_ARRAY: "old (single list)",
        BackupFormat.SINGLE_YEAR: "v1 (single year)",
        BackupFormat.MULTI_YEAR: "v2 (all years)",
    }[fmt]
