"""
ResultDisplay - renders query results as rich tables.

Covers snapshots, snapshot statistics, restore previews, sweeps, profiles,
validation reports, diffs, execution history and service status.
"""

from typing import List, Optional, Tuple

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from ..history import HistorySummary
from ..profiles.models import ProfileInfo, ProfilePreview, Violation
from ..retention import SweepResult
from ..service.probe import ServiceStatus
from ..snapshot.models import (
    RestorePreview,
    SnapshotInfo,
    SnapshotStats,
    format_size,
)


def _yes_no(flag: bool) -> str:
    return "[green]✓[/]" if flag else "[dim]-[/]"


class ResultDisplay:
    """
    Formats n8n-state results for the terminal.
    """

    def __init__(self, console: Console):
        self.console = console

    # =========================================================================
    # Snapshots
    # =========================================================================

    def show_snapshots(self, snapshots: List[SnapshotInfo], current_id: Optional[str] = None):
        if not snapshots:
            self.console.print("No saved sessions found.")
            return

        table = Table(title="Saved Sessions", box=box.ROUNDED)
        table.add_column("ID", style="cyan")
        table.add_column("Created", style="dim")
        table.add_column("Size", justify="right")
        table.add_column("Database", justify="center")
        table.add_column("Cache", justify="center")
        table.add_column("n8n", style="blue")

        for s in snapshots:
            marker = " [bold green](current)[/]" if s.id == current_id else ""
            table.add_row(
                f"{s.id}{marker}",
                s.created_at,
                format_size(s.size_bytes),
                _yes_no(s.has_database),
                _yes_no(s.has_cache),
                escape(s.n8n_version),
            )

        self.console.print(table)

    def show_stats(self, stats: SnapshotStats):
        table = Table(title="Session Statistics", show_header=False, box=None)
        table.add_column("Key", style="dim")
        table.add_column("Value")

        table.add_row("Total sessions", str(stats.total))
        table.add_row("With database", str(stats.with_database))
        table.add_row("With cache", str(stats.with_cache))
        table.add_row("Total size", format_size(stats.total_bytes))
        table.add_row("Current session", stats.current_id or "[dim]none[/]")
        table.add_row("Retention", f"{stats.retention_days} days")
        table.add_row("Storage", escape(stats.sessions_dir))

        self.console.print(table)

    def show_restore_preview(self, preview: RestorePreview):
        table = Table(title=f"Restore preview: {preview.snapshot_id}", show_header=False, box=None)
        table.add_column("Key", style="dim")
        table.add_column("Value")

        if preview.replaces_database:
            table.add_row("Database", f"replace ({format_size(preview.database_bytes)})")
            saved = "yes" if preview.creates_pre_restore else "no (no live database)"
            table.add_row("Pre-restore copy", saved)
        else:
            table.add_row("Database", "[dim]not in snapshot, left as is[/]")
        if preview.replaces_cache:
            table.add_row("Workflow cache", f"replace ({format_size(preview.cache_bytes)})")
        else:
            table.add_row("Workflow cache", "[dim]not in snapshot, left as is[/]")
        running = "[yellow]running[/]" if preview.service_running else "stopped"
        table.add_row("n8n", running)

        self.console.print(table)
        self.console.print(f"[dim]{preview.total_changes} change(s) would be applied (dry run)[/]")

    def show_sweep(self, result: SweepResult):
        verb = "Would remove" if result.dry_run else "Removed"
        entries = result.candidates if result.dry_run else result.removed
        for entry in entries:
            self.console.print(f"  [dim]{verb.lower()}[/] {escape(entry.name)}")
        self.console.print(
            f"{verb} {len(entries)} {result.kind} entr{'y' if len(entries) == 1 else 'ies'} "
            f"older than {result.retention_days:g} days"
        )

    # =========================================================================
    # Profiles
    # =========================================================================

    def show_profiles(self, profiles: List[ProfileInfo]):
        if not profiles:
            self.console.print("No profiles found. Run 'init-profiles' first.")
            return

        table = Table(title="Configuration Profiles", box=box.ROUNDED)
        table.add_column("Name", style="cyan")
        table.add_column("Active", justify="center")
        table.add_column("Path", style="dim")

        for p in profiles:
            table.add_row(p.name, "[bold green]●[/]" if p.active else "", escape(p.path))

        self.console.print(table)

    def show_entries(self, title: str, entries: List[Tuple[str, str]]):
        table = Table(title=title, show_header=False, box=None)
        table.add_column("Key", style="cyan")
        table.add_column("Value")
        for key, value in entries:
            table.add_row(key, escape(value))
        self.console.print(table)

    def show_violations(self, subject: str, violations: List[Violation]):
        if not violations:
            self.console.print(f"[green]✓[/] {escape(subject)} is valid")
            return
        self.console.print(f"[red]✗[/] {escape(subject)}: {len(violations)} problem(s)")
        for v in violations:
            self.console.print(f"  [red]-[/] {escape(str(v))}")

    def show_diff(self, lines: List[str], name_a: str, name_b: str):
        if not lines:
            self.console.print(f"{name_a} and {name_b} are identical")
            return
        self.console.print(Syntax("\n".join(lines), "diff", theme="ansi_dark"))

    def show_profile_preview(self, preview: ProfilePreview):
        current = preview.current_name or "none"
        table = Table(title=f"Switch preview: {current} -> {preview.target_name}", box=box.ROUNDED)
        table.add_column("Key", style="cyan")
        table.add_column("Current", style="dim")
        table.add_column("New")

        current_values = dict(preview.current_entries)
        target_values = dict(preview.target_entries)
        changed = set(preview.changed_keys)
        for key in preview.changed_keys + [k for k in target_values if k not in changed]:
            if key not in target_values:
                new = "[dim](removed)[/]"
            elif key in changed:
                new = f"[yellow]{escape(target_values[key])}[/]"
            else:
                new = escape(target_values[key])
            table.add_row(key, escape(current_values.get(key, "")), new)

        self.console.print(table)
        self.console.print(f"[dim]{len(changed)} key(s) would change (dry run)[/]")

    # =========================================================================
    # History and status
    # =========================================================================

    def show_history(self, summary: HistorySummary):
        table = Table(title="Recent Executions", box=box.ROUNDED)
        table.add_column("Time", style="dim")
        table.add_column("Workflow", style="cyan")
        table.add_column("Status")
        table.add_column("Duration", justify="right")

        status_map = {
            "success": "[green]success[/]",
            "failed": "[red]failed[/]",
        }
        for r in summary.recent:
            table.add_row(
                r.timestamp,
                escape(r.workflow),
                status_map.get(r.status, escape(r.status)),
                f"{r.duration_ms}ms",
            )

        if summary.recent:
            self.console.print(table)
        self.console.print(
            f"Total: {summary.total}  Success: [green]{summary.successes}[/]  "
            f"Failed: [red]{summary.failures}[/]"
        )

    def show_status(self, status: ServiceStatus):
        table = Table(title="n8n Service", show_header=False, box=None)
        table.add_column("Key", style="dim")
        table.add_column("Value")

        table.add_row("Process", "[green]running[/]" if status.running else "[red]stopped[/]")
        health = "[green]healthy[/]" if status.healthy else "[red]not responding[/]"
        table.add_row("Health", f"{health} ({escape(status.endpoint)})")
        if status.running:
            table.add_row("Container", escape(status.container_id))
            table.add_row("Uptime", escape(status.uptime))
            table.add_row("Version", escape(status.version))

        self.console.print(table)

    def show_config(self, summary: str):
        self.console.print(f"[dim]{escape(summary)}[/]")
