"""
CLI - Command-line interface for n8n-state.

Session snapshots (save/restore/list/clean/stats/delete), service status,
configuration profiles and execution history for a local n8n install.
"""

import argparse
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import httpx

from . import __version__
from .config import Config
from .errors import ConfirmationDeclined, ServiceRunningError, StateError
from .history import ExecutionHistory
from .log_config import setup_logging
from .profiles import ProfileManager
from .retention import SWEEP_KINDS, RetentionSweeper
from .service import DockerServiceController, ServiceController, ServiceProbe
from .snapshot import SnapshotManager, SnapshotRestore
from .store import FileStore
from .ui import ConsoleUI, ResultDisplay


def non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a whole number of days, got '{value}'")
    if number < 0:
        raise argparse.ArgumentTypeError("days must be zero or more")
    return number


def cwd_path(value: str) -> Path:
    return Path(value).expanduser().absolute()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="n8n-state",
        description="Session snapshots and configuration profiles for n8n",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    n8n-state save
    n8n-state list
    n8n-state restore 20251128_140530
    n8n-state restore --dry-run
    n8n-state clean 3 --kind logs

    n8n-state init-profiles
    n8n-state create-profile ci dev
    n8n-state switch-profile prod --strict
    n8n-state compare-profiles dev prod
        """
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", metavar="FILE", help="TOML config file")
    parser.add_argument("--data-dir", metavar="DIR",
                        help="n8n data directory (default: $N8N_DATA_DIR or ~/.n8n)")
    parser.add_argument("--health-url", metavar="URL", help="Health endpoint of n8n")
    parser.add_argument("--container", metavar="NAME", help="Docker container name")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging and tracebacks")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print errors")

    sub = parser.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    # ==================== Sessions ====================
    p = sub.add_parser("save", help="Snapshot the live database and workflow cache")
    p.add_argument("--trigger", default="manual", help=argparse.SUPPRESS)
    p.set_defaults(func=cmd_save)

    p = sub.add_parser("restore", help="Restore a snapshot (default: current)")
    p.add_argument("snapshot_id", nargs="?", help="Snapshot id (YYYYmmdd_HHMMSS)")
    p.add_argument("-y", "--force", action="store_true", help="Restore even if n8n is running")
    p.add_argument("--dry-run", action="store_true", help="Show what would change")
    p.set_defaults(func=cmd_restore)

    p = sub.add_parser("list", help="List saved snapshots")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("clean", help="Remove entries older than N days")
    p.add_argument("days", nargs="?", type=non_negative_int,
                   help="Retention in days (default: configured retention)")
    p.add_argument("--kind", choices=SWEEP_KINDS + ("all",), default="snapshots",
                   help="What to sweep (default: snapshots)")
    p.add_argument("--dry-run", action="store_true", help="List without deleting")
    p.set_defaults(func=cmd_clean)

    p = sub.add_parser("stats", help="Snapshot statistics")
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("delete", help="Delete one snapshot")
    p.add_argument("snapshot_id")
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("status", help="Is n8n running and healthy?")
    p.set_defaults(func=cmd_status)

    # ==================== Profiles ====================
    p = sub.add_parser("init-profiles", help="Write default dev/staging/prod profiles")
    p.set_defaults(func=cmd_init_profiles)

    p = sub.add_parser("create-profile", help="Create a profile from a template")
    p.add_argument("name")
    p.add_argument("template", nargs="?", default="dev")
    p.set_defaults(func=cmd_create_profile)

    p = sub.add_parser("switch-profile", help="Make a profile active")
    p.add_argument("name")
    p.add_argument("--strict", action="store_true", help="Refuse profiles that fail validation")
    p.set_defaults(func=cmd_switch_profile)

    p = sub.add_parser("validate-config", help="Validate a profile file")
    p.add_argument("file", type=cwd_path)
    p.set_defaults(func=cmd_validate_config)

    p = sub.add_parser("compare-profiles", help="Unified diff of two profiles")
    p.add_argument("a")
    p.add_argument("b")
    p.set_defaults(func=cmd_compare_profiles)

    p = sub.add_parser("list-profiles", help="List profiles")
    p.set_defaults(func=cmd_list_profiles)

    p = sub.add_parser("show-active", help="Show the active profile")
    p.set_defaults(func=cmd_show_active)

    p = sub.add_parser("preview-profile", help="Show what switching would change")
    p.add_argument("name")
    p.set_defaults(func=cmd_preview_profile)

    p = sub.add_parser("backup-profile", help="Archive a copy of the active profile")
    p.set_defaults(func=cmd_backup_profile)

    p = sub.add_parser("restore-profile", help="Restore a profile from an archived copy")
    p.add_argument("file", type=cwd_path)
    p.set_defaults(func=cmd_restore_profile)

    p = sub.add_parser("render-profile", help="Print a profile with ${VAR} substituted")
    p.add_argument("name")
    p.set_defaults(func=cmd_render_profile)

    # ==================== Execution history ====================
    p = sub.add_parser("history", help="Recent workflow executions")
    p.add_argument("-n", "--limit", type=int, default=20, help="Number of records shown")
    p.set_defaults(func=cmd_history)

    p = sub.add_parser("record", help="Record a workflow execution")
    p.add_argument("workflow")
    p.add_argument("status")
    p.add_argument("duration_ms", type=int)
    p.set_defaults(func=cmd_record)

    return parser


@dataclass
class App:
    """Wired components for one invocation."""
    config: Config
    ui: ConsoleUI
    display: ResultDisplay
    store: FileStore
    probe: ServiceProbe
    snapshots: SnapshotManager
    restorer: SnapshotRestore
    sweeper: RetentionSweeper
    profiles: ProfileManager
    history: ExecutionHistory


def build_app(
    config: Config,
    ui: ConsoleUI,
    controller: Optional[ServiceController] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> App:
    """Wire components from configuration."""
    paths = config.paths
    store = FileStore(paths.root)
    controller = controller or DockerServiceController(config.service.container_name)
    probe = ServiceProbe(
        controller,
        health_url=config.service.health_url,
        timeout=config.service.probe_timeout,
        transport=transport,
    )
    sweeper = RetentionSweeper(store, paths)
    snapshots = SnapshotManager(store, paths, probe, retention=config.retention, sweeper=sweeper)
    return App(
        config=config,
        ui=ui,
        display=ResultDisplay(ui.console),
        store=store,
        probe=probe,
        snapshots=snapshots,
        restorer=SnapshotRestore(store, paths, probe, snapshots),
        sweeper=sweeper,
        profiles=ProfileManager(store, paths),
        history=ExecutionHistory(store, paths.session_cache_dir),
    )


# =========================================================================
# Session commands
# =========================================================================

def cmd_save(app: App, args) -> int:
    metadata = app.snapshots.save(trigger=args.trigger)
    app.ui.print_success(f"Session saved: {metadata.id}")
    parts = [name for name, flag in (("database", metadata.has_database),
                                     ("cache", metadata.has_cache)) if flag]
    app.ui.print_info(f"Captured: {', '.join(parts) or 'metadata only'}")
    return 0


def cmd_restore(app: App, args) -> int:
    if args.dry_run:
        app.display.show_restore_preview(app.restorer.preview(args.snapshot_id))
        return 0

    try:
        result = app.restorer.restore(args.snapshot_id, force=args.force)
    except ServiceRunningError as e:
        if not app.ui.interactive:
            raise
        app.ui.print_warning("n8n is currently running. Restoring may cause data inconsistency.")
        if not app.ui.confirm("Continue anyway?", default=False):
            raise ConfirmationDeclined("restore cancelled", subject=e.subject)
        result = app.restorer.restore(args.snapshot_id, force=True)

    for step in result.steps:
        app.ui.print_info(step)
    app.ui.print_success(f"Session restored: {result.snapshot_id}")
    return 0


def cmd_list(app: App, args) -> int:
    app.display.show_snapshots(app.snapshots.list_snapshots(), app.snapshots.current_id())
    return 0


def cmd_clean(app: App, args) -> int:
    days = app.config.retention.days if args.days is None else args.days
    kinds = SWEEP_KINDS if args.kind == "all" else (args.kind,)
    for kind in kinds:
        result = app.sweeper.sweep(kind, days, dry_run=args.dry_run)
        app.display.show_sweep(result)
    return 0


def cmd_stats(app: App, args) -> int:
    app.display.show_stats(app.snapshots.stats())
    return 0


def cmd_delete(app: App, args) -> int:
    app.snapshots.delete(args.snapshot_id)
    app.ui.print_success(f"Deleted session {args.snapshot_id}")
    return 0


def cmd_status(app: App, args) -> int:
    status = app.probe.status()
    app.display.show_status(status)
    app.display.show_config(app.config.summary())
    return 0 if status.running and status.healthy else 1


# =========================================================================
# Profile commands
# =========================================================================

def cmd_init_profiles(app: App, args) -> int:
    created = app.profiles.init()
    if created:
        app.ui.print_success(f"Created profiles: {', '.join(created)}")
    else:
        app.ui.print_info("Default profiles already exist")
    app.ui.print_info(f"Active profile: {app.profiles.active_name()}")
    return 0


def cmd_create_profile(app: App, args) -> int:
    used = app.profiles.create(args.name, args.template)
    app.ui.print_success(f"Created profile '{args.name}' from template '{used}'")
    return 0


def cmd_switch_profile(app: App, args) -> int:
    previous = app.profiles.switch(args.name, strict=args.strict)
    app.ui.print_success(f"Switched from '{previous or 'none'}' to '{args.name}'")
    return 0


def cmd_validate_config(app: App, args) -> int:
    violations = app.profiles.validate_file(args.file)
    app.display.show_violations(str(args.file), violations)
    return 1 if violations else 0


def cmd_compare_profiles(app: App, args) -> int:
    app.display.show_diff(app.profiles.diff(args.a, args.b), args.a, args.b)
    return 0


def cmd_list_profiles(app: App, args) -> int:
    app.display.show_profiles(app.profiles.list_profiles())
    return 0


def cmd_show_active(app: App, args) -> int:
    entries = app.profiles.show_active()
    app.display.show_entries(f"Active profile: {app.profiles.active_name()}", entries)
    return 0


def cmd_preview_profile(app: App, args) -> int:
    app.display.show_profile_preview(app.profiles.preview(args.name))
    return 0


def cmd_backup_profile(app: App, args) -> int:
    path = app.profiles.backup()
    app.ui.print_success(f"Backed up to {path}")
    return 0


def cmd_restore_profile(app: App, args) -> int:
    name = app.profiles.restore_backup(args.file)
    app.ui.print_success(f"Restored profile '{name}'")
    return 0


def cmd_render_profile(app: App, args) -> int:
    rendered = app.profiles.render(args.name, os.environ)
    # Plain output so it can be redirected into an env file
    app.ui.console.print(rendered.to_text(), end="", markup=False, highlight=False,
                       soft_wrap=True)
    return 0


# =========================================================================
# Execution history
# =========================================================================

def cmd_history(app: App, args) -> int:
    app.display.show_history(app.history.summary(recent=max(args.limit, 0)))
    return 0


def cmd_record(app: App, args) -> int:
    entry = app.history.record(args.workflow, args.status, args.duration_ms)
    app.ui.print_success(f"Recorded {entry.workflow} ({entry.status}, {entry.duration_ms}ms)")
    return 0


def main(
    argv: Optional[List[str]] = None,
    controller: Optional[ServiceController] = None,
    transport: Optional[httpx.BaseTransport] = None,
    ui: Optional[ConsoleUI] = None,
) -> int:
    """
    Main entry point.

    Args:
        argv: Arguments (defaults to sys.argv[1:])
        controller: Service controller override (tests)
        transport: httpx transport override for the health probe (tests)
        ui: Console override (tests)

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    ui = ui or ConsoleUI(quiet=args.quiet)

    try:
        config = Config.load(args.config)
    except FileNotFoundError as e:
        ui.print_error(str(e))
        return 1
    except ValueError as e:
        ui.print_error(f"Invalid config file: {e}")
        return 1
    config.override_from_args(args)

    problems = config.validate()
    if problems:
        for problem in problems:
            ui.print_error(problem)
        return 1

    setup_logging(config.logging.level, quiet=args.quiet)

    handler: Callable[[App, argparse.Namespace], int] = args.func
    try:
        app = build_app(config, ui, controller=controller, transport=transport)
        return handler(app, args)
    except StateError as e:
        ui.print_error(str(e))
        for violation in getattr(e, "violations", []):
            ui.print_warning(str(violation))
        if args.verbose:
            ui.err_console.print_exception()
        return e.exit_code
    except KeyboardInterrupt:
        ui.print_warning("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
