"""End-to-end tests for the command-line interface."""

import io

import pytest
from rich.console import Console

from n8n_state.cli import main
from n8n_state.ui import ConsoleUI

from .conftest import LIVE_DB
from .mocks import FakeServiceController, healthy_transport


class Harness:
    """Runs the CLI against one data directory and captures its output."""

    def __init__(self, data_dir, terminal: bool = False):
        self.data_dir = data_dir
        self.controller = FakeServiceController(running=True)
        self.transport = healthy_transport(200)
        self.terminal = terminal
        self._new_ui()

    def _new_ui(self):
        self.out = io.StringIO()
        self.err = io.StringIO()
        self.ui = ConsoleUI(
            console=Console(file=self.out, width=200, force_terminal=self.terminal,
                            color_system=None),
            err_console=Console(file=self.err, width=200, color_system=None),
        )

    def run(self, *argv) -> int:
        self._new_ui()
        return main(
            ["--data-dir", str(self.data_dir), *argv],
            controller=self.controller,
            transport=self.transport,
            ui=self.ui,
        )

    @property
    def stdout(self) -> str:
        return self.out.getvalue()

    @property
    def stderr(self) -> str:
        return self.err.getvalue()


@pytest.fixture
def cli(data_dir, live_state):
    return Harness(data_dir)


class TestSessionCommands:

    def test_save_then_list(self, cli):
        assert cli.run("save") == 0
        assert "Session saved" in cli.stdout

        assert cli.run("list") == 0
        assert "(current)" in cli.stdout
        assert "Saved Sessions" in cli.stdout

    def test_save_without_service(self, cli):
        cli.controller.stop()

        assert cli.run("save") == 1
        assert "not running" in cli.stderr

        cli.run("list")
        assert "No saved sessions found." in cli.stdout

    def test_restore_round_trip(self, cli, live_state):
        cli.run("save")
        live_state.database_file.write_bytes(b"drifted")
        cli.controller.stop()

        assert cli.run("restore") == 0
        assert "Session restored" in cli.stdout
        assert live_state.database_file.read_bytes() == LIVE_DB

    def test_restore_without_current(self, cli):
        cli.controller.stop()

        assert cli.run("restore") == 1
        assert "no current session" in cli.stderr

    def test_restore_unknown_id(self, cli):
        cli.controller.stop()

        assert cli.run("restore", "20990101_000000") == 1
        assert "20990101_000000: session not found" in cli.stderr

    def test_restore_running_non_interactive(self, cli, live_state):
        cli.run("save")
        live_state.database_file.write_bytes(b"drifted")

        assert cli.run("restore") == 1
        assert "running" in cli.stderr
        assert live_state.database_file.read_bytes() == b"drifted"

    def test_restore_force(self, cli, live_state):
        cli.run("save")
        live_state.database_file.write_bytes(b"drifted")

        assert cli.run("restore", "--force") == 0
        assert live_state.database_file.read_bytes() == LIVE_DB

    def test_restore_dry_run(self, cli, live_state):
        cli.run("save")
        live_state.database_file.write_bytes(b"drifted")

        assert cli.run("restore", "--dry-run") == 0
        assert "Restore preview" in cli.stdout
        assert live_state.database_file.read_bytes() == b"drifted"

    def test_clean_zero_empties_list(self, cli):
        cli.run("save")

        assert cli.run("clean", "0") == 0
        assert "Removed 1 snapshots entry" in cli.stdout

        cli.run("list")
        assert "No saved sessions found." in cli.stdout

    def test_clean_dry_run(self, cli):
        cli.run("save")

        assert cli.run("clean", "0", "--dry-run", "--kind", "all") == 0
        assert "Would remove 1 snapshots entry" in cli.stdout

        cli.run("stats")
        assert "Total sessions" in cli.stdout
        assert "1" in cli.stdout

    def test_clean_rejects_negative_days(self, cli):
        with pytest.raises(SystemExit) as exc_info:
            cli.run("clean", "-1")
        assert exc_info.value.code == 2

    def test_delete(self, cli, live_state):
        cli.run("save")
        snapshot_id = live_state.current_pointer.read_text().strip()

        assert cli.run("delete", snapshot_id) == 0
        assert cli.run("delete", snapshot_id) == 1

    def test_status(self, cli):
        assert cli.run("status") == 0
        assert "healthy" in cli.stdout

        cli.controller.stop()
        assert cli.run("status") == 1
        assert "stopped" in cli.stdout

    @pytest.mark.parametrize("payload", ["[]", '{"id": "x", "created_at": "yesterday"}'])
    def test_list_with_malformed_metadata(self, cli, live_state, payload):
        cli.run("save")
        snapshot_id = live_state.current_pointer.read_text().strip()
        (live_state.snapshots_dir / snapshot_id / "metadata.json").write_text(payload)

        assert cli.run("list") == 0
        assert snapshot_id in cli.stdout
        assert "Traceback" not in cli.stderr


class TestInteractiveRestore:

    @pytest.fixture
    def tty(self, data_dir, live_state):
        harness = Harness(data_dir, terminal=True)
        harness.run("save")
        live_state.database_file.write_bytes(b"drifted")
        return harness

    def test_declined(self, tty, live_state, monkeypatch):
        monkeypatch.setattr(ConsoleUI, "confirm", lambda self, message, default=False: False)

        assert tty.run("restore") == 1
        assert "restore cancelled" in tty.stderr
        assert live_state.database_file.read_bytes() == b"drifted"

    def test_confirmed(self, tty, live_state, monkeypatch):
        monkeypatch.setattr(ConsoleUI, "confirm", lambda self, message, default=False: True)

        assert tty.run("restore") == 0
        assert live_state.database_file.read_bytes() == LIVE_DB


class TestProfileCommands:

    def test_ci_profile_scenario(self, cli):
        assert cli.run("init-profiles") == 0
        assert cli.run("create-profile", "ci", "dev") == 0
        assert cli.run("switch-profile", "ci") == 0
        assert "to 'ci'" in cli.stdout

        assert cli.run("show-active") == 0
        assert "N8N_ENVIRONMENT" in cli.stdout
        assert "development" in cli.stdout

        cli.run("list-profiles")
        for name in ("ci", "dev", "prod", "staging"):
            assert name in cli.stdout

    def test_create_existing(self, cli):
        cli.run("init-profiles")

        assert cli.run("create-profile", "dev") == 1
        assert "already exists" in cli.stderr

    def test_switch_missing(self, cli, paths):
        cli.run("init-profiles")

        assert cli.run("switch-profile", "ghost") == 1
        assert "ghost" in cli.stderr
        assert paths.active_profile_file.read_text() == "dev\n"

    def test_switch_strict_lists_violations(self, cli, paths):
        cli.run("init-profiles")
        (paths.profiles_dir / "broken.conf").write_text("DOCKER_MEMORY_LIMIT=huge\n")

        assert cli.run("switch-profile", "broken", "--strict") == 1
        assert "DOCKER_MEMORY_LIMIT" in cli.stderr

    def test_validate_config(self, cli, tmp_path):
        good = tmp_path / "good.conf"
        good.write_text("N8N_ENVIRONMENT=x\nN8N_LOG_LEVEL=info\nDOCKER_MEMORY_LIMIT=1g\n")
        bad = tmp_path / "bad.conf"
        bad.write_text("N8N_ENVIRONMENT=x\nDOCKER_MEMORY_LIMIT=1gb\n")

        assert cli.run("validate-config", str(good)) == 0
        assert "is valid" in cli.stdout

        assert cli.run("validate-config", str(bad)) == 1
        assert "N8N_LOG_LEVEL" in cli.stdout
        assert "invalid memory format" in cli.stdout

    def test_validate_missing_file(self, cli, tmp_path):
        assert cli.run("validate-config", str(tmp_path / "nope.conf")) == 1
        assert "file not found" in cli.stderr

    def test_validate_non_utf8_file(self, cli, tmp_path):
        latin1 = tmp_path / "latin1.conf"
        latin1.write_bytes(b"N8N_ENVIRONMENT=d\xe9v\n")

        assert cli.run("validate-config", str(latin1)) == 1
        assert "not UTF-8" in cli.stderr
        assert "Traceback" not in cli.stderr

    def test_compare_profiles(self, cli):
        cli.run("init-profiles")

        assert cli.run("compare-profiles", "dev", "prod") == 0
        assert "N8N_LOG_LEVEL=warn" in cli.stdout

        cli.run("create-profile", "ci")
        assert cli.run("compare-profiles", "dev", "ci") == 0
        assert "identical" in cli.stdout

    def test_preview_backup_restore(self, cli, paths):
        cli.run("init-profiles")

        assert cli.run("preview-profile", "prod") == 0
        assert "dry run" in cli.stdout

        assert cli.run("backup-profile") == 0
        archived = list(paths.profile_archive_dir.glob("dev_*.conf"))
        assert len(archived) == 1

        (paths.profiles_dir / "dev.conf").write_text("broken\n")
        assert cli.run("restore-profile", str(archived[0])) == 0
        assert "N8N_ENVIRONMENT=development" in (paths.profiles_dir / "dev.conf").read_text()

    def test_render_profile(self, cli, paths, monkeypatch):
        paths.profiles_dir.mkdir()
        (paths.profiles_dir / "cloud.conf").write_text("N8N_ENVIRONMENT=${DEPLOY_ENV}\n")
        monkeypatch.setenv("DEPLOY_ENV", "production")

        assert cli.run("render-profile", "cloud") == 0
        assert cli.stdout.strip() == "N8N_ENVIRONMENT=production"


class TestMisc:

    def test_record_and_history(self, cli):
        assert cli.run("record", "daily-report", "success", "1250") == 0
        assert cli.run("record", "daily-report", "failed", "90") == 0

        assert cli.run("history") == 0
        assert "daily-report" in cli.stdout
        assert "Total: 2" in cli.stdout

    def test_missing_config_file(self, cli, tmp_path):
        assert cli.run("--config", str(tmp_path / "none.toml"), "list") == 1
        assert "Config file not found" in cli.stderr

    def test_wrongly_typed_config_value(self, cli, tmp_path):
        path = tmp_path / "n8n-state.toml"
        path.write_text('[retention]\ndays = "7"\n')

        assert cli.run("--config", str(path), "list") == 1
        assert "retention.days" in cli.stderr

    def test_invalid_environment(self, cli, monkeypatch):
        monkeypatch.setenv("N8N_RETENTION_DAYS", "soon")

        assert cli.run("list") == 1
        assert "N8N_RETENTION_DAYS" in cli.stderr

    def test_data_dir_from_environment(self, cli, data_dir, monkeypatch):
        monkeypatch.setenv("N8N_DATA_DIR", str(data_dir))

        assert main(["save"], controller=cli.controller, transport=cli.transport, ui=cli.ui) == 0
        assert (data_dir / "sessions" / "current").exists()
