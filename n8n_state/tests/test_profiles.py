"""Tests for ProfileManager and ProfileConfig."""

import pytest

from n8n_state.errors import (
    AlreadyExistsError,
    NotFoundError,
    ProfileNotFoundError,
    StorageError,
    ValidationError,
)
from n8n_state.profiles import ProfileConfig
from n8n_state.profiles.models import DEFAULT_PROFILES


@pytest.fixture
def initialized(profiles):
    profiles.init()
    return profiles


class TestInit:

    def test_writes_defaults_and_activates_dev(self, profiles, paths):
        created = profiles.init()

        assert created == ["dev", "staging", "prod"]
        assert (paths.profiles_dir / "prod.conf").read_text() == DEFAULT_PROFILES["prod"]
        assert paths.profile_archive_dir.is_dir()
        assert profiles.active_name() == "dev"

    def test_does_not_overwrite(self, profiles, paths):
        paths.profiles_dir.mkdir()
        (paths.profiles_dir / "dev.conf").write_text("# mine\nN8N_ENVIRONMENT=local\n")

        created = profiles.init()

        assert created == ["staging", "prod"]
        assert (paths.profiles_dir / "dev.conf").read_text().startswith("# mine")

    def test_keeps_existing_active_pointer(self, initialized):
        initialized.switch("prod")
        initialized.init()

        assert initialized.active_name() == "prod"

    def test_list(self, initialized):
        listed = initialized.list_profiles()

        assert [p.name for p in listed] == ["dev", "prod", "staging"]
        assert [p.name for p in listed if p.active] == ["dev"]


class TestCreate:

    def test_ci_from_dev(self, initialized, paths):
        used = initialized.create("ci", "dev")

        assert used == "dev"
        assert (paths.profiles_dir / "ci.conf").read_bytes() == \
            (paths.profiles_dir / "dev.conf").read_bytes()
        assert initialized.validate("ci") == []

        previous = initialized.switch("ci")

        assert previous == "dev"
        assert initialized.show_active() == ProfileConfig.parse(DEFAULT_PROFILES["dev"]).entries()

    def test_name_collision(self, initialized):
        with pytest.raises(AlreadyExistsError):
            initialized.create("staging")

    def test_missing_template_falls_back_to_dev_file(self, initialized, paths):
        (paths.profiles_dir / "dev.conf").write_text("N8N_ENVIRONMENT=custom-dev\n")

        used = initialized.create("qa", "does-not-exist")

        assert used == "dev"
        assert (paths.profiles_dir / "qa.conf").read_text() == "N8N_ENVIRONMENT=custom-dev\n"

    def test_missing_template_without_any_files(self, profiles, paths):
        used = profiles.create("qa", "nope")

        assert used == "dev"
        assert (paths.profiles_dir / "qa.conf").read_text() == DEFAULT_PROFILES["dev"]

    @pytest.mark.parametrize("name", ["", "../escape", "with space", ".hidden"])
    def test_invalid_names(self, profiles, name):
        with pytest.raises(ValidationError):
            profiles.create(name)


class TestSwitch:

    def test_missing_profile_leaves_pointer_unchanged(self, initialized, paths):
        before = paths.active_profile_file.read_bytes()

        with pytest.raises(ProfileNotFoundError):
            initialized.switch("ghost")

        assert paths.active_profile_file.read_bytes() == before
        assert initialized.active_name() == "dev"

    def test_switch_returns_previous(self, initialized):
        assert initialized.switch("staging") == "dev"
        assert initialized.switch("prod") == "staging"
        assert initialized.active_name() == "prod"

    def test_strict_refuses_invalid(self, initialized, paths):
        (paths.profiles_dir / "broken.conf").write_text("N8N_ENVIRONMENT=x\nDOCKER_MEMORY_LIMIT=lots\n")

        with pytest.raises(ValidationError) as exc_info:
            initialized.switch("broken", strict=True)

        keys = {v.key for v in exc_info.value.violations}
        assert keys == {"N8N_LOG_LEVEL", "DOCKER_MEMORY_LIMIT"}
        assert initialized.active_name() == "dev"

    def test_non_strict_accepts_invalid(self, initialized, paths):
        (paths.profiles_dir / "broken.conf").write_text("DOCKER_MEMORY_LIMIT=lots\n")

        initialized.switch("broken")

        assert initialized.active_name() == "broken"

    def test_show_active_without_pointer(self, profiles):
        with pytest.raises(ProfileNotFoundError):
            profiles.show_active()

    def test_show_active_non_utf8_profile(self, initialized, paths):
        (paths.profiles_dir / "dev.conf").write_bytes(b"N8N_ENVIRONMENT=d\xe9v\n")

        with pytest.raises(StorageError):
            initialized.show_active()


class TestValidate:

    @pytest.mark.parametrize("name", ["dev", "staging", "prod"])
    def test_defaults_are_valid(self, initialized, name):
        assert initialized.validate(name) == []

    def test_collects_every_problem(self, tmp_path, profiles):
        path = tmp_path / "bad.conf"
        path.write_text(
            "# comment\n"
            "N8N_ENVIRONMENT=development\n"
            "DOCKER_MEMORY_LIMIT=2GB\n"
            "N8N_LOG_LEVEL=loud\n"
            "N8N_SMTP_ENABLED=yes\n"
            "LOG_RETENTION_DAYS=-3\n"
            "this line is wrong\n"
        )

        violations = profiles.validate_file(path)

        by_key = {v.key: v for v in violations}
        assert "DOCKER_MEMORY_LIMIT" in by_key
        assert by_key["DOCKER_MEMORY_LIMIT"].line == 3
        assert "N8N_LOG_LEVEL" in by_key
        assert "N8N_SMTP_ENABLED" in by_key
        assert "LOG_RETENTION_DAYS" in by_key
        assert any(v.line == 7 for v in violations)
        assert len(violations) == 5

    @pytest.mark.parametrize("limit,valid", [
        ("2g", True),
        ("512m", True),
        ("1024k", True),
        ("2G", False),
        ("2", False),
        ("g", False),
        ("1.5g", False),
    ])
    def test_memory_limit_format(self, limit, valid):
        config = ProfileConfig.parse(
            f"N8N_ENVIRONMENT=x\nN8N_LOG_LEVEL=info\nDOCKER_MEMORY_LIMIT={limit}\n"
        )
        assert (config.validate() == []) is valid

    def test_missing_required_keys(self):
        keys = [v.key for v in ProfileConfig.parse("").validate()]

        assert keys == ["N8N_ENVIRONMENT", "N8N_LOG_LEVEL", "DOCKER_MEMORY_LIMIT"]

    def test_missing_file(self, profiles, tmp_path):
        with pytest.raises(NotFoundError):
            profiles.validate_file(tmp_path / "absent.conf")


class TestParse:

    def test_known_and_extra_keys_keep_order(self):
        config = ProfileConfig.parse(
            "CUSTOM_FLAG=on\nN8N_ENVIRONMENT=staging\n# note\n\nWEBHOOK_URL=https://x/y?a=b\n"
        )

        assert config.environment == "staging"
        assert config.extra == {"CUSTOM_FLAG": "on", "WEBHOOK_URL": "https://x/y?a=b"}
        assert [k for k, _ in config.entries()] == ["CUSTOM_FLAG", "N8N_ENVIRONMENT", "WEBHOOK_URL"]

    def test_to_text(self):
        config = ProfileConfig.parse("# head\nA=1\nN8N_LOG_LEVEL=info\n")

        assert config.to_text() == "A=1\nN8N_LOG_LEVEL=info\n"


class TestCompare:

    def test_diff(self, initialized):
        lines = initialized.diff("dev", "prod")

        assert lines[0] == "--- dev.conf"
        assert lines[1] == "+++ prod.conf"
        assert "-N8N_LOG_LEVEL=debug" in lines
        assert "+N8N_LOG_LEVEL=warn" in lines

    def test_identical(self, initialized):
        initialized.create("ci", "dev")

        assert initialized.diff("dev", "ci") == []

    def test_missing(self, initialized):
        with pytest.raises(ProfileNotFoundError):
            initialized.diff("dev", "ghost")

    def test_preview(self, initialized, paths):
        before = paths.active_profile_file.read_bytes()

        preview = initialized.preview("prod")

        assert preview.current_name == "dev"
        assert preview.target_name == "prod"
        assert "N8N_LOG_LEVEL" in preview.changed_keys
        assert "N8N_EDITOR_DISABLED" not in preview.changed_keys
        assert paths.active_profile_file.read_bytes() == before


class TestBackupAndRender:

    def test_backup_and_restore(self, initialized, paths):
        initialized.switch("staging")
        archived = initialized.backup()

        assert archived.parent == paths.profile_archive_dir
        assert archived.name == "staging_20251128_140530.conf"

        (paths.profiles_dir / "staging.conf").write_text("N8N_ENVIRONMENT=mangled\n")
        restored = initialized.restore_backup(archived)

        assert restored == "staging"
        assert (paths.profiles_dir / "staging.conf").read_text() == DEFAULT_PROFILES["staging"]

    def test_restore_rejects_unrecognised_name(self, initialized, tmp_path):
        stray = tmp_path / "random.conf"
        stray.write_text("A=1\n")

        with pytest.raises(ValidationError):
            initialized.restore_backup(stray)

    def test_backup_without_active(self, profiles):
        with pytest.raises(ProfileNotFoundError):
            profiles.backup()

    def test_render_substitutes_environment(self, profiles, paths):
        paths.profiles_dir.mkdir()
        (paths.profiles_dir / "cloud.conf").write_text(
            "N8N_ENVIRONMENT=${DEPLOY_ENV}\nWEBHOOK_URL=https://${HOST}/hook\nKEEP=${UNSET_VAR}\n"
        )

        rendered = profiles.render("cloud", {"DEPLOY_ENV": "production", "HOST": "n8n.example.com"})

        assert rendered.environment == "production"
        assert rendered.get("WEBHOOK_URL") == "https://n8n.example.com/hook"
        assert rendered.get("KEEP") == "${UNSET_VAR}"
