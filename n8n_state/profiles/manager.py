"""
Profile manager - named configuration profiles with one active at a time.

Layout under the data directory:

    config-profiles/
        dev.conf
        staging.conf
        prod.conf
        archive/
            dev_20251128_140530.conf
    active-profile              (name of the active profile)
"""

import difflib
import logging
import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Tuple

from ..config import PathsConfig
from ..errors import (
    AlreadyExistsError,
    ProfileNotFoundError,
    ValidationError,
)
from ..store.filestore import FileStore
from ..store.pointer import PointerStore
from .models import (
    DEFAULT_PROFILES,
    DEFAULT_TEMPLATE,
    ProfileConfig,
    ProfileInfo,
    ProfilePreview,
    Violation,
)

logger = logging.getLogger(__name__)

PROFILE_SUFFIX = ".conf"
PROFILE_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
BACKUP_NAME_RE = re.compile(r"^(?P<name>.+)_\d{8}_\d{6}$")
ENV_REF_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class ProfileManager:
    """Create, switch, validate and compare configuration profiles."""

    def __init__(
        self,
        store: FileStore,
        paths: PathsConfig,
        active: Optional[PointerStore] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        """
        Args:
            store: FileStore rooted at the data directory
            paths: Data directory layout
            active: ActivePointer store (defaults to <data_dir>/active-profile)
            clock: Source of "now", used for backup names
        """
        self.store = store
        self.paths = paths
        self.active = active or PointerStore(store, paths.active_profile_file)
        self.clock = clock

    @property
    def profiles_dir(self) -> Path:
        return self.paths.profiles_dir

    def profile_path(self, name: str) -> Path:
        self._check_name(name)
        return self.profiles_dir / f"{name}{PROFILE_SUFFIX}"

    def _check_name(self, name: str) -> None:
        if not name or not PROFILE_NAME_RE.match(name):
            raise ValidationError("invalid profile name (letters, digits, '.', '_', '-')",
                                  subject=name or "''")

    def exists(self, name: str) -> bool:
        return self.profile_path(name).is_file()

    def load(self, name: str) -> ProfileConfig:
        return ProfileConfig.parse(self._read(name))

    def _read(self, name: str) -> str:
        if not self.exists(name):
            raise ProfileNotFoundError("profile not found", subject=name)
        return self.store.read_text(self.profile_path(name))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def init(self) -> List[str]:
        """
        Write the built-in dev/staging/prod profiles that are missing and
        activate dev if nothing is active yet.

        Returns:
            Names of profiles created
        """
        created = []
        self.store.makedirs(self.paths.profile_archive_dir)
        for name, text in DEFAULT_PROFILES.items():
            if not self.exists(name):
                self.store.write_text(self.profile_path(name), text)
                created.append(name)
                logger.info("Created %s profile", name)

        if self.active.get() is None:
            self.active.set(DEFAULT_TEMPLATE)
        return created

    def create(self, name: str, template: str = DEFAULT_TEMPLATE) -> str:
        """
        Create a profile by copying a template profile verbatim.

        Falls back to the dev profile (or the built-in dev template) when the
        named template does not exist.

        Returns:
            Name of the template actually used

        Raises:
            AlreadyExistsError: A profile with this name exists
        """
        if self.exists(name):
            raise AlreadyExistsError("profile already exists", subject=name)

        if template and self.exists(template):
            source = template
            text = self._read(template)
        elif self.exists(DEFAULT_TEMPLATE):
            source = DEFAULT_TEMPLATE
            text = self._read(DEFAULT_TEMPLATE)
        else:
            source = DEFAULT_TEMPLATE
            text = DEFAULT_PROFILES[DEFAULT_TEMPLATE]

        if source != template:
            logger.warning("Template '%s' not found, using '%s'", template, source)

        self.store.write_text(self.profile_path(name), text)
        logger.info("Created profile '%s' from template '%s'", name, source)
        return source

    def switch(self, name: str, strict: bool = False) -> Optional[str]:
        """
        Make a profile active. The pointer write is the only mutation.

        Args:
            name: Profile to activate
            strict: Refuse profiles that fail validation

        Returns:
            Previously active profile name (None if none)

        Raises:
            ProfileNotFoundError: No such profile (pointer unchanged)
            ValidationError: strict and the profile has violations
        """
        if not self.exists(name):
            raise ProfileNotFoundError("profile not found", subject=name)
        if strict:
            violations = self.validate(name)
            if violations:
                raise ValidationError(
                    f"profile has {len(violations)} violation(s)",
                    subject=name,
                    violations=violations,
                )

        previous = self.active.get()
        self.active.set(name)
        logger.info("Switched from '%s' to '%s'", previous, name)
        return previous

    def list_profiles(self) -> List[ProfileInfo]:
        active = self.active.get()
        return [
            ProfileInfo(name=p.stem, active=(p.stem == active), path=str(p))
            for p in self.store.list_matching(self.profiles_dir, f"*{PROFILE_SUFFIX}")
            if p.is_file()
        ]

    def active_name(self) -> Optional[str]:
        return self.active.get()

    def show_active(self) -> List[Tuple[str, str]]:
        """
        Entries of the active profile, comments and blank lines dropped.

        Raises:
            ProfileNotFoundError: Nothing active, or the active profile file is gone
        """
        name = self.active.get()
        if name is None:
            raise ProfileNotFoundError("no active profile, run init-profiles or switch-profile")
        return self.load(name).entries()

    # =========================================================================
    # Validation and comparison
    # =========================================================================

    def validate(self, name: str) -> List[Violation]:
        """Violations of a stored profile (empty if valid). Never mutates state."""
        return self.load(name).validate()

    def validate_file(self, path: Path) -> List[Violation]:
        """Violations of an arbitrary profile file."""
        return ProfileConfig.parse(self.store.read_text(path)).validate()

    def diff(self, name_a: str, name_b: str) -> List[str]:
        """
        Line-based unified diff of two profile files.

        Returns:
            Diff lines (empty if identical)
        """
        text_a = self._read(name_a)
        text_b = self._read(name_b)
        return list(difflib.unified_diff(
            text_a.splitlines(),
            text_b.splitlines(),
            fromfile=f"{name_a}{PROFILE_SUFFIX}",
            tofile=f"{name_b}{PROFILE_SUFFIX}",
            lineterm="",
        ))

    def preview(self, name: str) -> ProfilePreview:
        """Dry-run of switch(name): current entries vs. entries to be applied."""
        target = self.load(name)
        current_name = self.active.get()
        current_entries: List[Tuple[str, str]] = []
        if current_name and self.exists(current_name):
            current_entries = self.load(current_name).entries()
        return ProfilePreview(
            current_name=current_name,
            target_name=name,
            current_entries=current_entries,
            target_entries=target.entries(),
        )

    def render(self, name: str, environ: Optional[Mapping[str, str]] = None) -> ProfileConfig:
        """
        Profile with ${VAR} references replaced from the environment.

        Unknown variables are left as written.
        """
        env = os.environ if environ is None else environ
        source = self.load(name)
        rendered = ProfileConfig()
        for key, value in source.entries():
            rendered.set(key, ENV_REF_RE.sub(lambda m: env.get(m.group(1), m.group(0)), value))
        return rendered

    # =========================================================================
    # Backups
    # =========================================================================

    def backup(self) -> Path:
        """
        Copy the active profile into the archive.

        Returns:
            Path of the archived copy
        """
        name = self.active.get()
        if name is None:
            raise ProfileNotFoundError("no active profile to back up")
        if not self.exists(name):
            raise ProfileNotFoundError("profile not found", subject=name)
        stamp = self.clock().strftime("%Y%m%d_%H%M%S")
        target = self.paths.profile_archive_dir / f"{name}_{stamp}{PROFILE_SUFFIX}"
        self.store.copy_file(self.profile_path(name), target)
        logger.info("Backed up '%s' to %s", name, target)
        return target

    def restore_backup(self, backup_file: Path) -> str:
        """
        Restore a profile from an archived copy named <profile>_<stamp>.conf.

        Returns:
            Name of the restored profile
        """
        backup_file = self.store.resolve(backup_file)
        match = BACKUP_NAME_RE.match(backup_file.stem)
        if not match:
            raise ValidationError("not a profile backup name (<profile>_YYYYmmdd_HHMMSS.conf)",
                                  subject=str(backup_file))
        name = match.group("name")
        self.store.copy_file(backup_file, self.profile_path(name))
        logger.info("Restored profile '%s' from backup", name)
        return name
