"""
Configuration management for n8n-state.

Supports:
- TOML config files
- Environment variables
- Command-line overrides
- Sensible defaults

Priority (highest to lowest):
1. Command-line arguments
2. Environment variables
3. Config file
4. Defaults
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Mapping

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Fallback for older Python


DEFAULT_DATA_DIR = "~/.n8n"
DEFAULT_HEALTH_URL = "http://localhost:5678"
DEFAULT_RETENTION_DAYS = 7

# Default config file locations (searched in order)
CONFIG_SEARCH_PATHS = [
    Path.cwd() / "n8n-state.toml",
    Path.home() / ".config" / "n8n-state" / "config.toml",
    Path.home() / ".n8n" / "n8n-state.toml",
]

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class PathsConfig:
    """On-disk layout rooted at the n8n data directory."""
    data_dir: str = DEFAULT_DATA_DIR

    @property
    def root(self) -> Path:
        return Path(self.data_dir).expanduser()

    # Live service state
    @property
    def database_file(self) -> Path:
        return self.root / "database.sqlite"

    @property
    def cache_dir(self) -> Path:
        return self.root / ".cache"

    # Snapshots
    @property
    def sessions_dir(self) -> Path:
        return self.root / "sessions"

    @property
    def snapshots_dir(self) -> Path:
        return self.sessions_dir / "snapshots"

    @property
    def current_pointer(self) -> Path:
        return self.sessions_dir / "current"

    @property
    def lock_file(self) -> Path:
        return self.sessions_dir / ".lock"

    # Profiles
    @property
    def profiles_dir(self) -> Path:
        return self.root / "config-profiles"

    @property
    def profile_archive_dir(self) -> Path:
        return self.profiles_dir / "archive"

    @property
    def active_profile_file(self) -> Path:
        return self.root / "active-profile"

    # Retention targets
    @property
    def session_cache_dir(self) -> Path:
        return self.root / "session-cache"

    @property
    def logs_dir(self) -> Path:
        return self.root / "logs"

    @property
    def backups_dir(self) -> Path:
        return self.root / "backups"


@dataclass
class ServiceConfig:
    """Managed container and its health endpoint."""
    container_name: str = "n8n"
    health_url: str = DEFAULT_HEALTH_URL
    probe_timeout: float = 5.0  # seconds


@dataclass
class RetentionConfig:
    """Age-based cleanup policy."""
    days: int = DEFAULT_RETENTION_DAYS
    auto_clean: bool = False  # sweep snapshots after every save


@dataclass
class LoggingConfig:
    level: str = "WARNING"


def _section(data: Dict[str, Any], name: str, errors: List[str]) -> Dict[str, Any]:
    """Return a TOML table, or an empty one if absent or not a table."""
    value = data.get(name, {})
    if not isinstance(value, dict):
        errors.append(f"[{name}] must be a table")
        return {}
    return value


def _setting(table: Dict[str, Any], key: str, default: Any, kinds: tuple, errors: List[str]) -> Any:
    value = table.get(key.rsplit(".", 1)[-1], default)
    # bool is a subclass of int
    wrong_bool = isinstance(value, bool) and bool not in kinds
    if wrong_bool or not isinstance(value, kinds):
        errors.append(f"{key} must be {' or '.join(k.__name__ for k in kinds)}, got {value!r}")
        return default
    return value


@dataclass
class Config:
    """Main configuration container."""
    paths: PathsConfig = field(default_factory=PathsConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Source tracking
    _config_file: Optional[Path] = None
    _load_errors: List[str] = field(default_factory=list)

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Config":
        """
        Load configuration from file, then apply environment overrides.

        Args:
            config_path: Explicit path to config file. If None, searches default locations.
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Config instance with loaded values
        """
        config = cls()

        # Find config file
        if config_path:
            path = Path(config_path).expanduser()
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {config_path}")
        else:
            path = cls._find_config_file()

        if path:
            config = cls._load_from_file(path)
            config._config_file = path

        config.apply_env(os.environ if environ is None else environ)
        return config

    @classmethod
    def _find_config_file(cls) -> Optional[Path]:
        """Find config file in default locations."""
        for path in CONFIG_SEARCH_PATHS:
            if path.exists():
                return path
        return None

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load config from TOML file."""
        with open(path, "rb") as f:
            data = tomllib.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """
        Create Config from dictionary.

        Values of the wrong type keep their default and are reported by
        validate().
        """
        config = cls()
        errors = config._load_errors

        paths = _section(data, "paths", errors)
        config.paths = PathsConfig(
            data_dir=_setting(paths, "paths.data_dir", config.paths.data_dir, (str,), errors),
        )

        svc = _section(data, "service", errors)
        config.service = ServiceConfig(
            container_name=_setting(svc, "service.container_name",
                                    config.service.container_name, (str,), errors),
            health_url=_setting(svc, "service.health_url",
                                config.service.health_url, (str,), errors),
            probe_timeout=float(_setting(svc, "service.probe_timeout",
                                         config.service.probe_timeout, (int, float), errors)),
        )

        ret = _section(data, "retention", errors)
        config.retention = RetentionConfig(
            days=_setting(ret, "retention.days", config.retention.days, (int,), errors),
            auto_clean=_setting(ret, "retention.auto_clean",
                                config.retention.auto_clean, (bool,), errors),
        )

        log = _section(data, "logging", errors)
        config.logging = LoggingConfig(
            level=_setting(log, "logging.level", config.logging.level, (str,), errors),
        )

        return config

    def apply_env(self, environ: Mapping[str, str]) -> "Config":
        """
        Override values from environment variables.

        Invalid numeric values are remembered and reported by validate()
        instead of being used.
        """
        if environ.get("N8N_DATA_DIR"):
            self.paths.data_dir = environ["N8N_DATA_DIR"]
        if environ.get("N8N_HEALTH_URL"):
            self.service.health_url = environ["N8N_HEALTH_URL"]
        if environ.get("N8N_CONTAINER_NAME"):
            self.service.container_name = environ["N8N_CONTAINER_NAME"]
        if environ.get("N8N_STATE_LOG_LEVEL"):
            self.logging.level = environ["N8N_STATE_LOG_LEVEL"]

        raw_days = environ.get("N8N_RETENTION_DAYS")
        if raw_days:
            try:
                self.retention.days = int(raw_days)
            except ValueError:
                self._load_errors.append(
                    f"N8N_RETENTION_DAYS must be an integer, got '{raw_days}'"
                )

        return self

    def override_from_args(self, args) -> "Config":
        """
        Override config values from argparse namespace.

        Args with value None are ignored (keeping config file values).
        """
        if getattr(args, "data_dir", None):
            self.paths.data_dir = args.data_dir
        if getattr(args, "health_url", None):
            self.service.health_url = args.health_url
        if getattr(args, "container", None):
            self.service.container_name = args.container
        if getattr(args, "verbose", None):
            self.logging.level = "DEBUG"

        return self

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = list(self._load_errors)

        if not self.paths.data_dir:
            errors.append("Data directory is required")
        if not self.service.container_name:
            errors.append("Container name is required")
        if not self.service.health_url.startswith(("http://", "https://")):
            errors.append(f"Health URL must be http(s): {self.service.health_url}")
        if self.service.probe_timeout <= 0:
            errors.append("Probe timeout must be positive")
        if self.retention.days < 0:
            errors.append("Retention days must be zero or more")
        if self.logging.level.upper() not in LOG_LEVELS:
            errors.append(f"Unknown log level: {self.logging.level}")

        return errors

    def summary(self, include_config_path: bool = True) -> str:
        """Generate human-readable config summary."""
        lines = []

        if include_config_path:
            if self._config_file:
                lines.append(f"Config: {self._config_file}")
            else:
                lines.append("Config: (defaults)")

        lines.append(f"Data dir: {self.paths.root}")
        lines.append(f"Container: {self.service.container_name}")
        lines.append(f"Health URL: {self.service.health_url} (timeout {self.service.probe_timeout:g}s)")
        auto = ", auto-clean" if self.retention.auto_clean else ""
        lines.append(f"Retention: {self.retention.days} days{auto}")

        return "\n".join(lines)
