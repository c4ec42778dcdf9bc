"""
Data models for configuration profiles.

A profile file is line-oriented:

    # Development Profile
    N8N_ENVIRONMENT=development
    DOCKER_MEMORY_LIMIT=2g

Known keys map onto named fields of ProfileConfig; anything else lands in
the ``extra`` bag. File order is preserved for display and diffing.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


# key -> ProfileConfig field
KNOWN_KEYS: Dict[str, str] = {
    "N8N_ENVIRONMENT": "environment",
    "N8N_LOG_LEVEL": "log_level",
    "N8N_EDITOR_DISABLED": "editor_disabled",
    "N8N_SMTP_ENABLED": "smtp_enabled",
    "DOCKER_MEMORY_LIMIT": "memory_limit",
    "BACKUP_FREQUENCY": "backup_frequency",
    "LOG_RETENTION_DAYS": "log_retention_days",
    "ALLOW_ANONYMOUS_ACCESS": "allow_anonymous_access",
}

REQUIRED_KEYS = ("N8N_ENVIRONMENT", "N8N_LOG_LEVEL", "DOCKER_MEMORY_LIMIT")
BOOLEAN_KEYS = ("N8N_EDITOR_DISABLED", "N8N_SMTP_ENABLED", "ALLOW_ANONYMOUS_ACCESS")
LOG_LEVELS = ("error", "warn", "info", "debug", "verbose", "silent")

MEMORY_LIMIT_RE = re.compile(r"^[0-9]+[gmk]$")
KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass
class Violation:
    """One validation problem."""
    key: str
    message: str
    line: Optional[int] = None

    def __str__(self) -> str:
        where = f" (line {self.line})" if self.line else ""
        return f"{self.key}: {self.message}{where}"


@dataclass
class ProfileConfig:
    """Typed view of a profile file."""

    environment: Optional[str] = None
    log_level: Optional[str] = None
    editor_disabled: Optional[str] = None
    smtp_enabled: Optional[str] = None
    memory_limit: Optional[str] = None
    backup_frequency: Optional[str] = None
    log_retention_days: Optional[str] = None
    allow_anonymous_access: Optional[str] = None

    extra: Dict[str, str] = field(default_factory=dict)

    # Bookkeeping from parsing
    order: List[str] = field(default_factory=list, repr=False)
    line_numbers: Dict[str, int] = field(default_factory=dict, repr=False)
    malformed: List[Tuple[int, str]] = field(default_factory=list, repr=False)

    @classmethod
    def parse(cls, text: str) -> "ProfileConfig":
        """Parse KEY=value lines; comments and blank lines are skipped."""
        config = cls()
        for lineno, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            key, sep, value = line.partition("=")
            key = key.strip()
            if not sep or not KEY_RE.match(key):
                config.malformed.append((lineno, raw))
                continue
            config.set(key, value.strip())
            config.line_numbers[key] = lineno
        return config

    def get(self, key: str) -> Optional[str]:
        attr = KNOWN_KEYS.get(key)
        if attr is not None:
            return getattr(self, attr)
        return self.extra.get(key)

    def set(self, key: str, value: str) -> None:
        attr = KNOWN_KEYS.get(key)
        if attr is not None:
            setattr(self, attr, value)
        else:
            self.extra[key] = value
        if key not in self.order:
            self.order.append(key)

    def entries(self) -> List[Tuple[str, str]]:
        """Ordered (key, value) pairs as they appeared in the file."""
        pairs = []
        for key in self.order:
            value = self.get(key)
            if value is not None:
                pairs.append((key, value))
        return pairs

    def to_text(self) -> str:
        return "".join(f"{key}={value}\n" for key, value in self.entries())

    def validate(self) -> List[Violation]:
        """
        Collect every problem instead of stopping at the first.

        Returns:
            List of violations (empty if valid)
        """
        violations = []

        for lineno, raw in self.malformed:
            violations.append(Violation(key=raw.strip()[:40], message="not a KEY=value line", line=lineno))

        for key in REQUIRED_KEYS:
            if not self.get(key):
                violations.append(Violation(key=key, message="missing required key"))

        if self.memory_limit and not MEMORY_LIMIT_RE.match(self.memory_limit):
            violations.append(Violation(
                key="DOCKER_MEMORY_LIMIT",
                message=f"invalid memory format '{self.memory_limit}' (use format: 2g, 512m, etc)",
                line=self.line_numbers.get("DOCKER_MEMORY_LIMIT"),
            ))

        if self.log_level and self.log_level.lower() not in LOG_LEVELS:
            violations.append(Violation(
                key="N8N_LOG_LEVEL",
                message=f"unknown log level '{self.log_level}' (one of {', '.join(LOG_LEVELS)})",
                line=self.line_numbers.get("N8N_LOG_LEVEL"),
            ))

        for key in BOOLEAN_KEYS:
            value = self.get(key)
            if value is not None and value.lower() not in ("true", "false"):
                violations.append(Violation(
                    key=key,
                    message=f"expected true or false, got '{value}'",
                    line=self.line_numbers.get(key),
                ))

        if self.log_retention_days is not None and not self.log_retention_days.isdigit():
            violations.append(Violation(
                key="LOG_RETENTION_DAYS",
                message=f"expected a non-negative integer, got '{self.log_retention_days}'",
                line=self.line_numbers.get("LOG_RETENTION_DAYS"),
            ))

        return violations


@dataclass
class ProfileInfo:
    """Summary info for listing profiles."""
    name: str
    active: bool
    path: str


@dataclass
class ProfilePreview:
    """What switching to a profile would change."""
    current_name: Optional[str]
    target_name: str
    current_entries: List[Tuple[str, str]] = field(default_factory=list)
    target_entries: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def changed_keys(self) -> List[str]:
        current = dict(self.current_entries)
        target = dict(self.target_entries)
        keys = list(target) + [k for k in current if k not in target]
        return [k for k in keys if current.get(k) != target.get(k)]


# Built-in templates written by `init-profiles`
DEFAULT_PROFILES: Dict[str, str] = {
    "dev": """# Development Profile
N8N_ENVIRONMENT=development
N8N_LOG_LEVEL=debug
N8N_EDITOR_DISABLED=false
N8N_SMTP_ENABLED=false
DOCKER_MEMORY_LIMIT=2g
BACKUP_FREQUENCY=hourly
LOG_RETENTION_DAYS=7
ALLOW_ANONYMOUS_ACCESS=true
""",
    "staging": """# Staging Profile
N8N_ENVIRONMENT=staging
N8N_LOG_LEVEL=info
N8N_EDITOR_DISABLED=false
N8N_SMTP_ENABLED=true
DOCKER_MEMORY_LIMIT=3g
BACKUP_FREQUENCY=daily
LOG_RETENTION_DAYS=30
ALLOW_ANONYMOUS_ACCESS=false
""",
    "prod": """# Production Profile
N8N_ENVIRONMENT=production
N8N_LOG_LEVEL=warn
N8N_EDITOR_DISABLED=false
N8N_SMTP_ENABLED=true
DOCKER_MEMORY_LIMIT=4g
BACKUP_FREQUENCY=twice-daily
LOG_RETENTION_DAYS=90
ALLOW_ANONYMOUS_ACCESS=false
""",
}

DEFAULT_TEMPLATE = "dev"
